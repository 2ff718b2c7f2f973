#!/usr/bin/env python3
"""
Tests for synthesizing flags from dataclass fields, and the value parsers
behind default coercion.
"""

from datetime import timedelta
from typing import Optional

import pytest

from dataclass_commands import (
    FieldKind,
    FlagKind,
    Float32,
    Int64,
    Metadata,
    Uint,
    Uint64,
    UnsupportedTypeError,
    flag_from_field,
)
from dataclass_commands.kinds import FieldSpec, field_kind
from dataclass_commands.values import parse_duration, parse_text, split_list


def make_flag(type_hint, default="", name="flag_value", **meta):
    spec = FieldSpec.from_annotation(name, type_hint, Metadata(default=default, **meta))
    return flag_from_field(spec)


class TestFieldKind:
    """Test suite for mapping annotations onto field kinds."""

    @pytest.mark.parametrize(
        "type_hint,kind",
        [
            (int, FieldKind.INT),
            (Int64, FieldKind.INT64),
            (Uint, FieldKind.UINT),
            (Uint64, FieldKind.UINT64),
            (Float32, FieldKind.FLOAT32),
            (float, FieldKind.FLOAT64),
            (bool, FieldKind.BOOL),
            (str, FieldKind.STRING),
            (timedelta, FieldKind.DURATION),
            (list[int], FieldKind.INT_LIST),
            (list[Int64], FieldKind.INT64_LIST),
            (list[str], FieldKind.STRING_LIST),
            (Optional[list[str]], FieldKind.STRING_LIST),
            (Optional[int], FieldKind.INT),
        ],
    )
    def test_supported(self, type_hint, kind):
        assert field_kind(type_hint) is kind

    @pytest.mark.parametrize(
        "type_hint,name",
        [(dict[str, int], "dict[str, int]"), (list[float], "list[float]"), (bytes, "bytes")],
    )
    def test_unsupported(self, type_hint, name):
        """Types outside the closed set fail and name the type."""
        with pytest.raises(UnsupportedTypeError) as exc_info:
            field_kind(type_hint)
        assert exc_info.value.type_name == name
        assert name in str(exc_info.value)


class TestFlagFromField:
    """Test suite for flag_from_field."""

    def test_names_and_metadata(self):
        flag = make_flag(str, name="flag_listen_addr", usage="address", hidden=True)
        assert flag.name == "listen-addr"
        assert flag.env_var == "LISTEN_ADDR"
        assert flag.option == "--listen-addr"
        assert flag.kind is FlagKind.STRING
        assert flag.usage == "address"
        assert flag.hidden is True

    def test_name_override(self):
        spec = FieldSpec.from_annotation("flag_n", int, Metadata(name="Workers"))
        flag = flag_from_field(spec)
        assert flag.name == "workers"
        assert flag.env_var == "WORKERS"

    @pytest.mark.parametrize(
        "type_hint,literal,kind,value",
        [
            (int, "42", FlagKind.INT, 42),
            (int, "-7", FlagKind.INT, -7),
            (Int64, "9000000000", FlagKind.INT64, 9000000000),
            (Uint, "4294967295", FlagKind.UINT, 4294967295),
            (Uint64, "18446744073709551615", FlagKind.UINT64, 18446744073709551615),
            (float, "2.5", FlagKind.FLOAT64, 2.5),
            (Float32, "0.5", FlagKind.FLOAT64, 0.5),
            (str, "hello", FlagKind.STRING, "hello"),
            (str, "'a, b'", FlagKind.STRING, "a, b"),
            (timedelta, "1m30s", FlagKind.DURATION, timedelta(seconds=90)),
        ],
    )
    def test_default_coercion(self, type_hint, literal, kind, value):
        flag = make_flag(type_hint, literal)
        assert flag.kind is kind
        assert flag.value == value

    @pytest.mark.parametrize(
        "type_hint,literal,zero",
        [
            (int, "abc", 0),
            (int, "4294967296", 0),
            (Uint, "-1", 0),
            (Int64, "1.5", 0),
            (float, "x", 0.0),
            (Float32, "1e100", 0.0),
            (bool, "maybe", False),
            (timedelta, "5 seconds", timedelta(0)),
            (timedelta, "30000000000h", timedelta(0)),
        ],
    )
    def test_malformed_default_becomes_zero(self, type_hint, literal, zero):
        """Bad default literals are swallowed into the zero value."""
        assert make_flag(type_hint, literal).value == zero

    def test_float32_rounding(self):
        """Float32 defaults are rounded to single precision."""
        flag = make_flag(Float32, "0.1")
        assert flag.value != 0.1
        assert flag.value == pytest.approx(0.1, rel=1e-7)

    def test_bool_default_false(self):
        flag = make_flag(bool, "false")
        assert flag.kind is FlagKind.BOOL
        assert flag.value is False

    def test_bool_without_default(self):
        assert make_flag(bool).kind is FlagKind.BOOL

    def test_bool_default_true_is_inverted(self):
        """A true default produces a flag whose absence means true."""
        flag = make_flag(bool, "true")
        assert flag.kind is FlagKind.BOOL_T
        assert flag.value is True

    def test_list_defaults(self):
        assert make_flag(list[int], "1,2,3").value == (1, 2, 3)
        assert make_flag(list[Int64], "'4,5'").value == (4, 5)
        assert make_flag(list[str], "a,b").value == ("a", "b")
        assert make_flag(list[int], "1,x").value == (1, 0)

    def test_list_escaped_comma(self):
        assert make_flag(list[str], r"a\,b,c").value == ("a,b", "c")

    def test_empty_list_default_is_unset(self):
        """An empty literal means no default, not an empty list."""
        flag = make_flag(list[str], "")
        assert flag.value is None
        assert flag.default() is None

    def test_list_default_returns_fresh_list(self):
        flag = make_flag(list[int], "1,2")
        first = flag.default()
        first.append(3)
        assert flag.default() == [1, 2]

    def test_unsupported_type(self):
        """The synthesizer never silently skips an unsupported field."""
        with pytest.raises(UnsupportedTypeError):
            make_flag(set[int])


class TestValues:
    """Test suite for the strict value parsers."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("0", timedelta(0)),
            ("5s", timedelta(seconds=5)),
            ("300ms", timedelta(milliseconds=300)),
            ("1.5h", timedelta(hours=1, minutes=30)),
            ("2h45m", timedelta(hours=2, minutes=45)),
            ("-1m", timedelta(minutes=-1)),
            ("10us", timedelta(microseconds=10)),
        ],
    )
    def test_parse_duration(self, text, expected):
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "5", "s", "1d", "1h 2m", "-", "30000000000h"])
    def test_parse_duration_invalid(self, text):
        with pytest.raises(ValueError):
            parse_duration(text)

    def test_split_list(self):
        assert split_list("a,b") == ["a", "b"]
        assert split_list(r"x\,y") == ["x,y"]

    def test_parse_text(self):
        assert parse_text(FlagKind.INT_SLICE, "1,2") == [1, 2]
        assert parse_text(FlagKind.BOOL_T, "false") is False
        with pytest.raises(ValueError):
            parse_text(FlagKind.UINT, "-3")
