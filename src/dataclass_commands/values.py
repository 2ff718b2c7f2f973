"""
Text parsers for flag values.

The same parsers serve three callers: default literals from annotations
(where failures fall back to zero values), and command-line, environment and
configuration file input (where failures are reported to the user).
"""

import re
import struct
from datetime import timedelta
from typing import Any, Callable

from .kinds import FlagKind
from .metadata import parse_bool

INT32_RANGE = (-(2**31), 2**31 - 1)
INT64_RANGE = (-(2**63), 2**63 - 1)
UINT32_RANGE = (0, 2**32 - 1)
UINT64_RANGE = (0, 2**64 - 1)

_INT_RE = re.compile(r"[+-]?[0-9]+")
_DURATION_PART = re.compile(r"([0-9]+(?:\.[0-9]*)?|\.[0-9]+)(ns|us|µs|μs|ms|s|m|h)")
_UNESCAPED_COMMA = re.compile(r"(?<!\\),")

# in microseconds, the resolution of timedelta
_DURATION_UNITS = {
    "ns": 1e-3,
    "us": 1.0,
    "µs": 1.0,
    "μs": 1.0,
    "ms": 1e3,
    "s": 1e6,
    "m": 60e6,
    "h": 3600e6,
}


def _int_parser(bounds: tuple[int, int]) -> Callable[[str], int]:
    low, high = bounds

    def parse(text: str) -> int:
        if not _INT_RE.fullmatch(text):
            raise ValueError(f"invalid integer: '{text}'")
        value = int(text)
        if not low <= value <= high:
            raise ValueError(f"value out of range [{low}, {high}]: {value}")
        return value

    return parse


parse_int = _int_parser(INT32_RANGE)
parse_int64 = _int_parser(INT64_RANGE)
parse_uint = _int_parser(UINT32_RANGE)
parse_uint64 = _int_parser(UINT64_RANGE)


def parse_float(text: str) -> float:
    if text != text.strip() or "_" in text:
        raise ValueError(f"invalid float: '{text}'")
    return float(text)


def to_float32(value: float) -> float:
    """Round a float to the nearest single-precision value."""
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except (OverflowError, struct.error) as e:
        raise ValueError(f"value out of range for float32: {value}") from e


def parse_float32(text: str) -> float:
    return to_float32(parse_float(text))


def parse_duration(text: str) -> timedelta:
    """
    Parse a duration expression such as ``300ms``, ``1.5h`` or ``2h45m``.

    A duration is an optionally signed sequence of decimal numbers, each with
    a unit suffix (ns, us, ms, s, m, h). The bare string ``0`` is also valid.
    """
    s = text
    sign = 1
    if s and s[0] in "+-":
        sign = -1 if s[0] == "-" else 1
        s = s[1:]
    if s == "0":
        return timedelta(0)
    if not s:
        raise ValueError(f"invalid duration: '{text}'")

    total = 0.0
    pos = 0
    while pos < len(s):
        m = _DURATION_PART.match(s, pos)
        if m is None:
            raise ValueError(f"invalid duration: '{text}'")
        total += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()
    try:
        return timedelta(microseconds=sign * total)
    except OverflowError as e:
        raise ValueError(f"duration out of range: '{text}'") from e


def split_list(text: str) -> list[str]:
    r"""Split on commas not preceded by a backslash; ``\,`` becomes ``,``."""
    return [item.replace("\\,", ",") for item in _UNESCAPED_COMMA.split(text)]


# Parsers for one value (or one element, for slices) of each flag kind.
PARSERS: dict[FlagKind, Callable[[str], Any]] = {
    FlagKind.INT: parse_int,
    FlagKind.INT64: parse_int64,
    FlagKind.UINT: parse_uint,
    FlagKind.UINT64: parse_uint64,
    FlagKind.FLOAT64: parse_float,
    FlagKind.BOOL: parse_bool,
    FlagKind.BOOL_T: parse_bool,
    FlagKind.STRING: str,
    FlagKind.DURATION: parse_duration,
    FlagKind.INT_SLICE: parse_int,
    FlagKind.INT64_SLICE: parse_int64,
    FlagKind.STRING_SLICE: str,
}

ZERO_VALUES: dict[FlagKind, Any] = {
    FlagKind.INT: 0,
    FlagKind.INT64: 0,
    FlagKind.UINT: 0,
    FlagKind.UINT64: 0,
    FlagKind.FLOAT64: 0.0,
    FlagKind.BOOL: False,
    FlagKind.BOOL_T: True,
    FlagKind.STRING: "",
    FlagKind.DURATION: timedelta(0),
    FlagKind.INT_SLICE: None,
    FlagKind.INT64_SLICE: None,
    FlagKind.STRING_SLICE: None,
}


def parse_text(kind: FlagKind, text: str) -> Any:
    """
    Strictly parse user-supplied text (environment or config) for a flag kind.

    Slice kinds split the text on unescaped commas. Raises ValueError.
    """
    parser = PARSERS[kind]
    if kind.is_slice:
        return [parser(item) for item in split_list(text)]
    return parser(text)


def coerce_value(kind: FlagKind, value: Any) -> Any:
    """
    Check a value loaded from a YAML/JSON file against a flag kind.

    Strings go through parse_text; native numbers, booleans and lists are
    accepted when they fit the kind. Raises ValueError.
    """
    if isinstance(value, str):
        return parse_text(kind, value)

    if kind.is_slice:
        if not isinstance(value, list):
            raise ValueError(f"expected a list, got {type(value).__name__}: {value!r}")
        return [_coerce_scalar(PARSERS[kind], kind, item) for item in value]
    return _coerce_scalar(PARSERS[kind], kind, value)


def _coerce_scalar(parser: Callable[[str], Any], kind: FlagKind, value: Any) -> Any:
    if isinstance(value, str):
        return parser(value)
    if kind.is_bool:
        if not isinstance(value, bool):
            raise ValueError(f"expected bool, got {type(value).__name__}: {value!r}")
        return value
    if isinstance(value, bool):
        raise ValueError(f"expected {kind.value}, got bool: {value!r}")
    if kind is FlagKind.FLOAT64 and isinstance(value, (int, float)):
        return float(value)
    if kind is FlagKind.DURATION and isinstance(value, (int, float)):
        return timedelta(seconds=value)
    if isinstance(value, int) and kind not in (FlagKind.FLOAT64, FlagKind.DURATION):
        return parser(str(value))
    raise ValueError(f"expected {kind.value}, got {type(value).__name__}: {value!r}")
