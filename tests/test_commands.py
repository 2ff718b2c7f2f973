#!/usr/bin/env python3
"""
Tests for building command descriptors from annotated dataclasses.
"""

from dataclasses import dataclass, field
from datetime import timedelta

import pytest

from dataclass_commands import (
    Command,
    DuplicateFlagError,
    FlagKind,
    InvalidArgumentError,
    MalformedTagError,
    NamingError,
    StructureError,
    UnsupportedTypeError,
    command_from_object,
)
from dataclass_commands.kinds import record_fields


def serve_action(ctx):
    return "served"


@dataclass
class Serve:
    """A command with one flag of each common kind."""

    command: Command = field(
        default_factory=lambda: Command(action=serve_action, aliases=("s",)),
        metadata={"cli": "usage:'run the server, forever'"},
    )
    flag_port: int = field(default=0, metadata={"cli": "default:8080,usage:listen port"})
    flag_debug: bool = field(default=False, metadata={"cli": "usage:verbose logging"})
    flag_timeout: timedelta = field(default=timedelta(0), metadata={"cli": "default:30s"})
    flag_tags: list[str] = field(default_factory=list, metadata={"cli": "default:'a,b'"})
    workers: int = 4


@dataclass
class NotACommand:
    flag_port: int = 0


@dataclass
class WrongMarker:
    command: str = ""
    flag_port: int = 0


@dataclass
class BadType:
    command: Command = field(default_factory=Command)
    flag_ok: int = 0
    flag_mapping: dict = field(default_factory=dict)


@dataclass
class BadTag:
    command: Command = field(default_factory=Command)
    flag_port: int = field(default=0, metadata={"cli": "colour:red"})


@dataclass
class Collision:
    command: Command = field(default_factory=Command)
    flag_dry_run: bool = False
    flag_dryRun: bool = False


@dataclass
class Renamed:
    command: Command = field(default_factory=Command)
    flag_out: str = field(default="", metadata={"cli": "name:output"})
    flag_output: str = ""


class TestCommandFromObject:
    """Test suite for command_from_object."""

    def test_name_usage_and_action(self):
        command = command_from_object(Serve())
        assert command.name == "serve"
        assert command.usage == "run the server, forever"
        assert command.action is serve_action
        assert command.aliases == ("s",)

    def test_flags_in_declaration_order(self):
        """Only flag_* fields become flags, in the order they are declared."""
        command = command_from_object(Serve())
        assert [f.name for f in command.flags] == ["port", "debug", "timeout", "tags"]
        assert [f.kind for f in command.flags] == [
            FlagKind.INT,
            FlagKind.BOOL,
            FlagKind.DURATION,
            FlagKind.STRING_SLICE,
        ]
        assert command.flag("port").value == 8080
        assert command.flag("tags").value == ("a", "b")
        assert command.flag("workers") is None

    def test_accepts_type(self):
        """A dataclass type works too; the marker comes from its default."""
        command = command_from_object(Serve)
        assert command.action is serve_action
        assert len(command.flags) == 4

    def test_instance_marker_value_is_used(self):
        def other(ctx):
            return "other"

        command = command_from_object(Serve(command=Command(action=other)))
        assert command.action is other

    def test_none(self):
        with pytest.raises(InvalidArgumentError):
            command_from_object(None)

    def test_anonymous_type(self):
        """An unnamed dataclass is rejected before any flag is looked at."""
        @dataclass
        class Anonymous:
            command: Command = field(default_factory=Command)
            flag_port: dict = field(default_factory=dict)

        anonymous = Anonymous
        anonymous.__name__ = ""
        with pytest.raises(NamingError):
            command_from_object(anonymous())

    def test_not_a_dataclass(self):
        with pytest.raises(StructureError):
            command_from_object(object())

    def test_missing_marker(self):
        with pytest.raises(StructureError, match="first field must be a Command"):
            command_from_object(NotACommand())

    def test_wrong_marker_type(self):
        with pytest.raises(StructureError, match="command: str"):
            command_from_object(WrongMarker())

    def test_marker_value_must_be_command(self):
        with pytest.raises(StructureError, match="must hold a Command"):
            command_from_object(Serve(command="nope"))

    def test_unsupported_type_names_field(self):
        """Flag failures carry the offending field's name."""
        with pytest.raises(UnsupportedTypeError) as exc_info:
            command_from_object(BadType())
        assert exc_info.value.field_name == "flag_mapping"
        assert "flag_mapping" in str(exc_info.value)
        assert "dict" in str(exc_info.value)

    def test_malformed_tag_names_field(self):
        with pytest.raises(MalformedTagError) as exc_info:
            command_from_object(BadTag())
        assert exc_info.value.field_name == "flag_port"
        assert exc_info.value.segment == "colour:red"

    def test_kebab_collision_rejected(self):
        """Two fields that kebab-case to the same flag name are rejected."""
        with pytest.raises(DuplicateFlagError) as exc_info:
            command_from_object(Collision())
        assert exc_info.value.flag_name == "dry-run"
        assert "flag_dry_run" in str(exc_info.value)
        assert "flag_dryRun" in str(exc_info.value)

    def test_override_collision_rejected(self):
        with pytest.raises(DuplicateFlagError, match="--output"):
            command_from_object(Renamed())


@dataclass
class HelpFlag:
    command: Command = field(default_factory=Command)
    flag_help: bool = False


@dataclass
class Underscore:
    command: Command = field(default_factory=Command)
    flag__: str = ""


@dataclass
class BlankOverride:
    command: Command = field(default_factory=Command)
    flag_mode: str = field(default="", metadata={"cli": "name:_"})


@dataclass
class Negated:
    command: Command = field(default_factory=Command)
    flag_cache: bool = False
    flag_no_cache: str = ""


@dataclass
class BadMarkerTag:
    command: Command = field(default_factory=Command, metadata={"cli": "colour:red"})
    flag_port: int = 0


class TestOptionStrings:
    """Generated options must not clash with each other or with argparse's own."""

    def test_help_is_reserved(self):
        with pytest.raises(DuplicateFlagError, match="reserves") as exc_info:
            command_from_object(HelpFlag())
        assert exc_info.value.flag_name == "help"

    def test_field_name_without_words(self):
        with pytest.raises(StructureError, match="flag name is empty") as exc_info:
            command_from_object(Underscore())
        assert exc_info.value.field_name == "flag__"

    def test_name_override_without_words(self):
        with pytest.raises(StructureError, match="flag name is empty") as exc_info:
            command_from_object(BlankOverride())
        assert exc_info.value.field_name == "flag_mode"

    def test_negated_bool_collision(self):
        with pytest.raises(DuplicateFlagError, match="--no-cache") as exc_info:
            command_from_object(Negated())
        assert "flag_cache" in str(exc_info.value)
        assert "flag_no_cache" in str(exc_info.value)

    def test_bool_registers_negation(self):
        command = command_from_object(Serve())
        debug = next(f for f in command.flags if f.name == "debug")
        assert debug.option_strings == ("--debug", "--no-debug")
        port = next(f for f in command.flags if f.name == "port")
        assert port.option_strings == ("--port",)


class TestCommandAnnotation:
    def test_malformed_marker_tag(self):
        """Errors on the marker field are reported as command errors."""
        with pytest.raises(MalformedTagError) as exc_info:
            command_from_object(BadMarkerTag())
        message = str(exc_info.value)
        assert "invalid command annotation on field 'command'" in message
        assert "generate flag" not in message
        assert exc_info.value.field_name == "command"


class TestFieldRegistry:
    def test_fields_are_cached_per_class(self):
        assert record_fields(Serve) is record_fields(Serve)
        assert [spec.name for spec in record_fields(Serve)] == [
            "flag_port",
            "flag_debug",
            "flag_timeout",
            "flag_tags",
        ]
