"""
Exceptions raised while turning dataclasses into commands and back.

Build-time faults (bad annotations, unsupported field types, missing command
markers) point at a defect in the static declarations, so every error carries
enough context to find the offending field, tag segment or type.
"""

from typing import Optional


class DataclassCommandsError(Exception):
    """Base class for all errors raised by dataclass_commands."""

    def __init__(self, message: str, field_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.field_name = field_name

    def with_field(
        self, field_name: str, prefix: str = "failed to generate flag from field"
    ) -> "DataclassCommandsError":
        """
        Return a copy of this error that names the dataclass field it came from.

        The copy keeps the concrete error class so callers can still catch
        e.g. UnsupportedTypeError after the command layer has wrapped it.
        """
        wrapped = _clone(self, f"{prefix} '{field_name}': {self}")
        wrapped.field_name = field_name
        return wrapped


def _clone(error: DataclassCommandsError, message: str) -> DataclassCommandsError:
    clone = type(error).__new__(type(error))
    clone.__dict__.update(error.__dict__)
    clone.args = (message,)
    return clone


class ParseError(DataclassCommandsError):
    """A metadata value could not be parsed (e.g. a non-boolean 'hidden')."""


class MalformedTagError(DataclassCommandsError):
    """An annotation segment has no ':' separator or uses an unknown key."""

    def __init__(self, message: str, segment: str = "") -> None:
        super().__init__(message)
        self.segment = segment


class UnsupportedTypeError(DataclassCommandsError):
    """A flag field is annotated with a type outside the supported set."""

    def __init__(self, message: str, type_name: str = "") -> None:
        super().__init__(message)
        self.type_name = type_name


class NamingError(DataclassCommandsError):
    """A command type has no usable name."""


class StructureError(DataclassCommandsError):
    """A command type is not laid out as expected."""


class DuplicateFlagError(StructureError):
    """Two fields of one command derive the same flag name."""

    def __init__(self, message: str, flag_name: str = "") -> None:
        super().__init__(message)
        self.flag_name = flag_name


class InvalidArgumentError(DataclassCommandsError):
    """A required argument was None or empty."""


class FlagLookupError(DataclassCommandsError, KeyError):
    """A context was asked for a flag it does not define, or as the wrong kind."""

    def __str__(self) -> str:
        # KeyError quotes its message, keep the plain text instead
        return str(self.args[0]) if self.args else ""
