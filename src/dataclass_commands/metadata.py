"""
Parsing of the compact annotation strings attached to dataclass fields.

Annotations live in the field metadata under the ``"cli"`` key:

    flag_retries: int = field(
        default=0, metadata={"cli": "usage:'how many times, at most',default:3"}
    )

The string is a comma separated list of ``key:value`` segments. Values may be
wrapped in single quotes to embed literal commas.
"""

import dataclasses
from typing import Any, Mapping

from .errors import MalformedTagError, ParseError

METADATA_KEY = "cli"

_TRUE_LITERALS = ("1", "t", "T", "TRUE", "true", "True")
_FALSE_LITERALS = ("0", "f", "F", "FALSE", "false", "False")


@dataclasses.dataclass(frozen=True)
class Metadata:
    """Structured form of a field annotation."""

    name: str = ""
    usage: str = ""
    hidden: bool = False
    default: str = ""


def parse_bool(value: str) -> bool:
    """
    Parse a boolean literal.

    Accepts 1, t, T, TRUE, true, True and their false counterparts.
    Raises ValueError for anything else.
    """
    if value in _TRUE_LITERALS:
        return True
    if value in _FALSE_LITERALS:
        return False
    raise ValueError(f"invalid boolean literal: '{value}'")


def split_segments(tag: str) -> list[str]:
    """Split a tag on commas that are not inside a single-quoted span."""
    segments = []
    current: list[str] = []
    quoting = False
    for char in tag:
        if char == "'":
            quoting = not quoting
        if char == "," and not quoting:
            segments.append("".join(current))
            current = []
            continue
        current.append(char)
    segments.append("".join(current))
    return [segment for segment in segments if segment]


def parse_meta(tag: str) -> Metadata:
    """
    Parse an annotation string into a Metadata record.

    Args:
        tag: The raw annotation, e.g. ``"name:out,usage:'where to write'"``.

    Returns:
        Metadata with only the keys present in ``tag`` populated.

    Raises:
        MalformedTagError: A segment has no ':' or uses an unknown key.
        ParseError: The 'hidden' value is not a boolean literal.
    """
    values: dict[str, Any] = {}
    for segment in split_segments(tag or ""):
        key, sep, value = segment.partition(":")
        if not sep:
            raise MalformedTagError(f"malformed tag: '{segment}'", segment=segment)

        if key == "name":
            values["name"] = value
        elif key == "usage":
            values["usage"] = value.strip("'")
        elif key == "hidden":
            if value == "":
                values["hidden"] = False
                continue
            try:
                values["hidden"] = parse_bool(value)
            except ValueError as e:
                raise ParseError(f"failed to parse 'hidden' as a bool: {e}") from e
        elif key == "default":
            values["default"] = value
        else:
            raise MalformedTagError(
                f"unknown command tag: '{key}:{value}'", segment=segment
            )
    return Metadata(**values)


def field_meta(metadata: Mapping[str, Any]) -> Metadata:
    """Parse the annotation stored in a dataclass field's metadata mapping."""
    return parse_meta(metadata.get(METADATA_KEY, ""))
