"""
Synthesis of flag descriptors from dataclass fields.

A flag is everything the command-line layer needs to register one option:
its name, the environment variable bound to it, its kind, a typed default,
whether it is hidden and its help text.
"""

import dataclasses
import logging
from typing import Any, Callable

from .kinds import FieldKind, FieldSpec, FLAG_KINDS, FlagKind
from .metadata import parse_bool
from .naming import env_name, flag_name
from .values import (
    parse_duration,
    parse_float,
    parse_float32,
    parse_int,
    parse_int64,
    parse_uint,
    parse_uint64,
    split_list,
    ZERO_VALUES,
)

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Flag:
    """
    A command-line flag derived from one dataclass field.

    ``value`` is the typed default. Slice flags hold a tuple, or None when
    the field declared no default at all.
    """

    name: str
    env_var: str
    kind: FlagKind
    value: Any = None
    hidden: bool = False
    usage: str = ""

    @property
    def option(self) -> str:
        return f"--{self.name}"

    @property
    def option_strings(self) -> tuple[str, ...]:
        """Every option string argparse registers for this flag."""
        if self.kind.is_bool:
            return (self.option, f"--no-{self.name}")
        return (self.option,)

    def default(self) -> Any:
        """Return the default as readers see it: lists are fresh copies."""
        if self.kind.is_slice:
            return None if self.value is None else list(self.value)
        return self.value


def _lenient(parse: Callable[[str], Any], zero: Any) -> Callable[[str], Any]:
    """Wrap a strict parser so malformed default literals become ``zero``."""

    def coerce(text: str) -> Any:
        try:
            return parse(text)
        except ValueError:
            return zero

    return coerce


# Default literal coercion per field kind; slices coerce per element.
_DEFAULT_COERCERS: dict[FieldKind, Callable[[str], Any]] = {
    FieldKind.INT: _lenient(parse_int, 0),
    FieldKind.INT64: _lenient(parse_int64, 0),
    FieldKind.UINT: _lenient(parse_uint, 0),
    FieldKind.UINT64: _lenient(parse_uint64, 0),
    FieldKind.FLOAT32: _lenient(parse_float32, 0.0),
    FieldKind.FLOAT64: _lenient(parse_float, 0.0),
    FieldKind.BOOL: _lenient(parse_bool, False),
    FieldKind.STRING: str,
    FieldKind.DURATION: _lenient(parse_duration, ZERO_VALUES[FlagKind.DURATION]),
    FieldKind.INT_LIST: _lenient(parse_int, 0),
    FieldKind.INT64_LIST: _lenient(parse_int64, 0),
    FieldKind.STRING_LIST: str,
}

_LIST_KINDS = (FieldKind.INT_LIST, FieldKind.INT64_LIST, FieldKind.STRING_LIST)


def coerce_default(kind: FieldKind, literal: str) -> Any:
    """
    Turn a default literal into a typed value for the given field kind.

    Malformed literals yield the kind's zero value. For list kinds an empty
    literal yields None (no default), which is not the same as an empty list.
    """
    coerce = _DEFAULT_COERCERS[kind]
    if kind in _LIST_KINDS:
        if literal == "":
            return None
        return tuple(coerce(item) for item in split_list(literal))
    return coerce(literal)


def flag_from_field(spec: FieldSpec) -> Flag:
    """
    Build the flag for one dataclass field.

    Args:
        spec: The field's name, kind and parsed metadata.

    Returns:
        Flag: The synthesized flag. A boolean field defaulting to true gets
        a BOOL_T flag, whose absence on the command line means true.
    """
    name = flag_name(spec.name, spec.meta.name)
    default = coerce_default(spec.kind, spec.meta.default.strip("'"))

    kind = FLAG_KINDS[spec.kind]
    if kind is FlagKind.BOOL and default:
        kind = FlagKind.BOOL_T

    flag = Flag(
        name=name,
        env_var=env_name(name),
        kind=kind,
        value=default,
        hidden=spec.meta.hidden,
        usage=spec.meta.usage,
    )
    logger.debug("field %s -> flag %s (%s)", spec.name, flag.option, kind.value)
    return flag
