"""
The closed set of field types that can become flags.

Every supported annotation maps to one FieldKind, and every FieldKind to the
FlagKind the command-line layer knows how to parse. Both the flag synthesizer
and the value extractor dispatch on these tags, never on the annotation
itself.
"""

import dataclasses
import enum
import functools
import logging
import types
import typing
from datetime import timedelta
from typing import Any, NewType, Optional, Type, Union

from .errors import DataclassCommandsError, StructureError, UnsupportedTypeError
from .metadata import Metadata, field_meta
from .naming import is_flag_field

logger = logging.getLogger(__name__)

# Python has one int and one float; these markers select the width/sign a
# flag is parsed with. ``int`` is the signed 32-bit kind, ``float`` 64-bit.
Int64 = NewType("Int64", int)
Uint = NewType("Uint", int)
Uint64 = NewType("Uint64", int)
Float32 = NewType("Float32", float)


class FieldKind(enum.Enum):
    INT = "int"
    INT64 = "int64"
    UINT = "uint"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    BOOL = "bool"
    STRING = "string"
    DURATION = "duration"
    INT_LIST = "[]int"
    INT64_LIST = "[]int64"
    STRING_LIST = "[]string"


class FlagKind(enum.Enum):
    INT = "int"
    INT64 = "int64"
    UINT = "uint"
    UINT64 = "uint64"
    FLOAT64 = "float64"
    BOOL = "bool"
    # boolean flag whose absence means true
    BOOL_T = "boolT"
    STRING = "string"
    DURATION = "duration"
    INT_SLICE = "int-slice"
    INT64_SLICE = "int64-slice"
    STRING_SLICE = "string-slice"

    @property
    def is_slice(self) -> bool:
        return self in (FlagKind.INT_SLICE, FlagKind.INT64_SLICE, FlagKind.STRING_SLICE)

    @property
    def is_bool(self) -> bool:
        return self in (FlagKind.BOOL, FlagKind.BOOL_T)


_SCALAR_KINDS: tuple[tuple[Any, FieldKind], ...] = (
    (bool, FieldKind.BOOL),
    (int, FieldKind.INT),
    (Int64, FieldKind.INT64),
    (Uint, FieldKind.UINT),
    (Uint64, FieldKind.UINT64),
    (Float32, FieldKind.FLOAT32),
    (float, FieldKind.FLOAT64),
    (str, FieldKind.STRING),
    (timedelta, FieldKind.DURATION),
)

_LIST_KINDS: tuple[tuple[Any, FieldKind], ...] = (
    (int, FieldKind.INT_LIST),
    (Int64, FieldKind.INT64_LIST),
    (str, FieldKind.STRING_LIST),
)

FLAG_KINDS: dict[FieldKind, FlagKind] = {
    FieldKind.INT: FlagKind.INT,
    FieldKind.INT64: FlagKind.INT64,
    FieldKind.UINT: FlagKind.UINT,
    FieldKind.UINT64: FlagKind.UINT64,
    FieldKind.FLOAT32: FlagKind.FLOAT64,
    FieldKind.FLOAT64: FlagKind.FLOAT64,
    FieldKind.BOOL: FlagKind.BOOL,
    FieldKind.STRING: FlagKind.STRING,
    FieldKind.DURATION: FlagKind.DURATION,
    FieldKind.INT_LIST: FlagKind.INT_SLICE,
    FieldKind.INT64_LIST: FlagKind.INT64_SLICE,
    FieldKind.STRING_LIST: FlagKind.STRING_SLICE,
}


def _get_optional_inner_type(type_hint: Any) -> Optional[Any]:
    """
    If type_hint is Optional[T] (i.e., Union[T, None]), return T.
    Otherwise, return None.
    """
    origin = typing.get_origin(type_hint)
    if origin is Union or origin is types.UnionType:
        args = typing.get_args(type_hint)
        non_none_args = [a for a in args if a is not type(None)]
        if len(non_none_args) == 1 and type(None) in args:
            return non_none_args[0]
    return None


def type_name(type_hint: Any) -> str:
    if typing.get_origin(type_hint) is None and hasattr(type_hint, "__name__"):
        return type_hint.__name__
    return str(type_hint)


def field_kind(type_hint: Any) -> FieldKind:
    """
    Map a field annotation onto its FieldKind.

    Raises:
        UnsupportedTypeError: The annotation is outside the supported set.
    """
    inner_type = _get_optional_inner_type(type_hint)
    annotation = inner_type if inner_type is not None else type_hint

    if typing.get_origin(annotation) is list:
        args = typing.get_args(annotation)
        if len(args) == 1:
            for elem_type, kind in _LIST_KINDS:
                if args[0] is elem_type:
                    return kind
    else:
        for scalar_type, kind in _SCALAR_KINDS:
            if annotation is scalar_type:
                return kind

    name = type_name(type_hint)
    raise UnsupportedTypeError(f"unsupported flag generator type: {name}", type_name=name)


@dataclasses.dataclass(frozen=True)
class FieldSpec:
    """One flag field of a command dataclass: its name, kind and annotation."""

    name: str
    kind: FieldKind
    meta: Metadata = Metadata()
    init: bool = True

    @classmethod
    def from_annotation(
        cls, name: str, type_hint: Any, meta: Metadata = Metadata(), init: bool = True
    ) -> "FieldSpec":
        return cls(name=name, kind=field_kind(type_hint), meta=meta, init=init)


def resolve_type_hints(cls: Type[Any]) -> dict[str, Any]:
    """Resolve string annotations (``from __future__ import annotations``)."""
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError) as e:
        raise StructureError(
            f"cannot resolve field annotations of {cls.__name__}: {e}"
        ) from e


@functools.lru_cache(maxsize=None)
def record_fields(cls: Type[Any]) -> tuple[FieldSpec, ...]:
    """
    Return the flag fields of a dataclass in declaration order.

    The result is computed once per class and cached for the life of the
    process, which keeps the class alive; command dataclasses are meant to be
    declared once at module level. The first field (the command marker) is
    never part of the result.

    Raises:
        StructureError: cls is not a dataclass.
        UnsupportedTypeError, MalformedTagError, ParseError: a flag field is
            badly declared; the error names the field.
    """
    if not dataclasses.is_dataclass(cls):
        raise StructureError(f"{type_name(cls)} is not a dataclass")

    hints = resolve_type_hints(cls)
    specs = []
    for field in dataclasses.fields(cls)[1:]:
        try:
            meta = field_meta(field.metadata)
            if not is_flag_field(field.name):
                continue
            specs.append(
                FieldSpec.from_annotation(
                    field.name, hints.get(field.name, field.type), meta, field.init
                )
            )
        except DataclassCommandsError as e:
            raise e.with_field(field.name) from e

    logger.debug(
        "registered %d flag field(s) for %s", len(specs), cls.__qualname__
    )
    return tuple(specs)
