"""
Reading parsed flag values back into command dataclasses.

Inside an action, ``read_flags(Serve, ctx)`` returns a new ``Serve`` whose
``flag_*`` fields hold the values parsed for the current invocation.
"""

import dataclasses
from typing import Any, Callable, TypeVar

from result import Err, Ok, Result

from .app import Context
from .commands import record_type
from .errors import DataclassCommandsError, InvalidArgumentError
from .kinds import FieldKind, record_fields
from .naming import flag_name
from .values import to_float32

T = TypeVar("T")

_READERS: dict[FieldKind, Callable[[Context, str], Any]] = {
    FieldKind.INT: Context.get_int,
    FieldKind.INT64: Context.get_int64,
    FieldKind.UINT: Context.get_uint,
    FieldKind.UINT64: Context.get_uint64,
    FieldKind.FLOAT32: lambda ctx, name: to_float32(ctx.get_float64(name)),
    FieldKind.FLOAT64: Context.get_float64,
    FieldKind.BOOL: Context.get_bool,
    FieldKind.STRING: Context.get_string,
    FieldKind.DURATION: Context.get_duration,
    FieldKind.INT_LIST: Context.get_int_slice,
    FieldKind.INT64_LIST: Context.get_int64_slice,
    FieldKind.STRING_LIST: Context.get_string_slice,
}


def read_flags(obj: T, ctx: Context) -> T:
    """
    Return a new instance of obj's dataclass with every flag field read from ctx.

    Args:
        obj: A command dataclass instance or type, used as a template. Fields
            that are not flags keep the instance's values (or their defaults
            when a type is given). The template is not modified.
        ctx: The Context passed to the command's action.

    Raises:
        InvalidArgumentError: obj or ctx is None.
        UnsupportedTypeError: A flag field has an unsupported annotation.
    """
    cls = record_type(obj)
    if ctx is None:
        raise InvalidArgumentError("ctx is None")

    values = {}
    late = {}
    for spec in record_fields(cls):
        value = _READERS[spec.kind](ctx, flag_name(spec.name, spec.meta.name))
        if spec.init:
            values[spec.name] = value
        else:
            late[spec.name] = value

    if isinstance(obj, type):
        result = cls(**values)
    else:
        result = dataclasses.replace(obj, **values)
    for name, value in late.items():
        # init=False fields may live on frozen dataclasses
        object.__setattr__(result, name, value)
    return result


def safe_read_flags(obj: T, ctx: Context) -> Result[T, str]:
    """
    Like read_flags(), but return the error message instead of raising.

    Returns:
        Result[T, str]:
            - Ok with the populated dataclass instance,
            - Err with the error message if extraction failed.
    """
    try:
        return Ok(read_flags(obj, ctx))
    except DataclassCommandsError as e:
        return Err(str(e))
