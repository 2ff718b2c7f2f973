"""
Synthesis of command descriptors from annotated dataclasses.

A command dataclass starts with a ``Command`` field and declares one
``flag_*`` field per option:

    @dataclass
    class Serve:
        command: Command = field(
            default_factory=lambda: Command(action=serve),
            metadata={"cli": "usage:'run the server'"},
        )
        flag_port: int = field(default=8080, metadata={"cli": "default:8080"})

The class name, lowercased, becomes the command name.
"""

import dataclasses
import logging
from typing import Any, Callable, Optional, Type

from .errors import (
    DataclassCommandsError,
    DuplicateFlagError,
    InvalidArgumentError,
    NamingError,
    StructureError,
)
from .flags import Flag, flag_from_field
from .kinds import record_fields, resolve_type_hints, type_name
from .metadata import field_meta

logger = logging.getLogger(__name__)

Action = Callable[[Any], Any]

# option strings argparse registers on every parser
RESERVED_OPTIONS = ("--help",)


@dataclasses.dataclass(frozen=True)
class Command:
    """
    Marker that must be the first field of every command dataclass.

    The field's ``"cli"`` annotation gives the command's usage text; the
    value carries what cannot be expressed as a string.
    """

    action: Optional[Action] = None
    aliases: tuple[str, ...] = ()
    description: str = ""


@dataclasses.dataclass(frozen=True)
class CommandSpec:
    """A command ready to be registered: name, usage, flags and action."""

    name: str
    usage: str = ""
    flags: tuple[Flag, ...] = ()
    action: Optional[Action] = None
    aliases: tuple[str, ...] = ()
    description: str = ""

    def flag(self, name: str) -> Optional[Flag]:
        for f in self.flags:
            if f.name == name:
                return f
        return None


def record_type(obj: Any) -> Type[Any]:
    """Return the dataclass type of an instance, or the type itself."""
    if obj is None:
        raise InvalidArgumentError("obj is None")
    cls = obj if isinstance(obj, type) else type(obj)
    if not cls.__name__.isidentifier():
        raise NamingError(
            f"need a named dataclass type to determine command name, got {cls.__name__!r}"
        )
    if not dataclasses.is_dataclass(cls):
        raise StructureError(f"{type_name(cls)} is not a dataclass")
    return cls


def _marker_value(obj: Any, field: dataclasses.Field) -> Any:
    if not isinstance(obj, type):
        return getattr(obj, field.name)
    if field.default is not dataclasses.MISSING:
        return field.default
    if field.default_factory is not dataclasses.MISSING:
        return field.default_factory()
    return Command()


def _get_command(cls: Type[Any], obj: Any) -> CommandSpec:
    fields = dataclasses.fields(cls)
    if not fields:
        raise StructureError(f"{cls.__name__}: first field must be a Command")

    first = fields[0]
    hint = resolve_type_hints(cls).get(first.name, first.type)
    if not (isinstance(hint, type) and issubclass(hint, Command)):
        raise StructureError(
            f"{cls.__name__}: first field must be a Command, got "
            f"'{first.name}: {type_name(hint)}'"
        )

    marker = _marker_value(obj, first)
    if not isinstance(marker, Command):
        raise StructureError(
            f"{cls.__name__}.{first.name} must hold a Command, got {type(marker).__name__}"
        )

    try:
        meta = field_meta(first.metadata)
    except DataclassCommandsError as e:
        raise e.with_field(first.name, "invalid command annotation on field") from e

    return CommandSpec(
        name=cls.__name__.lower(),
        usage=meta.usage,
        action=marker.action,
        aliases=tuple(marker.aliases),
        description=marker.description,
    )


def command_from_object(obj: Any) -> CommandSpec:
    """
    Build the command descriptor for a dataclass instance or type.

    Args:
        obj: A command dataclass (or instance of one). Instances contribute
            the value of their Command field, e.g. its action.

    Returns:
        CommandSpec with one flag per ``flag_*`` field, in declaration order.

    Raises:
        InvalidArgumentError: obj is None.
        NamingError: The type has no usable name.
        StructureError: obj is not a dataclass or has no leading Command field.
        DuplicateFlagError: Two fields derive the same option string, or a
            field derives one argparse reserves (--help).
        StructureError: A field derives an empty flag name.
        UnsupportedTypeError, MalformedTagError, ParseError: A flag field is
            badly declared; ``field_name`` on the error names it.
    """
    cls = record_type(obj)
    command = _get_command(cls, obj)

    flags: list[Flag] = []
    owners: dict[str, str] = {}
    for spec in record_fields(cls):
        try:
            flag = flag_from_field(spec)
        except DataclassCommandsError as e:
            raise e.with_field(spec.name) from e

        if not flag.name:
            raise StructureError(
                f"{cls.__name__}.{spec.name}: flag name is empty", field_name=spec.name
            )
        for option in flag.option_strings:
            if option in RESERVED_OPTIONS:
                raise DuplicateFlagError(
                    f"{cls.__name__}: field '{spec.name}' defines option '{option}', "
                    "which argparse reserves",
                    flag_name=flag.name,
                )
            if option in owners:
                raise DuplicateFlagError(
                    f"{cls.__name__}: fields '{owners[option]}' and '{spec.name}' "
                    f"both define option '{option}'",
                    flag_name=flag.name,
                )
        owners.update(dict.fromkeys(flag.option_strings, spec.name))
        flags.append(flag)

    logger.debug("command %s: %d flag(s)", command.name, len(flags))
    return dataclasses.replace(command, flags=tuple(flags))
