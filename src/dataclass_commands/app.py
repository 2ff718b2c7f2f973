"""
Applications built from command dataclasses, and the context their actions see.

``build`` turns one or more command dataclasses into an ``App``. An app with a
single command is flattened: its flags and action live at the root and there
is no subcommand layer. An app with several commands exposes each one as an
argparse subcommand.

At invocation time ``App.run`` parses argv with argparse, resolves every flag
value (command line, then environment, then configuration file, then the
annotated default) and hands a ``Context`` to the selected command's action.
"""

import argparse
import dataclasses
import json
import logging
import os
from datetime import timedelta
from typing import Any, Iterable, Mapping, Optional, Sequence

import yaml
from result import Err, Ok, Result

from .commands import Action, CommandSpec, command_from_object, RESERVED_OPTIONS
from .errors import (
    DataclassCommandsError,
    DuplicateFlagError,
    FlagLookupError,
    InvalidArgumentError,
    StructureError,
)
from .flags import Flag
from .kinds import FlagKind
from .values import coerce_value, parse_text, PARSERS

logger = logging.getLogger(__name__)

_COMMAND_DEST = "_command"
_CONFIG_DEST = "_config"
_ARGS_DEST = "_args"

_METAVARS = {
    FlagKind.INT: "INT",
    FlagKind.INT64: "INT",
    FlagKind.UINT: "UINT",
    FlagKind.UINT64: "UINT",
    FlagKind.FLOAT64: "FLOAT",
    FlagKind.STRING: "STRING",
    FlagKind.DURATION: "DURATION",
    FlagKind.INT_SLICE: "INT",
    FlagKind.INT64_SLICE: "INT",
    FlagKind.STRING_SLICE: "STRING",
}


class Context:
    """
    Parsed flag values of one command invocation, readable per flag kind.

    Reading a flag the command does not define, or reading it as the wrong
    kind, raises FlagLookupError.
    """

    def __init__(
        self,
        flags: Iterable[Flag],
        values: Optional[Mapping[str, Any]] = None,
        provided: Iterable[str] = (),
        args: Sequence[str] = (),
        command: Optional[CommandSpec] = None,
        app: Optional["App"] = None,
    ) -> None:
        self._flags: dict[str, Flag] = {flag.name: flag for flag in flags}
        self._values: dict[str, Any] = {
            name: flag.default() for name, flag in self._flags.items()
        }
        self._provided: set[str] = set(provided)
        self.args: list[str] = list(args)
        self.command = command
        self.app = app
        for name, value in (values or {}).items():
            self._store(name, value)

    def _lookup(self, name: str) -> Flag:
        flag = self._flags.get(name)
        if flag is None:
            raise FlagLookupError(f"no such flag: '{name}'")
        return flag

    def _store(self, name: str, value: Any) -> None:
        flag = self._lookup(name)
        if flag.kind.is_slice and value is not None:
            value = list(value)
        self._values[name] = value

    def _get(self, name: str, *kinds: FlagKind) -> Any:
        flag = self._lookup(name)
        if flag.kind not in kinds:
            raise FlagLookupError(
                f"flag '{name}' is a {flag.kind.value} flag, not {kinds[0].value}"
            )
        value = self._values[name]
        if flag.kind.is_slice and value is not None:
            return list(value)
        return value

    def set(self, name: str, value: Any) -> None:
        """Override the value of a flag, as if it had been given on the command line."""
        self._store(name, value)
        self._provided.add(name)

    def is_set(self, name: str) -> bool:
        """True if the flag was given on the command line, environment, config file or via set."""
        self._lookup(name)
        return name in self._provided

    @property
    def flag_names(self) -> list[str]:
        return list(self._flags)

    def get_int(self, name: str) -> int:
        return self._get(name, FlagKind.INT)

    def get_int64(self, name: str) -> int:
        return self._get(name, FlagKind.INT64)

    def get_uint(self, name: str) -> int:
        return self._get(name, FlagKind.UINT)

    def get_uint64(self, name: str) -> int:
        return self._get(name, FlagKind.UINT64)

    def get_float64(self, name: str) -> float:
        return self._get(name, FlagKind.FLOAT64)

    def get_bool(self, name: str) -> bool:
        return self._get(name, FlagKind.BOOL, FlagKind.BOOL_T)

    def get_string(self, name: str) -> str:
        return self._get(name, FlagKind.STRING)

    def get_duration(self, name: str) -> timedelta:
        return self._get(name, FlagKind.DURATION)

    def get_int_slice(self, name: str) -> Optional[list[int]]:
        return self._get(name, FlagKind.INT_SLICE)

    def get_int64_slice(self, name: str) -> Optional[list[int]]:
        return self._get(name, FlagKind.INT64_SLICE)

    def get_string_slice(self, name: str) -> Optional[list[str]]:
        return self._get(name, FlagKind.STRING_SLICE)


def _arg_type(kind: FlagKind):
    """Adapt a value parser to argparse, reporting failures as usage errors."""
    parse = PARSERS[kind]

    def convert(text: str) -> Any:
        try:
            return parse(text)
        except ValueError as e:
            raise argparse.ArgumentTypeError(str(e))

    convert.__name__ = kind.value
    return convert


def _format_description(flag: Flag) -> str:
    """Usage text followed by the bound environment variable and the default."""
    parts = [flag.usage] if flag.usage else []
    parts.append(f"[${flag.env_var}]")
    default = flag.default()
    if flag.kind.is_bool:
        if flag.kind is FlagKind.BOOL_T:
            parts.append("(default: true)")
    elif default is not None and default != "":
        if isinstance(default, list):
            default = ",".join(str(item) for item in default)
        parts.append(f"(default: {default})")
    # argparse %-formats help strings
    return " ".join(parts).replace("%", "%%")


def _add_flags(parser: argparse.ArgumentParser, flags: Iterable[Flag]) -> None:
    for flag in flags:
        kwargs: dict[str, Any] = {
            "dest": flag.name,
            "default": None,
            "help": argparse.SUPPRESS if flag.hidden else _format_description(flag),
        }
        if flag.kind.is_bool:
            kwargs["action"] = argparse.BooleanOptionalAction
        elif flag.kind.is_slice:
            kwargs.update(action="append", type=_arg_type(flag.kind), metavar=_METAVARS[flag.kind])
        else:
            kwargs.update(type=_arg_type(flag.kind), metavar=_METAVARS[flag.kind])
        parser.add_argument(flag.option, **kwargs)
    parser.add_argument(_ARGS_DEST, nargs="*", metavar="ARG", help=argparse.SUPPRESS)


@dataclasses.dataclass(frozen=True)
class App:
    """
    A command-line application: either flat (flags and action at the root)
    or a set of named subcommands with no root flags.
    """

    name: Optional[str] = None
    usage: str = ""
    flags: tuple[Flag, ...] = ()
    action: Optional[Action] = None
    commands: tuple[CommandSpec, ...] = ()
    description: str = ""
    config_flag: Optional[str] = None

    def command(self, name: str) -> Optional[CommandSpec]:
        for command in self.commands:
            if command.name == name or name in command.aliases:
                return command
        return None

    def root_command(self) -> CommandSpec:
        """The flattened command of a single-command app."""
        return CommandSpec(
            name=self.name or "",
            usage=self.usage,
            flags=self.flags,
            action=self.action,
            description=self.description,
        )

    def parser(self) -> argparse.ArgumentParser:
        """Return a fresh argparse parser for this application."""
        parser = argparse.ArgumentParser(
            prog=self.name, description=self.description or self.usage or None
        )
        if self.config_flag:
            parser.add_argument(
                self.config_flag,
                dest=_CONFIG_DEST,
                type=str,
                metavar="FILE",
                help="Path to configuration file (YAML or JSON format)",
            )

        if not self.commands:
            _add_flags(parser, self.flags)
            return parser

        subparsers = parser.add_subparsers(dest=_COMMAND_DEST, metavar="COMMAND")
        for command in self.commands:
            sub = subparsers.add_parser(
                command.name,
                aliases=list(command.aliases),
                help=command.usage.replace("%", "%%"),
                description=command.description or command.usage or None,
            )
            _add_flags(sub, command.flags)
            # an alias on the command line still resolves to the canonical name
            sub.set_defaults(**{_COMMAND_DEST: command.name})
        return parser

    def parse(self, argv: Optional[Sequence[str]] = None) -> Optional[Context]:
        """
        Parse argv into a Context for the selected command.

        Returns None when a multi-command app is invoked without a command.
        Invalid command-line, environment or configuration values exit
        through argparse with status 2.
        """
        parser = self.parser()
        namespace = parser.parse_args(argv)

        if self.commands:
            selected = getattr(namespace, _COMMAND_DEST, None)
            if selected is None:
                return None
            command = self.command(selected)
        else:
            command = self.root_command()

        config = self._config_section(parser, namespace, command)
        values, provided = _resolve_values(parser, command.flags, namespace, config)
        return Context(
            command.flags,
            values=values,
            provided=provided,
            args=getattr(namespace, _ARGS_DEST, None) or [],
            command=command,
            app=self,
        )

    def run(self, argv: Optional[Sequence[str]] = None) -> Any:
        """Parse argv and call the selected command's action with its Context."""
        context = self.parse(argv)
        if context is None:
            self.parser().print_help()
            return None
        if context.command.action is None:
            logger.debug("command %r has no action", context.command.name)
            return None
        return context.command.action(context)

    def _config_section(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        command: CommandSpec,
    ) -> dict[str, Any]:
        config_path = getattr(namespace, _CONFIG_DEST, None)
        if not config_path:
            return {}
        try:
            data = load_config_file(config_path)
        except (FileNotFoundError, ValueError) as e:
            parser.error(str(e))

        if self.commands:
            data = data.get(command.name) or {}
        if not isinstance(data, dict):
            parser.error(f"configuration for '{command.name}' must be a mapping")
        return data


def load_config_file(config_path: str) -> dict[str, Any]:
    """
    Load configuration from a YAML or JSON file.

    Args:
        config_path (str): Path to the configuration file.

    Returns:
        dict[str, Any]: Dictionary containing the configuration data.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValueError: If the file format is not supported or invalid.
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    file_ext = os.path.splitext(config_path)[1].lower()

    with open(config_path, "r") as f:
        if file_ext in [".yaml", ".yml"]:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML file: {e}")
        elif file_ext == ".json":
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON file: {e}")
        else:
            raise ValueError(
                f"Unsupported file format: {file_ext}. "
                "Supported formats are: .yaml, .yml, .json"
            )

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {config_path}")
    return data


def _resolve_values(
    parser: argparse.ArgumentParser,
    flags: Iterable[Flag],
    namespace: argparse.Namespace,
    config: Mapping[str, Any],
) -> tuple[dict[str, Any], set[str]]:
    """
    Pick each flag's value: command line, environment, config file, default.

    Returns the values of every flag that did not fall back to its default,
    and the names of those flags.
    """
    values: dict[str, Any] = {}
    for flag in flags:
        raw = getattr(namespace, flag.name, None)
        if raw is not None:
            values[flag.name] = raw
            continue

        env_value = os.environ.get(flag.env_var)
        if env_value:
            try:
                values[flag.name] = parse_text(flag.kind, env_value)
            except ValueError as e:
                parser.error(
                    f"could not parse ${flag.env_var} as {flag.kind.value} "
                    f"value for flag {flag.option}: {e}"
                )
            continue

        if flag.name in config:
            try:
                values[flag.name] = coerce_value(flag.kind, config[flag.name])
            except ValueError as e:
                parser.error(f"invalid value for '{flag.name}' in configuration file: {e}")
            continue

    unknown = set(config) - {flag.name for flag in flags}
    if unknown:
        logger.debug("ignoring unknown configuration keys: %s", sorted(unknown))
    return values, set(values)


def _check_config_flag(config_flag: str, commands: Iterable[CommandSpec]) -> None:
    if config_flag in RESERVED_OPTIONS:
        raise StructureError(f"config flag '{config_flag}' is reserved by argparse")
    for command in commands:
        for flag in command.flags:
            if config_flag in flag.option_strings:
                raise DuplicateFlagError(
                    f"{command.name}: flag '{flag.option}' clashes with the config flag "
                    f"'{config_flag}'",
                    flag_name=flag.name,
                )


def build(
    *objs: Any, name: Optional[str] = None, config_flag: Optional[str] = None
) -> App:
    """
    Build an application from one or more command dataclasses.

    Args:
        *objs: Command dataclasses or instances of them, one per command.
        name: Program name shown in usage output (default: argv[0]).
        config_flag: Option string of an optional YAML/JSON config file flag,
            e.g. "--config". No such flag is added by default.

    Returns:
        App: Flattened when exactly one command was given.

    Raises:
        DataclassCommandsError: The first command that failed to build.
        DuplicateFlagError: A flag clashes with config_flag.
    """
    if not objs:
        raise InvalidArgumentError("at least one command dataclass is required")

    commands = [command_from_object(obj) for obj in objs]
    if config_flag:
        _check_config_flag(config_flag, commands)

    # a one-command application needs no subcommand, so the command's
    # contents move to the root
    if len(commands) == 1:
        command = commands[0]
        return App(
            name=name,
            usage=command.usage,
            flags=command.flags,
            action=command.action,
            description=command.description,
            config_flag=config_flag,
        )

    seen: set[str] = set()
    for command in commands:
        for command_name in (command.name, *command.aliases):
            if command_name in seen:
                raise StructureError(f"duplicate command name: '{command_name}'")
            seen.add(command_name)
    return App(name=name, commands=tuple(commands), config_flag=config_flag)


def safe_build(
    *objs: Any, name: Optional[str] = None, config_flag: Optional[str] = None
) -> Result[App, str]:
    """
    Build an application, returning the error message instead of raising.

    Returns:
        Result[App, str]:
            - Ok[App] with the built application,
            - Err with the error message if any command failed to build.
    """
    try:
        return Ok(build(*objs, name=name, config_flag=config_flag))
    except DataclassCommandsError as e:
        return Err(str(e))
