"""
dataclass_commands - Command-line applications generated from annotated dataclasses.

Each command is a dataclass whose first field is a ``Command`` marker and
whose ``flag_*`` fields become options. ``build`` turns the dataclasses into
an argparse-backed application; inside an action, ``read_flags`` reads the parsed
values back into a fresh instance of the dataclass.
"""

from .app import App, Context, build, safe_build
from .commands import Command, CommandSpec, command_from_object
from .errors import (
    DataclassCommandsError,
    DuplicateFlagError,
    FlagLookupError,
    InvalidArgumentError,
    MalformedTagError,
    NamingError,
    ParseError,
    StructureError,
    UnsupportedTypeError,
)
from .extract import read_flags, safe_read_flags
from .flags import Flag, flag_from_field
from .kinds import FieldKind, FlagKind, Float32, Int64, Uint, Uint64
from .metadata import Metadata, parse_meta
from .naming import env_name, flag_name

__version__ = "1.0.0"
__all__ = [
    "App",
    "Command",
    "CommandSpec",
    "Context",
    "DataclassCommandsError",
    "DuplicateFlagError",
    "FieldKind",
    "Flag",
    "FlagKind",
    "FlagLookupError",
    "Float32",
    "Int64",
    "InvalidArgumentError",
    "MalformedTagError",
    "Metadata",
    "NamingError",
    "ParseError",
    "StructureError",
    "Uint",
    "Uint64",
    "UnsupportedTypeError",
    "build",
    "command_from_object",
    "env_name",
    "flag_from_field",
    "flag_name",
    "read_flags",
    "parse_meta",
    "safe_build",
    "safe_read_flags",
]
