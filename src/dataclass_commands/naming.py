"""
Flag and environment variable names derived from dataclass field names.

The builder and the extractor both go through ``flag_name`` so a field always
maps to the same flag, whichever side asks.
"""

import re

FLAG_PREFIX = "flag_"

# camelCase / PascalCase boundaries, keeping acronym runs together
_LOWER_UPPER = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_WORD = re.compile(r"([A-Z]+)([A-Z][a-z])")
_SEPARATORS = re.compile(r"[\s_\-.]+")


def _words(s: str) -> list[str]:
    s = _LOWER_UPPER.sub(r"\1 \2", s)
    s = _ACRONYM_WORD.sub(r"\1 \2", s)
    return [word for word in _SEPARATORS.split(s) if word]


def to_kebab(s: str) -> str:
    """Convert ``HTTPPort``, ``http_port`` or ``httpPort`` to ``http-port``."""
    return "-".join(word.lower() for word in _words(s))


def to_screaming_snake(s: str) -> str:
    """Convert ``http-port`` (or any form accepted by to_kebab) to ``HTTP_PORT``."""
    return "_".join(word.upper() for word in _words(s))


def is_flag_field(field_name: str) -> bool:
    """Only fields named ``flag_<something>`` become command-line flags."""
    return field_name.startswith(FLAG_PREFIX) and len(field_name) > len(FLAG_PREFIX)


def flag_name(field_name: str, override: str = "") -> str:
    if override:
        return to_kebab(override)
    return to_kebab(field_name[len(FLAG_PREFIX):] if is_flag_field(field_name) else field_name)


def env_name(name: str) -> str:
    return to_screaming_snake(name)
