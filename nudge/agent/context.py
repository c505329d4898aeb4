"""Dotted-path lookup into event context."""

import re
from collections.abc import Mapping
from typing import Any, Final

PATH_PATTERN: Final = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")


class _Missing:
    """Sentinel for a path that does not resolve."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()


def is_valid_path(path: str) -> bool:
    """Whether `path` is a well-formed dotted identifier path."""
    return bool(PATH_PATTERN.match(path))


def resolve_path(context: Mapping[str, Any], path: str) -> Any:
    """Resolve `a.b.c` against nested mappings.

    Returns MISSING when any segment is absent or an intermediate value is
    not a mapping. Never raises.
    """
    current: Any = context
    for segment in path.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            return MISSING
        current = current[segment]
    return current
