"""
Typed access into schema-less Kubernetes objects.

Objects arrive as plain nested ``dict``/``list`` trees. The accessors here
never hand back a zero value for a field that isn't there: they return a
``Missing`` marker saying whether the field was absent or present with the
wrong type, so callers can tell ``metadata.namespace`` unset from set to "".
"""

from __future__ import annotations

import enum
from typing import Any


class Missing(enum.Enum):
    ABSENT = "absent"
    WRONG_TYPE = "wrong-type"

    def __bool__(self) -> bool:
        return False


def nested_field(obj: Any, *path: str) -> Any:
    """Walk ``path`` through nested mappings.

    Returns the value found, ``Missing.ABSENT`` if a key is missing, or
    ``Missing.WRONG_TYPE`` if an intermediate node is not a mapping.
    """
    current = obj
    for key in path:
        if not isinstance(current, dict):
            return Missing.WRONG_TYPE
        if key not in current:
            return Missing.ABSENT
        current = current[key]
    return current


def _typed(obj: Any, path: tuple[str, ...], expected: type | tuple[type, ...]) -> Any:
    value = nested_field(obj, *path)
    if isinstance(value, Missing):
        return value
    if value is None:
        return Missing.ABSENT
    if not isinstance(value, expected):
        return Missing.WRONG_TYPE
    return value


def nested_str(obj: Any, *path: str) -> str | Missing:
    return _typed(obj, path, str)


def nested_bool(obj: Any, *path: str) -> bool | Missing:
    return _typed(obj, path, bool)


def nested_list(obj: Any, *path: str) -> list | Missing:
    return _typed(obj, path, list)


def nested_map(obj: Any, *path: str) -> dict | Missing:
    return _typed(obj, path, dict)


def str_or_empty(value: str | Missing) -> str:
    """Collapse a lookup result to a string where absence really means ''."""
    return "" if isinstance(value, Missing) else value


class Unstructured:
    """Read-only view over a generic Kubernetes object."""

    def __init__(self, obj: dict[str, Any]):
        self.object = obj

    @property
    def api_version(self) -> str:
        return str_or_empty(nested_str(self.object, "apiVersion"))

    @property
    def kind(self) -> str:
        return str_or_empty(nested_str(self.object, "kind"))

    @property
    def name(self) -> str:
        return str_or_empty(nested_str(self.object, "metadata", "name"))

    @property
    def namespace(self) -> str:
        return str_or_empty(nested_str(self.object, "metadata", "namespace"))

    @property
    def uid(self) -> str:
        return str_or_empty(nested_str(self.object, "metadata", "uid"))

    @property
    def resource_version(self) -> str:
        return str_or_empty(nested_str(self.object, "metadata", "resourceVersion"))

    def conditions(self) -> list | Missing:
        return nested_list(self.object, "status", "conditions")

    def __repr__(self) -> str:
        return f"Unstructured({self.kind}/{self.name})"
