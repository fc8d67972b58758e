"""Dot-path lookup shared by compile-time validation and rendering."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from kiln.capabilities import Displayable


def _get_item(container: Any, key: str) -> Any:
    if isinstance(container, Mapping):
        return container.get(key)
    if isinstance(container, Sequence) and not isinstance(container, (str, bytes)):
        try:
            return container[int(key)]
        except (ValueError, IndexError):
            return None
    # Attribute access never reaches private or dunder names
    if key.startswith("_"):
        return None
    return getattr(container, key, None)


def resolve(scope: Mapping[str, Any], path: Sequence[str]) -> Any:
    """Follow a dot path through mappings, sequences and attributes.

    Anything missing along the way resolves to ``None``.

    Example:
        >>> resolve({"users": [{"name": "A"}]}, ["users", "0", "name"])
        'A'
    """
    value = scope.get(path[0])
    for segment in path[1:]:
        if value is None:
            return None
        value = _get_item(value, segment)
    return value


def is_empty(value: Any) -> bool:
    """Emptiness as the compile-time check sees it: missing, falsy, or ``"0"``.

    Displayable values are objects rather than scalars and are never empty.
    """
    if value is None:
        return True
    if isinstance(value, Displayable):
        return False
    if isinstance(value, str) and value == "0":
        return True
    try:
        return not value
    except (TypeError, ValueError):
        # e.g. arrays whose truth value is ambiguous
        return False
