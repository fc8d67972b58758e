"""HTML escaping for Kiln output.

`html_escape` is the single escaping routine used by the display helper;
`EscapedString` is the stock `Displayable` value type.
"""

from __future__ import annotations

from typing import Any

from kiln.capabilities import Displayable

_ESCAPE_TABLE = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#x27;",
    }
)


def html_escape(value: Any) -> str:
    """Escape ``&<>"'`` in ``str(value)`` in a single pass."""
    return str(value).translate(_ESCAPE_TABLE)


class EscapedString(Displayable):
    """A string that renders HTML-escaped.

    The raw text stays available through `raw`. Equality and truthiness use
    the raw text, so ``{% if name is "Ann" %}`` compares what the caller
    passed in, not its escaped form.

    Example:
        >>> s = EscapedString("<b>Joe</b>")
        >>> str(s)
        '&lt;b&gt;Joe&lt;/b&gt;'
        >>> s.raw
        '<b>Joe</b>'

    """

    __slots__ = ("_escaped", "_raw")

    def __init__(self, value: Any):
        self._raw = str(value)
        self._escaped = html_escape(self._raw)

    @property
    def raw(self) -> str:
        return self._raw

    def __html__(self) -> str:
        return self._escaped

    def __str__(self) -> str:
        return self._escaped

    def __repr__(self) -> str:
        return f"EscapedString({self._raw!r})"

    def __bool__(self) -> bool:
        return bool(self._raw)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, EscapedString):
            return self._raw == other._raw
        if isinstance(other, str):
            return self._raw == other
        if isinstance(other, (int, float)) and not isinstance(other, bool):
            return self._raw == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._raw)
