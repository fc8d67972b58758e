"""ANSI styling for Kiln diagnostics.

Kiln errors print a header (``K-RUN-001: Undefined variable ...``), an
optional source snippet with a gutter, a ``>`` marker on the failing line
and a caret under the column, then hint lines. This module owns every
escape code those pieces use, so `kiln.environment.exceptions` only ever
asks for a role ("location", "hint") and never for a color.

Colors are applied only when stdout is a TTY. ``NO_COLOR`` disables them
(https://no-color.org/) and ``FORCE_COLOR`` overrides everything. The
decision is made once at import; tests flip ``_USE_COLORS`` directly.
"""

from __future__ import annotations

import os
import re
import sys
from typing import Literal

_CODES = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "cyan": "\033[36m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
}

Style = Literal["reset", "bold", "dim", "green", "yellow", "cyan", "bright_red", "bright_green"]

_ANSI_RE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")

# Snippet layout: a 4-wide line number column (marker + 3 digits), then " | "
_NUMBER_WIDTH = 3
_GUTTER = "   |"
_CARET_GUTTER = "     |"


def _should_use_colors() -> bool:
    """Decide whether diagnostics carry ANSI codes.

    Returns:
        True if ``FORCE_COLOR`` is set, False if ``NO_COLOR`` is set,
        otherwise whether stdout is a TTY.
    """
    if os.environ.get("FORCE_COLOR"):
        return True
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stdout.isatty()


_USE_COLORS = _should_use_colors()


def supports_color() -> bool:
    """True if error messages will carry ANSI codes."""
    return _USE_COLORS


def colorize(text: str, *styles: Style) -> str:
    """Wrap ``text`` in the given styles.

    Args:
        text: Text to style
        *styles: Style names; unknown names are ignored

    Returns:
        Styled text, or ``text`` unchanged without color support

    Example:
        >>> colorize("K-RUN-001:", "bright_red", "bold")
        '\\033[91m\\033[1mK-RUN-001:\\033[0m'  # with color support
    """
    if not _USE_COLORS or not styles:
        return text
    prefix = "".join(_CODES.get(style, "") for style in styles)
    if not prefix:
        return text
    return f"{prefix}{text}{_CODES['reset']}"


def strip_colors(text: str) -> str:
    """Remove ANSI codes, e.g. before comparing messages in tests."""
    return _ANSI_RE.sub("", text)


# Roles used by the exception formatters


def error_code(text: str) -> str:
    """An error code such as ``K-IO-002:``."""
    return colorize(text, "bright_red", "bold")


def location(text: str) -> str:
    """A ``template:line`` location."""
    return colorize(text, "cyan")


def line_number(text: str) -> str:
    return colorize(text, "yellow")


def error_line(text: str) -> str:
    """The failing source line, or the caret under it."""
    return colorize(text, "bright_red")


def hint(text: str) -> str:
    return colorize(text, "green")


def suggestion(text: str) -> str:
    """A "did you mean" candidate name."""
    return colorize(text, "bright_green", "bold")


def dim_text(text: str) -> str:
    return colorize(text, "dim")


def format_error_header(code: str | None, message: str) -> str:
    """First line of a compact diagnostic.

    Args:
        code: Error code value (``"K-RUN-001"``), or None
        message: The error message

    Example:
        >>> format_error_header("K-RUN-001", "Undefined variable 'titl'")
        "K-RUN-001: Undefined variable 'titl'"  # without color support
    """
    if code:
        return f"{error_code(code + ':')} {message}"
    return message


def format_gutter() -> str:
    """The empty gutter line that opens and closes a snippet."""
    return dim_text(_GUTTER)


def format_source_line(lineno: int, content: str, is_error: bool = False) -> str:
    """One snippet line; the failing line gets a ``>`` marker.

    Example:
        >>> format_source_line(42, "{{ user }}", is_error=True)
        '> 42 | {{ user }}'  # without color support
    """
    marker = ">" if is_error else " "
    number = line_number(f"{marker}{lineno:>{_NUMBER_WIDTH}}")
    body = error_line(content) if is_error else dim_text(content)
    return f"{number} | {body}"


def format_caret_line(column: int) -> str:
    """A caret under 0-based ``column`` of the line printed just above.

    Example:
        >>> format_caret_line(2)
        '     |   ^'  # without color support
    """
    return f"{dim_text(_CARET_GUTTER)} {error_line(' ' * column + '^')}"
