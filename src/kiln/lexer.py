"""Kiln lexer — finds template markup and records where it sits.

The lexer does not produce a full token stream. It only locates the five
terminal patterns and reports each match with its captures and position;
everything between matches is left in the source for the code generator
to keep verbatim.

Scan Order:
Each line is scanned once per terminal, in priority order:

    VARIABLE, IF_START, IF_END, FOREACH_START, FOREACH_END

so the resulting tokens are grouped by kind within a line, not ordered by
column. For ``{% if y %}{{ x }}`` the VARIABLE token comes first even
though the ``if`` appears earlier in the text.

Thread-Safety:
Compiled patterns are class-level and immutable. All scan state lives in a
`LexerState` created per `analyze()` call.

"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from kiln._types import Token, TokenKind

# Line breaks recognized by both the lexer and the code generator
_LINE_BREAK_RE = re.compile(r"\n|\r\n|\r")


def split_lines(source: str) -> list[str]:
    """Split source into lines on ``\\n``, ``\\r\\n`` or ``\\r``."""
    return _LINE_BREAK_RE.split(source)


@dataclass
class LexerState:
    """Scan state for a single `Lexer.analyze()` call."""

    lines: list[str]
    line: int = 0
    cursor: int = 0
    tokens: list[Token] = field(default_factory=list)


class Lexer:
    """Locate template markup in source text.

    Example:
        >>> Lexer().analyze("Hi {{ user.name }}!")
        [Token(VARIABLE, ('user.name',), 0:3)]

    """

    __slots__ = ()

    terminals: tuple[tuple[re.Pattern[str], TokenKind], ...] = (
        (re.compile(r"\{\{\s*([^\s}][^}]*?)\s*\}\}"), TokenKind.VARIABLE),
        (re.compile(r"\{%\s*if\s+(\S.*?)\s*%\}"), TokenKind.IF_START),
        (re.compile(r"\{%\s*endif\s*%\}"), TokenKind.IF_END),
        (re.compile(r"\{%\s*foreach\s+(\S+?)\s+in\s+(\S.*?)\s*%\}"), TokenKind.FOREACH_START),
        (re.compile(r"\{%\s*endforeach\s*%\}"), TokenKind.FOREACH_END),
    )

    def analyze(self, source: str) -> list[Token]:
        """Return every terminal match in ``source``, in scan order.

        A template without markup yields an empty list.
        """
        state = LexerState(lines=split_lines(source))
        for line_number in range(len(state.lines)):
            state.line = line_number
            for pattern, kind in self.terminals:
                self._scan_line(state, pattern, kind)
        return state.tokens

    def _scan_line(self, state: LexerState, pattern: re.Pattern[str], kind: TokenKind) -> None:
        """Find all non-overlapping matches of one terminal in the current line."""
        content = state.lines[state.line]
        state.cursor = 0
        while state.cursor < len(content):
            match = pattern.match(content, state.cursor)
            if match is None:
                state.cursor += 1
                continue
            state.tokens.append(
                Token(
                    kind=kind,
                    captures=match.groups(),
                    line=state.line,
                    column=state.cursor,
                    text=match.group(0),
                )
            )
            state.cursor = match.end()


def tokenize(source: str) -> list[Token]:
    """Convenience wrapper around ``Lexer().analyze(source)``."""
    return Lexer().analyze(source)
