"""Token types for the Kiln lexer.

Tokens are produced by `kiln.lexer.Lexer` and consumed by the code
generator. They are immutable; the generator tracks shifted columns in
its own state rather than mutating tokens.

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenKind(Enum):
    """Terminal kinds, in lexer priority order."""

    VARIABLE = "variable"
    IF_START = "if_start"
    IF_END = "if_end"
    FOREACH_START = "foreach_start"
    FOREACH_END = "foreach_end"


@dataclass(frozen=True, slots=True)
class Token:
    """A recognized markup unit.

    Attributes:
        kind: Terminal kind
        captures: Regex groups captured by the terminal pattern
        line: 0-based line index in the source
        column: 0-based character offset of the match in the original line
        text: The full matched markup (its length is the span replaced)
    """

    kind: TokenKind
    captures: tuple[str, ...]
    line: int
    column: int
    text: str

    @property
    def lineno(self) -> int:
        """1-based line number for diagnostics."""
        return self.line + 1

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.captures!r}, {self.line}:{self.column})"
