"""Kiln code generator — splices instruction markers into template source.

The generator walks the lexer's tokens in order. For each token it builds a
replacement fragment (one or more ``<?kiln ... ?>`` markers, or nothing),
writes it over the token's span in the current line, and then corrects the
recorded columns of the tokens still waiting on that line.

    {% foreach u in users %}{{ u.name }}{% endforeach %}

becomes

    <?kiln if {...} ?><?kiln foreach {...} ?><?kiln display ["u","name"] ?><?kiln endforeach ?><?kiln endif ?>

Position Bookkeeping:
Tokens reach the generator grouped by kind, so on a line such as
``{% if x %}{{ x }}{% endif %}`` the VARIABLE (column 10) is processed
before the IF_START (column 0). After a splice only the waiting tokens to
the right of the replaced span move by the length difference; tokens to its
left keep their columns. Every waiting token therefore still points at its
markup, whatever order the kinds appear in.

Thread-Safety:
`CodeGenerator` holds no state. Each `generate()` call builds its own
`GeneratorState`.

"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from kiln._types import Token, TokenKind
from kiln.compiler import conditions, markers
from kiln.environment.exceptions import UndefinedError, build_source_snippet
from kiln.lexer import split_lines
from kiln.utils.lookup import is_empty, resolve

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ForeachBinding:
    """A loop's item name and the list it iterates."""

    item: str
    list: str


@dataclass
class GeneratorState:
    """State for a single `CodeGenerator.generate()` call.

    Attributes:
        lines: Source lines, rewritten in place as tokens are processed
        tokens: Tokens in lexer order
        columns: Current column of each token in its (rewritten) line
        allowed_types: Capabilities the artifact will be rendered with
        variables: Compile-time variables used for definedness checks
        debug: Raise on undefined variables instead of dropping them
        bindings: Foreach bindings, appended in order and never removed
    """

    lines: list[str]
    tokens: Sequence[Token]
    columns: list[int]
    allowed_types: frozenset[type]
    variables: Mapping[str, Any]
    debug: bool = False
    source: str = ""
    name: str | None = None
    bindings: list[ForeachBinding] = field(default_factory=list)


# Token kind → generator method name
_GENERATORS: dict[TokenKind, str] = {
    TokenKind.VARIABLE: "_generate_variable",
    TokenKind.IF_START: "_generate_if",
    TokenKind.IF_END: "_generate_endif",
    TokenKind.FOREACH_START: "_generate_foreach",
    TokenKind.FOREACH_END: "_generate_endforeach",
}


class CodeGenerator:
    """Turn template source plus lexer tokens into compiled artifact text.

    Example:
        >>> source = "Hi {{ name }}"
        >>> CodeGenerator().generate(source, tokenize(source), variables={"name": "Ann"})
        'Hi <?kiln display ["name"] ?>'

    """

    __slots__ = ()

    def generate(
        self,
        source: str,
        tokens: Sequence[Token],
        allowed_types: Iterable[type] = (),
        variables: Mapping[str, Any] | None = None,
        debug: bool = False,
        *,
        name: str | None = None,
    ) -> str:
        """Return the compiled text for ``source``.

        Args:
            source: Template source text
            tokens: Tokens from `Lexer.analyze(source)`, in lexer order
            allowed_types: Capabilities the artifact will be rendered with
            variables: Compile-time variables for definedness checks
            debug: Raise `UndefinedError` instead of dropping undefined variables
            name: Template name for error messages

        Lines are joined with ``"\\n"`` whatever line breaks the source used.
        """
        state = GeneratorState(
            lines=split_lines(source),
            tokens=tokens,
            columns=[token.column for token in tokens],
            allowed_types=frozenset(allowed_types),
            variables=variables or {},
            debug=debug,
            source=source,
            name=name,
        )
        for index in range(len(state.tokens)):
            self._generate_token(state, index)
        return "\n".join(state.lines)

    def _generate_token(self, state: GeneratorState, index: int) -> None:
        token = state.tokens[index]
        method: Callable[[GeneratorState, int], str] = getattr(self, _GENERATORS[token.kind])
        self._replace(state, index, method(state, index))

    # ─────────────────────────────────────────────────────────────────────────
    # Splicing
    # ─────────────────────────────────────────────────────────────────────────

    def _replace(self, state: GeneratorState, index: int, replacement: str) -> None:
        """Write ``replacement`` over token ``index`` and shift waiting tokens."""
        token = state.tokens[index]
        column = state.columns[index]
        content = state.lines[token.line]
        state.lines[token.line] = content[:column] + replacement + content[column + len(token.text):]
        self._shift_positions(state, index, len(replacement) - len(token.text))

    def _shift_positions(self, state: GeneratorState, index: int, offset: int) -> None:
        """Move waiting tokens on the same line that sit right of the splice."""
        token = state.tokens[index]
        column = state.columns[index]
        for later in range(index + 1, len(state.tokens)):
            if state.tokens[later].line != token.line:
                continue
            if state.columns[later] > column:
                state.columns[later] += offset
            else:
                logger.debug(
                    "Line %d of %s: %s precedes already processed %s",
                    token.lineno,
                    state.name or "<template>",
                    state.tokens[later].kind.name,
                    token.kind.name,
                )

    # ─────────────────────────────────────────────────────────────────────────
    # Per-kind fragments
    # ─────────────────────────────────────────────────────────────────────────

    def _generate_variable(self, state: GeneratorState, index: int) -> str:
        return self._validate(state, index, state.tokens[index].captures[0])

    def _generate_if(self, state: GeneratorState, index: int) -> str:
        condition = conditions.parse_condition(state.tokens[index].captures[0])
        return markers.marker(markers.IF, condition)

    def _generate_endif(self, state: GeneratorState, index: int) -> str:
        return markers.marker(markers.ENDIF)

    def _generate_foreach(self, state: GeneratorState, index: int) -> str:
        item, list_name = state.tokens[index].captures
        state.bindings.append(ForeachBinding(item=item, list=list_name))
        return markers.marker(markers.IF, conditions.existence_condition(list_name)) + markers.marker(
            markers.FOREACH,
            {"item": item, "iter": conditions.split_path(list_name)},
        )

    def _generate_endforeach(self, state: GeneratorState, index: int) -> str:
        return markers.marker(markers.ENDFOREACH) + markers.marker(markers.ENDIF)

    # ─────────────────────────────────────────────────────────────────────────
    # Variable validation
    # ─────────────────────────────────────────────────────────────────────────

    def _validate(self, state: GeneratorState, index: int, expression: str) -> str:
        """Display marker for ``expression``, or ``""`` if its root is undefined.

        A root naming a foreach item is checked through that loop's list.
        The first binding for a name wins, and substitution repeats on the
        root of the substituted list, so an inner loop's item resolves
        through its outer loop's list (``e in u.emails`` checks ``users``).
        """
        path = conditions.split_path(expression)
        lookup = path[0]
        bindings = self._bindings_in_view(state, index)
        seen: set[str] = set()
        while lookup not in seen:
            seen.add(lookup)
            root = conditions.split_path(lookup)[0]
            for binding in bindings:
                if root == binding.item:
                    lookup = binding.list
                    break

        if is_empty(resolve(state.variables, conditions.split_path(lookup))):
            if state.debug:
                token = state.tokens[index]
                raise UndefinedError(
                    expression,
                    state.name,
                    token.lineno,
                    available_names=frozenset(state.variables),
                    source_snippet=build_source_snippet(
                        state.source, token.lineno, column=token.column
                    ),
                )
            logger.debug("Dropping undefined variable %r on line %d", expression, state.tokens[index].lineno)
            return ""

        return markers.marker(markers.DISPLAY, path)

    def _bindings_in_view(self, state: GeneratorState, index: int) -> list[ForeachBinding]:
        """Recorded bindings, plus loops opened earlier on the same line.

        A FOREACH_START left of a variable on its line reaches the generator
        after that variable, so its binding is not recorded yet.
        """
        token = state.tokens[index]
        pending = [
            ForeachBinding(*state.tokens[later].captures)
            for later in range(index + 1, len(state.tokens))
            if state.tokens[later].kind is TokenKind.FOREACH_START
            and state.tokens[later].line == token.line
            and state.columns[later] < state.columns[index]
        ]
        return state.bindings + pending if pending else state.bindings
