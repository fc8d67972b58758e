"""Property-based tests for the lexer and code generator.

Uses hypothesis to verify invariants that must hold for *all* inputs:

- Text without markup compiles to itself (modulo line-break normalization)
- The lexer and generator never crash on arbitrary input
- Compilation is deterministic
- Mixed markup on one line, in any order, compiles and renders correctly
"""

from __future__ import annotations

from hypothesis import assume, given, settings
from hypothesis import strategies as st

from kiln import CodeGenerator, Environment, EscapedString, tokenize
from kiln.lexer import split_lines

from .strategies import SAFE_VARIABLES, mixed_line, plain_text

_VARIABLES = {name: EscapedString(value) for name, value in SAFE_VARIABLES.items()}

arbitrary_source = st.text(alphabet=st.characters(exclude_categories=("Cs",)), max_size=300)


class TestPipelineProperties:
    """Property-based compile invariants."""

    @given(source=plain_text)
    @settings(max_examples=200)
    def test_text_without_markup_is_unchanged(self, source: str) -> None:
        tokens = tokenize(source)
        assert tokens == []
        compiled = CodeGenerator().generate(source, tokens)
        assert compiled == "\n".join(split_lines(source))

    @given(source=arbitrary_source)
    @settings(max_examples=300)
    def test_no_unhandled_crash(self, source: str) -> None:
        """Without debug, compiling never raises."""
        CodeGenerator().generate(source, tokenize(source), variables=_VARIABLES)

    @given(source=arbitrary_source)
    @settings(max_examples=100)
    def test_compile_is_deterministic(self, source: str) -> None:
        first = CodeGenerator().generate(source, tokenize(source), variables=_VARIABLES)
        second = CodeGenerator().generate(source, tokenize(source), variables=_VARIABLES)
        assert first == second

    @given(source=arbitrary_source)
    @settings(max_examples=100)
    def test_line_count_is_preserved(self, source: str) -> None:
        compiled = CodeGenerator().generate(source, tokenize(source), variables=_VARIABLES)
        assert len(compiled.split("\n")) == len(split_lines(source))


class TestMixedLineProperties:
    """Kinds processed out of textual order still land in the right place."""

    @given(case=mixed_line)
    @settings(max_examples=300)
    def test_mixed_line_renders_in_textual_order(self, case: tuple[str, str]) -> None:
        source, expected = case
        assume("<?kiln" not in source)
        env = Environment(types={EscapedString})
        compiled = env.compile(source, variables=_VARIABLES)
        assert "{{" not in compiled
        assert "{%" not in compiled
        template = env.from_string(source, variables=_VARIABLES)
        assert template.render(_VARIABLES) == expected
