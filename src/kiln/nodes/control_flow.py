"""Control flow nodes for the Kiln instruction tree."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from kiln.nodes.base import Node


@dataclass(frozen=True, slots=True)
class Condition:
    """An ``if`` guard.

    Attributes:
        test: One of the tests in `kiln.compiler.conditions.TESTS`
        subject: Dot path of the value under test
        operand_path: Dot path of the right-hand side, when it is not a literal
        operand_literal: Literal right-hand side (``is`` / ``is not`` only)
    """

    test: str
    subject: Sequence[str]
    operand_path: Sequence[str] | None = None
    operand_literal: Any = None


@dataclass(frozen=True, slots=True)
class If(Node):
    """Conditional block: ``<?kiln if {...} ?>...<?kiln endif ?>``"""

    condition: Condition
    body: Sequence[Node]


@dataclass(frozen=True, slots=True)
class ForEach(Node):
    """Loop: ``<?kiln foreach {"item":...,"iter":[...]} ?>...<?kiln endforeach ?>``

    The item is bound in the render's single flat scope and keeps its last
    value after the loop ends.
    """

    item: str
    iter: Sequence[str]
    body: Sequence[Node]
