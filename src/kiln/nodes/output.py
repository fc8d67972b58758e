"""Output nodes for the Kiln instruction tree."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from kiln.nodes.base import Node


@dataclass(frozen=True, slots=True)
class Data(Node):
    """Literal template text between markers."""

    value: str


@dataclass(frozen=True, slots=True)
class Output(Node):
    """Display a value: ``<?kiln display ["user","name"] ?>``"""

    path: Sequence[str]

    @property
    def name(self) -> str:
        return ".".join(self.path)
