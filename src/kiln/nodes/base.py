"""Base node class for the Kiln instruction tree."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Node:
    """Base class for all nodes.

    Positions refer to the compiled artifact, whose lines map one to one
    onto template lines. Nodes are immutable.

    """

    lineno: int
    col_offset: int
