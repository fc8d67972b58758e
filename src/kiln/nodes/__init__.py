"""Kiln instruction tree.

Compiled artifacts are read back into these immutable nodes by
`kiln.template.reader` and interpreted by `kiln.template.Template`.

Node Types:
    Data: literal template text
    Output: display a dot-path value
    If: guarded block
    ForEach: loop over a dot-path value

"""

from kiln.nodes.base import Node
from kiln.nodes.control_flow import Condition, ForEach, If
from kiln.nodes.output import Data, Output

__all__ = [
    "Condition",
    "Data",
    "ForEach",
    "If",
    "Node",
    "Output",
]
