"""Kiln Template package — the render host.

Modules:
    core: `Template`, the instruction-tree interpreter
    reader: artifact text → instruction tree
    helpers: ``is_valid`` / ``display`` and the other runtime helpers

"""

from kiln.template.core import Template
from kiln.template.helpers import display, is_valid
from kiln.template.reader import ArtifactReader, read_artifact
from kiln.utils.html import EscapedString

__all__ = [
    "ArtifactReader",
    "EscapedString",
    "Template",
    "display",
    "is_valid",
    "read_artifact",
]
