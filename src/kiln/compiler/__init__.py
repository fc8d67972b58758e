"""Kiln compiler package — markup to instruction markers.

Pipeline position:
    Lexer tokens + source → CodeGenerator → artifact text

Modules:
    core: `CodeGenerator`, `GeneratorState`, `ForeachBinding`
    conditions: ``{% if %}`` expression parsing
    markers: ``<?kiln OP PAYLOAD ?>`` encoding

"""

from kiln.compiler.core import CodeGenerator, ForeachBinding, GeneratorState

__all__ = ["CodeGenerator", "ForeachBinding", "GeneratorState"]
