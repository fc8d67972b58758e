"""Kiln — a small, type-safe template compiler.

Templates use five pieces of markup:

    {{ user.name }}
    {% if x is 5 %} {% if x is not 5 %} {% if not x %} {% if x %} ... {% endif %}
    {% foreach u in users %} ... {% endforeach %}

Quickstart:
    >>> from kiln import Environment, EscapedString
    >>> env = Environment(types={EscapedString})
    >>> env.render("templates/hello.html", variables={"name": EscapedString("<Ann>")})
    'Hello, &lt;Ann&gt;!'

Architecture:
Template Source → Lexer → CodeGenerator → artifact text → ArtifactReader → nodes → Template

Pipeline stages:
1. **Lexer**: locates markup; tokens are grouped by kind within each line
2. **CodeGenerator**: splices ``<?kiln ... ?>`` markers over the markup
3. **ArtifactCache**: persists the result as a hidden sibling file (``.hello.html``)
4. **Template**: reads the markers back into nodes and interprets them

Only values that are instances of an allowed capability are displayed.
Without debug, undefined or disallowed values render as nothing; with
``debug=True`` they raise `UndefinedError` / `InvalidTypeError`.

"""

from kiln._types import Token, TokenKind
from kiln.capabilities import Displayable, Scalar
from kiln.environment import (
    ArtifactCache,
    EngineMisconfiguredError,
    Environment,
    ErrorCode,
    InvalidTypeError,
    ReadDeniedError,
    RenderOptions,
    StorageError,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    UndefinedError,
    WriteDeniedError,
    WriteFailedError,
    render,
)
from kiln.compiler import CodeGenerator
from kiln.lexer import Lexer, tokenize
from kiln.template import Template
from kiln.utils.html import EscapedString, html_escape

__version__ = "0.1.0"

__all__ = [
    "ArtifactCache",
    "CodeGenerator",
    "Displayable",
    "EngineMisconfiguredError",
    "Environment",
    "ErrorCode",
    "EscapedString",
    "InvalidTypeError",
    "Lexer",
    "ReadDeniedError",
    "RenderOptions",
    "Scalar",
    "StorageError",
    "Template",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "Token",
    "TokenKind",
    "UndefinedError",
    "WriteDeniedError",
    "WriteFailedError",
    "__version__",
    "html_escape",
    "render",
    "tokenize",
]
