"""Exceptions for the Kiln template system.

Exception Hierarchy:
TemplateError (base)
├── TemplateNotFoundError     # Template (or its artifact) does not exist
├── TemplateSyntaxError       # Compiled artifact is malformed
├── StorageError              # Template/artifact I/O failed
│   ├── ReadDeniedError       # Template exists but cannot be read
│   ├── WriteDeniedError      # Artifact directory is not writable
│   └── WriteFailedError      # Writing the artifact raised
├── EngineMisconfiguredError  # Lexer or code generator unavailable
├── UndefinedError            # Undefined variable (debug mode only)
└── TemplateRuntimeError      # Render-time error with context
    └── InvalidTypeError      # Value is not an allowed capability (debug mode only)

Propagation:
Storage and engine errors always reach the caller. `UndefinedError` and
`InvalidTypeError` are raised only when the render runs in debug mode;
otherwise the offending markup renders as nothing.

Example:
    ```
    K-RUN-001: Undefined variable 'titl' in article.html:5
       |
    >  5 | <h1>{{ titl }}</h1>
       |
      Hint: Pass 'titl' in variables, or render without debug to drop it silently
    ```

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from kiln.environment import terminal

# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------


class ErrorCode(Enum):
    """Searchable error codes for Kiln template errors.

    Format: K-{CATEGORY}-{NUMBER}
    Categories: TPL (template loading), IO (artifact storage),
    ENG (engine setup), RUN (runtime)
    """

    # Template loading errors (K-TPL-xxx)
    TEMPLATE_NOT_FOUND = "K-TPL-001"
    SYNTAX_ERROR = "K-TPL-002"

    # Storage errors (K-IO-xxx)
    READ_DENIED = "K-IO-001"
    WRITE_DENIED = "K-IO-002"
    WRITE_FAILED = "K-IO-003"

    # Engine errors (K-ENG-xxx)
    ENGINE_MISCONFIGURED = "K-ENG-001"

    # Runtime errors (K-RUN-xxx)
    UNDEFINED_VARIABLE = "K-RUN-001"
    INVALID_TYPE = "K-RUN-002"
    RUNTIME_ERROR = "K-RUN-003"

    @property
    def category(self) -> str:
        """Error category (e.g., 'runtime', 'storage', 'template')."""
        prefix = self.value.split("-")[1]
        return {
            "TPL": "template",
            "IO": "storage",
            "ENG": "engine",
            "RUN": "runtime",
        }.get(prefix, "unknown")


# ---------------------------------------------------------------------------
# Source snippets
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """Template source context around an error line.

    Attributes:
        lines: Tuple of (line_number, line_content) pairs around the error.
        error_line: The 1-based line number where the error occurred.
        column: Optional column offset for caret pointer.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int
    column: int | None = None

    def format(self) -> str:
        """Format snippet in Rust-inspired diagnostic style with colors."""
        parts: list[str] = [terminal.format_gutter()]
        for lineno, content in self.lines:
            is_error = lineno == self.error_line
            parts.append(terminal.format_source_line(lineno, content, is_error=is_error))
            if is_error and self.column is not None:
                parts.append(terminal.format_caret_line(self.column))
        parts.append(terminal.format_gutter())
        return "\n".join(parts)


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 2,
    column: int | None = None,
) -> SourceSnippet:
    """Build a SourceSnippet from template source.

    Args:
        source: Full template source text.
        error_line: 1-based line number of the error.
        context_lines: Number of lines to show before/after the error line.
        column: Optional column offset for caret pointer.
    """
    all_lines = source.splitlines()
    start = max(0, error_line - 1 - context_lines)
    end = min(len(all_lines), error_line + context_lines)
    lines = tuple((i + 1, all_lines[i]) for i in range(start, end))
    return SourceSnippet(lines=lines, error_line=error_line, column=column)


def _location(template: str | None, lineno: int | None) -> str:
    loc = template or "<template>"
    if lineno:
        loc += f":{lineno}"
    return loc


class TemplateError(Exception):
    """Base exception for all Kiln template errors.

        >>> try:
        ...     env.render("page.html", variables=data)
        ... except TemplateError as e:
        ...     log.error(e.format_compact())

    Attributes:
        code: Optional ErrorCode for searchable error identification.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format error as a structured, human-readable summary.

        Returns:
            The message prefixed with the error code, when there is one.
        """
        header = str(self)
        if self.code and self.code.value not in header:
            header = f"{self.code.value}: {header}"
        return header


class TemplateNotFoundError(TemplateError):
    """Template does not exist, or no template was specified.

    Example:
        >>> env.render("missing.html")
        TemplateNotFoundError: This template does not exist: missing.html

    """

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND


class TemplateSyntaxError(TemplateError):
    """A compiled artifact could not be read back into nodes.

    Raised by the render host for unbalanced blocks (an ``endif`` with no
    open ``if``, a ``foreach`` never closed) and for unreadable markers.
    """

    code: ErrorCode | None = ErrorCode.SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        name: str | None = None,
        source: str | None = None,
    ):
        self.message = message
        self.lineno = lineno
        self.name = name
        self.source = source
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        header = f"Syntax Error: {self.message}\n  --> {_location(self.name, self.lineno)}"

        if self.source and self.lineno:
            lines = self.source.splitlines()
            if 0 < self.lineno <= len(lines):
                return header + f"\n   |\n{self.lineno:>3} | {lines[self.lineno - 1]}"

        return header


class StorageError(TemplateError):
    """Template or artifact storage failed.

    Always raised to the caller, whatever the debug setting.

    Attributes:
        path: The file or directory the operation targeted.
    """

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(f"{message}: {path}" if path else message)


class ReadDeniedError(StorageError):
    """The template exists but the process may not read it."""

    code: ErrorCode | None = ErrorCode.READ_DENIED


class WriteDeniedError(StorageError):
    """The artifact's directory is not writable."""

    code: ErrorCode | None = ErrorCode.WRITE_DENIED


class WriteFailedError(StorageError):
    """Writing the compiled artifact raised an OS error."""

    code: ErrorCode | None = ErrorCode.WRITE_FAILED


class EngineMisconfiguredError(TemplateError):
    """The Environment's lexer or code generator cannot be used."""

    code: ErrorCode | None = ErrorCode.ENGINE_MISCONFIGURED


class UndefinedError(TemplateError):
    """Raised in debug mode when a template references an undefined variable.

    Raised at compile time by the code generator (the root name is not among
    the compile-time variables) and at render time by the display helper
    (the resolved value is ``None``).

    If ``available_names`` is provided, a "Did you mean?" suggestion is
    included when a close match is found.
    """

    code: ErrorCode | None = ErrorCode.UNDEFINED_VARIABLE

    def __init__(
        self,
        name: str,
        template: str | None = None,
        lineno: int | None = None,
        available_names: frozenset[str] | None = None,
        source_snippet: SourceSnippet | None = None,
    ):
        self.name = name
        self.template = template or "<template>"
        self.lineno = lineno
        self._available_names = available_names
        self.source_snippet = source_snippet
        super().__init__(self._format_message())

    def _suggestion(self) -> str:
        if not self._available_names:
            return ""
        from difflib import get_close_matches

        root = self.name.split(".")[0]
        matches = get_close_matches(root, self._available_names, n=1, cutoff=0.6)
        if matches and matches[0] != root:
            return f". Did you mean '{terminal.suggestion(matches[0])}'?"
        return ""

    def _hint_text(self) -> str:
        return f"Pass '{self.name}' in variables, or render without debug to drop it silently"

    def _format_message(self) -> str:
        location = terminal.location(_location(self.template, self.lineno))
        msg = f"Undefined variable '{self.name}' in {location}"
        msg += self._suggestion()

        if self.source_snippet:
            msg += "\n" + self.source_snippet.format()

        msg += f"\n  {terminal.hint('Hint:')} {self._hint_text()}"
        return msg

    def format_compact(self) -> str:
        """Format undefined variable error as structured terminal diagnostic."""
        location = terminal.location(_location(self.template, self.lineno))
        parts = [
            terminal.format_error_header(
                self.code.value if self.code else None,
                f"Undefined variable '{self.name}' in {location}{self._suggestion()}",
            )
        ]
        if self.source_snippet:
            parts.append(self.source_snippet.format())
        parts.append(f"  {terminal.hint('Hint:')} {self._hint_text()}")
        return "\n".join(parts)


class TemplateRuntimeError(TemplateError):
    """Render-time error with debugging context.

    Output Format:
            ```
            Runtime Error: This is not an allowed data type: 'secret'
              Location: page.html:3
              Expression: {{ user.password }}
              Values:
                user.password = 'secret' (str)
              Suggestion: Wrap the value in EscapedString or allow its capability
            ```

    Attributes:
        message: Error description
        expression: Template expression that failed
        values: Dict of variable names → values for context
        template_name: Name of the template
        lineno: Line number in template source
        suggestion: Actionable fix suggestion
    """

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        values: dict[str, Any] | None = None,
        template_name: str | None = None,
        lineno: int | None = None,
        suggestion: str | None = None,
    ):
        self.message = message
        self.expression = expression
        self.values = values or {}
        self.template_name = template_name
        self.lineno = lineno
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [f"Runtime Error: {self.message}"]

        if self.template_name or self.lineno:
            parts.append(f"  Location: {terminal.location(_location(self.template_name, self.lineno))}")

        if self.expression:
            parts.append(f"  Expression: {self.expression}")

        if self.values:
            parts.append("  Values:")
            for name, value in self.values.items():
                value_repr = repr(value)
                if len(value_repr) > 80:
                    value_repr = value_repr[:77] + "..."
                parts.append(f"    {name} = {value_repr} ({type(value).__name__})")

        if self.suggestion:
            parts.append(f"\n  {terminal.hint('Suggestion:')} {self.suggestion}")

        return "\n".join(parts)


class InvalidTypeError(TemplateRuntimeError):
    """A value reached output (or a loop) without an allowed capability.

    Raised only in debug mode; without debug the value renders as nothing.
    """

    code: ErrorCode | None = ErrorCode.INVALID_TYPE

    def __init__(self, name: str, value: Any, **kwargs: Any):
        self.name = name
        self.value = value
        kwargs.setdefault(
            "suggestion",
            "Wrap the value in EscapedString, or allow a capability it satisfies",
        )
        super().__init__(
            f"This is not an allowed data type: {name}",
            values={name: value},
            **kwargs,
        )
