"""Kiln environment — configuration, artifact cache and errors.

Public API:
    Environment: compile-and-render pipeline and its configuration
    RenderOptions: options for one render, also buildable from a mapping
    render: render from an options mapping
    ArtifactCache: locate, read and persist compiled artifacts
    Exceptions: see `kiln.environment.exceptions`

"""

from kiln.environment.cache import ArtifactCache, artifact_path
from kiln.environment.exceptions import (
    EngineMisconfiguredError,
    ErrorCode,
    InvalidTypeError,
    ReadDeniedError,
    SourceSnippet,
    StorageError,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    UndefinedError,
    WriteDeniedError,
    WriteFailedError,
    build_source_snippet,
)
from kiln.environment.core import Environment, RenderOptions, render

__all__ = [
    "ArtifactCache",
    "EngineMisconfiguredError",
    "Environment",
    "ErrorCode",
    "InvalidTypeError",
    "ReadDeniedError",
    "RenderOptions",
    "SourceSnippet",
    "StorageError",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "UndefinedError",
    "WriteDeniedError",
    "WriteFailedError",
    "artifact_path",
    "build_source_snippet",
    "render",
]
