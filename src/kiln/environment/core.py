"""Kiln Environment — configuration and the compile-and-render pipeline.

    >>> env = Environment(types={EscapedString, Scalar})
    >>> env.render("templates/page.html", variables={"name": "Ann"})

Pipeline (per render):
    1. Resolve the artifact path (`ArtifactCache.resolve`)
    2. Artifact exists and no recompile requested → load it, skip 3-5
    3. Read the template source
    4. Lexer → CodeGenerator
    5. Persist the compiled text
    6. Read the artifact into a `Template` and render it

Configuration lives on the Environment the caller constructs; nothing is
kept at module level, so independent Environments never share state.

"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from kiln.capabilities import DEFAULT_CAPABILITIES
from kiln.compiler import CodeGenerator
from kiln.environment.cache import ArtifactCache
from kiln.environment.exceptions import EngineMisconfiguredError, TemplateNotFoundError
from kiln.lexer import Lexer
from kiln.template import Template

logger = logging.getLogger(__name__)

# camelCase spellings accepted by RenderOptions.from_mapping
_OPTION_ALIASES = {
    "alwaysRecompile": "always_recompile",
    "showCompiled": "show_compiled",
}


@dataclass(frozen=True, slots=True)
class RenderOptions:
    """Options for one render call.

    Attributes:
        template: Path of the template to render (required)
        types: Allowed capabilities; ``None`` uses the Environment's set
        variables: Variable context
        always_recompile: Ignore an existing artifact and compile again
        debug: Raise on undefined / disallowed values; ``None`` uses the Environment's setting
        show_compiled: Yield the compiled text before the output when compiling
    """

    template: str | Path | None
    types: frozenset[type] | None = None
    variables: Mapping[str, Any] = field(default_factory=dict)
    always_recompile: bool = False
    debug: bool | None = None
    show_compiled: bool = False

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> RenderOptions:
        """Build options from a mapping such as ``{"template": ..., "debug": True}``.

        Raises:
            TypeError: Unknown option name
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in options.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in known:
                raise TypeError(f"Unknown render option: {key!r}")
            kwargs[name] = value
        kwargs.setdefault("template", None)
        if kwargs.get("types") is not None:
            kwargs["types"] = frozenset(kwargs["types"])
        if kwargs.get("variables") is None:
            kwargs["variables"] = {}
        return cls(**kwargs)


class Environment:
    """Central configuration for compiling and rendering templates.

    Attributes:
        debug: Default debug setting for renders
        always_recompile: Default for ignoring existing artifacts
        cache: Artifact cache
        lexer_class: Factory for the lexer used per compile
        generator_class: Factory for the code generator used per compile

    Example:
        >>> env = Environment(types={Scalar})
        >>> env.from_string("Hi {{ name }}", variables={"name": 1}).render(name="Ann")
        'Hi Ann'

    """

    def __init__(
        self,
        *,
        types: Iterable[type] | None = None,
        debug: bool = False,
        always_recompile: bool = False,
        cache: ArtifactCache | None = None,
        lexer_class: Callable[[], Lexer] | None = Lexer,
        generator_class: Callable[[], CodeGenerator] | None = CodeGenerator,
    ):
        self._types = frozenset(types) if types is not None else DEFAULT_CAPABILITIES
        self.debug = debug
        self.always_recompile = always_recompile
        self.cache = cache if cache is not None else ArtifactCache()
        self.lexer_class = lexer_class
        self.generator_class = generator_class

    @property
    def types(self) -> frozenset[type]:
        """Capabilities used when a render does not pass its own."""
        return self._types

    def allow(self, types: Iterable[type]) -> None:
        """Register the capabilities later renders default to."""
        self._types = frozenset(types)

    def _engine(self) -> tuple[Lexer, CodeGenerator]:
        """Fresh lexer and generator for one compile."""
        if not callable(self.lexer_class):
            raise EngineMisconfiguredError("The lexer is not available.")
        if not callable(self.generator_class):
            raise EngineMisconfiguredError("The code generator is not available.")
        lexer = self.lexer_class()
        generator = self.generator_class()
        if not callable(getattr(lexer, "analyze", None)):
            raise EngineMisconfiguredError(f"{type(lexer).__name__} has no analyze() method.")
        if not callable(getattr(generator, "generate", None)):
            raise EngineMisconfiguredError(f"{type(generator).__name__} has no generate() method.")
        return lexer, generator

    def compile(
        self,
        source: str,
        *,
        types: Iterable[type] | None = None,
        variables: Mapping[str, Any] | None = None,
        debug: bool | None = None,
        name: str | None = None,
    ) -> str:
        """Compile template source to artifact text (not persisted)."""
        lexer, generator = self._engine()
        tokens = lexer.analyze(source)
        logger.debug("Lexed %s: %d tokens", name or "<string>", len(tokens))
        return generator.generate(
            source,
            tokens,
            self._types if types is None else frozenset(types),
            variables or {},
            self.debug if debug is None else debug,
            name=name,
        )

    def from_string(
        self,
        source: str,
        *,
        types: Iterable[type] | None = None,
        variables: Mapping[str, Any] | None = None,
        debug: bool | None = None,
        name: str | None = None,
    ) -> Template:
        """Compile source in memory and return a renderable Template.

        ``variables`` are the compile-time variables: markup whose variable
        is missing from them is dropped (or raises, in debug mode).
        """
        allowed = self._types if types is None else frozenset(types)
        debug = self.debug if debug is None else debug
        compiled = self.compile(source, types=allowed, variables=variables, debug=debug, name=name)
        return Template.from_artifact(compiled, allowed_types=allowed, debug=debug, name=name)

    def render(
        self,
        template: str | Path | None,
        *,
        types: Iterable[type] | None = None,
        variables: Mapping[str, Any] | None = None,
        always_recompile: bool = False,
        debug: bool | None = None,
        show_compiled: bool = False,
    ) -> str:
        """Compile (or reuse) the template at ``template`` and render it to a string."""
        return "".join(
            self.render_stream(
                template,
                types=types,
                variables=variables,
                always_recompile=always_recompile,
                debug=debug,
                show_compiled=show_compiled,
            )
        )

    def render_stream(
        self,
        template: str | Path | None,
        *,
        types: Iterable[type] | None = None,
        variables: Mapping[str, Any] | None = None,
        always_recompile: bool = False,
        debug: bool | None = None,
        show_compiled: bool = False,
    ) -> Iterator[str]:
        """Like `render`, but yield output chunks.

        Compilation, persistence and storage errors happen before this
        returns; variable errors surface while iterating.
        """
        options = RenderOptions(
            template=template,
            types=frozenset(types) if types is not None else None,
            variables=variables or {},
            always_recompile=always_recompile,
            debug=debug,
            show_compiled=show_compiled,
        )
        return self.render_options(options)

    def render_options(self, options: RenderOptions) -> Iterator[str]:
        """Run the pipeline for ``options``; returns the output chunk iterator."""
        if not options.template:
            raise TemplateNotFoundError("You did not specify a template to render.")

        path = Path(options.template)
        allowed = self._types if options.types is None else options.types
        debug = self.debug if options.debug is None else options.debug
        artifact = self.cache.resolve(path)

        compiled: str | None = None
        if not (options.always_recompile or self.always_recompile) and self.cache.is_fresh(path):
            logger.debug("Using cached artifact %s", artifact)
            text = self.cache.load(artifact)
        else:
            source = self.cache.read_template(path)
            compiled = self.compile(source, types=allowed, variables=options.variables, debug=debug, name=str(path))
            if options.show_compiled:
                logger.debug("Compiled %s:\n%s", path, compiled)
            self.cache.persist(artifact, compiled)
            logger.debug("Compiled %s → %s", path, artifact)
            text = compiled

        renderer = Template.from_artifact(text, allowed_types=allowed, debug=debug, name=str(path))
        shown = compiled if options.show_compiled else None
        return self._stream(renderer, options.variables, shown)

    @staticmethod
    def _stream(template: Template, variables: Mapping[str, Any], shown: str | None) -> Iterator[str]:
        if shown is not None:
            yield shown
        yield from template.render_stream(variables)


def render(options: Mapping[str, Any], *, environment: Environment | None = None) -> str:
    """Render from an options mapping.

    Recognized keys: ``template`` (required), ``types``, ``variables``,
    ``always_recompile`` / ``alwaysRecompile``, ``debug``,
    ``show_compiled`` / ``showCompiled``.

    Example:
        >>> render({"template": "page.html", "types": {Scalar}, "variables": {"x": 5}})
    """
    env = environment if environment is not None else Environment()
    return "".join(env.render_options(RenderOptions.from_mapping(options)))
