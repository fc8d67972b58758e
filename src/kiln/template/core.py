"""Kiln Template — the render host.

A `Template` holds the instruction tree read from a compiled artifact and
interprets it against a variable context. Nothing is executed as code: the
tree is walked node by node and output is yielded as it is produced.

Scope:
Each render copies the caller's variables into one flat dict. Foreach items
are bound in that same dict, so an item keeps its last value after its loop
ends. The caller's mapping is never modified.

Thread-Safety:
Templates are immutable after construction; every render builds its own
scope, so one Template can be rendered from several threads at once.

"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any

from kiln.environment.exceptions import InvalidTypeError
from kiln.nodes import Data, ForEach, If, Node, Output
from kiln.template.helpers import display, evaluate_condition, iterate, resolve
from kiln.template.reader import read_artifact

# Node type → render method name
_RENDERERS: dict[type[Node], str] = {
    Data: "_render_data",
    Output: "_render_output",
    If: "_render_if",
    ForEach: "_render_foreach",
}


class Template:
    """Compiled template ready for rendering.

    Attributes:
        name: Template identifier (for error messages)
        nodes: The instruction tree
        allowed_types: Capabilities a value needs to be displayed
        debug: Raise on undefined or disallowed values instead of dropping them

    Example:
        >>> t = Template.from_artifact('Hi <?kiln display ["name"] ?>', allowed_types={Scalar})
        >>> t.render(name="Ann")
        'Hi Ann'

    """

    __slots__ = ("_allowed", "_debug", "_name", "_nodes")

    def __init__(
        self,
        nodes: Sequence[Node],
        *,
        allowed_types: Iterable[type],
        debug: bool = False,
        name: str | None = None,
    ):
        self._nodes = tuple(nodes)
        self._allowed = frozenset(allowed_types)
        self._debug = debug
        self._name = name

    @classmethod
    def from_artifact(
        cls,
        text: str,
        *,
        allowed_types: Iterable[type],
        debug: bool = False,
        name: str | None = None,
    ) -> Template:
        """Build a Template from compiled artifact text.

        Raises:
            TemplateSyntaxError: The artifact's markers do not balance
        """
        return cls(read_artifact(text, name), allowed_types=allowed_types, debug=debug, name=name)

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def nodes(self) -> tuple[Node, ...]:
        return self._nodes

    @property
    def allowed_types(self) -> frozenset[type]:
        return self._allowed

    @property
    def debug(self) -> bool:
        return self._debug

    def render(self, variables: Mapping[str, Any] | None = None, /, **kwargs: Any) -> str:
        """Render to a string. Accepts a mapping, keyword arguments, or both."""
        return "".join(self.render_stream(variables, **kwargs))

    def render_stream(self, variables: Mapping[str, Any] | None = None, /, **kwargs: Any) -> Iterator[str]:
        """Yield output chunks as the tree is walked."""
        scope: dict[str, Any] = dict(variables or {})
        scope.update(kwargs)
        yield from self._render_nodes(self._nodes, scope)

    def _render_nodes(self, nodes: Iterable[Node], scope: dict[str, Any]) -> Iterator[str]:
        for node in nodes:
            yield from getattr(self, _RENDERERS[type(node)])(node, scope)

    def _render_data(self, node: Data, scope: dict[str, Any]) -> Iterator[str]:
        yield node.value

    def _render_output(self, node: Output, scope: dict[str, Any]) -> Iterator[str]:
        text = display(
            resolve(scope, node.path),
            self._allowed,
            debug=self._debug,
            name=node.name,
            template_name=self._name,
            lineno=node.lineno,
        )
        if text:
            yield text

    def _render_if(self, node: If, scope: dict[str, Any]) -> Iterator[str]:
        if evaluate_condition(node.condition, scope, self._allowed):
            yield from self._render_nodes(node.body, scope)

    def _render_foreach(self, node: ForEach, scope: dict[str, Any]) -> Iterator[str]:
        value = resolve(scope, node.iter)
        items = iterate(value)
        if items is None:
            if self._debug and value is not None:
                name = ".".join(node.iter)
                raise InvalidTypeError(
                    name,
                    value,
                    expression=f"{{% foreach {node.item} in {name} %}}",
                    template_name=self._name,
                    lineno=node.lineno,
                    suggestion=f"Pass a list or mapping as '{name}'",
                )
            return
        for item in items:
            scope[node.item] = item
            yield from self._render_nodes(node.body, scope)

    def __repr__(self) -> str:
        return f"<Template {self._name or '(string)'}>"
