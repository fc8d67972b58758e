"""Display capabilities.

A value may be written to template output only if it is an instance of one
of the capabilities allowed for the render. Capabilities are abstract base
classes: types opt in by subclassing, or are registered as virtual
subclasses.

- `Displayable`: values that know their own escaped form (``__html__``).
  `kiln.utils.html.EscapedString` is the stock implementation.
- `Scalar`: plain ``str``, ``int`` and ``float`` (and ``bool`` via ``int``).
  Scalars are HTML-escaped on output.

Example:
    >>> env = Environment(types={Displayable, Scalar})
    >>> isinstance(5, Scalar)
    True

"""

from __future__ import annotations

from abc import ABC, abstractmethod


class Displayable(ABC):
    """A value that renders its own escaped text."""

    __slots__ = ()

    @abstractmethod
    def __html__(self) -> str:
        """Return the text to write to output, already escaped."""


class Scalar(ABC):
    """Marker for plain scalar values."""

    __slots__ = ()


Scalar.register(str)
Scalar.register(int)
Scalar.register(float)

DEFAULT_CAPABILITIES: frozenset[type] = frozenset({Displayable})
