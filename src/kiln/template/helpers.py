"""Pure runtime helpers used while rendering (and by compile-time validation).

None of these functions hold state: the allowed capabilities and the debug
flag are passed in by the caller.

Thread-Safety:
All functions are stateless and safe for concurrent use.

"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from kiln.capabilities import Displayable
from kiln.compiler import conditions
from kiln.environment.exceptions import InvalidTypeError, UndefinedError
from kiln.utils.html import EscapedString, html_escape
from kiln.utils.lookup import is_empty, resolve

if TYPE_CHECKING:
    from kiln.nodes import Condition


def is_valid(value: Any, allowed: Iterable[type]) -> bool:
    """True iff ``value`` is defined and an instance of an allowed capability."""
    if value is None:
        return False
    return any(isinstance(value, capability) for capability in allowed)


def display(
    value: Any,
    allowed: Iterable[type],
    *,
    debug: bool = False,
    name: str = "<value>",
    template_name: str | None = None,
    lineno: int | None = None,
) -> str:
    """Return the escaped text for ``value``, or ``""`` when it may not be shown.

    Raises (debug mode only):
        UndefinedError: ``value`` is ``None``
        InvalidTypeError: ``value`` has no allowed capability
    """
    if is_valid(value, allowed):
        if hasattr(value, "__html__"):
            return str(value.__html__())
        return html_escape(value)
    if not debug:
        return ""
    if value is None:
        raise UndefinedError(name, template_name, lineno)
    raise InvalidTypeError(
        name,
        value,
        expression=f"{{{{ {name} }}}}",
        template_name=template_name,
        lineno=lineno,
    )


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, EscapedString):
        value = value.raw
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def loose_equals(left: Any, right: Any) -> bool:
    """Equality that also matches numbers against numeric strings (``"5" == 5``)."""
    if left == right:
        return True
    left_number, right_number = _as_number(left), _as_number(right)
    return left_number is not None and left_number == right_number


def evaluate_condition(
    condition: Condition,
    scope: Mapping[str, Any],
    allowed: Iterable[type],
) -> bool:
    """Evaluate an ``if`` guard against the render scope.

    Mirrors the guards emitted for each form, including the redundant bare
    form ``(valid and A == true) or valid``.
    """
    subject = resolve(scope, condition.subject)
    test = condition.test

    if test == conditions.DEFINED:
        return subject is not None

    valid = is_valid(subject, allowed)

    if test == conditions.IS:
        return valid and loose_equals(subject, operand_value(condition, scope))
    if test == conditions.IS_NOT:
        return not valid or (valid and not loose_equals(subject, operand_value(condition, scope)))
    if test == conditions.NOT:
        return not valid or (valid and not subject)
    return (valid and bool(subject)) or valid


def operand_value(condition: Condition, scope: Mapping[str, Any]) -> Any:
    """Right-hand side of ``is`` / ``is not``: a literal or a resolved path."""
    if condition.operand_path is not None:
        return resolve(scope, condition.operand_path)
    return condition.operand_literal


def iterate(value: Any) -> Iterator[Any] | None:
    """Items a foreach walks over, or ``None`` if ``value`` cannot be iterated.

    Mappings yield their values. Strings and displayable values are not
    iterated.
    """
    if isinstance(value, Mapping):
        return iter(list(value.values()))
    if isinstance(value, (str, bytes, Displayable)):
        return None
    try:
        return iter(value)
    except TypeError:
        return None


__all__ = [
    "display",
    "evaluate_condition",
    "is_empty",
    "is_valid",
    "iterate",
    "loose_equals",
    "operand_value",
    "resolve",
]
