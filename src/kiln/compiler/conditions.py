"""Parsing of ``{% if %}`` expressions.

Four forms are recognized, checked in this order:

    A is not B    ->  not is_valid(A) or (is_valid(A) and A != B)
    A is B        ->  is_valid(A) and A == B
    not A         ->  not is_valid(A) or (is_valid(A) and A == false)
    A             ->  (is_valid(A) and A == true) or is_valid(A)

``A`` is always a dot path. ``B`` is a literal (number, quoted string,
``true``/``false``, ``none``/``null``) or, failing that, a dot path.

The guard itself is evaluated at render time by
`kiln.template.helpers.evaluate_condition`; this module only turns the
expression text into a marker payload.
"""

from __future__ import annotations

import re
from typing import Any

IS = "is"
IS_NOT = "is_not"
NOT = "not"
TRUTHY = "truthy"
# Existence guard that wraps every foreach
DEFINED = "defined"

TESTS: frozenset[str] = frozenset({IS, IS_NOT, NOT, TRUTHY, DEFINED})

_INT_RE = re.compile(r"[+-]?\d+")
_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.\d*|\.\d+)(?:[eE][+-]?\d+)?")

_KEYWORD_LITERALS: dict[str, Any] = {
    "true": True,
    "false": False,
    "none": None,
    "null": None,
}


def split_path(expression: str) -> list[str]:
    """``"a.b.c"`` -> ``["a", "b", "c"]``."""
    return expression.strip().split(".")


def parse_operand(text: str) -> dict[str, Any]:
    """Classify the right-hand side of ``is`` / ``is not``."""
    text = text.strip()
    lowered = text.lower()
    if lowered in _KEYWORD_LITERALS:
        return {"literal": _KEYWORD_LITERALS[lowered]}
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"":
        return {"literal": text[1:-1]}
    if _INT_RE.fullmatch(text):
        return {"literal": int(text)}
    if _FLOAT_RE.fullmatch(text):
        return {"literal": float(text)}
    return {"path": split_path(text)}


def parse_condition(expression: str) -> dict[str, Any]:
    """Turn the captured ``if`` expression into a condition payload."""
    if " is " in expression:
        if " is not " in expression:
            subject, operand = expression.split(" is not ", 1)
            test = IS_NOT
        else:
            subject, operand = expression.split(" is ", 1)
            test = IS
        return {"test": test, "subject": split_path(subject), "operand": parse_operand(operand)}

    if "not " in expression:
        return {"test": NOT, "subject": split_path(expression.replace("not ", ""))}

    return {"test": TRUTHY, "subject": split_path(expression)}


def existence_condition(list_expression: str) -> dict[str, Any]:
    """Guard emitted in front of every foreach."""
    return {"test": DEFINED, "subject": split_path(list_expression)}
