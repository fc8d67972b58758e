"""Read a compiled artifact back into an instruction tree.

Text between markers becomes `Data`; markers become `Output`, `If` and
`ForEach` nodes. Blocks must balance: every ``if`` closes with ``endif``
and every ``foreach`` with ``endforeach``, innermost first.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from kiln.compiler import conditions, markers
from kiln.environment.exceptions import TemplateSyntaxError
from kiln.nodes import Condition, Data, ForEach, If, Node, Output


@dataclass
class _Frame:
    """An open block waiting for its closing marker."""

    op: str
    payload: Any
    lineno: int
    col_offset: int
    parent: list[Node]
    body: list[Node] = field(default_factory=list)


def _position(text: str, offset: int) -> tuple[int, int]:
    lineno = text.count("\n", 0, offset) + 1
    col_offset = offset - (text.rfind("\n", 0, offset) + 1)
    return lineno, col_offset


def _path(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list) or not value or not all(isinstance(p, str) for p in value):
        raise ValueError(f"expected a non-empty list of names, got {value!r}")
    return tuple(value)


def _condition(payload: Any) -> Condition:
    if not isinstance(payload, dict) or payload.get("test") not in conditions.TESTS:
        raise ValueError(f"unknown condition {payload!r}")
    operand = payload.get("operand") or {}
    return Condition(
        test=payload["test"],
        subject=_path(payload.get("subject")),
        operand_path=_path(operand["path"]) if "path" in operand else None,
        operand_literal=operand.get("literal"),
    )


class ArtifactReader:
    """Parse artifact text into nodes.

    Example:
        >>> ArtifactReader('Hi <?kiln display ["name"] ?>').read()
        [Data(lineno=1, col_offset=0, value='Hi '), Output(lineno=1, col_offset=3, path=('name',))]

    """

    def __init__(self, text: str, name: str | None = None):
        self._text = text
        self._name = name

    def _error(self, message: str, lineno: int | None) -> TemplateSyntaxError:
        return TemplateSyntaxError(message, lineno=lineno, name=self._name, source=self._text)

    def read(self) -> list[Node]:
        text = self._text
        root: list[Node] = []
        body = root
        stack: list[_Frame] = []
        pos = 0

        for match in markers.MARKER_RE.finditer(text):
            if match.start() > pos:
                body.append(Data(*_position(text, pos), value=text[pos:match.start()]))
            pos = match.end()

            op, raw = match.group(1), match.group(2)
            lineno, col_offset = _position(text, match.start())
            try:
                payload = markers.decode_payload(raw) if raw is not None else None
            except json.JSONDecodeError as e:
                raise self._error(f"Unreadable '{op}' marker payload: {e.msg}", lineno) from e

            try:
                if op == markers.DISPLAY:
                    body.append(Output(lineno, col_offset, path=_path(payload)))
                elif op in (markers.IF, markers.FOREACH):
                    frame = _Frame(op, payload, lineno, col_offset, parent=body)
                    stack.append(frame)
                    body = frame.body
                elif op in (markers.ENDIF, markers.ENDFOREACH):
                    body = self._close(stack, op, lineno)
                else:
                    raise self._error(f"Unknown marker '{op}'", lineno)
            except (ValueError, KeyError, TypeError) as e:
                raise self._error(f"Malformed '{op}' marker: {e}", lineno) from e

        if pos < len(text):
            body.append(Data(*_position(text, pos), value=text[pos:]))

        if stack:
            frame = stack[-1]
            raise self._error(f"Unclosed '{frame.op}' block", frame.lineno)
        return root

    def _close(self, stack: list[_Frame], op: str, lineno: int) -> list[Node]:
        """Close the innermost block and return the body to continue in."""
        expected = markers.IF if op == markers.ENDIF else markers.FOREACH
        if not stack or stack[-1].op != expected:
            open_op = stack[-1].op if stack else None
            found = f"open '{open_op}' block" if open_op else "no open block"
            raise self._error(f"'{op}' does not match {found}", lineno)

        frame = stack.pop()
        node: Node
        if expected == markers.IF:
            node = If(frame.lineno, frame.col_offset, condition=_condition(frame.payload), body=tuple(frame.body))
        else:
            payload = frame.payload
            if not isinstance(payload, dict) or not isinstance(payload.get("item"), str):
                raise ValueError(f"foreach needs an item name, got {payload!r}")
            node = ForEach(
                frame.lineno,
                frame.col_offset,
                item=payload["item"],
                iter=_path(payload.get("iter")),
                body=tuple(frame.body),
            )
        frame.parent.append(node)
        return frame.parent


def read_artifact(text: str, name: str | None = None) -> list[Node]:
    """Convenience wrapper around ``ArtifactReader(text, name).read()``."""
    return ArtifactReader(text, name).read()
