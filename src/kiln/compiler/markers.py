"""Inline instruction markers.

The code generator replaces each piece of markup with one or more markers
of the form ``<?kiln OP PAYLOAD ?>``. ``PAYLOAD`` is compact JSON and is
omitted for ``endif`` / ``endforeach``. ``>`` inside JSON strings is written
as ``\\u003e`` so a payload can never contain the closing ``?>``.

    <?kiln display ["user","name"] ?>
    <?kiln if {"test":"is","subject":["x"],"operand":{"literal":5}} ?>
    <?kiln endif ?>

"""

from __future__ import annotations

import json
import re
from typing import Any

MARKER_RE = re.compile(r"<\?kiln ([a-z]+)(?: ([^>]*?))? \?>")

DISPLAY = "display"
IF = "if"
ENDIF = "endif"
FOREACH = "foreach"
ENDFOREACH = "endforeach"

OPCODES: frozenset[str] = frozenset({DISPLAY, IF, ENDIF, FOREACH, ENDFOREACH})


def encode_payload(payload: Any) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).replace(">", "\\u003e")


def decode_payload(raw: str) -> Any:
    return json.loads(raw)


def marker(op: str, payload: Any = None) -> str:
    """Build one marker; ``payload=None`` means no payload."""
    if payload is None:
        return f"<?kiln {op} ?>"
    return f"<?kiln {op} {encode_payload(payload)} ?>"
