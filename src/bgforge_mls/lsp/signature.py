"""Call-site detection for signature help."""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..core.types import Symbol
from .position import get_line
from .protocol import SignatureHelp, SignatureInfo

_CALLEE = re.compile(r"(\w+)\s*$")


@dataclass(frozen=True)
class SignatureRequest:
    """Name of the called symbol and the 0-based active parameter."""

    label: str
    parameter: int


def signature_request_at(text: str, line: int, character: int) -> SignatureRequest | None:
    """Find the call enclosing a cursor position on its line.

    Walks left from the cursor to the first unmatched `(`, counting the
    top-level commas passed on the way.
    """
    line_text = get_line(text, line)
    if line_text is None:
        return None

    depth = 0
    commas = 0
    for index in range(min(character, len(line_text)) - 1, -1, -1):
        char = line_text[index]
        if char == ")":
            depth += 1
        elif char == "(":
            if depth == 0:
                callee = _CALLEE.search(line_text[:index])
                if callee is None:
                    return None
                return SignatureRequest(label=callee.group(1), parameter=commas)
            depth -= 1
        elif char == "," and depth == 0:
            commas += 1
    return None


def to_signature_info(symbol: Symbol) -> SignatureInfo | None:
    """Build signature information from a documented symbol."""
    if symbol.doc is None:
        return None
    return SignatureInfo(
        label=symbol.detail,
        parameters=[f"{param.type} {param.name}" for param in symbol.doc.params],
        documentation=symbol.doc.description,
    )


def signature_response(info: SignatureInfo, parameter: int) -> SignatureHelp:
    return SignatureHelp(signatures=[info], active_signature=0, active_parameter=parameter)
