from __future__ import annotations

import math
from typing import Any

from lark import Token

from ..types import Frame, KBool, KNumber, KString, TypeMismatch, Value

_ESCAPES = {
    '"': '"',
    '\\': '\\',
    'n': '\n',
    't': '\t',
    'r': '\r',
}

def format_number(num: float) -> str:
    """Integral values print without a decimal point: 5.0 -> '5'."""
    if math.isfinite(num) and float(num).is_integer():
        return str(int(num))
    return str(float(num))

def stringify(value: Any) -> str:
    if isinstance(value, KString):
        return value.value

    if isinstance(value, KNumber):
        return format_number(value.value)

    if isinstance(value, KBool):
        return "true" if value.value else "false"

    return str(value)

def require_number(op: str, *operands: Value) -> None:
    for operand in operands:
        if not isinstance(operand, KNumber):
            raise TypeMismatch(op, *operands)

def token_number(token: Token, _: Frame) -> KNumber:
    return KNumber(float(token.value))

def decode_string(raw: str) -> str:
    """Strip the surrounding quotes and resolve backslash escapes."""
    if len(raw) >= 2 and raw[0] == '"' and raw[-1] == '"':
        raw = raw[1:-1]

    if '\\' not in raw:
        return raw

    out = []
    i = 0

    while i < len(raw):
        ch = raw[i]
        if ch == '\\' and i + 1 < len(raw):
            nxt = raw[i + 1]
            # Unknown escapes are kept verbatim
            out.append(_ESCAPES.get(nxt, '\\' + nxt))
            i += 2
            continue
        out.append(ch)
        i += 1

    return ''.join(out)

def token_string(token: Token, _: Frame) -> KString:
    return KString(decode_string(token.value))
