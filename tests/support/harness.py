from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from kestrel.lexer_rd import (
    LexError,
    UnexpectedCharError,
    UnterminatedCommentError,
    UnterminatedStringError,
    tokenize,
)
from kestrel.parser_rd import (
    ExpectedTokenError,
    ParseError,
    UnexpectedEndOfInput,
    UnexpectedTokenError,
    parse,
    parse_source,
)
from kestrel.runner import RunResult, run as run_program
from kestrel.tree import Node, is_token
from kestrel.types import (
    Cancelled,
    DivisionByZero,
    Frame,
    KBool,
    KestrelError,
    KestrelRuntimeError,
    KNumber,
    KString,
    NestingTooDeep,
    TypeMismatch,
    UndefinedVariable,
    Value,
)

__all__ = [
    "Cancelled",
    "DivisionByZero",
    "ExpectedTokenError",
    "Frame",
    "KBool",
    "KNumber",
    "KString",
    "KestrelError",
    "KestrelRuntimeError",
    "LexError",
    "NestingTooDeep",
    "ParseError",
    "RunResult",
    "TypeMismatch",
    "UndefinedVariable",
    "UnexpectedCharError",
    "UnexpectedEndOfInput",
    "UnexpectedTokenError",
    "UnterminatedCommentError",
    "UnterminatedStringError",
    "Value",
    "outputs",
    "parse",
    "parse_source",
    "render_tree",
    "run_program",
    "run_runtime_case",
    "tokenize",
]

OutputExpectation = Optional[List[object]]


def plain(value: Value) -> object:
    """Unwrap a runtime value to the matching Python scalar."""
    assert isinstance(
        value, (KNumber, KString, KBool)
    ), f"expected a runtime value, got {type(value).__name__}"
    return value.value


def outputs(source: str, scoped: bool = False) -> List[object]:
    """Run source and return printed values as Python scalars."""
    return [plain(v) for v in run_program(source, scoped=scoped).output]


def verify_output(values: List[Value], expected: List[object]) -> None:
    """Compare printed values, kind included: 1 is not "1" and not true."""
    assert len(values) == len(expected), f"expected {expected!r}, got {values!r}"

    for value, want in zip(values, expected):
        match want:
            case bool():
                assert isinstance(value, KBool), f"expected boolean, got {value!r}"
                assert value.value is want
            case int() | float():
                assert isinstance(value, KNumber), f"expected number, got {value!r}"
                assert abs(value.value - float(want)) <= 1e-9, f"expected {want}, got {value.value}"
            case str():
                assert isinstance(value, KString), f"expected string, got {value!r}"
                assert value.value == want, f"expected {want!r}, got {value.value!r}"
            case _:
                raise AssertionError(f"unknown expectation {want!r}")


def run_runtime_case(
    source: str,
    expectation: OutputExpectation,
    expected_exc: Optional[type],
    scoped: bool = False,
) -> None:
    """Execute one runtime scenario with optional expected exception."""
    if expected_exc is not None:
        with pytest.raises(expected_exc):
            run_program(source, scoped=scoped)
        return

    result = run_program(source, scoped=scoped)
    if expectation is not None:
        verify_output(result.output, expectation)


def render_tree(node: Node) -> str:
    """Compact s-expression view of an AST: operators head their operands."""
    if is_token(node):
        return str(node.value)

    parts = [render_tree(child) for child in node.children]
    if node.data in ("binexpr", "unary"):
        op = parts.pop(len(parts) - 2)
        return f"({op} {' '.join(parts)})"

    if not parts:
        return f"({node.data})"
    return f"({node.data} {' '.join(parts)})"
