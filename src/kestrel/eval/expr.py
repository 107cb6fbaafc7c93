from __future__ import annotations

from typing import Callable

from lark import Token, Tree

from ..types import DivisionByZero, Frame, KBool, KNumber, KString, KestrelRuntimeError, TypeMismatch, Value
from ..tree import Node, node_position, tree_label
from .common import require_number, stringify
from .helpers import is_truthy

EvalFunc = Callable[[Node, Frame], Value]

def eval_unary(n: Tree, frame: Frame, eval_func: EvalFunc) -> Value:
    op_tok, rhs_node = n.children
    op = str(op_tok.value)
    rhs = eval_func(rhs_node, frame)

    match op:
        case '!':
            return KBool(not is_truthy(rhs))
        case '-':
            require_number(op, rhs)
            return KNumber(-rhs.value)

    raise KestrelRuntimeError(f"Unsupported unary op {op}")

def eval_binary(n: Tree, frame: Frame, eval_func: EvalFunc) -> Value:
    # Left-nested chains (a + b + c ...) are folded in a loop, not by recursion.
    spine = [n]
    while tree_label(spine[-1].children[0]) == 'binexpr':
        spine.append(spine[-1].children[0])

    # Left strictly before right; && and || never skip the right operand.
    acc = eval_func(spine[-1].children[0], frame)

    for node in reversed(spine):
        _, op_tok, rhs_node = node.children
        rhs = eval_func(rhs_node, frame)
        try:
            acc = apply_binary_operator(as_op(op_tok), acc, rhs)
        except KestrelRuntimeError as e:
            position = node_position(op_tok)
            if position is not None:
                e.locate(*position)
            raise

    return acc

def as_op(x: Node) -> str:
    if isinstance(x, Token):
        return str(x.value)

    raise KestrelRuntimeError(f"Expected operator token, got {x!r}")

def apply_binary_operator(op: str, lhs: Value, rhs: Value) -> Value:
    match op:
        case '+':
            if isinstance(lhs, KString) or isinstance(rhs, KString):
                return KString(stringify(lhs) + stringify(rhs))
            require_number(op, lhs, rhs)
            return KNumber(lhs.value + rhs.value)
        case '-':
            require_number(op, lhs, rhs)
            return KNumber(lhs.value - rhs.value)
        case '*':
            require_number(op, lhs, rhs)
            return KNumber(lhs.value * rhs.value)
        case '/':
            require_number(op, lhs, rhs)
            if rhs.value == 0:
                raise DivisionByZero()
            return KNumber(lhs.value / rhs.value)
        case '==' | '!=' | '<' | '<=' | '>' | '>=':
            return KBool(_compare_values(op, lhs, rhs))
        case '&&':
            return KBool(is_truthy(lhs) and is_truthy(rhs))
        case '||':
            return KBool(is_truthy(lhs) or is_truthy(rhs))
    raise KestrelRuntimeError(f"Unknown operator {op}")

def _compare_values(op: str, lhs: Value, rhs: Value) -> bool:
    # Comparisons never coerce: both sides must be the same kind.
    if type(lhs) is not type(rhs):
        raise TypeMismatch(op, lhs, rhs)

    match op:
        case '==':
            return lhs.value == rhs.value
        case '!=':
            return lhs.value != rhs.value

    if isinstance(lhs, KBool):
        raise TypeMismatch(op, lhs, rhs)

    match op:
        case '<':
            return lhs.value < rhs.value
        case '<=':
            return lhs.value <= rhs.value
        case '>':
            return lhs.value > rhs.value
        case '>=':
            return lhs.value >= rhs.value
    raise KestrelRuntimeError(f"Unknown comparator {op}")
