from __future__ import annotations

import logging
import sys
from typing import Callable, Dict, List, Optional

from lark import Token, Tree

from .types import (
    CancelSignal,
    Frame,
    KestrelRuntimeError,
    NestingTooDeep,
    RunState,
    Value,
)
from .tree import Node, is_token, node_position, tree_label

from .eval.bind import eval_assign_stmt, eval_var_decl
from .eval.blocks import eval_program
from .eval.common import token_number, token_string
from .eval.expr import eval_binary, eval_unary
from .eval.loops import eval_if_stmt, eval_while_stmt

logger = logging.getLogger(__name__)


def _maybe_attach_location(exc: KestrelRuntimeError, node: Node) -> None:
    if exc.located:
        return

    # Binary operators report at the operator, everything else at its first token.
    if tree_label(node) == 'binexpr':
        node = node.children[1]

    position = node_position(node)
    if position is None:
        return

    exc.locate(*position)

# ---------------- Public API ----------------

def execute(
    program: Tree,
    env: Frame,
    cancel: Optional[CancelSignal] = None,
    scoped: bool = False,
) -> List[Value]:
    """Run ``program`` against ``env`` and return the printed values in order.

    ``env`` is mutated in place and keeps every binding made before a failure.
    A runtime error carries the values printed before it in ``exc.output``.
    ``cancel`` is polled before each statement and each loop iteration.
    """
    state = RunState(cancel=cancel, scoped=scoped)
    previous = env.state
    env.state = state

    try:
        eval_node(program, env)
    except KestrelRuntimeError as e:
        e.output = list(state.output)
        if e.py_trace is None:
            e.py_trace = sys.exc_info()[2]
        logger.debug("run aborted after %d output value(s): %s", len(state.output), e)
        raise
    except RecursionError:
        err = NestingTooDeep()
        err.output = list(state.output)
        err.py_trace = sys.exc_info()[2]
        logger.debug("run aborted: recursion limit reached after %d output value(s)", len(state.output))
        raise err from None
    finally:
        env.state = previous

    return state.output

# ---------------- Core evaluator ----------------

def eval_node(n: Node, frame: Frame) -> Value:
    try:
        return _eval_node_inner(n, frame)
    except KestrelRuntimeError as e:
        _maybe_attach_location(e, n)
        raise


def _eval_node_inner(n: Node, frame: Frame) -> Value:
    if is_token(n):
        return _eval_token(n, frame)

    handler = _NODE_DISPATCH.get(n.data)
    if handler is not None:
        return handler(n, frame)

    match n.data:
        case 'program':
            return eval_program(n.children, frame, eval_node)
        case 'printstmt':
            return _eval_print(n, frame)
        case 'exprstmt':
            eval_node(n.children[0], frame)
            return None
        case _:
            raise KestrelRuntimeError(f"Unknown node: {n.data}")

# ---------------- Tokens ----------------

def _eval_token(t: Token, frame: Frame) -> Value:
    handler = _TOKEN_DISPATCH.get(t.type)
    if handler:
        return handler(t, frame)

    if t.type == 'IDENT':
        return frame.get(t.value)

    raise KestrelRuntimeError(f"Unhandled token {t.type}:{t.value}")

# ---------------- Statements ----------------

def _eval_print(n: Tree, frame: Frame) -> None:
    value = eval_node(n.children[0], frame)

    if frame.state is None:
        raise KestrelRuntimeError("print used outside of a run")
    frame.state.output.append(value)

_NODE_DISPATCH: Dict[str, Callable[[Tree, Frame], Value]] = {
    'vardecl': lambda n, frame: eval_var_decl(n, frame, eval_node),
    'assign': lambda n, frame: eval_assign_stmt(n, frame, eval_node),
    'ifstmt': lambda n, frame: eval_if_stmt(n, frame, eval_node),
    'whilestmt': lambda n, frame: eval_while_stmt(n, frame, eval_node),
    'binexpr': lambda n, frame: eval_binary(n, frame, eval_node),
    'unary': lambda n, frame: eval_unary(n, frame, eval_node),
}

_TOKEN_DISPATCH: Dict[str, Callable[[Token, Frame], Value]] = {
    'NUMBER': token_number,
    'STRING': token_string,
}
