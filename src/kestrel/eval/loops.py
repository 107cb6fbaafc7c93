from __future__ import annotations

from typing import Callable

from lark import Tree

from ..tree import Node, tree_children, tree_label
from ..types import Frame, KestrelRuntimeError, Value
from .blocks import eval_block
from .helpers import check_cancelled, is_truthy as _is_truthy

EvalFunc = Callable[[Node, Frame], Value]

def eval_if_stmt(n: Tree, frame: Frame, eval_func: EvalFunc) -> None:
    children = tree_children(n)

    if len(children) not in (2, 3):
        raise KestrelRuntimeError("Malformed if statement")

    cond_node, then_body = children[0], children[1]
    else_body = children[2] if len(children) == 3 else None

    if _is_truthy(eval_func(cond_node, frame)):
        eval_block(then_body, frame, eval_func)
        return

    if else_body is not None:
        eval_block(else_body, frame, eval_func)

def eval_while_stmt(n: Tree, frame: Frame, eval_func: EvalFunc) -> None:
    children = tree_children(n)

    if len(children) != 2 or tree_label(children[1]) != "block":
        raise KestrelRuntimeError("Malformed while statement")

    cond_node, body = children

    # The condition is re-read before every pass, including the first.
    while True:
        check_cancelled(frame)
        if not _is_truthy(eval_func(cond_node, frame)):
            return
        eval_block(body, frame, eval_func)
