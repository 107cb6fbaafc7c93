from __future__ import annotations

from typing import Callable

from lark import Tree

from ..tree import Node, token_kind
from ..types import Frame, KestrelRuntimeError, UndefinedVariable, Value

EvalFunc = Callable[[Node, Frame], Value]

def _target_name(node: Node, context: str) -> str:
    if token_kind(node) == 'IDENT':
        return str(node.value)

    raise KestrelRuntimeError(f"{context} target must be an identifier")

def eval_var_decl(n: Tree, frame: Frame, eval_func: EvalFunc) -> None:
    """var name = expr; binds (or overwrites) in the current frame."""
    name_node, value_node = n.children
    name = _target_name(name_node, "var")
    frame.define(name, eval_func(value_node, frame))

def eval_assign_stmt(n: Tree, frame: Frame, eval_func: EvalFunc) -> None:
    """name = expr; rebinds the nearest existing binding.

    The name must already be bound and is checked before the right-hand
    side runs.
    """
    name_node, value_node = n.children
    name = _target_name(name_node, "assignment")

    if not frame.has(name):
        raise UndefinedVariable(name)

    frame.set(name, eval_func(value_node, frame))
