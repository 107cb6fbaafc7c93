from __future__ import annotations

from typing import Callable, List

from lark import Tree

from ..tree import Node
from ..types import Frame
from .helpers import check_cancelled

EvalFunc = Callable[[Node, Frame], object]

def eval_program(children: List[Node], frame: Frame, eval_func: EvalFunc) -> None:
    """Run a statement list in order, honouring cancellation between statements."""
    for child in children:
        check_cancelled(frame)
        eval_func(child, frame)

def eval_block(n: Tree, frame: Frame, eval_func: EvalFunc) -> None:
    """Run an if/while body.

    Flat mode reuses the caller's frame. Scoped mode runs the body in a fresh
    child frame that is dropped when the block finishes.
    """
    state = frame.state
    target = Frame(parent=frame) if state is not None and state.scoped else frame
    eval_program(n.children, target, eval_func)
