"""Shared helpers for working with the lark Tree/Token nodes that make up the AST."""
from __future__ import annotations
from typing import List, Optional, Tuple
from typing_extensions import TypeAlias, TypeGuard

from lark import Token, Tree

from .token_types import Tok

Node: TypeAlias = Tree | Token


def make_token(kind: str, value: str, tok: Tok) -> Token:
    """Build an AST leaf that remembers where its lexer token started."""
    return Token(kind, value, start_pos=tok.pos, line=tok.line, column=tok.column)

def is_tree(node: object) -> TypeGuard[Tree]:
    return isinstance(node, Tree)

def is_token(node: object) -> TypeGuard[Token]:
    return isinstance(node, Token)

def tree_label(node: Node) -> Optional[str]:
    return node.data if is_tree(node) else None

def tree_children(node: Node) -> List[Node]:
    if not is_tree(node):
        return []

    return list(node.children)

def token_kind(node: Node) -> Optional[str]:
    if not is_token(node):
        return None
    return str(node.type)

def first_token(node: Node) -> Optional[Token]:
    """Leftmost leaf of a subtree, in source order."""
    stack = [node]
    while stack:
        current = stack.pop()
        if is_token(current):
            return current
        stack.extend(reversed(tree_children(current)))

    return None

def node_position(node: Node) -> Optional[Tuple[int, int, int]]:
    """(offset, line, column) of the first token under ``node``, if any."""
    tok = first_token(node)
    if tok is None or tok.line is None:
        return None
    return (tok.start_pos or 0, tok.line, tok.column or 0)
