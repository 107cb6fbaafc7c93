"""Kestrel: a small scripting language with a recursive-descent front end
and a tree-walking evaluator."""

import logging

from .evaluator import execute
from .lexer_rd import LexError, UnexpectedCharError, UnterminatedCommentError, UnterminatedStringError, tokenize
from .parser_rd import ExpectedTokenError, ParseError, UnexpectedEndOfInput, UnexpectedTokenError, parse, parse_source
from .runner import RunResult, run
from .types import (
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

logging.getLogger(__name__).addHandler(logging.NullHandler())

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
    "execute",
    "parse",
    "parse_source",
    "run",
    "tokenize",
]
