"""
Token Types for Kestrel

Shared between lexer, parser and the REPL highlighter to avoid circular
dependencies.
"""

from typing import Any
from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types"""

    # Literals
    NUMBER = auto()
    STRING = auto()
    IDENT = auto()

    # Keywords
    VAR = auto()
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    PRINT = auto()

    # Arithmetic
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()

    # Comparison
    EQ = auto()
    NEQ = auto()
    LT = auto()
    LTE = auto()
    GT = auto()
    GTE = auto()

    # Logical
    AND = auto()
    OR = auto()
    NEG = auto()  # !

    # Assignment
    ASSIGN = auto()

    # Punctuation
    LPAR = auto()
    RPAR = auto()
    LBRACE = auto()
    RBRACE = auto()
    SEMI = auto()

    # Special
    EOF = auto()


# Human-readable spelling used in "Expected ..." diagnostics
TT_SPELLING = {
    TT.NUMBER: "number",
    TT.STRING: "string",
    TT.IDENT: "identifier",
    TT.VAR: "'var'",
    TT.IF: "'if'",
    TT.ELSE: "'else'",
    TT.WHILE: "'while'",
    TT.PRINT: "'print'",
    TT.PLUS: "'+'",
    TT.MINUS: "'-'",
    TT.STAR: "'*'",
    TT.SLASH: "'/'",
    TT.EQ: "'=='",
    TT.NEQ: "'!='",
    TT.LT: "'<'",
    TT.LTE: "'<='",
    TT.GT: "'>'",
    TT.GTE: "'>='",
    TT.AND: "'&&'",
    TT.OR: "'||'",
    TT.NEG: "'!'",
    TT.ASSIGN: "'='",
    TT.LPAR: "'('",
    TT.RPAR: "')'",
    TT.LBRACE: "'{'",
    TT.RBRACE: "'}'",
    TT.SEMI: "';'",
    TT.EOF: "end of input",
}


@dataclass(frozen=True)
class Tok:
    """Token with position info (pos is a 0-based character offset)"""

    type: TT
    value: Any
    pos: int = 0
    line: int = 0
    column: int = 0

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"
