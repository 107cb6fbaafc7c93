"""
Recursive Descent Parser for Kestrel

Structure:
- Lexer: Token stream from source (lexer_rd)
- Parser: Recursive descent for statements, precedence climbing for
  binary expressions
- AST: lark Tree/Token nodes; every leaf keeps its source position

Statement grammar:
    program   := stmt* EOF
    stmt      := 'var' IDENT '=' expr term
               | 'print' '(' expr ')' term
               | 'if' '(' expr ')' block ('else' block)?
               | 'while' '(' expr ')' block
               | IDENT '=' expr term
               | expr term
               | ';'
    block     := '{' stmt* '}'
    term      := ';'            (may be omitted before end of input)
"""

import logging
from typing import Dict, List, Optional

from lark import Token, Tree

from .token_types import TT, TT_SPELLING, Tok
from .tree import make_token
from .types import KestrelError

logger = logging.getLogger(__name__)

# ============================================================================
# Errors
# ============================================================================

class ParseError(KestrelError):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Tok] = None):
        if token is not None:
            super().__init__(message, token.pos, token.line, token.column)
        else:
            super().__init__(message)
        self.token = token

class ExpectedTokenError(ParseError):
    """A specific token kind was required at this position"""
    def __init__(self, expected: TT, token: Tok):
        super().__init__(
            f"Expected {TT_SPELLING[expected]}, got {_describe(token)}", token
        )
        self.expected = expected

class UnexpectedTokenError(ParseError):
    """A token that cannot start the construct being parsed"""
    def __init__(self, token: Tok, context: str = "expression"):
        super().__init__(f"Unexpected {_describe(token)} in {context}", token)

class UnexpectedEndOfInput(ParseError):
    def __init__(self, token: Tok, context: str = "expression"):
        super().__init__(f"Unexpected end of input, expected {context}", token)


def _describe(tok: Tok) -> str:
    if tok.type == TT.EOF:
        return TT_SPELLING[TT.EOF]
    if tok.type in (TT.NUMBER, TT.STRING, TT.IDENT):
        return f"{TT_SPELLING[tok.type]} {tok.value}"
    return TT_SPELLING[tok.type]

# ============================================================================
# Parser
# ============================================================================

# Binding strengths for precedence climbing, lowest to highest. Unary and
# primary expressions bind tighter than all of these.
BINARY_PRECEDENCE: Dict[TT, int] = {
    TT.OR: 1,
    TT.AND: 2,
    TT.EQ: 3, TT.NEQ: 3,
    TT.LT: 4, TT.GT: 4, TT.LTE: 4, TT.GTE: 4,
    TT.PLUS: 5, TT.MINUS: 5,
    TT.STAR: 6, TT.SLASH: 6,
}

UNARY_OPS = (TT.NEG, TT.MINUS)


class Parser:
    """
    Recursive descent parser for Kestrel.

    Expression precedence (lowest to highest):
    1. or (||)
    2. and (&&)
    3. equality (==, !=)
    4. relational (<, >, <=, >=)
    5. additive (+, -)
    6. multiplicative (*, /)
    7. unary (!, -)
    8. primary (literals, identifiers, parens)

    All binary levels are left-associative.
    """

    def __init__(self, tokens: List[Tok]):
        if not tokens or tokens[-1].type != TT.EOF:
            tokens = list(tokens) + [Tok(TT.EOF, None)]
        self.tokens = tokens
        self.pos = 0
        self.current = tokens[0]

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def peek(self, offset: int = 0) -> Tok:
        """Look ahead at token"""
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]

    def advance(self) -> Tok:
        """Consume current token and move to next (EOF is sticky)"""
        prev = self.current
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        self.current = self.tokens[self.pos]
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT) -> Tok:
        """Consume token of expected type or raise error"""
        if not self.check(token_type):
            raise ExpectedTokenError(token_type, self.current)
        return self.advance()

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Tree:
        """Parse entire program"""
        try:
            stmts = self.parse_stmt_list(TT.EOF)
        except RecursionError:
            raise ParseError("Program nested too deeply to parse", self.current) from None
        logger.debug("parsed %d top-level statements", len(stmts))
        return Tree('program', stmts)

    def parse_stmt_list(self, terminator: TT) -> List[Tree]:
        """Parse statements until ``terminator`` (not consumed)"""
        stmts: List[Tree] = []

        while not self.check(terminator, TT.EOF):
            # Empty statement
            if self.match(TT.SEMI):
                continue
            stmts.append(self.parse_statement())

        return stmts

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_statement(self) -> Tree:
        """
        Parse a single statement.

        The leading keyword selects the production; anything else is an
        assignment (IDENT '=') or a bare expression.
        """
        if self.check(TT.VAR):
            return self.parse_var_decl()
        if self.check(TT.PRINT):
            return self.parse_print_stmt()
        if self.check(TT.IF):
            return self.parse_if_stmt()
        if self.check(TT.WHILE):
            return self.parse_while_stmt()

        # Assignment: IDENT = expr
        if self.check(TT.IDENT) and self.peek(1).type == TT.ASSIGN:
            name = self.advance()
            self.advance()  # =
            value = self.parse_expr()
            self.parse_terminator()
            return Tree('assign', [make_token('IDENT', name.value, name), value])

        if self.check(TT.ELSE):
            raise UnexpectedTokenError(self.current, "statement ('else' without 'if')")
        if self.check(TT.RBRACE, TT.RPAR, TT.ASSIGN):
            raise UnexpectedTokenError(self.current, "statement")

        # Just an expression statement
        expr = self.parse_expr()
        self.parse_terminator()
        return Tree('exprstmt', [expr])

    def parse_terminator(self) -> None:
        """Statements end with ';' unless they are the last thing in the input"""
        if self.check(TT.EOF):
            return
        self.expect(TT.SEMI)

    def parse_var_decl(self) -> Tree:
        """Parse declaration: var name = expr;"""
        self.expect(TT.VAR)
        name = self.expect(TT.IDENT)
        self.expect(TT.ASSIGN)
        value = self.parse_expr()
        self.parse_terminator()
        return Tree('vardecl', [make_token('IDENT', name.value, name), value])

    def parse_print_stmt(self) -> Tree:
        """Parse print statement: print(expr);"""
        self.expect(TT.PRINT)
        self.expect(TT.LPAR)
        value = self.parse_expr()
        self.expect(TT.RPAR)
        self.parse_terminator()
        return Tree('printstmt', [value])

    def parse_if_stmt(self) -> Tree:
        """
        Parse if statement:
        if (expr) { body } [else { body }]

        'else' must be followed by a brace block; chained conditionals are
        written as an if nested inside the else block.
        """
        self.expect(TT.IF)
        cond = self.parse_condition()
        then_body = self.parse_block()

        children = [cond, then_body]
        if self.match(TT.ELSE):
            children.append(self.parse_block())

        return Tree('ifstmt', children)

    def parse_while_stmt(self) -> Tree:
        """Parse while loop: while (expr) { body }"""
        self.expect(TT.WHILE)
        cond = self.parse_condition()
        body = self.parse_block()
        return Tree('whilestmt', [cond, body])

    def parse_condition(self) -> Tree | Token:
        """Parenthesized condition of if/while"""
        self.expect(TT.LPAR)
        cond = self.parse_expr()
        self.expect(TT.RPAR)
        return cond

    def parse_block(self) -> Tree:
        """Parse brace block: { stmts }"""
        self.expect(TT.LBRACE)
        stmts = self.parse_stmt_list(TT.RBRACE)
        self.expect(TT.RBRACE)
        return Tree('block', stmts)

    # ========================================================================
    # Expressions - Precedence Climbing
    # ========================================================================

    def parse_expr(self) -> Tree | Token:
        """Parse expression (top level)"""
        return self.parse_binary(1)

    def parse_binary(self, min_prec: int) -> Tree | Token:
        """
        Climb binary operators whose binding strength is at least min_prec.

        The right operand is parsed at prec + 1, so an operator of the same
        strength that follows it folds into the left side: a - b - c is
        (a - b) - c.
        """
        left = self.parse_unary_expr()

        while True:
            prec = BINARY_PRECEDENCE.get(self.current.type)
            if prec is None or prec < min_prec:
                return left

            op = self.advance()
            right = self.parse_binary(prec + 1)
            left = Tree('binexpr', [left, make_token(op.type.name, op.value, op), right])

    def parse_unary_expr(self) -> Tree | Token:
        """Parse unary operators: !expr, -expr"""
        if self.check(*UNARY_OPS):
            op = self.advance()
            operand = self.parse_unary_expr()
            return Tree('unary', [make_token(op.type.name, op.value, op), operand])

        return self.parse_primary_expr()

    def parse_primary_expr(self) -> Tree | Token:
        """
        Parse primary expressions:
        - Literals (numbers, strings)
        - Identifiers
        - Parenthesized expressions
        """
        if self.check(TT.NUMBER):
            tok = self.advance()
            return make_token('NUMBER', tok.value, tok)

        if self.check(TT.STRING):
            tok = self.advance()
            return make_token('STRING', tok.value, tok)

        if self.check(TT.IDENT):
            tok = self.advance()
            return make_token('IDENT', tok.value, tok)

        # Parenthesized expression
        if self.match(TT.LPAR):
            expr = self.parse_expr()
            self.expect(TT.RPAR)
            return expr

        if self.check(TT.EOF):
            raise UnexpectedEndOfInput(self.current)

        raise UnexpectedTokenError(self.current)


def parse(tokens: List[Tok]) -> Tree:
    """Parse a token list into a 'program' tree."""
    return Parser(tokens).parse()


def parse_source(source: str) -> Tree:
    """
    Parse Kestrel source code to AST.

    Lex errors surface before any parsing happens.
    """
    from .lexer_rd import tokenize

    tokens = tokenize(source)
    return parse(tokens)
