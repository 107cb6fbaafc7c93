"""
Lexer for Kestrel - Recursive Descent Parser

Tokenizes Kestrel source code into a stream of tokens.

Features:
- Single-pass tokenization
- Position tracking (offset, line, column)
- Line (//) and block (/* */) comments
- Two-character operators matched before their one-character prefixes
"""

import logging
from typing import List

from .token_types import TT, Tok
from .types import KestrelError

logger = logging.getLogger(__name__)

# ============================================================================
# Errors
# ============================================================================

class LexError(KestrelError):
    """Lexical analysis error"""
    pass

class UnexpectedCharError(LexError):
    def __init__(self, char: str, pos: int, line: int, column: int):
        super().__init__(f"Unexpected character {char!r}", pos, line, column)
        self.char = char

class UnterminatedStringError(LexError):
    def __init__(self, pos: int, line: int, column: int):
        super().__init__("Unterminated string", pos, line, column)

class UnterminatedCommentError(LexError):
    def __init__(self, pos: int, line: int, column: int):
        super().__init__("Unterminated block comment", pos, line, column)

def _is_digit(ch: str) -> bool:
    """ASCII decimal digit; other Unicode digits are not numeric literals"""
    return '0' <= ch <= '9'

# ============================================================================
# Lexer Implementation
# ============================================================================

class Lexer:
    """
    Kestrel lexer.

    Whitespace carries no meaning; statements are delimited by ';' and blocks
    by braces, so the lexer never synthesizes separator tokens.
    """

    # Keyword mapping
    KEYWORDS = {
        'var': TT.VAR,
        'if': TT.IF,
        'else': TT.ELSE,
        'while': TT.WHILE,
        'print': TT.PRINT,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Two-character operators
        ('==', TT.EQ),
        ('!=', TT.NEQ),
        ('<=', TT.LTE),
        ('>=', TT.GTE),
        ('&&', TT.AND),
        ('||', TT.OR),

        # Single-character operators
        ('+', TT.PLUS),
        ('-', TT.MINUS),
        ('*', TT.STAR),
        ('/', TT.SLASH),
        ('<', TT.LT),
        ('>', TT.GT),
        ('!', TT.NEG),
        ('=', TT.ASSIGN),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        (';', TT.SEMI),
    ]

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Tok] = []

        # Start of the token being scanned
        self.start_pos = 0
        self.start_line = 1
        self.start_column = 1

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        while self.pos < len(self.source):
            self.scan_token()

        self.mark_start()
        self.emit(TT.EOF, None)
        logger.debug("tokenized %d chars into %d tokens", len(self.source), len(self.tokens))
        return self.tokens

    def scan_token(self):
        """Scan next token"""
        if self.skip_whitespace():
            return

        self.mark_start()

        # Comments
        if self.peek() == '/' and self.peek(1) == '/':
            self.skip_line_comment()
            return
        if self.peek() == '/' and self.peek(1) == '*':
            self.skip_block_comment()
            return

        # String literals
        if self.peek() == '"':
            self.scan_string()
            return

        # Numbers
        if _is_digit(self.peek()):
            self.scan_number()
            return

        # Identifiers and keywords
        if self.peek().isalpha() or self.peek() == '_':
            self.scan_identifier()
            return

        # Operators and punctuation
        self.scan_operator()

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_string(self):
        """Scan string literal: "..." (value keeps the quotes, escapes raw)"""
        value = self.advance()  # Keep opening quote

        while self.pos < len(self.source) and self.peek() != '"':
            if self.peek() == '\\':
                # Keep escape sequence as-is
                value += self.advance()
                if self.pos < len(self.source):
                    value += self.advance()
            else:
                value += self.advance()

        if self.pos >= len(self.source):
            raise UnterminatedStringError(self.start_pos, self.start_line, self.start_column)

        value += self.advance()  # Closing quote
        self.emit(TT.STRING, value)

    def scan_number(self):
        """Scan number literal: digits with an optional fractional part"""
        value = ''

        # Integer part
        while _is_digit(self.peek()):
            value += self.advance()

        # Decimal part
        if self.peek() == '.' and _is_digit(self.peek(1)):
            value += self.advance()  # .
            while _is_digit(self.peek()):
                value += self.advance()

        self.emit(TT.NUMBER, value)

    def scan_identifier(self):
        """Scan identifier or keyword"""
        value = ''

        while self.peek().isalpha() or _is_digit(self.peek()) or self.peek() == '_':
            value += self.advance()

        # Check if keyword
        token_type = self.KEYWORDS.get(value, TT.IDENT)
        self.emit(token_type, value)

    def scan_operator(self):
        """Scan operators and punctuation"""
        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                self.advance(len(op_str))
                self.emit(op_type, op_str)
                return

        raise UnexpectedCharError(self.peek(), self.pos, self.line, self.column)

    # ========================================================================
    # Utilities
    # ========================================================================

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        if n < 0:
            raise ValueError(f"advance() requires n >= 0, got {n}")
        result = ''
        for _ in range(n):
            ch = self.source[self.pos] if self.pos < len(self.source) else '\0'
            result += ch
            self.pos += 1
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return result

    def skip_whitespace(self) -> bool:
        """Skip whitespace (newlines included), return True if any skipped"""
        skipped = False
        while self.peek() in (' ', '\t', '\r', '\n'):
            self.advance()
            skipped = True
        return skipped

    def skip_line_comment(self):
        """Skip // comment until end of line"""
        while self.peek() not in ('\n', '\0'):
            self.advance()

    def skip_block_comment(self):
        """Skip /* ... */ comment; blocks do not nest"""
        self.advance(2)
        while self.pos < len(self.source):
            if self.peek() == '*' and self.peek(1) == '/':
                self.advance(2)
                return
            self.advance()

        raise UnterminatedCommentError(self.start_pos, self.start_line, self.start_column)

    def mark_start(self):
        self.start_pos = self.pos
        self.start_line = self.line
        self.start_column = self.column

    def emit(self, token_type: TT, value):
        """Emit a token positioned at the start of its lexeme"""
        tok = Tok(
            type=token_type,
            value=value,
            pos=self.start_pos,
            line=self.start_line,
            column=self.start_column,
        )
        self.tokens.append(tok)


def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source"""
    lexer = Lexer(source)
    return lexer.tokenize()
