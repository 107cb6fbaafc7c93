"""prompt_toolkit lexer for live Kestrel syntax highlighting in the REPL."""

from __future__ import annotations

from typing import Callable

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer_rd import Lexer as KLexer, LexError
from .token_types import TT

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "identifier": "",
    "operator": "",
    "punctuation": "",
    "comment": "italic ansigray",
}

# Token type → highlight group.
_TT_GROUP = {
    TT.VAR: "keyword",
    TT.IF: "keyword",
    TT.ELSE: "keyword",
    TT.WHILE: "keyword",
    TT.PRINT: "keyword",
    TT.NUMBER: "number",
    TT.STRING: "string",
    TT.IDENT: "identifier",
    TT.PLUS: "operator",
    TT.MINUS: "operator",
    TT.STAR: "operator",
    TT.SLASH: "operator",
    TT.EQ: "operator",
    TT.NEQ: "operator",
    TT.LT: "operator",
    TT.LTE: "operator",
    TT.GT: "operator",
    TT.GTE: "operator",
    TT.AND: "operator",
    TT.OR: "operator",
    TT.NEG: "operator",
    TT.ASSIGN: "operator",
    TT.LPAR: "punctuation",
    TT.RPAR: "punctuation",
    TT.LBRACE: "punctuation",
    TT.RBRACE: "punctuation",
    TT.SEMI: "punctuation",
}


def _gap_fragments(gap: str) -> StyleAndTextTuples:
    """Whitespace between tokens, with any comment in it styled as such."""
    # A gap holds only whitespace and comments, so the first '/' opens a comment.
    start = gap.find("/")
    if start < 0:
        return [("", gap)]

    fragments: StyleAndTextTuples = []
    if start > 0:
        fragments.append(("", gap[:start]))
    fragments.append((GROUP_STYLE["comment"], gap[start:]))
    return fragments


def _highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    try:
        tokens = KLexer(text).tokenize()
    except LexError:
        return [("", text)]

    result: StyleAndTextTuples = []
    pos = 0

    for tok in tokens:
        if tok.type == TT.EOF:
            continue
        tok_text = str(tok.value)

        # Unstyled gap before token.
        if tok.pos > pos:
            result.extend(_gap_fragments(text[pos:tok.pos]))

        group = _TT_GROUP.get(tok.type, "")
        result.append((GROUP_STYLE.get(group, ""), tok_text))
        pos = tok.pos + len(tok_text)

    # Trailing text (whitespace or a comment).
    if pos < len(text):
        result.extend(_gap_fragments(text[pos:]))

    return result if result else [("", text)]


class KestrelLexer(Lexer):
    """prompt_toolkit Lexer that highlights Kestrel source using the RD lexer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines

        # Pre-compute highlights lazily, once per line.
        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
