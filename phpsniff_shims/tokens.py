"""
phpsniff_shims/tokens.py
════════════════════════

PHP tokenizer and random-access token stream.

The tokenizer is a single regex-driven left-to-right pass over PHP source
text.  Its vocabulary follows PHP_CodeSniffer closely (``T_FUNCTION``,
``T_DOC_COMMENT_TAG``, ``T_NULLABLE`` ...) so that sniffs written against
this module read like their PHP counterparts.

Properties relied on by the sniffs
──────────────────────────────────

  * Whitespace is split per line: a whitespace run ends at, and includes,
    a newline.  Every newline therefore terminates a token, and "the
    beginning of the line" is a cheap backwards walk.
  * Doc comments (``/** ... */``) are split into open tag, stars, tags,
    strings, whitespace and close tag tokens.
  * Matching pairs (doc comment open/close, parentheses, curly and square
    brackets) are recorded in a side table while tokenizing, once per
    file.  Lookups never re-scan.
  * Tokenizing never fails.  Unterminated comments and strings run to
    the end of input; unknown characters become ``UNKNOWN`` tokens.
    ``"".join(t.content for t in stream) == source`` always holds.

Usage
─────
>>> stream = tokenize("<?php\\nfunction foo(): ?int {}\\n")
>>> ptr = stream.find_next(TokenKind.FUNCTION, 0)
>>> stream[ptr].content
'function'
>>> stream[stream.find_next(TokenKind.NULLABLE, ptr)].line
2
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import (
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
    overload,
)


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — TOKEN MODEL
# ═════════════════════════════════════════════════════════════════════════

class TokenKind(Enum):
    """Lexical token classes (PHP_CodeSniffer naming without the ``T_``)."""

    # Structure
    OPEN_TAG = auto()
    OPEN_TAG_WITH_ECHO = auto()
    CLOSE_TAG = auto()
    INLINE_HTML = auto()
    WHITESPACE = auto()
    COMMENT = auto()
    ATTRIBUTE = auto()

    # Doc comments
    DOC_COMMENT_OPEN_TAG = auto()
    DOC_COMMENT_CLOSE_TAG = auto()
    DOC_COMMENT_WHITESPACE = auto()
    DOC_COMMENT_STAR = auto()
    DOC_COMMENT_TAG = auto()
    DOC_COMMENT_STRING = auto()

    # Literals and names
    VARIABLE = auto()
    CONSTANT_ENCAPSED_STRING = auto()
    BACKTICK = auto()
    HEREDOC = auto()
    LNUMBER = auto()
    DNUMBER = auto()
    TRUE = auto()
    FALSE = auto()
    NULL = auto()
    STRING = auto()

    # Keywords
    FUNCTION = auto()
    FN = auto()
    NAMESPACE = auto()
    USE = auto()
    CLASS = auto()
    INTERFACE = auto()
    TRAIT = auto()
    RETURN = auto()
    PUBLIC = auto()
    PROTECTED = auto()
    PRIVATE = auto()
    STATIC = auto()
    ABSTRACT = auto()
    FINAL = auto()
    READONLY = auto()
    VAR = auto()
    NEW = auto()
    INSTANCEOF = auto()
    IF = auto()
    ELSEIF = auto()
    ELSE = auto()
    WHILE = auto()
    FOR = auto()
    FOREACH = auto()
    AS = auto()
    MATCH = auto()
    LOGICAL_AND = auto()
    LOGICAL_OR = auto()
    LOGICAL_XOR = auto()

    # Comparison
    IS_IDENTICAL = auto()
    IS_NOT_IDENTICAL = auto()
    IS_EQUAL = auto()
    IS_NOT_EQUAL = auto()
    SPACESHIP = auto()
    IS_SMALLER_OR_EQUAL = auto()
    IS_GREATER_OR_EQUAL = auto()
    LESS_THAN = auto()
    GREATER_THAN = auto()
    COALESCE = auto()

    # Assignment
    EQUAL = auto()
    PLUS_EQUAL = auto()
    MINUS_EQUAL = auto()
    MUL_EQUAL = auto()
    DIV_EQUAL = auto()
    CONCAT_EQUAL = auto()
    MOD_EQUAL = auto()
    POW_EQUAL = auto()
    AND_EQUAL = auto()
    OR_EQUAL = auto()
    XOR_EQUAL = auto()
    SL_EQUAL = auto()
    SR_EQUAL = auto()
    COALESCE_EQUAL = auto()
    DOUBLE_ARROW = auto()

    # Arithmetic, bitwise, boolean
    PLUS = auto()
    MINUS = auto()
    MULTIPLY = auto()
    DIVIDE = auto()
    MODULUS = auto()
    POW = auto()
    INC = auto()
    DEC = auto()
    SL = auto()
    SR = auto()
    STRING_CONCAT = auto()
    BITWISE_AND = auto()
    BITWISE_OR = auto()
    BITWISE_XOR = auto()
    BITWISE_NOT = auto()
    BOOLEAN_AND = auto()
    BOOLEAN_OR = auto()
    BOOLEAN_NOT = auto()

    # Punctuation
    NULLABLE = auto()
    INLINE_THEN = auto()
    COLON = auto()
    SEMICOLON = auto()
    COMMA = auto()
    OBJECT_OPERATOR = auto()
    NULLSAFE_OBJECT_OPERATOR = auto()
    DOUBLE_COLON = auto()
    ELLIPSIS = auto()
    ASPERAND = auto()
    DOLLAR = auto()
    NS_SEPARATOR = auto()
    OPEN_PARENTHESIS = auto()
    CLOSE_PARENTHESIS = auto()
    OPEN_CURLY_BRACKET = auto()
    CLOSE_CURLY_BRACKET = auto()
    OPEN_SQUARE_BRACKET = auto()
    CLOSE_SQUARE_BRACKET = auto()

    UNKNOWN = auto()


@dataclass(frozen=True)
class Token:
    """A single classified lexeme."""
    kind: TokenKind
    content: str
    line: int = 1
    column: int = 1

    @property
    def type(self) -> str:
        """PHP_CodeSniffer-style type name, e.g. ``T_DOC_COMMENT_TAG``."""
        return f"T_{self.kind.name}"

    def __repr__(self) -> str:
        return f"<{self.type} {self.content!r} @{self.line}:{self.column}>"


# ── Kind sets (mirrors PHP_CodeSniffer's Tokens class) ──────────────────

DOC_COMMENT_TOKENS: FrozenSet[TokenKind] = frozenset({
    TokenKind.DOC_COMMENT_OPEN_TAG,
    TokenKind.DOC_COMMENT_CLOSE_TAG,
    TokenKind.DOC_COMMENT_WHITESPACE,
    TokenKind.DOC_COMMENT_STAR,
    TokenKind.DOC_COMMENT_TAG,
    TokenKind.DOC_COMMENT_STRING,
})

EMPTY_TOKENS: FrozenSet[TokenKind] = frozenset({
    TokenKind.WHITESPACE,
    TokenKind.COMMENT,
}) | DOC_COMMENT_TOKENS

COMPARISON_TOKENS: FrozenSet[TokenKind] = frozenset({
    TokenKind.IS_EQUAL,
    TokenKind.IS_IDENTICAL,
    TokenKind.IS_NOT_EQUAL,
    TokenKind.IS_NOT_IDENTICAL,
    TokenKind.LESS_THAN,
    TokenKind.GREATER_THAN,
    TokenKind.IS_SMALLER_OR_EQUAL,
    TokenKind.IS_GREATER_OR_EQUAL,
    TokenKind.SPACESHIP,
    TokenKind.COALESCE,
})

ASSIGNMENT_TOKENS: FrozenSet[TokenKind] = frozenset({
    TokenKind.EQUAL,
    TokenKind.PLUS_EQUAL,
    TokenKind.MINUS_EQUAL,
    TokenKind.MUL_EQUAL,
    TokenKind.DIV_EQUAL,
    TokenKind.CONCAT_EQUAL,
    TokenKind.MOD_EQUAL,
    TokenKind.POW_EQUAL,
    TokenKind.AND_EQUAL,
    TokenKind.OR_EQUAL,
    TokenKind.XOR_EQUAL,
    TokenKind.SL_EQUAL,
    TokenKind.SR_EQUAL,
    TokenKind.COALESCE_EQUAL,
    TokenKind.DOUBLE_ARROW,
})

ARITHMETIC_TOKENS: FrozenSet[TokenKind] = frozenset({
    TokenKind.PLUS,
    TokenKind.MINUS,
    TokenKind.MULTIPLY,
    TokenKind.DIVIDE,
    TokenKind.MODULUS,
    TokenKind.POW,
})

BOOLEAN_OPERATORS: FrozenSet[TokenKind] = frozenset({
    TokenKind.BOOLEAN_AND,
    TokenKind.BOOLEAN_OR,
    TokenKind.LOGICAL_AND,
    TokenKind.LOGICAL_OR,
    TokenKind.LOGICAL_XOR,
})


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — TOKEN STREAM
# ═════════════════════════════════════════════════════════════════════════

KindSpec = Union[TokenKind, Iterable[TokenKind]]


def _as_kind_set(kinds: KindSpec) -> FrozenSet[TokenKind]:
    if isinstance(kinds, TokenKind):
        return frozenset((kinds,))
    return frozenset(kinds)


class TokenStream(Sequence[Token]):
    """
    Indexed, random-access sequence of tokens for one file.

    Parameters
    ----------
    tokens : the tokens in source order
    pairs  : matched-pair side table, index → partner index (symmetric)
    """

    def __init__(
        self,
        tokens: Sequence[Token],
        pairs: Optional[Dict[int, int]] = None,
    ) -> None:
        self._tokens: Tuple[Token, ...] = tuple(tokens)
        self._pairs: Dict[int, int] = dict(pairs or {})

    # ── Sequence protocol ───────────────────────────────────────────────

    @overload
    def __getitem__(self, index: int) -> Token: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[Token]: ...

    def __getitem__(self, index):
        return self._tokens[index]

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def __repr__(self) -> str:
        return f"<TokenStream {len(self._tokens)} tokens>"

    # ── Pair bookkeeping ────────────────────────────────────────────────

    def match(self, index: int) -> Optional[int]:
        """Partner index of a bracket or doc comment delimiter."""
        return self._pairs.get(index)

    def comment_closer(self, index: int) -> Optional[int]:
        if self._tokens[index].kind is not TokenKind.DOC_COMMENT_OPEN_TAG:
            return None
        return self._pairs.get(index)

    def comment_opener(self, index: int) -> Optional[int]:
        if self._tokens[index].kind is not TokenKind.DOC_COMMENT_CLOSE_TAG:
            return None
        return self._pairs.get(index)

    # ── Sibling navigation ──────────────────────────────────────────────

    def find_next(
        self,
        kinds: KindSpec,
        start: int,
        end: Optional[int] = None,
        exclude: bool = False,
        value: Optional[str] = None,
    ) -> Optional[int]:
        """
        First index ``>= start`` and ``< end`` whose kind is in *kinds*.

        With ``exclude=True`` the first index whose kind is *not* in
        *kinds* is returned instead.  *value* additionally requires an
        exact content match.
        """
        wanted = _as_kind_set(kinds)
        stop = len(self._tokens) if end is None else min(end, len(self._tokens))
        for i in range(max(start, 0), stop):
            tok = self._tokens[i]
            if (tok.kind in wanted) == exclude:
                continue
            if value is not None and tok.content != value:
                continue
            return i
        return None

    def find_previous(
        self,
        kinds: KindSpec,
        start: int,
        end: Optional[int] = None,
        exclude: bool = False,
        value: Optional[str] = None,
    ) -> Optional[int]:
        """
        First index ``<= start`` and ``>= end`` (scanning backwards) whose
        kind is in *kinds*, or not in *kinds* with ``exclude=True``.
        """
        wanted = _as_kind_set(kinds)
        stop = 0 if end is None else max(end, 0)
        for i in range(min(start, len(self._tokens) - 1), stop - 1, -1):
            tok = self._tokens[i]
            if (tok.kind in wanted) == exclude:
                continue
            if value is not None and tok.content != value:
                continue
            return i
        return None

    def line_start(self, index: int) -> int:
        """Index of the first token on the same line as *index*."""
        line = self._tokens[index].line
        while index > 0 and self._tokens[index - 1].line == line:
            index -= 1
        return index

    def indices_of(self, kinds: KindSpec) -> List[int]:
        wanted = _as_kind_set(kinds)
        return [i for i, tok in enumerate(self._tokens) if tok.kind in wanted]

    def contents(self) -> str:
        return "".join(tok.content for tok in self._tokens)


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — TOKENIZER
# ═════════════════════════════════════════════════════════════════════════

_NAME_START = r"A-Za-z_\x80-\uffff"
_NAME_CHAR = r"\w\x80-\uffff"

_PHP_TOKEN_RE = re.compile(
    r"""
      (?P<close_tag>\?>(?:\r\n|\n)?)
    | (?P<doc_comment>/\*\*(?!/)[\s\S]*?(?:\*/|\Z))
    | (?P<block_comment>/\*[\s\S]*?(?:\*/|\Z))
    | (?P<line_comment>(?://|\#(?!\[))[^\r\n?]*(?:\?(?!>)[^\r\n?]*)*(?:\r\n|\n)?)
    | (?P<attribute>\#\[)
    | (?P<whitespace>[ \t\f\v]*(?:\r\n|\n|\r)|[ \t\f\v]+)
    | (?P<heredoc><<<[ \t]*(?P<hd_quote>["']?)(?P<hd_label>[A-Za-z_]\w*)(?P=hd_quote)(?:\r\n|\n))
    | (?P<variable>\$[""" + _NAME_START + "][" + _NAME_CHAR + r"""]*)
    | (?P<single_string>'(?:[^'\\]|\\[\s\S])*'?)
    | (?P<double_string>"(?:[^"\\]|\\[\s\S])*"?)
    | (?P<backtick>`[^`]*`?)
    | (?P<dnumber>\d[\d_]*\.\d[\d_]*(?:[eE][+-]?\d+)?|\d[\d_]*[eE][+-]?\d+)
    | (?P<lnumber>0[xX][\da-fA-F_]+|0[bB][01_]+|\d[\d_]*)
    | (?P<name>\\?[""" + _NAME_START + "][" + _NAME_CHAR + r"""]*(?:\\[""" + _NAME_START + "][" + _NAME_CHAR + r"""]*)*)
    | (?P<operator><=>|===|!==|\*\*=|\.\.\.|<<=|>>=|\?\?=|\?->|==|!=|<>|<=|>=|&&|\|\||\+\+|--|\+=|-=|\*=|/=|\.=|%=|&=|\|=|\^=|\*\*|<<|>>|\?\?|->|=>|::|[=+\-*/%.<>!&|^~?:;,(){}\[\]@$\\])
    | (?P<unknown>[\s\S])
    """,
    re.VERBOSE,
)

_OPEN_TAG_RE = re.compile(r"<\?php(?:\r\n|[ \t\n\r]|\Z)|<\?=", re.IGNORECASE)

_NULLABLE_LOOKAHEAD_RE = re.compile(r"[ \t\r\n]*[\\" + _NAME_START + "]")

_DOC_TAG_RE = re.compile(r"@[A-Za-z_\\][\w\-\\]*")
_DOC_WHITESPACE_RE = re.compile(r"[ \t\f\v]+")
_NEWLINE_RE = re.compile(r"\r\n|\n|\r")

_KEYWORDS: Dict[str, TokenKind] = {
    "function": TokenKind.FUNCTION,
    "fn": TokenKind.FN,
    "namespace": TokenKind.NAMESPACE,
    "use": TokenKind.USE,
    "class": TokenKind.CLASS,
    "interface": TokenKind.INTERFACE,
    "trait": TokenKind.TRAIT,
    "return": TokenKind.RETURN,
    "public": TokenKind.PUBLIC,
    "protected": TokenKind.PROTECTED,
    "private": TokenKind.PRIVATE,
    "static": TokenKind.STATIC,
    "abstract": TokenKind.ABSTRACT,
    "final": TokenKind.FINAL,
    "readonly": TokenKind.READONLY,
    "var": TokenKind.VAR,
    "new": TokenKind.NEW,
    "instanceof": TokenKind.INSTANCEOF,
    "if": TokenKind.IF,
    "elseif": TokenKind.ELSEIF,
    "else": TokenKind.ELSE,
    "while": TokenKind.WHILE,
    "for": TokenKind.FOR,
    "foreach": TokenKind.FOREACH,
    "as": TokenKind.AS,
    "match": TokenKind.MATCH,
    "and": TokenKind.LOGICAL_AND,
    "or": TokenKind.LOGICAL_OR,
    "xor": TokenKind.LOGICAL_XOR,
    "true": TokenKind.TRUE,
    "false": TokenKind.FALSE,
    "null": TokenKind.NULL,
}

_OPERATORS: Dict[str, TokenKind] = {
    "<=>": TokenKind.SPACESHIP,
    "===": TokenKind.IS_IDENTICAL,
    "!==": TokenKind.IS_NOT_IDENTICAL,
    "**=": TokenKind.POW_EQUAL,
    "...": TokenKind.ELLIPSIS,
    "<<=": TokenKind.SL_EQUAL,
    ">>=": TokenKind.SR_EQUAL,
    "??=": TokenKind.COALESCE_EQUAL,
    "?->": TokenKind.NULLSAFE_OBJECT_OPERATOR,
    "==": TokenKind.IS_EQUAL,
    "!=": TokenKind.IS_NOT_EQUAL,
    "<>": TokenKind.IS_NOT_EQUAL,
    "<=": TokenKind.IS_SMALLER_OR_EQUAL,
    ">=": TokenKind.IS_GREATER_OR_EQUAL,
    "&&": TokenKind.BOOLEAN_AND,
    "||": TokenKind.BOOLEAN_OR,
    "++": TokenKind.INC,
    "--": TokenKind.DEC,
    "+=": TokenKind.PLUS_EQUAL,
    "-=": TokenKind.MINUS_EQUAL,
    "*=": TokenKind.MUL_EQUAL,
    "/=": TokenKind.DIV_EQUAL,
    ".=": TokenKind.CONCAT_EQUAL,
    "%=": TokenKind.MOD_EQUAL,
    "&=": TokenKind.AND_EQUAL,
    "|=": TokenKind.OR_EQUAL,
    "^=": TokenKind.XOR_EQUAL,
    "**": TokenKind.POW,
    "<<": TokenKind.SL,
    ">>": TokenKind.SR,
    "??": TokenKind.COALESCE,
    "->": TokenKind.OBJECT_OPERATOR,
    "=>": TokenKind.DOUBLE_ARROW,
    "::": TokenKind.DOUBLE_COLON,
    "=": TokenKind.EQUAL,
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.MULTIPLY,
    "/": TokenKind.DIVIDE,
    "%": TokenKind.MODULUS,
    ".": TokenKind.STRING_CONCAT,
    "<": TokenKind.LESS_THAN,
    ">": TokenKind.GREATER_THAN,
    "!": TokenKind.BOOLEAN_NOT,
    "&": TokenKind.BITWISE_AND,
    "|": TokenKind.BITWISE_OR,
    "^": TokenKind.BITWISE_XOR,
    "~": TokenKind.BITWISE_NOT,
    "?": TokenKind.INLINE_THEN,
    ":": TokenKind.COLON,
    ";": TokenKind.SEMICOLON,
    ",": TokenKind.COMMA,
    "(": TokenKind.OPEN_PARENTHESIS,
    ")": TokenKind.CLOSE_PARENTHESIS,
    "{": TokenKind.OPEN_CURLY_BRACKET,
    "}": TokenKind.CLOSE_CURLY_BRACKET,
    "[": TokenKind.OPEN_SQUARE_BRACKET,
    "]": TokenKind.CLOSE_SQUARE_BRACKET,
    "@": TokenKind.ASPERAND,
    "$": TokenKind.DOLLAR,
    "\\": TokenKind.NS_SEPARATOR,
}

# Bracket kinds: opener → (closer, pairing stack name)
_OPENERS: Dict[TokenKind, str] = {
    TokenKind.OPEN_PARENTHESIS: "paren",
    TokenKind.OPEN_CURLY_BRACKET: "curly",
    TokenKind.OPEN_SQUARE_BRACKET: "square",
    TokenKind.ATTRIBUTE: "square",
}
_CLOSERS: Dict[TokenKind, str] = {
    TokenKind.CLOSE_PARENTHESIS: "paren",
    TokenKind.CLOSE_CURLY_BRACKET: "curly",
    TokenKind.CLOSE_SQUARE_BRACKET: "square",
}

# A `?` directly after one of these, and before a type name, is a
# nullable marker rather than a ternary.
_NULLABLE_CONTEXT: FrozenSet[TokenKind] = frozenset({
    TokenKind.OPEN_PARENTHESIS,
    TokenKind.COMMA,
    TokenKind.COLON,
    TokenKind.PUBLIC,
    TokenKind.PROTECTED,
    TokenKind.PRIVATE,
    TokenKind.STATIC,
    TokenKind.READONLY,
    TokenKind.VAR,
})

# Keywords after these are plain names (`$a->list`, `Foo::class`).
_MEMBER_ACCESS: FrozenSet[TokenKind] = frozenset({
    TokenKind.OBJECT_OPERATOR,
    TokenKind.NULLSAFE_OBJECT_OPERATOR,
    TokenKind.DOUBLE_COLON,
    TokenKind.FUNCTION,
})


class PhpTokenizer:
    """
    Converts PHP source text into a :class:`TokenStream`.

    A tokenizer instance is single-use per call to :meth:`tokenize` and
    keeps no state between calls.
    """

    def __init__(self) -> None:
        self._reset("")

    def _reset(self, source: str) -> None:
        self._source = source
        self._tokens: List[Token] = []
        self._pairs: Dict[int, int] = {}
        self._stacks: Dict[str, List[int]] = {"paren": [], "curly": [], "square": []}
        self._line = 1
        self._column = 1
        self._last_code: Optional[TokenKind] = None

    # ── public API ──────────────────────────────────────────────────────

    def tokenize(self, source: str) -> TokenStream:
        self._reset(source)
        pos = 0
        end = len(source)
        while pos < end:
            m = _OPEN_TAG_RE.search(source, pos)
            if m is None:
                self._emit(TokenKind.INLINE_HTML, source[pos:])
                break
            if m.start() > pos:
                self._emit(TokenKind.INLINE_HTML, source[pos:m.start()])
            if m.group(0).startswith("<?="):
                self._emit(TokenKind.OPEN_TAG_WITH_ECHO, m.group(0))
            else:
                self._emit(TokenKind.OPEN_TAG, m.group(0))
            pos = self._scan_php(m.end())
        stream = TokenStream(self._tokens, self._pairs)
        self._reset("")
        return stream

    # ── scanning ────────────────────────────────────────────────────────

    def _scan_php(self, pos: int) -> int:
        """Scan PHP code from *pos*; return the position after ``?>`` or EOF."""
        source = self._source
        end = len(source)
        while pos < end:
            m = _PHP_TOKEN_RE.match(source, pos)
            # The final alternative matches any character, so m is never None.
            assert m is not None
            group = m.lastgroup
            text = m.group(0)

            if group == "close_tag":
                self._emit(TokenKind.CLOSE_TAG, text)
                return m.end()
            if group == "heredoc":
                pos = self._scan_heredoc(m)
                continue

            if group == "doc_comment":
                self._emit_doc_comment(text)
            elif group == "block_comment" or group == "line_comment":
                self._emit(TokenKind.COMMENT, text)
            elif group == "attribute":
                self._emit(TokenKind.ATTRIBUTE, text)
            elif group == "whitespace":
                self._emit(TokenKind.WHITESPACE, text)
            elif group == "variable":
                self._emit(TokenKind.VARIABLE, text)
            elif group in ("single_string", "double_string"):
                self._emit(TokenKind.CONSTANT_ENCAPSED_STRING, text)
            elif group == "backtick":
                self._emit(TokenKind.BACKTICK, text)
            elif group == "dnumber":
                self._emit(TokenKind.DNUMBER, text)
            elif group == "lnumber":
                self._emit(TokenKind.LNUMBER, text)
            elif group == "name":
                self._emit(self._classify_name(text), text)
            elif group == "operator":
                kind = _OPERATORS[text]
                if kind is TokenKind.INLINE_THEN and self._is_nullable(m.end()):
                    kind = TokenKind.NULLABLE
                self._emit(kind, text)
            else:
                self._emit(TokenKind.UNKNOWN, text)
            pos = m.end()
        return pos

    def _scan_heredoc(self, m: "re.Match[str]") -> int:
        label = m.group("hd_label")
        closing = re.compile(r"^[ \t]*" + re.escape(label) + r"\b", re.MULTILINE)
        found = closing.search(self._source, m.end())
        stop = found.end() if found else len(self._source)
        self._emit(TokenKind.HEREDOC, self._source[m.start():stop])
        return stop

    def _classify_name(self, text: str) -> TokenKind:
        if "\\" in text:
            return TokenKind.STRING
        kind = _KEYWORDS.get(text.lower())
        if kind is None:
            return TokenKind.STRING
        if self._last_code in _MEMBER_ACCESS:
            return TokenKind.STRING
        return kind

    def _is_nullable(self, after: int) -> bool:
        if self._last_code not in _NULLABLE_CONTEXT:
            return False
        return _NULLABLE_LOOKAHEAD_RE.match(self._source, after) is not None

    # ── doc comments ────────────────────────────────────────────────────

    def _emit_doc_comment(self, text: str) -> None:
        terminated = text.endswith("*/") and len(text) >= 5
        body = text[3:-2] if terminated else text[3:]

        opener = self._emit(TokenKind.DOC_COMMENT_OPEN_TAG, "/**")
        pos = 0
        line_start = False
        while pos < len(body):
            nl = _NEWLINE_RE.match(body, pos)
            if nl:
                self._emit(TokenKind.DOC_COMMENT_WHITESPACE, nl.group(0))
                pos = nl.end()
                line_start = True
                continue
            ws = _DOC_WHITESPACE_RE.match(body, pos)
            if ws:
                self._emit(TokenKind.DOC_COMMENT_WHITESPACE, ws.group(0))
                pos = ws.end()
                continue
            if line_start and body[pos] == "*":
                self._emit(TokenKind.DOC_COMMENT_STAR, "*")
                pos += 1
                line_start = False
                continue
            line_start = False
            tag = _DOC_TAG_RE.match(body, pos)
            if tag:
                self._emit(TokenKind.DOC_COMMENT_TAG, tag.group(0))
                pos = tag.end()
                continue
            eol = _NEWLINE_RE.search(body, pos)
            stop = eol.start() if eol else len(body)
            chunk = body[pos:stop]
            stripped = chunk.rstrip(" \t\f\v")
            self._emit(TokenKind.DOC_COMMENT_STRING, stripped)
            if len(stripped) < len(chunk):
                self._emit(TokenKind.DOC_COMMENT_WHITESPACE, chunk[len(stripped):])
            pos = stop

        if terminated:
            closer = self._emit(TokenKind.DOC_COMMENT_CLOSE_TAG, "*/")
            self._pairs[opener] = closer
            self._pairs[closer] = opener

    # ── emission ────────────────────────────────────────────────────────

    def _emit(self, kind: TokenKind, content: str) -> int:
        index = len(self._tokens)
        self._tokens.append(Token(kind, content, self._line, self._column))

        stack_name = _OPENERS.get(kind)
        if stack_name is not None:
            self._stacks[stack_name].append(index)
        else:
            stack_name = _CLOSERS.get(kind)
            if stack_name is not None and self._stacks[stack_name]:
                opener = self._stacks[stack_name].pop()
                self._pairs[opener] = index
                self._pairs[index] = opener

        if kind not in EMPTY_TOKENS:
            self._last_code = kind

        newlines = len(_NEWLINE_RE.findall(content))
        if newlines:
            self._line += newlines
            tail = _NEWLINE_RE.split(content)[-1]
            self._column = len(tail) + 1
        else:
            self._column += len(content)
        return index


def tokenize(source: str) -> TokenStream:
    """Tokenize PHP *source* text."""
    return PhpTokenizer().tokenize(source)


__all__ = [
    "TokenKind",
    "Token",
    "TokenStream",
    "PhpTokenizer",
    "tokenize",
    "DOC_COMMENT_TOKENS",
    "EMPTY_TOKENS",
    "COMPARISON_TOKENS",
    "ASSIGNMENT_TOKENS",
    "ARITHMETIC_TOKENS",
    "BOOLEAN_OPERATORS",
]
