"""
phpsniff_shims/helpers.py
═════════════════════════

Structural lookups over a :class:`~phpsniff_shims.tokens.TokenStream`
that several sniffs share: a function's return type hint, the doc block
attached to a declaration, and a function's name.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet, List, Optional

from phpsniff_shims.tokens import (
    EMPTY_TOKENS,
    TokenKind,
    TokenStream,
)


@dataclass(frozen=True)
class TypeHint:
    """
    A declared return type.

    Attributes
    ----------
    name     : the hint as written, whitespace and comments removed (``?Foo``)
    nullable : ``?`` prefix, or a union containing ``null``, or ``null`` itself
    start    : index of the first token of the hint
    end      : index of the last token of the hint
    """
    name: str
    nullable: bool
    start: int
    end: int

    @property
    def types(self) -> List[str]:
        return [t for t in re.split(r"[|&()]", self.name.lstrip("?")) if t]


# Tokens that may appear inside a return type (DNF types included).
_TYPE_TOKENS: FrozenSet[TokenKind] = frozenset({
    TokenKind.NULLABLE,
    TokenKind.STRING,
    TokenKind.NULL,
    TokenKind.TRUE,
    TokenKind.FALSE,
    TokenKind.STATIC,
    TokenKind.NS_SEPARATOR,
    TokenKind.BITWISE_OR,
    TokenKind.BITWISE_AND,
    TokenKind.OPEN_PARENTHESIS,
    TokenKind.CLOSE_PARENTHESIS,
})


def _next_code(tokens: TokenStream, start: int) -> Optional[int]:
    return tokens.find_next(EMPTY_TOKENS, start, exclude=True)


def find_parameter_opener(tokens: TokenStream, function_ptr: int) -> Optional[int]:
    """Index of the ``(`` opening the parameter list, skipping ``&`` and the name."""
    ptr = _next_code(tokens, function_ptr + 1)
    if ptr is not None and tokens[ptr].kind is TokenKind.BITWISE_AND:
        ptr = _next_code(tokens, ptr + 1)
    if ptr is not None and tokens[ptr].kind is TokenKind.STRING:
        ptr = _next_code(tokens, ptr + 1)
    if ptr is None or tokens[ptr].kind is not TokenKind.OPEN_PARENTHESIS:
        return None
    return ptr


def find_return_type_hint(tokens: TokenStream, function_ptr: int) -> Optional[TypeHint]:
    """
    Return type hint of the function or closure at *function_ptr*.

    ``None`` when the function declares no return type, or when the token
    is not a declaration at all (``use function Foo\\bar;``).
    """
    opener = find_parameter_opener(tokens, function_ptr)
    if opener is None:
        return None
    closer = tokens.match(opener)
    if closer is None:
        return None

    ptr = _next_code(tokens, closer + 1)
    if ptr is not None and tokens[ptr].kind is TokenKind.USE:
        use_opener = _next_code(tokens, ptr + 1)
        if use_opener is None or tokens[use_opener].kind is not TokenKind.OPEN_PARENTHESIS:
            return None
        use_closer = tokens.match(use_opener)
        if use_closer is None:
            return None
        ptr = _next_code(tokens, use_closer + 1)
    if ptr is None or tokens[ptr].kind is not TokenKind.COLON:
        return None

    start = _next_code(tokens, ptr + 1)
    if start is None or tokens[start].kind not in _TYPE_TOKENS:
        return None

    parts: List[str] = []
    end = start
    i = start
    while i < len(tokens):
        tok = tokens[i]
        if tok.kind in EMPTY_TOKENS:
            i += 1
            continue
        if tok.kind not in _TYPE_TOKENS:
            break
        parts.append(tok.content)
        end = i
        i += 1

    name = "".join(parts)
    members = [t.lower() for t in re.split(r"[|()]", name.lstrip("?"))]
    nullable = name.startswith("?") or "null" in members
    return TypeHint(name=name, nullable=nullable, start=start, end=end)


def find_related_doc_block(tokens: TokenStream, stack_ptr: int) -> Optional[int]:
    """
    Close tag index of the doc block directly above the declaration.

    The declaration's line may start with modifiers (``public static
    function``).  One blank line between the doc block and the line is
    tolerated; anything else means the declaration has no doc block.
    """
    beginning = tokens.line_start(stack_ptr)

    for offset in (2, 3):
        candidate = beginning - offset
        if candidate < 0:
            break
        if tokens[candidate].kind is TokenKind.DOC_COMMENT_CLOSE_TAG:
            return candidate
    return None


def find_doc_comment_open_pointer(tokens: TokenStream, stack_ptr: int) -> Optional[int]:
    closer = find_related_doc_block(tokens, stack_ptr)
    if closer is None:
        return None
    return tokens.comment_opener(closer)


def function_name(tokens: TokenStream, function_ptr: int) -> str:
    """Declared name, or ``"closure"`` for anonymous functions."""
    ptr = _next_code(tokens, function_ptr + 1)
    if ptr is not None and tokens[ptr].kind is TokenKind.BITWISE_AND:
        ptr = _next_code(tokens, ptr + 1)
    if ptr is not None and tokens[ptr].kind is TokenKind.STRING:
        return tokens[ptr].content
    return "closure"


__all__ = [
    "TypeHint",
    "find_parameter_opener",
    "find_return_type_hint",
    "find_related_doc_block",
    "find_doc_comment_open_pointer",
    "function_name",
]
