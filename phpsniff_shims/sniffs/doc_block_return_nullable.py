"""
phpsniff_shims/sniffs/doc_block_return_nullable.py
══════════════════════════════════════════════════

Keeps the ``@return`` annotation of a doc block consistent with the
nullability of the declared return type.

    /**
     * @return Foo               ← ReturnNullableMissing, fixed to Foo|null
     */
    public function find(): ?Foo

    /**
     * @return Foo|null          ← ReturnNullableInvalid, fixed to Foo
     */
    public function get(): Foo

Pipeline per declaration
────────────────────────

    find_doc_block ─► find_return_tag ─► find_type_list_token
          │                                      │
          ▼                                      ▼
       (skip)                          parse_type_list ─► Outcome
                                                 │
                                                 ▼
                                     remove_null / add_null (fix mode)

Annotations using generic syntax (``array<int, Foo>``) are left alone.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, ClassVar, FrozenSet, List, Optional, Tuple

from phpsniff_shims.checkers import Checker
from phpsniff_shims.errors import InternalError, PhpSniffErrorCodes
from phpsniff_shims.files import PhpFile
from phpsniff_shims.helpers import (
    find_related_doc_block,
    find_return_type_hint,
    function_name,
)
from phpsniff_shims.tokens import TokenKind, TokenStream

_log = logging.getLogger(__name__)

RETURN_TAG = "@return"
GENERIC_MARKER = "<"

_TYPE_RUN_RE = re.compile(r"\s*(?:@return\b\s*)?(\S*)")
_LEADING_RUN_RE = re.compile(r"(\s*)(\S*)(.*)", re.DOTALL)


class Outcome(Enum):
    """Result of checking one declaration."""
    SKIPPED = "skipped"
    NO_VIOLATION = "no-violation"
    VIOLATION_ONLY = "violation-only"
    VIOLATION_FIXED = "violation-fixed"
    FIX_FAILED = "fix-failed"


@dataclass(frozen=True)
class DocBlock:
    start: int
    end: int


# ── locating ────────────────────────────────────────────────────────────

def find_doc_block(tokens: TokenStream, declaration_ptr: int) -> Optional[DocBlock]:
    """Doc block directly above the declaration, or ``None``."""
    closer = find_related_doc_block(tokens, declaration_ptr)
    if closer is None:
        return None
    opener = tokens.comment_opener(closer)
    if opener is None:
        return None
    return DocBlock(start=opener, end=closer)


def find_return_tag(tokens: TokenStream, block: DocBlock) -> Optional[int]:
    """First ``@return`` tag inside *block*; later ones are ignored."""
    return tokens.find_next(
        TokenKind.DOC_COMMENT_TAG, block.start + 1, block.end, value=RETURN_TAG,
    )


def find_type_list_token(tokens: TokenStream, tag_ptr: int, block_end: int) -> Optional[int]:
    """
    The text token following ``@return`` on its line.

    Only doc whitespace may sit between the tag and the type list; a bare
    ``@return`` followed by a new line (or by the close tag) has none.
    """
    ptr = tokens.find_next(TokenKind.DOC_COMMENT_WHITESPACE, tag_ptr + 1, block_end, exclude=True)
    if ptr is None or tokens[ptr].kind is not TokenKind.DOC_COMMENT_STRING:
        return None
    return ptr


# ── parsing and rewriting ───────────────────────────────────────────────

def parse_type_list(raw: str) -> Optional[List[str]]:
    """
    Split the leading type run of *raw* on ``|``.

    ``None`` means the annotation uses generic syntax and must not be
    judged.  An empty list means there is no type to judge.

    >>> parse_type_list("Foo|null Some description")
    ['Foo', 'null']
    >>> parse_type_list("array<int, Foo>|null") is None
    True
    """
    if GENERIC_MARKER in raw:
        return None
    m = _TYPE_RUN_RE.match(raw)
    types = m.group(1) if m else ""
    if not types:
        return []
    return [part.strip() for part in types.split("|")]


def _split_leading_run(content: str) -> Tuple[str, str, str]:
    m = _LEADING_RUN_RE.match(content)
    assert m is not None
    return m.group(1), m.group(2), m.group(3)


def remove_null(content: str) -> str:
    """``Foo|null|Bar text`` → ``Foo|Bar text``."""
    lead, types, rest = _split_leading_run(content)
    kept = [t for t in types.split("|") if t != "null"]
    return lead + "|".join(kept) + rest


def add_null(content: str) -> str:
    """``|Foo| text`` → ``Foo|null text``."""
    lead, types, rest = _split_leading_run(content)
    return lead + types.strip("|") + "|null" + rest


# ── the sniff ───────────────────────────────────────────────────────────

class DocBlockReturnNullableTypeChecker(Checker):
    """
    Reports ``@return`` annotations whose ``null`` member disagrees with
    the declared return type, and fixes the annotation in fix mode.
    """

    name: ClassVar[str] = "doc-block-return-nullable"
    description: ClassVar[str] = (
        "Doc block @return must contain null exactly when the return type hint is nullable"
    )
    error_ids: ClassVar[FrozenSet[str]] = frozenset({
        "ReturnNullableInvalid",
        "ReturnNullableMissing",
    })

    MSG_INVALID = "Method should not have `null` in return type in doc block."
    MSG_MISSING = "Method does not have `null` in return type in doc block."

    def register(self) -> FrozenSet[TokenKind]:
        return frozenset({TokenKind.FUNCTION})

    def process(self, phpfile: PhpFile, stack_ptr: int) -> Outcome:
        tokens = phpfile.tokens
        hint = find_return_type_hint(tokens, stack_ptr)
        if hint is None:
            return Outcome.SKIPPED

        block = find_doc_block(tokens, stack_ptr)
        if block is None:
            return Outcome.SKIPPED
        tag_ptr = find_return_tag(tokens, block)
        if tag_ptr is None:
            return Outcome.SKIPPED
        types_ptr = find_type_list_token(tokens, tag_ptr, block.end)
        if types_ptr is None:
            return Outcome.SKIPPED

        types = parse_type_list(tokens[types_ptr].content)
        if types is None:
            _log.debug(
                "%s: skipping %s(), generic @return", phpfile.path,
                function_name(tokens, stack_ptr),
            )
            return Outcome.SKIPPED

        if hint.nullable:
            return self.assert_required_nullable_return_type(phpfile, stack_ptr, types)
        return self.assert_not_nullable_return_type(phpfile, stack_ptr, types)

    def assert_not_nullable_return_type(
        self, phpfile: PhpFile, stack_ptr: int, types: List[str],
    ) -> Outcome:
        if not types or "null" not in types:
            return Outcome.NO_VIOLATION
        if not phpfile.add_fixable_error(self.MSG_INVALID, stack_ptr, "ReturnNullableInvalid"):
            return Outcome.VIOLATION_ONLY
        return self._fix(phpfile, stack_ptr, remove_null)

    def assert_required_nullable_return_type(
        self, phpfile: PhpFile, stack_ptr: int, types: List[str],
    ) -> Outcome:
        if not types or "null" in types:
            return Outcome.NO_VIOLATION
        if not phpfile.add_fixable_error(self.MSG_MISSING, stack_ptr, "ReturnNullableMissing"):
            return Outcome.VIOLATION_ONLY
        return self._fix(phpfile, stack_ptr, add_null)

    # ── fixing ──────────────────────────────────────────────────────────

    def _resolve_type_list_token(self, tokens: TokenStream, stack_ptr: int) -> int:
        block = find_doc_block(tokens, stack_ptr)
        tag_ptr = find_return_tag(tokens, block) if block is not None else None
        types_ptr = (
            find_type_list_token(tokens, tag_ptr, block.end)
            if block is not None and tag_ptr is not None else None
        )
        if types_ptr is None:
            raise InternalError(
                f"No token found for @return of {function_name(tokens, stack_ptr)}()",
                code=PhpSniffErrorCodes.TOKEN_NOT_FOUND,
            )
        return types_ptr

    def _fix(
        self,
        phpfile: PhpFile,
        stack_ptr: int,
        rewrite: Callable[[str], str],
    ) -> Outcome:
        types_ptr = self._resolve_type_list_token(phpfile.tokens, stack_ptr)
        fixer = phpfile.fixer
        fixer.begin_changeset()
        try:
            fixer.replace_token(types_ptr, rewrite(fixer.get_token_content(types_ptr)))
        except BaseException:
            fixer.rollback_changeset()
            raise
        if not fixer.end_changeset():
            return Outcome.FIX_FAILED
        return Outcome.VIOLATION_FIXED


__all__ = [
    "Outcome",
    "DocBlock",
    "find_doc_block",
    "find_return_tag",
    "find_type_list_token",
    "parse_type_list",
    "remove_null",
    "add_null",
    "DocBlockReturnNullableTypeChecker",
]
