"""
phpsniff_shims/fixer.py
═══════════════════════

Token-content rewriting with atomic changesets.

The fixer owns a mutable copy of every token's content for one file.
Sniffs never edit text directly: they replace the content of whole
tokens, usually inside a changeset::

    fixer.begin_changeset()
    fixer.replace_token(index, "Foo|null")
    fixer.end_changeset()

Replacements buffered in a changeset are committed together at
``end_changeset()`` or discarded together by ``rollback_changeset()``.
The :meth:`Fixer.changeset` context manager rolls back when the block
raises, so a failed fix never leaves a half-applied edit behind.

Replacing content never adds or removes tokens, so token indices stay
valid for the whole pass.  A token may be replaced only once per pass;
a second changeset touching it is discarded and the owning
:class:`~phpsniff_shims.files.PhpFile` runs another pass over the
re-tokenized result.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Sequence, Set

from phpsniff_shims.errors import FixerError, PhpSniffErrorCodes
from phpsniff_shims.tokens import Token

_log = logging.getLogger(__name__)


class Fixer:
    """
    Mutable view over the contents of a token stream.

    Attributes
    ----------
    fix_count : number of token replacements committed so far
    conflicts : changesets discarded because they touched a token that
                was already replaced in the current pass
    """

    def __init__(self, tokens: Sequence[Token]) -> None:
        self._contents: List[str] = [tok.content for tok in tokens]
        self._changed: Set[int] = set()
        self._pending: Optional[Dict[int, str]] = None
        self.fix_count: int = 0
        self.conflicts: int = 0

    # ── state ───────────────────────────────────────────────────────────

    @property
    def in_changeset(self) -> bool:
        return self._pending is not None

    @property
    def changed_tokens(self) -> Set[int]:
        return set(self._changed)

    def get_token_content(self, index: int) -> str:
        self._check_index(index)
        if self._pending is not None and index in self._pending:
            return self._pending[index]
        return self._contents[index]

    def get_contents(self) -> str:
        """Serialize the current (committed) file content."""
        return "".join(self._contents)

    # ── changesets ──────────────────────────────────────────────────────

    def begin_changeset(self) -> None:
        if self._pending is not None:
            raise FixerError(
                "begin_changeset() called while a changeset is open",
                code=PhpSniffErrorCodes.NESTED_CHANGESET,
            )
        self._pending = {}

    def end_changeset(self) -> bool:
        """Commit the open changeset.  Returns ``False`` if it was discarded."""
        if self._pending is None:
            raise FixerError(
                "end_changeset() called without begin_changeset()",
                code=PhpSniffErrorCodes.NO_OPEN_CHANGESET,
            )
        pending, self._pending = self._pending, None

        clashing = sorted(i for i in pending if i in self._changed)
        if clashing:
            self.conflicts += 1
            _log.debug(
                "Discarding changeset touching already fixed tokens %s",
                clashing,
            )
            return False

        for index, content in pending.items():
            self._commit(index, content)
        return True

    def rollback_changeset(self) -> None:
        if self._pending is not None:
            _log.debug("Rolling back changeset of %d token(s)", len(self._pending))
        self._pending = None

    @contextmanager
    def changeset(self) -> Iterator["Fixer"]:
        """``with fixer.changeset(): ...`` — commit on success, roll back on error."""
        self.begin_changeset()
        try:
            yield self
        except BaseException:
            self.rollback_changeset()
            raise
        self.end_changeset()

    # ── edits ───────────────────────────────────────────────────────────

    def replace_token(self, index: int, content: str) -> bool:
        """
        Replace the content of token *index*.

        Inside a changeset the replacement is buffered; outside it is
        committed immediately.  Returns ``False`` when the token was
        already replaced in this pass.
        """
        self._check_index(index)
        if self._pending is not None:
            self._pending[index] = content
            return True
        if index in self._changed:
            self.conflicts += 1
            _log.debug("Token %d already fixed in this pass; skipping", index)
            return False
        self._commit(index, content)
        return True

    def _commit(self, index: int, content: str) -> None:
        if self._contents[index] == content:
            return
        self._contents[index] = content
        self._changed.add(index)
        self.fix_count += 1

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._contents):
            raise FixerError(
                f"Token index {index} out of range (0..{len(self._contents) - 1})",
                code=PhpSniffErrorCodes.TOKEN_OUT_OF_RANGE,
            )


__all__ = ["Fixer"]
