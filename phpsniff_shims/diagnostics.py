"""
phpsniff_shims/diagnostics.py
═════════════════════════════

Diagnostic model and suppression handling shared by every sniff.

A :class:`Diagnostic` is one reported violation.  It carries a stable
error id (``ReturnNullableMissing``), a message, the token position it
was raised at, and whether an automatic fix exists for it.

Suppressions come from three sources:

  1. Inline comments scanned from the token stream::

         // phpcs:ignore ReturnNullableInvalid
         // phpcs:disable YodaNotAllowed  ...  // phpcs:enable
         // phpcs:ignoreFile
         // @codingStandardsIgnoreLine

  2. File-level suppressions (fnmatch patterns, passed programmatically
     or from a ruleset)
  3. Global suppressions (command-line or ruleset)
"""

from __future__ import annotations

import json
import re
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from fnmatch import fnmatch
from typing import (
    Any,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
)

from phpsniff_shims.tokens import Token, TokenKind


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — DIAGNOSTIC MODEL
# ═════════════════════════════════════════════════════════════════════════

class DiagnosticSeverity(Enum):
    """Severity levels, ordered from most to least severe."""
    ERROR = "error"
    WARNING = "warning"
    STYLE = "style"
    INFORMATION = "information"


@dataclass(frozen=True)
class SourceLocation:
    """A specific point in source code."""
    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.column:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"


#: Error id used for failures of the tooling itself (never a rule violation).
INTERNAL_ERROR_ID = "internalError"


@dataclass(frozen=True)
class Diagnostic:
    """
    A single diagnostic finding.

    Attributes
    ----------
    error_id     : Stable identifier (e.g., "ReturnNullableInvalid")
    message      : Human-readable description
    severity     : DiagnosticSeverity
    location     : Primary source location
    checker_name : Name of the checker that produced this
    fixable      : Whether an automatic fix exists
    token_index  : Position in the token stream the violation refers to
    extra        : Additional context string
    """
    error_id: str
    message: str
    severity: DiagnosticSeverity
    location: SourceLocation
    checker_name: str = ""
    fixable: bool = False
    token_index: int = -1
    extra: str = ""

    @property
    def is_internal(self) -> bool:
        return self.error_id == INTERNAL_ERROR_ID

    def to_json(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "file": self.location.file,
            "line": self.location.line,
            "column": self.location.column,
            "severity": self.severity.value,
            "message": self.message,
            "errorId": self.error_id,
            "checker": self.checker_name,
            "fixable": self.fixable,
            "position": self.token_index,
        }
        if self.extra:
            result["extra"] = self.extra
        return result

    def to_json_str(self) -> str:
        """Single-line JSON string."""
        return json.dumps(self.to_json())

    def to_gcc_format(self) -> str:
        """GCC-style diagnostic string: file:line:col: severity: message."""
        sev = self.severity.value
        suffix = " (fixable)" if self.fixable else ""
        return f"{self.location}: {sev}: {self.message} [{self.error_id}]{suffix}"


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — SUPPRESSION MANAGER
# ═════════════════════════════════════════════════════════════════════════

_DIRECTIVE_RE = re.compile(
    r"(?:phpcs:(?P<cmd>ignoreFile|ignore|disable|enable)\b(?P<ids>[^\r\n*]*)"
    r"|@codingStandardsIgnore(?P<legacy>Line|Start|End|File)\b)"
)

# Directive comments live in these token kinds.
_COMMENT_KINDS: FrozenSet[TokenKind] = frozenset({
    TokenKind.COMMENT,
    TokenKind.DOC_COMMENT_STRING,
    TokenKind.DOC_COMMENT_TAG,
})


def _parse_ids(raw: str) -> Set[str]:
    # "Foo,Bar -- reason" → {"Foo", "Bar"}; no ids means all of them
    raw = raw.split("--", 1)[0]
    ids = {part.strip() for part in raw.replace(",", " ").split() if part.strip()}
    return ids or {"*"}


def _matches(ids: Iterable[str], diag: Diagnostic) -> bool:
    names = {
        "*",
        diag.error_id,
        diag.checker_name,
        f"{diag.checker_name}.{diag.error_id}",
    }
    return any(i in names for i in ids)


class SuppressionManager:
    """
    Manages diagnostic suppressions from multiple sources.

    Usage
    -----
    >>> sm = SuppressionManager()
    >>> sm.load_inline_suppressions("src/Foo.php", tokens)
    >>> sm.add_file_suppression("ReturnNullableInvalid", "legacy/*")
    >>> sm.add_global_suppression("YodaNotAllowed")
    >>> if not sm.is_suppressed(diagnostic):
    ...     emit(diagnostic)
    """

    def __init__(self) -> None:
        # {(file, line)} → ids suppressed at that location
        self._inline: Dict[Tuple[str, int], Set[str]] = defaultdict(set)
        # file → [(first_line, last_line, ids)] from disable/enable pairs
        self._ranges: Dict[str, List[Tuple[int, int, Set[str]]]] = defaultdict(list)
        # files carrying phpcs:ignoreFile, by exact path
        self._ignored_files: Set[str] = set()
        # file pattern → ids
        self._file_level: Dict[str, Set[str]] = defaultdict(set)
        # globally suppressed ids
        self._global: Set[str] = set()

    def load_inline_suppressions(self, file: str, tokens: Sequence[Token]) -> None:
        """
        Scan comment tokens of *file* for ``phpcs:`` directives.

        Previously loaded inline suppressions for the same file are
        replaced, so re-tokenizing after a fix pass is safe.
        """
        for key in [k for k in self._inline if k[0] == file]:
            del self._inline[key]
        self._ranges.pop(file, None)
        self._ignored_files.discard(file)

        open_ranges: List[Tuple[int, Set[str]]] = []
        last_line = 1
        for tok in tokens:
            last_line = tok.line
            if tok.kind not in _COMMENT_KINDS:
                continue
            m = _DIRECTIVE_RE.search(tok.content)
            if m is None:
                continue
            cmd = m.group("cmd") or ""
            legacy = m.group("legacy") or ""
            ids = _parse_ids(m.group("ids") or "")

            if cmd == "ignoreFile" or legacy == "File":
                self._ignored_files.add(file)
            elif cmd == "ignore" or legacy == "Line":
                self._inline[(file, tok.line)].update(ids)
            elif cmd == "disable" or legacy == "Start":
                open_ranges.append((tok.line, ids))
            elif cmd == "enable" or legacy == "End":
                still_open = []
                for start, open_ids in open_ranges:
                    if "*" in ids or open_ids <= ids:
                        self._ranges[file].append((start, tok.line, open_ids))
                    else:
                        still_open.append((start, open_ids - ids))
                        self._ranges[file].append((start, tok.line, open_ids & ids))
                open_ranges = still_open

        for start, open_ids in open_ranges:
            self._ranges[file].append((start, last_line, open_ids))

    def add_file_suppression(self, error_id: str, file_pattern: str) -> None:
        """Suppress ``error_id`` in files matching ``file_pattern``."""
        self._file_level[file_pattern].add(error_id)

    def add_global_suppression(self, error_id: str) -> None:
        """Globally suppress ``error_id``."""
        self._global.add(error_id)

    def is_suppressed(self, diag: Diagnostic) -> bool:
        """Check whether a diagnostic should be suppressed."""
        if diag.is_internal:
            return False

        # Global
        if _matches(self._global, diag):
            return True

        loc = diag.location
        if loc.file in self._ignored_files:
            return True

        # Inline (exact line match, or line-1 for preceding-line ignore)
        for line_offset in (0, 1):
            suppressed_ids = self._inline.get((loc.file, loc.line - line_offset), set())
            if _matches(suppressed_ids, diag):
                return True

        for start, end, ids in self._ranges.get(loc.file, ()):
            if start <= loc.line <= end and _matches(ids, diag):
                return True

        # File-level
        for pattern, ids in self._file_level.items():
            if not _matches(ids, diag):
                continue
            if pattern == loc.file or loc.file.endswith(pattern):
                return True
            if fnmatch(loc.file, pattern):
                return True

        return False

    def filter_diagnostics(
        self, diagnostics: Iterable[Diagnostic]
    ) -> List[Diagnostic]:
        """Return only non-suppressed diagnostics."""
        return [d for d in diagnostics if not self.is_suppressed(d)]


__all__ = [
    "DiagnosticSeverity",
    "SourceLocation",
    "Diagnostic",
    "INTERNAL_ERROR_ID",
    "SuppressionManager",
]
