"""
phpsniff_shims/files.py
═══════════════════════

:class:`PhpFile` — one PHP source file under analysis.

A ``PhpFile`` bundles the token stream, the fixer and the diagnostics of
a single file, and is the object every sniff receives::

    phpfile = PhpFile.from_path("src/Foo.php")
    phpfile.process([DocBlockReturnNullableTypeChecker()])
    for diag in phpfile.diagnostics:
        print(diag.to_gcc_format())

Detection and fixing are separate modes.  ``process()`` only reports;
``fix()`` runs passes in fixing mode, where ``add_fixable_error()``
returns ``True`` and sniffs apply their rewrites through
:attr:`PhpFile.fixer`.  Between passes the fixed content is
re-tokenized, so every pass sees token indices that match its content.
"""

from __future__ import annotations

import difflib
import logging
import time
from collections import defaultdict
from pathlib import Path
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    List,
    Optional,
    Sequence,
    Union,
)

from phpsniff_shims.diagnostics import (
    INTERNAL_ERROR_ID,
    Diagnostic,
    DiagnosticSeverity,
    SourceLocation,
    SuppressionManager,
)
from phpsniff_shims.errors import InternalError, PhpSniffErrorCodes, TokenizerError
from phpsniff_shims.fixer import Fixer
from phpsniff_shims.tokens import TokenKind, TokenStream, tokenize

if TYPE_CHECKING:
    from phpsniff_shims.checkers import Checker

_log = logging.getLogger(__name__)

DEFAULT_MAX_FIX_LOOPS = 50


class PhpFile:
    """
    Token stream, fixer and diagnostics of one PHP file.

    Parameters
    ----------
    path         : file path used for reporting (need not exist)
    content      : source text
    suppressions : shared suppression manager (a private one by default)
    stats        : mutable dict receiving per-checker timings
    """

    def __init__(
        self,
        path: Union[str, Path],
        content: str,
        suppressions: Optional[SuppressionManager] = None,
        stats: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.path: str = str(path)
        self.original_content: str = content
        self.suppressions = suppressions or SuppressionManager()
        self.stats: Dict[str, Any] = stats if stats is not None else {}
        self.diagnostics: List[Diagnostic] = []
        self.fixing: bool = False
        self.fixed_count: int = 0
        self._current_checker: str = ""
        self._load(content)

    @classmethod
    def from_path(
        cls,
        path: Union[str, Path],
        suppressions: Optional[SuppressionManager] = None,
        stats: Optional[Dict[str, Any]] = None,
    ) -> "PhpFile":
        p = Path(path)
        try:
            # newline="" keeps \r\n intact so fixed output round-trips
            with open(p, encoding="utf-8", newline="") as fh:
                content = fh.read()
        except UnicodeDecodeError as exc:
            raise TokenizerError(
                f"{p} is not valid UTF-8: {exc.reason}",
                code=PhpSniffErrorCodes.UNDECODABLE_SOURCE,
            ) from exc
        except OSError as exc:
            raise TokenizerError(f"Cannot read {p}: {exc.strerror}") from exc
        return cls(p, content, suppressions=suppressions, stats=stats)

    def _load(self, content: str) -> None:
        self.content: str = content
        self.tokens: TokenStream = tokenize(content)
        self.fixer: Fixer = Fixer(self.tokens)
        self.suppressions.load_inline_suppressions(self.path, self.tokens)

    def __repr__(self) -> str:
        return f"<PhpFile {self.path!r} {len(self.tokens)} tokens>"

    # ── reporting ───────────────────────────────────────────────────────

    def add_error(
        self,
        message: str,
        stack_ptr: int,
        code: str,
        severity: DiagnosticSeverity = DiagnosticSeverity.ERROR,
        fixable: bool = False,
    ) -> Optional[Diagnostic]:
        """Record a diagnostic at token *stack_ptr*; ``None`` if suppressed."""
        tok = self.tokens[stack_ptr]
        diag = Diagnostic(
            error_id=code,
            message=message,
            severity=severity,
            location=SourceLocation(file=self.path, line=tok.line, column=tok.column),
            checker_name=self._current_checker,
            fixable=fixable,
            token_index=stack_ptr,
        )
        if self.suppressions.is_suppressed(diag):
            _log.debug("Suppressed %s at %s", code, diag.location)
            return None
        self.diagnostics.append(diag)
        return diag

    def add_warning(self, message: str, stack_ptr: int, code: str) -> Optional[Diagnostic]:
        return self.add_error(message, stack_ptr, code, severity=DiagnosticSeverity.WARNING)

    def add_fixable_error(
        self,
        message: str,
        stack_ptr: int,
        code: str,
        severity: DiagnosticSeverity = DiagnosticSeverity.ERROR,
    ) -> bool:
        """
        Record a fixable diagnostic.

        Returns ``True`` when the caller should apply its fix now, i.e.
        the file is in fixing mode and the diagnostic is not suppressed.
        """
        diag = self.add_error(message, stack_ptr, code, severity=severity, fixable=True)
        return self.fixing and diag is not None

    def _add_internal_error(self, exc: InternalError, stack_ptr: int) -> None:
        tok = self.tokens[stack_ptr]
        self.diagnostics.append(Diagnostic(
            error_id=INTERNAL_ERROR_ID,
            message=f"Checker '{self._current_checker}' failed: {exc.message}",
            severity=DiagnosticSeverity.INFORMATION,
            location=SourceLocation(file=self.path, line=tok.line, column=tok.column),
            checker_name=self._current_checker,
            token_index=stack_ptr,
            extra=str(exc.code),
        ))

    # ── processing ──────────────────────────────────────────────────────

    def process(self, checkers: Sequence["Checker"]) -> List[Diagnostic]:
        """
        Dispatch every token to the checkers that registered its kind.

        An :class:`InternalError` raised by a checker abandons only the
        current token: any open changeset is rolled back and an
        ``internalError`` diagnostic is recorded.
        """
        listeners: Dict[TokenKind, List["Checker"]] = defaultdict(list)
        for checker in checkers:
            for kind in checker.register():
                listeners[kind].append(checker)

        elapsed: Dict[str, float] = defaultdict(float)
        for index, tok in enumerate(self.tokens):
            for checker in listeners.get(tok.kind, ()):
                self._current_checker = checker.name
                t0 = time.monotonic()
                try:
                    checker.process(self, index)
                except InternalError as exc:
                    self.fixer.rollback_changeset()
                    _log.error("%s:%d: %s", self.path, tok.line, exc.message)
                    self._add_internal_error(exc, index)
                elapsed[checker.name] += (time.monotonic() - t0) * 1000.0
        self._current_checker = ""

        for name, ms in elapsed.items():
            key = f"{name}_elapsed_ms"
            self.stats[key] = self.stats.get(key, 0.0) + ms
        return self.diagnostics

    def fix(
        self,
        checkers: Sequence["Checker"],
        max_loops: int = DEFAULT_MAX_FIX_LOOPS,
    ) -> str:
        """
        Run fixing passes until the content is stable; return it.

        After each pass that committed replacements, the new content is
        re-tokenized before the next pass.  Stops on a pass without
        changes, on oscillation (content seen before), or after
        *max_loops* passes.  Leaves the file loaded with the fixed content
        and no diagnostics; call :meth:`process` to report what remains.
        """
        content = self.content
        seen = {content}
        self.fixed_count = 0

        for loop in range(1, max_loops + 1):
            self.diagnostics = []
            self.fixing = True
            try:
                self.process(checkers)
            finally:
                self.fixing = False

            if self.fixer.fix_count == 0:
                _log.debug("%s: stable after %d pass(es)", self.path, loop)
                break

            self.fixed_count += self.fixer.fix_count
            new_content = self.fixer.get_contents()
            _log.info(
                "%s: pass %d applied %d fix(es)",
                self.path, loop, self.fixer.fix_count,
            )
            if new_content in seen:
                _log.warning("%s: fixes oscillate; stopping after pass %d", self.path, loop)
                content = new_content
                break
            seen.add(new_content)
            content = new_content
            self._load(content)
        else:
            _log.warning("%s: still changing after %d passes", self.path, max_loops)
            content = self.fixer.get_contents()

        self.diagnostics = []
        if content != self.content:
            self._load(content)
        return content

    @property
    def is_modified(self) -> bool:
        return self.content != self.original_content

    def diff(self) -> str:
        """Unified diff between the original and the current content."""
        return "".join(difflib.unified_diff(
            self.original_content.splitlines(keepends=True),
            self.content.splitlines(keepends=True),
            fromfile=f"a/{self.path}",
            tofile=f"b/{self.path}",
        ))

    def write(self) -> None:
        with open(self.path, "w", encoding="utf-8", newline="") as fh:
            fh.write(self.content)


__all__ = ["PhpFile", "DEFAULT_MAX_FIX_LOOPS"]
