"""
Keeps project-only code out of the Spryker demoshop repository.

A file counts as demoshop code when its path contains ``/src/`` and the
``composer.json`` beside that ``src`` directory names the package
``spryker/demoshop``.  The manifest lookup is memoized in the run's
:class:`~phpsniff_shims.checkers.CheckerContext`.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import ClassVar, FrozenSet, Optional

from phpsniff_shims.checkers import Checker
from phpsniff_shims.files import PhpFile
from phpsniff_shims.tokens import TokenKind

_log = logging.getLogger(__name__)

_PROJECT_MARKER_RE = re.compile(r"\* @project\b")
_DEMOSHOP_NAME_RE = re.compile(r'"name":\s*"spryker/demoshop"')


def manifest_path(file_path: str) -> Optional[Path]:
    """``composer.json`` next to the ``src`` directory containing *file_path*."""
    position = Path(file_path).as_posix().find("/src/")
    if position <= 0:
        return None
    return Path(Path(file_path).as_posix()[:position]) / "composer.json"


def is_demoshop_manifest(path: Path) -> bool:
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return False
    except OSError as exc:
        _log.warning("Cannot read %s: %s", path, exc.strerror)
        return False
    return _DEMOSHOP_NAME_RE.search(content) is not None


class NoDemoshopChecker(Checker):
    """Reports ``@project`` markers in demoshop files."""

    name: ClassVar[str] = "no-demoshop"
    description: ClassVar[str] = "Project-only code must not be merged into the demoshop"
    error_ids: ClassVar[FrozenSet[str]] = frozenset({"InvalidContent"})

    MSG = "No project only code should be merged into Spryker demoshop."

    def register(self) -> FrozenSet[TokenKind]:
        return frozenset({TokenKind.NAMESPACE})

    def is_demoshop_code(self, phpfile: PhpFile) -> bool:
        manifest = manifest_path(phpfile.path)
        if manifest is None:
            return False
        return bool(self.ctx.memoize(
            ("demoshop", str(manifest)), lambda: is_demoshop_manifest(manifest),
        ))

    def process(self, phpfile: PhpFile, stack_ptr: int) -> None:
        if not self.is_demoshop_code(phpfile):
            return
        if not _PROJECT_MARKER_RE.search(phpfile.content):
            return
        phpfile.add_error(self.MSG, stack_ptr, "InvalidContent")


__all__ = ["NoDemoshopChecker", "manifest_path", "is_demoshop_manifest"]
