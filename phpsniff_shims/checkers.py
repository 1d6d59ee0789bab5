"""
phpsniff_shims/checkers.py
══════════════════════════

Checker framework: the base class every sniff derives from, the registry
of available checkers, and the runner that drives them over files.

Architecture
────────────

  ┌─────────────────────────────────────────────────────────┐
  │                   CheckerRunner                         │
  │  ┌──────────────┐  ┌──────────────┐  ┌──────────────┐  │
  │  │ DocBlockRet- │  │ Conditional- │  │  NoDemoshop  │  │
  │  │ urnNullable  │  │ ExprOrder    │  │              │  │
  │  └──────┬───────┘  └──────┬───────┘  └──────┬───────┘  │
  │         │                 │                  │          │
  │  ┌──────▼─────────────────▼──────────────────▼───────┐  │
  │  │     PhpFile  (tokens │ fixer │ diagnostics)       │  │
  │  └──────────────────────────┬────────────────────────┘  │
  │                             │                           │
  │  ┌──────────────────────────▼────────────────────────┐  │
  │  │           SuppressionManager                      │  │
  │  │  phpcs:ignore  │  file-level  │  global           │  │
  │  └──────────────────────────┬────────────────────────┘  │
  │                             │                           │
  │  ┌──────────────────────────▼────────────────────────┐  │
  │  │        Diagnostic Formatter (JSON / text)         │  │
  │  └───────────────────────────────────────────────────┘  │
  └─────────────────────────────────────────────────────────┘

Each Checker follows a two-phase lifecycle:

  1. **configure(ctx)**          — receive the per-run context
  2. **process(phpfile, ptr)**   — called for every token whose kind is
                                   in ``register()``

License: MIT — same as phpsniff-shims.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Set,
    Type,
    Union,
)

from phpsniff_shims.diagnostics import (
    INTERNAL_ERROR_ID,
    Diagnostic,
    DiagnosticSeverity,
    SourceLocation,
    SuppressionManager,
)
from phpsniff_shims.errors import TokenizerError
from phpsniff_shims.files import DEFAULT_MAX_FIX_LOOPS, PhpFile
from phpsniff_shims.tokens import TokenKind

_log = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — CHECKER CONTEXT
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class CheckerContext:
    """
    Shared context passed to every checker during one run.

    A fresh context is built for every :meth:`CheckerRunner.run`, so
    values memoized here never leak from one run into the next.

    Attributes
    ----------
    suppressions : SuppressionManager
    options      : user-provided options dict
    stats        : mutable dict for timing / counting statistics
    """
    suppressions: SuppressionManager = field(default_factory=SuppressionManager)
    options: Dict[str, Any] = field(default_factory=dict)
    stats: Dict[str, Any] = field(default_factory=dict)
    _memo: Dict[Any, Any] = field(default_factory=dict, repr=False)

    def get_option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)

    def memoize(self, key: Any, factory: Callable[[], Any]) -> Any:
        """Return the value cached under *key*, computing it on first use."""
        if key not in self._memo:
            self._memo[key] = factory()
        return self._memo[key]


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — CHECKER BASE CLASS
# ═════════════════════════════════════════════════════════════════════════

class Checker(ABC):
    """
    Abstract base class for all checkers (sniffs).

    Subclass Contract
    ─────────────────
      - Override ``name``, ``description``, ``error_ids``
      - Implement ``register()`` and ``process()``
      - Optionally override ``configure()`` for custom setup
    """

    name: ClassVar[str] = "base-checker"
    description: ClassVar[str] = ""
    error_ids: ClassVar[FrozenSet[str]] = frozenset()
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.ERROR

    def __init__(self) -> None:
        self.ctx: CheckerContext = CheckerContext()

    def configure(self, ctx: CheckerContext) -> None:
        """Called once per run before any file is processed."""
        self.ctx = ctx

    @abstractmethod
    def register(self) -> FrozenSet[TokenKind]:
        """Token kinds this checker wants to be called for."""
        ...

    @abstractmethod
    def process(self, phpfile: PhpFile, stack_ptr: int) -> Any:
        """Inspect the token at *stack_ptr*; report through *phpfile*."""
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} '{self.name}'>"


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — CHECKER REGISTRY
# ═════════════════════════════════════════════════════════════════════════

class CheckerRegistry:
    """
    Registry of available checkers with discovery and filtering.

    Usage
    -----
    >>> registry = CheckerRegistry()
    >>> registry.register(DocBlockReturnNullableTypeChecker)
    >>> checkers = registry.get_enabled()
    >>> checkers = registry.filter_by_error_id("ReturnNullableMissing")
    """

    def __init__(self) -> None:
        self._checkers: Dict[str, Type[Checker]] = {}
        self._disabled: Set[str] = set()

    def register(self, checker_cls: Type[Checker]) -> None:
        """Register a checker class."""
        self._checkers[checker_cls.name] = checker_cls

    def unregister(self, name: str) -> None:
        """Remove a checker by name."""
        self._checkers.pop(name, None)

    def disable(self, name: str) -> None:
        """Disable a registered checker."""
        self._disabled.add(name)

    def enable(self, name: str) -> None:
        """Re-enable a disabled checker."""
        self._disabled.discard(name)

    def get_all(self) -> List[Type[Checker]]:
        """Return all registered checker classes."""
        return list(self._checkers.values())

    def get_enabled(self) -> List[Type[Checker]]:
        """Return only enabled checker classes."""
        return [
            cls for name, cls in self._checkers.items()
            if name not in self._disabled
        ]

    def get_by_name(self, name: str) -> Optional[Type[Checker]]:
        return self._checkers.get(name)

    def filter_by_error_id(self, error_id: str) -> List[Type[Checker]]:
        """Return checkers that can produce the given error_id."""
        return [
            cls for cls in self._checkers.values()
            if error_id in cls.error_ids
        ]

    def __contains__(self, name: object) -> bool:
        return name in self._checkers

    @property
    def names(self) -> List[str]:
        return sorted(self._checkers.keys())


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 — RUN RESULTS
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class CheckerRunResults:
    """
    Aggregate results from running a suite of checkers.

    Attributes
    ----------
    diagnostics            : Diagnostics remaining after the run
    diagnostics_by_checker : Diagnostics grouped by checker name
    stats                  : Timing and counting statistics
    checker_names          : Names of checkers that were run
    files                  : Files that were processed
    fixed_count            : Number of token rewrites applied
    diffs                  : path → unified diff (fix runs only)
    """
    diagnostics: List[Diagnostic] = field(default_factory=list)
    diagnostics_by_checker: Dict[str, List[Diagnostic]] = field(
        default_factory=lambda: defaultdict(list)
    )
    stats: Dict[str, Any] = field(default_factory=dict)
    checker_names: List[str] = field(default_factory=list)
    files: List[str] = field(default_factory=list)
    fixed_count: int = 0
    diffs: Dict[str, str] = field(default_factory=dict)

    def add(self, diags: Iterable[Diagnostic]) -> None:
        for diag in diags:
            self.diagnostics.append(diag)
            self.diagnostics_by_checker[diag.checker_name].append(diag)

    @property
    def error_count(self) -> int:
        return sum(
            1 for d in self.diagnostics
            if d.severity == DiagnosticSeverity.ERROR
        )

    @property
    def warning_count(self) -> int:
        return sum(
            1 for d in self.diagnostics
            if d.severity == DiagnosticSeverity.WARNING
        )

    @property
    def internal_error_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.is_internal)

    @property
    def fixable_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.fixable)

    @property
    def total_count(self) -> int:
        return len(self.diagnostics)

    def by_severity(self, severity: DiagnosticSeverity) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == severity]

    def by_file(self, file: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.location.file == file]

    def by_error_id(self, error_id: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.error_id == error_id]

    def to_json_lines(self) -> str:
        return "\n".join(d.to_json_str() for d in self.diagnostics)

    def to_gcc_format(self) -> str:
        """Format all diagnostics in GCC-style."""
        return "\n".join(d.to_gcc_format() for d in self.diagnostics)

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            f"Checked {len(self.files)} file(s): {self.total_count} diagnostics "
            f"({self.error_count} errors, {self.warning_count} warnings, "
            f"{self.fixable_count} fixable), {self.fixed_count} fixed",
        ]
        for name in self.checker_names:
            count = len(self.diagnostics_by_checker.get(name, []))
            elapsed = self.stats.get(f"{name}_elapsed_ms", 0)
            lines.append(f"  {name}: {count} findings ({elapsed:.1f}ms)")
        if self.internal_error_count:
            lines.append(f"  internal errors: {self.internal_error_count}")
        return "\n".join(lines)


# ═════════════════════════════════════════════════════════════════════════
#  PART 5 — RUNNER
# ═════════════════════════════════════════════════════════════════════════

def iter_php_files(
    paths: Iterable[Union[str, Path]],
    exclude: Sequence[str] = (),
    extensions: Sequence[str] = (".php",),
) -> Iterator[Path]:
    """Expand *paths* (files or directories) into PHP files, sorted per directory."""
    for raw in paths:
        p = Path(raw)
        if p.is_dir():
            candidates: Iterable[Path] = sorted(
                c for c in p.rglob("*") if c.is_file() and c.suffix in extensions
            )
        else:
            candidates = [p]
        for candidate in candidates:
            posix = candidate.as_posix()
            if any(fnmatch(posix, pattern) for pattern in exclude):
                _log.debug("Excluded %s", posix)
                continue
            yield candidate


class CheckerRunner:
    """
    Runs a suite of checkers against PHP files.

    Usage
    -----
    >>> runner = CheckerRunner()
    >>> results = runner.run(["src/"])
    >>> print(results.summary())

    >>> # Only some checkers, fixing in place:
    >>> results = runner.run(["src/"], checkers=["doc-block-return-nullable"], fix=True)

    Parameters for constructor
    ─────────────────────────
    registry    : CheckerRegistry — source of checker classes
    suppressions: SuppressionManager — pre-loaded suppression rules
    options     : dict — per-checker configuration
    exclude     : fnmatch patterns of paths to skip
    """

    def __init__(
        self,
        registry: Optional[CheckerRegistry] = None,
        suppressions: Optional[SuppressionManager] = None,
        options: Optional[Dict[str, Any]] = None,
        exclude: Sequence[str] = (),
    ) -> None:
        if registry is None:
            from phpsniff_shims.sniffs import default_registry
            registry = default_registry()
        self.registry = registry
        self.suppressions = suppressions or SuppressionManager()
        self.options = options or {}
        self.exclude = list(exclude)

    def _instantiate(self, checkers: Optional[Sequence[str]]) -> List[Checker]:
        if checkers is None:
            return [cls() for cls in self.registry.get_enabled()]
        instances: List[Checker] = []
        for name in checkers:
            cls = self.registry.get_by_name(name)
            if cls is None:
                _log.warning("Unknown checker '%s' ignored", name)
                continue
            instances.append(cls())
        return instances

    def run(
        self,
        paths: Iterable[Union[str, Path]],
        checkers: Optional[Sequence[str]] = None,
        fix: bool = False,
        dry_run: bool = False,
    ) -> CheckerRunResults:
        """
        Run checkers against every PHP file under *paths*.

        Parameters
        ----------
        paths    : files or directories
        checkers : names of checkers to run (None = all enabled)
        fix      : apply automatic fixes
        dry_run  : with ``fix``, compute diffs but leave files untouched;
                   diagnostics then describe the unfixed content

        Returns
        -------
        CheckerRunResults
        """
        results = CheckerRunResults()
        ctx = CheckerContext(suppressions=self.suppressions, options=dict(self.options))
        instances = self._instantiate(checkers)
        for checker in instances:
            checker.configure(ctx)
            results.checker_names.append(checker.name)

        max_loops = int(ctx.get_option("max-fix-loops", DEFAULT_MAX_FIX_LOOPS))

        for path in iter_php_files(paths, exclude=self.exclude):
            results.files.append(str(path))
            t0 = time.monotonic()
            try:
                phpfile = PhpFile.from_path(path, suppressions=self.suppressions, stats=ctx.stats)
            except TokenizerError as exc:
                _log.error("%s", exc.message)
                results.add([Diagnostic(
                    error_id=INTERNAL_ERROR_ID,
                    message=exc.message,
                    severity=DiagnosticSeverity.INFORMATION,
                    location=SourceLocation(file=str(path)),
                    extra=str(exc.code),
                )])
                continue

            if fix:
                phpfile.fix(instances, max_loops=max_loops)
                if phpfile.is_modified:
                    results.diffs[phpfile.path] = phpfile.diff()
                if dry_run:
                    # report against the file as it is on disk
                    phpfile = PhpFile(
                        phpfile.path, phpfile.original_content,
                        suppressions=self.suppressions, stats=ctx.stats,
                    )
                else:
                    results.fixed_count += phpfile.fixed_count
                    if phpfile.is_modified:
                        phpfile.write()
                        _log.info("Wrote %s (%d fixes)", phpfile.path, phpfile.fixed_count)

            results.add(phpfile.process(instances))
            _log.debug("%s processed in %.1fms", path, (time.monotonic() - t0) * 1000.0)

        results.stats.update(ctx.stats)
        return results


__all__ = [
    "CheckerContext",
    "Checker",
    "CheckerRegistry",
    "CheckerRunResults",
    "CheckerRunner",
    "iter_php_files",
]
