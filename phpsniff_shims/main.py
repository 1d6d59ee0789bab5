"""phpsniff_shims/main.py — command-line entry point.

Usage examples
--------------
    # Report violations under src/
    phpsniff src/

    # Fix what can be fixed, in place
    phpsniff --fix src/

    # Show the fixes as a unified diff without touching the files
    phpsniff --diff src/Foo.php

    # Only one checker, JSON lines on stdout
    phpsniff --checkers doc-block-return-nullable --output json src/

    # Use a ruleset (``phpsniff.sexp`` in the cwd is picked up by default)
    phpsniff --ruleset ci.sexp src/

Exit codes
----------
    0   No errors reported.
    1   One or more diagnostics with severity ERROR remain.
    2   Infrastructure failure (bad ruleset, unreadable file, internal error).
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from pathlib import Path
from typing import List, Optional, Sequence

from phpsniff_shims import __version__
from phpsniff_shims.checkers import CheckerRunner, CheckerRunResults
from phpsniff_shims.config import Ruleset, find_default_ruleset, load_ruleset
from phpsniff_shims.diagnostics import SuppressionManager
from phpsniff_shims.errors import PhpSniffError
from phpsniff_shims.sniffs import default_registry

_log = logging.getLogger("phpsniff_shims")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``phpsniff_shims`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger("phpsniff_shims")
    root.setLevel(level)
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        root.addHandler(handler)


def _split_names(values: Optional[Sequence[str]]) -> List[str]:
    """``["a,b", "c"]`` → ``["a", "b", "c"]``."""
    names: List[str] = []
    for value in values or ():
        names.extend(part.strip() for part in value.split(",") if part.strip())
    return names


def _load_ruleset(raw: Optional[str]) -> Optional[Ruleset]:
    if raw is not None:
        return load_ruleset(raw)
    default = find_default_ruleset()
    if default is not None:
        return load_ruleset(default)
    return None


def _print_results(results: CheckerRunResults, output: str, show_diff: bool) -> None:
    if show_diff:
        for diff in results.diffs.values():
            sys.stdout.write(diff)
    if output == "json":
        text = results.to_json_lines()
    elif output == "summary":
        text = results.summary()
    else:
        text = results.to_gcc_format()
    if text:
        print(text)
    if output == "gcc":
        print(results.summary(), file=sys.stderr)


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="phpsniff",
        description="Coding-standard sniffs for PHP sources, with automatic fixes.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              phpsniff src/
              phpsniff --fix src/
              phpsniff --diff --checkers doc-block-return-nullable src/Foo.php
        """),
    )
    parser.add_argument(
        "paths",
        nargs="*",
        default=["."],
        help="PHP files or directories (default: current directory).",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )
    parser.add_argument(
        "--checkers",
        action="append",
        metavar="NAMES",
        help="Comma-separated checkers to run (default: all enabled).",
    )
    parser.add_argument(
        "--fix",
        action="store_true",
        help="Apply automatic fixes in place.",
    )
    parser.add_argument(
        "--diff",
        action="store_true",
        help="Print fixes as a unified diff; without --fix files are left untouched.",
    )
    parser.add_argument(
        "--output",
        choices=("gcc", "json", "summary"),
        default="gcc",
        help="Diagnostic output format (default: gcc).",
    )
    parser.add_argument(
        "--suppress",
        action="append",
        metavar="IDS",
        help="Comma-separated error ids or checker names to suppress.",
    )
    parser.add_argument(
        "--ruleset",
        metavar="FILE",
        help="S-expression ruleset (default: ./phpsniff.sexp if present).",
    )
    parser.add_argument(
        "--list-checkers",
        action="store_true",
        help="List available checkers and exit.",
    )
    return parser


# ===========================================================================
# Main
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the phpsniff CLI and return its exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    registry = default_registry()
    if args.list_checkers:
        for cls in registry.get_all():
            ids = ", ".join(sorted(cls.error_ids))
            print(f"  {cls.name:35s} {cls.description} [{ids}]")
        return EXIT_OK

    suppressions = SuppressionManager()
    for error_id in _split_names(args.suppress):
        suppressions.add_global_suppression(error_id)

    try:
        ruleset = _load_ruleset(args.ruleset)
        if ruleset is not None:
            ruleset.apply(registry, suppressions)
    except PhpSniffError as exc:
        _log.error("%s", exc.to_gcc_format())
        return EXIT_INFRA

    for raw in args.paths:
        if not Path(raw).exists():
            _log.error("path not found: %s", raw)
            return EXIT_INFRA

    checkers = _split_names(args.checkers) or (ruleset.checkers if ruleset else None)
    unknown = [name for name in checkers or () if name not in registry]
    if unknown:
        _log.error("unknown checker(s): %s (known: %s)",
                   ", ".join(unknown), ", ".join(registry.names))
        return EXIT_INFRA

    runner = CheckerRunner(
        registry=registry,
        suppressions=suppressions,
        options=ruleset.options if ruleset else None,
        exclude=ruleset.exclude if ruleset else (),
    )
    try:
        results = runner.run(
            args.paths,
            checkers=checkers,
            fix=args.fix or args.diff,
            dry_run=not args.fix,
        )
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except PhpSniffError as exc:
        _log.error("%s", exc.to_gcc_format())
        return EXIT_INFRA

    _print_results(results, args.output, args.diff)

    if results.internal_error_count:
        return EXIT_INFRA
    return EXIT_ERROR if results.error_count > 0 else EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
