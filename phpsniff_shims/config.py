"""
phpsniff_shims/config.py
════════════════════════

Ruleset files, written as S-expressions and parsed with ``sexpdata``::

    (ruleset
      (checkers doc-block-return-nullable conditional-expression-order)
      (disable no-demoshop)
      (suppress ReturnNullableInvalid)
      (suppress YodaNotAllowed "legacy/*")
      (option max-fix-loops 50)
      (exclude "vendor/*"))

Every directive is optional and may repeat.  ``load_ruleset()`` reads a
file, ``parse_ruleset()`` a string; both return a :class:`Ruleset`, which
``apply()`` wires into a registry and a suppression manager.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import sexpdata

from phpsniff_shims.checkers import CheckerRegistry
from phpsniff_shims.diagnostics import SuppressionManager
from phpsniff_shims.errors import ConfigError, PhpSniffErrorCodes

_log = logging.getLogger(__name__)

DEFAULT_RULESET_NAME = "phpsniff.sexp"

# option name → expected value type
KNOWN_OPTIONS: Dict[str, type] = {
    "max-fix-loops": int,
}


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — S-EXPRESSION LAYER
# ═════════════════════════════════════════════════════════════════════════

def _normalise(obj: Any) -> Any:
    """Recursively turn sexpdata output into plain lists, str and numbers."""
    if isinstance(obj, list):
        return [_normalise(x) for x in obj]
    if isinstance(obj, sexpdata.Symbol):
        return str(obj)
    if isinstance(obj, (bool, int, float, str)):
        return obj
    return str(obj)


def _parse_sexp(text: str, source: str = "<string>") -> Any:
    try:
        parsed = sexpdata.loads(text)
    except Exception as exc:
        raise ConfigError(
            f"{source}: failed to parse S-expression: {exc}",
            code=PhpSniffErrorCodes.MALFORMED_RULESET,
        ) from exc
    return _normalise(parsed)


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — RULESET MODEL
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class Ruleset:
    """
    A parsed ruleset.

    Attributes
    ----------
    checkers     : checkers to run (None = every enabled checker)
    disabled     : checkers to disable
    suppressions : (error_id, file pattern or None) pairs
    options      : checker options (``max-fix-loops`` ...)
    exclude      : fnmatch patterns of paths to skip
    source       : where the ruleset was read from
    """
    checkers: Optional[List[str]] = None
    disabled: List[str] = field(default_factory=list)
    suppressions: List[Tuple[str, Optional[str]]] = field(default_factory=list)
    options: Dict[str, Any] = field(default_factory=dict)
    exclude: List[str] = field(default_factory=list)
    source: str = "<string>"

    def apply(self, registry: CheckerRegistry, suppressions: SuppressionManager) -> None:
        """Validate checker names against *registry* and install the rules."""
        for name in list(self.checkers or []) + self.disabled:
            if name not in registry:
                raise ConfigError(
                    f"{self.source}: unknown checker '{name}' "
                    f"(known: {', '.join(registry.names)})",
                    code=PhpSniffErrorCodes.UNKNOWN_CHECKER,
                )
        for name in self.disabled:
            registry.disable(name)
        for error_id, pattern in self.suppressions:
            if pattern is None:
                suppressions.add_global_suppression(error_id)
            else:
                suppressions.add_file_suppression(error_id, pattern)
        _log.debug(
            "Applied ruleset %s: %d disabled, %d suppressions",
            self.source, len(self.disabled), len(self.suppressions),
        )


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — DIRECTIVES
# ═════════════════════════════════════════════════════════════════════════

def _strings(directive: str, args: List[Any], source: str) -> List[str]:
    for arg in args:
        if not isinstance(arg, str):
            raise ConfigError(
                f"{source}: ({directive} ...) expects names, got {arg!r}",
                code=PhpSniffErrorCodes.MALFORMED_RULESET,
            )
    return list(args)


def _apply_directive(ruleset: Ruleset, form: Any) -> None:
    source = ruleset.source
    if not isinstance(form, list) or not form or not isinstance(form[0], str):
        raise ConfigError(
            f"{source}: expected a (directive ...) form, got {form!r}",
            code=PhpSniffErrorCodes.MALFORMED_RULESET,
        )
    head, args = form[0], form[1:]

    if head == "checkers":
        ruleset.checkers = (ruleset.checkers or []) + _strings(head, args, source)
    elif head == "disable":
        ruleset.disabled.extend(_strings(head, args, source))
    elif head == "exclude":
        ruleset.exclude.extend(_strings(head, args, source))
    elif head == "suppress":
        args = _strings(head, args, source)
        if len(args) not in (1, 2):
            raise ConfigError(
                f"{source}: (suppress ErrorId [\"pattern\"]) takes 1 or 2 arguments",
                code=PhpSniffErrorCodes.MALFORMED_RULESET,
            )
        ruleset.suppressions.append((args[0], args[1] if len(args) == 2 else None))
    elif head == "option":
        if len(args) != 2 or not isinstance(args[0], str):
            raise ConfigError(
                f"{source}: (option name value) takes exactly 2 arguments",
                code=PhpSniffErrorCodes.MALFORMED_RULESET,
            )
        name, value = args
        expected = KNOWN_OPTIONS.get(name)
        if expected is None:
            raise ConfigError(
                f"{source}: unknown option '{name}'",
                code=PhpSniffErrorCodes.INVALID_OPTION,
            )
        if not isinstance(value, expected) or isinstance(value, bool):
            raise ConfigError(
                f"{source}: option '{name}' expects {expected.__name__}, got {value!r}",
                code=PhpSniffErrorCodes.INVALID_OPTION,
            )
        ruleset.options[name] = value
    else:
        raise ConfigError(
            f"{source}: unknown directive '{head}'",
            code=PhpSniffErrorCodes.UNKNOWN_DIRECTIVE,
            hint="expected one of: checkers, disable, suppress, option, exclude",
        )


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 — ENTRY POINTS
# ═════════════════════════════════════════════════════════════════════════

def parse_ruleset(text: str, source: str = "<string>") -> Ruleset:
    """Parse ruleset *text*; raises :class:`ConfigError` on any problem."""
    tree = _parse_sexp(text, source)
    if not isinstance(tree, list) or not tree or tree[0] != "ruleset":
        raise ConfigError(
            f"{source}: a ruleset must be a single (ruleset ...) form",
            code=PhpSniffErrorCodes.MALFORMED_RULESET,
        )
    ruleset = Ruleset(source=source)
    for form in tree[1:]:
        _apply_directive(ruleset, form)
    return ruleset


def load_ruleset(path: Union[str, Path]) -> Ruleset:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read ruleset {p}: {exc.strerror}") from exc
    _log.info("Loading ruleset %s", p)
    return parse_ruleset(text, source=str(p))


def find_default_ruleset(directory: Union[str, Path, None] = None) -> Optional[Path]:
    """``phpsniff.sexp`` in *directory* (default: cwd), if present."""
    candidate = Path(directory or ".") / DEFAULT_RULESET_NAME
    return candidate if candidate.is_file() else None


__all__ = [
    "Ruleset",
    "parse_ruleset",
    "load_ruleset",
    "find_default_ruleset",
    "DEFAULT_RULESET_NAME",
    "KNOWN_OPTIONS",
]
