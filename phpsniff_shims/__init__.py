"""
phpsniff_shims — coding-standard sniffs for PHP sources
=======================================================

A small PHP_CodeSniffer-style toolkit: a tokenizer with paired-bracket
bookkeeping, a changeset-based fixer, and sniffs that report (and
optionally fix) violations.

Core modules
------------
tokens
    PHP tokenizer and random-access token stream.
fixer
    Token-content rewriting with atomic changesets.
files
    ``PhpFile``: tokens, fixer and diagnostics of one file.
diagnostics
    Diagnostic model and ``phpcs:`` suppressions.
checkers
    Checker base class, registry and runner.
helpers
    Return type hints, related doc blocks, function names.
config
    S-expression rulesets.
sniffs
    Built-in sniffs (``doc-block-return-nullable`` and friends).

Quick start
-----------
>>> from phpsniff_shims import PhpFile, DocBlockReturnNullableTypeChecker
>>> f = PhpFile("Foo.php", "<?php\\n/**\\n * @return Foo\\n */\\nfunction foo(): ?Foo {}\\n")
>>> [d.error_id for d in f.process([DocBlockReturnNullableTypeChecker()])]
['ReturnNullableMissing']
"""

from __future__ import annotations

import importlib
import logging
import sys
from typing import Dict, List

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------

__version__ = "0.2.0"
__license__ = "MIT"
__all__: List[str] = []          # populated below

_log = logging.getLogger(__name__)
_log.addHandler(logging.NullHandler())

# ---------------------------------------------------------------------------
# Re-exported names: module → names
# ---------------------------------------------------------------------------

_MODULES: Dict[str, List[str]] = {
    "errors": [
        "PhpSniffError",
        "TokenizerError",
        "ConfigError",
        "FixerError",
        "InternalError",
    ],
    "tokens": [
        "TokenKind",
        "Token",
        "TokenStream",
        "tokenize",
    ],
    "fixer": ["Fixer"],
    "diagnostics": [
        "Diagnostic",
        "DiagnosticSeverity",
        "SourceLocation",
        "SuppressionManager",
    ],
    "files": ["PhpFile"],
    "checkers": [
        "Checker",
        "CheckerContext",
        "CheckerRegistry",
        "CheckerRunner",
        "CheckerRunResults",
    ],
    "helpers": [
        "TypeHint",
        "find_return_type_hint",
        "find_related_doc_block",
    ],
    "config": [
        "Ruleset",
        "load_ruleset",
        "parse_ruleset",
    ],
    "sniffs": [
        "default_registry",
        "DocBlockReturnNullableTypeChecker",
        "ConditionalExpressionOrderChecker",
        "NoDemoshopChecker",
        "Outcome",
    ],
}


def _import_names(module_rel_name: str, names: List[str]) -> None:
    """Import *names* from a submodule and bind them in the package namespace."""
    mod = importlib.import_module(f"{__name__}.{module_rel_name}")
    current_module = sys.modules[__name__]
    for name in names:
        setattr(current_module, name, getattr(mod, name))
        __all__.append(name)
    setattr(current_module, module_rel_name, mod)
    __all__.append(module_rel_name)


for _mod, _names in _MODULES.items():
    _import_names(_mod, _names)

del _mod, _names


def list_submodules() -> List[str]:
    """Names of the submodules re-exported by the package."""
    return sorted(_MODULES)


__all__ += ["__version__", "list_submodules"]
