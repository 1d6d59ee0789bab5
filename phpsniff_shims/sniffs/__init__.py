"""Built-in sniffs."""

from phpsniff_shims.checkers import CheckerRegistry
from phpsniff_shims.sniffs.conditional_expression_order import ConditionalExpressionOrderChecker
from phpsniff_shims.sniffs.doc_block_return_nullable import (
    DocBlockReturnNullableTypeChecker,
    Outcome,
)
from phpsniff_shims.sniffs.no_demoshop import NoDemoshopChecker

BUILTIN_CHECKERS = (
    DocBlockReturnNullableTypeChecker,
    ConditionalExpressionOrderChecker,
    NoDemoshopChecker,
)


def default_registry() -> CheckerRegistry:
    """A fresh registry holding every built-in sniff."""
    registry = CheckerRegistry()
    for cls in BUILTIN_CHECKERS:
        registry.register(cls)
    return registry


__all__ = [
    "BUILTIN_CHECKERS",
    "default_registry",
    "DocBlockReturnNullableTypeChecker",
    "ConditionalExpressionOrderChecker",
    "NoDemoshopChecker",
    "Outcome",
]
