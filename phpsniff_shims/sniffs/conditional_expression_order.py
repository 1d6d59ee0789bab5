"""
Disallows Yoda conditions (``null === $value``).

A comparison whose left operand is a literal is reported.  When the
comparison stands alone (after ``(``, an assignment or a boolean
operator) and its right operand is a single variable or constant, the
operands are swapped in fix mode, mirroring ``<``/``>`` comparisons.
"""

from __future__ import annotations

from typing import ClassVar, Dict, FrozenSet, Optional

from phpsniff_shims.checkers import Checker
from phpsniff_shims.files import PhpFile
from phpsniff_shims.tokens import (
    ARITHMETIC_TOKENS,
    ASSIGNMENT_TOKENS,
    BOOLEAN_OPERATORS,
    COMPARISON_TOKENS,
    EMPTY_TOKENS,
    TokenKind,
    TokenStream,
)

_LITERALS: FrozenSet[TokenKind] = frozenset({
    TokenKind.TRUE,
    TokenKind.FALSE,
    TokenKind.NULL,
    TokenKind.LNUMBER,
    TokenKind.CONSTANT_ENCAPSED_STRING,
})

_SIMPLE_OPERANDS: FrozenSet[TokenKind] = frozenset({
    TokenKind.VARIABLE,
    TokenKind.STRING,
})

_OPERAND_END: FrozenSet[TokenKind] = frozenset({
    TokenKind.CLOSE_PARENTHESIS,
    TokenKind.SEMICOLON,
    TokenKind.COMMA,
    TokenKind.BOOLEAN_AND,
    TokenKind.BOOLEAN_OR,
})

# Operators whose operands may be swapped as they are.
_SYMMETRIC: FrozenSet[TokenKind] = frozenset({
    TokenKind.IS_IDENTICAL,
    TokenKind.IS_NOT_IDENTICAL,
    TokenKind.IS_EQUAL,
    TokenKind.IS_NOT_EQUAL,
})

# Ordering operators and their mirrored spelling.
_MIRRORED: Dict[TokenKind, str] = {
    TokenKind.LESS_THAN: ">",
    TokenKind.GREATER_THAN: "<",
    TokenKind.IS_SMALLER_OR_EQUAL: ">=",
    TokenKind.IS_GREATER_OR_EQUAL: "<=",
}


class ConditionalExpressionOrderChecker(Checker):
    """Checks that no Yoda conditions are used."""

    name: ClassVar[str] = "conditional-expression-order"
    description: ClassVar[str] = "Comparisons must not put the literal on the left"
    error_ids: ClassVar[FrozenSet[str]] = frozenset({"YodaNotAllowed"})

    MSG = "Usage of Yoda conditions is not allowed. Switch the expression order."

    def register(self) -> FrozenSet[TokenKind]:
        return COMPARISON_TOKENS

    def process(self, phpfile: PhpFile, stack_ptr: int) -> None:
        tokens = phpfile.tokens

        literal = tokens.find_previous(EMPTY_TOKENS, stack_ptr - 1, exclude=True)
        if literal is None or tokens[literal].kind not in _LITERALS:
            return
        prev = tokens.find_previous(EMPTY_TOKENS, literal - 1, exclude=True)
        if not prev:
            return
        prev_kind = tokens[prev].kind
        if prev_kind in ARITHMETIC_TOKENS or prev_kind is TokenKind.STRING_CONCAT:
            return

        standalone = (
            prev_kind in ASSIGNMENT_TOKENS
            or prev_kind in BOOLEAN_OPERATORS
            or prev_kind is TokenKind.OPEN_PARENTHESIS
        )
        operand = self._simple_right_operand(tokens, stack_ptr) if standalone else None
        kind = tokens[stack_ptr].kind
        if operand is None or (kind not in _SYMMETRIC and kind not in _MIRRORED):
            phpfile.add_error(self.MSG, stack_ptr, "YodaNotAllowed")
            return

        if not phpfile.add_fixable_error(self.MSG, stack_ptr, "YodaNotAllowed"):
            return
        with phpfile.fixer.changeset() as fixer:
            literal_content = fixer.get_token_content(literal)
            fixer.replace_token(literal, fixer.get_token_content(operand))
            fixer.replace_token(operand, literal_content)
            if kind in _MIRRORED:
                fixer.replace_token(stack_ptr, _MIRRORED[kind])

    @staticmethod
    def _simple_right_operand(tokens: TokenStream, stack_ptr: int) -> Optional[int]:
        operand = tokens.find_next(EMPTY_TOKENS, stack_ptr + 1, exclude=True)
        if operand is None or tokens[operand].kind not in _SIMPLE_OPERANDS:
            return None
        after = tokens.find_next(EMPTY_TOKENS, operand + 1, exclude=True)
        if after is None or tokens[after].kind not in _OPERAND_END:
            return None
        return operand


__all__ = ["ConditionalExpressionOrderChecker"]
