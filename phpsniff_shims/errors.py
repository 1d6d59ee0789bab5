# phpsniff_shims/errors.py
"""
Error types for the phpsniff-shims toolkit.

Architecture Overview:
──────────────────────
┌──────────────────────────────────────────────────────────────────────┐
│                          Error Hierarchy                             │
├──────────────────────────────────────────────────────────────────────┤
│  PhpSniffError (base)                                                │
│  ├── TokenizerError   - Source could not be read/decoded             │
│  ├── ConfigError      - Malformed ruleset files or options           │
│  ├── FixerError       - Misuse of the fixer changeset protocol       │
│  └── InternalError    - Broken internal assumption (a bug)           │
└──────────────────────────────────────────────────────────────────────┘

Expected conditions met while sniffing (no type hint, no doc block, an
unsupported annotation) are never exceptions: sniffs return early.  Only
``InternalError`` escapes a sniff, and the runner turns it into an
``internalError`` diagnostic for the affected token without aborting the
rest of the run.

Error Codes:
────────────
Each error has a code of the form PHPS-XXXX:
  - 0001-0999: Tokenizer errors
  - 1000-1999: Configuration errors
  - 2000-2999: Fixer errors
  - 9000-9999: Internal errors
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Any, Optional


@unique
class ErrorPhase(Enum):
    """Stage of a run where the error occurred."""

    TOKENIZE = "tokenize"
    CONFIG = "config"
    FIX = "fix"
    INTERNAL = "internal"


class ErrorCode:
    """
    Structured error code, ``PREFIX-NNNN``.
    """

    __slots__ = ("prefix", "number", "phase")

    def __init__(self, prefix: str, number: int, phase: ErrorPhase) -> None:
        self.prefix = prefix
        self.number = number
        self.phase = phase

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.phase.name})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class PhpSniffErrorCodes:
    """Predefined error codes."""

    # Tokenizer (0001-0999)
    UNREADABLE_SOURCE = ErrorCode("PHPS", 1, ErrorPhase.TOKENIZE)
    UNDECODABLE_SOURCE = ErrorCode("PHPS", 2, ErrorPhase.TOKENIZE)

    # Configuration (1000-1999)
    MALFORMED_RULESET = ErrorCode("PHPS", 1000, ErrorPhase.CONFIG)
    UNKNOWN_DIRECTIVE = ErrorCode("PHPS", 1001, ErrorPhase.CONFIG)
    UNKNOWN_CHECKER = ErrorCode("PHPS", 1002, ErrorPhase.CONFIG)
    INVALID_OPTION = ErrorCode("PHPS", 1003, ErrorPhase.CONFIG)

    # Fixer (2000-2999)
    NESTED_CHANGESET = ErrorCode("PHPS", 2000, ErrorPhase.FIX)
    NO_OPEN_CHANGESET = ErrorCode("PHPS", 2001, ErrorPhase.FIX)
    TOKEN_OUT_OF_RANGE = ErrorCode("PHPS", 2002, ErrorPhase.FIX)

    # Internal (9000-9999)
    INTERNAL_ERROR = ErrorCode("PHPS", 9000, ErrorPhase.INTERNAL)
    TOKEN_NOT_FOUND = ErrorCode("PHPS", 9001, ErrorPhase.INTERNAL)


@dataclass(frozen=True)
class SourceSpan:
    """A position in a PHP source file."""

    file: str = ""
    line: int = 0
    column: int = 0

    @classmethod
    def from_token(cls, token: Any, file: str = "") -> "SourceSpan":
        """Create a SourceSpan from a token object."""
        return cls(
            file=file,
            line=getattr(token, "line", 0) or 0,
            column=getattr(token, "column", 0) or 0,
        )

    def __str__(self) -> str:
        if not self.file:
            return "<unknown>"
        if self.column:
            return f"{self.file}:{self.line}:{self.column}"
        if self.line:
            return f"{self.file}:{self.line}"
        return self.file


class PhpSniffError(Exception):
    """
    Base exception for all phpsniff-shims errors.

    Carries a structured code and an optional source span so that the
    CLI can print GCC-style messages.
    """

    default_code: ErrorCode = PhpSniffErrorCodes.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.span = span or SourceSpan()
        self.hint = hint

    def to_gcc_format(self) -> str:
        """Format as a GCC-style error message."""
        text = f"{self.span}: error: {self.message} [{self.code}]"
        if self.hint:
            text += f"\n  hint: {self.hint}"
        return text

    def __str__(self) -> str:
        return self.to_gcc_format()


class TokenizerError(PhpSniffError):
    """Source text could not be obtained for tokenization."""

    default_code = PhpSniffErrorCodes.UNREADABLE_SOURCE


class ConfigError(PhpSniffError):
    """Invalid ruleset file or option value."""

    default_code = PhpSniffErrorCodes.MALFORMED_RULESET


class FixerError(PhpSniffError):
    """The fixer changeset protocol was used incorrectly."""

    default_code = PhpSniffErrorCodes.NESTED_CHANGESET


class InternalError(PhpSniffError):
    """
    An internal assumption was broken.

    Raised when state that was valid during detection cannot be found
    again while fixing.  Never a user error.
    """

    default_code = PhpSniffErrorCodes.INTERNAL_ERROR


__all__ = [
    "ErrorPhase",
    "ErrorCode",
    "PhpSniffErrorCodes",
    "SourceSpan",
    "PhpSniffError",
    "TokenizerError",
    "ConfigError",
    "FixerError",
    "InternalError",
]
