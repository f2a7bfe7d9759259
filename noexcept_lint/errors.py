"""
noexcept_lint/errors.py
═══════════════════════

Error types raised by the outer layers (dump loading, fix-it
application).  The analysis core never raises; it degrades to
``ExceptionState.UNKNOWN`` or an invalid insertion point instead.

    NoexceptLintError (base)
    ├── DumpLoadError   - the .dump file could not be read or parsed
    └── FixItError      - a fix-it cannot be mapped onto or written to a file

License: MIT
"""

from __future__ import annotations

from typing import Optional


class NoexceptLintError(Exception):
    """Base class for all noexcept-lint errors."""

    exit_code: int = 2

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class DumpLoadError(NoexceptLintError):
    """Raised when a cppcheck dump cannot be loaded."""

    def __init__(self, path: str, reason: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"failed to load '{path}': {reason}")
        self.path = path
        self.reason = reason
        self.cause = cause


class FixItError(NoexceptLintError):
    """Raised when a fix-it cannot be applied."""


__all__ = [
    "DumpLoadError",
    "FixItError",
    "NoexceptLintError",
]
