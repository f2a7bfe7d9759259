"""
noexcept_lint/locator.py
════════════════════════

Where to insert ``noexcept`` into a destructor declaration that has no
exception specification.

The grammar leaves exactly one slot::

    ~Name ( params ) [cv] [ref]  ▼  [[attrs]] [override|final] { body }
                                  │                             = default;
                                  └─ noexcept goes here         = 0;
                                                                ;

The locator finds that slot in the token stream and then checks that
the rest of the declaration runs into a body, ``=`` marker or ``;``
before it will call the slot valid.

License: MIT
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet

from noexcept_lint.declarations import Declaration, skip_qualifiers
from noexcept_lint.fixits import line_column_to_offset
from noexcept_lint.tokens import (
    Token,
    is_expanded_macro,
    tok_column,
    tok_file,
    tok_line,
    tok_next,
    tok_str,
)

_log = logging.getLogger(__name__)

# Tokens that end the declarator at nesting depth 0.
_STOP_TOKENS: FrozenSet[str] = frozenset({"{", ";", "=", "try", ":"})


@dataclass(frozen=True)
class InsertionPoint:
    """
    A 1-based (line, column) source position.

    Callers must not emit a fix-it when ``valid`` is False.
    """
    file: str = ""
    line: int = 0
    column: int = 0
    valid: bool = False

    def offset_in(self, source: str) -> int:
        """Character offset of the point within *source*."""
        return line_column_to_offset(source, self.line, self.column)

    def byte_offset_in(self, source: str) -> int:
        return len(source[:self.offset_in(source)].encode("utf-8"))


INVALID_POINT = InsertionPoint()


def _point_after(tok: Token) -> InsertionPoint:
    line = tok_line(tok)
    column = tok_column(tok)
    if line <= 0 or column <= 0:
        return INVALID_POINT
    return InsertionPoint(
        file=tok_file(tok),
        line=line,
        column=column + len(tok_str(tok)),
        valid=True,
    )


class SpecifierInsertionLocator:
    """
    Finds the insertion point for a ``noexcept`` specifier.

    Pure token analysis: no semantic evaluation, and the only failure
    mode is an invalid :class:`InsertionPoint`.
    """

    def locate(self, decl: Declaration) -> InsertionPoint:
        close = decl.close_paren
        if close is None:
            return INVALID_POINT

        anchor = skip_qualifiers(close)
        if is_expanded_macro(anchor):
            _log.debug("~%s: insertion slot is inside a macro expansion", decl.name)
            return INVALID_POINT

        depth = 0
        t = tok_next(anchor)
        while t is not None:
            s = tok_str(t)
            if s in ("(", "["):
                depth += 1
            elif s in (")", "]"):
                depth -= 1
                if depth < 0:
                    return INVALID_POINT
            elif depth == 0:
                if s in _STOP_TOKENS:
                    return _point_after(anchor)
                if s in ("noexcept", "throw", "}"):
                    return INVALID_POINT
            t = tok_next(t)
        return INVALID_POINT


__all__ = [
    "INVALID_POINT",
    "InsertionPoint",
    "SpecifierInsertionLocator",
]
