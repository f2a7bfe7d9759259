"""
noexcept_lint/tokens.py
═══════════════════════

Safe accessors over ``cppcheckdata.Token`` objects.

Every function here tolerates ``None`` and missing attributes, so the
analysis layers can walk a token list without sprinkling ``getattr``
everywhere and without a hard import of ``cppcheckdata``.

License: MIT
"""

from __future__ import annotations

from typing import Any, Iterator, List, Optional

# We use Any for Token to avoid hard dependency on cppcheckdata module
# at import time, while still providing full functionality.
Token = Any


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 - SAFE ACCESSORS
# ═══════════════════════════════════════════════════════════════════════════

def tok_str(tok: Token) -> str:
    """
    Safely get the string representation of a token.

    Args:
        tok: A cppcheckdata Token object (may be None)

    Returns:
        The token's string value, or empty string if tok is None
    """
    if tok is None:
        return ""
    return getattr(tok, "str", "") or ""


def tok_next(tok: Token) -> Optional[Token]:
    if tok is None:
        return None
    return getattr(tok, "next", None)


def tok_previous(tok: Token) -> Optional[Token]:
    if tok is None:
        return None
    return getattr(tok, "previous", None)


def tok_link(tok: Token) -> Optional[Token]:
    """
    Safely get the linked token (for brackets, parentheses).

    Returns:
        The linked token, or None
    """
    if tok is None:
        return None
    return getattr(tok, "link", None)


def tok_file(tok: Token) -> str:
    if tok is None:
        return "<unknown>"
    return getattr(tok, "file", "<unknown>") or "<unknown>"


def tok_line(tok: Token) -> int:
    if tok is None:
        return 0
    return int(getattr(tok, "linenr", 0) or 0)


def tok_column(tok: Token) -> int:
    if tok is None:
        return 0
    return int(getattr(tok, "column", 0) or 0)


def tok_values(tok: Token) -> List[Any]:
    """
    Safely get the value-flow values of a token.

    Returns:
        List of Value objects (empty if none)
    """
    if tok is None:
        return []
    vals = getattr(tok, "values", None)
    return list(vals) if vals else []


def tok_type_scope(tok: Token) -> Optional[Any]:
    """The class/enum scope a type-name token refers to, if cppcheck knows it."""
    if tok is None:
        return None
    return getattr(tok, "typeScope", None)


def tok_value_type(tok: Token) -> Optional[Any]:
    if tok is None:
        return None
    return getattr(tok, "valueType", None)


def is_expanded_macro(tok: Token) -> bool:
    """True when the token was produced by a macro expansion."""
    if tok is None:
        return False
    return bool(getattr(tok, "isExpandedMacro", False))


def known_int_value(tok: Token) -> Optional[int]:
    """The ValueFlow value of *tok* when cppcheck marks it as known."""
    for v in tok_values(tok):
        if getattr(v, "valueKind", "") != "known":
            continue
        iv = getattr(v, "intvalue", None)
        if iv is not None:
            return int(iv)
    return None


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 - TOKEN SEQUENCE UTILITIES
# ═══════════════════════════════════════════════════════════════════════════

_OPENERS = {"(": ")", "[": "]", "{": "}", "<": ">"}


def matching_close(open_tok: Token) -> Optional[Token]:
    """
    Return the token closing the bracket opened by *open_tok*.

    Uses ``tok.link`` when cppcheck provided it, otherwise counts depth
    manually.  Returns None when the bracket is never closed.
    """
    link = tok_link(open_tok)
    if link is not None:
        return link
    opener = tok_str(open_tok)
    closer = _OPENERS.get(opener)
    if closer is None:
        return None
    depth = 0
    t = open_tok
    while t is not None:
        s = tok_str(t)
        if s == opener:
            depth += 1
        elif s == closer:
            depth -= 1
            if depth == 0:
                return t
        t = tok_next(t)
    return None


def matching_open(close_tok: Token) -> Optional[Token]:
    """Mirror of :func:`matching_close`, walking backwards."""
    link = tok_link(close_tok)
    if link is not None:
        return link
    closer = tok_str(close_tok)
    opener = {v: k for k, v in _OPENERS.items()}.get(closer)
    if opener is None:
        return None
    depth = 0
    t = close_tok
    while t is not None:
        s = tok_str(t)
        if s == closer:
            depth += 1
        elif s == opener:
            depth -= 1
            if depth == 0:
                return t
        t = tok_previous(t)
    return None


def iter_tokens_between(start: Token, end: Token) -> Iterator[Token]:
    """
    Iterate over the tokens strictly between *start* and *end*.

    Stops at the end of the token list if *end* is never reached.
    """
    t = tok_next(start)
    while t is not None and t is not end:
        yield t
        t = tok_next(t)


def iter_tokens_in_range(start: Token, end: Token) -> Iterator[Token]:
    """Iterate over tokens from start to end (inclusive)."""
    current = start
    while current is not None:
        yield current
        if current is end:
            break
        current = tok_next(current)


def spelling(tokens: List[Token]) -> str:
    """Join token strings the way cppcheck names instantiated types."""
    return "".join(tok_str(t) for t in tokens)
