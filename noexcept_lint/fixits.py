"""
noexcept_lint/fixits.py
═══════════════════════

Text edits attached to diagnostics, and the code that applies them.

A :class:`FixIt` is an insertion at a 1-based (line, column) position,
the coordinate system cppcheck uses for tokens.  Offsets are derived on
demand against the current file contents, so the same fix-it can be
applied in place, rendered as a diff, or exported as JSON in
clang-tidy's replacement layout (byte offsets).

License: MIT
"""

from __future__ import annotations

import difflib
import json
import logging
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, TextIO, Tuple

from noexcept_lint.errors import FixItError

_log = logging.getLogger(__name__)


def line_column_to_offset(source: str, line: int, column: int) -> int:
    """
    Convert a 1-based (line, column) position into a character offset.

    cppcheck counts columns in bytes of the UTF-8 line, so the column is
    mapped through the line's encoding.  Raises :class:`FixItError` when
    the position lies outside *source* or inside a multi-byte character.
    """
    if line < 1 or column < 1:
        raise FixItError(f"invalid position {line}:{column}")
    lines = source.splitlines(keepends=True)
    if line > len(lines):
        raise FixItError(f"line {line} is past the end of the file")
    encoded = lines[line - 1].rstrip("\r\n").encode("utf-8")
    if column - 1 > len(encoded):
        raise FixItError(f"column {column} is past the end of line {line}")
    try:
        prefix = encoded[:column - 1].decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FixItError(
            f"column {column} of line {line} splits a multi-byte character"
        ) from exc
    return sum(len(ln) for ln in lines[:line - 1]) + len(prefix)


@dataclass(frozen=True)
class FixIt:
    """Insert ``text`` before the character at (``line``, ``column``)."""
    file: str
    line: int
    column: int
    text: str

    def offset_in(self, source: str) -> int:
        return line_column_to_offset(source, self.line, self.column)

    def byte_offset_in(self, source: str) -> int:
        return len(source[:self.offset_in(source)].encode("utf-8"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "text": self.text,
        }


def apply_fixits(source: str, fixits: Iterable[FixIt]) -> str:
    """
    Return *source* with every insertion applied.

    Identical insertions at the same position are applied once, so the
    same finding reported from two configurations does not double up.
    """
    edits = {(fx.offset_in(source), fx.text) for fx in fixits}
    result = source
    for offset, text in sorted(edits, key=lambda e: e[0], reverse=True):
        result = result[:offset] + text + result[offset:]
    return result


def _read_source(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise FixItError(f"cannot read '{path}': {exc}") from exc


def group_by_file(fixits: Iterable[FixIt]) -> Dict[str, List[FixIt]]:
    grouped: Dict[str, List[FixIt]] = defaultdict(list)
    for fx in fixits:
        grouped[fx.file].append(fx)
    return dict(grouped)


def apply_to_files(
    fixits: Iterable[FixIt],
    write: bool = True,
    read_source: Callable[[str], str] = _read_source,
) -> Dict[str, Tuple[str, str]]:
    """
    Apply fix-its file by file.

    Returns ``{path: (old_text, new_text)}``.  With ``write=False`` the
    files are left untouched (useful for ``--diff``).
    """
    results: Dict[str, Tuple[str, str]] = {}
    for path, file_fixits in group_by_file(fixits).items():
        old = read_source(path)
        new = apply_fixits(old, file_fixits)
        results[path] = (old, new)
        if write and new != old:
            try:
                Path(path).write_text(new, encoding="utf-8")
            except OSError as exc:
                raise FixItError(f"cannot write '{path}': {exc}") from exc
            _log.info("applied %d fix-it(s) to %s", len(file_fixits), path)
    return results


def render_diff(results: Mapping[str, Tuple[str, str]]) -> str:
    """Unified diff of the changes returned by :func:`apply_to_files`."""
    chunks: List[str] = []
    for path in sorted(results):
        old, new = results[path]
        chunks.extend(difflib.unified_diff(
            old.splitlines(keepends=True),
            new.splitlines(keepends=True),
            fromfile=f"a/{path}",
            tofile=f"b/{path}",
        ))
    return "".join(chunks)


def export_fixes(
    diagnostics: Iterable[Any],
    stream: TextIO,
    main_source_file: Optional[str] = None,
    read_source: Callable[[str], str] = _read_source,
) -> int:
    """
    Write fix-its as a JSON replacements document in clang-tidy's
    ``--export-fixes`` layout.

    Each diagnostic carrying fix-its becomes one entry; offsets are in
    bytes.  ``MainSourceFile`` defaults to the file of the first fix-it.
    Returns the number of replacements written.
    """
    sources: Dict[str, str] = {}
    entries = []
    count = 0
    for diag in diagnostics:
        fixits = getattr(diag, "fixits", ())
        if not fixits:
            continue
        replacements = []
        for fx in fixits:
            if main_source_file is None:
                main_source_file = fx.file
            if fx.file not in sources:
                sources[fx.file] = read_source(fx.file)
            replacements.append({
                "FilePath": fx.file,
                "Offset": fx.byte_offset_in(sources[fx.file]),
                "Length": 0,
                "ReplacementText": fx.text,
            })
        count += len(replacements)
        loc = diag.location
        entries.append({
            "DiagnosticName": diag.error_id,
            "DiagnosticMessage": {
                "Message": diag.message,
                "FilePath": loc.file,
                "Line": loc.line,
                "Column": loc.column,
                "Replacements": replacements,
            },
            "Level": "Warning",
        })
    json.dump(
        {"MainSourceFile": main_source_file or "", "Diagnostics": entries},
        stream,
        indent=2,
    )
    stream.write("\n")
    return count


__all__ = [
    "FixIt",
    "apply_fixits",
    "apply_to_files",
    "export_fixes",
    "group_by_file",
    "line_column_to_offset",
    "render_diff",
]
