"""
noexcept_lint/reporter.py
═════════════════════════

Colourful terminal rendering for ``--output pretty``::

    performance[destructorNotNoexcept]: destructors should be marked noexcept
      --> widget.cpp:12:5
       |
    12 |     ~Widget() {}
       |     ^
      = help: insert ' noexcept ' at widget.cpp:12:14
    [widget.cpp:12]: (performance) destructors should be marked noexcept [destructorNotNoexcept]

Source lines are read lazily; a file that cannot be read just loses
its excerpt.

License: MIT
"""

from __future__ import annotations

import sys
from typing import Dict, Iterable, List, Optional, TextIO

from termcolor import colored

from noexcept_lint.checkers import Diagnostic, DiagnosticSeverity

_SEVERITY_COLORS: Dict[DiagnosticSeverity, str] = {
    DiagnosticSeverity.ERROR: "red",
    DiagnosticSeverity.WARNING: "yellow",
    DiagnosticSeverity.STYLE: "cyan",
    DiagnosticSeverity.PERFORMANCE: "magenta",
    DiagnosticSeverity.PORTABILITY: "blue",
    DiagnosticSeverity.INFORMATION: "white",
}


def cppcheck_line(diag: Diagnostic) -> str:
    """Classic one-liner: ``[file:line]: (severity) message [id]``."""
    loc = diag.location
    return f"[{loc.file}:{loc.line}]: ({diag.severity.value}) {diag.message} [{diag.error_id}]"


class TerminalReporter:
    """Render diagnostics Rust-style, with the offending source line."""

    def __init__(self, stream: Optional[TextIO] = None, use_color: Optional[bool] = None) -> None:
        self._stream = stream or sys.stdout
        if use_color is None:
            use_color = bool(getattr(self._stream, "isatty", lambda: False)())
        self._use_color = use_color
        self._sources: Dict[str, List[str]] = {}

    def _paint(self, text: str, color: Optional[str] = None, bold: bool = False,
               dark: bool = False) -> str:
        if not self._use_color:
            return text
        attrs = (["bold"] if bold else []) + (["dark"] if dark else [])
        return colored(text, color, attrs=attrs or None, force_color=True)

    def _source_line(self, path: str, line: int) -> Optional[str]:
        if path not in self._sources:
            try:
                with open(path, "r", encoding="utf-8", errors="replace") as fh:
                    self._sources[path] = [ln.rstrip("\r\n") for ln in fh]
            except OSError:
                self._sources[path] = []
        lines = self._sources[path]
        if 1 <= line <= len(lines):
            return lines[line - 1]
        return None

    def render(self, diag: Diagnostic) -> str:
        color = _SEVERITY_COLORS.get(diag.severity, "white")
        loc = diag.location
        out: List[str] = []

        header = self._paint(f"{diag.severity.value}[{diag.error_id}]", color, bold=True)
        out.append(f"{header}: {self._paint(diag.message, bold=True)}")
        if loc.file:
            out.append(f"  {self._paint('-->', 'blue', bold=True)} {loc}")

        text = self._source_line(loc.file, loc.line) if loc.file else None
        if text is not None:
            gutter = str(loc.line)
            blank = " " * len(gutter)
            pipe = self._paint("|", "blue", bold=True)
            # byte column to display width
            before = text.encode("utf-8")[:max(loc.column - 1, 0)]
            pad = " " * len(before.decode("utf-8", "ignore"))
            out.append(f" {blank} {pipe}")
            out.append(f" {self._paint(gutter, 'blue', bold=True)} {pipe} {text}")
            out.append(f" {blank} {pipe} {pad}{self._paint('^', color, bold=True)}")

        for fx in diag.fixits:
            prefix = self._paint("help", "green", bold=True)
            out.append(f"  = {prefix}: insert '{fx.text}' at {fx.file}:{fx.line}:{fx.column}")

        out.append(self._paint(cppcheck_line(diag), dark=True))
        return "\n".join(out) + "\n"

    def report(self, diagnostics: Iterable[Diagnostic]) -> int:
        count = 0
        for diag in diagnostics:
            self._stream.write(self.render(diag) + "\n")
            count += 1
        return count


__all__ = ["TerminalReporter", "cppcheck_line"]
