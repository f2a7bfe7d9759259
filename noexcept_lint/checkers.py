"""
noexcept_lint/checkers.py
═════════════════════════

Checker framework and the ``noexcept-destructor`` checker, packaged as a
cppcheck addon.

Architecture
────────────

  ┌─────────────────────────────────────────────────────────┐
  │                   CheckerRunner                         │
  │  ┌───────────────────────────────────────────────────┐  │
  │  │           NoexceptDestructorChecker               │  │
  │  └──────────────────────────┬────────────────────────┘  │
  │                             │                           │
  │  ┌──────────────────────────▼────────────────────────┐  │
  │  │  DeclarationIndex │ ExceptionSpecAnalyzer │       │  │
  │  │  SpecifierInsertionLocator                        │  │
  │  └──────────────────────────┬────────────────────────┘  │
  │                             │                           │
  │  ┌──────────────────────────▼────────────────────────┐  │
  │  │           SuppressionManager                      │  │
  │  └──────────────────────────┬────────────────────────┘  │
  │                             │                           │
  │  ┌──────────────────────────▼────────────────────────┐  │
  │  │   Diagnostic output (JSON / GCC) and fix-its      │  │
  │  └───────────────────────────────────────────────────┘  │
  └─────────────────────────────────────────────────────────┘

Each Checker follows a four-phase lifecycle:

  1. **configure()**        - receive context, set up shared analyses
  2. **collect_evidence()** - run analyses, gather suspicious sites
  3. **diagnose()**         - turn evidence into Diagnostics
  4. **report()**           - emit Diagnostics (filtered by suppressions)

License: MIT
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum, auto
from fnmatch import fnmatch
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Sequence,
    Set,
    TextIO,
    Tuple,
    Type,
)

from noexcept_lint import __version__
from noexcept_lint.declarations import (
    DEFAULT_LIBRARY_NAMESPACES,
    Absent,
    Declaration,
    DeclarationIndex,
    DynamicThrow,
    NoexceptExpression,
    NoexceptLiteral,
)
from noexcept_lint.errors import DumpLoadError, NoexceptLintError
from noexcept_lint.exception_spec import ExceptionSpecAnalyzer, ExceptionState
from noexcept_lint.fixits import FixIt, apply_to_files, export_fixes, render_diff
from noexcept_lint.locator import SpecifierInsertionLocator
from noexcept_lint.tokens import tok_column, tok_file, tok_line

_log = logging.getLogger(__name__)

EXIT_OK: int = 0
EXIT_FINDINGS: int = 1
EXIT_INFRA: int = 2


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 - DIAGNOSTIC MODEL
# ═════════════════════════════════════════════════════════════════════════

class DiagnosticSeverity(Enum):
    """cppcheck-compatible severity levels."""
    ERROR = "error"
    WARNING = "warning"
    STYLE = "style"
    PERFORMANCE = "performance"
    PORTABILITY = "portability"
    INFORMATION = "information"


class Confidence(Enum):
    """
    How certain we are that the diagnostic is a true positive.

    HIGH   - the analysis proves the specification permits throwing
    MEDIUM - strongly suspected
    LOW    - heuristic / pattern-based, may be false positive
    """
    HIGH = auto()
    MEDIUM = auto()
    LOW = auto()


@dataclass(frozen=True)
class SourceLocation:
    """A specific point in source code."""
    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.column:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class Diagnostic:
    """
    A single diagnostic finding.

    Designed for direct serialization to cppcheck's JSON addon protocol.

    Attributes
    ----------
    error_id     : Unique identifier (e.g., "destructorNotNoexcept")
    message      : Human-readable description
    severity     : DiagnosticSeverity
    location     : Primary source location
    confidence   : Confidence level
    checker_name : Name of the checker that produced this
    addon        : Addon name for cppcheck protocol
    extra        : Additional context string
    fixits       : Text insertions that resolve the finding (0 or 1)
    """
    error_id: str
    message: str
    severity: DiagnosticSeverity
    location: SourceLocation
    confidence: Confidence = Confidence.MEDIUM
    checker_name: str = ""
    addon: str = "noexcept-lint"
    extra: str = ""
    fixits: Tuple[FixIt, ...] = ()

    def to_cppcheck_json(self) -> Dict[str, Any]:
        """Serialize to cppcheck's JSON addon output format."""
        return {
            "file": self.location.file,
            "linenr": self.location.line,
            "column": self.location.column,
            "severity": self.severity.value,
            "message": self.message,
            "addon": self.addon,
            "errorId": self.error_id,
            "extra": self.extra,
        }

    def to_json_str(self) -> str:
        """Single-line JSON string for cppcheck addon stdout."""
        return json.dumps(self.to_cppcheck_json())

    def to_gcc_format(self) -> str:
        """GCC-style diagnostic string: file:line:col: severity: message."""
        sev = self.severity.value
        return f"{self.location}: {sev}: {self.message} [{self.error_id}]"

    @property
    def dedup_key(self) -> Tuple[str, int, int, str]:
        loc = self.location
        return (loc.file, loc.line, loc.column, self.error_id)


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 - SUPPRESSION MANAGER
# ═════════════════════════════════════════════════════════════════════════

class SuppressionManager:
    """
    Manages diagnostic suppressions from multiple sources.

    Sources:
      1. Inline comments:  ``// cppcheck-suppress errorId``
      2. File-level suppressions (passed programmatically)
      3. Global suppressions (command-line or config)

    Usage
    -----
    >>> sm = SuppressionManager()
    >>> sm.load_inline_suppressions(cfg)
    >>> sm.add_file_suppression("destructorNotNoexcept", "legacy/*")
    >>> sm.add_global_suppression("noexceptDestructorFalse")
    >>> if not sm.is_suppressed(diagnostic):
    ...     emit(diagnostic)
    """

    def __init__(self) -> None:
        # {(file, line)} → set of error_ids suppressed at that location
        self._inline: Dict[Tuple[str, int], Set[str]] = defaultdict(set)
        # file pattern → set of error_ids
        self._file_level: Dict[str, Set[str]] = defaultdict(set)
        # globally suppressed error_ids
        self._global: Set[str] = set()

    def load_inline_suppressions(self, cfg: Any) -> None:
        """Pick up the suppressions cppcheck parsed into ``cfg.suppressions``."""
        for supp in getattr(cfg, "suppressions", None) or []:
            error_id = getattr(supp, "errorId", None)
            file = getattr(supp, "fileName", "") or ""
            line = int(getattr(supp, "lineNumber", 0) or 0)
            if not error_id:
                continue
            if file and line:
                self._inline[(file, line)].add(error_id)
            elif file:
                self._file_level[file].add(error_id)
            else:
                self._global.add(error_id)

    def add_file_suppression(self, error_id: str, file_pattern: str) -> None:
        """Suppress ``error_id`` in files matching ``file_pattern``."""
        self._file_level[file_pattern].add(error_id)

    def add_global_suppression(self, error_id: str) -> None:
        """Globally suppress ``error_id``."""
        self._global.add(error_id)

    def is_suppressed(self, diag: Diagnostic) -> bool:
        """Check whether a diagnostic should be suppressed."""
        eid = diag.error_id

        if eid in self._global or "*" in self._global:
            return True

        loc = diag.location

        # Inline (exact line match, or line-1 for preceding-line suppress)
        for line_offset in (0, 1):
            suppressed_ids = self._inline.get((loc.file, loc.line - line_offset), set())
            if eid in suppressed_ids or "*" in suppressed_ids:
                return True

        for pattern, ids in self._file_level.items():
            if eid not in ids and "*" not in ids:
                continue
            if pattern == loc.file or loc.file.endswith(pattern) or fnmatch(loc.file, pattern):
                return True

        return False

    def filter_diagnostics(self, diagnostics: Iterable[Diagnostic]) -> List[Diagnostic]:
        """Return only non-suppressed diagnostics."""
        return [d for d in diagnostics if not self.is_suppressed(d)]


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 - CHECKER BASE CLASS
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class CheckerContext:
    """
    Shared context passed to every checker during execution.

    Attributes
    ----------
    cfg          : cppcheckdata.Configuration
    suppressions : SuppressionManager
    analyses     : dict of analysis objects shared between checkers
    options      : user-provided options dict
    stats        : mutable dict for timing / counting statistics
    """
    cfg: Any
    suppressions: SuppressionManager = field(default_factory=SuppressionManager)
    analyses: Dict[str, Any] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)
    stats: Dict[str, Any] = field(default_factory=dict)

    def get_analysis(self, name: str) -> Any:
        return self.analyses.get(name)

    def set_analysis(self, name: str, result: Any) -> None:
        self.analyses[name] = result

    def get_option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)


class Checker(ABC):
    """
    Abstract base class for all checkers.

    Subclass Contract
    ─────────────────
      - Override ``name``, ``description``, ``error_ids``
      - Implement ``collect_evidence()`` and ``diagnose()``
      - Optionally override ``configure()`` for custom setup
    """

    name: ClassVar[str] = "base-checker"
    description: ClassVar[str] = ""
    error_ids: ClassVar[FrozenSet[str]] = frozenset()
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.WARNING

    def __init__(self) -> None:
        self._diagnostics: List[Diagnostic] = []

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    def configure(self, ctx: CheckerContext) -> None:
        """Called before evidence collection.  Default does nothing."""
        pass

    @abstractmethod
    def collect_evidence(self, ctx: CheckerContext) -> None:
        ...

    @abstractmethod
    def diagnose(self, ctx: CheckerContext) -> None:
        """Correlate evidence into Diagnostic objects."""
        ...

    def report(self, ctx: CheckerContext) -> List[Diagnostic]:
        """Return final diagnostics, filtered by suppressions."""
        return ctx.suppressions.filter_diagnostics(self._diagnostics)

    def _emit(
        self,
        error_id: str,
        message: str,
        file: str,
        line: int,
        column: int = 0,
        severity: Optional[DiagnosticSeverity] = None,
        confidence: Confidence = Confidence.MEDIUM,
        extra: str = "",
        fixits: Tuple[FixIt, ...] = (),
    ) -> None:
        """Helper to create and store a diagnostic."""
        self._diagnostics.append(Diagnostic(
            error_id=error_id,
            message=message,
            severity=severity or self.default_severity,
            location=SourceLocation(file=file, line=line, column=column),
            confidence=confidence,
            checker_name=self.name,
            extra=extra,
            fixits=fixits,
        ))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} '{self.name}'>"


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 - NOEXCEPT DESTRUCTOR CHECKER
# ═════════════════════════════════════════════════════════════════════════

class NoexceptDestructorChecker(Checker):
    """
    Flags destructors whose exception specification permits throwing.

    * no specifier, but a base or member destructor may throw
      → ``destructorNotNoexcept`` with a fix-it inserting ``noexcept``
    * ``noexcept(expr)`` where *expr* folds to false
      → ``noexceptDestructorFalse``, no fix-it
    * a literal ``noexcept(false)`` is a deliberate choice and is never
      reported
    """

    name: ClassVar[str] = "noexcept-destructor"
    description: ClassVar[str] = "Destructors should be marked noexcept"
    error_ids: ClassVar[FrozenSet[str]] = frozenset({
        "destructorNotNoexcept", "noexceptDestructorFalse",
    })
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.PERFORMANCE

    NOEXCEPT_INSERTION: ClassVar[str] = " noexcept "

    def __init__(self) -> None:
        super().__init__()
        self._index: Optional[DeclarationIndex] = None
        self._analyzer: Optional[ExceptionSpecAnalyzer] = None
        self._locator = SpecifierInsertionLocator()
        self._throwing: List[Declaration] = []

    def configure(self, ctx: CheckerContext) -> None:
        index = ctx.get_analysis("declarations")
        if index is None:
            index = DeclarationIndex(
                ctx.cfg,
                library_namespaces=ctx.get_option(
                    "library_namespaces", DEFAULT_LIBRARY_NAMESPACES),
            )
            ctx.set_analysis("declarations", index)
        analyzer = ctx.get_analysis("exception_spec")
        if analyzer is None:
            analyzer = ExceptionSpecAnalyzer(
                index,
                consider_body_throws=bool(ctx.get_option("consider_body_throws", False)),
            )
            ctx.set_analysis("exception_spec", analyzer)
        self._index = index
        self._analyzer = analyzer

    def collect_evidence(self, ctx: CheckerContext) -> None:
        if self._index is None or self._analyzer is None:
            self.configure(ctx)
        for decl in self._index.destructors():
            if decl.is_deleted:
                continue
            if self._analyzer.analyze(decl) is ExceptionState.THROWING:
                self._throwing.append(decl)

    def diagnose(self, ctx: CheckerContext) -> None:
        for decl in self._throwing:
            spec = decl.explicit_spec
            if isinstance(spec, NoexceptLiteral):
                continue
            if isinstance(spec, NoexceptExpression):
                tok = spec.location_token
                self._emit(
                    error_id="noexceptDestructorFalse",
                    message="noexcept specifier on the destructor evaluates to 'false'",
                    file=tok_file(tok), line=tok_line(tok), column=tok_column(tok),
                    confidence=Confidence.HIGH,
                    extra=spec.text,
                )
                continue

            fixits: Tuple[FixIt, ...] = ()
            if isinstance(spec, Absent):
                point = self._locator.locate(decl)
                if point.valid:
                    fixits = (FixIt(point.file, point.line, point.column,
                                    self.NOEXCEPT_INSERTION),)
            elif isinstance(spec, DynamicThrow):
                _log.debug("~%s: dynamic exception specification, no fix-it", decl.name)

            tok = decl.name_token
            self._emit(
                error_id="destructorNotNoexcept",
                message="destructors should be marked noexcept",
                file=tok_file(tok), line=tok_line(tok), column=tok_column(tok),
                confidence=Confidence.HIGH,
                fixits=fixits,
            )


DEFAULT_CHECKERS: Tuple[Type[Checker], ...] = (NoexceptDestructorChecker,)


# ═════════════════════════════════════════════════════════════════════════
#  PART 5 - CHECKER RUNNER
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class CheckerRunResults:
    """
    Aggregate results from running a suite of checkers.

    Attributes
    ----------
    diagnostics            : All diagnostics from all checkers
    diagnostics_by_checker : Diagnostics grouped by checker name
    stats                  : Timing and counting statistics
    checker_names          : Names of checkers that were run
    """
    diagnostics: List[Diagnostic] = field(default_factory=list)
    diagnostics_by_checker: Dict[str, List[Diagnostic]] = field(
        default_factory=lambda: defaultdict(list)
    )
    stats: Dict[str, Any] = field(default_factory=dict)
    checker_names: List[str] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.diagnostics)

    @property
    def fixit_count(self) -> int:
        return sum(len(d.fixits) for d in self.diagnostics)

    def by_file(self, file: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.location.file == file]

    def by_error_id(self, error_id: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.error_id == error_id]

    def fixits(self) -> List[FixIt]:
        return [fx for d in self.diagnostics for fx in d.fixits]

    def merge(self, other: CheckerRunResults) -> None:
        """Fold *other* in, dropping diagnostics already present."""
        seen = {d.dedup_key for d in self.diagnostics}
        for name in other.checker_names:
            if name not in self.checker_names:
                self.checker_names.append(name)
        for name, diags in other.diagnostics_by_checker.items():
            for diag in diags:
                if diag.dedup_key in seen:
                    continue
                seen.add(diag.dedup_key)
                self.diagnostics.append(diag)
                self.diagnostics_by_checker[name].append(diag)
        for key, val in other.stats.items():
            self.stats[key] = self.stats.get(key, 0) + val

    def to_json_lines(self) -> str:
        return "\n".join(d.to_json_str() for d in self.diagnostics)

    def to_gcc_format(self) -> str:
        return "\n".join(d.to_gcc_format() for d in self.diagnostics)

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            f"Checker run complete: {self.total_count} diagnostics "
            f"({self.fixit_count} with fix-its)",
        ]
        for name in self.checker_names:
            count = len(self.diagnostics_by_checker.get(name, []))
            elapsed = self.stats.get(f"{name}_elapsed_ms", 0)
            lines.append(f"  {name}: {count} findings ({elapsed:.1f}ms)")
        return "\n".join(lines)


class CheckerRunner:
    """
    Runs a suite of checkers against cppcheck Configurations.

    Every configuration gets a fresh :class:`CheckerContext`, so the
    declaration index and the analyzer cache never leak between runs.

    Usage
    -----
    >>> runner = CheckerRunner(options={"consider_body_throws": True})
    >>> results = runner.run_all_configurations(data)
    >>> print(results.summary())
    """

    def __init__(
        self,
        checkers: Optional[Sequence[Type[Checker]]] = None,
        suppressions: Optional[SuppressionManager] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.checkers: Tuple[Type[Checker], ...] = tuple(checkers or DEFAULT_CHECKERS)
        self.suppressions = suppressions or SuppressionManager()
        self.options = options or {}

    def run(self, cfg: Any) -> CheckerRunResults:
        """Run every checker against a single Configuration."""
        results = CheckerRunResults()
        self.suppressions.load_inline_suppressions(cfg)
        ctx = CheckerContext(
            cfg=cfg,
            suppressions=self.suppressions,
            options=self.options,
        )

        for cls in self.checkers:
            checker = cls()
            checker_name = cls.name
            results.checker_names.append(checker_name)

            t0 = time.monotonic()
            try:
                checker.configure(ctx)
                checker.collect_evidence(ctx)
                checker.diagnose(ctx)
                diags = checker.report(ctx)
            except Exception as exc:
                # Graceful degradation: report the failure, don't crash
                _log.exception("checker '%s' failed", checker_name)
                diags = [Diagnostic(
                    error_id="checkerInternalError",
                    message=f"Checker '{checker_name}' failed: {exc}",
                    severity=DiagnosticSeverity.INFORMATION,
                    location=SourceLocation(),
                    checker_name=checker_name,
                )]
            elapsed_ms = (time.monotonic() - t0) * 1000.0

            results.diagnostics.extend(diags)
            results.diagnostics_by_checker[checker_name] = diags
            results.stats[f"{checker_name}_elapsed_ms"] = elapsed_ms
            _log.info("%s: %d finding(s) in %.1fms", checker_name, len(diags), elapsed_ms)

        return results

    def run_all_configurations(self, data: Any) -> CheckerRunResults:
        """
        Run checkers across all configurations in a CppcheckData dump.

        A finding reported by several configurations is kept once.
        """
        combined = CheckerRunResults()
        for cfg in getattr(data, "configurations", None) or []:
            _log.info("configuration '%s'", getattr(cfg, "name", "") or "<default>")
            combined.merge(self.run(cfg))
        return combined


# ═════════════════════════════════════════════════════════════════════════
#  PART 6 - ADDON ENTRY POINT
# ═════════════════════════════════════════════════════════════════════════

def load_dump(path: str) -> Any:
    """Parse a ``cppcheck --dump`` file with cppcheck's own reader."""
    try:
        from cppcheckdata import parsedump  # type: ignore[import-untyped]
    except ImportError as exc:
        raise DumpLoadError(
            path, "cppcheckdata module not found; add cppcheck's addons "
                  "directory to PYTHONPATH", exc) from exc
    try:
        return parsedump(path)
    except Exception as exc:
        raise DumpLoadError(path, str(exc), exc) from exc


def run_addon(
    dump_files: Sequence[str],
    output: str = "json",
    suppress: Optional[Sequence[str]] = None,
    options: Optional[Dict[str, Any]] = None,
    fix: bool = False,
    diff: bool = False,
    export_path: Optional[str] = None,
    stream: Optional[TextIO] = None,
    loader: Optional[Callable[[str], Any]] = None,
) -> int:
    """
    Run the checker over one or more dump files.

    Parameters
    ----------
    dump_files  : Paths to ``.dump`` files from ``cppcheck --dump``
    output      : "json" for cppcheck protocol, "gcc" for GCC-style,
                  "pretty" for coloured source excerpts, "summary" for
                  a human summary
    suppress    : Error IDs to globally suppress
    options     : Checker options (``consider_body_throws``,
                  ``library_namespaces``)
    fix         : Apply fix-its to the source files in place
    diff        : Print fix-its as a unified diff instead of applying them
    export_path : Write fix-its as a replacements document to this path
    stream      : Where diagnostics are written (default: stdout)
    loader      : Dump reader (default: :func:`load_dump`)

    Returns
    -------
    Exit code (0 = no findings, 1 = findings, 2 = infrastructure error)

    Raises
    ------
    NoexceptLintError when a dump cannot be loaded or a fix-it cannot be
    applied.
    """
    out = stream or sys.stdout
    load = loader or load_dump

    sm = SuppressionManager()
    for eid in suppress or ():
        sm.add_global_suppression(eid)
    runner = CheckerRunner(suppressions=sm, options=options)

    results = CheckerRunResults()
    for path in dump_files:
        _log.info("analysing %s", path)
        results.merge(runner.run_all_configurations(load(path)))

    if output == "json":
        for diag in results.diagnostics:
            out.write(diag.to_json_str() + "\n")
    elif output == "gcc":
        for diag in results.diagnostics:
            out.write(diag.to_gcc_format() + "\n")
    elif output == "pretty":
        from noexcept_lint.reporter import TerminalReporter
        TerminalReporter(out).report(results.diagnostics)
    else:
        out.write(results.summary() + "\n")

    if export_path:
        with open(export_path, "w", encoding="utf-8") as fh:
            count = export_fixes(results.diagnostics, fh)
        _log.info("exported %d replacement(s) to %s", count, export_path)

    if diff:
        out.write(render_diff(apply_to_files(results.fixits(), write=False)))
    elif fix:
        apply_to_files(results.fixits(), write=True)

    return EXIT_FINDINGS if results.total_count else EXIT_OK


# ═════════════════════════════════════════════════════════════════════════
#  PART 7 - COMMAND LINE
# ═════════════════════════════════════════════════════════════════════════

def _configure_logging(verbosity: int) -> None:
    """Set up the ``noexcept_lint`` logger: 0 → WARNING, 1 → INFO, 2+ → DEBUG."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("noexcept_lint")
    root.setLevel(level)
    root.addHandler(handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="noexcept-lint",
        description=(
            "Flag C++ destructors whose exception specification permits "
            "throwing, using cppcheck dump files."
        ),
    )
    parser.add_argument("dump_files", nargs="+", metavar="DUMP",
                        help="Path to a .dump file (cppcheck --dump)")
    parser.add_argument(
        "--output", choices=["json", "gcc", "pretty", "summary"],
        default="json", help="Output format (default: json)",
    )
    parser.add_argument(
        "--suppress", nargs="*", default=None, metavar="ID",
        help="Error IDs to suppress",
    )
    fix_group = parser.add_mutually_exclusive_group()
    fix_group.add_argument(
        "--fix", action="store_true",
        help="Apply fix-its to the source files in place",
    )
    fix_group.add_argument(
        "--diff", action="store_true",
        help="Print fix-its as a unified diff",
    )
    parser.add_argument(
        "--export-fixes", metavar="FILE", default=None,
        help="Write fix-its as JSON in clang-tidy's export layout",
    )
    parser.add_argument(
        "--body-throws", action="store_true",
        help="Also flag destructors whose body throws outside a try block",
    )
    parser.add_argument(
        "--library-namespace", action="append", default=None, metavar="NS",
        help="Namespace whose destructors are known not to throw "
             "(repeatable; default: std)",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase log verbosity (-v, -vv)")
    parser.add_argument("--version", action="version",
                        version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point for ``noexcept-lint`` / ``python -m noexcept_lint``."""
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    options: Dict[str, Any] = {
        "consider_body_throws": args.body_throws,
        "library_namespaces": tuple(args.library_namespace or DEFAULT_LIBRARY_NAMESPACES),
    }
    try:
        return run_addon(
            dump_files=args.dump_files,
            output=args.output,
            suppress=args.suppress,
            options=options,
            fix=args.fix,
            diff=args.diff,
            export_path=args.export_fixes,
        )
    except NoexceptLintError as exc:
        _log.error("%s", exc.message)
        return exc.exit_code


__all__ = [
    "Checker",
    "CheckerContext",
    "CheckerRunResults",
    "CheckerRunner",
    "Confidence",
    "DEFAULT_CHECKERS",
    "Diagnostic",
    "DiagnosticSeverity",
    "NoexceptDestructorChecker",
    "SourceLocation",
    "SuppressionManager",
    "build_parser",
    "load_dump",
    "main",
    "run_addon",
]
