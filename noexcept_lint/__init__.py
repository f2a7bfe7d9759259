"""
noexcept_lint - Cppcheck addon flagging destructors that may throw
==================================================================

Destructors are implicitly ``noexcept`` unless a base or member
destructor is not; an explicit ``noexcept(expr)`` can also turn out to
be ``false``.  This package finds such destructors in ``cppcheck --dump``
output, reports them through the addon protocol and offers a fix-it
inserting ``noexcept`` where one is missing.

Core modules
------------
declarations
    Destructor declaration views and the per-configuration index.
exception_spec
    ``ExceptionSpecAnalyzer``: THROWING / NOT_THROWING / UNKNOWN.
locator
    ``SpecifierInsertionLocator``: where ``noexcept`` may be inserted.
fixits
    Applying, diffing and exporting fix-its.
checkers
    Diagnostic model, ``NoexceptDestructorChecker``, runner and CLI.
reporter
    Coloured terminal output.

Quick start
-----------
>>> from noexcept_lint import CheckerRunner
>>> results = CheckerRunner().run_all_configurations(cppcheckdata.parsedump(path))
>>> print(results.summary())
"""

from __future__ import annotations

import logging

__version__ = "0.1.0"
__license__ = "MIT"

_log = logging.getLogger(__name__)

from noexcept_lint.errors import DumpLoadError, FixItError, NoexceptLintError  # noqa: E402
from noexcept_lint.declarations import (  # noqa: E402
    ABSENT,
    ClassInfo,
    Declaration,
    DeclarationIndex,
    DynamicThrow,
    NoexceptExpression,
    NoexceptLiteral,
    TypeKind,
    TypeRef,
)
from noexcept_lint.exception_spec import ExceptionSpecAnalyzer, ExceptionState  # noqa: E402
from noexcept_lint.locator import InsertionPoint, SpecifierInsertionLocator  # noqa: E402
from noexcept_lint.fixits import FixIt, apply_fixits  # noqa: E402
from noexcept_lint.checkers import (  # noqa: E402
    CheckerRunner,
    Diagnostic,
    NoexceptDestructorChecker,
    run_addon,
)

__all__ = [
    "ABSENT",
    "CheckerRunner",
    "ClassInfo",
    "Declaration",
    "DeclarationIndex",
    "Diagnostic",
    "DumpLoadError",
    "DynamicThrow",
    "ExceptionSpecAnalyzer",
    "ExceptionState",
    "FixIt",
    "FixItError",
    "InsertionPoint",
    "NoexceptDestructorChecker",
    "NoexceptExpression",
    "NoexceptLintError",
    "NoexceptLiteral",
    "SpecifierInsertionLocator",
    "TypeKind",
    "TypeRef",
    "__version__",
    "apply_fixits",
    "run_addon",
]
