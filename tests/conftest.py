# tests/conftest.py
"""
Shared fixtures: a miniature stand-in for ``cppcheckdata``.

``build_cfg(source)`` tokenizes a C++ snippet into linked tokens and
recovers just enough of the dump model (class/function scopes,
destructor ``Function`` objects, member ``Variable`` objects) for the
analysis code to run exactly as it does on a real ``cppcheck --dump``.
"""

from __future__ import annotations

import bisect
import itertools
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pytest

from noexcept_lint.checkers import CheckerContext, NoexceptDestructorChecker
from noexcept_lint.declarations import DeclarationIndex
from noexcept_lint.exception_spec import ExceptionSpecAnalyzer


# ═══════════════════════════════════════════════════════════════════════════
#  FAKE DUMP OBJECTS
# ═══════════════════════════════════════════════════════════════════════════

class FakeToken:
    def __init__(self, s: str, linenr: int, column: int, file: str) -> None:
        self.str = s
        self.linenr = linenr
        self.column = column
        self.file = file
        self.next: Optional[FakeToken] = None
        self.previous: Optional[FakeToken] = None
        self.link: Optional[FakeToken] = None
        self.isExpandedMacro = False
        self.values: List[Any] = []
        self.typeScope: Any = None
        self.valueType: Any = None
        self.astParent: Any = None
        self.scope: Any = None

    def __repr__(self) -> str:
        return f"<FakeToken {self.str!r} {self.linenr}:{self.column}>"


@dataclass(eq=False)
class FakeScope:
    type: str
    className: str = ""
    bodyStart: Any = None
    bodyEnd: Any = None
    nestedIn: Any = None
    varlist: List[Any] = field(default_factory=list)


@dataclass(eq=False)
class FakeFunction:
    Id: str
    type: str
    tokenDef: Any = None
    token: Any = None
    nestedIn: Any = None


@dataclass(eq=False)
class FakeVariable:
    nameToken: Any
    typeStartToken: Any
    typeEndToken: Any
    scope: Any
    isPointer: bool = False
    isReference: bool = False
    isStatic: bool = False


@dataclass
class FakeValue:
    intvalue: int
    valueKind: str = "known"


@dataclass(eq=False)
class FakeSuppression:
    errorId: str
    fileName: str = ""
    lineNumber: int = 0


@dataclass(eq=False)
class FakeConfiguration:
    name: str = ""
    tokenlist: List[FakeToken] = field(default_factory=list)
    scopes: List[FakeScope] = field(default_factory=list)
    functions: List[FakeFunction] = field(default_factory=list)
    variables: List[FakeVariable] = field(default_factory=list)
    suppressions: List[FakeSuppression] = field(default_factory=list)

    def find(self, s: str, nth: int = 0) -> FakeToken:
        """The *nth* token spelled *s*."""
        matches = [t for t in self.tokenlist if t.str == s]
        return matches[nth]

    def scope_named(self, name: str) -> FakeScope:
        return next(sc for sc in self.scopes if sc.className == name)


@dataclass(eq=False)
class FakeDump:
    configurations: List[FakeConfiguration] = field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════
#  TOKENIZER
# ═══════════════════════════════════════════════════════════════════════════

_TOKEN_RE = re.compile(
    r"""
      (?P<ws>\s+)
    | (?P<comment>//[^\n]*|/\*.*?\*/)
    | (?P<tok>
          "(?:\\.|[^"\\])*"
        | '(?:\\.|[^'\\])'
        | [A-Za-z_]\w*
        | \d[\w']*
        | \.\.\. | :: | && | \|\| | == | != | <= | >= | ->
        | [-+*/%&|^!~<>=(){}\[\];:,.?\#]
      )
    """,
    re.VERBOSE | re.DOTALL,
)

_LINKED = {"(": ")", "[": "]", "{": "}"}


def tokenize(source: str, file: str = "test.cpp", link: bool = True) -> List[FakeToken]:
    """Tokens with 1-based positions; *link* pairs () [] {} and asserts balance."""
    line_starts = [0] + [m.end() for m in re.finditer(r"\n", source)]
    tokens: List[FakeToken] = []
    pos = 0
    while pos < len(source):
        m = _TOKEN_RE.match(source, pos)
        if m is None:
            raise ValueError(f"cannot tokenize at offset {pos}: {source[pos:pos + 20]!r}")
        pos = m.end()
        if m.group("tok") is None:
            continue
        start = m.start("tok")
        line = bisect.bisect_right(line_starts, start)
        # cppcheck columns count bytes
        column = len(source[line_starts[line - 1]:start].encode("utf-8")) + 1
        tokens.append(FakeToken(m.group("tok"), line, column, file))

    for prev, nxt in zip(tokens, tokens[1:]):
        prev.next = nxt
        nxt.previous = prev

    if not link:
        return tokens

    stack: List[FakeToken] = []
    for t in tokens:
        if t.str in _LINKED:
            stack.append(t)
        elif t.str in _LINKED.values():
            opener = stack.pop()
            assert _LINKED[opener.str] == t.str, f"unbalanced {opener!r} / {t!r}"
            opener.link = t
            t.link = opener
    assert not stack, f"unclosed {stack[-1]!r}"
    return tokens


# ═══════════════════════════════════════════════════════════════════════════
#  MINIATURE SYMBOL DATABASE
# ═══════════════════════════════════════════════════════════════════════════

_CLASS_KEYS = {"class": "Class", "struct": "Struct", "union": "Union"}
_ACCESS = {"public", "protected", "private"}
_DECL_NOISE = {"static", "mutable", "constexpr", "inline", "thread_local"}


def _classify_brace(brace: FakeToken) -> tuple:
    """(scope type, class name) for the scope opened by *brace*."""
    depth = 0
    t = brace.previous
    while t is not None:
        s = t.str
        if s in (">", ")", "]"):
            depth += 1
        elif s in ("<", "(", "["):
            depth -= 1
        elif depth == 0 and s in _CLASS_KEYS:
            if t.previous is not None and t.previous.str == "enum":
                return "Enum", t.next.str
            name = t.next.str if re.match(r"[A-Za-z_]", t.next.str) else ""
            if name in ("final", "alignas"):
                name = ""
            return _CLASS_KEYS[s], name
        elif depth == 0 and s == "enum":
            name = t.next.str if re.match(r"[A-Za-z_]", t.next.str) else ""
            return "Enum", name
        elif depth == 0 and s == "namespace":
            return "Namespace", t.next.str if t.next is not brace else ""
        elif depth == 0 and s in (";", "{", "}"):
            break
        t = t.previous
    if brace.previous is not None and brace.previous.str in (")", "const", "noexcept", "try", "override", "final"):
        return "Function", ""
    return "Other", ""


def _build_scopes(cfg: FakeConfiguration) -> None:
    global_scope = FakeScope(type="Global")
    cfg.scopes.append(global_scope)
    current = global_scope
    for t in cfg.tokenlist:
        if t.str == "{":
            stype, name = _classify_brace(t)
            scope = FakeScope(type=stype, className=name, bodyStart=t,
                              bodyEnd=t.link, nestedIn=current)
            cfg.scopes.append(scope)
            current = scope
            t.scope = current
        elif t.str == "}":
            t.scope = current
            current = current.nestedIn
        else:
            t.scope = current


def _class_statements(scope: FakeScope) -> List[List[FakeToken]]:
    """Top-level statements of a class body, split on ';'."""
    statements: List[List[FakeToken]] = []
    current: List[FakeToken] = []
    t = scope.bodyStart.next
    while t is not None and t is not scope.bodyEnd:
        if t.str == "{":
            # a braced body ends the statement even without a ';'
            current.append(t)
            statements.append(current)
            current = []
            t = t.link.next
            continue
        if t.str in _ACCESS and t.next is not None and t.next.str == ":":
            t = t.next.next
            continue
        if t.str == ";":
            if current:
                statements.append(current)
            current = []
        else:
            current.append(t)
        t = t.next
    if current:
        statements.append(current)
    return statements


def _member_variable(stmt: List[FakeToken], scope: FakeScope) -> Optional[FakeVariable]:
    words = {t.str for t in stmt}
    if words & {"(", "{", "~", "operator", "using", "typedef", "friend", "template",
                "class", "struct", "union", "enum"}:
        return None
    end = len(stmt)
    for i, t in enumerate(stmt):
        if t.str in ("=", "["):
            end = i
            break
    decl = stmt[:end]
    if len(decl) < 2:
        return None
    name = decl[-1]
    type_tokens = [t for t in decl[:-1] if t.str not in _DECL_NOISE]
    if not type_tokens:
        return None
    return FakeVariable(
        nameToken=name,
        typeStartToken=type_tokens[0],
        typeEndToken=type_tokens[-1],
        scope=scope,
        isPointer=any(t.str == "*" for t in type_tokens),
        isReference=any(t.str in ("&", "&&") for t in type_tokens),
        isStatic="static" in words,
    )


def _build_symbols(cfg: FakeConfiguration) -> None:
    ids = itertools.count(1)
    by_class: Dict[int, FakeFunction] = {}
    class_scopes = [sc for sc in cfg.scopes if sc.type in ("Class", "Struct", "Union")]

    for scope in class_scopes:
        for stmt in _class_statements(scope):
            var = _member_variable(stmt, scope)
            if var is not None:
                scope.varlist.append(var)
                cfg.variables.append(var)

    for t in cfg.tokenlist:
        if t.str != "~" or t.next is None or t.next.next is None or t.next.next.str != "(":
            continue
        name = t.next
        owner = t.scope
        if owner.type in ("Class", "Struct", "Union") and owner.className == name.str:
            func = FakeFunction(Id=f"f{next(ids)}", type="Destructor",
                                tokenDef=name, nestedIn=owner)
            close = name.next.link
            after = close.next
            while after is not None and after.str not in ("{", ";", "=", "try"):
                after = after.next
            if after is not None and after.str in ("{", "try"):
                func.token = name
            cfg.functions.append(func)
            by_class[id(owner)] = func
        elif t.previous is not None and t.previous.str == "::":
            qualifier = t.previous.previous
            candidates = [sc for sc in class_scopes if sc.className == qualifier.str]
            if len(candidates) == 1 and id(candidates[0]) in by_class:
                by_class[id(candidates[0])].token = name


def build_cfg(source: str, file: str = "test.cpp") -> FakeConfiguration:
    """Parse *source* into a fake cppcheck Configuration."""
    cfg = FakeConfiguration(tokenlist=tokenize(source, file))
    _build_scopes(cfg)
    _build_symbols(cfg)
    return cfg


# ═══════════════════════════════════════════════════════════════════════════
#  ANALYSIS HELPERS
# ═══════════════════════════════════════════════════════════════════════════

def analyze_source(source: str, **options: Any) -> Dict[str, Any]:
    """``{class name: ExceptionState}`` for every declared destructor."""
    cfg = build_cfg(source)
    index = DeclarationIndex(cfg)
    analyzer = ExceptionSpecAnalyzer(index, **options)
    return {decl.name: analyzer.analyze(decl) for decl in index.destructors()}


def check_source(source: str, options: Optional[Dict[str, Any]] = None):
    """Run the checker over *source*; returns its (unsuppressed) diagnostics."""
    cfg = build_cfg(source)
    ctx = CheckerContext(cfg=cfg, options=options or {})
    checker = NoexceptDestructorChecker()
    checker.configure(ctx)
    checker.collect_evidence(ctx)
    checker.diagnose(ctx)
    return checker.report(ctx)


@pytest.fixture
def make_cfg():
    return build_cfg
