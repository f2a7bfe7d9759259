"""
noexcept_lint/declarations.py
═════════════════════════════

Declaration views over a cppcheck ``Configuration``.

cppcheck's dump records destructors as ``Function`` objects whose
``type`` is ``"Destructor"``, but it does not record exception
specifications, defaulted/deleted markers or base classes.  This module
recovers them from the token stream and packages each destructor as a
:class:`Declaration`, the read-only view the analyzer and the locator
work on.

    ┌──────────────────────┐      ┌──────────────────────────────┐
    │  cppcheckdata        │      │  DeclarationIndex            │
    │  Configuration       │ ───▶ │   destructors()   → sites    │
    │  scopes / functions  │      │   destructor_of() → decl     │
    │  variables / tokens  │      │   class_info()    → bases,   │
    └──────────────────────┘      │                     members  │
                                  └──────────────────────────────┘

Classes without a user-declared destructor get an *implicit*
declaration, so base and member lookups never dead-end.

License: MIT
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Dict,
    FrozenSet,
    Hashable,
    Iterable,
    Iterator,
    List,
    Optional,
    Tuple,
    Union,
)

from noexcept_lint.tokens import (
    Token,
    iter_tokens_between,
    iter_tokens_in_range,
    matching_close,
    matching_open,
    spelling,
    tok_next,
    tok_previous,
    tok_str,
    tok_type_scope,
    tok_value_type,
)


# ═══════════════════════════════════════════════════════════════════════════
#  CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

CLASS_SCOPE_TYPES: FrozenSet[str] = frozenset({"Class", "Struct", "Union"})

DEFAULT_LIBRARY_NAMESPACES: Tuple[str, ...] = ("std",)

BUILTIN_TYPE_NAMES: FrozenSet[str] = frozenset({
    "bool", "char", "short", "int", "long", "float", "double", "void",
    "signed", "unsigned", "wchar_t", "char8_t", "char16_t", "char32_t",
    "size_t", "ptrdiff_t", "nullptr_t", "auto",
})

# Qualifiers that may follow the parameter list and precede an
# exception specification.
QUALIFIERS: FrozenSet[str] = frozenset({"const", "volatile", "&", "&&"})

_TYPE_NOISE: FrozenSet[str] = frozenset({
    "const", "volatile", "mutable", "typename", "struct", "class", "union",
    "enum",
})

_BASE_SPECIFIERS: FrozenSet[str] = frozenset({
    "public", "protected", "private", "virtual",
})

# cppcheck ValueType.type values
_LIBRARY_VALUE_TYPES: FrozenSet[str] = frozenset({
    "container", "iterator", "smart-pointer",
})
_UNTYPED_VALUE_TYPES: FrozenSet[str] = frozenset({
    "record", "nonstd", "unknown_type", "",
})

# Library templates with an implicit destructor that destroys values of
# the template argument types in place.
ELEMENTWISE_LIBRARY_TEMPLATES: FrozenSet[str] = frozenset({
    "pair", "tuple", "optional", "variant", "array", "expected",
})


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 - EXCEPTION SPECIFICATIONS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class NoexceptLiteral:
    """``noexcept``, ``noexcept(true)`` or ``noexcept(false)``."""
    value: bool
    token: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class NoexceptExpression:
    """``noexcept(expr)`` where *expr* is anything but a bare bool literal."""
    tokens: Tuple[Any, ...] = field(default=(), compare=False, repr=False)

    @property
    def location_token(self) -> Optional[Token]:
        return self.tokens[0] if self.tokens else None

    @property
    def text(self) -> str:
        return " ".join(tok_str(t) for t in self.tokens)


@dataclass(frozen=True)
class DynamicThrow:
    """Legacy ``throw(T1, T2)`` dynamic exception specification."""
    types: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Absent:
    pass


ABSENT = Absent()

ExplicitSpec = Union[NoexceptLiteral, NoexceptExpression, DynamicThrow, Absent]


def skip_qualifiers(close_paren: Token) -> Token:
    """
    Return the last cv/ref qualifier following *close_paren*, or
    *close_paren* itself when there are none.
    """
    anchor = close_paren
    t = tok_next(close_paren)
    while t is not None and tok_str(t) in QUALIFIERS:
        anchor = t
        t = tok_next(t)
    return anchor


def _bracket_contents(open_tok: Token) -> Optional[Tuple[Any, ...]]:
    close = matching_close(open_tok)
    if close is None:
        return None
    return tuple(iter_tokens_between(open_tok, close))


def _split_top_level(tokens: Iterable[Token]) -> List[List[Token]]:
    """Split on commas that are not nested inside (), [] or <>."""
    parts: List[List[Token]] = [[]]
    depth = 0
    for t in tokens:
        s = tok_str(t)
        if s in ("(", "[", "<"):
            depth += 1
        elif s in (")", "]", ">"):
            depth -= 1
        elif s == "," and depth == 0:
            parts.append([])
            continue
        parts[-1].append(t)
    return [p for p in parts if p]


def parse_exception_spec(close_paren: Optional[Token]) -> ExplicitSpec:
    """
    Read the exception specification written after a parameter list.

    *close_paren* is the ``)`` closing the parameter list.  Returns
    :data:`ABSENT` when no specifier is written.
    """
    if close_paren is None:
        return ABSENT
    t = tok_next(skip_qualifiers(close_paren))
    s = tok_str(t)

    if s == "noexcept":
        paren = tok_next(t)
        if tok_str(paren) != "(":
            return NoexceptLiteral(True, t)
        inner = _bracket_contents(paren)
        if inner is None:
            return NoexceptExpression(())
        if len(inner) == 1 and tok_str(inner[0]) in ("true", "false"):
            return NoexceptLiteral(tok_str(inner[0]) == "true", inner[0])
        return NoexceptExpression(inner)

    if s == "throw":
        paren = tok_next(t)
        if tok_str(paren) != "(":
            return ABSENT
        inner = _bracket_contents(paren) or ()
        return DynamicThrow(tuple(spelling(p) for p in _split_top_level(inner)))

    return ABSENT


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 - TYPE REFERENCES AND CLASS SUMMARIES
# ═══════════════════════════════════════════════════════════════════════════

class TypeKind(Enum):
    CLASS = "class"            # resolved to a class scope in the dump
    TRIVIAL = "trivial"        # builtin, enum, pointer: nothing to destroy
    LIBRARY = "library"        # configured library namespace
    DEPENDENT = "dependent"    # template parameter, pack expansion
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class TypeRef:
    """A base class or member type whose destructor a destructor invokes."""
    spelling: str
    kind: TypeKind
    scope: Any = field(default=None, compare=False, repr=False)
    # element types a LIBRARY template destroys along with itself
    arguments: Tuple["TypeRef", ...] = field(default=(), compare=False, repr=False)


@dataclass(eq=False)
class ClassInfo:
    """
    Structural summary of a class needed for implicit specifications.

    ``is_complete`` is False when the class head could not be read from
    the token stream; callers must treat such classes as unknown.
    """
    name: str
    scope: Any = None
    bases: List[TypeRef] = field(default_factory=list)
    members: List[TypeRef] = field(default_factory=list)
    is_dependent: bool = False
    is_union: bool = False
    is_complete: bool = True

    def subobjects(self) -> List[TypeRef]:
        """Types destroyed by this class's destructor, bases first."""
        if self.is_union:
            return list(self.bases)
        return list(self.bases) + list(self.members)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 3 - DECLARATIONS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(eq=False)
class Declaration:
    """
    One destructor declaration site.

    ``key`` identifies the declared entity: every redeclaration of the
    same destructor shares it, so analysis results can be cached per key.
    """
    key: Hashable
    name: str
    explicit_spec: ExplicitSpec = ABSENT
    owner: Optional[ClassInfo] = None
    name_token: Any = field(default=None, repr=False)
    close_paren: Any = field(default=None, repr=False)
    body_start: Any = field(default=None, repr=False)
    is_deleted: bool = False
    is_defaulted: bool = False
    is_pure: bool = False
    has_body: bool = False
    is_implicit: bool = False


def _scan_declaration_tail(decl: Declaration) -> None:
    """Fill the deleted/defaulted/pure/body flags from the tokens after ``)``."""
    t = tok_next(decl.close_paren)
    depth = 0
    while t is not None:
        s = tok_str(t)
        if s in ("(", "["):
            depth += 1
        elif s in (")", "]"):
            depth -= 1
            if depth < 0:
                return
        elif depth == 0:
            if s == "=":
                marker = tok_str(tok_next(t))
                decl.is_deleted = marker == "delete"
                decl.is_defaulted = marker == "default"
                decl.is_pure = marker == "0"
                return
            if s == "{":
                decl.has_body = True
                decl.body_start = t
                return
            if s == "try":
                decl.has_body = True
                decl.body_start = tok_next(t) if tok_str(tok_next(t)) == "{" else None
                return
            if s in (";", "}"):
                return
        t = tok_next(t)


def declaration_at(
    name_tok: Token,
    key: Hashable,
    owner: Optional[ClassInfo] = None,
) -> Declaration:
    """
    Build the declaration view for the destructor named by *name_tok*.

    *name_tok* is the class-name token following ``~``; the declaration
    is located at the ``~`` when there is one.
    """
    prev = tok_previous(name_tok)
    location = prev if tok_str(prev) == "~" else name_tok
    open_paren = tok_next(name_tok)
    close_paren = matching_close(open_paren) if tok_str(open_paren) == "(" else None
    decl = Declaration(
        key=key,
        name=owner.name if owner is not None else tok_str(name_tok),
        explicit_spec=parse_exception_spec(close_paren),
        owner=owner,
        name_token=location,
        close_paren=close_paren,
    )
    if close_paren is not None:
        _scan_declaration_tail(decl)
    return decl


# ═══════════════════════════════════════════════════════════════════════════
#  PART 4 - CLASS HEAD PARSING
# ═══════════════════════════════════════════════════════════════════════════

def _class_head(scope: Any) -> List[Token]:
    """
    Tokens from the class-key up to (excluding) the opening brace.

    Empty when the head cannot be found.
    """
    body = getattr(scope, "bodyStart", None)
    head: List[Token] = []
    depth = 0
    t = tok_previous(body)
    while t is not None:
        s = tok_str(t)
        if s in (">", ")", "]"):
            depth += 1
        elif s in ("<", "(", "["):
            depth -= 1
        elif depth == 0 and s in ("class", "struct", "union"):
            head.append(t)
            head.reverse()
            return head
        elif depth == 0 and s in (";", "{", "}"):
            return []
        head.append(t)
        t = tok_previous(t)
    return []


def _is_template_head(class_key: Token) -> bool:
    """True for ``template <params> class X``; full specialisations excluded."""
    prev = tok_previous(class_key)
    if tok_str(prev) != ">":
        return False
    opener = matching_open(prev)
    if opener is None or tok_str(tok_previous(opener)) != "template":
        return False
    return tok_next(opener) is not prev


def _base_clause(head: List[Token]) -> List[List[Token]]:
    depth = 0
    for i, t in enumerate(head):
        s = tok_str(t)
        if s in ("<", "("):
            depth += 1
        elif s in (">", ")"):
            depth -= 1
        elif s == ":" and depth == 0:
            return _split_top_level(head[i + 1:])
    return []


def _leaf_name(tokens: List[Token]) -> Tuple[Optional[Token], List[Token]]:
    """
    Split a qualified type name into its head name token and the tokens
    after the last top-level ``::`` (``ns::B<int>`` → ``B``, ``B<int>``).
    """
    head: Optional[Token] = None
    leaf_start = 0
    depth = 0
    for i, t in enumerate(tokens):
        s = tok_str(t)
        if s == "<":
            depth += 1
        elif s == ">":
            depth -= 1
        elif depth == 0:
            if s == "::":
                leaf_start = i + 1
                head = None
            elif head is None and (s[:1].isalpha() or s[:1] == "_"):
                head = t
    return head, tokens[leaf_start:]


# ═══════════════════════════════════════════════════════════════════════════
#  PART 5 - DECLARATION INDEX
# ═══════════════════════════════════════════════════════════════════════════

class DeclarationIndex:
    """
    Per-configuration index of classes and their destructors.

    One index is built per analysis run; it owns every cache it fills
    and is discarded with the run.

    Usage
    -----
    >>> index = DeclarationIndex(cfg)
    >>> for decl in index.destructors():
    ...     print(decl.name, decl.explicit_spec)
    """

    def __init__(
        self,
        cfg: Any,
        library_namespaces: Iterable[str] = DEFAULT_LIBRARY_NAMESPACES,
    ) -> None:
        self.cfg = cfg
        self.library_namespaces: FrozenSet[str] = frozenset(library_namespaces)
        self._types_by_name: Dict[str, List[Any]] = defaultdict(list)
        self._destructor_funcs: List[Any] = []
        self._destructor_by_scope: Dict[int, Any] = {}
        self._class_info: Dict[int, ClassInfo] = {}
        self._declarations: Dict[int, Declaration] = {}
        self._implicit: Dict[int, Declaration] = {}

        for scope in getattr(cfg, "scopes", None) or []:
            if getattr(scope, "type", "") not in CLASS_SCOPE_TYPES | {"Enum"}:
                continue
            name = getattr(scope, "className", "") or ""
            if name:
                self._types_by_name[name].append(scope)

        for func in getattr(cfg, "functions", None) or []:
            if getattr(func, "type", "") != "Destructor":
                continue
            self._destructor_funcs.append(func)
            owner = self._owner_scope(func)
            if owner is not None:
                self._destructor_by_scope.setdefault(id(owner), func)

    # ── destructors ─────────────────────────────────────────────────

    @staticmethod
    def _owner_scope(func: Any) -> Optional[Any]:
        owner = getattr(func, "nestedIn", None)
        if owner is None:
            owner = getattr(getattr(func, "tokenDef", None), "scope", None)
        if getattr(owner, "type", "") not in CLASS_SCOPE_TYPES:
            return None
        return owner

    def _function_key(self, func: Any) -> Hashable:
        fid = getattr(func, "Id", None)
        return ("function", fid if fid is not None else id(func))

    def _canonical(self, func: Any) -> Declaration:
        cached = self._declarations.get(id(func))
        if cached is not None:
            return cached
        owner_scope = self._owner_scope(func)
        owner = self.class_info(owner_scope) if owner_scope is not None else None
        decl_tok = getattr(func, "tokenDef", None) or getattr(func, "token", None)
        decl = declaration_at(decl_tok, self._function_key(func), owner)
        def_tok = getattr(func, "token", None)
        if not decl.has_body and def_tok is not None and def_tok is not decl_tok:
            definition = declaration_at(def_tok, decl.key, owner)
            decl.has_body = definition.has_body
            decl.body_start = definition.body_start
        self._declarations[id(func)] = decl
        return decl

    def destructors(self) -> Iterator[Declaration]:
        """
        Yield every declared destructor site.

        An out-of-line definition is a separate site sharing the
        declaration's key, since both must carry the same specifier.
        """
        for func in self._destructor_funcs:
            decl = self._canonical(func)
            yield decl
            def_tok = getattr(func, "token", None)
            decl_tok = getattr(func, "tokenDef", None)
            if def_tok is not None and decl_tok is not None and def_tok is not decl_tok:
                yield declaration_at(def_tok, decl.key, decl.owner)

    def destructor_of(self, scope: Any) -> Optional[Declaration]:
        """The destructor a class scope declares, or its implicit one."""
        if scope is None:
            return None
        func = self._destructor_by_scope.get(id(scope))
        if func is not None:
            return self._canonical(func)
        cached = self._implicit.get(id(scope))
        if cached is None:
            info = self.class_info(scope)
            cached = Declaration(
                key=("implicit", id(scope)),
                name=info.name,
                owner=info,
                name_token=getattr(scope, "bodyStart", None),
                is_implicit=True,
                is_defaulted=True,
            )
            self._implicit[id(scope)] = cached
        return cached

    # ── classes ─────────────────────────────────────────────────────

    def class_info(self, scope: Any) -> ClassInfo:
        cached = self._class_info.get(id(scope))
        if cached is not None:
            return cached
        info = ClassInfo(
            name=getattr(scope, "className", "") or "<anonymous>",
            scope=scope,
            is_union=getattr(scope, "type", "") == "Union",
        )
        # registered before filling so self-referencing heads terminate
        self._class_info[id(scope)] = info

        head = _class_head(scope)
        if not head:
            info.is_complete = False
            return info
        info.is_dependent = _is_template_head(head[0]) or self._enclosing_dependent(scope)
        info.bases = [self._base_ref(tokens) for tokens in _base_clause(head)]
        info.members = [
            ref for ref in (self._member_ref(var) for var in self._members(scope))
            if ref is not None
        ]
        return info

    def _enclosing_dependent(self, scope: Any) -> bool:
        parent = getattr(scope, "nestedIn", None)
        while parent is not None:
            if getattr(parent, "type", "") in CLASS_SCOPE_TYPES:
                return self.class_info(parent).is_dependent
            parent = getattr(parent, "nestedIn", None)
        return False

    def _members(self, scope: Any) -> List[Any]:
        varlist = getattr(scope, "varlist", None)
        if varlist is not None:
            return list(varlist)
        return [
            v for v in getattr(self.cfg, "variables", None) or []
            if getattr(v, "scope", None) is scope
        ]

    # ── type resolution ─────────────────────────────────────────────

    def _base_ref(self, tokens: List[Token]) -> TypeRef:
        tokens = [t for t in tokens if tok_str(t) not in _BASE_SPECIFIERS]
        if tokens and tok_str(tokens[-1]) == "...":
            return TypeRef(spelling(tokens), TypeKind.DEPENDENT)
        return self.resolve_type(tokens)

    def _ref_for_scope(self, text: str, scope: Any) -> TypeRef:
        stype = getattr(scope, "type", "")
        if stype == "Enum":
            return TypeRef(text, TypeKind.TRIVIAL, scope)
        if stype in CLASS_SCOPE_TYPES:
            return TypeRef(text, TypeKind.CLASS, scope)
        return TypeRef(text, TypeKind.UNRESOLVED, scope)

    def resolve_type(self, tokens: List[Token]) -> TypeRef:
        """Classify the type spelled by *tokens*."""
        tokens = [t for t in tokens if tok_str(t) not in _TYPE_NOISE]
        text = spelling(tokens)
        if not tokens:
            return TypeRef(text, TypeKind.UNRESOLVED)
        if all(tok_str(t) in BUILTIN_TYPE_NAMES for t in tokens):
            return TypeRef(text, TypeKind.TRIVIAL)

        head, leaf = _leaf_name(tokens)
        scope = tok_type_scope(head)
        if scope is not None:
            return self._ref_for_scope(text, scope)

        first = tok_str(tokens[0])
        if first == "::" and len(tokens) > 1:
            first = tok_str(tokens[1])
        if first in self.library_namespaces and "::" in text:
            return self._library_ref(text, leaf)

        candidates = self._types_by_name.get(spelling(leaf), [])
        if len(candidates) == 1:
            return self._ref_for_scope(text, candidates[0])
        return TypeRef(text, TypeKind.UNRESOLVED)

    def _library_ref(self, text: str, leaf: List[Token]) -> TypeRef:
        """
        A library type.  For the element-wise templates (``std::pair``,
        ``std::optional`` ...) the template arguments are resolved too,
        since their destructors follow the element destructors.
        """
        if (len(leaf) < 3 or tok_str(leaf[0]) not in ELEMENTWISE_LIBRARY_TEMPLATES
                or tok_str(leaf[1]) != "<" or tok_str(leaf[-1]) != ">"):
            return TypeRef(text, TypeKind.LIBRARY)
        arguments = tuple(
            self._template_argument(arg) for arg in _split_top_level(leaf[2:-1])
        )
        return TypeRef(text, TypeKind.LIBRARY, arguments=arguments)

    def _template_argument(self, tokens: List[Token]) -> TypeRef:
        text = spelling(tokens)
        if tok_str(tokens[0])[:1].isdigit():
            # non-type argument (std::array<T, 4>)
            return TypeRef(text, TypeKind.TRIVIAL)
        if tok_str(tokens[-1]) == "...":
            return TypeRef(text, TypeKind.DEPENDENT)
        depth = 0
        for t in tokens:
            s = tok_str(t)
            if s == "<":
                depth += 1
            elif s == ">":
                depth -= 1
            elif depth == 0 and s in ("*", "&", "&&"):
                return TypeRef(text, TypeKind.TRIVIAL)
        return self.resolve_type(tokens)

    def _member_ref(self, var: Any) -> Optional[TypeRef]:
        if getattr(var, "isStatic", False):
            return None
        start = getattr(var, "typeStartToken", None)
        end = getattr(var, "typeEndToken", None)
        tokens = list(iter_tokens_in_range(start, end)) if start is not None else []
        text = spelling(tokens)
        if getattr(var, "isPointer", False) or getattr(var, "isReference", False):
            return TypeRef(text, TypeKind.TRIVIAL)

        vt = tok_value_type(getattr(var, "nameToken", None))
        if vt is not None:
            if int(getattr(vt, "pointer", 0) or 0) > 0:
                return TypeRef(text, TypeKind.TRIVIAL)
            vtype = getattr(vt, "type", "") or ""
            if vtype == "record" and getattr(vt, "typeScope", None) is not None:
                return self._ref_for_scope(text, vt.typeScope)
            if vtype in _LIBRARY_VALUE_TYPES:
                stripped = [t for t in tokens if tok_str(t) not in _TYPE_NOISE]
                return self._library_ref(text, _leaf_name(stripped)[1])
            if vtype not in _UNTYPED_VALUE_TYPES:
                return TypeRef(text, TypeKind.TRIVIAL)

        return self.resolve_type(tokens)


__all__ = [
    "ABSENT",
    "Absent",
    "BUILTIN_TYPE_NAMES",
    "CLASS_SCOPE_TYPES",
    "ClassInfo",
    "DEFAULT_LIBRARY_NAMESPACES",
    "Declaration",
    "DeclarationIndex",
    "DynamicThrow",
    "ELEMENTWISE_LIBRARY_TEMPLATES",
    "ExplicitSpec",
    "NoexceptExpression",
    "NoexceptLiteral",
    "QUALIFIERS",
    "TypeKind",
    "TypeRef",
    "declaration_at",
    "parse_exception_spec",
    "skip_qualifiers",
]
