# tests/test_exception_spec.py
"""
Tests for the exception-specification analyzer.
"""

import pytest

from noexcept_lint.declarations import DeclarationIndex
from noexcept_lint.exception_spec import (
    ExceptionSpecAnalyzer,
    ExceptionState,
    body_has_uncaught_throw,
    combine_states,
    evaluate_noexcept_expression,
)
from tests.conftest import FakeValue, analyze_source, build_cfg, tokenize

THROWING = ExceptionState.THROWING
NOT_THROWING = ExceptionState.NOT_THROWING
UNKNOWN = ExceptionState.UNKNOWN


class TestExplicitSpecifications:

    @pytest.mark.parametrize("spec, expected", [
        ("noexcept", NOT_THROWING),
        ("noexcept(true)", NOT_THROWING),
        ("noexcept(false)", THROWING),
        ("noexcept(1 == 2)", THROWING),
        ("noexcept(2 > 1 && true)", NOT_THROWING),
        ("noexcept(!false)", NOT_THROWING),
        ("throw()", NOT_THROWING),
        ("throw(int)", THROWING),
    ])
    def test_explicit(self, spec, expected):
        states = analyze_source(f"struct A {{ ~A() {spec}; }};")
        assert states == {"A": expected}

    def test_dependent_expression_is_unknown(self):
        states = analyze_source(
            "template <typename T> struct A {\n"
            "    ~A() noexcept(std::is_nothrow_destructible<T>::value) {}\n"
            "};\n"
        )
        assert states == {"A": UNKNOWN}

    def test_explicit_wins_over_members(self):
        states = analyze_source(
            "struct M { ~M() noexcept(false); };\n"
            "struct A { M m; ~A() noexcept {} };\n"
        )
        assert states["A"] is NOT_THROWING


class TestImplicitSpecifications:

    def test_throwing_base(self):
        states = analyze_source(
            "struct Base { virtual ~Base() noexcept(false); };\n"
            "struct D : Base { ~D() {} };\n"
        )
        assert states == {"Base": THROWING, "D": THROWING}

    def test_throwing_member(self):
        states = analyze_source(
            "struct M { ~M() noexcept(false); };\n"
            "struct A { int x; M m; ~A() {} };\n"
        )
        assert states["A"] is THROWING

    def test_throwing_member_through_implicit_destructor(self):
        states = analyze_source(
            "struct Inner { ~Inner() noexcept(false); };\n"
            "struct Middle { Inner i; };\n"
            "struct Outer { Middle m; ~Outer() {} };\n"
        )
        assert states["Outer"] is THROWING

    def test_trivial_and_library_members(self):
        states = analyze_source(
            "struct A {\n"
            "    int x;\n"
            "    char* p;\n"
            "    std::string s;\n"
            "    std::vector<int> v;\n"
            "    ~A() {}\n"
            "};\n"
        )
        assert states == {"A": NOT_THROWING}

    @pytest.mark.parametrize("member", [
        "std::pair<M, int> p;",
        "std::tuple<int, M> t;",
        "std::optional<M> o;",
        "std::variant<int, M> v;",
        "std::array<M, 2> a;",
    ])
    def test_library_wrapper_follows_element(self, member):
        states = analyze_source(
            "struct M { ~M() noexcept(false); };\n"
            f"struct A {{ {member} ~A() {{}} }};\n"
        )
        assert states["A"] is THROWING

    def test_library_wrapper_of_unknown_element(self):
        states = analyze_source("struct A { std::optional<Opaque> o; ~A() {} };")
        assert states == {"A": UNKNOWN}

    def test_library_wrapper_of_non_throwing_elements(self):
        states = analyze_source(
            "struct N { int x; };\n"
            "struct A { std::optional<N> n; std::array<int, 4> a; ~A() {} };\n"
        )
        assert states["A"] is NOT_THROWING

    def test_library_container_does_not_follow_element(self):
        states = analyze_source(
            "struct M { ~M() noexcept(false); };\n"
            "struct A { std::vector<M> v; ~A() {} };\n"
        )
        assert states["A"] is NOT_THROWING

    def test_non_throwing_hierarchy(self):
        states = analyze_source(
            "struct Base { virtual ~Base() = default; };\n"
            "struct D : Base { ~D() {} };\n"
        )
        assert states == {"Base": NOT_THROWING, "D": NOT_THROWING}

    def test_unknown_dominates_throwing(self):
        states = analyze_source(
            "struct Base { ~Base() noexcept(false); };\n"
            "struct D : Base { Opaque o; ~D() {} };\n"
        )
        assert states["D"] is UNKNOWN

    def test_template_class_is_unknown(self):
        states = analyze_source(
            "template <typename T> struct H { T value; ~H() {} };\n"
        )
        assert states == {"H": UNKNOWN}

    def test_union_members_are_not_destroyed(self):
        states = analyze_source(
            "struct M { ~M() noexcept(false); };\n"
            "union U { M m; int i; ~U() {} };\n"
        )
        assert states["U"] is NOT_THROWING

    def test_cyclic_hierarchy_terminates(self):
        states = analyze_source(
            "struct A : B { ~A() {} };\n"
            "struct B : A { ~B() {} };\n"
        )
        assert states == {"A": UNKNOWN, "B": UNKNOWN}


class TestCombineStates:

    @pytest.mark.parametrize("states, expected", [
        ([], NOT_THROWING),
        ([NOT_THROWING, NOT_THROWING], NOT_THROWING),
        ([NOT_THROWING, THROWING], THROWING),
        ([THROWING, UNKNOWN], UNKNOWN),
    ])
    def test_precedence(self, states, expected):
        assert combine_states(states) is expected


class TestBodyThrows:

    SOURCE = "struct A { ~A() { throw 1; } };"

    def test_ignored_by_default(self):
        assert analyze_source(self.SOURCE) == {"A": NOT_THROWING}

    def test_reported_when_enabled(self):
        assert analyze_source(self.SOURCE, consider_body_throws=True) == {"A": THROWING}

    def test_caught_throw_is_ignored(self):
        states = analyze_source(
            "struct A { ~A() { try { throw 1; } catch (...) { } } };",
            consider_body_throws=True,
        )
        assert states == {"A": NOT_THROWING}

    def test_no_body(self):
        index = DeclarationIndex(build_cfg("struct A { ~A(); };"))
        assert not body_has_uncaught_throw(next(index.destructors()))


class TestMemoization:

    def test_result_cached_per_key(self):
        cfg = build_cfg(
            "struct A {\n"
            "    ~A();\n"
            "};\n"
            "A::~A() {}\n"
        )
        index = DeclarationIndex(cfg)
        analyzer = ExceptionSpecAnalyzer(index)
        decl, definition = list(index.destructors())
        assert analyzer.analyze(decl) is NOT_THROWING
        assert analyzer._cache[definition.key] is NOT_THROWING
        assert analyzer.analyze(definition) is NOT_THROWING

    def test_clear(self):
        cfg = build_cfg("struct A { ~A() noexcept; };")
        index = DeclarationIndex(cfg)
        analyzer = ExceptionSpecAnalyzer(index)
        analyzer.analyze(next(index.destructors()))
        analyzer.clear()
        assert analyzer._cache == {}


class TestExpressionEvaluation:

    @pytest.mark.parametrize("text, expected", [
        ("true", True),
        ("false", False),
        ("0", False),
        ("0x10", True),
        ("1u == 1", True),
        ("1 < 0", False),
        ("true and not true", False),
        ("false || (1 != 2)", True),
        ("-1 >= 0", False),
    ])
    def test_constant_folding(self, text, expected):
        assert evaluate_noexcept_expression(tokenize(text)) is expected

    @pytest.mark.parametrize("text", [
        "sizeof(T) > 2",
        "noexcept(T())",
        "1 + 1",
        "",
    ])
    def test_not_constant(self, text):
        assert evaluate_noexcept_expression(tokenize(text)) is None

    @pytest.mark.parametrize("text", ["(true", "(1 == 1", "true)"])
    def test_unbalanced_parentheses(self, text):
        assert evaluate_noexcept_expression(tokenize(text, link=False)) is None

    def test_known_name_value(self):
        toks = tokenize("kNoThrow && true")
        toks[0].values = [FakeValue(0)]
        assert evaluate_noexcept_expression(toks) is False

    def test_valueflow_on_ast_root(self):
        toks = tokenize("Traits :: value")
        toks[0].astParent = toks[1]
        toks[2].astParent = toks[1]
        toks[1].values = [FakeValue(1)]
        assert evaluate_noexcept_expression(toks) is True
