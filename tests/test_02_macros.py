"""
Macro Table Test Suite
======================
Tests for:
  - Definition directive parser
  - MacroRegistry (define, load, duplicate and malformed definitions)
  - MacroTable validation (free names, unknown calls, arity, cycles)
  - MacroEngine.expand (single call) and expand_text (whole expressions)
  - Built-in table contents
  - Table construction from settings

Run with:  pytest tests/test_02_macros.py -v
"""

from __future__ import annotations

import pytest

from calcmacros.core.config import Settings
from calcmacros.services.macros import (
    ArityMismatch,
    ExpansionDepthExceeded,
    ExpansionTooLarge,
    MacroDefinitionError,
    MacroEngine,
    MacroRegistry,
    MacroSyntaxError,
    UnknownMacro,
    build_macro_table,
    expand,
    get_macro_table,
    parse,
    render,
)
from calcmacros.services.macros.expr import measure
from calcmacros.services.macros.params import parse_directives, parse_signature


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 1. Directive parser
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TestParseSignature:
    def test_with_params(self):
        assert parse_signature("MIN(A, B)") == ("MIN", ("A", "B"))

    def test_bare_name(self):
        assert parse_signature("PI") == ("PI", ())

    def test_empty_parens(self):
        assert parse_signature("PI()") == ("PI", ())

    def test_bad_parameter(self):
        with pytest.raises(MacroDefinitionError):
            parse_signature("F(A, 1B)")

    def test_malformed(self):
        with pytest.raises(MacroDefinitionError):
            parse_signature("F(A")


class TestParseDirectives:
    def test_lines(self):
        text = (
            "# colors\n"
            "\n"
            "%define DOUBLE(X) X * 2\n"
            "%define TAU 6.283185307179586\n"
        )
        directives = parse_directives(text)
        assert [(d.name, d.parameters, d.template) for d in directives] == [
            ("DOUBLE", ("X",), "X * 2"),
            ("TAU", (), "6.283185307179586"),
        ]
        assert directives[0].line == 3

    def test_space_before_paren_is_constant(self):
        (d,) = parse_directives("%define K (1 + 2)")
        assert d.name == "K"
        assert d.parameters == ()
        assert d.template == "(1 + 2)"

    def test_not_a_directive(self):
        with pytest.raises(MacroDefinitionError, match="line 1"):
            parse_directives("define X 1")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 2. MacroRegistry
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TestMacroRegistry:
    def test_define(self, registry):
        d = registry.define("DOUBLE(X)", "X * 2")
        assert d.name == "DOUBLE"
        assert d.arity == 1
        assert d.signature == "DOUBLE(X)"
        assert d.source == "X * 2"
        assert d.directive() == "%define DOUBLE(X) X * 2"

    def test_duplicate_name(self, registry):
        registry.define("F(X)", "X")
        with pytest.raises(MacroDefinitionError, match="already defined"):
            registry.define("F(Y)", "Y")

    def test_duplicate_parameter(self, registry):
        with pytest.raises(MacroDefinitionError):
            registry.define("F(X, X)", "X")

    def test_shadowing_host_function(self, registry):
        with pytest.raises(MacroDefinitionError, match="host function"):
            registry.define("ln(X)", "X")

    def test_bad_template(self, registry):
        with pytest.raises(MacroDefinitionError) as info:
            registry.define("F(X)", "X +")
        assert isinstance(info.value.__cause__, MacroSyntaxError)

    def test_load(self, registry):
        loaded = registry.load("%define A1 1\n%define ADD(X, Y) X + Y\n")
        assert [d.name for d in loaded] == ["A1", "ADD"]
        assert len(registry) == 2

    def test_load_reports_source_and_line(self, registry):
        with pytest.raises(MacroDefinitionError, match="extra.defs:2"):
            registry.load("%define A1 1\n%define A1 2\n", source="extra.defs")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 3. MacroTable validation
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TestMacroTableValidation:
    def test_undeclared_name(self, registry):
        registry.define("F(X)", "X + Y")
        with pytest.raises(MacroDefinitionError, match="undeclared name 'Y'"):
            registry.freeze()

    def test_constant_may_be_free(self, registry):
        registry.define("PI", "3.141592653589793")
        registry.define("CIRCUMFERENCE(R)", "2 * PI * R")
        table = registry.freeze()
        assert "CIRCUMFERENCE" in table

    def test_forward_reference_resolves(self, registry):
        registry.define("QUAD(X)", "DOUBLE(DOUBLE(X))")
        registry.define("DOUBLE(X)", "X * 2")
        assert len(registry.freeze()) == 2

    def test_unknown_function(self, registry):
        registry.define("F(X)", "cbrt(X)")
        with pytest.raises(MacroDefinitionError, match="unknown function 'cbrt'"):
            registry.freeze()

    def test_wrong_arity_to_other_macro(self, registry):
        registry.define("DOUBLE(X)", "X * 2")
        registry.define("F(X)", "DOUBLE(X, X)")
        with pytest.raises(MacroDefinitionError, match="expected 1"):
            registry.freeze()

    def test_cycle(self, registry):
        registry.define("F(X)", "G(X) + 1")
        registry.define("G(X)", "F(X) - 1")
        with pytest.raises(MacroDefinitionError, match="Recursive"):
            registry.freeze()

    def test_self_reference(self, registry):
        registry.define("F(X)", "F(X)")
        with pytest.raises(MacroDefinitionError, match="F -> F"):
            registry.freeze()

    def test_parameter_shadows_constant(self, registry):
        registry.define("E", "2.718281828459045")
        registry.define("SCALE(E)", "E * 2")
        table = registry.freeze()
        assert table["SCALE"].parameters == ("E",)

    def test_table_is_read_only(self, registry):
        registry.define("F(X)", "X")
        table = registry.freeze()
        with pytest.raises(TypeError):
            table["G"] = table["F"]  # type: ignore[index]

    def test_freeze_snapshots(self, registry):
        registry.define("F(X)", "X")
        table = registry.freeze()
        registry.define("G(X)", "X")
        assert "G" not in table


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 4. MacroEngine.expand — single call
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TestExpand:
    def test_min(self, engine):
        assert render(engine.expand("MIN", ["a", "b"])) == "a - (a - b) * (a > b)"

    def test_max(self, engine):
        assert render(engine.expand("MAX", ["a", "b"])) == "a + (b - a) * (a < b)"

    def test_arguments_inlined_as_subtrees(self, engine):
        result = engine.expand("POSITIVE_CLAMP", ["x - 1"])
        assert render(result) == "(x - 1 > 0) * (x - 1)"

    def test_numeric_arguments(self, engine):
        assert render(engine.expand("RGB", [1, 2, 3])) == "1 * 65536 + 2 * 256 + 3"

    def test_clamp_parameters_do_not_collide_with_min_max(self, engine):
        result = engine.expand("CLAMP", ["v", "lo", "hi"])
        assert render(result) == "(v > lo) * (hi + (v - hi) * (v < hi))"

    def test_constant(self, engine):
        assert render(engine.expand("PI")) == "3.141592653589793"

    def test_hex(self, engine):
        assert render(engine.expand("HEX", ['"FF"'])) == '("0x" & "FF") + 0'

    def test_unknown_macro(self, engine):
        with pytest.raises(UnknownMacro):
            engine.expand("NoSuchMacro", [])

    def test_arity_mismatch(self, engine):
        with pytest.raises(ArityMismatch) as info:
            engine.expand("MIN", ["x"])
        assert info.value.expected == 2
        assert info.value.got == 1

    def test_module_level_expand(self):
        assert expand("E") == parse("2.718281828459045")

    def test_pure(self, engine):
        assert engine.expand("TANH", ["x"]) == engine.expand("TANH", ["x"])


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 5. MacroEngine.expand_text — whole expressions
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TestExpandText:
    def test_docstring_example(self, engine):
        assert engine.expand_text("MAX(a, 0) * PI") == (
            "(a + (0 - a) * (a < 0)) * 3.141592653589793"
        )

    def test_nested_calls(self, engine):
        assert engine.expand_text("MIN(MAX(a, 0), 1)") == (
            "a + (0 - a) * (a < 0) - (a + (0 - a) * (a < 0) - 1) * (a + (0 - a) * (a < 0) > 1)"
        )

    def test_constant_call_form(self, engine):
        assert engine.expand_text("E() * 2") == "2.718281828459045 * 2"

    def test_host_functions_pass_through(self, engine):
        assert engine.expand_text("sqrt(ln(x))") == "sqrt(ln(x))"

    def test_macro_inside_host_call(self, engine):
        assert engine.expand_text("sqrt(NEGATIVE_CLAMP(x))") == "sqrt((x < 0) * x)"

    def test_variables_untouched(self, engine):
        assert engine.expand_text("width * 2") == "width * 2"

    def test_unknown_function(self, engine):
        with pytest.raises(UnknownMacro):
            engine.expand_text("cbrt(8)")

    def test_arity_mismatch_aborts(self, engine):
        with pytest.raises(ArityMismatch):
            engine.expand_text("1 + RGB(1, 2)")

    def test_syntax_error(self, engine):
        with pytest.raises(MacroSyntaxError):
            engine.expand_text("MIN(1, ")

    def test_template_calling_other_macro(self, registry):
        registry.define("DOUBLE(X)", "X * 2")
        registry.define("QUAD(X)", "DOUBLE(DOUBLE(X))")
        engine = MacroEngine(table=registry.freeze(), max_depth=8)
        assert engine.expand_text("QUAD(n)") == "n * 2 * 2"

    def test_depth_limit(self, registry):
        registry.define("L0(X)", "X + 1")
        for i in range(1, 6):
            registry.define(f"L{i}(X)", f"L{i - 1}(X)")
        table = registry.freeze()

        assert MacroEngine(table=table, max_depth=10).expand_text("L5(0)") == "0 + 1"
        with pytest.raises(ExpansionDepthExceeded):
            MacroEngine(table=table, max_depth=3).expand_text("L5(0)")


def nested_min(levels: int) -> str:
    text = "x"
    for _ in range(levels):
        text = f"MIN({text}, 1)"
    return text


class TestExpansionLimits:
    def test_size_known_before_building(self):
        engine = MacroEngine(table=get_macro_table(), max_size=1000)
        expanded = engine.expand_expr(parse("MIN(MIN(a, b), c)"))
        assert measure(expanded) == (33, 7)

    def test_size_limit(self):
        engine = MacroEngine(table=get_macro_table(), max_size=20)
        with pytest.raises(ExpansionTooLarge, match="size"):
            engine.expand_text("MIN(MIN(a, b), c)")

    def test_height_limit(self):
        engine = MacroEngine(table=get_macro_table(), max_height=5)
        with pytest.raises(ExpansionTooLarge, match="height"):
            engine.expand_text("MIN(MIN(a, b), c)")

    def test_exponential_nesting_fails_fast(self, engine):
        # each MIN level triples the argument
        with pytest.raises(ExpansionTooLarge):
            engine.expand_text(nested_min(12))

    def test_shallow_nesting_still_expands(self, engine):
        size, _ = measure(engine.expand_expr(parse(nested_min(3))))
        assert size == 105

    def test_template_parameter_named_like_constant(self, registry):
        registry.define("E", "2.718281828459045")
        registry.define("SCALE(E)", "E * 2")
        engine = MacroEngine(table=registry.freeze())
        assert engine.expand_text("SCALE(y)") == "y * 2"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 6. Built-in table
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

BUILTIN_ARITIES = {
    "MIN": 2, "MAX": 2, "RGB": 3, "RGBA": 4, "HEX": 1, "BIN": 1,
    "POW": 2, "GAMMA": 1, "POSITIVE_CLAMP": 1, "NEGATIVE_CLAMP": 1,
    "CLAMP": 3, "ACOSH": 1, "ASINH": 1, "ATANH": 1, "COSH": 1,
    "SINH": 1, "TANH": 1, "PI": 0, "E": 0,
}


class TestBuiltinTable:
    def test_all_present_with_arity(self, engine):
        table = engine.table
        assert set(table.names()) == set(BUILTIN_ARITIES)
        for name, arity in BUILTIN_ARITIES.items():
            assert table[name].arity == arity, name

    def test_constants(self, engine):
        assert engine.table.constants() == ["E", "PI"]

    def test_host_functions(self, engine):
        assert engine.table.host_functions == {"ln", "antiln", "sqrt"}

    def test_directives_reload(self, engine):
        text = "\n".join(engine.table[n].directive() for n in engine.table.names())
        reg = MacroRegistry()
        reg.load(text)
        reloaded = reg.freeze()
        for name in engine.table:
            assert reloaded[name] == engine.table[name]


class TestBuildFromSettings:
    def test_extra_definitions_file(self, tmp_path):
        path = tmp_path / "extra.defs"
        path.write_text("%define HALF(X) X / 2\n%define TAU 2 * PI\n", encoding="utf-8")
        table = build_macro_table(Settings(definitions_path=path))
        assert "HALF" in table
        assert MacroEngine(table=table, max_depth=8).expand_text("TAU") == "2 * 3.141592653589793"

    def test_missing_file_is_skipped(self, tmp_path):
        table = build_macro_table(Settings(definitions_path=tmp_path / "missing.defs"))
        assert "HALF" not in table
        assert "MIN" in table

    def test_bad_file_fails(self, tmp_path):
        path = tmp_path / "bad.defs"
        path.write_text("%define MIN(A, B) A\n", encoding="utf-8")
        with pytest.raises(MacroDefinitionError, match="already defined"):
            build_macro_table(Settings(definitions_path=path))
