"""Rule behavior tests, one group per rule."""

from __future__ import annotations

import pytest

from jsconv.config import build_rule_config
from jsconv.rules import (
    DEFAULT_SEVERITIES,
    KNOWN_CATEGORIES,
    build_rules,
    default_rule_ids,
    list_rule_info,
)
from tests.helpers_js import findings_for, only, rule_ids


def _locations(text: str, rule_id: str, **options: object) -> list[tuple[int, int]]:
    return [
        (finding.line, finding.column)
        for finding in findings_for(text, only(rule_id, **options))
        if finding.rule_id == rule_id
    ]


def test_if_with_loose_equality_and_missing_semicolon() -> None:
    findings = findings_for("if (a == b) {\n    return true\n}\n")
    assert [(item.rule_id, item.line) for item in findings] == [
        ("strict-equality", 1),
        ("semicolon-required", 2),
    ]


def test_long_but_conforming_line_has_only_line_length() -> None:
    source = 'var message = "' + "a" * 80 + '";\n'
    findings = findings_for(source)
    assert [(item.rule_id, item.line, item.column) for item in findings] == [
        ("line-length", 1, 81)
    ]


def test_rules_firing_on_same_token_are_all_kept() -> None:
    findings = findings_for("a==b;\n")
    assert [(item.rule_id, item.line, item.column) for item in findings] == [
        ("operator-spacing", 1, 2),
        ("strict-equality", 1, 2),
    ]


def test_conforming_program_has_no_findings() -> None:
    source = "\n".join(
        [
            '"use strict";',
            "var count = 0;",
            "",
            "function Counter(start) {",
            "    var value = start;",
            "    this.next = function () {",
            "        value += 1;",
            "        return value;",
            "    };",
            "}",
            "",
            "var counter = new Counter(count);",
            "if (counter.next() === 1) {",
            "    count = 2;",
            "} else {",
            "    count = 3;",
            "}",
            "",
        ]
    )
    assert findings_for(source) == []


# indent-width


def test_indent_not_multiple_of_width() -> None:
    assert _locations("function f() {\n  return 1;\n}\n", "indent-width") == [(2, 1)]


def test_indent_with_tab() -> None:
    findings = findings_for("if (a) {\n\treturn;\n}\n", only("indent-width"))
    assert [(item.line, item.column) for item in findings] == [(2, 1)]
    assert "tab" in findings[0].message


def test_indent_multiples_and_comment_continuations_pass() -> None:
    source = "    x;\n        y;\n/*\n   * note\n   */\nz;\n\n   \n"
    assert _locations(source, "indent-width") == []


def test_indent_width_is_configurable() -> None:
    assert _locations("  x;\n", "indent-width", indent_width=2) == []
    assert _locations("  x;\n", "indent-width") == [(1, 1)]


# line-length


@pytest.mark.parametrize(("length", "expected"), [(79, 0), (80, 0), (81, 1), (120, 1)])
def test_line_length_boundaries(length: int, expected: int) -> None:
    line = "// " + "x" * (length - 3)
    assert len(_locations(line + "\n", "line-length")) == expected


def test_line_length_reports_each_offending_line_once() -> None:
    source = ("// " + "x" * 90 + "\n") * 3
    assert _locations(source, "line-length") == [(1, 81), (2, 81), (3, 81)]


def test_line_length_uses_configured_limit() -> None:
    assert _locations("var abc;\n", "line-length", max_line_length=5) == [(1, 6)]


# brace-style


def test_brace_on_next_line_after_header() -> None:
    source = "if (a)\n{\n    b();\n}\nfunction f()\n{\n}\n"
    assert _locations(source, "brace-style") == [(2, 1), (6, 1)]


def test_object_literal_on_next_line_is_not_a_compound_brace() -> None:
    assert _locations("var o =\n{\n    a: 1\n};\n", "brace-style") == []


# var-first


def test_declaration_after_statement_in_function() -> None:
    source = "\n".join(
        [
            "function f() {",
            '    "use strict";',
            "    var a = 1;",
            "    a += 1;",
            "    var b = a;",
            "    return b;",
            "}",
            "",
        ]
    )
    assert _locations(source, "var-first") == [(5, 5)]


def test_for_header_declaration_is_not_flagged() -> None:
    source = "function g() {\n    for (var i = 0; i < 2; i++) {\n    }\n}\n"
    assert _locations(source, "var-first") == []


def test_each_function_scope_starts_fresh() -> None:
    source = "go();\nfunction h() {\n    var x;\n}\n"
    assert _locations(source, "var-first") == []


# strict-equality


def test_loose_equality_operators() -> None:
    assert _locations("if (a == b || c != d) {}\n", "strict-equality") == [(1, 7), (1, 17)]


def test_equality_inside_strings_and_comments_is_ignored() -> None:
    source = "var s = 'a == b'; // x != y\n/* a == b */\nvar t = `${x} == y`;\nok = a === b;\n"
    assert _locations(source, "strict-equality") == []


# no-eval


def test_eval_function_and_string_timers() -> None:
    source = "\n".join(
        [
            "eval('x');",
            "var f = new Function('a', 'return a');",
            "setTimeout('tick()', 10);",
            "setTimeout(tick, 10);",
            "",
        ]
    )
    assert _locations(source, "no-eval") == [(1, 1), (2, 13), (3, 12)]


def test_banned_calls_are_configurable() -> None:
    source = "execScript('x');\neval('y');\n"
    assert _locations(source, "no-eval", banned_calls=["execScript"]) == [(1, 1)]


def test_method_named_eval_is_not_a_call() -> None:
    source = "class Sandbox {\n    eval(code) {\n        return code;\n    }\n}\neval('x');\n"
    assert _locations(source, "no-eval") == [(6, 1)]


# semicolon-required


def test_missing_semicolons() -> None:
    source = "var a = 1\nvar b = 2;\nfoo()\n"
    assert _locations(source, "semicolon-required") == [(1, 10), (3, 6)]


def test_blocks_and_switch_labels_need_no_semicolon() -> None:
    source = "\n".join(
        [
            "if (a) {",
            "    b();",
            "}",
            "function f() {",
            "}",
            "switch (x) {",
            "case 1:",
            "    y();",
            "    break;",
            "default:",
            "    z();",
            "}",
            "",
        ]
    )
    assert _locations(source, "semicolon-required") == []


def test_function_expression_statement_needs_semicolon() -> None:
    assert _locations("var f = function () {\n}\n", "semicolon-required") == [(2, 2)]


def test_braced_case_body_is_checked_as_a_block() -> None:
    source = "switch (x) {\ncase 1: {\n    y()\n    break;\n}\n}\n"
    assert _locations(source, "semicolon-required") == [(3, 8)]


# naming-case


def test_naming_conventions() -> None:
    source = "\n".join(
        [
            "var my_var = 1;",
            "var MAX_SIZE = 2;",
            "function Widget() {",
            "}",
            "function do_it(First) {",
            "}",
            "class thing {}",
            "var w = new widget();",
            "",
        ]
    )
    findings = findings_for(source, only("naming-case"))
    assert [(item.line, item.column) for item in findings] == [
        (1, 5),
        (5, 10),
        (5, 16),
        (7, 7),
        (8, 13),
    ]
    assert findings[0].message == "Variable name 'my_var' should be lowerCamelCase."


# no-with


def test_with_statement() -> None:
    assert _locations("with (obj) {\n    a = 1;\n}\n", "no-with") == [(1, 1)]


# one-statement-per-line


def test_two_statements_on_one_line() -> None:
    source = "var a = 1; var b = 2;\nfoo(); bar();\n"
    assert _locations(source, "one-statement-per-line") == [(1, 12), (2, 8)]


def test_block_header_and_body_on_one_line_is_allowed() -> None:
    assert _locations("if (a) { b(); }\n", "one-statement-per-line") == []


# implied-globals


def test_assignment_to_undeclared_name() -> None:
    source = "function f() {\n    total = 1;\n    var count;\n    count = 2;\n}\n"
    assert _locations(source, "implied-globals") == [(2, 5)]


def test_declared_names_parameters_and_members_are_fine() -> None:
    source = "\n".join(
        [
            "var outer;",
            "var obj = {};",
            "obj.x = 1;",
            "function g(a) {",
            "    a = 2;",
            "    outer = a;",
            "}",
            "",
        ]
    )
    assert _locations(source, "implied-globals") == []


def test_function_locals_are_popped_at_scope_exit() -> None:
    source = "function a() {\n    var local;\n}\nlocal = 1;\n"
    assert _locations(source, "implied-globals") == [(4, 1)]


def test_assignment_before_declaration_and_compound_assignment() -> None:
    assert _locations("x = 1;\nvar x;\ncount += 1;\n", "implied-globals") == [(1, 1), (3, 1)]


def test_configured_globals_are_predeclared() -> None:
    assert _locations("total = 1;\n", "implied-globals", globals=["total"]) == []


def test_member_named_catch_does_not_declare_its_argument() -> None:
    source = "var p = load();\np.catch(onFail);\nonFail = null;\n"
    assert _locations(source, "implied-globals") == [(3, 1)]


def test_expression_arrow_parameters_end_with_the_arrow() -> None:
    source = "var items = [];\nitems.map(x => x * 2);\nitems.forEach((a, b) => a = b);\nx = 5;\n"
    assert _locations(source, "implied-globals") == [(4, 1)]


def test_arrow_expression_body_ends_at_line_break() -> None:
    source = "var f = (n) => n + 1\nn = 2;\n"
    assert _locations(source, "implied-globals") == [(2, 1)]


# curly-braces


def test_bodies_without_braces() -> None:
    source = "\n".join(
        [
            "if (a)",
            "    b();",
            "else",
            "    c();",
            "while (x) y();",
            "for (;;) z();",
            "do",
            "    w();",
            "while (v);",
            "",
        ]
    )
    assert _locations(source, "curly-braces") == [(2, 5), (4, 5), (5, 11), (6, 10), (8, 5)]


def test_else_if_and_do_while_are_allowed() -> None:
    source = "if (a) {\n} else if (b) {\n}\ndo {\n} while (c);\n"
    assert _locations(source, "curly-braces") == []


# keyword-spacing


def test_keyword_spacing() -> None:
    source = "\n".join(
        [
            "if(a) {}",
            "while  (b) {}",
            "var f = function(x) {};",
            "function g (y) {}",
            "function h(z) {}",
            "var k = function (w) {};",
            "",
        ]
    )
    assert _locations(source, "keyword-spacing") == [(1, 1), (2, 1), (3, 9), (4, 10)]


def test_promise_catch_is_not_a_keyword() -> None:
    source = "fetchIt().catch(function (err) {\n    log(err);\n});\n"
    assert _locations(source, "keyword-spacing") == []


# comma-spacing


def test_comma_spacing() -> None:
    source = "f(a ,b);\nvar list = [1, 2,3];\nvar o = {a: 1,\n    b: 2};\nvar t = [1, 2,];\n"
    assert _locations(source, "comma-spacing") == [(1, 4), (1, 5), (2, 17)]


# operator-spacing


def test_operator_spacing() -> None:
    source = "\n".join(
        [
            "var a=1;",
            "var b = a+1;",
            "if (a===b && b !==a) {}",
            "var f = (x)=> x;",
            "var c = -a ? b : c;",
            "",
        ]
    )
    assert _locations(source, "operator-spacing") == [(1, 6), (3, 6), (3, 16), (4, 12)]


# registry and configuration


def test_registry_lists_rules_in_fixed_order() -> None:
    ids = default_rule_ids()
    assert len(ids) == 15
    assert ids[0] == "indent-width"
    assert ids[-1] == "operator-spacing"
    info = list_rule_info()
    assert [item.rule_id for item in info] == [*ids, "lex-error"]
    assert all(item.description for item in info)
    assert {item.category for item in info} == KNOWN_CATEGORIES
    assert DEFAULT_SEVERITIES["strict-equality"] == "error"
    assert DEFAULT_SEVERITIES["line-length"] == "warning"


def test_build_rules_respects_enabled_set() -> None:
    config = build_rule_config(disable=["line-length", "naming-case"])
    active = [rule.rule_id for rule in build_rules(config)]
    assert "line-length" not in active
    assert "naming-case" not in active
    assert len(active) == 13


def test_disabled_rule_produces_no_findings() -> None:
    config = build_rule_config(disable=["strict-equality"])
    assert "strict-equality" not in rule_ids("if (a == b) {\n}\n", config)


def test_severity_override_is_applied() -> None:
    config = build_rule_config(severity_overrides={"line-length": "error"})
    findings = findings_for("// " + "x" * 90 + "\n", config)
    assert [(item.rule_id, item.severity) for item in findings] == [("line-length", "error")]
