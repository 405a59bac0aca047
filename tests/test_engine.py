"""Engine tests: per-file checks, concurrency, LexError containment and discovery."""

from __future__ import annotations

from pathlib import Path

import pytest

from jsconv.config import AppConfig, build_rule_config
from jsconv.engine import InputError, check_file, check_paths, check_source, discover_files
from jsconv.report import report_exit_code

SOURCES = {
    "equality.js": "if (a == b) {\n}\n",
    "globals.js": "total = 1\n",
    "clean.js": "var ok = 1;\n",
    "layout.js": "function f() {\n   return 1;\n}\n",
}


def _write(root: Path, name: str, text: str) -> Path:
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_check_source_is_idempotent() -> None:
    text = "var A_b = 1\nif (A_b != 2) x = 3;\n"
    first = check_source(text)
    second = check_source(text)
    assert first == second
    assert first.findings


def test_findings_are_ordered_by_line_column_rule() -> None:
    report = check_source("x=1\n")
    keys = [finding.sort_key() for finding in report.findings]
    assert keys == sorted(keys)
    assert [finding.rule_id for finding in report.findings] == [
        "implied-globals",
        "operator-spacing",
        "semicolon-required",
    ]


def test_lex_error_becomes_single_finding() -> None:
    report = check_source("var s = 'abc\nvar t = 1;\n", path="bad.js")
    assert report.lex_failed
    assert report.path == "bad.js"
    assert len(report.findings) == 1
    finding = report.findings[0]
    assert finding.rule_id == "lex-error"
    assert finding.severity == "error"
    assert (finding.line, finding.column) == (1, 9)
    assert finding.message == "unterminated string literal"


def test_regex_after_control_header_does_not_fail_the_file() -> None:
    report = check_source("var s = '';\nif (s) /a{/.test(s);\nvar t = 1 == 2;\n")
    assert not report.lex_failed
    assert ("strict-equality", 3) in [(item.rule_id, item.line) for item in report.findings]


def test_lex_error_is_reported_even_when_rules_are_narrowed() -> None:
    config = build_rule_config(enable=["line-length"])
    report = check_source("/* open", config=config)
    assert [finding.rule_id for finding in report.findings] == ["lex-error"]


def test_concurrent_report_equals_union_of_single_file_reports(tmp_path: Path) -> None:
    paths = [_write(tmp_path, name, text) for name, text in SOURCES.items()]
    config = build_rule_config()

    parallel = check_paths(paths, config, jobs=4)
    sequential = check_paths(paths, config, jobs=1)
    singles = tuple(check_file(path, config) for path in paths)

    assert parallel.files == singles
    assert sequential.files == singles
    assert [item.path for item in parallel.files] == [str(path) for path in paths]


def test_lex_error_stops_only_its_own_file(tmp_path: Path) -> None:
    bad = _write(tmp_path, "bad.js", "var t = `never closed\n")
    good = _write(tmp_path, "good.js", SOURCES["equality.js"])

    report = check_paths([bad, good], jobs=2)
    bad_report, good_report = report.files
    assert bad_report.lex_failed
    assert [finding.rule_id for finding in bad_report.findings] == ["lex-error"]
    assert not good_report.lex_failed
    assert [finding.rule_id for finding in good_report.findings] == ["strict-equality"]
    assert report_exit_code(report) == 1


def test_every_file_failing_to_tokenize_is_fatal(tmp_path: Path) -> None:
    paths = [
        _write(tmp_path, "one.js", "'open\n"),
        _write(tmp_path, "two.js", "/* open\n"),
    ]
    assert report_exit_code(check_paths(paths, jobs=2)) == 2


def test_invalid_utf8_raises_input_error(tmp_path: Path) -> None:
    path = tmp_path / "latin.js"
    path.write_bytes(b"var caf\xe9 = 1;\n")
    with pytest.raises(InputError, match="not valid UTF-8"):
        check_paths([path])


def test_crlf_sources_keep_line_numbers(tmp_path: Path) -> None:
    path = tmp_path / "crlf.js"
    path.write_bytes(b"var a = 1;\r\nvar b = a\r\n")
    report = check_file(path, build_rule_config())
    assert [(item.rule_id, item.line) for item in report.findings] == [("semicolon-required", 2)]


def test_discover_files_walks_directories_with_filters(tmp_path: Path) -> None:
    _write(tmp_path, "a.js", "")
    _write(tmp_path, "notes.txt", "")
    _write(tmp_path, "node_modules/dep/index.js", "")
    _write(tmp_path, "lib/bundle.min.js", "")
    _write(tmp_path, "sub/d.mjs", "")
    defaults = AppConfig()

    found = discover_files(
        [tmp_path],
        extensions=defaults.extensions,
        include=defaults.include,
        exclude=defaults.exclude,
    )
    assert found == [tmp_path / "a.js", tmp_path / "sub" / "d.mjs"]

    included = discover_files([tmp_path], include=["sub/*"])
    assert included == [tmp_path / "sub" / "d.mjs"]


def test_discover_files_keeps_explicit_files_once(tmp_path: Path) -> None:
    script = _write(tmp_path, "a.js", "")
    other = _write(tmp_path, "script.es", "")
    found = discover_files([tmp_path, script, other])
    assert found == [script, other]


def test_discover_files_rejects_missing_paths(tmp_path: Path) -> None:
    with pytest.raises(InputError, match="no such file"):
        discover_files([tmp_path / "missing.js"])
