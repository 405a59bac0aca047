"""Report model and output rendering."""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

import click

from jsconv import __version__
from jsconv.rules.base import Finding

REPORT_FORMATS = ("text", "json")

_SEVERITY_COLORS = {"error": "red", "warning": "yellow"}


class UnsupportedFormat(ValueError):
    """Requested output format is not one of REPORT_FORMATS."""


@dataclass(frozen=True, slots=True)
class FileReport:
    """Findings for one checked file, ordered by (line, column, rule id)."""

    path: str
    findings: tuple[Finding, ...]
    lex_failed: bool = False

    def sorted_findings(self) -> list[Finding]:
        return sorted(self.findings, key=Finding.sort_key)


@dataclass(frozen=True, slots=True)
class Report:
    """Findings of one invocation, grouped by file in input order."""

    files: tuple[FileReport, ...]

    def findings(self) -> Iterator[tuple[str, Finding]]:
        for file_report in self.files:
            for finding in file_report.sorted_findings():
                yield (file_report.path, finding)

    def count(self, severity: str | None = None) -> int:
        return sum(
            1
            for _path, finding in self.findings()
            if severity is None or finding.severity == severity
        )

    @property
    def has_errors(self) -> bool:
        return self.count("error") > 0

    @property
    def all_files_failed(self) -> bool:
        return bool(self.files) and all(item.lex_failed for item in self.files)


def report_exit_code(report: Report) -> int:
    """0 when clean of errors, 1 with errors, 2 when no file could be tokenized."""
    if report.all_files_failed:
        return 2
    return 1 if report.has_errors else 0


def render_report(report: Report, fmt: str, *, color: bool = False) -> str:
    """Render ``report`` as ``text`` or ``json``."""
    output_format = fmt.lower()
    if output_format == "text":
        return render_text(report, color=color)
    if output_format == "json":
        return render_json(report)
    choices = ", ".join(REPORT_FORMATS)
    raise UnsupportedFormat(f"Unsupported format '{fmt}'. Expected one of: {choices}")


def render_text(report: Report, *, color: bool = False) -> str:
    """One line per finding: ``<file>:<line>:<col>: [<severity>] <rule>: <message>``."""
    lines: list[str] = []
    for path, finding in report.findings():
        severity = f"[{finding.severity}]"
        if color:
            severity = click.style(severity, fg=_SEVERITY_COLORS.get(finding.severity), bold=True)
        lines.append(
            f"{path}:{finding.line}:{finding.column}: {severity} "
            f"{finding.rule_id}: {finding.message}"
        )
    return "\n".join(lines)


def render_summary(report: Report) -> str:
    errors = report.count("error")
    warnings = report.count("warning")
    return f"{len(report.files)} files checked: {errors} errors, {warnings} warnings"


def to_records(report: Report) -> list[dict[str, Any]]:
    """Ordered finding records for machine consumption."""
    records: list[dict[str, Any]] = []
    for path, finding in report.findings():
        record = finding.to_dict()
        record["file"] = path
        records.append(record)
    return records


def build_json_payload(report: Report) -> dict[str, Any]:
    """Build stable JSON payload for CI and automation."""
    return {
        "findings": to_records(report),
        "summary": {
            "files": len(report.files),
            "errors": report.count("error"),
            "warnings": report.count("warning"),
            "exit_code": report_exit_code(report),
        },
        "meta": {"version": __version__},
    }


def render_json(report: Report) -> str:
    return json.dumps(build_json_payload(report), sort_keys=True)
