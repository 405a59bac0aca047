"""Line-oriented layout rules: indentation and line length."""

from __future__ import annotations

from jsconv.config import RuleConfig
from jsconv.rules.base import Finding
from jsconv.source import SourceFile


class IndentWidthRule:
    """Flags indentation that uses tabs or is not a multiple of the indent width."""

    rule_id = "indent-width"
    severity = "warning"

    def evaluate(self, source: SourceFile, config: RuleConfig) -> list[Finding]:
        findings: list[Finding] = []
        continued = source.line_starts_inside_token()
        width = config.indent_width

        for lineno, line in enumerate(source.lines, start=1):
            if lineno in continued:
                continue
            content = line.lstrip(" \t")
            if not content:
                continue
            indent = line[: len(line) - len(content)]
            if "\t" in indent:
                findings.append(
                    Finding(
                        rule_id=self.rule_id,
                        severity=config.severity(self.rule_id),
                        line=lineno,
                        column=indent.index("\t") + 1,
                        message="Indentation uses tab characters; use spaces.",
                    )
                )
            elif len(indent) % width:
                findings.append(
                    Finding(
                        rule_id=self.rule_id,
                        severity=config.severity(self.rule_id),
                        line=lineno,
                        column=1,
                        message=(
                            f"Indentation of {len(indent)} spaces is not a multiple of {width}."
                        ),
                    )
                )
        return findings


class LineLengthRule:
    """Flags lines longer than the configured maximum."""

    rule_id = "line-length"
    severity = "warning"

    def evaluate(self, source: SourceFile, config: RuleConfig) -> list[Finding]:
        limit = config.max_line_length
        return [
            Finding(
                rule_id=self.rule_id,
                severity=config.severity(self.rule_id),
                line=lineno,
                column=limit + 1,
                message=f"Line is {len(line)} characters long; the limit is {limit}.",
            )
            for lineno, line in enumerate(source.lines, start=1)
            if len(line) > limit
        ]
