"""Check orchestration: per-file tasks, rule fan-out and LexError containment."""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from jsconv.config import LEX_ERROR_RULE_ID, RuleConfig, build_rule_config, default_jobs
from jsconv.report import FileReport, Report
from jsconv.rules import build_rules
from jsconv.rules.base import Finding, Rule
from jsconv.source import SourceFile
from jsconv.tokenizer import LexError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".js", ".mjs", ".cjs")


class InputError(OSError):
    """An input file could not be read or decoded."""


def check_source(
    text: str,
    path: str = "<text>",
    config: RuleConfig | None = None,
    *,
    rules: Sequence[Rule] | None = None,
) -> FileReport:
    """Check one source text and return its findings.

    A LexError ends the check for this text and is reported as a single
    ``lex-error`` finding; it is never raised.
    """
    rule_config = config if config is not None else build_rule_config()
    active_rules = list(rules) if rules is not None else build_rules(rule_config)
    try:
        source = SourceFile.from_text(text, path=path)
    except LexError as exc:
        logger.info("%s: %s", path, exc)
        return FileReport(
            path=path,
            findings=(
                Finding(
                    rule_id=LEX_ERROR_RULE_ID,
                    severity=rule_config.severity(LEX_ERROR_RULE_ID),
                    line=exc.line,
                    column=exc.column,
                    message=exc.message,
                ),
            ),
            lex_failed=True,
        )

    findings: list[Finding] = []
    for rule in active_rules:
        findings.extend(rule.evaluate(source, rule_config))
    logger.debug("%s: %d findings", path, len(findings))
    return FileReport(path=path, findings=tuple(sorted(findings, key=Finding.sort_key)))


def check_file(path: Path, config: RuleConfig, rules: Sequence[Rule] | None = None) -> FileReport:
    """Read ``path`` to completion and check its contents."""
    return check_source(read_source(path), path=str(path), config=config, rules=rules)


def check_paths(
    paths: Iterable[Path],
    config: RuleConfig | None = None,
    *,
    jobs: int | None = None,
) -> Report:
    """Check each file on its own task and merge the results in input order.

    Unreadable files raise InputError before any report is produced.
    """
    rule_config = config if config is not None else build_rule_config()
    ordered = list(paths)
    workers = max(1, jobs if jobs is not None else default_jobs())
    logger.debug("checking %d files with %d workers", len(ordered), workers)

    if workers == 1 or len(ordered) <= 1:
        return Report(files=tuple(check_file(path, rule_config) for path in ordered))

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="jsconv") as executor:
        results = list(executor.map(lambda path: check_file(path, rule_config), ordered))
    return Report(files=tuple(results))


def read_source(path: Path) -> str:
    try:
        with path.open("r", encoding="utf-8", newline="") as file_obj:
            return file_obj.read()
    except UnicodeDecodeError as exc:
        raise InputError(f"{path}: not valid UTF-8 ({exc.reason})") from exc
    except OSError as exc:
        raise InputError(f"{path}: {exc.strerror or exc}") from exc


def discover_files(
    paths: Iterable[Path],
    *,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    include: Sequence[str] = (),
    exclude: Sequence[str] = (),
) -> list[Path]:
    """Expand directories into source files; explicit file paths are kept as given.

    Include and exclude globs are matched against POSIX-style paths relative
    to the directory being walked.
    """
    found: list[Path] = []
    seen: set[Path] = set()
    for path in paths:
        if path.is_dir():
            candidates = [
                candidate
                for candidate in sorted(path.rglob("*"))
                if candidate.is_file()
                and candidate.suffix in extensions
                and _selected(candidate.relative_to(path).as_posix(), include, exclude)
            ]
        elif path.exists():
            candidates = [path]
        else:
            raise InputError(f"{path}: no such file or directory")
        for candidate in candidates:
            if candidate not in seen:
                seen.add(candidate)
                found.append(candidate)
    logger.debug("discovered %d files", len(found))
    return found


def _selected(relative: str, include: Sequence[str], exclude: Sequence[str]) -> bool:
    if include and not any(fnmatch.fnmatch(relative, pattern) for pattern in include):
        return False
    if exclude and any(fnmatch.fnmatch(relative, pattern) for pattern in exclude):
        return False
    return True
