"""Configuration loading for jsconv."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Literal

CONFIG_FILENAMES = (".jsconv.toml", "jsconv.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("jsconv",)

OUTPUT_FORMATS = ("text", "json")
LEX_ERROR_RULE_ID = "lex-error"

Severity = Literal["error", "warning"]
SEVERITIES: tuple[Severity, ...] = ("error", "warning")

# Alternate spellings accepted for the top-level rule options.
_OPTION_ALIASES = {
    "indentWidth": "indent_width",
    "maxLineLength": "max_line_length",
    "enabledRules": "enabled_rules",
    "bannedCalls": "banned_calls",
    "stringTimers": "string_timers",
}


class ConfigError(ValueError):
    """Malformed or inconsistent configuration."""


@dataclass(frozen=True, slots=True)
class RuleConfig:
    """Rule selection and parameters, fixed for the duration of a run."""

    enabled_rules: frozenset[str]
    indent_width: int = 4
    max_line_length: int = 80
    severities: tuple[tuple[str, Severity], ...] = ()
    banned_calls: tuple[str, ...] = ("eval", "Function")
    string_timers: tuple[str, ...] = ("setTimeout", "setInterval")
    globals: tuple[str, ...] = ()

    def is_enabled(self, rule_id: str) -> bool:
        return rule_id in self.enabled_rules

    def severity(self, rule_id: str) -> Severity:
        for known_id, value in self.severities:
            if known_id == rule_id:
                return value
        return "error"


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    format: str = "text"
    jobs: int | None = None
    extensions: list[str] = field(default_factory=lambda: [".js", ".mjs", ".cjs"])
    include: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=lambda: ["node_modules/*", "*.min.js"])
    rule_enable: list[str] | None = None
    rule_disable: list[str] = field(default_factory=list)
    severity_overrides: dict[str, Severity] = field(default_factory=dict)
    indent_width: int = 4
    max_line_length: int = 80
    banned_calls: list[str] = field(default_factory=lambda: ["eval", "Function"])
    string_timers: list[str] = field(default_factory=lambda: ["setTimeout", "setInterval"])
    globals: list[str] = field(default_factory=list)
    source: str | None = None

    def rule_config(self) -> RuleConfig:
        """Resolve the immutable rule configuration for a check run."""
        return build_rule_config(
            enable=self.rule_enable,
            disable=self.rule_disable,
            severity_overrides=self.severity_overrides,
            indent_width=self.indent_width,
            max_line_length=self.max_line_length,
            banned_calls=self.banned_calls,
            string_timers=self.string_timers,
            globals=self.globals,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "jobs": self.jobs,
            "extensions": list(self.extensions),
            "include": list(self.include),
            "exclude": list(self.exclude),
            "rules": {
                "enable": list(self.rule_enable) if self.rule_enable is not None else None,
                "disable": list(self.rule_disable),
                "severity": dict(self.severity_overrides),
            },
            "indent_width": self.indent_width,
            "max_line_length": self.max_line_length,
            "banned_calls": list(self.banned_calls),
            "string_timers": list(self.string_timers),
            "globals": list(self.globals),
            "source": self.source,
        }

    def with_overrides(self, **overrides: Any) -> AppConfig:
        """Copy with command-line values applied; ``None`` keeps the file value."""
        applied = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **applied)


def build_rule_config(
    *,
    enable: list[str] | None = None,
    disable: list[str] | None = None,
    severity_overrides: Mapping[str, str] | None = None,
    indent_width: int = 4,
    max_line_length: int = 80,
    banned_calls: list[str] | None = None,
    string_timers: list[str] | None = None,
    globals: list[str] | None = None,
) -> RuleConfig:
    """Validate rule selection against the registry and build a RuleConfig."""
    from jsconv.rules import DEFAULT_SEVERITIES, default_rule_ids

    known = set(DEFAULT_SEVERITIES)
    requested = set(enable or []) | set(disable or []) | set(severity_overrides or {})
    unknown = sorted(rule_id for rule_id in requested if rule_id not in known)
    if unknown:
        raise ConfigError(f"Unknown rule ids: {', '.join(unknown)}")
    if LEX_ERROR_RULE_ID in set(disable or []):
        raise ConfigError(f"{LEX_ERROR_RULE_ID} cannot be disabled")
    if indent_width <= 0:
        raise ConfigError("indent_width must be > 0")
    if max_line_length <= 0:
        raise ConfigError("max_line_length must be > 0")

    selected = set(default_rule_ids() if enable is None else enable)
    selected.difference_update(disable or [])
    selected.add(LEX_ERROR_RULE_ID)

    severities = dict(DEFAULT_SEVERITIES)
    for rule_id, raw in (severity_overrides or {}).items():
        severities[rule_id] = _as_severity(raw, f"rules.severity.{rule_id}")

    return RuleConfig(
        enabled_rules=frozenset(selected),
        indent_width=indent_width,
        max_line_length=max_line_length,
        severities=tuple(sorted(severities.items())),
        banned_calls=tuple(banned_calls if banned_calls is not None else ("eval", "Function")),
        string_timers=tuple(
            string_timers if string_timers is not None else ("setTimeout", "setInterval")
        ),
        globals=tuple(globals or ()),
    )


def rule_config_from_mapping(mapping: Mapping[str, Any]) -> RuleConfig:
    """Build a RuleConfig from an options object.

    Accepts ``indent_width``/``indentWidth``, ``max_line_length``/
    ``maxLineLength`` and ``enabled_rules``/``enabledRules`` along with the
    other rule options understood by the TOML loader.
    """
    normalized = _normalize_keys(mapping)
    enabled = normalized.get("enabled_rules")
    if enabled is not None and not isinstance(enabled, (list, tuple, set, frozenset)):
        raise ConfigError("enabled_rules must be a collection of rule ids")
    return build_rule_config(
        enable=_as_str_list(list(enabled), "enabled_rules") if enabled is not None else None,
        indent_width=_as_int(normalized.get("indent_width", 4), "indent_width"),
        max_line_length=_as_int(normalized.get("max_line_length", 80), "max_line_length"),
        banned_calls=_as_str_list_or_none(normalized.get("banned_calls"), "banned_calls"),
        string_timers=_as_str_list_or_none(normalized.get("string_timers"), "string_timers"),
        globals=_as_str_list(normalized.get("globals"), "globals"),
    )


def default_jobs() -> int:
    return min(8, os.cpu_count() or 1)


def load_app_config(root: Path, config_path: Path | None = None) -> AppConfig:
    """Load config from explicit path or project-local files with precedence."""
    root = root.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (root / config_path)
        if not resolved.exists():
            raise ConfigError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = root / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = root / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path))

    return AppConfig()


def default_config_template() -> str:
    """Return a starter config template."""
    return "\n".join(
        [
            'format = "text"',
            "# jobs = 4",
            'extensions = [".js", ".mjs", ".cjs"]',
            'include = ["src/*"]',
            'exclude = ["node_modules/*", "*.min.js"]',
            "",
            "indent_width = 4",
            "max_line_length = 80",
            'globals = ["window", "document"]',
            'banned_calls = ["eval", "Function"]',
            'string_timers = ["setTimeout", "setInterval"]',
            "",
            "[rules]",
            "# enable = [",
            '#   "indent-width",',
            '#   "line-length",',
            '#   "semicolon-required",',
            "# ]",
            'disable = ["one-statement-per-line"]',
            "",
            "[rules.severity]",
            'line-length = "error"',
            "",
        ]
    )


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    if source_path.name == PYPROJECT_FILENAME:
        section = _find_pyproject_tool_section(loaded)
        return section if section is not None else {}

    tool_section = _find_pyproject_tool_section(loaded)
    if tool_section is not None:
        return tool_section
    return loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> AppConfig:
    normalized = _normalize_keys(mapping)
    rules_mapping = _as_table(normalized.get("rules"), "rules")
    severity_mapping = _as_table(rules_mapping.get("severity"), "rules.severity")

    rule_enable = _as_str_list_or_none(rules_mapping.get("enable"), "rules.enable")
    if "enabled_rules" in normalized:
        if rule_enable is not None:
            raise ConfigError("Use either enabled_rules or rules.enable, not both")
        rule_enable = _as_str_list(normalized.get("enabled_rules"), "enabled_rules")

    raw_jobs = normalized.get("jobs")
    jobs = None if raw_jobs is None else _as_int(raw_jobs, "jobs")
    if jobs is not None and jobs <= 0:
        raise ConfigError("jobs must be > 0")

    defaults = AppConfig()
    config = AppConfig(
        format=_as_choice(normalized.get("format", "text"), set(OUTPUT_FORMATS), "format"),
        jobs=jobs,
        extensions=_as_str_list_or_none(normalized.get("extensions"), "extensions")
        or defaults.extensions,
        include=_as_str_list(normalized.get("include"), "include"),
        exclude=(
            _as_str_list(normalized["exclude"], "exclude")
            if "exclude" in normalized
            else defaults.exclude
        ),
        rule_enable=rule_enable,
        rule_disable=_as_str_list(rules_mapping.get("disable"), "rules.disable"),
        severity_overrides={
            str(key): _as_severity(value, f"rules.severity.{key}")
            for key, value in severity_mapping.items()
        },
        indent_width=_as_int(normalized.get("indent_width", 4), "indent_width"),
        max_line_length=_as_int(normalized.get("max_line_length", 80), "max_line_length"),
        banned_calls=_as_str_list_or_none(normalized.get("banned_calls"), "banned_calls")
        or defaults.banned_calls,
        string_timers=_as_str_list_or_none(normalized.get("string_timers"), "string_timers")
        or defaults.string_timers,
        globals=_as_str_list(normalized.get("globals"), "globals"),
        source=source,
    )
    # Surface unknown rule ids and bad parameters at load time.
    config.rule_config()
    return config


def _normalize_keys(mapping: Mapping[str, Any]) -> dict[str, Any]:
    normalized: dict[str, Any] = {}
    for key, value in mapping.items():
        canonical = _OPTION_ALIASES.get(key, key)
        if canonical in normalized:
            raise ConfigError(f"Option {canonical} given more than once")
        normalized[canonical] = value
    return normalized


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{field_name} must be a table/object")
    return value


def _as_str_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{field_name} must be a list of strings")
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ConfigError(f"{field_name} must be a list of strings")
        items.append(item)
    return items


def _as_str_list_or_none(value: Any, field_name: str) -> list[str] | None:
    if value is None:
        return None
    return _as_str_list(value, field_name)


def _as_choice(raw: Any, allowed: set[str], field_name: str) -> str:
    value = str(raw).lower()
    if value not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ConfigError(f"{field_name} must be one of: {choices}")
    return value


def _as_severity(raw: Any, field_name: str) -> Severity:
    value = _as_choice(raw, set(SEVERITIES), field_name)
    return "error" if value == "error" else "warning"


def _as_int(raw: Any, field_name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ConfigError(f"{field_name} must be an integer")
    return raw
