"""Rules package."""

from collections.abc import Callable
from dataclasses import dataclass

from jsconv.config import LEX_ERROR_RULE_ID, RuleConfig, Severity
from jsconv.rules.banned import NoEvalRule, NoWithRule
from jsconv.rules.base import Finding, Rule
from jsconv.rules.braces import BraceStyleRule, CurlyBracesRule
from jsconv.rules.equality import StrictEqualityRule
from jsconv.rules.implied_globals import ImpliedGlobalsRule
from jsconv.rules.layout import IndentWidthRule, LineLengthRule
from jsconv.rules.naming import NamingCaseRule
from jsconv.rules.spacing import CommaSpacingRule, KeywordSpacingRule, OperatorSpacingRule
from jsconv.rules.statements import OneStatementPerLineRule, SemicolonRequiredRule, VarFirstRule

__all__ = [
    "DEFAULT_SEVERITIES",
    "Finding",
    "KNOWN_CATEGORIES",
    "Rule",
    "RuleInfo",
    "build_rules",
    "default_rule_ids",
    "list_rule_info",
]

KNOWN_CATEGORIES = {
    "layout",
    "statements",
    "naming",
    "safety",
    "syntax",
}


@dataclass(frozen=True, slots=True)
class RuleInfo:
    """Rule metadata for listing and selection."""

    rule_id: str
    name: str
    description: str
    category: str
    severity: Severity
    default_enabled: bool


@dataclass(frozen=True, slots=True)
class _RuleSpec:
    rule_id: str
    factory: Callable[[], Rule]
    name: str
    description: str
    category: str
    severity: Severity


def build_rules(config: RuleConfig) -> list[Rule]:
    """Instantiate the rules enabled in ``config``, in registry order."""
    return [spec.factory() for spec in _RULE_SPECS if config.is_enabled(spec.rule_id)]


def default_rule_ids() -> list[str]:
    """Ids of the rules that run when no explicit selection is configured."""
    return [spec.rule_id for spec in _RULE_SPECS]


def list_rule_info() -> list[RuleInfo]:
    """Return metadata for all known rules, the lex-error pseudo-rule last."""
    info = [
        RuleInfo(
            rule_id=spec.rule_id,
            name=spec.name,
            description=spec.description,
            category=spec.category,
            severity=spec.severity,
            default_enabled=True,
        )
        for spec in _RULE_SPECS
    ]
    info.append(
        RuleInfo(
            rule_id=LEX_ERROR_RULE_ID,
            name="LexError",
            description="Source could not be tokenized (unterminated string or comment).",
            category="syntax",
            severity="error",
            default_enabled=True,
        )
    )
    return info


def _spec(rule_cls: type[Rule], *, category: str) -> _RuleSpec:
    if category not in KNOWN_CATEGORIES:
        raise ValueError(f"Unknown rule category: {category}")
    instance = rule_cls()
    return _RuleSpec(
        rule_id=instance.rule_id,
        factory=rule_cls,
        name=rule_cls.__name__,
        description=(rule_cls.__doc__ or "").strip().splitlines()[0],
        category=category,
        severity=instance.severity,
    )


_RULE_SPECS: tuple[_RuleSpec, ...] = (
    _spec(IndentWidthRule, category="layout"),
    _spec(LineLengthRule, category="layout"),
    _spec(BraceStyleRule, category="layout"),
    _spec(VarFirstRule, category="statements"),
    _spec(StrictEqualityRule, category="safety"),
    _spec(NoEvalRule, category="safety"),
    _spec(SemicolonRequiredRule, category="statements"),
    _spec(NamingCaseRule, category="naming"),
    _spec(NoWithRule, category="safety"),
    _spec(OneStatementPerLineRule, category="statements"),
    _spec(ImpliedGlobalsRule, category="safety"),
    _spec(CurlyBracesRule, category="statements"),
    _spec(KeywordSpacingRule, category="layout"),
    _spec(CommaSpacingRule, category="layout"),
    _spec(OperatorSpacingRule, category="layout"),
)

DEFAULT_SEVERITIES: dict[str, Severity] = {
    **{spec.rule_id: spec.severity for spec in _RULE_SPECS},
    LEX_ERROR_RULE_ID: "error",
}
