"""CLI entrypoint for jsconv."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from jsconv import __version__
from jsconv.config import (
    OUTPUT_FORMATS,
    AppConfig,
    ConfigError,
    RuleConfig,
    default_config_template,
    load_app_config,
)
from jsconv.engine import InputError, check_paths, check_source, discover_files
from jsconv.report import (
    Report,
    UnsupportedFormat,
    render_report,
    render_summary,
    report_exit_code,
)
from jsconv.rules import list_rule_info

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="jsconv",
    no_args_is_help=True,
    help="Check JavaScript sources against the classic code-conventions guide.",
)

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
) -> None:
    """Root command callback."""
    _ = version


@app.command("check")
def check_command(
    paths: Annotated[
        list[Path] | None,
        typer.Argument(help="Files or directories to check.", show_default=False),
    ] = None,
    stdin: Annotated[bool, typer.Option(help="Read one source text from stdin.")] = False,
    stdin_filename: Annotated[
        str, typer.Option("--stdin-filename", help="Path reported for stdin input.")
    ] = "<stdin>",
    format: Annotated[
        str | None, typer.Option(help="Output format: text|json.", show_default="text")
    ] = None,
    root: Annotated[Path, typer.Option(help="Project root used for config discovery.")] = Path(
        "."
    ),
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
    indent_width: Annotated[
        int | None, typer.Option("--indent-width", help="Indentation unit in spaces.")
    ] = None,
    max_line_length: Annotated[
        int | None, typer.Option("--max-line-length", help="Maximum characters per line.")
    ] = None,
    enable: Annotated[
        list[str] | None, typer.Option(help="Run only these rule ids (repeatable).")
    ] = None,
    disable: Annotated[
        list[str] | None, typer.Option(help="Skip this rule id (repeatable).")
    ] = None,
    jobs: Annotated[
        int | None, typer.Option(min=1, help="Worker threads for file checks.")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug details.")] = False,
) -> None:
    """Check files (or stdin) and report convention violations."""
    _configure_logging(verbose)
    app_config = _load_config_or_raise(root, config_file)
    app_config = app_config.with_overrides(
        format=format.lower() if format is not None else None,
        jobs=jobs,
        indent_width=indent_width,
        max_line_length=max_line_length,
        rule_enable=list(enable) if enable else None,
        rule_disable=[*app_config.rule_disable, *disable] if disable else None,
    )
    if app_config.format not in OUTPUT_FORMATS:
        choices = ", ".join(OUTPUT_FORMATS)
        raise typer.BadParameter(f"format must be one of: {choices}", param_hint="--format")
    rule_config = _rule_config_or_raise(app_config)
    logger.debug("config source: %s", app_config.source or "defaults")

    if stdin and paths:
        raise typer.BadParameter("Use either PATH arguments or --stdin, not both.")
    if not stdin and not paths:
        raise typer.BadParameter("Provide at least one PATH or --stdin.")

    if stdin:
        report = Report(files=(check_source(sys.stdin.read(), stdin_filename, rule_config),))
    else:
        try:
            files = discover_files(
                paths or [],
                extensions=app_config.extensions,
                include=app_config.include,
                exclude=app_config.exclude,
            )
            report = check_paths(files, rule_config, jobs=app_config.jobs)
        except InputError as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(code=2) from exc

    try:
        rendered = render_report(report, app_config.format, color=True)
    except UnsupportedFormat as exc:
        raise typer.BadParameter(str(exc), param_hint="--format") from exc
    if rendered:
        typer.echo(rendered)
    if app_config.format == "text":
        typer.echo(render_summary(report), err=True)

    exit_code = report_exit_code(report)
    if exit_code:
        raise typer.Exit(code=exit_code)


@app.command("rules")
def rules_command(
    root: Annotated[Path, typer.Option(help="Project root used for config discovery.")] = Path(
        "."
    ),
    format: Annotated[str, typer.Option(help="Output format: text|json.")] = "text",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """List available rules and whether the resolved config enables them."""
    output_format = _output_format_or_raise(format)
    app_config = _load_config_or_raise(root, config_file)
    rule_config = _rule_config_or_raise(app_config)
    rule_info = list_rule_info()

    if output_format == "json":
        payload = {
            "rules": [
                {
                    "rule_id": item.rule_id,
                    "name": item.name,
                    "description": item.description,
                    "category": item.category,
                    "default_severity": item.severity,
                    "severity": rule_config.severity(item.rule_id),
                    "default_enabled": item.default_enabled,
                    "enabled": rule_config.is_enabled(item.rule_id),
                }
                for item in rule_info
            ],
            "meta": {"config_source": app_config.source},
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = ["Available rules:"]
    for item in rule_info:
        status = "enabled" if rule_config.is_enabled(item.rule_id) else "disabled"
        severity = rule_config.severity(item.rule_id)
        lines.append(f"- {item.rule_id} [{status}, {severity}] - {item.description}")
    typer.echo("\n".join(lines))


@app.command("config")
def config_command(
    root: Annotated[Path, typer.Option(help="Project root used for config discovery.")] = Path(
        "."
    ),
    format: Annotated[str, typer.Option(help="Output format: text|json.")] = "text",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show resolved configuration."""
    output_format = _output_format_or_raise(format)
    app_config = _load_config_or_raise(root, config_file)
    rule_config = _rule_config_or_raise(app_config)
    payload = app_config.to_dict()
    payload["active_rule_ids"] = _active_rule_ids(rule_config)

    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [
        "Resolved configuration:",
        f"- source: {payload['source'] or 'defaults'}",
        f"- format: {payload['format']}",
        f"- jobs: {payload['jobs'] or 'auto'}",
        f"- extensions: {payload['extensions']}",
        f"- include: {payload['include']}",
        f"- exclude: {payload['exclude']}",
        f"- indent_width: {payload['indent_width']}",
        f"- max_line_length: {payload['max_line_length']}",
        f"- globals: {payload['globals']}",
        f"- rules.enable: {payload['rules']['enable']}",
        f"- rules.disable: {payload['rules']['disable']}",
        f"- rules.severity: {payload['rules']['severity']}",
        f"- active_rule_ids: {payload['active_rule_ids']}",
    ]
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".jsconv.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter project config file."""
    out_path = out.resolve()
    if out_path.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {out_path}. Use --force to overwrite."
        )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {out_path}")


@app.command("config-validate")
def config_validate_command(
    root: Annotated[Path, typer.Option(help="Project root used for config discovery.")] = Path(
        "."
    ),
    config_file: Annotated[
        Path,
        typer.Option("--config", help="Path to config TOML file to validate."),
    ] = Path(".jsconv.toml"),
    format: Annotated[str, typer.Option(help="Output format: text|json.")] = "text",
) -> None:
    """Validate a config file and report active rules."""
    output_format = _output_format_or_raise(format)
    app_config = _load_config_or_raise(root, config_file)
    rule_config = _rule_config_or_raise(app_config)
    payload = {
        "ok": True,
        "source": app_config.source,
        "active_rule_ids": _active_rule_ids(rule_config),
    }
    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return
    typer.echo(
        "\n".join(
            [
                "Config is valid.",
                f"- source: {payload['source']}",
                f"- active_rule_ids: {payload['active_rule_ids']}",
            ]
        )
    )


def main() -> None:
    """Console script entrypoint."""
    app()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=_LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def _output_format_or_raise(value: str) -> str:
    output_format = value.lower()
    if output_format not in OUTPUT_FORMATS:
        choices = ", ".join(OUTPUT_FORMATS)
        raise typer.BadParameter(f"format must be one of: {choices}", param_hint="--format")
    return output_format


def _load_config_or_raise(root: Path, config_file: Path | None = None) -> AppConfig:
    try:
        return load_app_config(root, config_path=config_file)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _rule_config_or_raise(app_config: AppConfig) -> RuleConfig:
    try:
        return app_config.rule_config()
    except ConfigError as exc:
        raise typer.BadParameter(str(exc), param_hint="config.rules") from exc


def _active_rule_ids(rule_config: RuleConfig) -> list[str]:
    return [item.rule_id for item in list_rule_info() if rule_config.is_enabled(item.rule_id)]
