"""CLI entrypoint for lint-doctor."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any

import typer

from lint_doctor import __version__
from lint_doctor.backends import AnalysisToolError
from lint_doctor.config import AppConfig, default_config_template, load_app_config
from lint_doctor.engine import ScoringError, run_engine
from lint_doctor.files import collect_file_records
from lint_doctor.output import render_human, render_json
from lint_doctor.profiles import list_profile_info, merge_config
from lint_doctor.report import EngineReport
from lint_doctor.timer import BudgetExceededError

app = typer.Typer(
    name="lint-doctor",
    no_args_is_help=True,
    help="Score code quality from linter diagnostics.",
)


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
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug details.")] = False,
) -> None:
    """Root command callback."""
    _ = version
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command("score")
def score_command(
    paths: Annotated[
        list[Path] | None,
        typer.Argument(help="Files to score. Defaults to all project files under --root."),
    ] = None,
    root: Annotated[Path, typer.Option(help="Analysis root directory.")] = Path("."),
    profile: Annotated[str | None, typer.Option(help="Baseline rule profile.")] = None,
    fix: Annotated[
        bool | None,
        typer.Option("--fix/--no-fix", help="Apply safe fixes in place before scoring."),
    ] = None,
    budget_seconds: Annotated[
        float | None, typer.Option("--budget-seconds", help="Time budget for the run.")
    ] = None,
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    fail_below: Annotated[
        int | None, typer.Option(help="Exit nonzero if the score is below this value.")
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Lint files and report a quality score."""
    app_config = _load_config_or_raise(root, config_file)
    output_format = (format or app_config.format).lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")
    if budget_seconds is not None and budget_seconds <= 0:
        raise typer.BadParameter("must be > 0", param_hint="--budget-seconds")

    resolved_root = root.resolve()
    resolved_fix = fix if fix is not None else app_config.fix
    report = _run_or_raise(
        app_config,
        root=resolved_root,
        paths=paths,
        profile=profile or app_config.profile,
        fix=resolved_fix,
        budget_seconds=budget_seconds or app_config.budget_seconds,
    )

    if output_format == "json":
        typer.echo(render_json(report, root=resolved_root, fix=resolved_fix))
    else:
        typer.echo(render_human(report, root=resolved_root))

    threshold = fail_below if fail_below is not None else app_config.fail_below
    if threshold is not None and report.score < threshold:
        raise typer.Exit(code=1)


@app.command("profiles")
def profiles_command(
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
) -> None:
    """List built-in rule profiles."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    info = list_profile_info()
    if output_format == "json":
        payload = {
            "profiles": [
                {
                    "key": item.key,
                    "description": item.description,
                    "rule_count": item.rule_count,
                    "critical": list(item.critical),
                }
                for item in info
            ]
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = ["Available profiles:"]
    for item in info:
        lines.append(f"- {item.key} ({item.rule_count} selectors) - {item.description}")
    typer.echo("\n".join(lines))


@app.command("config")
def config_command(
    root: Annotated[Path, typer.Option(help="Analysis root directory.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show resolved configuration."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(root, config_file)
    payload = app_config.to_dict()
    payload["merged_config"] = _merged_config_or_raise(app_config)

    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [
        "Resolved configuration:",
        f"- source: {payload['source'] or 'defaults'}",
        f"- profile: {payload['profile']}",
        f"- format: {payload['format']}",
        f"- fail_below: {payload['fail_below']}",
        f"- fix: {payload['fix']}",
        f"- budget_seconds: {payload['budget_seconds']}",
        f"- rules: {payload['merged_config'].get('rules', {})}",
        f"- critical: {payload['merged_config'].get('critical', [])}",
    ]
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".lint-doctor.toml"
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
    root: Annotated[Path, typer.Option(help="Analysis root directory.")] = Path("."),
    config_file: Annotated[
        Path,
        typer.Option("--config", help="Path to config TOML file to validate."),
    ] = Path(".lint-doctor.toml"),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
) -> None:
    """Validate a config file and report the merged rule selectors."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(root, config_file)
    merged = _merged_config_or_raise(app_config)
    payload = {
        "ok": True,
        "source": app_config.source,
        "profile": app_config.profile,
        "selectors": sorted(merged.get("rules", {})),
    }
    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return
    typer.echo(
        "\n".join(
            [
                "Config is valid.",
                f"- source: {payload['source']}",
                f"- profile: {payload['profile']}",
                f"- selectors: {payload['selectors']}",
            ]
        )
    )


def main() -> None:
    """Console script entrypoint."""
    app()


def _load_config_or_raise(root: Path, config_file: Path | None = None) -> AppConfig:
    try:
        return load_app_config(root, config_path=config_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _merged_config_or_raise(app_config: AppConfig) -> dict[str, Any]:
    try:
        return merge_config(app_config.profile, app_config.overrides)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config.overrides") from exc


def _run_or_raise(
    app_config: AppConfig,
    *,
    root: Path,
    paths: list[Path] | None,
    profile: str,
    fix: bool,
    budget_seconds: float,
) -> EngineReport:
    files = collect_file_records(root, paths)
    try:
        return run_engine(
            files,
            root=root,
            profile=profile,
            overrides=app_config.overrides,
            fix=fix,
            budget_seconds=budget_seconds,
            bonuses=app_config.bonuses,
            weights=app_config.scoring.to_weights(),
            strict_manifest=app_config.strict_manifest,
        )
    except (AnalysisToolError, BudgetExceededError, ScoringError) as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc
