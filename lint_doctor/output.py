"""Output rendering."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import click

from lint_doctor import __version__
from lint_doctor.diagnostics import Diagnostic
from lint_doctor.report import EngineReport


def render_human(report: EngineReport, *, root: Path | None = None, limit: int = 10) -> str:
    """Render a compact colorized summary."""
    ceiling = report.breakdown.ceiling if report.breakdown is not None else 100
    label, color = _score_grade(report.score, ceiling)
    lines: list[str] = [
        click.style(
            f"Quality score: {report.score}/{ceiling} ({label})",
            fg=color,
            bold=True,
        ),
        f"Profile: {report.profile}, {report.error_count} error(s), "
        f"{report.warning_count} warning(s) in {len(report.file_reports)} file(s)",
    ]

    breakdown = report.breakdown
    if breakdown is not None and breakdown.applied_bonuses:
        lines.append(f"Bonuses: {', '.join(breakdown.applied_bonuses)} (+{breakdown.bonus_total})")
    if report.fixed_paths:
        lines.append(f"Fixed {len(report.fixed_paths)} file(s) in place.")

    top = _top_diagnostics(report, limit=limit)
    if top:
        lines.append(click.style("Top diagnostics:", bold=True))
        for index, diagnostic in enumerate(top, start=1):
            path = _display_path(diagnostic.file_path, root)
            location = f"{path}:{diagnostic.line}:{diagnostic.column}"
            rule = diagnostic.rule_id or "-"
            lines.append(f"{index}. [{diagnostic.severity.label}] {rule} {diagnostic.message}")
            lines.append(f"   at: {location}")

    flagged = [item for item in report.file_reports if item.diagnostics]
    if flagged:
        lines.append(click.style("Per-file summary:", bold=True))
        ordered = sorted(
            flagged,
            key=lambda item: (-item.error_count, -item.warning_count, item.file_path),
        )
        for file_report in ordered:
            lines.append(
                f"- {_display_path(file_report.file_path, root)}: "
                f"{file_report.error_count} error(s), {file_report.warning_count} warning(s)"
            )
    return "\n".join(lines)


def render_json(report: EngineReport, *, root: Path | None = None, fix: bool = False) -> str:
    """Render stable JSON output for CI and automation."""
    return json.dumps(build_json_payload(report, root=root, fix=fix), sort_keys=True)


def build_json_payload(
    report: EngineReport,
    *,
    root: Path | None = None,
    fix: bool = False,
) -> dict[str, Any]:
    payload = report.to_dict()
    payload["meta"] = {
        "root": str(root) if root is not None else None,
        "profile": report.profile,
        "fix": fix,
        "version": __version__,
    }
    return payload


def _top_diagnostics(report: EngineReport, limit: int) -> list[Diagnostic]:
    diagnostics = [item for file_report in report.file_reports for item in file_report.diagnostics]
    ranked = sorted(
        diagnostics,
        key=lambda item: (
            -int(item.severity),
            not item.is_critical,
            item.file_path,
            item.line,
            item.column,
        ),
    )
    return ranked[:limit]


def _display_path(path: str, root: Path | None) -> str:
    if root is None:
        return path
    relative = os.path.relpath(path, root)
    return path if relative.startswith("..") else relative


def _score_grade(score: int, ceiling: int) -> tuple[str, str]:
    ratio = score / ceiling if ceiling else 0.0
    if ratio >= 0.9:
        return ("GOOD", "green")
    if ratio >= 0.6:
        return ("FAIR", "yellow")
    return ("POOR", "red")
