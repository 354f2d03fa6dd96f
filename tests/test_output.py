"""Output rendering tests."""

from __future__ import annotations

import json
from pathlib import Path

import click

from lint_doctor import __version__
from lint_doctor.backends.base import Severity
from lint_doctor.diagnostics import Diagnostic, FileReport
from lint_doctor.output import build_json_payload, render_human, render_json
from lint_doctor.report import EngineReport
from lint_doctor.scoring import ScoreBreakdown


def test_render_human_has_headline_top_diagnostics_and_file_summary() -> None:
    report = _report()

    output = click.unstyle(render_human(report, root=Path("/repo")))

    assert "Quality score: 92/100 (GOOD)" in output
    assert "Profile: common, 2 error(s), 1 warning(s) in 3 file(s)" in output
    assert "Bonuses: recommend-dev-mypy (+2)" in output
    assert "Top diagnostics:" in output
    assert "1. [error] F821 [Critical] Undefined name `x`" in output
    assert "   at: src/api.py:3:5" in output
    assert "Per-file summary:" in output
    assert "- src/api.py: 2 error(s), 0 warning(s)" in output
    assert "- src/util.py: 0 error(s), 1 warning(s)" in output
    assert "clean.py" not in output


def test_render_human_respects_limit() -> None:
    output = click.unstyle(render_human(_report(), root=Path("/repo"), limit=1))

    assert "1. [error]" in output
    assert "2. [" not in output


def test_render_human_grades_low_scores() -> None:
    report = EngineReport(
        score=40,
        file_reports=[],
        error_count=0,
        warning_count=0,
        applied_config={},
        profile="strict",
        breakdown=ScoreBreakdown(score=40, ceiling=100),
    )

    output = click.unstyle(render_human(report))

    assert "Quality score: 40/100 (POOR)" in output
    assert "Top diagnostics:" not in output


def test_render_human_lists_fixed_files() -> None:
    report = _report()
    report.fixed_paths = ["/repo/src/util.py"]

    output = click.unstyle(render_human(report))

    assert "Fixed 1 file(s) in place." in output


def test_render_json_has_stable_schema_keys() -> None:
    payload = json.loads(render_json(_report(), root=Path("/repo"), fix=True))

    assert set(payload) == {
        "score",
        "error_count",
        "warning_count",
        "profile",
        "applied_config",
        "breakdown",
        "fixed_paths",
        "file_reports",
        "meta",
    }
    assert payload["meta"] == {
        "root": "/repo",
        "profile": "common",
        "fix": True,
        "version": __version__,
    }
    assert payload["breakdown"]["applied_bonuses"] == ["recommend-dev-mypy"]
    assert payload["breakdown"]["raw_total"] == 92


def test_render_json_is_byte_stable() -> None:
    assert render_json(_report()) == render_json(_report())
    assert build_json_payload(_report())["meta"]["root"] is None


def _report() -> EngineReport:
    api = FileReport(
        file_path="/repo/src/api.py",
        diagnostics=[
            Diagnostic(
                file_path="/repo/src/api.py",
                severity=Severity.ERROR,
                rule_id="F821",
                message="[Critical] Undefined name `x`",
                line=3,
                column=5,
            ),
            Diagnostic(
                file_path="/repo/src/api.py",
                severity=Severity.ERROR,
                rule_id="F401",
                message="`os` imported but unused",
                line=1,
                column=8,
            ),
        ],
        error_count=2,
    )
    util = FileReport(
        file_path="/repo/src/util.py",
        diagnostics=[
            Diagnostic(
                file_path="/repo/src/util.py",
                severity=Severity.WARNING,
                rule_id="I001",
                message="Import block is un-sorted or un-formatted",
                line=1,
                column=1,
            )
        ],
        warning_count=1,
    )
    clean = FileReport(file_path="/repo/clean.py")
    breakdown = ScoreBreakdown(
        score=92,
        ceiling=100,
        warning_penalty=-1,
        error_penalty=-6,
        critical_penalty=-3,
        bonus_total=2,
        applied_bonuses=["recommend-dev-mypy"],
    )
    return EngineReport(
        score=92,
        file_reports=[api, util, clean],
        error_count=2,
        warning_count=1,
        applied_config={"rules": {"F": "error"}, "critical": ["F821"], "settings": {}},
        profile="common",
        breakdown=breakdown,
    )
