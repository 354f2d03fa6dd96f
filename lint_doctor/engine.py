"""Scoring engine entry point."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from lint_doctor.backends import AnalysisBackend, default_backend
from lint_doctor.diagnostics import FileReport, run_diagnostics
from lint_doctor.ignore import IgnoreMatcher, load_ignore_file
from lint_doctor.profiles import get_profile, merge_config
from lint_doctor.report import EngineReport, assemble_report
from lint_doctor.scoring import BonusRule, ScoreWeights, score_reports
from lint_doctor.selection import FileRecord, select_files
from lint_doctor.timer import Timer

logger = logging.getLogger(__name__)

DEFAULT_BUDGET_SECONDS = 60.0


class ScoringError(RuntimeError):
    """Raised when scoring fails after diagnostics were produced."""

    def __init__(self, message: str, *, file_reports: list[FileReport]) -> None:
        super().__init__(message)
        self.file_reports = file_reports


def run_engine(
    files: Sequence[FileRecord],
    *,
    root: Path,
    profile: str = "common",
    overrides: Mapping[str, Any] | None = None,
    fix: bool = False,
    budget_seconds: float = DEFAULT_BUDGET_SECONDS,
    backend: AnalysisBackend | None = None,
    bonuses: Iterable[BonusRule] | None = None,
    weights: ScoreWeights | None = None,
    ignore_patterns: Iterable[str] | None = None,
    strict_manifest: bool = False,
    timer: Timer | None = None,
) -> EngineReport:
    """Select, lint, score and report on ``files``.

    Configuration errors surface before any file is read or the backend runs.
    ``BudgetExceededError`` is raised at the checkpoints after selection and
    after the backend call; no partial report is produced. Fixes are written
    only when ``fix`` is set.
    """
    active_timer = timer or Timer.start(budget_seconds)
    baseline = get_profile(profile)
    config = merge_config(baseline.key, overrides)
    active_bonuses = baseline.bonuses if bonuses is None else tuple(bonuses)

    if ignore_patterns is None:
        matcher = load_ignore_file(root)
    else:
        matcher = IgnoreMatcher.compile(ignore_patterns)

    selection = select_files(files, root, matcher, strict_manifest=strict_manifest)
    logger.debug(
        "Selected %d of %d file(s) for analysis, skipped %d",
        len(selection.paths),
        len(files),
        len(selection.skipped),
    )
    active_timer.check_timeout()

    reports = run_diagnostics(
        backend or default_backend(),
        selection.paths,
        config,
        fix=fix,
        timer=active_timer,
    )

    try:
        breakdown = score_reports(
            reports,
            selection.manifest,
            weights=weights,
            bonuses=active_bonuses,
        )
    except ValueError as exc:
        raise ScoringError(f"scoring failed: {exc}", file_reports=reports) from exc

    return assemble_report(reports, breakdown, config, profile=baseline.key)
