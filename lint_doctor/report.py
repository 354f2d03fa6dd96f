"""Final report assembly."""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from lint_doctor.diagnostics import FileReport
from lint_doctor.scoring import ScoreBreakdown


@dataclass(slots=True)
class EngineReport:
    """Top-level engine output."""

    score: int
    file_reports: list[FileReport]
    error_count: int
    warning_count: int
    applied_config: dict[str, Any]
    profile: str = ""
    breakdown: ScoreBreakdown | None = None
    fixed_paths: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "profile": self.profile,
            "applied_config": copy.deepcopy(self.applied_config),
            "breakdown": self.breakdown.to_dict() if self.breakdown is not None else None,
            "fixed_paths": list(self.fixed_paths),
            "file_reports": [item.to_dict() for item in self.file_reports],
        }


def assemble_report(
    file_reports: Sequence[FileReport],
    breakdown: ScoreBreakdown,
    config: Mapping[str, Any],
    *,
    profile: str = "",
) -> EngineReport:
    """Sum per-file counts and attach the score and the configuration used."""
    reports = list(file_reports)
    return EngineReport(
        score=breakdown.score,
        file_reports=reports,
        error_count=sum(item.error_count for item in reports),
        warning_count=sum(item.warning_count for item in reports),
        applied_config=copy.deepcopy(dict(config)),
        profile=profile,
        breakdown=breakdown,
        fixed_paths=[item.file_path for item in reports if item.fixed],
    )
