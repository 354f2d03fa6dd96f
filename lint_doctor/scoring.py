"""Score aggregation: diagnostic penalties and manifest bonuses."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from typing import Any, Literal

from lint_doctor.diagnostics import FileReport, Severity
from lint_doctor.manifest import ManifestInfo

# A warning costs one point, an error three.
WARNING_WEIGHT = -1
ERROR_WEIGHT = -3
BONUS_WEIGHT = 2
SCORE_CEILING = 100

BONUS_TARGETS = ("runtime", "dev")


@dataclass(frozen=True, slots=True)
class ScoreWeights:
    """Per-severity point deltas and the score ceiling."""

    warning: int = WARNING_WEIGHT
    error: int = ERROR_WEIGHT
    ceiling: int = SCORE_CEILING

    def __post_init__(self) -> None:
        if self.ceiling <= 0:
            raise ValueError(f"ceiling must be positive, got {self.ceiling}")
        if self.warning > 0 or self.error > 0:
            raise ValueError("warning and error weights must not be positive")

    def for_severity(self, severity: Severity) -> int:
        return self.error if severity is Severity.ERROR else self.warning

    def to_dict(self) -> dict[str, int]:
        return {"warning": self.warning, "error": self.error, "ceiling": self.ceiling}


@dataclass(frozen=True, slots=True)
class BonusRule:
    """Bonus granted when a dependency is declared in the project manifest."""

    dependency: str
    applies_to: Literal["runtime", "dev"]
    weight: int = BONUS_WEIGHT

    def __post_init__(self) -> None:
        if self.applies_to not in BONUS_TARGETS:
            choices = ", ".join(BONUS_TARGETS)
            raise ValueError(f"bonus applies_to must be one of: {choices}")

    @property
    def name(self) -> str:
        return f"recommend-{self.applies_to}-{self.dependency}"

    def applies(self, manifest: ManifestInfo) -> bool:
        if self.applies_to == "runtime":
            return manifest.has_dependency(self.dependency)
        return manifest.has_dev_dependency(self.dependency)

    def to_dict(self) -> dict[str, Any]:
        return {"dependency": self.dependency, "applies_to": self.applies_to, "weight": self.weight}


DEFAULT_BONUSES: tuple[BonusRule, ...] = (
    BonusRule(dependency="pydantic", applies_to="runtime"),
    BonusRule(dependency="mypy", applies_to="dev"),
)


@dataclass(frozen=True, slots=True)
class Scorer:
    """Running score total, clamped to ``[0, ceiling]`` only when read.

    Deferring the clamp keeps the observed score independent of the order in
    which deltas were added.
    """

    total: int
    ceiling: int = SCORE_CEILING

    @classmethod
    def start(cls, ceiling: int = SCORE_CEILING) -> Scorer:
        return cls(total=ceiling, ceiling=ceiling)

    def plus(self, delta: int) -> Scorer:
        return replace(self, total=self.total + delta)

    @property
    def score(self) -> int:
        return max(0, min(self.ceiling, self.total))


@dataclass(slots=True)
class ScoreBreakdown:
    """Traceable score aggregation output."""

    score: int
    ceiling: int
    warning_penalty: int = 0
    error_penalty: int = 0
    critical_penalty: int = 0
    bonus_total: int = 0
    applied_bonuses: list[str] = field(default_factory=list)

    @property
    def raw_total(self) -> int:
        return (
            self.ceiling
            + self.warning_penalty
            + self.error_penalty
            + self.critical_penalty
            + self.bonus_total
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "ceiling": self.ceiling,
            "raw_total": self.raw_total,
            "warning_penalty": self.warning_penalty,
            "error_penalty": self.error_penalty,
            "critical_penalty": self.critical_penalty,
            "bonus_total": self.bonus_total,
            "applied_bonuses": list(self.applied_bonuses),
        }


def score_reports(
    reports: Sequence[FileReport],
    manifest: ManifestInfo | None = None,
    *,
    weights: ScoreWeights | None = None,
    bonuses: Iterable[BonusRule] | None = None,
) -> ScoreBreakdown:
    """Fold per-file penalties, then manifest bonuses, into one clamped score.

    Critical diagnostics are charged their severity weight a second time; the
    plain warning/error counts on the reports are left untouched.
    """
    active_weights = weights or ScoreWeights()
    active_bonuses = tuple(DEFAULT_BONUSES if bonuses is None else bonuses)
    active_manifest = manifest or ManifestInfo()

    warning_penalty = 0
    error_penalty = 0
    critical_penalty = 0
    for report in reports:
        warning_penalty += report.warning_count * active_weights.warning
        error_penalty += report.error_count * active_weights.error
        critical_penalty += critical_penalty_for(report, active_weights)

    scorer = Scorer.start(active_weights.ceiling)
    scorer = scorer.plus(warning_penalty).plus(error_penalty).plus(critical_penalty)

    bonus_total = 0
    applied: list[str] = []
    for bonus in active_bonuses:
        if bonus.applies(active_manifest):
            scorer = scorer.plus(bonus.weight)
            bonus_total += bonus.weight
            applied.append(bonus.name)

    return ScoreBreakdown(
        score=scorer.score,
        ceiling=active_weights.ceiling,
        warning_penalty=warning_penalty,
        error_penalty=error_penalty,
        critical_penalty=critical_penalty,
        bonus_total=bonus_total,
        applied_bonuses=applied,
    )


def critical_penalty_for(report: FileReport, weights: ScoreWeights) -> int:
    return sum(
        weights.for_severity(diagnostic.severity)
        for diagnostic in report.diagnostics
        if diagnostic.is_critical
    )
