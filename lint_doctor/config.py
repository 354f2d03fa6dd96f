"""Configuration loading for lint-doctor."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from lint_doctor.engine import DEFAULT_BUDGET_SECONDS
from lint_doctor.profiles import PROFILES
from lint_doctor.scoring import (
    BONUS_TARGETS,
    BONUS_WEIGHT,
    ERROR_WEIGHT,
    SCORE_CEILING,
    WARNING_WEIGHT,
    BonusRule,
    ScoreWeights,
)

CONFIG_FILENAMES = (".lint-doctor.toml", "lint-doctor.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("lint_doctor", "lint-doctor")


@dataclass(slots=True)
class ScoringConfig:
    """Score ceiling and per-severity weights."""

    ceiling: int = SCORE_CEILING
    warning_weight: int = WARNING_WEIGHT
    error_weight: int = ERROR_WEIGHT

    def to_weights(self) -> ScoreWeights:
        return ScoreWeights(
            warning=self.warning_weight,
            error=self.error_weight,
            ceiling=self.ceiling,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "ceiling": self.ceiling,
            "warning_weight": self.warning_weight,
            "error_weight": self.error_weight,
        }


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    profile: str = "common"
    format: str = "human"
    fail_below: int | None = None
    fix: bool = False
    budget_seconds: float = DEFAULT_BUDGET_SECONDS
    strict_manifest: bool = False
    overrides: dict[str, Any] = field(default_factory=dict)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    bonuses: list[BonusRule] | None = None
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "profile": self.profile,
            "format": self.format,
            "fail_below": self.fail_below,
            "fix": self.fix,
            "budget_seconds": self.budget_seconds,
            "strict_manifest": self.strict_manifest,
            "overrides": dict(self.overrides),
            "scoring": self.scoring.to_dict(),
            "bonuses": (
                [item.to_dict() for item in self.bonuses] if self.bonuses is not None else None
            ),
            "source": self.source,
        }


def load_app_config(repo: Path, config_path: Path | None = None) -> AppConfig:
    """Load config from explicit path or repository-local files with precedence."""
    repo = repo.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (repo / config_path)
        if not resolved.exists():
            raise ValueError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = repo / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = repo / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path))

    return AppConfig()


def default_config_template() -> str:
    """Return a starter config template."""
    return "\n".join(
        [
            'profile = "common"',
            'format = "human"',
            "fail_below = 80",
            "fix = false",
            "budget_seconds = 60",
            "strict_manifest = false",
            "",
            "[overrides.rules]",
            '# E501 = "off"',
            'B = "error"',
            "",
            "[overrides.settings]",
            "line-length = 100",
            "",
            "[scoring]",
            "ceiling = 100",
            "warning_weight = -1",
            "error_weight = -3",
            "",
            "[[bonuses]]",
            'dependency = "pydantic"',
            'applies_to = "runtime"',
            "weight = 2",
            "",
            "[[bonuses]]",
            'dependency = "mypy"',
            'applies_to = "dev"',
            "weight = 2",
            "",
        ]
    )


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc
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
    raw_format = mapping.get("format", "human")
    format_value = str(raw_format).lower()
    if format_value not in {"human", "json"}:
        format_value = "human"

    raw_fail = mapping.get("fail_below")
    if raw_fail is None:
        fail_value: int | None = None
    elif isinstance(raw_fail, int) and not isinstance(raw_fail, bool):
        fail_value = raw_fail
    else:
        raise ValueError("fail_below must be an integer")

    budget = _as_float(mapping.get("budget_seconds", DEFAULT_BUDGET_SECONDS), "budget_seconds")
    if budget <= 0:
        raise ValueError("budget_seconds must be > 0")

    raw_bonuses = mapping.get("bonuses")
    return AppConfig(
        profile=_as_choice(mapping.get("profile", "common"), set(PROFILES), "profile"),
        format=format_value,
        fail_below=fail_value,
        fix=_as_bool(mapping.get("fix", False), "fix"),
        budget_seconds=budget,
        strict_manifest=_as_bool(mapping.get("strict_manifest", False), "strict_manifest"),
        overrides=_as_table(mapping.get("overrides"), "overrides"),
        scoring=_parse_scoring_config(_as_table(mapping.get("scoring"), "scoring")),
        bonuses=None if raw_bonuses is None else _parse_bonuses(raw_bonuses),
        source=source,
    )


def _parse_scoring_config(value: dict[str, Any]) -> ScoringConfig:
    scoring = ScoringConfig(
        ceiling=_as_int(value.get("ceiling", SCORE_CEILING), "scoring.ceiling"),
        warning_weight=_as_int(
            value.get("warning_weight", WARNING_WEIGHT), "scoring.warning_weight"
        ),
        error_weight=_as_int(value.get("error_weight", ERROR_WEIGHT), "scoring.error_weight"),
    )
    try:
        scoring.to_weights()
    except ValueError as exc:
        raise ValueError(f"scoring: {exc}") from exc
    return scoring


def _parse_bonuses(value: Any) -> list[BonusRule]:
    items = _as_table_list(value, "bonuses")
    parsed: list[BonusRule] = []
    for item in items:
        parsed.append(
            BonusRule(
                dependency=_as_str(item.get("dependency"), "bonuses.dependency"),
                applies_to=_as_choice(
                    item.get("applies_to", "runtime"), set(BONUS_TARGETS), "bonuses.applies_to"
                ),
                weight=_as_int(item.get("weight", BONUS_WEIGHT), "bonuses.weight"),
            )
        )
    return parsed


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be a table/object")
    return value


def _as_table_list(value: Any, field_name: str) -> list[dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{field_name} must be a list of tables")
    output: list[dict[str, Any]] = []
    for item in value:
        if not isinstance(item, dict):
            raise ValueError(f"{field_name} must be a list of tables")
        output.append(item)
    return output


def _as_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    return value


def _as_choice(raw: Any, allowed: set[str], field_name: str) -> str:
    value = str(raw).lower()
    if value not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ValueError(f"{field_name} must be one of: {choices}")
    return value


def _as_int(raw: Any, field_name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"{field_name} must be an integer")
    return raw


def _as_bool(raw: Any, field_name: str) -> bool:
    if not isinstance(raw, bool):
        raise ValueError(f"{field_name} must be a boolean")
    return raw


def _as_float(raw: Any, field_name: str) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ValueError(f"{field_name} must be a number")
    return float(raw)
