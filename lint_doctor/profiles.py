"""Baseline rule profiles and configuration merging."""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from lint_doctor.scoring import DEFAULT_BONUSES, BonusRule

SEVERITY_NAMES = ("error", "warn", "off")


class UnknownProfileError(ValueError):
    """Raised when a profile key does not name a known baseline."""


@dataclass(frozen=True, slots=True)
class RuleProfile:
    """Named baseline rule configuration."""

    key: str
    description: str
    config: Mapping[str, Any]
    append_keys: tuple[str, ...] = ()
    bonuses: tuple[BonusRule, ...] = DEFAULT_BONUSES


@dataclass(frozen=True, slots=True)
class ProfileInfo:
    """Profile metadata for listing."""

    key: str
    description: str
    rule_count: int
    critical: tuple[str, ...] = field(default_factory=tuple)


_COMMON_RULES: dict[str, str] = {
    "F": "error",
    "E4": "warn",
    "E7": "warn",
    "E9": "error",
    "W6": "warn",
    "B": "warn",
    "UP": "warn",
    "I": "warn",
}

PROFILES: dict[str, RuleProfile] = {
    "common": RuleProfile(
        key="common",
        description="Pyflakes errors plus bugbear, pyupgrade and import-order warnings.",
        config={
            "rules": dict(_COMMON_RULES),
            "critical": ["F821", "F811", "B006"],
            "settings": {"line-length": 100},
        },
    ),
    "strict": RuleProfile(
        key="strict",
        description="Common rules with style, naming, simplification and docstring checks.",
        config={
            "rules": {
                **_COMMON_RULES,
                "B": "error",
                "E": "warn",
                "W": "warn",
                "N": "warn",
                "SIM": "warn",
                "C4": "warn",
                "D": "warn",
                "D1": "off",
                "RUF": "warn",
            },
            "critical": ["F821", "F811", "B006", "B008", "E722"],
            "settings": {
                "line-length": 100,
                "lint": {"pydocstyle": {"convention": "google"}},
            },
        },
        append_keys=("critical",),
    ),
    "security": RuleProfile(
        key="security",
        description="Common rules with flake8-bandit security checks as errors.",
        config={
            "rules": {**_COMMON_RULES, "S": "error", "S101": "off"},
            "critical": ["F821", "S102", "S307", "S602", "S608"],
            "settings": {"line-length": 100},
        },
        append_keys=("critical",),
    ),
}


def get_profile(key: str) -> RuleProfile:
    """Return the baseline profile named by ``key``."""
    profile = PROFILES.get(key.lower())
    if profile is None:
        choices = ", ".join(sorted(PROFILES))
        raise UnknownProfileError(f"Unknown profile '{key}'. Expected one of: {choices}")
    return profile


def get_profile_config(key: str) -> dict[str, Any]:
    return copy.deepcopy(dict(get_profile(key).config))


def merge_config(profile_key: str, overrides: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Deep-merge caller overrides onto the named baseline."""
    profile = get_profile(profile_key)
    baseline = copy.deepcopy(dict(profile.config))
    merged = deep_merge(baseline, overrides or {}, append_keys=profile.append_keys)
    validate_rule_config(merged)
    return merged


def deep_merge(
    base: Mapping[str, Any],
    override: Mapping[str, Any],
    *,
    append_keys: Iterable[str] = (),
) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; override wins on key collision.

    Nested mappings merge key by key. Lists are replaced wholesale unless their
    dotted key path is listed in ``append_keys``, in which case items are
    concatenated with duplicates dropped.
    """
    return _merge(base, override, prefix="", append_keys=frozenset(append_keys))


def validate_rule_config(config: Mapping[str, Any]) -> None:
    """Reject rule tables with unknown severities or malformed sections."""
    rules = config.get("rules", {})
    if not isinstance(rules, Mapping):
        raise ValueError("rules must be a table/object")
    for selector, severity in rules.items():
        if severity not in SEVERITY_NAMES:
            choices = ", ".join(SEVERITY_NAMES)
            raise ValueError(f"rules.{selector} must be one of: {choices}")
    critical = config.get("critical", [])
    if not isinstance(critical, list) or not all(isinstance(item, str) for item in critical):
        raise ValueError("critical must be a list of rule selectors")
    if not isinstance(config.get("settings", {}), Mapping):
        raise ValueError("settings must be a table/object")


def list_profile_info() -> list[ProfileInfo]:
    info: list[ProfileInfo] = []
    for key in sorted(PROFILES):
        profile = PROFILES[key]
        info.append(
            ProfileInfo(
                key=profile.key,
                description=profile.description,
                rule_count=len(profile.config.get("rules", {})),
                critical=tuple(profile.config.get("critical", [])),
            )
        )
    return info


def _merge(
    base: Mapping[str, Any],
    override: Mapping[str, Any],
    *,
    prefix: str,
    append_keys: frozenset[str],
) -> dict[str, Any]:
    merged: dict[str, Any] = {key: copy.deepcopy(value) for key, value in base.items()}
    for key, value in override.items():
        path = f"{prefix}{key}"
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = _merge(current, value, prefix=f"{path}.", append_keys=append_keys)
        elif path in append_keys and isinstance(current, list) and isinstance(value, list):
            merged[key] = _dedupe([*current, *copy.deepcopy(value)])
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _dedupe(items: list[Any]) -> list[Any]:
    output: list[Any] = []
    for item in items:
        if item in output:
            continue
        output.append(item)
    return output
