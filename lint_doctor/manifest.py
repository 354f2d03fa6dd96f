"""Project manifest parsing for bonus scoring."""

from __future__ import annotations

import json
import tomllib
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any

from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

PYPROJECT_FILENAME = "pyproject.toml"
PACKAGE_JSON_FILENAME = "package.json"
MANIFEST_FILENAMES = (PYPROJECT_FILENAME, PACKAGE_JSON_FILENAME)

# Extras under these names hold tooling; any other extra is an optional runtime feature.
DEV_EXTRA_GROUPS = frozenset(
    {
        "check",
        "dev",
        "develop",
        "development",
        "docs",
        "lint",
        "qa",
        "test",
        "testing",
        "tests",
        "types",
        "typing",
    }
)


class ManifestParseError(ValueError):
    """Raised when a manifest's captured content cannot be parsed."""


@dataclass(frozen=True, slots=True)
class ManifestInfo:
    """Declared dependency names, canonicalized."""

    dependencies: frozenset[str] = field(default_factory=frozenset)
    dev_dependencies: frozenset[str] = field(default_factory=frozenset)

    def has_dependency(self, name: str) -> bool:
        return canonicalize_name(name) in self.dependencies

    def has_dev_dependency(self, name: str) -> bool:
        return canonicalize_name(name) in self.dev_dependencies

    def union(self, other: ManifestInfo) -> ManifestInfo:
        return ManifestInfo(
            dependencies=self.dependencies | other.dependencies,
            dev_dependencies=self.dev_dependencies | other.dev_dependencies,
        )

    def is_empty(self) -> bool:
        return not (self.dependencies or self.dev_dependencies)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "dependencies": sorted(self.dependencies),
            "dev_dependencies": sorted(self.dev_dependencies),
        }


def is_manifest_path(path: str) -> bool:
    return PurePath(path.replace("\\", "/")).name in MANIFEST_FILENAMES


def parse_manifest(path: str, content: str) -> ManifestInfo:
    """Parse a ``pyproject.toml`` or ``package.json`` body into ``ManifestInfo``."""
    name = PurePath(path.replace("\\", "/")).name
    if name == PYPROJECT_FILENAME:
        return _parse_pyproject(path, content)
    if name == PACKAGE_JSON_FILENAME:
        return _parse_package_json(path, content)
    raise ManifestParseError(f"{path} is not a recognized manifest")


def _parse_pyproject(path: str, content: str) -> ManifestInfo:
    """Collect runtime and dev dependency names from a pyproject body.

    PEP 735 dependency groups and Poetry groups all count as dev. Optional
    dependencies count as dev only for the extras named in ``DEV_EXTRA_GROUPS``;
    other extras are neither runtime nor dev.
    """
    try:
        loaded = tomllib.loads(content)
    except tomllib.TOMLDecodeError as exc:
        raise ManifestParseError(f"Invalid TOML in {path}: {exc}") from exc

    runtime: set[str] = set()
    dev: set[str] = set()

    project = _as_table(loaded.get("project"), f"{path}: project")
    runtime.update(_requirement_names(project.get("dependencies"), f"{path}: project.dependencies"))
    optional = _as_table(
        project.get("optional-dependencies"), f"{path}: project.optional-dependencies"
    )
    for group, requirements in optional.items():
        if canonicalize_name(group) not in DEV_EXTRA_GROUPS:
            continue
        dev.update(
            _requirement_names(requirements, f"{path}: project.optional-dependencies.{group}")
        )

    groups = _as_table(loaded.get("dependency-groups"), f"{path}: dependency-groups")
    for group, entries in groups.items():
        if not isinstance(entries, list):
            raise ManifestParseError(f"{path}: dependency-groups.{group} must be a list")
        # include-group tables reference other groups already being walked
        requirements = [entry for entry in entries if not isinstance(entry, dict)]
        dev.update(_requirement_names(requirements, f"{path}: dependency-groups.{group}"))

    tool = _as_table(loaded.get("tool"), f"{path}: tool")
    poetry = _as_table(tool.get("poetry"), f"{path}: tool.poetry")
    runtime.update(
        _table_names(poetry.get("dependencies"), f"{path}: tool.poetry.dependencies")
    )
    dev.update(
        _table_names(poetry.get("dev-dependencies"), f"{path}: tool.poetry.dev-dependencies")
    )
    poetry_groups = _as_table(poetry.get("group"), f"{path}: tool.poetry.group")
    for group, group_table in poetry_groups.items():
        group_mapping = _as_table(group_table, f"{path}: tool.poetry.group.{group}")
        dev.update(
            _table_names(
                group_mapping.get("dependencies"),
                f"{path}: tool.poetry.group.{group}.dependencies",
            )
        )

    runtime.discard("python")
    dev.discard("python")
    return ManifestInfo(dependencies=frozenset(runtime), dev_dependencies=frozenset(dev))


def _parse_package_json(path: str, content: str) -> ManifestInfo:
    try:
        loaded = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ManifestParseError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        raise ManifestParseError(f"{path}: top level must be an object")
    return ManifestInfo(
        dependencies=frozenset(_table_names(loaded.get("dependencies"), f"{path}: dependencies")),
        dev_dependencies=frozenset(
            _table_names(loaded.get("devDependencies"), f"{path}: devDependencies")
        ),
    )


def _requirement_names(value: Any, field_name: str) -> set[str]:
    if value is None:
        return set()
    if not isinstance(value, list):
        raise ManifestParseError(f"{field_name} must be a list of requirement strings")
    names: set[str] = set()
    for item in value:
        if not isinstance(item, str):
            raise ManifestParseError(f"{field_name} must be a list of requirement strings")
        try:
            names.add(canonicalize_name(Requirement(item).name))
        except InvalidRequirement as exc:
            raise ManifestParseError(f"{field_name}: invalid requirement {item!r}: {exc}") from exc
    return names


def _table_names(value: Any, field_name: str) -> set[str]:
    return {canonicalize_name(key) for key in _as_table(value, field_name)}


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ManifestParseError(f"{field_name} must be a table/object")
    return value


def merge_manifests(manifests: Iterable[ManifestInfo]) -> ManifestInfo:
    merged = ManifestInfo()
    for manifest in manifests:
        merged = merged.union(manifest)
    return merged
