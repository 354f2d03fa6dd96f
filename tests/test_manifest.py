"""Manifest parsing tests."""

from __future__ import annotations

import json

import pytest

from lint_doctor.manifest import (
    ManifestInfo,
    ManifestParseError,
    is_manifest_path,
    merge_manifests,
    parse_manifest,
)


def test_pyproject_collects_runtime_and_dev_dependencies() -> None:
    content = "\n".join(
        [
            "[project]",
            'name = "demo"',
            'dependencies = ["Pydantic>=2", "requests[socks]; python_version > \'3.8\'"]',
            "",
            "[project.optional-dependencies]",
            'test = ["pytest>=7"]',
            "",
            "[dependency-groups]",
            'lint = ["mypy", {include-group = "test"}]',
            'test = ["pytest-cov"]',
            "",
            "[tool.poetry.dependencies]",
            'python = "^3.11"',
            'Django = "*"',
            "",
            "[tool.poetry.group.dev.dependencies]",
            'black = "*"',
        ]
    )

    manifest = parse_manifest("repo/pyproject.toml", content)

    assert manifest.dependencies == frozenset({"pydantic", "requests", "django"})
    assert manifest.dev_dependencies == frozenset({"pytest", "mypy", "pytest-cov", "black"})
    assert manifest.has_dependency("pydantic")
    assert manifest.has_dev_dependency("pytest_cov")
    assert not manifest.has_dependency("mypy")


def test_only_tooling_extras_count_as_dev_dependencies() -> None:
    content = "\n".join(
        [
            "[project]",
            'name = "demo"',
            'dependencies = ["requests"]',
            "",
            "[project.optional-dependencies]",
            'postgres = ["psycopg"]',
            'Typing = ["mypy"]',
            'test = ["pytest"]',
        ]
    )

    manifest = parse_manifest("pyproject.toml", content)

    assert manifest.dependencies == frozenset({"requests"})
    assert manifest.dev_dependencies == frozenset({"mypy", "pytest"})
    assert not manifest.has_dependency("psycopg")
    assert not manifest.has_dev_dependency("psycopg")


def test_pyproject_without_dependency_tables_is_empty() -> None:
    manifest = parse_manifest("pyproject.toml", '[tool.ruff]\nline-length = 100\n')

    assert manifest.is_empty()


def test_package_json_dependencies() -> None:
    content = json.dumps(
        {
            "name": "web",
            "dependencies": {"react": "^18.0.0"},
            "devDependencies": {"typescript": "^5.0.0"},
        }
    )

    manifest = parse_manifest("web/package.json", content)

    assert manifest.to_dict() == {"dependencies": ["react"], "dev_dependencies": ["typescript"]}


@pytest.mark.parametrize(
    ("path", "content", "message"),
    [
        ("pyproject.toml", "[project\n", "Invalid TOML"),
        ("pyproject.toml", '[project]\ndependencies = "pydantic"\n', "must be a list"),
        ("pyproject.toml", '[project]\ndependencies = ["bad req!!"]\n', "invalid requirement"),
        ("package.json", "{not json", "Invalid JSON"),
        ("package.json", "[]", "top level must be an object"),
        ("package.json", '{"dependencies": ["react"]}', "must be a table/object"),
        ("setup.cfg", "", "not a recognized manifest"),
    ],
)
def test_malformed_manifests_raise(path: str, content: str, message: str) -> None:
    with pytest.raises(ManifestParseError, match=message):
        parse_manifest(path, content)


def test_manifest_parse_error_is_a_value_error() -> None:
    assert issubclass(ManifestParseError, ValueError)


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("pyproject.toml", True),
        ("/abs/repo/package.json", True),
        ("sub\\pyproject.toml", True),
        ("pyproject.toml.bak", False),
        ("src/module.py", False),
    ],
)
def test_is_manifest_path(path: str, expected: bool) -> None:
    assert is_manifest_path(path) is expected


def test_merge_manifests_unions_all_entries() -> None:
    merged = merge_manifests(
        [
            ManifestInfo(dependencies=frozenset({"pydantic"})),
            ManifestInfo(dev_dependencies=frozenset({"mypy"})),
            ManifestInfo(dependencies=frozenset({"httpx"})),
        ]
    )

    assert merged.dependencies == frozenset({"pydantic", "httpx"})
    assert merged.dev_dependencies == frozenset({"mypy"})
