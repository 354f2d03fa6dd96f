"""File selection tests."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from lint_doctor.ignore import IgnoreMatcher
from lint_doctor.manifest import ManifestParseError
from lint_doctor.selection import FileRecord, relative_to_root, select_files, to_absolute_path


def test_select_files_keeps_supported_paths_as_absolute(tmp_path: Path) -> None:
    files = [
        FileRecord(path="src/app.py", content="x = 1\n"),
        FileRecord(path="src/types.pyi", content="x: int\n"),
        FileRecord(path="README.md", content="# demo\n"),
        FileRecord(path="setup.cfg", content=""),
    ]

    selection = select_files(files, tmp_path, IgnoreMatcher(), cwd=tmp_path)

    assert selection.paths == [
        os.path.join(str(tmp_path), "src", "app.py"),
        os.path.join(str(tmp_path), "src", "types.pyi"),
    ]
    assert selection.skipped == ["README.md", "setup.cfg"]
    assert all(os.path.isabs(path) for path in selection.paths)


def test_select_files_matches_ignore_patterns_relative_to_root(tmp_path: Path) -> None:
    root = tmp_path / "project"
    files = [
        FileRecord(path=str(root / "build" / "gen.py"), content=""),
        FileRecord(path=str(root / "src" / "build_tools.py"), content=""),
        FileRecord(path=str(root / "src" / "app.py"), content=""),
    ]
    matcher = IgnoreMatcher.compile(["build/", "/src/app.py"])

    selection = select_files(files, root, matcher, cwd=tmp_path)

    assert selection.paths == [str(root / "src" / "build_tools.py")]
    assert len(selection.skipped) == 2


def test_select_files_resolves_relative_paths_against_cwd(tmp_path: Path) -> None:
    root = tmp_path / "project"
    cwd = root / "src"
    files = [
        FileRecord(path="pkg/mod.py", content=""),
        FileRecord(path="../tests/t.py", content=""),
    ]
    matcher = IgnoreMatcher.compile(["/src/pkg/"])

    selection = select_files(files, root, matcher, cwd=cwd)

    assert selection.paths == [str(root / "tests" / "t.py")]


def test_select_files_never_ignores_paths_outside_root(tmp_path: Path) -> None:
    root = tmp_path / "project"
    outside = tmp_path / "elsewhere" / "tool.py"

    selection = select_files(
        [FileRecord(path=str(outside), content="")],
        root,
        IgnoreMatcher.compile(["*.py"]),
        cwd=tmp_path,
    )

    assert selection.paths == [str(outside)]


def test_select_files_deduplicates_paths(tmp_path: Path) -> None:
    files = [
        FileRecord(path="app.py", content=""),
        FileRecord(path="./app.py", content=""),
        FileRecord(path=str(tmp_path / "app.py"), content=""),
    ]

    selection = select_files(files, tmp_path, IgnoreMatcher(), cwd=tmp_path)

    assert selection.paths == [str(tmp_path / "app.py")]


def test_select_files_collects_manifests_even_when_ignored(tmp_path: Path) -> None:
    files = [
        FileRecord(
            path="pyproject.toml",
            content='[project]\nname = "demo"\ndependencies = ["pydantic"]\n',
        ),
        FileRecord(path="web/package.json", content='{"devDependencies": {"mypy": "1"}}'),
    ]
    matcher = IgnoreMatcher.compile(["pyproject.toml"])

    selection = select_files(files, tmp_path, matcher, cwd=tmp_path)

    assert selection.paths == []
    assert selection.manifest.has_dependency("pydantic")
    assert selection.manifest.has_dev_dependency("mypy")


def test_pyproject_is_selected_for_analysis(tmp_path: Path) -> None:
    files = [FileRecord(path="pyproject.toml", content='[project]\nname = "demo"\n')]

    selection = select_files(files, tmp_path, IgnoreMatcher(), cwd=tmp_path)

    assert selection.paths == [str(tmp_path / "pyproject.toml")]


def test_broken_manifest_is_logged_and_skipped(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    files = [
        FileRecord(path="pyproject.toml", content="[project\n"),
        FileRecord(path="app.py", content=""),
    ]

    with caplog.at_level(logging.WARNING, logger="lint_doctor.selection"):
        selection = select_files(files, tmp_path, IgnoreMatcher(), cwd=tmp_path)

    assert selection.manifest.is_empty()
    assert str(tmp_path / "app.py") in selection.paths
    assert "Skipping manifest for bonus scoring" in caplog.text


def test_broken_manifest_raises_in_strict_mode(tmp_path: Path) -> None:
    files = [FileRecord(path="package.json", content="{oops")]

    with pytest.raises(ManifestParseError, match="Invalid JSON"):
        select_files(files, tmp_path, IgnoreMatcher(), strict_manifest=True, cwd=tmp_path)


def test_path_helpers(tmp_path: Path) -> None:
    absolute = to_absolute_path("a/../b/c.py", cwd=tmp_path)

    assert absolute == str(tmp_path / "b" / "c.py")
    assert relative_to_root(absolute, tmp_path) == "b/c.py"
    assert relative_to_root(str(tmp_path.parent / "x.py"), tmp_path) == "../x.py"
