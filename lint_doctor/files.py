"""Collecting file records from a project directory."""

from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import Path
from subprocess import CalledProcessError, run

from lint_doctor.manifest import is_manifest_path
from lint_doctor.selection import SUPPORTED_FILE_RE, FileRecord

SKIPPED_DIRS = {".git", ".hg", ".svn", ".venv", "venv", "__pycache__", "node_modules", ".tox"}


class GitError(RuntimeError):
    """Raised when git command execution fails."""


def collect_file_records(root: Path, paths: Sequence[Path] | None = None) -> list[FileRecord]:
    """Read candidate files under ``root`` into records.

    Explicit ``paths`` are taken as given. Otherwise tracked files are listed
    with git, falling back to a directory walk outside a repository. Only files
    the engine can analyze or mine for manifest data are read.
    """
    root = root.resolve()
    if paths:
        candidates = [path if path.is_absolute() else root / path for path in paths]
    else:
        try:
            candidates = [root / name for name in list_tracked_files(root)]
        except GitError:
            candidates = walk_files(root)

    records: list[FileRecord] = []
    for candidate in candidates:
        text_path = str(candidate)
        if not (SUPPORTED_FILE_RE.search(text_path) or is_manifest_path(text_path)):
            continue
        if not candidate.is_file():
            continue
        content = candidate.read_text(encoding="utf-8", errors="replace")
        records.append(FileRecord(path=text_path, content=content))
    return records


def list_tracked_files(repo: Path) -> list[str]:
    """Return tracked and untracked-but-not-ignored files, relative to ``repo``."""
    output = _run_git(repo, ["ls-files", "--cached", "--others", "--exclude-standard", "-z"])
    return sorted({name for name in output.split("\0") if name})


def walk_files(root: Path) -> list[Path]:
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in SKIPPED_DIRS)
        for filename in sorted(filenames):
            found.append(Path(dirpath) / filename)
    return found


def _run_git(repo: Path, args: list[str]) -> str:
    try:
        completed = run(
            ["git", *args],
            cwd=repo,
            check=True,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise GitError("git executable not found") from exc
    except CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise GitError(stderr or f"git {' '.join(args)} failed") from exc

    return completed.stdout
