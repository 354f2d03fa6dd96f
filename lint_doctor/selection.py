"""Input file selection and manifest extraction."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from lint_doctor.ignore import IgnoreMatcher, normalize_relative_path
from lint_doctor.manifest import (
    ManifestInfo,
    ManifestParseError,
    is_manifest_path,
    merge_manifests,
    parse_manifest,
)

logger = logging.getLogger(__name__)

SUPPORTED_FILE_RE = re.compile(r"(\.py|\.pyi|(^|[/\\])pyproject\.toml)$")


@dataclass(frozen=True, slots=True)
class FileRecord:
    """A caller-supplied file path with its captured content."""

    path: str
    content: str


@dataclass(frozen=True, slots=True)
class Selection:
    """Absolute paths to analyze plus manifest data found along the way."""

    paths: list[str]
    manifest: ManifestInfo = field(default_factory=ManifestInfo)
    skipped: list[str] = field(default_factory=list)


def select_files(
    files: Sequence[FileRecord],
    root: Path,
    matcher: IgnoreMatcher,
    *,
    strict_manifest: bool = False,
    cwd: Path | None = None,
) -> Selection:
    """Filter ``files`` down to analyzable absolute paths.

    Manifests are parsed from the records' captured content. A manifest that
    fails to parse raises ``ManifestParseError`` when ``strict_manifest`` is set
    and is otherwise logged and left out.
    """
    base_dir = (cwd or Path.cwd()).resolve()
    root_dir = root if root.is_absolute() else base_dir / root

    manifests: list[ManifestInfo] = []
    paths: list[str] = []
    skipped: list[str] = []
    seen: set[str] = set()

    for record in files:
        if is_manifest_path(record.path):
            try:
                manifests.append(parse_manifest(record.path, record.content))
            except ManifestParseError as exc:
                if strict_manifest:
                    raise
                logger.warning("Skipping manifest for bonus scoring: %s", exc)

        absolute = to_absolute_path(record.path, cwd=base_dir)
        if not SUPPORTED_FILE_RE.search(record.path):
            skipped.append(record.path)
            continue
        if matcher.ignores(relative_to_root(absolute, root_dir)):
            logger.debug("Ignored by pattern: %s", record.path)
            skipped.append(record.path)
            continue
        if absolute in seen:
            continue
        seen.add(absolute)
        paths.append(absolute)

    return Selection(paths=paths, manifest=merge_manifests(manifests), skipped=skipped)


def to_absolute_path(path: str, *, cwd: Path) -> str:
    """Resolve relative paths against ``cwd``; absolute paths are only normalized."""
    if os.path.isabs(path):
        return os.path.normpath(path)
    return os.path.normpath(os.path.join(cwd, path))


def relative_to_root(absolute: str, root: Path) -> str:
    relative = os.path.relpath(absolute, os.path.normpath(root))
    return normalize_relative_path(relative.replace(os.sep, "/"))
