"""Gitignore-style path matching for the analysis root."""

from __future__ import annotations

import posixpath
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

IGNORE_FILENAME = ".lintdoctorignore"


@dataclass(frozen=True, slots=True)
class IgnoreRule:
    """A single compiled ignore pattern."""

    pattern: str
    regex: re.Pattern[str]
    negated: bool
    directory_only: bool


class IgnoreMatcher:
    """Tests root-relative paths against compiled gitignore patterns.

    Later rules override earlier ones, ``!`` re-includes a path, and a path whose
    parent directory is ignored stays ignored, as git does.
    """

    def __init__(self, rules: Iterable[IgnoreRule] = ()) -> None:
        self._rules = tuple(rules)

    @classmethod
    def compile(cls, patterns: Iterable[str]) -> IgnoreMatcher:
        rules: list[IgnoreRule] = []
        for raw in patterns:
            rule = _parse_pattern(raw)
            if rule is not None:
                rules.append(rule)
        return cls(rules)

    @property
    def rules(self) -> tuple[IgnoreRule, ...]:
        return self._rules

    def ignores(self, relative_path: str) -> bool:
        """Return whether ``relative_path`` is excluded from analysis."""
        if not self._rules:
            return False
        is_dir = relative_path.replace("\\", "/").endswith("/")
        normalized = normalize_relative_path(relative_path)
        if not normalized or normalized == ".." or normalized.startswith("../"):
            return False

        parts = normalized.split("/")
        for index in range(1, len(parts)):
            if self._decide("/".join(parts[:index]), is_dir=True):
                return True
        return self._decide(normalized, is_dir=is_dir)

    def _decide(self, path: str, *, is_dir: bool) -> bool:
        ignored = False
        for rule in self._rules:
            if rule.directory_only and not is_dir:
                continue
            if rule.regex.match(path):
                ignored = not rule.negated
        return ignored


def load_ignore_file(root: Path) -> IgnoreMatcher:
    """Compile the ignore file at ``root``; a missing file ignores nothing."""
    ignore_path = root / IGNORE_FILENAME
    if not ignore_path.is_file():
        return IgnoreMatcher()
    return IgnoreMatcher.compile(ignore_path.read_text(encoding="utf-8").splitlines())


def normalize_relative_path(path: str) -> str:
    """Normalize separators and ``./`` prefixes of a root-relative path."""
    cleaned = path.replace("\\", "/").lstrip("/")
    if not cleaned:
        return ""
    normalized = posixpath.normpath(cleaned)
    return "" if normalized == "." else normalized


def _parse_pattern(raw: str) -> IgnoreRule | None:
    line = _trim_trailing_spaces(raw.rstrip("\r\n"))
    if not line or line.startswith("#"):
        return None

    negated = False
    if line.startswith("!"):
        negated = True
        line = line[1:]
    elif line.startswith(("\\!", "\\#")):
        line = line[1:]

    directory_only = line.endswith("/")
    body = line.rstrip("/")
    anchored = "/" in body
    body = body.lstrip("/")
    if not body:
        return None

    prefix = "" if anchored else "(?:.*/)?"
    regex = re.compile(f"^{prefix}{_translate_glob(body)}$")
    return IgnoreRule(
        pattern=raw.strip(),
        regex=regex,
        negated=negated,
        directory_only=directory_only,
    )


def _trim_trailing_spaces(line: str) -> str:
    trimmed = line.rstrip(" ")
    if trimmed.endswith("\\") and len(trimmed) < len(line):
        return trimmed + " "
    return trimmed


def _translate_glob(body: str) -> str:
    parts: list[str] = []
    index = 0
    length = len(body)
    while index < length:
        char = body[index]
        if char == "*":
            if body.startswith("**", index):
                after = index + 2
                starts_segment = index == 0 or body[index - 1] == "/"
                ends_segment = after == length or body[after] == "/"
                if starts_segment and ends_segment:
                    if after == length:
                        parts.append(".*")
                        index = after
                    else:
                        parts.append("(?:.*/)?")
                        index = after + 1
                    continue
                parts.append("[^/]*")
                index = after
                continue
            parts.append("[^/]*")
            index += 1
        elif char == "?":
            parts.append("[^/]")
            index += 1
        elif char == "[":
            end = _class_end(body, index)
            if end < 0:
                parts.append(re.escape(char))
                index += 1
                continue
            content = body[index + 1 : end].replace("\\", "\\\\")
            if content.startswith(("!", "^")):
                content = "^" + content[1:]
            parts.append(f"[{content}]")
            index = end + 1
        elif char == "\\" and index + 1 < length:
            parts.append(re.escape(body[index + 1]))
            index += 2
        else:
            parts.append(re.escape(char))
            index += 1
    return "".join(parts)


def _class_end(body: str, start: int) -> int:
    index = start + 1
    if index < len(body) and body[index] in "!^":
        index += 1
    if index < len(body) and body[index] == "]":
        index += 1
    return body.find("]", index)
