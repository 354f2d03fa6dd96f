"""Ruff subprocess backend."""

from __future__ import annotations

import json
import logging
import os
import re
import sys
from collections.abc import Mapping, Sequence
from subprocess import CalledProcessError, run
from typing import Any

from lint_doctor.backends.base import (
    CRITICAL_TAG,
    AnalysisToolError,
    RawMessage,
    RawResult,
    Severity,
)

logger = logging.getLogger(__name__)

DEFAULT_RUFF_COMMAND = (sys.executable, "-m", "ruff")
SYNTAX_ERROR_CODES = {None, "E999", "invalid-syntax"}
# Derived from the rules table, never taken from settings.
RESERVED_SETTINGS = {"lint.select", "lint.ignore", "lint.extend-select", "select", "ignore"}

_BARE_KEY_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class RuffBackend:
    """Runs ``ruff check`` with discovery disabled and the merged config inlined.

    In fix mode each file is piped through ``ruff check --fix-only`` so ruff
    applies its own safe fixes until they settle; the diagnostics returned for
    a changed file come from linting the fixed text, which is held in
    ``RawResult.output`` until ``output_fixes`` writes it.
    """

    name = "ruff"

    def __init__(self, command: Sequence[str] | None = None) -> None:
        self._command = tuple(command or DEFAULT_RUFF_COMMAND)

    def build_command(
        self,
        paths: Sequence[str],
        config: Mapping[str, Any],
        *,
        stdin_filename: str | None = None,
        fix_only: bool = False,
    ) -> list[str]:
        args = [*self._command, "check", "--isolated", "--no-cache", "--exit-zero"]
        if fix_only:
            args.append("--fix-only")
        else:
            args.extend(["--output-format", "json"])
        for key, literal in config_overrides(config):
            args.extend(["--config", f"{key} = {literal}"])
        if stdin_filename is not None:
            args.extend(["--stdin-filename", stdin_filename, "-"])
        else:
            args.append("--")
            args.extend(paths)
        return args

    def execute_on_files(
        self,
        paths: Sequence[str],
        config: Mapping[str, Any],
        *,
        fix: bool = False,
    ) -> list[RawResult]:
        if not paths:
            return []

        fixed: dict[str, str] = {}
        if fix:
            for path in paths:
                source = _read_source(path)
                output = self._run(
                    self.build_command([], config, stdin_filename=path, fix_only=True),
                    stdin=source,
                )
                if output != source:
                    logger.debug("ruff fixed %s", path)
                    fixed[path] = output

        grouped: dict[str, list[dict[str, Any]]] = {}
        unchanged = [path for path in paths if path not in fixed]
        if unchanged:
            for entry in _load_entries(self._run(self.build_command(unchanged, config))):
                grouped.setdefault(_path_key(str(entry.get("filename", ""))), []).append(entry)
        for path, output in fixed.items():
            command = self.build_command([], config, stdin_filename=path)
            grouped[_path_key(path)] = _load_entries(self._run(command, stdin=output))

        rules = config.get("rules", {})
        critical = list(config.get("critical", []))
        return [
            RawResult(
                file_path=path,
                messages=[
                    _to_raw_message(entry, rules, critical)
                    for entry in grouped.get(_path_key(path), [])
                ],
                output=fixed.get(path),
            )
            for path in paths
        ]

    def output_fixes(self, results: Sequence[RawResult]) -> list[str]:
        written: list[str] = []
        for result in results:
            if result.output is None:
                continue
            with open(result.file_path, "w", encoding="utf-8", newline="") as file_obj:
                file_obj.write(result.output)
            written.append(result.file_path)
        return written

    def _run(self, command: list[str], *, stdin: str | None = None) -> str:
        logger.debug("Running %s", " ".join(command))
        # Bytes in and out so CRLF sources come back unchanged.
        try:
            completed = run(
                command,
                check=True,
                capture_output=True,
                input=stdin.encode("utf-8") if stdin is not None else None,
            )
        except FileNotFoundError as exc:
            raise AnalysisToolError(f"ruff executable not found: {exc}") from exc
        except CalledProcessError as exc:
            stderr = (exc.stderr or b"").decode("utf-8", errors="replace").strip()
            raise AnalysisToolError(stderr or f"ruff exited with status {exc.returncode}") from exc
        return completed.stdout.decode("utf-8")


def config_overrides(config: Mapping[str, Any]) -> list[tuple[str, str]]:
    """Translate a merged rule config into ruff ``--config`` key/literal pairs."""
    rules = config.get("rules", {})
    select = sorted(selector for selector, severity in rules.items() if severity != "off")
    ignore = sorted(selector for selector, severity in rules.items() if severity == "off")

    pairs = [("lint.select", toml_literal(select))]
    if ignore:
        pairs.append(("lint.ignore", toml_literal(ignore)))
    for key, value in _flatten(config.get("settings", {}), prefix=""):
        if key in RESERVED_SETTINGS:
            raise ValueError(f"settings.{key} is derived from rules; set severities under rules")
        pairs.append((key, toml_literal(value)))
    return pairs


def resolve_severity(code: str, rules: Mapping[str, str]) -> Severity:
    """Severity of ``code`` from the longest matching rule selector."""
    best_length = -1
    best = "warn"
    for selector, severity in rules.items():
        if selector == "ALL":
            length = 0
        elif code.startswith(selector):
            length = len(selector)
        else:
            continue
        if length > best_length:
            best_length = length
            best = severity
    return Severity.ERROR if best == "error" else Severity.WARNING


def toml_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(toml_literal(item) for item in value) + "]"
    if isinstance(value, Mapping):
        inner = ", ".join(f"{_toml_key(key)} = {toml_literal(item)}" for key, item in value.items())
        return "{" + inner + "}"
    raise ValueError(f"Cannot express {type(value).__name__} as a TOML value")


def _flatten(value: Mapping[str, Any], *, prefix: str) -> list[tuple[str, Any]]:
    pairs: list[tuple[str, Any]] = []
    for key, item in value.items():
        dotted = f"{prefix}{_toml_key(str(key))}"
        if isinstance(item, Mapping):
            pairs.extend(_flatten(item, prefix=f"{dotted}."))
        else:
            pairs.append((dotted, item))
    return pairs


def _toml_key(key: str) -> str:
    return key if _BARE_KEY_RE.match(key) else json.dumps(key)


def _load_entries(stdout: str) -> list[dict[str, Any]]:
    text = stdout.strip()
    if not text:
        return []
    try:
        loaded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise AnalysisToolError(f"ruff produced unreadable JSON output: {exc}") from exc
    if not isinstance(loaded, list):
        raise AnalysisToolError("ruff JSON output must be a list of diagnostics")
    return [entry for entry in loaded if isinstance(entry, dict)]


def _to_raw_message(
    entry: dict[str, Any],
    rules: Mapping[str, str],
    critical: list[str],
) -> RawMessage:
    code = entry.get("code")
    message = str(entry.get("message", ""))
    location = entry.get("location") or {}
    line = int(location.get("row", 0))
    column = int(location.get("column", 0))

    if code in SYNTAX_ERROR_CODES:
        if not message.startswith("SyntaxError"):
            message = f"SyntaxError: {message}"
        return RawMessage(
            severity=Severity.ERROR,
            message=message,
            rule_id=code,
            line=line,
            column=column,
            fatal=True,
        )

    if any(code.startswith(selector) for selector in critical):
        message = f"{CRITICAL_TAG} {message}"
    return RawMessage(
        severity=resolve_severity(code, rules),
        message=message,
        rule_id=code,
        line=line,
        column=column,
    )


def _path_key(path: str) -> str:
    return os.path.normcase(os.path.realpath(path))


def _read_source(path: str) -> str:
    with open(path, encoding="utf-8", newline="") as file_obj:
        return file_obj.read()
