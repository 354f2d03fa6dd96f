"""Backend invocation and diagnostic normalization."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from lint_doctor.backends.base import (
    CRITICAL_TAG,
    AnalysisBackend,
    RawMessage,
    RawResult,
    Severity,
)
from lint_doctor.timer import Timer

logger = logging.getLogger(__name__)

PARSE_ERROR_PREFIXES = ("Parsing error:", "SyntaxError:")
MISSING_RULE_PREFIX = "Definition for rule"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A retained finding for one file."""

    file_path: str
    severity: Severity
    rule_id: str | None
    message: str
    line: int = 0
    column: int = 0

    @property
    def is_critical(self) -> bool:
        return self.message.startswith(CRITICAL_TAG)

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_path": self.file_path,
            "severity": self.severity.label,
            "rule_id": self.rule_id,
            "message": self.message,
            "line": self.line,
            "column": self.column,
            "is_critical": self.is_critical,
        }


@dataclass(slots=True)
class FileReport:
    """Diagnostics and counts for one analyzed file."""

    file_path: str
    diagnostics: list[Diagnostic] = field(default_factory=list)
    warning_count: int = 0
    error_count: int = 0
    fixed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_path": self.file_path,
            "diagnostics": [item.to_dict() for item in self.diagnostics],
            "warning_count": self.warning_count,
            "error_count": self.error_count,
            "fixed": self.fixed,
        }


def run_diagnostics(
    backend: AnalysisBackend,
    paths: Sequence[str],
    config: Mapping[str, Any],
    *,
    fix: bool = False,
    timer: Timer | None = None,
) -> list[FileReport]:
    """Run the backend once over ``paths`` and normalize its results.

    With ``fix`` set, fixed sources are written back before normalization so
    the returned reports describe the post-fix files.
    """
    if not paths:
        return []

    results = backend.execute_on_files(list(paths), config, fix=fix)
    if fix:
        written = backend.output_fixes(results)
        logger.debug("Wrote fixes to %d file(s)", len(written))
    if timer is not None:
        timer.check_timeout()

    return [normalize_result(result) for result in results]


def normalize_result(result: RawResult) -> FileReport:
    """Drop tool-internal errors and count what remains."""
    diagnostics: list[Diagnostic] = []
    for message in result.messages:
        if _is_tool_noise(message):
            logger.debug("Dropping %s: %s", result.file_path, message.message)
            continue
        diagnostics.append(
            Diagnostic(
                file_path=result.file_path,
                severity=message.severity,
                rule_id=message.rule_id,
                message=message.message,
                line=message.line,
                column=message.column,
            )
        )

    diagnostics.sort(key=lambda item: (item.line, item.column, item.rule_id or "", item.message))
    return FileReport(
        file_path=result.file_path,
        diagnostics=diagnostics,
        warning_count=sum(1 for item in diagnostics if item.severity is Severity.WARNING),
        error_count=sum(1 for item in diagnostics if item.severity is Severity.ERROR),
        fixed=result.output is not None,
    )


def _is_tool_noise(message: RawMessage) -> bool:
    if message.severity is not Severity.ERROR:
        return False
    if message.fatal and message.message.startswith(PARSE_ERROR_PREFIXES):
        return True
    return message.message.startswith(MISSING_RULE_PREFIX)
