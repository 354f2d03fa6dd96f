"""Analysis backend protocol and raw result model."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Protocol

CRITICAL_TAG = "[Critical]"


class AnalysisToolError(RuntimeError):
    """Raised when the external analysis tool cannot produce results."""


class Severity(IntEnum):
    """Diagnostic severity, numbered like common linter levels."""

    WARNING = 1
    ERROR = 2

    @property
    def label(self) -> str:
        return "error" if self is Severity.ERROR else "warning"


@dataclass(slots=True)
class RawMessage:
    """A single finding as reported by the backend."""

    severity: Severity
    message: str
    rule_id: str | None = None
    line: int = 0
    column: int = 0
    fatal: bool = False


@dataclass(slots=True)
class RawResult:
    """Backend findings for one file.

    ``output`` holds the fixed source when fixes were computed and is written
    back by ``AnalysisBackend.output_fixes``.
    """

    file_path: str
    messages: list[RawMessage] = field(default_factory=list)
    output: str | None = None


class AnalysisBackend(Protocol):
    """Capability to lint a list of files under an explicit configuration."""

    name: str

    def execute_on_files(
        self,
        paths: Sequence[str],
        config: Mapping[str, Any],
        *,
        fix: bool = False,
    ) -> list[RawResult]:
        """Analyze ``paths`` and return one result per path."""

    def output_fixes(self, results: Sequence[RawResult]) -> list[str]:
        """Write fixed sources to disk and return the paths written."""
