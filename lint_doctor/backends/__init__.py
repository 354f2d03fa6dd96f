"""Analysis backends."""

from lint_doctor.backends.base import (
    AnalysisBackend,
    AnalysisToolError,
    RawMessage,
    RawResult,
    Severity,
)
from lint_doctor.backends.ruff import RuffBackend


def default_backend() -> AnalysisBackend:
    """Return the backend used when callers do not supply one."""
    return RuffBackend()


__all__ = [
    "AnalysisBackend",
    "AnalysisToolError",
    "RawMessage",
    "RawResult",
    "RuffBackend",
    "Severity",
    "default_backend",
]
