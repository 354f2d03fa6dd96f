"""lint-doctor: deterministic code-quality scoring over linter diagnostics."""

__version__ = "0.1.0"
