"""Error types raised by cargo-usage-rules."""

from __future__ import annotations

from pathlib import Path


class UsageRulesError(RuntimeError):
    """Base class for failures that abort a usage-rules run."""


class UsageRulesIOError(UsageRulesError):
    """Raised when a fragment, output file or link folder cannot be accessed."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class MetadataError(UsageRulesError):
    """Raised when cargo cannot describe the current project's dependencies."""


__all__ = ["MetadataError", "UsageRulesError", "UsageRulesIOError"]
