"""Managed marker utilities for the generated usage-rules section."""

from __future__ import annotations

from pathlib import Path

from .errors import UsageRulesIOError

START_MARKER = "<!-- cargo-usage-rules-start -->"
END_MARKER = "<!-- cargo-usage-rules-end -->"


class MarkerManager:
    """Wraps and strips the tool-owned section of an output document.

    Matching is plain substring search on the first occurrence of each marker;
    anything outside the marker pair belongs to the user.
    """

    start = START_MARKER
    end = END_MARKER

    def wrap(self, body: str) -> str:
        """Wrap generated content with the start/end markers."""
        return f"{self.start}\n\n{body}\n{self.end}\n\n"

    def strip(self, markdown: str) -> str:
        """Return ``markdown`` without its managed section, trimmed.

        A missing marker, or an end marker ahead of the start marker, leaves
        the whole document in place.
        """
        start_index = markdown.find(self.start)
        end_index = markdown.find(self.end)
        if start_index == -1 or end_index == -1 or end_index < start_index:
            return markdown.strip()

        before = markdown[:start_index]
        after = markdown[end_index + len(self.end) :]
        return f"{before.strip()}{after.strip()}".strip()


def extract_preamble(output_path: Path, manager: MarkerManager | None = None) -> str:
    """Return user content from an existing output file.

    Must be called before the output file is rewritten. A missing file yields
    an empty preamble; an unreadable one raises :class:`UsageRulesIOError`.
    """
    path = Path(output_path)
    if not path.exists():
        return ""
    try:
        with path.open(encoding="utf-8", newline="") as handle:
            existing = handle.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise UsageRulesIOError(
            f"Failed to read existing output file {path}: {exc}", path
        ) from exc
    return (manager or MarkerManager()).strip(existing)


__all__ = ["END_MARKER", "START_MARKER", "MarkerManager", "extract_preamble"]
