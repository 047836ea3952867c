"""Discovery of usage-rules files inside dependency source trees."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, List, Sequence

from .errors import UsageRulesIOError
from .logging import get_logger
from .models import Dependency, UsageRuleSubFile, UsageRules

MAIN_FILE_NAME = "usage-rules.md"
SUB_DIR_NAME = "usage_rules"
_SUB_FILE_SUFFIX = ".md"

_LOGGER = get_logger("scanner")


def _iter_markdown_files(root: Path) -> Iterator[Path]:
    # Sorted walk keeps sub-file order stable across filesystems.
    for dirpath, dirnames, filenames in os.walk(root, followlinks=True):
        dirnames.sort()
        current_dir = Path(dirpath)
        for filename in sorted(filenames):
            path = current_dir / filename
            if path.suffix == _SUB_FILE_SUFFIX and path.is_file():
                yield path


def _sub_file_name(path: Path, sub_dir: Path) -> str:
    relative = path.relative_to(sub_dir).as_posix()
    return relative[: -len(_SUB_FILE_SUFFIX)]


def scan_dependency(dependency: Dependency) -> UsageRules | None:
    """Return the usage rules of one dependency, or None when it has no main file."""
    main_file = dependency.path / MAIN_FILE_NAME
    if not main_file.is_file():
        _LOGGER.debug("No %s in %s; skipping", MAIN_FILE_NAME, dependency.name)
        return None

    sub_dir = dependency.path / SUB_DIR_NAME
    sub_files: List[UsageRuleSubFile] = []
    if sub_dir.is_dir():
        for path in _iter_markdown_files(sub_dir):
            sub_files.append(
                UsageRuleSubFile(
                    relative_path_name=_sub_file_name(path, sub_dir),
                    full_path=path,
                )
            )

    return UsageRules(
        package_name=dependency.name,
        package_version=dependency.version,
        main_file=main_file,
        sub_files=tuple(sub_files),
    )


def scan_for_usage_rules(dependencies: Sequence[Dependency]) -> List[UsageRules]:
    """Scan dependencies for usage-rules.md files and their usage_rules/ sub files.

    Dependencies without a root ``usage-rules.md`` are left out entirely, even
    when they ship sub files. Order follows ``dependencies``.
    """
    results: List[UsageRules] = []
    for dependency in dependencies:
        rules = scan_dependency(dependency)
        if rules is not None:
            results.append(rules)
    return results


def read_file_content(path: Path) -> str:
    """Read a usage-rules file as UTF-8 text with line endings left untouched."""
    try:
        with Path(path).open(encoding="utf-8", newline="") as handle:
            return handle.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise UsageRulesIOError(f"Failed to read file {path}: {exc}", path) from exc


class UsageRulesScanner:
    """Scans dependency source trees for usage-rules files."""

    def scan(self, dependencies: Sequence[Dependency]) -> List[UsageRules]:
        return scan_for_usage_rules(dependencies)


__all__ = [
    "MAIN_FILE_NAME",
    "SUB_DIR_NAME",
    "UsageRulesScanner",
    "read_file_content",
    "scan_dependency",
    "scan_for_usage_rules",
]
