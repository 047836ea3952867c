"""Selection and rendering of per-package usage-rules content."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Collection, Iterable, List, Optional, Tuple

from .models import UsageRuleSubFile, UsageRules
from .scanner import read_file_content


@dataclass(frozen=True)
class PackageContent:
    """Backing files for a package selected for output."""

    main_file: Optional[Path]
    sub_files: Tuple[UsageRuleSubFile, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PackageContentInfo:
    """A package selected for output together with its backing files."""

    name: str
    content: PackageContent

    def get_aggregated_content(self) -> str:
        """Read and join the package's files: main file first, then sub files."""
        parts: List[str] = []

        if self.content.main_file is not None:
            parts.append(read_file_content(self.content.main_file))

        for sub_file in self.content.sub_files:
            text = read_file_content(sub_file.full_path)
            parts.append(f"## {sub_file.relative_path_name}\n\n{text}")

        return "\n\n".join(parts)


def aggregate_content(
    usage_rules: Iterable[UsageRules],
    remove_packages: Collection[str] = (),
) -> List[PackageContentInfo]:
    """Return packages in input order, skipping names listed in ``remove_packages``."""
    excluded = set(remove_packages)
    results: List[PackageContentInfo] = []

    for rule in usage_rules:
        if rule.package_name in excluded:
            continue
        results.append(
            PackageContentInfo(
                name=rule.package_name,
                content=PackageContent(
                    main_file=rule.main_file,
                    sub_files=tuple(rule.sub_files),
                ),
            )
        )

    return results


def format_package_section(
    package: PackageContentInfo,
    link_folder_name: str | None = None,
) -> str:
    """Render one package as a ``## {name} usage`` section.

    With ``link_folder_name`` the body is a relative link into the linked
    folder and no file is read; otherwise the package content is inlined.
    """
    if link_folder_name is not None:
        relative_path = f"./{link_folder_name}/{package.name}/{package.name}.md"
        body = f"[{package.name} usage rules]({relative_path})"
    else:
        body = package.get_aggregated_content()
    return f"## {package.name} usage\n{body}"


__all__ = [
    "PackageContent",
    "PackageContentInfo",
    "aggregate_content",
    "format_package_section",
]
