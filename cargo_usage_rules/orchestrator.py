"""Pipeline orchestration for the sync and list commands."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from .aggregator import aggregate_content
from .logging import get_logger
from .markers import MarkerManager, extract_preamble
from .metadata import CargoMetadata
from .models import Dependency, UsageRules
from .scanner import MAIN_FILE_NAME, UsageRulesScanner
from .writer import write_inline, write_linked

DEFAULT_OUTPUT = Path("Agents.md")
DEFAULT_LINK_FOLDER = Path("usage_rules")

NO_RULES_MESSAGE = f"No {MAIN_FILE_NAME} files found in dependencies."


class DependencyLister(Protocol):
    def list_dependencies(self) -> List[Dependency]: ...


class RulesScanner(Protocol):
    def scan(self, dependencies: Sequence[Dependency]) -> List[UsageRules]: ...


@dataclass
class SyncOptions:
    """Effective settings for a ``usage-rules sync`` run."""

    output: Path = DEFAULT_OUTPUT
    linked: bool = True
    link_folder: Path = DEFAULT_LINK_FOLDER
    include_all: bool = False
    remove: Sequence[str] = field(default_factory=tuple)
    inline: Sequence[str] = field(default_factory=tuple)


@dataclass
class SyncOutcome:
    """Result of a sync run."""

    output: Path
    link_folder: Optional[Path]
    packages: List[str]
    written: bool


class Orchestrator:
    """Coordinates dependency discovery, aggregation and writing."""

    def __init__(
        self,
        lister: DependencyLister | None = None,
        scanner: RulesScanner | None = None,
        marker_manager: MarkerManager | None = None,
    ) -> None:
        self.lister = lister or CargoMetadata()
        self.scanner = scanner or UsageRulesScanner()
        self.marker_manager = marker_manager or MarkerManager()
        self.logger = get_logger("orchestrator")

    def discover(self) -> List[UsageRules]:
        """Return usage rules for every direct dependency that ships them."""
        dependencies = self.lister.list_dependencies()
        self.logger.info("Scanning for %s files...", MAIN_FILE_NAME)
        usage_rules = self.scanner.scan(dependencies)
        if not usage_rules:
            self.logger.info(NO_RULES_MESSAGE)
        return usage_rules

    def run_list(self) -> List[UsageRules]:
        """Return the dependencies that have usage rules."""
        return self.discover()

    def run_sync(self, options: SyncOptions) -> SyncOutcome:
        """Regenerate the output document (and linked folder) from dependencies."""
        usage_rules = self.discover()
        self.logger.info("Found %d packages with usage rules:", len(usage_rules))
        for rule in usage_rules:
            self.logger.info("  - %s v%s", rule.package_name, rule.package_version)

        if options.inline:
            self.logger.debug(
                "Inline package list %s does not change the output mode",
                ", ".join(options.inline),
            )

        self.logger.info("Aggregating content...")
        packages = aggregate_content(usage_rules, options.remove)
        link_folder = options.link_folder if options.linked else None

        if not packages and not options.include_all:
            self.logger.info(
                "No packages selected for output. Use --all to include all packages."
            )
            return SyncOutcome(
                output=options.output, link_folder=link_folder, packages=[], written=False
            )

        # The preamble must be read before the output file is replaced.
        preamble = extract_preamble(options.output, self.marker_manager)

        self.logger.info("Writing output...")
        if options.linked:
            write_linked(options.output, options.link_folder, packages, preamble)
        else:
            write_inline(options.output, packages, preamble)

        return SyncOutcome(
            output=options.output,
            link_folder=link_folder,
            packages=[package.name for package in packages],
            written=True,
        )


def format_listing(usage_rules: Sequence[UsageRules]) -> str:
    """Render the ``usage-rules list`` report."""
    if not usage_rules:
        return NO_RULES_MESSAGE

    lines = ["Packages with usage rules:", ""]
    for rule in usage_rules:
        marker = "✓" if rule.main_file is not None else " "
        sub_files = f" ({len(rule.sub_files)} sub-files)" if rule.sub_files else ""
        lines.append(f"  [{marker}] {rule.package_name} v{rule.package_version}{sub_files}")
    return "\n".join(lines)


__all__ = [
    "DEFAULT_LINK_FOLDER",
    "DEFAULT_OUTPUT",
    "Orchestrator",
    "SyncOptions",
    "SyncOutcome",
    "format_listing",
]
