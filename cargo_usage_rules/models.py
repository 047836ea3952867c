"""Core data models shared across cargo-usage-rules components."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple


@dataclass(frozen=True)
class Dependency:
    """A direct dependency of the current crate as reported by cargo."""

    name: str
    version: str
    path: Path


@dataclass(frozen=True)
class UsageRuleSubFile:
    """An additional usage-rules document found under a package's usage_rules/ folder."""

    relative_path_name: str
    full_path: Path


@dataclass(frozen=True)
class UsageRules:
    """Usage-rules files discovered for one dependency.

    Only paths are recorded here; file contents are read when a section is
    rendered so excluded or linked packages never touch the disk twice.
    """

    package_name: str
    package_version: str
    main_file: Optional[Path]
    sub_files: Tuple[UsageRuleSubFile, ...] = field(default_factory=tuple)
