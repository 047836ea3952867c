"""Dependency discovery through cargo's metadata commands."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Sequence

from .errors import MetadataError
from .logging import get_logger
from .models import Dependency

Runner = Callable[..., str]

_LOGGER = get_logger("metadata")


class CargoMetadata:
    """Lists the direct dependencies of the crate in ``cwd`` using cargo."""

    def __init__(self, runner: Runner | None = None, cwd: Path | None = None) -> None:
        self._runner = runner or self._default_runner
        self.cwd = cwd or Path.cwd()

    def fetch_dependencies(self) -> None:
        """Run ``cargo fetch`` so dependency sources exist in the local cache."""
        self._run(["cargo", "fetch"])

    def get_dependencies(self) -> List[Dependency]:
        """Return name, version and source path of each direct dependency."""
        raw_metadata = self._run(
            ["cargo", "metadata", "--format-version", "1"], capture_output=True
        )
        tree_output = self._run(
            ["cargo", "tree", "--depth", "0", "--format", "{p}"], capture_output=True
        )
        package_name = _root_package_name(tree_output)

        try:
            metadata = json.loads(raw_metadata)
        except json.JSONDecodeError as exc:
            raise MetadataError(f"Failed to parse cargo metadata JSON: {exc}") from exc

        return _direct_dependencies(metadata, package_name)

    def list_dependencies(self) -> List[Dependency]:
        """Fetch sources, then list direct dependencies."""
        _LOGGER.info("Fetching dependencies...")
        self.fetch_dependencies()
        _LOGGER.info("Reading dependency metadata...")
        dependencies = self.get_dependencies()
        _LOGGER.debug("cargo reported %d direct dependencies", len(dependencies))
        return dependencies

    # ------------------------------------------------------------------
    # Helpers

    def _run(self, args: Sequence[str], *, capture_output: bool = False) -> str:
        command = " ".join(args[:2])
        try:
            return self._runner(args, cwd=self.cwd, capture_output=capture_output)
        except FileNotFoundError as exc:
            raise MetadataError(f"Failed to execute '{command}': {exc}") from exc
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
            raise MetadataError(f"'{command}' failed: {detail}") from exc

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        capture_output: bool = False,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=capture_output,
        )
        if capture_output:
            return completed.stdout
        return ""


def _root_package_name(tree_output: str) -> str:
    fields = tree_output.strip().split()
    if not fields:
        raise MetadataError("Cargo tree package output malformed")
    return fields[0]


def _direct_dependencies(metadata: Any, package_name: str) -> List[Dependency]:
    packages = metadata.get("packages") if isinstance(metadata, dict) else None
    if not isinstance(packages, list):
        raise MetadataError("Cargo metadata is missing the 'packages' list")

    root: Dict[str, Any] | None = None
    for package in packages:
        if isinstance(package, dict) and package.get("name") == package_name:
            root = package
            break
    if root is None:
        raise MetadataError(f"Cargo package name {package_name} not found in metadata")

    dependency_names = {
        entry.get("name")
        for entry in root.get("dependencies") or []
        if isinstance(entry, dict)
    }

    dependencies: List[Dependency] = []
    for package in packages:
        if not isinstance(package, dict) or package.get("name") not in dependency_names:
            continue
        manifest_path = package.get("manifest_path")
        if not isinstance(manifest_path, str):
            raise MetadataError(
                f"Cargo metadata for {package.get('name')} has no manifest_path"
            )
        dependencies.append(
            Dependency(
                name=str(package["name"]),
                version=str(package.get("version", "")),
                path=Path(manifest_path).parent,
            )
        )
    return dependencies


__all__ = ["CargoMetadata", "Runner"]
