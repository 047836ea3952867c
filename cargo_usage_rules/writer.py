"""Assembly and writing of the usage-rules output document."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from .aggregator import PackageContentInfo, format_package_section
from .errors import UsageRulesIOError
from .logging import get_logger
from .markers import MarkerManager

DEFAULT_LINK_FOLDER_NAME = "usage_rules"

_TEMPLATES_DIR = Path(__file__).with_name("templates")
_HEADER_TEMPLATE = "header.md.j2"
_GENERAL_USAGE_FILE = "base.md"

_LOGGER = get_logger("writer")


def _environment(templates_dir: Path) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=False,
        keep_trailing_newline=True,
    )


def generate_header(use_folder_mode: bool, *, templates_dir: Path | None = None) -> str:
    """Return the boilerplate that opens the generated section.

    Linked mode adds a sentence pointing readers at the per-package files.
    """
    root = templates_dir or _TEMPLATES_DIR
    general_usage = (root / _GENERAL_USAGE_FILE).read_text(encoding="utf-8")
    template = _environment(root).get_template(_HEADER_TEMPLATE)
    return template.render(
        use_folder_mode=use_folder_mode,
        general_usage=general_usage.strip(),
    )


def create_main_agents_file(
    packages: Sequence[PackageContentInfo],
    preamble: Optional[str] = None,
    link_folder_name: Optional[str] = None,
    *,
    marker_manager: MarkerManager | None = None,
) -> str:
    """Compose the full output document: preamble, then the marked section."""
    header = generate_header(link_folder_name is not None)

    package_sections: List[str] = [
        format_package_section(package, link_folder_name) for package in packages
    ]
    body = f"{header}\n" + "\n\n".join(package_sections)
    generated_section = (marker_manager or MarkerManager()).wrap(body)

    if preamble:
        return f"{preamble}\n\n{generated_section}"
    return generated_section


def write_inline(
    output_path: Path,
    packages: Sequence[PackageContentInfo],
    preamble: Optional[str] = None,
) -> None:
    """Write every package's content directly into ``output_path``."""
    content = create_main_agents_file(packages, preamble, None)
    _write_output(Path(output_path), content)


def write_linked(
    output_path: Path,
    folder_path: Path,
    packages: Sequence[PackageContentInfo],
    preamble: Optional[str] = None,
) -> None:
    """Copy package files under ``folder_path`` and link to them from ``output_path``.

    Files are copied package by package; a failure stops the run and leaves
    whatever was already copied in place.
    """
    folder = Path(folder_path)
    for package in packages:
        _copy_package_files(folder, package)

    folder_name = _link_folder_name(folder)
    content = create_main_agents_file(packages, preamble, folder_name)
    _write_output(Path(output_path), content)


def _link_folder_name(folder: Path) -> str:
    name = folder.name
    if not name or name in {".", ".."}:
        return DEFAULT_LINK_FOLDER_NAME
    return name


def _copy_package_files(folder: Path, package: PackageContentInfo) -> None:
    package_dir = folder / package.name
    _ensure_dir(package_dir, f"Failed to create package dir: {package_dir}")

    main_file = package.content.main_file
    if main_file is not None:
        destination = package_dir / f"{package.name}.md"
        _copy(
            main_file,
            destination,
            f"Failed to copy main usage-rules.md for package {package.name}: {destination}",
        )

    for sub_file in package.content.sub_files:
        destination = package_dir / f"{sub_file.relative_path_name}.md"
        _ensure_dir(
            destination.parent,
            f"Failed to create parent directory for sub-file "
            f"{sub_file.relative_path_name}: {destination.parent}",
        )
        _copy(
            sub_file.full_path,
            destination,
            f"Failed to copy sub-file {sub_file.relative_path_name} "
            f"for package {package.name}: {destination}",
        )

    _LOGGER.debug(
        "Copied %s (%d sub-files) to %s",
        package.name,
        len(package.content.sub_files),
        package_dir,
    )


def _ensure_dir(path: Path, message: str) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise UsageRulesIOError(f"{message} ({exc})", path) from exc


def _copy(source: Path, destination: Path, message: str) -> None:
    try:
        shutil.copyfile(source, destination)
    except OSError as exc:
        raise UsageRulesIOError(f"{message} ({exc})", destination) from exc


def _write_output(output_path: Path, content: str) -> None:
    try:
        with output_path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(content)
    except OSError as exc:
        raise UsageRulesIOError(
            f"Failed to write output file: {output_path} ({exc})", output_path
        ) from exc
    _LOGGER.debug("Wrote %d characters to %s", len(content), output_path)


__all__ = [
    "DEFAULT_LINK_FOLDER_NAME",
    "create_main_agents_file",
    "generate_header",
    "write_inline",
    "write_linked",
]
