"""End-to-end tests for cargo_usage_rules.orchestrator."""

from __future__ import annotations

from pathlib import Path

import pytest

from cargo_usage_rules.errors import UsageRulesIOError
from cargo_usage_rules.markers import END_MARKER, START_MARKER
from cargo_usage_rules.models import UsageRules
from cargo_usage_rules.orchestrator import Orchestrator, SyncOptions, format_listing
from tests._fixtures.package_builder import PackageFixtureBuilder, StaticLister


def _seed_workspace(builder: PackageFixtureBuilder) -> StaticLister:
    builder.add_package(
        "lib-simple",
        version="0.1.0",
        main="""
        # lib-simple Usage Rules

        A simple library with basic usage patterns.
        """,
    )
    builder.add_package(
        "lib-with-subs",
        version="0.2.0",
        main="""
        # lib-with-subs Usage Rules

        This library demonstrates usage rules with sub-files.
        """,
        sub_files={
            "async": "# Async Patterns\n\nAwait everything.\n",
            "builder": "# Builder Pattern\n\nChain setters.\n",
        },
    )
    builder.add_package("lib-no-main", sub_files={"orphan": "Orphan content"})
    builder.add_package("lib-empty")
    return StaticLister(builder.dependencies)


def test_sync_inline_mode(package_builder: PackageFixtureBuilder, tmp_path: Path) -> None:
    output = tmp_path / "Agents.md"
    orchestrator = Orchestrator(lister=_seed_workspace(package_builder))

    outcome = orchestrator.run_sync(SyncOptions(output=output, linked=False, include_all=True))

    assert outcome.written is True
    assert outcome.link_folder is None
    assert outcome.packages == ["lib-simple", "lib-with-subs"]

    content = output.read_text(encoding="utf-8")
    assert content.startswith(START_MARKER)
    assert END_MARKER in content
    assert "IMPORTANT" in content
    assert "General Rust Usage" in content
    assert "## lib-simple usage\n# lib-simple Usage Rules" in content
    assert "simple library with basic usage" in content
    assert "## async\n\n# Async Patterns" in content
    assert "## builder\n\n# Builder Pattern" in content
    assert content.index("## lib-simple usage") < content.index("## lib-with-subs usage")
    assert "lib-no-main" not in content
    assert "lib-empty" not in content


def test_sync_linked_mode(package_builder: PackageFixtureBuilder, tmp_path: Path) -> None:
    output = tmp_path / "Agents.md"
    folder = tmp_path / "usage_rules"
    orchestrator = Orchestrator(lister=_seed_workspace(package_builder))

    outcome = orchestrator.run_sync(
        SyncOptions(output=output, linked=True, link_folder=folder, include_all=True)
    )

    assert outcome.link_folder == folder
    main_content = output.read_text(encoding="utf-8")
    assert "separate files" in main_content
    assert "[lib-simple usage rules](./usage_rules/lib-simple/lib-simple.md)" in main_content
    assert "Async Patterns" not in main_content

    assert "# lib-simple Usage Rules" in (folder / "lib-simple" / "lib-simple.md").read_text(
        encoding="utf-8"
    )
    assert (folder / "lib-with-subs" / "lib-with-subs.md").exists()
    assert "Async Patterns" in (folder / "lib-with-subs" / "async.md").read_text(
        encoding="utf-8"
    )
    assert "Builder Pattern" in (folder / "lib-with-subs" / "builder.md").read_text(
        encoding="utf-8"
    )
    assert not (folder / "lib-no-main").exists()
    assert not (folder / "lib-empty").exists()


def test_sync_with_remove(package_builder: PackageFixtureBuilder, tmp_path: Path) -> None:
    output = tmp_path / "Agents.md"
    orchestrator = Orchestrator(lister=_seed_workspace(package_builder))

    orchestrator.run_sync(SyncOptions(output=output, linked=False, remove=["lib-simple"]))

    content = output.read_text(encoding="utf-8")
    assert "## lib-simple usage" not in content
    assert "## lib-with-subs usage" in content


def test_sync_without_selection_skips_writing(
    package_builder: PackageFixtureBuilder, tmp_path: Path
) -> None:
    output = tmp_path / "Agents.md"
    orchestrator = Orchestrator(lister=_seed_workspace(package_builder))

    outcome = orchestrator.run_sync(
        SyncOptions(output=output, linked=False, remove=["lib-simple", "lib-with-subs"])
    )

    assert outcome.written is False
    assert not output.exists()


def test_sync_all_writes_even_without_selection(
    package_builder: PackageFixtureBuilder, tmp_path: Path
) -> None:
    output = tmp_path / "Agents.md"
    orchestrator = Orchestrator(lister=StaticLister([]))

    outcome = orchestrator.run_sync(SyncOptions(output=output, linked=False, include_all=True))

    assert outcome.written is True
    assert output.read_text(encoding="utf-8").startswith(START_MARKER)


def test_preamble_preservation(package_builder: PackageFixtureBuilder, tmp_path: Path) -> None:
    output = tmp_path / "Agents.md"
    orchestrator = Orchestrator(lister=_seed_workspace(package_builder))
    options = SyncOptions(output=output, linked=False)

    orchestrator.run_sync(options)
    original = output.read_text(encoding="utf-8")
    custom = "# My Custom Project\n\nThis is my custom header."
    output.write_text(f"{custom}\n\n{original}", encoding="utf-8")

    orchestrator.run_sync(options)

    final = output.read_text(encoding="utf-8")
    assert final == f"{custom}\n\n{original}"
    assert final.count(START_MARKER) == 1
    assert final.count(END_MARKER) == 1


def test_sync_is_idempotent(package_builder: PackageFixtureBuilder, tmp_path: Path) -> None:
    output = tmp_path / "Agents.md"
    folder = tmp_path / "usage_rules"
    orchestrator = Orchestrator(lister=_seed_workspace(package_builder))
    options = SyncOptions(output=output, link_folder=folder)

    orchestrator.run_sync(options)
    first = output.read_bytes()
    orchestrator.run_sync(options)

    assert output.read_bytes() == first


def test_malformed_markers_keep_existing_content(
    package_builder: PackageFixtureBuilder, tmp_path: Path
) -> None:
    output = tmp_path / "Agents.md"
    existing = f"Notes\n\n{START_MARKER}\nhalf-written section"
    output.write_text(existing, encoding="utf-8")
    orchestrator = Orchestrator(lister=_seed_workspace(package_builder))

    orchestrator.run_sync(SyncOptions(output=output, linked=False))

    final = output.read_text(encoding="utf-8")
    assert final.startswith(f"{existing}\n\n{START_MARKER}\n\n")
    assert final.count(START_MARKER) == 2
    assert final.count(END_MARKER) == 1


def test_sync_surfaces_io_errors(package_builder: PackageFixtureBuilder, tmp_path: Path) -> None:
    dependency = package_builder.add_package("lib-broken", main="Main")
    (dependency.path / "usage-rules.md").unlink()
    orchestrator = Orchestrator(lister=StaticLister([dependency]))

    class StaleScanner:
        def scan(self, dependencies):
            return [
                UsageRules(
                    package_name="lib-broken",
                    package_version="0.1.0",
                    main_file=dependency.path / "usage-rules.md",
                )
            ]

    orchestrator.scanner = StaleScanner()

    with pytest.raises(UsageRulesIOError):
        orchestrator.run_sync(SyncOptions(output=tmp_path / "Agents.md", linked=False))
    assert not (tmp_path / "Agents.md").exists()


def test_run_list_and_format_listing(package_builder: PackageFixtureBuilder) -> None:
    orchestrator = Orchestrator(lister=_seed_workspace(package_builder))

    listing = format_listing(orchestrator.run_list())

    assert listing.splitlines() == [
        "Packages with usage rules:",
        "",
        "  [✓] lib-simple v0.1.0",
        "  [✓] lib-with-subs v0.2.0 (2 sub-files)",
    ]


def test_format_listing_empty() -> None:
    assert format_listing([]) == "No usage-rules.md files found in dependencies."
