from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.package_builder import PackageFixtureBuilder


@pytest.fixture
def package_builder(tmp_path: Path) -> PackageFixtureBuilder:
    """Provide a builder for fake dependency crates rooted at the pytest tmp_path."""
    return PackageFixtureBuilder(tmp_path)
