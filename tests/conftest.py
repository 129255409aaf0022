from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.project_builder import FakeRunner, ProjectBuilder


@pytest.fixture
def project_builder(tmp_path: Path) -> ProjectBuilder:
    """Provide a reusable project builder rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path)


@pytest.fixture
def fake_runner() -> FakeRunner:
    """A runner on which every external command fails, unless a reply is registered."""
    return FakeRunner()
