"""Global test fixtures and configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tests.base import RepoBuilder

if TYPE_CHECKING:
	from pathlib import Path


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
	"""A fresh bare repository with HEAD on master."""
	return RepoBuilder(tmp_path / "repo.git")
