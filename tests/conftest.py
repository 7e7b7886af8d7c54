"""Shared test fixtures for scaffold-engine."""

import shutil
from pathlib import Path

import pytest

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def project(tmp_path):
    """A copy of the fixture project that tests may modify."""
    dest = tmp_path / "project"
    shutil.copytree(FIXTURES / "project", dest)
    return dest


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    monkeypatch.delenv("SCAFFOLD_PROJECT_DIR", raising=False)
    monkeypatch.delenv("SCAFFOLD_SPEC_FILE", raising=False)
