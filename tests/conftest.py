"""Pytest configuration for config-sync tests."""

import sys
from pathlib import Path

import pytest

# Make the repo root importable so tests run without an install
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root))


@pytest.fixture
def sync_home(tmp_path, monkeypatch):
    """Point CONFIG_SYNC_HOME and the working directory at temp dirs."""
    home = tmp_path / "home"
    workdir = tmp_path / "work"
    home.mkdir()
    workdir.mkdir()
    monkeypatch.setenv("CONFIG_SYNC_HOME", str(home))
    monkeypatch.chdir(workdir)
    return home
