"""Shared fixtures for Cairn tests."""

from pathlib import Path

import pytest

import cairn.config
from cairn.repository import Repository


@pytest.fixture(autouse=True)
def isolated_global_config(tmp_path_factory, monkeypatch):
    """Keep tests away from the real per-user config file."""
    config_path = tmp_path_factory.mktemp("global") / "config.yaml"
    monkeypatch.setattr(
        cairn.config.GlobalConfig,
        "config_path",
        property(lambda self: config_path),
    )
    return config_path


@pytest.fixture
def repo(tmp_path) -> Repository:
    """An initialized repository with a configured identity."""
    repository = Repository.init(tmp_path)
    config = repository.config
    config.user_name = "Test User"
    config.user_email = "test@example.com"
    config.save()
    return repository


def write_file(root: Path, rel_path: str, content: str | bytes) -> Path:
    """Create a file (and its parent directories) under *root*."""
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content)
    return path
