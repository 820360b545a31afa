"""Tests for configuration handling."""

import pytest

from cairn.config import GlobalConfig, RepoConfig, resolve_identity
from cairn.errors import ConfigError


def test_defaults_when_missing(tmp_path):
    config = RepoConfig.load(tmp_path)
    
    assert config.default_branch == "master"
    assert config.user_name is None
    assert "__pycache__/" in config.ignore_patterns


def test_save_and_load(tmp_path):
    config = RepoConfig(repo_root=tmp_path, user_name="Ada", user_email="ada@example.com")
    config.ignore_patterns = ["build/"]
    config.save()
    
    loaded = RepoConfig.load(tmp_path)
    
    assert loaded.user_name == "Ada"
    assert loaded.user_email == "ada@example.com"
    assert loaded.ignore_patterns == ["build/"]


def test_invalid_yaml(tmp_path):
    path = tmp_path / ".cairn" / "config.yaml"
    path.parent.mkdir()
    path.write_text("user: [unclosed")
    
    with pytest.raises(ConfigError):
        RepoConfig.load(tmp_path)


def test_set_and_get_value(tmp_path):
    config = RepoConfig(repo_root=tmp_path)
    config.set_value("user.name", "Grace")
    
    assert config.get_value("user.name") == "Grace"
    with pytest.raises(ConfigError):
        config.set_value("no.such", "x")


def test_identity_precedence(tmp_path):
    repo_config = RepoConfig(repo_root=tmp_path, user_name="Local")
    global_config = GlobalConfig(user_name="Global", user_email="g@example.com")
    
    assert resolve_identity(repo_config, global_config) == "Local <g@example.com>"


def test_identity_missing(tmp_path):
    with pytest.raises(ConfigError):
        resolve_identity(RepoConfig(repo_root=tmp_path), GlobalConfig())


def test_global_config_round_trip():
    GlobalConfig(user_name="Machine", user_email="m@example.com").save()
    
    loaded = GlobalConfig.load()
    
    assert loaded.user_name == "Machine"


@pytest.mark.parametrize("content", ["user: [unclosed", "- just\n- a list\n"])
def test_global_config_invalid(isolated_global_config, content):
    isolated_global_config.parent.mkdir(parents=True, exist_ok=True)
    isolated_global_config.write_text(content)
    
    with pytest.raises(ConfigError):
        GlobalConfig.load()
