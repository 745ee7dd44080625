"""Tests for settings loading, saving, env overlay and dot-notation access."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from gitolite_admin.config import (
    FormatConfig,
    ManagerConfig,
    get_config_value,
    load_config,
    save_config,
    set_config_value,
)


def test_load_default_config(tmp_path):
    """Non-existent settings path returns ManagerConfig() defaults."""
    config = load_config(tmp_path / "nonexistent.yaml")
    assert config == ManagerConfig()
    assert config.format.column_width == 20
    assert config.format.indent == 4
    assert config.workspace.conf_file == "gitolite.conf"


def test_expand_env_vars(tmp_path, monkeypatch):
    """${VAR} in settings values is expanded from environment."""
    monkeypatch.setenv("TEST_GITOLITE_HOST", "git.example.com")
    config_file = tmp_path / "config.yaml"
    config_file.write_text("remote:\n  url: git@${TEST_GITOLITE_HOST}:gitolite-admin\n")
    config = load_config(config_file)
    assert config.remote.url == "git@git.example.com:gitolite-admin"


def test_env_overlay_casts_ints(tmp_path, monkeypatch):
    monkeypatch.setenv("GITOLITE_ADMIN_COLUMN_WIDTH", "24")
    monkeypatch.setenv("GITOLITE_ADMIN_REMOTE_URL", "git@host:admin")
    config = load_config(tmp_path / "nonexistent.yaml")
    assert config.format.column_width == 24
    assert config.remote.url == "git@host:admin"


def test_env_overlay_git_commands(tmp_path, monkeypatch):
    monkeypatch.setenv("GITOLITE_ADMIN_LOG_GIT_COMMANDS", "true")
    config = load_config(tmp_path / "nonexistent.yaml")
    assert config.logging.git_commands is True


def test_env_overlay_bad_int_fails_validation(tmp_path, monkeypatch):
    monkeypatch.setenv("GITOLITE_ADMIN_REMOTE_TIMEOUT", "soon")
    with pytest.raises(ValidationError):
        load_config(tmp_path / "nonexistent.yaml")


def test_save_and_load_config(tmp_path):
    """Round-trip: save then load returns identical settings."""
    config = ManagerConfig()
    config.remote.url = "git@host:gitolite-admin"
    config.format.column_width = 30

    config_file = tmp_path / "config.yaml"
    save_config(config, config_file)
    loaded = load_config(config_file)

    assert loaded.remote.url == "git@host:gitolite-admin"
    assert loaded.format.column_width == 30


def test_get_set_config_value(tmp_path):
    config_file = tmp_path / "config.yaml"
    updated = set_config_value("remote.timeout", "30", path=config_file)
    assert get_config_value(updated, "remote.timeout") == 30
    assert get_config_value(updated, "format.indent") == 4
    assert get_config_value(updated, "no.such.key") is None


def test_set_invalid_value_is_not_saved(tmp_path):
    config_file = tmp_path / "config.yaml"
    with pytest.raises(ValidationError):
        set_config_value("format.indent", "-1", path=config_file)
    assert not config_file.exists()


def test_indent_cannot_exceed_width():
    with pytest.raises(ValidationError):
        FormatConfig(column_width=4, indent=8)
