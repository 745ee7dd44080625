"""Settings for gitolite-admin. YAML-based with env var expansion and env var overlay."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


# --- Settings Models ---


class WorkspaceConfig(BaseModel):
    """Layout of a checked-out gitolite-admin repository."""
    path: str | None = None  # None = fresh temporary directory per run
    conf_dir: str = "conf"
    conf_file: str = "gitolite.conf"
    key_dir: str = "keydir"


class RemoteConfig(BaseModel):
    url: str | None = None
    branch: str | None = None
    timeout: int | None = None  # seconds; None = no limit
    ssh_command: str | None = None  # exported as GIT_SSH_COMMAND


class FormatConfig(BaseModel):
    """Column layout of the serialized configuration file."""
    column_width: int = 20
    indent: int = 4

    @field_validator("column_width", "indent")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @model_validator(mode="after")
    def _indent_fits(self) -> "FormatConfig":
        if self.indent > self.column_width:
            raise ValueError("indent must not exceed column_width")
        return self


class CommitConfig(BaseModel):
    message: str = "Changed config..."
    author_name: str | None = None  # None = git's own user.name
    author_email: str | None = None


class LoggingConfig(BaseModel):
    """Logging configuration."""
    format: str = "text"   # "text" or "json"
    level: str = "WARNING"
    git_commands: bool = False  # log every git invocation at DEBUG


class ManagerConfig(BaseModel):
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    format: FormatConfig = Field(default_factory=FormatConfig)
    commit: CommitConfig = Field(default_factory=CommitConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# --- Helpers ---

_ENV_PATTERN = re.compile(r"\$\{(\w+)\}")


def get_config_dir() -> Path:
    """Get or create gitolite-admin config directory."""
    config_dir = Path.home() / ".gitolite-admin"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    return get_config_dir() / "config.yaml"


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR} in strings."""
    if isinstance(data, str):
        return _ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(0)), data)
    if isinstance(data, dict):
        return {k: _expand_env_vars(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars(v) for v in data]
    return data


def expand_path(path: str) -> Path:
    """Expand ~ and env vars in path string."""
    return Path(os.path.expanduser(os.path.expandvars(path)))


# Mapping of GITOLITE_ADMIN_* env var suffixes to (section, field) tuples.
_ENV_VAR_MAP: dict[str, tuple[str, str]] = {
    "WORKSPACE": ("workspace", "path"),
    "CONF_FILE": ("workspace", "conf_file"),
    "REMOTE_URL": ("remote", "url"),
    "REMOTE_BRANCH": ("remote", "branch"),
    "REMOTE_TIMEOUT": ("remote", "timeout"),
    "SSH_COMMAND": ("remote", "ssh_command"),
    "COLUMN_WIDTH": ("format", "column_width"),
    "INDENT": ("format", "indent"),
    "COMMIT_MESSAGE": ("commit", "message"),
    "AUTHOR_NAME": ("commit", "author_name"),
    "AUTHOR_EMAIL": ("commit", "author_email"),
    "LOG_FORMAT": ("logging", "format"),
    "LOG_LEVEL": ("logging", "level"),
    "LOG_GIT_COMMANDS": ("logging", "git_commands"),
}

# Fields that must be cast before validation (everything else stays a string)
_INT_FIELDS: set[tuple[str, str]] = {
    ("remote", "timeout"),
    ("format", "column_width"),
    ("format", "indent"),
}


def _apply_env_overlay(data: dict[str, Any]) -> dict[str, Any]:
    """Apply GITOLITE_ADMIN_* environment variables on top of YAML data dict."""
    for env_suffix, (section, field) in _ENV_VAR_MAP.items():
        raw_val = os.environ.get(f"GITOLITE_ADMIN_{env_suffix}")
        if raw_val is None:
            continue

        typed_val: Any = raw_val
        if (section, field) in _INT_FIELDS:
            try:
                typed_val = int(raw_val)
            except ValueError:
                pass  # Pydantic reports the bad value

        if section not in data or not isinstance(data[section], dict):
            data[section] = {}
        data[section][field] = typed_val

    return data


def load_config(path: Path | None = None) -> ManagerConfig:
    """Load settings from YAML, expanding env vars, then applying GITOLITE_ADMIN_* env overlay."""
    config_path = path or get_config_path()
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
        data = _expand_env_vars(raw)
    else:
        data = {}
    data = _apply_env_overlay(data)
    return ManagerConfig(**data)


def save_config(config: ManagerConfig, path: Path | None = None) -> None:
    """Save settings to YAML."""
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump()
    with open(config_path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def get_config_value(config: ManagerConfig, key_path: str) -> Any:
    """Get nested settings value via dot notation (e.g. 'remote.url')."""
    obj: Any = config
    for part in key_path.split("."):
        if isinstance(obj, BaseModel):
            obj = getattr(obj, part, None)
        elif isinstance(obj, dict):
            obj = obj.get(part)
        else:
            return None
    return obj


def set_config_value(key_path: str, value: str, path: Path | None = None) -> ManagerConfig:
    """Set settings value via dot notation, save, and return updated settings."""
    config_path = path or get_config_path()
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
    else:
        raw = {}

    parts = key_path.split(".")
    obj = raw
    for part in parts[:-1]:
        if part not in obj or not isinstance(obj[part], dict):
            obj[part] = {}
        obj = obj[part]
    obj[parts[-1]] = value

    # Validate before writing so a bad value never lands on disk
    updated = ManagerConfig(**_expand_env_vars(raw))

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.dump(raw, f, default_flow_style=False, sort_keys=False)

    return updated
