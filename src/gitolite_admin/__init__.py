"""gitolite-admin - read, edit and write gitolite access-control configurations."""

from __future__ import annotations

from gitolite_admin.conf_format import parse_config, render_config, serialize_config
from gitolite_admin.keydir import read_keys, write_keys
from gitolite_admin.manager import ConfigManager
from gitolite_admin.models import Config, Group, Identity, Permission, Repository, User

__all__ = [
    "Config",
    "ConfigManager",
    "Group",
    "Identity",
    "Permission",
    "Repository",
    "User",
    "parse_config",
    "read_keys",
    "render_config",
    "serialize_config",
    "write_keys",
]

__version__ = "0.1.0"
