"""Shared pytest fixtures for gitolite-admin test suite."""

from __future__ import annotations

import pytest

from gitolite_admin.config import ManagerConfig
from gitolite_admin.models import Config, Permission
from gitolite_admin.workspace import Workspace

ALICE_KEY = "ssh-rsa AAAAB3NzaC1yc2EAAAADAQABAAABAQCalice"
BOB_KEY = "ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIbob"
BOB_LAPTOP_KEY = "ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIboblaptop"

SAMPLE_CONF = """\
@developers          = alice bob

repo gitolite-admin
    RW+              = alice

repo project
    RW+              = @developers
    R                = carol

"""


@pytest.fixture
def sample_config() -> Config:
    """Config matching SAMPLE_CONF, built through the mutation methods."""
    config = Config()
    config.add_group_member("@developers", "alice")
    config.add_group_member("@developers", "bob")
    config.grant("gitolite-admin", Permission.READ_WRITE_FORCE, "alice")
    config.grant("project", Permission.READ_WRITE_FORCE, "@developers")
    config.grant("project", Permission.READ_ONLY, "carol")
    return config


@pytest.fixture
def key_dir(tmp_path):
    """Empty key directory."""
    d = tmp_path / "keydir"
    d.mkdir()
    return d


@pytest.fixture
def workspace(tmp_path) -> Workspace:
    """Working tree with SAMPLE_CONF and two key files."""
    root = tmp_path / "gitolite-admin"
    (root / "conf").mkdir(parents=True)
    (root / "keydir").mkdir()
    (root / "conf" / "gitolite.conf").write_text(SAMPLE_CONF)
    (root / "keydir" / "alice.pub").write_text(f"{ALICE_KEY} alice@workstation\n")
    (root / "keydir" / "bob@laptop.pub").write_text(f"{BOB_LAPTOP_KEY} bob@laptop")
    return Workspace(root, ManagerConfig())


@pytest.fixture
def sample_conf() -> str:
    return SAMPLE_CONF


@pytest.fixture
def alice_key() -> str:
    return ALICE_KEY


@pytest.fixture
def bob_key() -> str:
    return BOB_KEY


@pytest.fixture
def bob_laptop_key() -> str:
    return BOB_LAPTOP_KEY
