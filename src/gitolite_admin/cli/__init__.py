"""gitolite-admin CLI - manage gitolite repositories, groups and keys."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from gitolite_admin.cli.session import Session
from gitolite_admin.config import (
    ManagerConfig,
    get_config_value,
    load_config,
    set_config_value,
)
from gitolite_admin.logging_setup import setup_logging

# Bootstrap logging from settings (respects GITOLITE_ADMIN_LOG_FORMAT / _LOG_LEVEL)
setup_logging(load_config())

app = typer.Typer(name="gitolite-admin", help="Manage a gitolite-admin repository")
config_app = typer.Typer(help="Manage settings")

app.add_typer(config_app, name="config")

_config: ManagerConfig | None = None
_workspace: Optional[Path] = None
_remote: Optional[str] = None
_no_push: bool = False


def _get_config() -> ManagerConfig:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def _set_config_value(key: str, value: str) -> ManagerConfig:
    global _config
    _config = set_config_value(key, value)
    return _config


def _get_session() -> Session:
    return Session(_get_config(), workspace=_workspace, remote=_remote, no_push=_no_push)


@app.callback()
def main(
    workspace: Optional[Path] = typer.Option(
        None, "--workspace", "-w",
        help="Working tree of the gitolite-admin repository.",
    ),
    remote: Optional[str] = typer.Option(
        None, "--remote", "-r",
        help="URL of the gitolite-admin repository (overrides remote.url).",
    ),
    no_push: bool = typer.Option(
        False, "--no-push",
        help="Only edit the local working tree; never clone, commit or push.",
    ),
):
    """gitolite-admin - Manage a gitolite-admin repository."""
    global _workspace, _remote, _no_push
    _workspace = workspace
    _remote = remote
    _no_push = no_push


# Register commands from sub-modules
from gitolite_admin.cli import acl as _acl_mod  # noqa: E402
from gitolite_admin.cli import config_cmd as _config_cmd_mod  # noqa: E402

_acl_mod.register(app, _get_session)
_config_cmd_mod.register(config_app, _get_config, get_config_value, _set_config_value)
