"""Load/save glue for CLI commands: remote (ConfigManager) or local working tree."""

from __future__ import annotations

import logging
from pathlib import Path

from gitolite_admin.config import ManagerConfig, expand_path
from gitolite_admin.manager import ConfigManager
from gitolite_admin.models import Config
from gitolite_admin.workspace import Workspace

logger = logging.getLogger("gitolite_admin.cli")


class Session:
    """One CLI invocation's view of the configuration.

    With no_push the working tree is edited in place and orphaned key files are
    deleted from disk. Otherwise a ConfigManager clones, commits and pushes.
    """

    def __init__(
        self,
        settings: ManagerConfig,
        workspace: Path | None = None,
        remote: str | None = None,
        no_push: bool = False,
    ) -> None:
        self.settings = settings
        self.no_push = no_push
        self._workspace_path = workspace or (
            expand_path(settings.workspace.path) if settings.workspace.path else None
        )
        self._remote = remote or settings.remote.url
        self._manager: ConfigManager | None = None
        self._local: Workspace | None = None
        self._config: Config | None = None

    @property
    def workspace(self) -> Workspace:
        if self.no_push:
            if self._local is None:
                if self._workspace_path is None:
                    raise ValueError("--workspace (or workspace.path) is required with --no-push")
                self._local = Workspace(self._workspace_path, self.settings)
            return self._local
        return self._get_manager().workspace

    def _get_manager(self) -> ConfigManager:
        if self._manager is None:
            if not self._remote:
                raise ValueError("No remote configured: pass --remote or set remote.url")
            self._manager = ConfigManager.create(self._remote, self._workspace_path, self.settings)
        return self._manager

    def load(self) -> Config:
        if self._config is None:
            if self.no_push:
                self._config = self.workspace.read()
            else:
                self._config = self._get_manager().get_config()
        return self._config

    def save(self, message: str | None = None) -> bool:
        """Persist the loaded Config. Returns False if the remote rejected the push."""
        if self._config is None:
            raise RuntimeError("Config has not yet been loaded!")
        if not self.no_push:
            return self._get_manager().apply_config(message)

        result = self.workspace.write(self._config)
        for orphan in sorted(result.orphaned_keys):
            logger.info("Deleting orphaned key file %s", orphan)
            orphan.unlink()
        return True
