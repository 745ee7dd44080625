"""ConfigManager: load the gitolite-admin repository, let callers edit it, push it back.

Flow:
  get_config()   → clone if needed → pull → parse conf/ + keydir/ → Config
  apply_config() → write conf/ + keydir/ → git rm orphaned keys → commit → push
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from gitolite_admin.config import ManagerConfig, expand_path
from gitolite_admin.errors import GitError, ServiceUnavailable, SyncFailed
from gitolite_admin.git import GitManager, SubprocessGitManager
from gitolite_admin.logging_setup import new_operation_id
from gitolite_admin.models import Config
from gitolite_admin.workspace import Workspace

logger = logging.getLogger("gitolite_admin.manager")


class ConfigManager:
    """Manage a gitolite configuration kept in a remote git repository.

    Not thread-safe: one manager (and the Config it hands out) per caller.
    """

    @classmethod
    def create(
        cls,
        git_uri: str,
        working_directory: Path | None = None,
        settings: ManagerConfig | None = None,
    ) -> "ConfigManager":
        """Build a manager backed by the git executable.

        Without an explicit working directory, settings.workspace.path is used,
        and failing that a fresh temporary directory.
        """
        settings = settings or ManagerConfig()
        if working_directory is None:
            if settings.workspace.path:
                working_directory = expand_path(settings.workspace.path)
            else:
                working_directory = Path(tempfile.mkdtemp(prefix="gitolite-admin-"))
        git = SubprocessGitManager(
            working_directory,
            ssh_command=settings.remote.ssh_command,
            author_name=settings.commit.author_name,
            author_email=settings.commit.author_email,
        )
        return cls(git_uri, git, settings)

    def __init__(self, git_uri: str, git: GitManager, settings: ManagerConfig | None = None) -> None:
        if not git_uri:
            raise ValueError("git_uri must not be empty")
        self._git_uri = git_uri
        self._git = git
        self._settings = settings or ManagerConfig()
        self._workspace = Workspace(git.working_directory, self._settings)
        self._config: Config | None = None

    @property
    def workspace(self) -> Workspace:
        return self._workspace

    def get_config(self) -> Config:
        """Return the current Config, cloning and pulling the repository first.

        The cached Config is replaced only when the pull brought new commits.
        """
        new_operation_id()
        remote = self._settings.remote
        if not (self._workspace.root / ".git").exists():
            try:
                self._git.clone(self._git_uri, remote.branch, remote.timeout)
            except GitError as exc:
                raise ServiceUnavailable(f"Could not clone {self._git_uri}: {exc.message}") from exc

        if self._git.pull(remote.timeout) or self._config is None:
            self._config = self._workspace.read()
        return self._config

    def apply_config(self, message: str | None = None) -> bool:
        """Write, commit and push the loaded Config.

        Returns True when every ref was pushed, False when the remote rejected
        the push (pull and retry). Raises SyncFailed for any other push outcome.
        """
        if self._config is None:
            raise RuntimeError("Config has not yet been loaded!")
        new_operation_id()

        result = self._workspace.write(self._config)
        for orphan in sorted(result.orphaned_keys):
            logger.info("Removing orphaned key file %s", orphan.name)
            self._git.remove(self._workspace.relative(orphan))

        self._git.commit_changes(message or self._settings.commit.message)

        try:
            updates = self._git.push(self._settings.remote.timeout)
        except GitError as exc:
            raise ServiceUnavailable(f"Push to {self._git_uri} failed: {exc.message}") from exc

        if all(u.status.is_success for u in updates):
            logger.info("Pushed %d ref updates", len(updates))
            return True

        if any(u.status.is_rejection for u in updates):
            logger.warning(
                "Push rejected: %s",
                ", ".join(f"{u.ref}={u.status.value}" for u in updates),
            )
            return False

        raise SyncFailed(
            f"Git push failed in {self._workspace.root}",
            {"updates": [{"ref": u.ref, "status": u.status.value, "message": u.message} for u in updates]},
        )
