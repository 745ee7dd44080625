"""Version-control synchronization for the gitolite-admin repository."""

from __future__ import annotations

from gitolite_admin.git.base import GitManager, PushStatus, RefUpdate
from gitolite_admin.git.subprocess_git import SubprocessGitManager

__all__ = ["GitManager", "PushStatus", "RefUpdate", "SubprocessGitManager"]
