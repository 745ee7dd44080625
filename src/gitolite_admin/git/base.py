"""Version-control protocol used by ConfigManager."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol, runtime_checkable


class PushStatus(str, Enum):
    OK = "ok"
    UP_TO_DATE = "up_to_date"
    REJECTED_NONFASTFORWARD = "rejected_nonfastforward"
    REJECTED_REMOTE_CHANGED = "rejected_remote_changed"
    REJECTED_OTHER_REASON = "rejected_other_reason"
    ERROR = "error"

    @property
    def is_success(self) -> bool:
        return self in (PushStatus.OK, PushStatus.UP_TO_DATE)

    @property
    def is_rejection(self) -> bool:
        return self in (
            PushStatus.REJECTED_NONFASTFORWARD,
            PushStatus.REJECTED_REMOTE_CHANGED,
            PushStatus.REJECTED_OTHER_REASON,
        )


@dataclass
class RefUpdate:
    ref: str
    status: PushStatus
    message: str = ""


@runtime_checkable
class GitManager(Protocol):
    """Protocol for the git working copy holding the gitolite-admin repository."""

    @property
    def working_directory(self) -> Path:
        ...

    def open(self) -> None:
        """Attach to an existing repository in the working directory."""
        ...

    def init(self) -> None:
        """Create a new, empty repository in the working directory."""
        ...

    def clone(self, uri: str, branch: str | None = None, timeout: int | None = None) -> None:
        """Clone uri into the working directory."""
        ...

    def pull(self, timeout: int | None = None) -> bool:
        """Pull from the remote. Return True if new commits arrived."""
        ...

    def remove(self, file_pattern: str) -> None:
        """Remove matching files from the index and the working tree."""
        ...

    def commit_changes(self, message: str | None = None) -> bool:
        """Stage everything and commit. Return False when there was nothing to commit."""
        ...

    def uncommit_changes(self) -> None:
        """Drop the last local commit and any working tree changes."""
        ...

    def push(self, timeout: int | None = None) -> list[RefUpdate]:
        """Push local commits, returning one RefUpdate per remote ref."""
        ...
