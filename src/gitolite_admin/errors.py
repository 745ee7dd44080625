"""Structured error codes and exception classes for gitolite-admin."""

from __future__ import annotations

__all__ = [
    "ErrorCode",
    "GitoliteAdminError",
    "NameConflict",
    "UnknownPermission",
    "MalformedLine",
    "MalformedKey",
    "DuplicateKeyLabel",
    "DuplicateKey",
    "GitError",
    "ServiceUnavailable",
    "SyncFailed",
]

from enum import Enum
from pathlib import Path


class ErrorCode(str, Enum):
    NAME_CONFLICT = "NAME_CONFLICT"
    UNKNOWN_PERMISSION = "UNKNOWN_PERMISSION"
    MALFORMED_LINE = "MALFORMED_LINE"
    MALFORMED_KEY = "MALFORMED_KEY"
    DUPLICATE_KEY_LABEL = "DUPLICATE_KEY_LABEL"
    DUPLICATE_KEY = "DUPLICATE_KEY"
    GIT_ERROR = "GIT_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    SYNC_FAILED = "SYNC_FAILED"


class GitoliteAdminError(Exception):
    """Structured application error carrying a code and machine-readable details."""

    def __init__(self, code: ErrorCode, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details: dict = details or {}

    def to_dict(self) -> dict:
        return {"code": self.code.value, "message": self.message, "details": self.details}


class NameConflict(GitoliteAdminError):
    """A name was requested as a kind of identity it cannot be."""

    def __init__(self, name: str, requested: str, reason: str) -> None:
        super().__init__(
            ErrorCode.NAME_CONFLICT,
            f"Cannot use {name!r} as a {requested}: {reason}",
            {"name": name, "requested": requested},
        )
        self.name = name
        self.requested = requested


class UnknownPermission(GitoliteAdminError):
    def __init__(self, token: str, line_number: int | None = None) -> None:
        where = f" on line {line_number}" if line_number is not None else ""
        super().__init__(
            ErrorCode.UNKNOWN_PERMISSION,
            f"Unknown permission {token!r}{where}",
            {"token": token, "line_number": line_number},
        )
        self.token = token
        self.line_number = line_number


class MalformedLine(GitoliteAdminError):
    """A configuration line matched no grammar rule."""

    def __init__(self, line_number: int, line: str) -> None:
        super().__init__(
            ErrorCode.MALFORMED_LINE,
            f"Malformed line {line_number}: {line!r}",
            {"line_number": line_number, "line": line},
        )
        self.line_number = line_number
        self.line = line


class MalformedKey(GitoliteAdminError):
    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(
            ErrorCode.MALFORMED_KEY,
            f"Malformed key file {path.name}: {reason}",
            {"file": str(path)},
        )
        self.path = path


class DuplicateKeyLabel(GitoliteAdminError):
    """Two key files resolve to the same (user, label) pair."""

    def __init__(self, user: str, label: str, files: list[Path]) -> None:
        shown = f"{user}@{label}" if label else user
        super().__init__(
            ErrorCode.DUPLICATE_KEY_LABEL,
            f"Duplicate key label {shown!r} in {', '.join(f.name for f in files)}",
            {"user": user, "label": label, "files": [str(f) for f in files]},
        )
        self.user = user
        self.label = label
        self.files = files


class DuplicateKey(GitoliteAdminError):
    """Two key files carry identical key material."""

    def __init__(self, material: str, files: list[Path]) -> None:
        super().__init__(
            ErrorCode.DUPLICATE_KEY,
            f"Duplicate key: {material}",
            {"material": material, "files": [str(f) for f in files]},
        )
        self.material = material
        self.files = files


class GitError(GitoliteAdminError):
    def __init__(self, command: list[str], returncode: int, stderr: str = "") -> None:
        super().__init__(
            ErrorCode.GIT_ERROR,
            f"git {' '.join(command)} failed with exit code {returncode}: {stderr.strip()}",
            {"command": command, "returncode": returncode, "stderr": stderr},
        )
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class ServiceUnavailable(GitoliteAdminError):
    """The remote configuration repository could not be reached."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(ErrorCode.SERVICE_UNAVAILABLE, message, details)


class SyncFailed(GitoliteAdminError):
    """Pushing the configuration failed for a reason other than a rejection."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(ErrorCode.SYNC_FAILED, message, details)
