"""GitManager implementation that drives the git executable."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

from gitolite_admin.errors import GitError, ServiceUnavailable
from gitolite_admin.git.base import PushStatus, RefUpdate

logger = logging.getLogger("gitolite_admin.git")

DEFAULT_COMMIT_MESSAGE = "Changed config..."

# stderr fragments git prints when the remote cannot be reached
_UNREACHABLE_MARKERS = (
    "could not read from remote repository",
    "unable to access",
    "could not resolve host",
    "connection refused",
    "connection timed out",
    "network is unreachable",
    "repository not found",
)

# git push --porcelain flag -> status ('!' is refined by reason below)
_PUSH_FLAGS: dict[str, PushStatus] = {
    " ": PushStatus.OK,
    "+": PushStatus.OK,
    "-": PushStatus.OK,
    "*": PushStatus.OK,
    "=": PushStatus.UP_TO_DATE,
}


def _is_unreachable(stderr: str) -> bool:
    lowered = stderr.lower()
    return any(marker in lowered for marker in _UNREACHABLE_MARKERS)


def parse_push_porcelain(output: str) -> list[RefUpdate]:
    """Parse `git push --porcelain` stdout into RefUpdates.

    Ref lines look like ``<flag>\\t<from>:<to>\\t<summary> (<reason>)``.
    """
    updates: list[RefUpdate] = []
    for line in output.splitlines():
        if len(line) < 2 or line[1] != "\t":
            continue
        flag = line[0]
        parts = line[2:].split("\t")
        ref = parts[0].split(":")[-1]
        summary = parts[1] if len(parts) > 1 else ""

        if flag in _PUSH_FLAGS:
            status = _PUSH_FLAGS[flag]
        elif flag == "!":
            if "remote rejected" in summary:
                status = PushStatus.REJECTED_OTHER_REASON
            elif "stale info" in summary:
                status = PushStatus.REJECTED_REMOTE_CHANGED
            elif "non-fast-forward" in summary or "fetch first" in summary:
                status = PushStatus.REJECTED_NONFASTFORWARD
            else:
                status = PushStatus.REJECTED_OTHER_REASON
        else:
            status = PushStatus.ERROR
        updates.append(RefUpdate(ref=ref, status=status, message=summary))
    return updates


class SubprocessGitManager:
    """Run git commands in a working directory via subprocess."""

    def __init__(
        self,
        working_directory: Path,
        ssh_command: str | None = None,
        author_name: str | None = None,
        author_email: str | None = None,
        git_executable: str = "git",
    ) -> None:
        self._working_directory = Path(working_directory)
        self._ssh_command = ssh_command
        self._author_name = author_name
        self._author_email = author_email
        self._git = git_executable

    @property
    def working_directory(self) -> Path:
        return self._working_directory

    def _env(self) -> dict[str, str]:
        env = dict(os.environ)
        env["GIT_TERMINAL_PROMPT"] = "0"
        if self._ssh_command:
            env["GIT_SSH_COMMAND"] = self._ssh_command
        return env

    def _identity_args(self) -> list[str]:
        args: list[str] = []
        if self._author_name:
            args += ["-c", f"user.name={self._author_name}"]
        if self._author_email:
            args += ["-c", f"user.email={self._author_email}"]
        return args

    def _run(
        self,
        args: list[str],
        timeout: int | None = None,
        check: bool = True,
        remote: bool = False,
    ) -> subprocess.CompletedProcess:
        """Run `git <args>` in the working directory.

        remote=True marks commands that talk to the remote; their failures
        become ServiceUnavailable when git reports it could not connect.
        """
        cmd = [self._git, *self._identity_args(), *args]
        logger.debug("Running %s", " ".join(cmd), extra={"git_command": args})
        try:
            result = subprocess.run(
                cmd,
                cwd=self._working_directory,
                capture_output=True,
                text=True,
                timeout=timeout,
                env=self._env(),
            )
        except subprocess.TimeoutExpired as exc:
            raise ServiceUnavailable(
                f"git {args[0]} timed out after {timeout}s", {"command": args}
            ) from exc
        except FileNotFoundError as exc:
            raise GitError(args, 127, f"{self._git} executable not found") from exc

        logger.debug(
            "git %s exited with %d", args[0], result.returncode,
            extra={"git_command": args, "returncode": result.returncode},
        )

        if check and result.returncode != 0:
            if remote and _is_unreachable(result.stderr):
                raise ServiceUnavailable(
                    f"Remote unavailable: {result.stderr.strip()}", {"command": args}
                )
            raise GitError(args, result.returncode, result.stderr)
        return result

    def _head(self) -> str | None:
        result = self._run(["rev-parse", "--verify", "--quiet", "HEAD"], check=False)
        return result.stdout.strip() if result.returncode == 0 else None

    def open(self) -> None:
        self._run(["rev-parse", "--git-dir"])

    def init(self) -> None:
        self._working_directory.mkdir(parents=True, exist_ok=True)
        self._run(["init"])

    def clone(self, uri: str, branch: str | None = None, timeout: int | None = None) -> None:
        if not uri:
            raise ValueError("uri must not be empty")
        self._working_directory.mkdir(parents=True, exist_ok=True)
        args = ["clone"]
        if branch:
            args += ["--branch", branch]
        args += [uri, "."]
        self._run(args, timeout=timeout, remote=True)
        logger.info("Cloned %s into %s", uri, self._working_directory)

    def pull(self, timeout: int | None = None) -> bool:
        before = self._head()
        self._run(["pull", "--no-rebase", "--no-edit"], timeout=timeout, remote=True)
        after = self._head()
        if before != after:
            logger.info("Pulled new commits (%s -> %s)", before, after)
        return before != after

    def remove(self, file_pattern: str) -> None:
        self._run(["rm", "--quiet", "--ignore-unmatch", "--", file_pattern])
        leftover = self._working_directory / file_pattern
        if leftover.is_file():
            leftover.unlink()  # untracked file, git rm leaves it behind

    def commit_changes(self, message: str | None = None) -> bool:
        self._run(["add", "--all", "."])
        status = self._run(["status", "--porcelain"])
        if not status.stdout.strip():
            logger.info("Nothing to commit")
            return False
        self._run(["commit", "--quiet", "-m", message or DEFAULT_COMMIT_MESSAGE])
        return True

    def uncommit_changes(self) -> None:
        self._run(["reset", "--hard", "HEAD^"])

    def push(self, timeout: int | None = None) -> list[RefUpdate]:
        result = self._run(["push", "--porcelain"], timeout=timeout, check=False)
        updates = parse_push_porcelain(result.stdout)
        if result.returncode != 0 and not updates:
            if _is_unreachable(result.stderr):
                raise ServiceUnavailable(
                    f"Remote unavailable: {result.stderr.strip()}", {"command": ["push"]}
                )
            raise GitError(["push", "--porcelain"], result.returncode, result.stderr)
        return updates
