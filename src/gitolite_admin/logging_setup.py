"""Logging for gitolite-admin: text or JSON lines, tagged with the current operation.

Every get_config()/apply_config() run starts a new operation id, so the clone,
parse, write and push lines of one run can be told apart from the next.
"""

from __future__ import annotations

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gitolite_admin.config import ManagerConfig

PACKAGE_LOGGER = "gitolite_admin"
GIT_LOGGER = "gitolite_admin.git"

operation_id: ContextVar[str] = ContextVar("operation_id", default="")


class _OperationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.operation_id = operation_id.get("")  # type: ignore[attr-defined]
        return True


class TextFormatter(logging.Formatter):
    """'name: message', with '[operation]' after the name for gitolite_admin records."""

    def format(self, record: logging.LogRecord) -> str:
        oid = getattr(record, "operation_id", "")
        prefix = record.name
        if oid and record.name.startswith(PACKAGE_LOGGER):
            prefix = f"{prefix} [{oid}]"
        line = f"{prefix}: {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class StructuredFormatter(logging.Formatter):
    """One JSON object per line. Git records carry the command and its exit code."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.name,
        }
        oid = getattr(record, "operation_id", "")
        if oid:
            payload["operation_id"] = oid
        for key in ("git_command", "returncode"):
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(config: "ManagerConfig") -> None:
    """Install one stderr handler on the root logger from config.logging.

    At DEBUG every git invocation is logged; unless logging.git_commands is set,
    the git logger is held at INFO so the debug output stays about the config.
    """
    log_cfg = config.logging
    level = getattr(logging, log_cfg.level.upper(), logging.WARNING)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.addFilter(_OperationIdFilter())
    if log_cfg.format.lower() == "json":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(TextFormatter())
    root.addHandler(handler)

    git_level = logging.NOTSET if log_cfg.git_commands else max(level, logging.INFO)
    logging.getLogger(GIT_LOGGER).setLevel(git_level)


def new_operation_id() -> str:
    """Start a new operation in the current context and return its id."""
    oid = uuid.uuid4().hex[:12]
    operation_id.set(oid)
    return oid
