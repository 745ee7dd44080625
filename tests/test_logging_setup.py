"""Tests for log formatting, operation IDs and logger levels."""

from __future__ import annotations

import json
import logging

import pytest

from gitolite_admin.config import LoggingConfig, ManagerConfig
from gitolite_admin.logging_setup import (
    GIT_LOGGER,
    StructuredFormatter,
    TextFormatter,
    new_operation_id,
    operation_id,
    setup_logging,
)


def _record(msg: str = "hello", name: str = "gitolite_admin.manager") -> logging.LogRecord:
    return logging.LogRecord(name, logging.INFO, __file__, 1, msg, None, None)


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    git = logging.getLogger(GIT_LOGGER)
    saved = (root.level, list(root.handlers), git.level)
    yield root
    root.setLevel(saved[0])
    root.handlers[:] = saved[1]
    git.setLevel(saved[2])


def test_structured_formatter_emits_json():
    record = _record()
    record.operation_id = "abc123"
    payload = json.loads(StructuredFormatter().format(record))
    assert payload["level"] == "INFO"
    assert payload["message"] == "hello"
    assert payload["module"] == "gitolite_admin.manager"
    assert payload["operation_id"] == "abc123"
    assert "git_command" not in payload


def test_structured_formatter_includes_git_command():
    record = _record("git push exited with 1", name=GIT_LOGGER)
    record.git_command = ["push", "--porcelain"]
    record.returncode = 1
    payload = json.loads(StructuredFormatter().format(record))
    assert payload["git_command"] == ["push", "--porcelain"]
    assert payload["returncode"] == 1


def test_text_formatter_tags_operation():
    record = _record("Pushed 1 ref updates")
    record.operation_id = "abc123"
    assert TextFormatter().format(record) == "gitolite_admin.manager [abc123]: Pushed 1 ref updates"


def test_text_formatter_leaves_other_loggers_alone():
    record = _record("warning", name="py.warnings")
    record.operation_id = "abc123"
    assert TextFormatter().format(record) == "py.warnings: warning"


def test_new_operation_id_sets_context():
    oid = new_operation_id()
    assert operation_id.get() == oid
    assert len(oid) == 12
    assert new_operation_id() != oid


def test_setup_logging_json(restore_logging):
    setup_logging(ManagerConfig(logging=LoggingConfig(format="json", level="debug")))
    assert restore_logging.level == logging.DEBUG
    assert len(restore_logging.handlers) == 1
    assert isinstance(restore_logging.handlers[0].formatter, StructuredFormatter)


def test_setup_logging_text(restore_logging):
    setup_logging(ManagerConfig())
    assert isinstance(restore_logging.handlers[0].formatter, TextFormatter)


def test_setup_logging_unknown_level_defaults_to_warning(restore_logging):
    setup_logging(ManagerConfig(logging=LoggingConfig(level="chatty")))
    assert restore_logging.level == logging.WARNING
    assert logging.getLogger(GIT_LOGGER).level == logging.WARNING


def test_debug_holds_back_git_commands(restore_logging):
    setup_logging(ManagerConfig(logging=LoggingConfig(level="DEBUG")))
    git = logging.getLogger(GIT_LOGGER)
    assert git.level == logging.INFO
    assert not git.isEnabledFor(logging.DEBUG)
    assert logging.getLogger("gitolite_admin.conf").isEnabledFor(logging.DEBUG)


def test_git_commands_enabled(restore_logging):
    setup_logging(ManagerConfig(logging=LoggingConfig(level="DEBUG", git_commands=True)))
    assert logging.getLogger(GIT_LOGGER).isEnabledFor(logging.DEBUG)
