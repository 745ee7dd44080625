"""Shared helpers for key material and name validation."""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s")


def strip_key_comment(text: str) -> str:
    """Return the 'key-type payload' part of an SSH public key line.

    Raises ValueError when fewer than two whitespace-separated tokens are present.
    """
    parts = text.split()
    if len(parts) < 2:
        raise ValueError("expected '<key-type> <base64-payload> [comment]'")
    return f"{parts[0]} {parts[1]}"


def is_valid_name(name: str) -> bool:
    """Names are non-empty and contain no whitespace."""
    return bool(name) and not _WHITESPACE_RE.search(name)


def is_valid_key_label(label: str) -> bool:
    """Labels become part of '<user>@<label>.pub', so '@', '.' and '/' are excluded."""
    return is_valid_name(label) and not any(c in label for c in "@./")


def is_key_safe_user_name(name: str) -> bool:
    """True when '<name>.pub' reads back as this user rather than '<user>@<label>'.

    A '@' in a user name must be followed by an email domain (something with a dot).
    """
    _, sep, suffix = name.rpartition("@")
    return not sep or "." in suffix
