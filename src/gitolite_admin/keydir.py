"""Read and write the keydir/ directory of SSH public keys.

Each key lives in ``<user>.pub`` or ``<user>@<label>.pub``. When the part after
the last ``@`` contains a dot it is read as the domain of an email-style user
name (``alice@example.com.pub``), not as a label.

Keys are read from the whole tree (subdirectories included) but always written
flat into the top level of the directory.
"""

from __future__ import annotations

import logging
from pathlib import Path

from gitolite_admin.errors import DuplicateKey, DuplicateKeyLabel, MalformedKey
from gitolite_admin.models import GROUP_SIGIL, Config
from gitolite_admin.utils import (
    is_key_safe_user_name,
    is_valid_key_label,
    is_valid_name,
    strip_key_comment,
)

logger = logging.getLogger("gitolite_admin.keydir")

KEY_SUFFIX = ".pub"


def key_stem(user: str, label: str = "") -> str:
    return f"{user}@{label}" if label else user


def key_filename(user: str, label: str = "") -> str:
    return key_stem(user, label) + KEY_SUFFIX


def split_key_filename(filename: str) -> tuple[str, str] | None:
    """Return (user, label) for a key file name, or None if it is not one."""
    if not filename.endswith(KEY_SUFFIX):
        return None
    stem = filename[: -len(KEY_SUFFIX)]
    user, sep, label = stem.rpartition("@")
    if not sep or "." in label:
        user, label = stem, ""
    elif not label or not is_valid_key_label(label):
        return None
    if not is_valid_name(user) or user.startswith(GROUP_SIGIL) or "/" in user:
        return None
    if not is_key_safe_user_name(user):
        # "a@b@laptop.pub" names user "a@b", which a key file cannot hold
        return None
    return user, label


# --- Reading ---


def read_keys(config: Config, key_dir: Path) -> Config:
    """Register every key under key_dir with its user, creating users as needed.

    The directory is validated completely before config is touched, so a
    DuplicateKeyLabel or MalformedKey leaves config unchanged.
    """
    if not key_dir.is_dir():
        raise NotADirectoryError(f"Key directory not found: {key_dir}")

    found: dict[tuple[str, str], tuple[str, Path]] = {}
    for path in sorted(key_dir.rglob(f"*{KEY_SUFFIX}")):
        if not path.is_file():
            continue
        parsed = split_key_filename(path.name)
        if parsed is None:
            logger.debug("Skipping %s: not a key file name", path)
            continue

        with open(path, encoding="utf-8") as f:
            content = f.read()
        try:
            material = strip_key_comment(content)
        except ValueError as exc:
            raise MalformedKey(path, str(exc)) from None

        if parsed in found:
            raise DuplicateKeyLabel(parsed[0], parsed[1], [found[parsed][1], path])
        found[parsed] = (material, path)

    for (user_name, label), (material, path) in found.items():
        user = config.get_user(user_name)
        existing = user.get_key(label) if user else None
        if existing is not None and existing != material:
            raise DuplicateKeyLabel(user_name, label, [path])

    for (user_name, label), (material, _path) in found.items():
        config.get_or_create_user(user_name).keys[label] = material

    logger.debug("Read %d keys from %s", len(found), key_dir)
    return config


# --- Writing ---


def write_keys(config: Config, key_dir: Path) -> set[Path]:
    """Write one file per (user, label) key into key_dir.

    Existing files are overwritten but never removed. Returns the paths written
    so the caller can find orphaned key files. Raises DuplicateKey when two
    key files in key_dir carry the same key material afterwards.
    """
    if not key_dir.is_dir():
        raise NotADirectoryError(f"Key directory not found: {key_dir}")

    written: set[Path] = set()
    for user in config.users:
        for label, material in user.keys.items():
            written.add(_write_key_file(key_dir, user.name, label, material))

    check_duplicate_keys(key_dir)
    logger.info("Wrote %d keys to %s", len(written), key_dir)
    return written


def _write_key_file(key_dir: Path, user: str, label: str, material: str) -> Path:
    path = key_dir / key_filename(user, label)
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        f.write(f"{strip_key_comment(material)} {key_stem(user, label)}")
    return path


def check_duplicate_keys(key_dir: Path) -> None:
    """Raise DuplicateKey if two top-level key files share key material."""
    seen: dict[str, Path] = {}
    for path in sorted(key_dir.glob(f"*{KEY_SUFFIX}")):
        if not path.is_file():
            continue
        with open(path, encoding="utf-8") as f:
            content = f.read()
        try:
            material = strip_key_comment(content)
        except ValueError:
            logger.warning("Ignoring unreadable key file %s", path)
            continue
        if material in seen:
            raise DuplicateKey(material, [seen[material], path])
        seen[material] = path
