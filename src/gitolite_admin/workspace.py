"""Load and store a Config in a gitolite-admin working tree (conf/ + keydir/)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from gitolite_admin.conf_format import read_config_file, write_config_file
from gitolite_admin.config import ManagerConfig
from gitolite_admin.keydir import KEY_SUFFIX, read_keys, write_keys
from gitolite_admin.models import Config

logger = logging.getLogger("gitolite_admin.workspace")


@dataclass
class WriteResult:
    """Key files written by one save, and the ones no longer backed by the Config."""

    written_keys: set[Path] = field(default_factory=set)
    orphaned_keys: set[Path] = field(default_factory=set)


class Workspace:
    """A working tree laid out as conf/<conf_file> and keydir/*.pub."""

    def __init__(self, root: Path, settings: ManagerConfig | None = None) -> None:
        self.root = Path(root)
        self.settings = settings or ManagerConfig()

    @property
    def conf_file(self) -> Path:
        ws = self.settings.workspace
        return self.root / ws.conf_dir / ws.conf_file

    @property
    def key_dir(self) -> Path:
        return self.root / self.settings.workspace.key_dir

    def ensure_key_dir(self) -> Path:
        self.key_dir.mkdir(parents=True, exist_ok=True)
        return self.key_dir

    def list_keys(self) -> set[Path]:
        """All key files currently on disk, subdirectories included."""
        if not self.key_dir.is_dir():
            return set()
        return {p for p in self.key_dir.rglob(f"*{KEY_SUFFIX}") if p.is_file()}

    def read(self) -> Config:
        """Parse the conf file, then register keys from keydir/."""
        conf_dir = self.conf_file.parent
        if not conf_dir.is_dir():
            raise FileNotFoundError(f"Could not open {conf_dir.name}/ directory in {self.root}")
        config = read_config_file(self.conf_file)
        read_keys(config, self.ensure_key_dir())
        logger.info(
            "Loaded %d repositories, %d users, %d groups from %s",
            len(config.repositories), len(config.users), len(config.groups), self.root,
        )
        return config

    def write(self, config: Config) -> WriteResult:
        """Serialize config into the working tree. Orphans are reported, not deleted."""
        write_config_file(config, self.conf_file, self.settings.format)
        written = write_keys(config, self.ensure_key_dir())
        orphaned = self.list_keys() - written
        if orphaned:
            logger.info("Found %d orphaned key files", len(orphaned))
        return WriteResult(written_keys=written, orphaned_keys=orphaned)

    def relative(self, path: Path) -> str:
        """Path relative to the working tree root, in git's forward-slash form."""
        return path.relative_to(self.root).as_posix()
