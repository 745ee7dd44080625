"""Read and write the gitolite.conf text format.

Layout written by the serializer::

    @developers          = alice bob

    repo project
        RW+              = @developers
        R                = carol

Group lines come first (empty groups and @all are skipped), then one block per
repository, each closed by a blank line. Column widths come from FormatConfig.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import TextIO

from gitolite_admin.config import FormatConfig
from gitolite_admin.errors import MalformedLine
from gitolite_admin.models import GROUP_SIGIL, Config, Permission, Repository

logger = logging.getLogger("gitolite_admin.conf")

REPO_KEYWORD = "repo"
COMMENT_CHAR = "#"


# --- Parsing ---


def parse_config(stream: TextIO) -> Config:
    """Parse a configuration text stream into a new Config.

    Raises MalformedLine, UnknownPermission or NameConflict; on failure no
    partially built Config escapes.
    """
    config = Config()
    context: list[Repository] = []

    for line_number, raw in enumerate(stream, start=1):
        raw = raw.rstrip("\r\n")
        line = raw.split(COMMENT_CHAR, 1)[0].strip()
        if not line:
            if not raw.strip():
                context = []  # blank line ends the repository block
            continue

        if "=" in line:
            _parse_assignment(config, context, line, line_number, raw)
            continue

        tokens = line.split()
        if tokens[0] == REPO_KEYWORD and len(tokens) > 1:
            context = [config.get_or_create_repository(name) for name in tokens[1:]]
            continue

        raise MalformedLine(line_number, raw)

    logger.debug(
        "Parsed %d groups, %d users, %d repositories",
        len(config.groups), len(config.users), len(config.repositories),
    )
    return config


def _parse_assignment(
    config: Config,
    context: list[Repository],
    line: str,
    line_number: int,
    raw: str,
) -> None:
    lhs, _, rhs = line.partition("=")
    lhs = lhs.strip()
    names = rhs.split()
    if not lhs or len(lhs.split()) != 1:
        raise MalformedLine(line_number, raw)

    if context:
        permission = Permission.from_token(lhs, line_number)
        for name in names:
            subject = config.resolve(name).name
            for repo in context:
                repo.add(permission, subject)
        return

    if not lhs.startswith(GROUP_SIGIL):
        raise MalformedLine(line_number, raw)

    config.get_or_create_group(lhs)
    for member in names:
        if member == lhs:
            raise MalformedLine(line_number, raw)
        config.add_group_member(lhs, member)


def parse_config_text(text: str) -> Config:
    return parse_config(io.StringIO(text))


def read_config_file(path: Path) -> Config:
    with open(path, encoding="utf-8") as f:
        return parse_config(f)


# --- Serialization ---


def serialize_config(config: Config, stream: TextIO, layout: FormatConfig | None = None) -> None:
    """Write config to stream in canonical form. The stream is not closed."""
    layout = layout or FormatConfig()
    _write_groups(config, stream, layout)
    _write_repositories(config, stream, layout)
    stream.flush()


def _write_groups(config: Config, stream: TextIO, layout: FormatConfig) -> None:
    written = 0
    for group in config.groups:
        if not group.members or group.is_everyone:
            continue
        stream.write(f"{group.name.ljust(layout.column_width)} = {' '.join(group.members)}\n")
        written += 1
    if written:
        stream.write("\n")


def _write_repositories(config: Config, stream: TextIO, layout: FormatConfig) -> None:
    indent = " " * layout.indent
    token_width = layout.column_width - layout.indent
    for repo in config.repositories:
        stream.write(f"{REPO_KEYWORD} {repo.name}\n")
        for permission in repo.permissions:
            names = [identity.name for identity in config.subjects(repo, permission)]
            if not names:
                continue
            stream.write(f"{indent}{permission.token.ljust(token_width)} = {' '.join(names)}\n")
        stream.write("\n")


def render_config(config: Config, layout: FormatConfig | None = None) -> str:
    buf = io.StringIO()
    serialize_config(config, buf, layout)
    return buf.getvalue()


def write_config_file(config: Config, path: Path, layout: FormatConfig | None = None) -> None:
    """Serialize config to path, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        serialize_config(config, f, layout)
    logger.info("Wrote %s", path)
