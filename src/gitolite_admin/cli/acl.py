"""CLI commands for repositories, groups and keys: show, validate, grant, revoke, members, keys."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from gitolite_admin.cli.session import Session
from gitolite_admin.conf_format import render_config
from gitolite_admin.errors import GitoliteAdminError
from gitolite_admin.keydir import check_duplicate_keys
from gitolite_admin.models import Permission

console = Console()

_MESSAGE_HELP = "Commit message (default: commit.message setting)."


def _fail(exc: Exception) -> None:
    if isinstance(exc, GitoliteAdminError):
        console.print(f"[red]{exc.code.value}:[/red] {exc.message}")
    else:
        console.print(f"[red]Error:[/red] {exc}")
    raise typer.Exit(1)


def _save(session: Session, message: Optional[str]) -> None:
    if session.save(message):
        console.print("[green]Configuration saved.[/green]")
    else:
        console.print("[yellow]Push rejected by the remote; pull and retry.[/yellow]")
        raise typer.Exit(2)


def register(app: typer.Typer, get_session: Callable[[], Session]) -> None:
    """Register configuration commands on the main Typer app."""

    @app.command()
    def show():
        """Print the configuration file as it would be written."""
        session = get_session()
        try:
            config = session.load()
        except (GitoliteAdminError, OSError, ValueError) as exc:
            _fail(exc)
        typer.echo(render_config(config, session.settings.format), nl=False)

    @app.command()
    def users():
        """List users and their key labels."""
        session = get_session()
        try:
            config = session.load()
        except (GitoliteAdminError, OSError, ValueError) as exc:
            _fail(exc)
        table = Table(title="Users")
        table.add_column("User", style="cyan")
        table.add_column("Keys")
        for user in config.users:
            labels = [label or "(default)" for label in user.keys]
            table.add_row(user.name, ", ".join(labels) or "[dim]none[/dim]")
        console.print(table)

    @app.command()
    def validate():
        """Parse conf/ and keydir/ and check for duplicate keys."""
        session = get_session()
        try:
            config = session.load()
            check_duplicate_keys(session.workspace.key_dir)
        except (GitoliteAdminError, OSError, ValueError) as exc:
            _fail(exc)
        console.print(
            f"[green]OK[/green] {len(config.repositories)} repositories, "
            f"{len(config.groups)} groups, {len(config.users)} users"
        )

    @app.command()
    def grant(
        repo: str = typer.Argument(..., help="Repository name"),
        permission: str = typer.Argument(..., help="Permission token, e.g. R, RW, RW+"),
        subjects: List[str] = typer.Argument(..., help="Users or @groups"),
        message: Optional[str] = typer.Option(None, "--message", "-m", help=_MESSAGE_HELP),
    ):
        """Grant a permission on a repository (creating the repository if needed)."""
        session = get_session()
        try:
            config = session.load()
            level = Permission.from_token(permission)
            for subject in subjects:
                config.grant(repo, level, subject)
            _save(session, message)
        except (GitoliteAdminError, OSError, ValueError) as exc:
            _fail(exc)

    @app.command()
    def revoke(
        repo: str = typer.Argument(..., help="Repository name"),
        permission: str = typer.Argument(..., help="Permission token"),
        subjects: List[str] = typer.Argument(..., help="Users or @groups"),
        message: Optional[str] = typer.Option(None, "--message", "-m", help=_MESSAGE_HELP),
    ):
        """Revoke a permission from users or groups."""
        session = get_session()
        try:
            config = session.load()
            level = Permission.from_token(permission)
            changed = [s for s in subjects if config.revoke(repo, level, s)]
            if not changed:
                console.print("[yellow]Nothing to revoke.[/yellow]")
                return
            _save(session, message)
        except (GitoliteAdminError, OSError, ValueError) as exc:
            _fail(exc)

    @app.command("add-member")
    def add_member(
        group: str = typer.Argument(..., help="Group name, e.g. @developers"),
        members: List[str] = typer.Argument(..., help="Users or @groups"),
        message: Optional[str] = typer.Option(None, "--message", "-m", help=_MESSAGE_HELP),
    ):
        """Add members to a group (creating the group if needed)."""
        session = get_session()
        try:
            config = session.load()
            for member in members:
                config.add_group_member(group, member)
            _save(session, message)
        except (GitoliteAdminError, OSError, ValueError) as exc:
            _fail(exc)

    @app.command("remove-member")
    def remove_member(
        group: str = typer.Argument(..., help="Group name"),
        members: List[str] = typer.Argument(..., help="Users or @groups"),
        message: Optional[str] = typer.Option(None, "--message", "-m", help=_MESSAGE_HELP),
    ):
        """Remove members from a group."""
        session = get_session()
        try:
            config = session.load()
            changed = [m for m in members if config.remove_group_member(group, m)]
            if not changed:
                console.print("[yellow]Nothing to remove.[/yellow]")
                return
            _save(session, message)
        except (GitoliteAdminError, OSError, ValueError) as exc:
            _fail(exc)

    @app.command("add-key")
    def add_key(
        user: str = typer.Argument(..., help="User name"),
        key_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="SSH public key file"),
        label: str = typer.Option("", "--label", "-l", help="Key label, e.g. laptop"),
        message: Optional[str] = typer.Option(None, "--message", "-m", help=_MESSAGE_HELP),
    ):
        """Register an SSH public key for a user."""
        session = get_session()
        try:
            config = session.load()
            config.get_or_create_user(user).set_key(key_file.read_text(encoding="utf-8"), label)
            _save(session, message)
        except (GitoliteAdminError, OSError, ValueError) as exc:
            _fail(exc)

    @app.command("remove-key")
    def remove_key(
        user: str = typer.Argument(..., help="User name"),
        label: str = typer.Option("", "--label", "-l", help="Key label"),
        message: Optional[str] = typer.Option(None, "--message", "-m", help=_MESSAGE_HELP),
    ):
        """Remove one of a user's SSH keys."""
        session = get_session()
        try:
            config = session.load()
            target = config.get_user(user)
            if target is None or not target.remove_key(label):
                console.print(f"[yellow]No such key for {user}.[/yellow]")
                raise typer.Exit(1)
            _save(session, message)
        except (GitoliteAdminError, OSError, ValueError) as exc:
            _fail(exc)
