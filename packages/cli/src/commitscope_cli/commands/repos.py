"""repos command group: register, list and remove tracked repositories."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from commitscope_cli.runtime import build_source, get_store, resolve_repositories
from commitscope_core.config import repository_name_from_path
from commitscope_core.errors import PersistenceFailure
from commitscope_core.models import RepositoryRef

console = Console()


@click.group("repos")
def repos_cmd():
    """Manage the repositories shown on the dashboard."""


@repos_cmd.command("add")
@click.argument("path", type=click.Path(file_okay=False))
@click.option("--name", default=None, help="Display name. Defaults to the directory name.")
@click.pass_context
def add_cmd(ctx, path: str, name: str | None):
    """Register a local git checkout in the store."""
    store = get_store(ctx, required=True)
    config = ctx.obj["config"]

    resolved = str(Path(path).expanduser().resolve())
    if not build_source(config).is_valid_repository(resolved):
        raise click.UsageError(f"Not a git repository: {resolved}")

    ref = RepositoryRef(id=resolved, name=name or repository_name_from_path(resolved), path=resolved)
    try:
        stored = store.upsert_repository(ref)
    except PersistenceFailure as e:
        raise click.ClickException(str(e))
    console.print(f"[green]Added {stored.name}[/green] ({stored.path})")


@repos_cmd.command("list")
@click.pass_context
def list_cmd(ctx):
    """List repositories from the config file and the store."""
    repositories = resolve_repositories(ctx.obj["config"], get_store(ctx))
    if not repositories:
        console.print("[yellow]No repositories configured.[/yellow]")
        return

    table = Table(title="Repositories", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Path")
    for ref in repositories:
        table.add_row(ref.id, ref.name, ref.path)
    console.print(table)


@repos_cmd.command("remove")
@click.argument("path_or_id")
@click.pass_context
def remove_cmd(ctx, path_or_id: str):
    """Remove a repository and its stored commits."""
    store = get_store(ctx, required=True)
    try:
        removed = store.delete_repository(path_or_id)
    except PersistenceFailure as e:
        raise click.ClickException(str(e))
    if not removed:
        raise click.ClickException(f"No stored repository matches {path_or_id}")
    console.print(f"[green]Removed {path_or_id}[/green]")
