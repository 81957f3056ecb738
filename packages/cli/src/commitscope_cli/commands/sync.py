"""sync command: snapshot commits from every repository into the store."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from commitscope_cli.runtime import build_source, get_store, resolve_repositories
from commitscope_core.errors import PersistenceFailure
from commitscope_core.sync import sync_repositories

console = Console()

_STATUS_STYLE = {"success": "green", "error": "red"}


@click.command("sync")
@click.pass_context
def sync_cmd(ctx):
    """Copy the commit history of each repository into the configured store.

    The `report` command reads from this snapshot, so run sync before
    building a report over fresh history.
    """
    store = get_store(ctx, required=True)
    config = ctx.obj["config"]

    repositories = resolve_repositories(config, store)
    if not repositories:
        console.print("[yellow]No repositories configured.[/yellow]")
        return

    try:
        results = sync_repositories(store, build_source(config), repositories)
    except PersistenceFailure as e:
        raise click.ClickException(str(e))

    table = Table(title="Sync", show_header=True, header_style="bold cyan")
    table.add_column("Repository", style="bold")
    table.add_column("Status")
    table.add_column("Commits", justify="right")
    table.add_column("Message")
    for r in results:
        style = _STATUS_STYLE.get(r.status, "white")
        table.add_row(r.name, f"[{style}]{r.status}[/{style}]", str(r.commits), r.message)
    console.print(table)

    total = sum(r.commits for r in results)
    console.print(f"Synced {total} commit(s) from {len(results)} repositories.")
