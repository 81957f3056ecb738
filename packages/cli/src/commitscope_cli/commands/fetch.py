"""fetch command: pull remote updates into every tracked repository."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from commitscope_cli.runtime import build_source, get_store, resolve_repositories
from commitscope_core.sync import fetch_updates

console = Console()

_STATUS_STYLE = {"success": "green", "skipped": "yellow", "error": "red"}


@click.command("fetch")
@click.pass_context
def fetch_cmd(ctx):
    """Run `git fetch --all --prune` in each repository."""
    config = ctx.obj["config"]
    repositories = resolve_repositories(config, get_store(ctx))
    if not repositories:
        console.print("[yellow]No repositories configured.[/yellow]")
        return

    results = fetch_updates(build_source(config), repositories)

    table = Table(title="Fetch", show_header=True, header_style="bold cyan")
    table.add_column("Repository", style="bold")
    table.add_column("Status")
    table.add_column("Message")
    for r in results:
        style = _STATUS_STYLE.get(r.status, "white")
        table.add_row(r.name, f"[{style}]{r.status}[/{style}]", r.message)
    console.print(table)
