"""report command: period summary built from the stored commit snapshot."""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.table import Table

from commitscope_cli.runtime import DATE_FORMATS, fmt_ts, get_store, resolve_cli_window
from commitscope_core.errors import PersistenceFailure
from commitscope_core.reports import build_report
from commitscope_core.windows import local_now
from commitscope_store.models import CommitFilter

console = Console()


@click.command("report")
@click.option("--filter", "filter_type", default="lastmonth", show_default=True, help="Date window.")
@click.option("--start", type=click.DateTime(formats=DATE_FORMATS), default=None, help="Start of a custom window.")
@click.option("--end", type=click.DateTime(formats=DATE_FORMATS), default=None, help="End of a custom window.")
@click.option("--top", default=10, show_default=True, help="Number of authors to list.")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON.")
@click.pass_context
def report_cmd(ctx, filter_type: str, start, end, top: int, as_json: bool):
    """Summarise stored commits over a period.

    Reads from the configured store, so run `commitscope sync` first.
    """
    store = get_store(ctx, required=True)
    now = local_now()
    window = resolve_cli_window(ctx.obj["config"], filter_type, start, end, now)

    try:
        commits = store.query_commits(CommitFilter(start=window.start, end=window.end))
    except PersistenceFailure as e:
        raise click.ClickException(str(e))

    report = build_report(commits, top=top, tz=now.tzinfo)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    console.print(f"\n[bold]Report {fmt_ts(window.start)} → {fmt_ts(window.end)}[/bold]")
    if not commits:
        console.print("[yellow]No stored commits in this period. Run `commitscope sync` to refresh.[/yellow]")
        return

    g = report.general
    totals = Table(title="Totals", show_header=True, header_style="bold cyan")
    totals.add_column("Metric", style="bold")
    totals.add_column("Value", justify="right")
    totals.add_row("Commits", str(g.total_commits))
    totals.add_row("Authors", str(g.total_authors))
    totals.add_row("Repositories", str(g.total_repositories))
    totals.add_row("Files changed", str(g.total_files_changed))
    totals.add_row("Lines added", f"[green]+{g.total_insertions}[/green]")
    totals.add_row("Lines removed", f"[red]-{g.total_deletions}[/red]")
    console.print(totals)

    authors = Table(title="Top Authors", show_header=True, header_style="bold cyan")
    authors.add_column("Author", style="bold")
    authors.add_column("Commits", justify="right")
    authors.add_column("Files", justify="right")
    authors.add_column("Lines +", justify="right", style="green")
    authors.add_column("Lines -", justify="right", style="red")
    for a in report.top_authors:
        authors.add_row(
            a.author_name, str(a.commits_count), str(a.total_files), f"+{a.total_insertions}", f"-{a.total_deletions}"
        )
    console.print(authors)

    days = Table(title="Commits by Day", show_header=True, header_style="bold cyan")
    days.add_column("Day")
    days.add_column("Commits", justify="right")
    days.add_column("Authors", justify="right")
    for d in report.commits_by_day:
        days.add_row(d.day.isoformat(), str(d.commits_count), str(d.authors_count))
    console.print(days)
