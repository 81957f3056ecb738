"""dashboard command: team commit metrics for a date window."""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.table import Table

from commitscope_cli.runtime import (
    DATE_FORMATS,
    build_aggregator,
    fmt_ts,
    get_store,
    resolve_cli_window,
    resolve_repositories,
)
from commitscope_core.metrics import MetricsEngine
from commitscope_core.models import MetricsSnapshot
from commitscope_core.windows import FILTER_TYPES, local_now

console = Console()

_STATUS_STYLE = {"today": "green", "yesterday": "yellow", "this_week": "dark_orange", "inactive": "red"}


@click.command("dashboard")
@click.option(
    "--filter",
    "filter_type",
    default=None,
    help=f"Date window: {', '.join(FILTER_TYPES)}. Defaults to default_filter from the config.",
)
@click.option("--start", type=click.DateTime(formats=DATE_FORMATS), default=None, help="Start of a custom window.")
@click.option("--end", type=click.DateTime(formats=DATE_FORMATS), default=None, help="End of a custom window.")
@click.option("--json", "as_json", is_flag=True, help="Print the snapshot as JSON instead of tables.")
@click.pass_context
def dashboard_cmd(ctx, filter_type: str | None, start, end, as_json: bool):
    """Show commit metrics across all configured repositories.

    Commits are read from the local checkouts as they are; run
    `commitscope fetch` first to pick up remote work.
    """
    config = ctx.obj["config"]
    now = local_now()
    # Validate the window before touching any repository.
    window = resolve_cli_window(config, filter_type, start, end, now)

    repositories = resolve_repositories(config, get_store(ctx))
    if not repositories:
        console.print("[yellow]No repositories configured. Add some with `commitscope repos add PATH`.[/yellow]")
        return

    result = build_aggregator(config).aggregate(repositories)
    snapshot = MetricsEngine().compute(result.commits, window, len(repositories), now=now)

    if as_json:
        click.echo(json.dumps({"snapshot": snapshot.to_dict(), "errors": result.errors}, indent=2))
        return

    for error in result.errors:
        console.print(f"[yellow]Warning: {error}[/yellow]")
    _render(snapshot)


def _render(snapshot: MetricsSnapshot) -> None:
    stats = snapshot.stats
    adv = snapshot.advanced

    console.print(
        f"\n[bold]Commit activity {fmt_ts(snapshot.window.start)} → {fmt_ts(snapshot.window.end)}[/bold]"
    )
    summary = Table(title="Summary", show_header=True, header_style="bold cyan")
    summary.add_column("Metric", style="bold")
    summary.add_column("Value", justify="right")
    summary.add_row("Commits", str(stats.total_commits))
    summary.add_row("Authors", str(stats.total_authors))
    summary.add_row("Repositories", str(stats.total_repositories))
    summary.add_row("Commits today", str(stats.commits_today))
    summary.add_row("Avg commits / day", str(adv.avg_commits_per_day))
    summary.add_row("Avg lines / commit", str(adv.avg_lines_per_commit))
    summary.add_row("Most active hour", adv.most_active_hour)
    summary.add_row("Productivity score", f"{adv.productivity_score}/100")
    summary.add_row("Code churn", f"{adv.code_churn}%")
    summary.add_row("Commits / author", str(adv.commit_frequency))
    summary.add_row("Top repository", adv.top_repository)
    trend_style = "green" if adv.weekly_trend >= 0 else "red"
    summary.add_row("Weekly trend", f"[{trend_style}]{adv.weekly_trend:+d}%[/{trend_style}]")
    console.print(summary)

    if snapshot.authors:
        authors = Table(title="Authors", show_header=True, header_style="bold cyan")
        authors.add_column("Author", style="bold")
        authors.add_column("Email")
        authors.add_column("Commits", justify="right")
        authors.add_column("Lines +", justify="right", style="green")
        authors.add_column("Lines -", justify="right", style="red")
        authors.add_column("Last commit")
        for rollup in snapshot.authors:
            authors.add_row(
                rollup.name,
                rollup.email,
                str(rollup.total_commits),
                f"+{rollup.total_insertions}",
                f"-{rollup.total_deletions}",
                fmt_ts(rollup.last_commit_date),
            )
        console.print(authors)

        buckets = ", ".join(f"{b.name}: {b.value}" for b in adv.productivity_data)
        console.print(f"  Productivity distribution: {buckets}")

    if adv.timeline_data:
        timeline = Table(title="Timeline", show_header=True, header_style="bold cyan")
        timeline.add_column("Day")
        timeline.add_column("Commits", justify="right")
        timeline.add_column("Authors", justify="right")
        for point in adv.timeline_data:
            timeline.add_row(point.label, str(point.commits), str(point.authors))
        console.print(timeline)

    busy_hours = [h for h in adv.hourly_data if h.commits]
    if busy_hours:
        hourly = Table(title="Commits by Hour", show_header=True, header_style="bold cyan")
        hourly.add_column("Hour")
        hourly.add_column("Commits", justify="right")
        for point in busy_hours:
            hourly.add_row(f"{point.hour}:00", str(point.commits))
        console.print(hourly)

    if snapshot.team_status:
        team = Table(title="Team Status", show_header=True, header_style="bold cyan")
        team.add_column("Author", style="bold")
        team.add_column("Last commit")
        team.add_column("Status")
        for entry in snapshot.team_status:
            style = _STATUS_STYLE.get(entry.status, "white")
            if entry.status == "today":
                label = "committed today"
            else:
                label = f"{entry.days_since_last_commit} day(s) without a commit"
            team.add_row(entry.name, fmt_ts(entry.last_commit_date), f"[{style}]{label}[/{style}]")
        console.print(team)

    if snapshot.recent_commits:
        recent = Table(title="Recent Commits", show_header=True, header_style="bold cyan")
        recent.add_column("SHA", width=8)
        recent.add_column("Repository")
        recent.add_column("Author")
        recent.add_column("Message", max_width=50)
        recent.add_column("Date")
        for commit in snapshot.recent_commits:
            recent.add_row(
                commit.hash[:7],
                commit.repository,
                commit.author_name,
                commit.message[:50],
                fmt_ts(commit.timestamp),
            )
        console.print(recent)
