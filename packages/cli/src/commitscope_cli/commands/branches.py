"""branches command: branch activity and per-developer activity."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from commitscope_cli.runtime import build_aggregator, fmt_ts, get_store, resolve_repositories, select_repository
from commitscope_core.branches import branch_stats, developer_activity
from commitscope_core.errors import SourceUnavailable
from commitscope_core.windows import local_now

console = Console()


@click.command("branches")
@click.option("--repo", "repo_name", default=None, help="Only this repository (name, path or ID).")
@click.option("--branch", default=None, help="Show the latest commits of one branch. Requires --repo.")
@click.option("--limit", type=int, default=None, help="Commits to show with --branch. Defaults to branch_limit.")
@click.pass_context
def branches_cmd(ctx, repo_name: str | None, branch: str | None, limit: int | None):
    """Show which branches are active and who is working where.

    Every branch, local and remote, is scanned. Remote branches only reflect
    the last `commitscope fetch`.
    """
    config = dict(ctx.obj["config"])
    config["all_branches"] = True

    repositories = resolve_repositories(config, get_store(ctx))
    if repo_name is not None:
        repositories = [select_repository(repositories, repo_name)]
    if not repositories:
        console.print("[yellow]No repositories configured.[/yellow]")
        return

    aggregator = build_aggregator(config)

    if branch is not None:
        if repo_name is None:
            raise click.UsageError("--branch requires --repo.")
        limit = limit or config.get("branch_limit", 10)
        try:
            commits = aggregator.commits_for_branch(repositories[0], branch, limit=limit)
        except SourceUnavailable as e:
            raise click.ClickException(str(e))
        _print_branch_commits(repositories[0].name, branch, commits)
        return

    result = aggregator.aggregate(repositories)
    for error in result.errors:
        console.print(f"[yellow]Warning: {error}[/yellow]")
    if not result.commits:
        console.print("[yellow]No commits found.[/yellow]")
        return

    now = local_now()
    _print_branch_stats(branch_stats(result.commits, now=now))
    _print_developers(developer_activity(result.commits, now=now))


def _print_branch_commits(repository: str, branch: str, commits) -> None:
    if not commits:
        console.print(f"[yellow]No commits found on {branch}.[/yellow]")
        return
    table = Table(title=f"{repository} / {branch}", show_header=True, header_style="bold cyan")
    table.add_column("SHA", width=8)
    table.add_column("Author")
    table.add_column("Message", max_width=60)
    table.add_column("Date")
    for c in commits:
        table.add_row(c.hash[:7], c.author_name, c.message[:60], fmt_ts(c.timestamp))
    console.print(table)


def _print_branch_stats(rows) -> None:
    table = Table(title="Branches", show_header=True, header_style="bold cyan")
    table.add_column("Repository", style="bold")
    table.add_column("Branch")
    table.add_column("Commits", justify="right")
    table.add_column("Authors", justify="right")
    table.add_column("Last activity")
    table.add_column("Active")
    for r in rows:
        active = "[green]yes[/green]" if r.is_active else "[dim]no[/dim]"
        table.add_row(
            r.repository, r.branch, str(r.total_commits), str(r.total_authors), fmt_ts(r.last_activity), active
        )
    console.print(table)


def _print_developers(rows) -> None:
    table = Table(title="Developers", show_header=True, header_style="bold cyan")
    table.add_column("Author", style="bold")
    table.add_column("Today", justify="right")
    table.add_column("Week", justify="right")
    table.add_column("Last commit", max_width=40)
    table.add_column("Where")
    table.add_column("When")
    for d in rows:
        table.add_row(
            d.author,
            str(d.commits_today),
            str(d.commits_week),
            d.last_commit_message[:40],
            f"{d.last_repository}:{d.last_branch}",
            fmt_ts(d.last_activity),
        )
    console.print(table)
