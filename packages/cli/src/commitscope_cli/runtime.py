"""Helpers shared by CLI commands: building collaborators from config and
turning core errors into click errors."""

from __future__ import annotations

from datetime import datetime, time

import click

from commitscope_core.aggregator import CommitAggregator
from commitscope_core.config import load_repositories, week_start_index
from commitscope_core.errors import MissingDateRange, PersistenceFailure
from commitscope_core.git.source import GitCommitSource
from commitscope_core.models import RepositoryRef, TimeWindow
from commitscope_core.windows import resolve_window

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M:%S"]


def build_source(config: dict) -> GitCommitSource:
    return GitCommitSource(
        timeout=config.get("git_timeout", 10),
        max_commits=config.get("max_commits", 1000),
        all_branches=bool(config.get("all_branches", False)),
    )


def build_aggregator(config: dict) -> CommitAggregator:
    return CommitAggregator(build_source(config), max_workers=config.get("max_workers", 4))


def get_store(ctx: click.Context, *, required: bool = False):
    """Return the store built by the entry point; with ``required``, refuse the no-op store."""
    from commitscope_store.noop import NoOpStore

    store = ctx.obj.get("store") if ctx.obj else None
    if required and (store is None or isinstance(store, NoOpStore)):
        raise click.UsageError(
            "No store configured. Add 'store: sqlite' or 'store: gist' to .commitscope.yml, "
            "or run `commitscope init` to set one up."
        )
    return store or NoOpStore()


def resolve_repositories(config: dict, store) -> list[RepositoryRef]:
    """Repositories from the config file first, then those registered in the store (deduplicated by path)."""
    try:
        repositories = load_repositories(config)
    except ValueError as e:
        raise click.UsageError(str(e))
    seen = {r.path for r in repositories}
    try:
        stored = store.list_repositories()
    except PersistenceFailure as e:
        raise click.ClickException(str(e))
    for ref in stored:
        if ref.path not in seen:
            seen.add(ref.path)
            repositories.append(ref)
    return repositories


def select_repository(repositories: list[RepositoryRef], name: str) -> RepositoryRef:
    for ref in repositories:
        if name in (ref.name, ref.path, ref.id):
            return ref
    raise click.UsageError(f"Unknown repository: {name}")


def resolve_cli_window(
    config: dict,
    filter_type: str | None,
    start: datetime | None,
    end: datetime | None,
    now: datetime,
) -> TimeWindow:
    """Resolve the window for a command. A date-only ``end`` covers that whole day."""
    if end is not None and end.time() == time.min:
        end = datetime.combine(end.date(), time.max, tzinfo=end.tzinfo)
    try:
        return resolve_window(
            filter_type or config.get("default_filter", "today"),
            start,
            end,
            now=now,
            week_start=week_start_index(config),
        )
    except MissingDateRange as e:
        raise click.UsageError(f"{e} Use --start and --end with --filter custom.")
    except ValueError as e:
        raise click.UsageError(str(e))


def fmt_ts(ts: datetime | None) -> str:
    if ts is None:
        return ""
    return ts.astimezone().strftime("%Y-%m-%d %H:%M")
