"""CLI entry point for commitscope.

Commands:
  dashboard  commit metrics for a date window, read live from git
  repos      register, list and remove repositories
  sync       snapshot commits into the configured store
  fetch      pull remote updates (never run implicitly by dashboard)
  branches   branch and developer activity
  report     period report from the stored snapshot
  init       interactive setup wizard
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from commitscope_cli.commands.branches import branches_cmd
from commitscope_cli.commands.dashboard import dashboard_cmd
from commitscope_cli.commands.fetch import fetch_cmd
from commitscope_cli.commands.init import init_cmd
from commitscope_cli.commands.repos import repos_cmd
from commitscope_cli.commands.report import report_cmd
from commitscope_cli.commands.sync import sync_cmd

console = Console()


def _build_store(config: dict):
    """Instantiate the configured store from .commitscope.yml settings.

    Store selection hierarchy:
      store: gist   → GistStore  (requires gist_id and github_token)
      store: sqlite → SQLiteStore (requires store_path or uses .commitscope.db)
      (default)     → NoOpStore  (no persistence; dashboards read git directly)

    This factory lives in cli.py so neither commitscope_core nor
    commitscope_store know about the CLI config format.
    """
    from commitscope_store.noop import NoOpStore

    store_type = config.get("store", "noop")

    if store_type == "gist":
        from commitscope_store.gist import GistStore

        gist_id = config.get("gist_id")
        token = config.get("github_token")
        if not gist_id or not token:
            console.print("[yellow]GistStore requires gist_id and a GitHub token. Falling back to no store.[/yellow]")
            return NoOpStore()
        return GistStore(gist_id=gist_id, token=token)

    if store_type == "sqlite":
        from commitscope_store.sqlite import SQLiteStore

        db_path = config.get("store_path", ".commitscope.db")
        return SQLiteStore(db_path=db_path)

    return NoOpStore()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=verbose)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("commitscope"),
    prog_name="commitscope",
)
@click.option(
    "--config",
    "config_path",
    default=".commitscope.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="COMMITSCOPE_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log git calls and recovered errors.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Git activity dashboard for a small team's local repositories."""
    from commitscope_core.config import load_config
    from commitscope_core.errors import PersistenceFailure
    from commitscope_cli.auth import resolve_github_token

    _configure_logging(verbose)
    ctx.ensure_object(dict)

    config = load_config(config_path)

    # Only the Gist store needs a token; skip the gh CLI call otherwise.
    if config.get("store") == "gist" and not config.get("github_token"):
        config["github_token"] = resolve_github_token()

    try:
        store = _build_store(config)
    except PersistenceFailure as e:
        raise click.ClickException(str(e))
    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.obj["config_path"] = config_path
    ctx.call_on_close(store.close)


main.add_command(dashboard_cmd)
main.add_command(repos_cmd)
main.add_command(sync_cmd)
main.add_command(fetch_cmd)
main.add_command(branches_cmd)
main.add_command(report_cmd)
main.add_command(init_cmd)
