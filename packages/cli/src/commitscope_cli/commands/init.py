"""init command: interactive setup wizard.

Writes .commitscope.yml with the repositories to track and the store to
snapshot them into, creating the team Gist when the gist store is chosen.
"""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from pathlib import Path

import click
import yaml
from rich.console import Console

from commitscope_cli.runtime import build_source
from commitscope_core.config import DEFAULT_CONFIG, repository_name_from_path

logger = logging.getLogger(__name__)

console = Console()

_GIST_FILENAME = "commitscope_snapshot.json"


@click.command("init")
@click.pass_context
def init_cmd(ctx):
    """Set up commitscope for your team.

    Creates .commitscope.yml listing the repositories to track and,
    optionally, a SQLite file or a shared GitHub Gist for snapshots.
    """
    config_path = Path(ctx.obj.get("config_path", ".commitscope.yml") if ctx.obj else ".commitscope.yml")
    console.print("\n[bold cyan]commitscope init[/bold cyan] - setup wizard\n")

    # --- Repositories ---
    source = build_source(DEFAULT_CONFIG)
    repositories: list[dict] = []
    detected = _detect_repo_root()
    if detected and click.confirm(f"Track the current repository ({detected})?", default=True):
        repositories.append({"path": detected, "name": repository_name_from_path(detected)})

    while True:
        path = click.prompt("Add a repository path (leave empty to finish)", default="", show_default=False)
        if not path:
            break
        resolved = str(Path(path).expanduser().resolve())
        if not source.is_valid_repository(resolved):
            console.print(f"[yellow]Not a git repository: {resolved}[/yellow]")
            continue
        if any(r["path"] == resolved for r in repositories):
            continue
        name = click.prompt("Display name", default=repository_name_from_path(resolved))
        repositories.append({"path": resolved, "name": name})

    # --- Choose store backend ---
    console.print("\nCommit snapshot store:")
    console.print("  [bold]none[/bold]    - dashboards read git directly (default)")
    console.print("  [bold]sqlite[/bold]  - local SQLite file, enables `sync` and `report`")
    console.print("  [bold]gist[/bold]    - shared GitHub Gist, same snapshot for the whole team")
    store_type = click.prompt(
        "Store backend",
        type=click.Choice(["none", "sqlite", "gist"]),
        default="none",
    )

    config: dict = {"repositories": repositories}

    if store_type == "none":
        # Overrides any store left in an existing config file.
        config["store"] = "noop"

    elif store_type == "sqlite":
        db_path = click.prompt("SQLite database path", default=DEFAULT_CONFIG["store_path"])
        config["store"] = "sqlite"
        if db_path != DEFAULT_CONFIG["store_path"]:
            config["store_path"] = db_path
        console.print(f"[green]SQLite store configured at {db_path}[/green]")

    elif store_type == "gist":
        console.print(
            "\n[yellow]Note:[/yellow] Gist store requires a token with [bold]gist[/bold] scope, "
            "read from COMMITSCOPE_GITHUB_TOKEN, GITHUB_TOKEN or your `gh auth login` session."
        )
        gist_id = _create_team_gist()
        if gist_id:
            console.print(f"[green]Created team Gist: {gist_id}[/green]")
            config["store"] = "gist"
            config["gist_id"] = gist_id
        else:
            console.print("[yellow]Gist creation failed. Add gist_id manually to .commitscope.yml[/yellow]")

    config["default_filter"] = click.prompt(
        "Default dashboard window",
        type=click.Choice(["today", "yesterday", "last3days", "lastweek", "lastmonth"]),
        default=DEFAULT_CONFIG["default_filter"],
    )

    _write_config(config_path, config)
    console.print(f"[green]Wrote {config_path}[/green]")

    console.print("\n[bold green]Setup complete![/bold green]")
    console.print("Open the dashboard with: [bold]commitscope dashboard[/bold]")
    if config.get("store") in ("sqlite", "gist"):
        console.print("Snapshot history with: [bold]commitscope sync[/bold]")


def _detect_repo_root() -> str | None:
    """Return the top-level directory of the git checkout we are in, if any."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def _create_team_gist() -> str | None:
    """Create a private Gist holding an empty snapshot and return its ID."""
    # gh names gist files after their path, so the temp file gets the final name.
    tmp_dir = tempfile.mkdtemp(prefix="commitscope_")
    named_path = os.path.join(tmp_dir, _GIST_FILENAME)
    with open(named_path, "w", encoding="utf-8") as fh:
        fh.write('{"repositories": [], "commits": []}')

    try:
        result = subprocess.run(
            [
                "gh",
                "gist",
                "create",
                "--public=false",
                "--desc",
                "commitscope commit snapshot",
                named_path,
            ],
            capture_output=True,
            text=True,
            timeout=15,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    finally:
        os.unlink(named_path)
        os.rmdir(tmp_dir)

    if result.returncode == 0:
        gist_url = result.stdout.strip()
        return gist_url.rstrip("/").split("/")[-1]
    logger.warning("gh gist create failed: %s", result.stderr.strip())
    return None


def _write_config(path: Path, config: dict) -> None:
    """Write or update the config file, preserving any existing keys."""
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))
