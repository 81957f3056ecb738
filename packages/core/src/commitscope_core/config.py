import os
from pathlib import Path
from typing import Optional

import yaml

from commitscope_core.models import RepositoryRef

DEFAULT_CONFIG: dict = {
    "repositories": [],  # paths, or {"name": ..., "path": ...} mappings
    "store": "noop",
    "store_path": ".commitscope.db",
    "gist_id": None,
    "max_commits": 1000,
    "git_timeout": 10,  # seconds per git invocation
    "max_workers": 4,
    "all_branches": False,
    "default_filter": "today",
    "week_start": "monday",
    "branch_limit": 10,
}

_WEEK_STARTS = {"monday": 0, "sunday": 6}


def load_config(config_path: str = ".commitscope.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .commitscope.yml in the current directory
      3. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "repositories": list(DEFAULT_CONFIG["repositories"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    db_path = os.environ.get("COMMITSCOPE_DB")
    if db_path:
        config["store_path"] = db_path
    config["github_token"] = os.environ.get("COMMITSCOPE_GITHUB_TOKEN") or os.environ.get("GITHUB_TOKEN")

    return config


def load_repositories(config: dict) -> list[RepositoryRef]:
    """
    Turn the ``repositories`` config entries into RepositoryRefs.

    A bare string is a path whose last segment becomes the name. Mappings must
    carry ``path`` and may carry ``name``. Duplicate paths keep the first entry.
    """
    refs: list[RepositoryRef] = []
    seen: set[str] = set()
    for entry in config.get("repositories") or []:
        if isinstance(entry, str):
            path, name = entry, None
        elif isinstance(entry, dict) and entry.get("path"):
            path, name = str(entry["path"]), entry.get("name")
        else:
            raise ValueError(f"Invalid repository entry in config: {entry!r}")
        path = str(Path(path).expanduser())
        if path in seen:
            continue
        seen.add(path)
        refs.append(RepositoryRef(id=path, name=name or repository_name_from_path(path), path=path))
    return refs


def repository_name_from_path(path: str) -> str:
    return Path(path.rstrip("/\\")).name or path


def week_start_index(config: dict) -> int:
    """Return the configured first weekday as a ``date.weekday()`` index."""
    value = str(config.get("week_start", "monday")).lower()
    if value not in _WEEK_STARTS:
        raise ValueError(f"Unknown week_start: {value!r}. Choose 'monday' or 'sunday'.")
    return _WEEK_STARTS[value]
