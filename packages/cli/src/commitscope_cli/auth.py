"""Token lookup for the Gist snapshot store.

Only ``store: gist`` needs a token, so the CLI calls this lazily. Sources
are tried in order and the first non-empty one wins:

  COMMITSCOPE_GITHUB_TOKEN   a token scoped to the snapshot Gist
  GITHUB_TOKEN               the usual CI / shell override
  gh auth token              the local GitHub CLI session
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

TOKEN_ENV_VARS = ("COMMITSCOPE_GITHUB_TOKEN", "GITHUB_TOKEN")
GH_TIMEOUT_SECONDS = 5


def resolve_github_token() -> str | None:
    """Return a token with gist scope, or None when no source has one."""
    for name in TOKEN_ENV_VARS:
        value = os.environ.get(name, "").strip()
        if value:
            logger.debug("Using GitHub token from %s.", name)
            return value
    return _token_from_gh_session()


def _token_from_gh_session() -> str | None:
    try:
        completed = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=GH_TIMEOUT_SECONDS,
        )
    except FileNotFoundError:
        logger.debug("gh is not installed; the Gist store has no token.")
        return None
    except subprocess.TimeoutExpired:
        logger.debug("gh auth token did not answer within %ss.", GH_TIMEOUT_SECONDS)
        return None

    token = completed.stdout.strip() if completed.returncode == 0 else ""
    if not token:
        logger.debug("gh auth token returned no token (exit %s).", completed.returncode)
        return None
    return token
