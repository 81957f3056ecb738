"""Operations that touch the outside world: snapshotting commits into a store
and pulling remote updates.

Both are separate from metrics computation, which only ever reads what was
already fetched.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from commitscope_core.errors import SourceUnavailable
from commitscope_core.models import FetchResult, RepositoryRef, SyncResult

if TYPE_CHECKING:
    from commitscope_core.git.source import GitCommitSource
    from commitscope_store.base import BaseStore

logger = logging.getLogger(__name__)


def sync_repositories(
    store: BaseStore,
    source: GitCommitSource,
    repositories: list[RepositoryRef],
) -> list[SyncResult]:
    """Register each repository in the store and merge in its current commits.

    The write is additive: listed commits are inserted or overwritten, and
    commits stored by an earlier sync stay even when the newest listing no
    longer returns them (history past max_commits, or rewritten by a rebase).
    Remove the repository to drop them.

    A repository that cannot be read is reported and skipped. Store errors
    (PersistenceFailure) propagate; each repository's commits are written as
    one atomic batch.
    """
    results = []
    for repo in repositories:
        store.upsert_repository(repo)
        if not source.is_valid_repository(repo.path):
            results.append(SyncResult(name=repo.name, status="error", message=f"Invalid repository: {repo.path}"))
            continue
        try:
            commits = source.list_commits(repo.path)
        except SourceUnavailable as e:
            logger.warning("Could not sync %s: %s", repo.name, e.reason)
            results.append(SyncResult(name=repo.name, status="error", message=e.reason))
            continue
        written = store.upsert_commits(commits, repo)
        results.append(SyncResult(name=repo.name, status="success", commits=written))
    return results


def fetch_updates(source: GitCommitSource, repositories: list[RepositoryRef]) -> list[FetchResult]:
    """Run ``git fetch`` in each repository. One failure never stops the rest."""
    results = []
    for repo in repositories:
        if not source.is_valid_repository(repo.path):
            results.append(FetchResult(name=repo.name, status="skipped", message="Invalid or missing repository."))
            continue
        try:
            source.fetch(repo.path)
        except SourceUnavailable as e:
            logger.warning("git fetch failed for %s: %s", repo.name, e.reason)
            results.append(FetchResult(name=repo.name, status="error", message=e.reason))
            continue
        results.append(FetchResult(name=repo.name, status="success", message="Updated."))
    return results
