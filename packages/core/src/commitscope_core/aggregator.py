"""Merge commits from several repositories into one newest-first collection.

Each repository is read independently on a bounded thread pool. A repository
that is invalid or fails to list contributes no commits and exactly one
diagnostic string; the remaining repositories are still aggregated. The final
order is always re-derived by an explicit sort, so concurrent and sequential
runs produce the same result.
"""

from __future__ import annotations

import dataclasses
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Callable, Hashable, Iterable, TypeVar

from commitscope_core.errors import SourceUnavailable
from commitscope_core.git.source import remote_branch_ref, short_branch_name
from commitscope_core.models import AggregationResult, CommitRecord, RepositoryRef

if TYPE_CHECKING:
    from commitscope_core.git.source import GitCommitSource

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)

DEFAULT_BRANCH_LIMIT = 10


def sort_newest_first(commits: Iterable[CommitRecord]) -> list[CommitRecord]:
    """Stable sort by timestamp, most recent first."""
    return sorted(commits, key=lambda c: c.timestamp, reverse=True)


def group_by(
    commits: Iterable[CommitRecord],
    key_fn: Callable[[CommitRecord], K],
    *,
    newest_first: bool = False,
) -> dict[K, list[CommitRecord]]:
    """Group commits by ``key_fn``; groups appear in order of first appearance.

    With ``newest_first`` each group is additionally sorted by timestamp,
    most recent first.
    """
    groups: dict[K, list[CommitRecord]] = {}
    for commit in commits:
        groups.setdefault(key_fn(commit), []).append(commit)
    if newest_first:
        for key, members in groups.items():
            groups[key] = sort_newest_first(members)
    return groups


class CommitAggregator:
    def __init__(self, source: GitCommitSource, max_workers: int = 4):
        self._source = source
        self._max_workers = max(1, max_workers)

    def aggregate(self, repositories: list[RepositoryRef]) -> AggregationResult:
        """Pull every repository's history and merge it newest first."""
        if not repositories:
            return AggregationResult()

        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(repositories))) as ex:
            futs = [ex.submit(self._collect, repo) for repo in repositories]
            # Results are read in submission order, never completion order.
            outcomes = [fut.result() for fut in futs]

        result = AggregationResult()
        merged: list[CommitRecord] = []
        for commits, error in outcomes:
            merged.extend(commits)
            if error is not None:
                result.errors.append(error)
        result.commits = sort_newest_first(merged)
        return result

    def _collect(self, repo: RepositoryRef) -> tuple[list[CommitRecord], str | None]:
        if not self._source.is_valid_repository(repo.path):
            logger.warning("Skipping invalid repository %s (%s)", repo.name, repo.path)
            return [], f"Invalid repository: {repo.name} ({repo.path})"
        try:
            commits = self._source.list_commits(repo.path)
        except SourceUnavailable as e:
            logger.warning("Could not read commits from %s: %s", repo.name, e.reason)
            return [], f"Error in repository {repo.name}: {e.reason}"
        except Exception as e:
            logger.exception("Unexpected error reading %s", repo.name)
            return [], f"Error in repository {repo.name}: {e}"
        return [dataclasses.replace(c, repository=repo.name) for c in commits], None

    def commits_for_branch(
        self,
        repo: RepositoryRef,
        branch: str,
        limit: int = DEFAULT_BRANCH_LIMIT,
    ) -> list[CommitRecord]:
        """Return at most ``limit`` newest commits of ``branch`` as seen on ``origin``.

        Raises SourceUnavailable when the repository cannot be read.
        """
        if not self._source.is_valid_repository(repo.path):
            raise SourceUnavailable(repo.path, f"{repo.name} is not a git repository")
        ref = remote_branch_ref(branch)
        commits = self._source.list_commits(repo.path, ref=ref, max_count=limit)
        tagged = [dataclasses.replace(c, repository=repo.name, branch=short_branch_name(ref)) for c in commits]
        return sort_newest_first(tagged)[:limit]
