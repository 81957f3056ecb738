"""Branch-level and developer-level activity views."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from commitscope_core.aggregator import group_by
from commitscope_core.models import BranchAuthor, BranchStats, CommitRecord, DeveloperActivity
from commitscope_core.windows import local_now, start_of_day

ACTIVE_DAYS = 7


def branch_stats(
    commits: Iterable[CommitRecord],
    *,
    now: datetime | None = None,
    active_days: int = ACTIVE_DAYS,
) -> list[BranchStats]:
    """One row per (repository, branch), most recently active first."""
    now = now or local_now()
    cutoff = now - timedelta(days=active_days)
    rows = []
    for (repository, branch), members in group_by(commits, lambda c: (c.repository, c.branch), newest_first=True).items():
        authors: dict[str, BranchAuthor] = {}
        for commit in members:
            author = authors.get(commit.author_email)
            if author is None:
                authors[commit.author_email] = BranchAuthor(
                    name=commit.author_name,
                    email=commit.author_email,
                    commits=1,
                    last_commit=commit.timestamp,
                )
            else:
                author.commits += 1
        last_activity = members[0].timestamp
        rows.append(
            BranchStats(
                branch=branch,
                repository=repository,
                total_commits=len(members),
                total_authors=len(authors),
                last_activity=last_activity,
                is_active=last_activity >= cutoff,
                authors=sorted(authors.values(), key=lambda a: a.commits, reverse=True),
            )
        )
    return sorted(rows, key=lambda r: r.last_activity, reverse=True)


def developer_activity(commits: Iterable[CommitRecord], *, now: datetime | None = None) -> list[DeveloperActivity]:
    """One row per author email, most recently active first.

    Name, last message, repository and branch come from the author's newest
    commit.
    """
    now = now or local_now()
    today_start = start_of_day(now)
    week_start = now - timedelta(days=7)
    rows = []
    for email, members in group_by(commits, lambda c: c.author_email, newest_first=True).items():
        latest = members[0]
        branches: list[str] = []
        repositories: list[str] = []
        for commit in members:
            if commit.branch not in branches:
                branches.append(commit.branch)
            if commit.repository not in repositories:
                repositories.append(commit.repository)
        rows.append(
            DeveloperActivity(
                author=latest.author_name,
                email=email,
                last_activity=latest.timestamp,
                last_commit_message=latest.message,
                last_repository=latest.repository,
                last_branch=latest.branch,
                commits_today=sum(1 for c in members if c.timestamp >= today_start),
                commits_week=sum(1 for c in members if c.timestamp >= week_start),
                active_branches=branches,
                repositories=repositories,
            )
        )
    return sorted(rows, key=lambda r: r.last_activity, reverse=True)
