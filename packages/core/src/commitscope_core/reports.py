"""Period report over stored commits: totals, top authors, commits per day."""

from __future__ import annotations

from datetime import tzinfo
from typing import Iterable

from commitscope_core.metrics import build_author_rollups
from commitscope_core.models import ActivityReport, CommitRecord, ReportAuthor, ReportDay, ReportTotals

TOP_AUTHORS = 10


def build_report(commits: Iterable[CommitRecord], *, top: int = TOP_AUTHORS, tz: tzinfo | None = None) -> ActivityReport:
    """Summarise ``commits``. Days are calendar days in ``tz`` (system local when None)."""
    commits = list(commits)
    rollups = build_author_rollups(commits)

    general = ReportTotals(
        total_commits=len(commits),
        total_authors=len(rollups),
        total_repositories=len({c.repository for c in commits}),
        total_files_changed=sum(c.files_changed for c in commits),
        total_insertions=sum(c.insertions for c in commits),
        total_deletions=sum(c.deletions for c in commits),
    )

    top_authors = [
        ReportAuthor(
            author_name=r.name,
            author_email=r.email,
            commits_count=r.total_commits,
            total_files=sum(c.files_changed for c in r.commits),
            total_insertions=r.total_insertions,
            total_deletions=r.total_deletions,
        )
        for r in rollups[:top]
    ]

    days: dict = {}
    for commit in commits:
        day = commit.timestamp.astimezone(tz).date()
        count, emails = days.get(day, (0, set()))
        emails.add(commit.author_email)
        days[day] = (count + 1, emails)
    commits_by_day = [
        ReportDay(day=day, commits_count=count, authors_count=len(emails))
        for day, (count, emails) in sorted(days.items())
    ]

    return ActivityReport(general=general, top_authors=top_authors, commits_by_day=commits_by_day)
