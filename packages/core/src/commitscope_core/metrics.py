"""Dashboard metrics derived from an aggregated commit collection.

Two commit sets are involved and are never conflated:

- the all-time set: every commit fetched, regardless of the active window.
  Only the team status list, ``commits_today`` and the weekly trend read it,
  because those are defined relative to *now*.
- the filtered set: the all-time set restricted to the window. Every other
  statistic reads it.

Computation is synchronous and pure. Identical inputs (including ``now``)
always yield an equal MetricsSnapshot. Empty inputs resolve to zero or
``"N/A"`` fallbacks; nothing here divides by zero.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo
from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal
from typing import Iterable

from commitscope_core.aggregator import sort_newest_first
from commitscope_core.models import (
    AdvancedMetrics,
    AuthorActivityPoint,
    AuthorRollup,
    CommitRecord,
    DashboardStats,
    HourlyPoint,
    MetricsSnapshot,
    ProductivityBucket,
    TeamStatusEntry,
    TimelinePoint,
    TimeWindow,
)
from commitscope_core.windows import local_now

NOT_AVAILABLE = "N/A"
TIMELINE_DAYS = 14
TOP_AUTHORS = 10
RECENT_COMMITS = 10
HIGH_PRODUCTIVITY = 10
MEDIUM_PRODUCTIVITY = 5


def round_half_up(value: float, digits: int = 0):
    """Round halves towards positive infinity: 2.5 -> 3, -2.5 -> -2.

    Returns an int for ``digits == 0``, else a float.
    """
    quantum = Decimal(1).scaleb(-digits)
    exact = Decimal(str(value))
    rounded = exact.quantize(quantum, rounding=ROUND_HALF_UP if exact >= 0 else ROUND_HALF_DOWN)
    return int(rounded) if digits == 0 else float(rounded)


def _local_date(ts: datetime, tz: tzinfo | None) -> date:
    return ts.astimezone(tz).date()


def _first_name(name: str, fallback: str) -> str:
    parts = name.split()
    return parts[0] if parts else fallback


def _repository_label(repository: str) -> str:
    """Last path segment of a repository name or path."""
    segments = [s for s in repository.replace("\\", "/").split("/") if s]
    return segments[-1] if segments else repository


def _most_common_first_seen(values: Iterable) -> tuple[object, int] | None:
    """Return the most frequent value; ties go to the value seen first."""
    counts: dict = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    best = None
    for value, count in counts.items():
        if best is None or count > best[1]:
            best = (value, count)
    return best


def filter_window(commits: Iterable[CommitRecord], window: TimeWindow) -> list[CommitRecord]:
    """Commits inside the inclusive window, in their original order."""
    return [c for c in commits if window.contains(c.timestamp)]


def build_author_rollups(commits: Iterable[CommitRecord]) -> list[AuthorRollup]:
    """Group commits by author email.

    The first commit seen for an email fixes the display name. The result is
    sorted by commit count, descending; ties keep first-seen order.
    """
    rollups: dict[str, AuthorRollup] = {}
    for commit in commits:
        rollup = rollups.get(commit.author_email)
        if rollup is None:
            rollup = AuthorRollup(
                name=commit.author_name,
                email=commit.author_email,
                last_commit_date=commit.timestamp,
            )
            rollups[commit.author_email] = rollup
        rollup.commits.append(commit)
        rollup.total_commits += 1
        rollup.total_insertions += commit.insertions
        rollup.total_deletions += commit.deletions
        if commit.timestamp > rollup.last_commit_date:
            rollup.last_commit_date = commit.timestamp
    return sorted(rollups.values(), key=lambda r: r.total_commits, reverse=True)


def team_status(all_time_commits: Iterable[CommitRecord], now: datetime) -> list[TeamStatusEntry]:
    """Last known activity per author, most overdue author first."""
    tz = now.tzinfo
    today = now.date()
    entries = []
    for rollup in build_author_rollups(all_time_commits):
        days = (today - _local_date(rollup.last_commit_date, tz)).days
        if days <= 0:
            status = "today"
        elif days == 1:
            status = "yesterday"
        elif days <= 7:
            status = "this_week"
        else:
            status = "inactive"
        entries.append(
            TeamStatusEntry(
                name=rollup.name,
                email=rollup.email,
                last_commit_date=rollup.last_commit_date,
                days_since_last_commit=max(days, 0),
                status=status,
            )
        )
    return sorted(entries, key=lambda e: e.last_commit_date)


def weekly_trend(all_time_commits: Iterable[CommitRecord], now: datetime) -> int:
    """Percent change of the last 7 days against the 7 days before them.

    Both periods are exact 7 x 24h spans, so a DST change inside them does
    not move the boundary.
    """
    now = now.astimezone(timezone.utc)
    week_ago = now - timedelta(days=7)
    two_weeks_ago = now - timedelta(days=14)
    recent = previous = 0
    for commit in all_time_commits:
        if week_ago <= commit.timestamp <= now:
            recent += 1
        elif two_weeks_ago <= commit.timestamp < week_ago:
            previous += 1
    if previous > 0:
        return round_half_up((recent - previous) / previous * 100)
    return 100 if recent > 0 else 0


def timeline(commits: Iterable[CommitRecord], tz: tzinfo | None, days: int = TIMELINE_DAYS) -> list[TimelinePoint]:
    """Per-day commit and author counts for the most recent ``days`` days that have commits.

    Days without commits are absent, not zero-filled. Points are chronological.
    """
    buckets: dict[date, tuple[int, set[str]]] = {}
    for commit in sorted(commits, key=lambda c: c.timestamp):
        day = _local_date(commit.timestamp, tz)
        count, emails = buckets.get(day, (0, set()))
        emails.add(commit.author_email)
        buckets[day] = (count + 1, emails)
    points = [
        TimelinePoint(day=day, label=day.strftime("%d/%m"), commits=count, authors=len(emails))
        for day, (count, emails) in buckets.items()
    ]
    return points[-days:]


def hourly_histogram(commits: Iterable[CommitRecord], tz: tzinfo | None) -> list[HourlyPoint]:
    counts = [0] * 24
    for commit in commits:
        counts[commit.timestamp.astimezone(tz).hour] += 1
    return [HourlyPoint(hour=f"{hour:02d}", commits=count) for hour, count in enumerate(counts)]


def productivity_buckets(rollups: list[AuthorRollup]) -> list[ProductivityBucket]:
    high = sum(1 for r in rollups if r.total_commits >= HIGH_PRODUCTIVITY)
    medium = sum(1 for r in rollups if MEDIUM_PRODUCTIVITY <= r.total_commits < HIGH_PRODUCTIVITY)
    low = sum(1 for r in rollups if r.total_commits < MEDIUM_PRODUCTIVITY)
    return [
        ProductivityBucket(name="High", value=high),
        ProductivityBucket(name="Medium", value=medium),
        ProductivityBucket(name="Low", value=low),
    ]


class MetricsEngine:
    """Derives a MetricsSnapshot from the all-time commit set and a window."""

    def compute(
        self,
        all_time_commits: Iterable[CommitRecord],
        window: TimeWindow,
        repository_count: int,
        *,
        now: datetime | None = None,
    ) -> MetricsSnapshot:
        now = now or local_now()
        all_time = list(all_time_commits)
        filtered = filter_window(all_time, window)
        authors = build_author_rollups(filtered)

        stats = DashboardStats(
            total_commits=len(filtered),
            total_authors=len(authors),
            total_repositories=repository_count,
            commits_today=sum(1 for c in all_time if _local_date(c.timestamp, now.tzinfo) == now.date()),
        )

        return MetricsSnapshot(
            window=window,
            stats=stats,
            authors=authors,
            team_status=team_status(all_time, now),
            advanced=self.advanced_metrics(filtered, all_time, authors, now),
            recent_commits=sort_newest_first(filtered)[:RECENT_COMMITS],
        )

    def advanced_metrics(
        self,
        filtered: list[CommitRecord],
        all_time: list[CommitRecord],
        authors: list[AuthorRollup],
        now: datetime,
    ) -> AdvancedMetrics:
        tz = now.tzinfo
        count = len(filtered)
        if count == 0:
            return AdvancedMetrics(
                weekly_trend=weekly_trend(all_time, now),
                productivity_data=productivity_buckets(authors),
                hourly_data=hourly_histogram(filtered, tz),
            )

        active_days = {_local_date(c.timestamp, tz) for c in filtered}
        avg_commits_per_day = round_half_up(count / len(active_days), 1)

        total_insertions = sum(c.insertions for c in filtered)
        total_deletions = sum(c.deletions for c in filtered)
        avg_lines_per_commit = round_half_up((total_insertions + total_deletions) / count)

        # Heuristic, not a calibrated score: built from the rounded averages above.
        score = round_half_up(avg_commits_per_day * 10 + avg_lines_per_commit / 10 + count / 10)

        busiest_hour = _most_common_first_seen(c.timestamp.astimezone(tz).hour for c in filtered)
        top_repo = _most_common_first_seen(_repository_label(c.repository) for c in filtered)

        return AdvancedMetrics(
            avg_commits_per_day=avg_commits_per_day,
            avg_lines_per_commit=avg_lines_per_commit,
            most_active_hour=f"{busiest_hour[0]}h",
            productivity_score=min(100, score),
            code_churn=round_half_up(total_deletions / total_insertions * 100) if total_insertions > 0 else 0,
            commit_frequency=round_half_up(count / len(authors), 1) if authors else 0,
            top_repository=str(top_repo[0]) if top_repo[0] else NOT_AVAILABLE,
            weekly_trend=weekly_trend(all_time, now),
            timeline_data=timeline(filtered, tz),
            author_activity_data=[
                AuthorActivityPoint(
                    name=_first_name(r.name, r.email),
                    email=r.email,
                    commits=r.total_commits,
                    insertions=r.total_insertions,
                    deletions=r.total_deletions,
                )
                for r in authors[:TOP_AUTHORS]
            ],
            productivity_data=productivity_buckets(authors),
            hourly_data=hourly_histogram(filtered, tz),
        )
