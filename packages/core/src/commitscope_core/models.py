"""Commit and metrics data models.

The core owns these types; the store layer persists them and the CLI renders
them. Every timestamp is timezone-aware.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime

DEFAULT_BRANCH = "main"


@dataclass(frozen=True)
class CommitRecord:
    """One commit as reported by the commit source.

    ``repository`` is assigned by the aggregator, not the source. Records are
    never mutated; re-tagging goes through ``dataclasses.replace``.
    """

    hash: str
    author_name: str
    author_email: str
    timestamp: datetime
    message: str
    repository: str = ""
    files_changed: int = 0
    insertions: int = 0
    deletions: int = 0
    branch: str = DEFAULT_BRANCH


@dataclass(frozen=True)
class RepositoryRef:
    """A locally checked-out repository to pull commits from."""

    id: str
    name: str
    path: str


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive ``[start, end]`` instant range."""

    start: datetime
    end: datetime

    def contains(self, ts: datetime) -> bool:
        return self.start <= ts <= self.end


@dataclass
class AggregationResult:
    """Merged commits from every repository plus one diagnostic per failed repository."""

    commits: list[CommitRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class AuthorRollup:
    name: str
    email: str
    commits: list[CommitRecord] = field(default_factory=list)
    total_commits: int = 0
    total_insertions: int = 0
    total_deletions: int = 0
    last_commit_date: datetime | None = None


@dataclass
class DashboardStats:
    total_commits: int = 0
    total_authors: int = 0
    total_repositories: int = 0
    commits_today: int = 0


@dataclass
class TeamStatusEntry:
    """Last known activity of one author, independent of the active window."""

    name: str
    email: str
    last_commit_date: datetime
    days_since_last_commit: int
    status: str  # "today" | "yesterday" | "this_week" | "inactive"


@dataclass
class TimelinePoint:
    day: date
    label: str  # dd/mm
    commits: int
    authors: int


@dataclass
class AuthorActivityPoint:
    name: str  # first name only
    email: str
    commits: int
    insertions: int
    deletions: int


@dataclass
class ProductivityBucket:
    name: str  # "High" | "Medium" | "Low"
    value: int


@dataclass
class HourlyPoint:
    hour: str  # "00".."23"
    commits: int


@dataclass
class AdvancedMetrics:
    avg_commits_per_day: float = 0
    avg_lines_per_commit: int = 0
    most_active_hour: str = "N/A"
    productivity_score: int = 0
    code_churn: int = 0
    commit_frequency: float = 0
    top_repository: str = "N/A"
    weekly_trend: int = 0
    timeline_data: list[TimelinePoint] = field(default_factory=list)
    author_activity_data: list[AuthorActivityPoint] = field(default_factory=list)
    productivity_data: list[ProductivityBucket] = field(default_factory=list)
    hourly_data: list[HourlyPoint] = field(default_factory=list)


@dataclass
class MetricsSnapshot:
    """Everything the dashboard shows for one window, recomputed wholesale per request."""

    window: TimeWindow
    stats: DashboardStats
    authors: list[AuthorRollup]
    team_status: list[TeamStatusEntry]
    advanced: AdvancedMetrics
    recent_commits: list[CommitRecord]

    def to_dict(self) -> dict:
        """Return a JSON-ready dict. Author rollups list commit hashes instead of full records."""
        data = asdict(self)
        for rollup, author in zip(data["authors"], self.authors):
            rollup["commits"] = [c.hash for c in author.commits]
        return _jsonable(data)


@dataclass
class BranchAuthor:
    name: str
    email: str
    commits: int
    last_commit: datetime


@dataclass
class BranchStats:
    branch: str
    repository: str
    total_commits: int
    total_authors: int
    last_activity: datetime
    is_active: bool
    authors: list[BranchAuthor] = field(default_factory=list)


@dataclass
class DeveloperActivity:
    author: str
    email: str
    last_activity: datetime
    last_commit_message: str
    last_repository: str
    last_branch: str
    commits_today: int = 0
    commits_week: int = 0
    active_branches: list[str] = field(default_factory=list)
    repositories: list[str] = field(default_factory=list)


@dataclass
class ReportAuthor:
    author_name: str
    author_email: str
    commits_count: int
    total_files: int
    total_insertions: int
    total_deletions: int


@dataclass
class ReportDay:
    day: date
    commits_count: int
    authors_count: int


@dataclass
class ReportTotals:
    total_commits: int = 0
    total_authors: int = 0
    total_repositories: int = 0
    total_files_changed: int = 0
    total_insertions: int = 0
    total_deletions: int = 0


@dataclass
class ActivityReport:
    general: ReportTotals
    top_authors: list[ReportAuthor] = field(default_factory=list)
    commits_by_day: list[ReportDay] = field(default_factory=list)

    def to_dict(self) -> dict:
        return _jsonable(asdict(self))


@dataclass
class SyncResult:
    name: str
    status: str  # "success" | "error"
    commits: int = 0
    message: str = ""


@dataclass
class FetchResult:
    name: str
    status: str  # "success" | "skipped" | "error"
    message: str = ""


def _jsonable(value):
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value
