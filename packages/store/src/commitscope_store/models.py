"""Store query models and record (de)serialisation shared by the backends."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from commitscope_core.models import DEFAULT_BRANCH, CommitRecord, RepositoryRef


@dataclass(frozen=True)
class CommitFilter:
    """Optional constraints for ``BaseStore.query_commits``. Bounds are inclusive."""

    start: datetime | None = None
    end: datetime | None = None
    author_email: str | None = None
    repository_name: str | None = None

    def matches(self, record: CommitRecord) -> bool:
        if self.start is not None and record.timestamp < self.start:
            return False
        if self.end is not None and record.timestamp > self.end:
            return False
        if self.author_email is not None and record.author_email != self.author_email:
            return False
        if self.repository_name is not None and record.repository != self.repository_name:
            return False
        return True


def to_utc_string(ts: datetime) -> str:
    """Fixed-width UTC ISO-8601 so stored timestamps compare correctly as text."""
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


def commit_to_dict(record: CommitRecord, repository: RepositoryRef) -> dict:
    return {
        "hash": record.hash,
        "author_name": record.author_name,
        "author_email": record.author_email,
        "date": to_utc_string(record.timestamp),
        "message": record.message,
        "repository_path": repository.path,
        "repository_name": repository.name,
        "files_changed": record.files_changed,
        "insertions": record.insertions,
        "deletions": record.deletions,
        "branch": record.branch or DEFAULT_BRANCH,
    }


def commit_from_dict(d: dict) -> CommitRecord:
    return CommitRecord(
        hash=d.get("hash", ""),
        author_name=d.get("author_name") or "",
        author_email=d.get("author_email") or "",
        timestamp=datetime.fromisoformat(d["date"]),
        message=d.get("message") or "",
        repository=d.get("repository_name") or "",
        files_changed=d.get("files_changed") or 0,
        insertions=d.get("insertions") or 0,
        deletions=d.get("deletions") or 0,
        branch=d.get("branch") or DEFAULT_BRANCH,
    )
