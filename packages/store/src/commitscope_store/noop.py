"""No-op store: the default when no store is configured.

Dashboards read commits live from git and do not need persistence. Using a
NoOpStore rather than None lets the CLI always call the store without
conditional checks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from commitscope_store.base import BaseStore

if TYPE_CHECKING:
    from commitscope_core.models import CommitRecord, RepositoryRef
    from commitscope_store.models import CommitFilter


class NoOpStore(BaseStore):
    """Silently discards all writes; every read is empty."""

    def upsert_repository(self, ref: RepositoryRef) -> RepositoryRef:
        return ref

    def list_repositories(self) -> list[RepositoryRef]:
        return []

    def upsert_commits(self, records: list[CommitRecord], repository: RepositoryRef) -> int:
        return 0

    def query_commits(self, filters: CommitFilter | None = None) -> list[CommitRecord]:
        return []

    def delete_repository(self, path_or_id: str) -> bool:
        return False
