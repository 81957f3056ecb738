"""Abstract store interface.

Every storage backend (SQLite, Gist) implements this interface. The CLI
depends on BaseStore, not on a concrete backend, and owns the store's
lifecycle: it constructs one store per process and closes it on exit.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from commitscope_core.models import CommitRecord, RepositoryRef
    from commitscope_store.models import CommitFilter


class BaseStore(ABC):
    """Durable store for repositories and commit snapshots.

    Write and read errors raise PersistenceFailure. Nothing is retried here.
    """

    @abstractmethod
    def upsert_repository(self, ref: RepositoryRef) -> RepositoryRef:
        """Insert or update a repository keyed by path. Returns it with its store id."""

    @abstractmethod
    def list_repositories(self) -> list[RepositoryRef]:
        """Return all registered repositories ordered by name."""

    @abstractmethod
    def upsert_commits(self, records: list[CommitRecord], repository: RepositoryRef) -> int:
        """Write one repository's commits as a single atomic batch.

        Commits are keyed by ``(repository.path, hash)``, so two checkouts that
        share a display name never share rows. Re-inserting a hash for the
        same path overwrites the existing row; commits missing from the batch
        are left alone. Returns the number of records written.
        """

    @abstractmethod
    def query_commits(self, filters: CommitFilter | None = None) -> list[CommitRecord]:
        """Return matching commits, newest first."""

    @abstractmethod
    def delete_repository(self, path_or_id: str) -> bool:
        """Remove a repository and every commit stored under its path. Returns False if it was unknown."""

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Optional: subclasses that need cleanup should override this.
        Default is a no-op so callers can always call close() safely.
        """

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
