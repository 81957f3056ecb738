"""SQLiteStore: local file-based snapshot of repositories and commits.

Schema:
  repositories  one row per registered checkout, unique by path.
  commits       one row per (repository_path, hash). Rows belong to a
                checkout by path; repository_name is only its display
                name and follows renames of the repository row.
                Dates are fixed-width UTC ISO-8601 text so range filters
                can compare them as strings.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from commitscope_core.errors import PersistenceFailure
from commitscope_core.models import RepositoryRef
from commitscope_store.base import BaseStore
from commitscope_store.models import commit_from_dict, commit_to_dict, to_utc_string

if TYPE_CHECKING:
    from commitscope_core.models import CommitRecord
    from commitscope_store.models import CommitFilter

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS repositories (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    name        TEXT NOT NULL,
    path        TEXT UNIQUE NOT NULL,
    last_sync   TEXT,
    created_at  TEXT DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE IF NOT EXISTS commits (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    hash             TEXT NOT NULL,
    repository_path  TEXT NOT NULL,
    repository_name  TEXT NOT NULL,
    author_name      TEXT NOT NULL,
    author_email     TEXT NOT NULL,
    date             TEXT NOT NULL,
    message          TEXT NOT NULL,
    files_changed    INTEGER DEFAULT 0,
    insertions       INTEGER DEFAULT 0,
    deletions        INTEGER DEFAULT 0,
    branch           TEXT DEFAULT 'main',
    UNIQUE (repository_path, hash)
);
CREATE INDEX IF NOT EXISTS idx_commits_date       ON commits (date);
CREATE INDEX IF NOT EXISTS idx_commits_author     ON commits (author_email);
CREATE INDEX IF NOT EXISTS idx_commits_repository ON commits (repository_path);
"""

_COMMIT_COLUMNS = (
    "hash",
    "author_name",
    "author_email",
    "date",
    "message",
    "repository_path",
    "repository_name",
    "files_changed",
    "insertions",
    "deletions",
    "branch",
)


class SQLiteStore(BaseStore):
    """Stores repositories and commits in a local SQLite database file.

    The database file path defaults to `.commitscope.db` in the current
    working directory. Configure via .commitscope.yml: `store_path: ...`.
    """

    def __init__(self, db_path: str = ".commitscope.db"):
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        with self._guard("open database"):
            self._conn = sqlite3.connect(db_path)
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(_SCHEMA)
            self._conn.commit()

    @contextmanager
    def _guard(self, operation: str):
        try:
            yield
        except sqlite3.Error as e:
            logger.error("SQLiteStore failed to %s: %s", operation, e)
            raise PersistenceFailure(f"Could not {operation}: {e}") from e

    def upsert_repository(self, ref: RepositoryRef) -> RepositoryRef:
        with self._guard("save repository"), self._conn:
            self._conn.execute(
                """
                INSERT INTO repositories (name, path, last_sync) VALUES (?, ?, ?)
                ON CONFLICT(path) DO UPDATE SET name = excluded.name, last_sync = excluded.last_sync
                """,
                (ref.name, ref.path, datetime.now(timezone.utc).isoformat()),
            )
            self._conn.execute(
                "UPDATE commits SET repository_name = ? WHERE repository_path = ?", (ref.name, ref.path)
            )
            row = self._conn.execute("SELECT id, name, path FROM repositories WHERE path = ?", (ref.path,)).fetchone()
        return RepositoryRef(id=str(row["id"]), name=row["name"], path=row["path"])

    def list_repositories(self) -> list[RepositoryRef]:
        with self._guard("list repositories"):
            rows = self._conn.execute("SELECT id, name, path FROM repositories ORDER BY name").fetchall()
        return [RepositoryRef(id=str(r["id"]), name=r["name"], path=r["path"]) for r in rows]

    def upsert_commits(self, records: list[CommitRecord], repository: RepositoryRef) -> int:
        placeholders = ", ".join("?" for _ in _COMMIT_COLUMNS)
        sql = f"INSERT OR REPLACE INTO commits ({', '.join(_COMMIT_COLUMNS)}) VALUES ({placeholders})"
        rows = [tuple(commit_to_dict(r, repository)[col] for col in _COMMIT_COLUMNS) for r in records]
        # The connection context manager commits the whole batch or rolls it back.
        with self._guard("save commits"), self._conn:
            self._conn.executemany(sql, rows)
        return len(rows)

    def query_commits(self, filters: CommitFilter | None = None) -> list[CommitRecord]:
        query = "SELECT * FROM commits WHERE 1=1"
        params: list[str] = []
        if filters is not None:
            if filters.start is not None:
                query += " AND date >= ?"
                params.append(to_utc_string(filters.start))
            if filters.end is not None:
                query += " AND date <= ?"
                params.append(to_utc_string(filters.end))
            if filters.author_email is not None:
                query += " AND author_email = ?"
                params.append(filters.author_email)
            if filters.repository_name is not None:
                query += " AND repository_name = ?"
                params.append(filters.repository_name)
        query += " ORDER BY date DESC, repository_path, hash"

        with self._guard("query commits"):
            rows = self._conn.execute(query, params).fetchall()
        return [commit_from_dict(dict(r)) for r in rows]

    def delete_repository(self, path_or_id: str) -> bool:
        with self._guard("delete repository"), self._conn:
            row = self._conn.execute(
                "SELECT id, path FROM repositories WHERE path = ? OR CAST(id AS TEXT) = ?",
                (path_or_id, path_or_id),
            ).fetchone()
            if row is None:
                return False
            self._conn.execute("DELETE FROM repositories WHERE id = ?", (row["id"],))
            self._conn.execute("DELETE FROM commits WHERE repository_path = ?", (row["path"],))
        return True

    def close(self) -> None:
        self._conn.close()
