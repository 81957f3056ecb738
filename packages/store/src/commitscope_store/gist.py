"""GistStore: team-shared commit snapshot in a private GitHub Gist.

Data format: a single JSON file named `commitscope_snapshot.json` inside the
Gist holding ``{"repositories": [...], "commits": [...]}``. Every write reads
the whole document, merges in memory and writes it back, which suits the
scale of a small team (a few thousand commits per repository). For larger
histories, switch to SQLiteStore.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from commitscope_core.errors import PersistenceFailure
from commitscope_core.models import RepositoryRef
from commitscope_store.base import BaseStore
from commitscope_store.models import commit_from_dict, commit_to_dict

if TYPE_CHECKING:
    from commitscope_core.models import CommitRecord
    from commitscope_store.models import CommitFilter

logger = logging.getLogger(__name__)

_GIST_FILENAME = "commitscope_snapshot.json"


class GistStore(BaseStore):
    """Stores the commit snapshot as one JSON document in a GitHub Gist.

    The Gist ID is stored in .commitscope.yml under `gist_id`. Running
    `commitscope init` creates the Gist and writes the ID automatically.
    """

    def __init__(self, gist_id: str, token: str):
        try:
            from github import Github
        except ImportError:
            raise ImportError("PyGithub is required for GistStore. Install commitscope.")
        self._gist_id = gist_id
        self._gh = Github(token)

    def _get_gist(self):
        return self._gh.get_gist(self._gist_id)

    def _load(self) -> tuple[object, dict]:
        from github import GithubException

        try:
            gist = self._get_gist()
        except GithubException as e:
            logger.warning("GistStore could not load gist %s: %s", self._gist_id, e)
            raise PersistenceFailure(f"Could not load gist {self._gist_id}: {e}") from e
        return gist, self._read_document(gist)

    def _save(self, gist, document: dict) -> None:
        from github import GithubException

        try:
            gist.edit(files={_GIST_FILENAME: {"content": json.dumps(document, indent=2)}})
        except GithubException as e:
            logger.warning("GistStore could not write gist %s: %s", self._gist_id, e)
            raise PersistenceFailure(f"Could not write gist {self._gist_id}: {e}") from e

    @staticmethod
    def _read_document(gist) -> dict:
        """Read the snapshot document from the Gist file, or return an empty one."""
        empty = {"repositories": [], "commits": []}
        file_obj = gist.files.get(_GIST_FILENAME)
        if file_obj is None:
            return empty
        try:
            document = json.loads(file_obj.content) or {}
        except (json.JSONDecodeError, AttributeError):
            return empty
        return {
            "repositories": list(document.get("repositories", [])),
            "commits": list(document.get("commits", [])),
        }

    def upsert_repository(self, ref: RepositoryRef) -> RepositoryRef:
        gist, document = self._load()
        repos = document["repositories"]
        now = datetime.now(timezone.utc).isoformat()
        for entry in repos:
            if entry.get("path") == ref.path:
                entry["name"] = ref.name
                entry["last_sync"] = now
                stored = entry
                for commit in document["commits"]:
                    if commit.get("repository_path") == ref.path:
                        commit["repository_name"] = ref.name
                break
        else:
            next_id = max((int(e.get("id", 0)) for e in repos), default=0) + 1
            stored = {"id": str(next_id), "name": ref.name, "path": ref.path, "last_sync": now}
            repos.append(stored)
        self._save(gist, document)
        return RepositoryRef(id=str(stored["id"]), name=stored["name"], path=stored["path"])

    def list_repositories(self) -> list[RepositoryRef]:
        _, document = self._load()
        refs = [
            RepositoryRef(id=str(e.get("id", "")), name=e.get("name", ""), path=e.get("path", ""))
            for e in document["repositories"]
        ]
        return sorted(refs, key=lambda r: r.name)

    def upsert_commits(self, records: list[CommitRecord], repository: RepositoryRef) -> int:
        gist, document = self._load()
        incoming = {r.hash: commit_to_dict(r, repository) for r in records}
        kept = [
            c
            for c in document["commits"]
            if not (c.get("repository_path") == repository.path and c.get("hash") in incoming)
        ]
        document["commits"] = kept + list(incoming.values())
        # One edit call per batch: the whole batch lands or none of it does.
        self._save(gist, document)
        return len(incoming)

    def query_commits(self, filters: CommitFilter | None = None) -> list[CommitRecord]:
        _, document = self._load()
        records = [commit_from_dict(c) for c in document["commits"]]
        if filters is not None:
            records = [r for r in records if filters.matches(r)]
        return sorted(records, key=lambda r: r.timestamp, reverse=True)

    def delete_repository(self, path_or_id: str) -> bool:
        gist, document = self._load()
        match = next(
            (e for e in document["repositories"] if e.get("path") == path_or_id or str(e.get("id")) == path_or_id),
            None,
        )
        if match is None:
            return False
        document["repositories"] = [e for e in document["repositories"] if e is not match]
        document["commits"] = [c for c in document["commits"] if c.get("repository_path") != match.get("path")]
        self._save(gist, document)
        return True
