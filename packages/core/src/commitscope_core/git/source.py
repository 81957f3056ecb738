"""Commit source backed by the local git binary.

Commits are read with ``git log --numstat`` and a control-character
delimited ``--pretty`` format, so no diffstat summary line has to be parsed.
Every git call carries a timeout; any failure surfaces as SourceUnavailable
except in ``is_valid_repository``, which only ever answers True or False.
"""

from __future__ import annotations

import logging
import subprocess
from datetime import datetime
from pathlib import Path

from commitscope_core.errors import SourceUnavailable
from commitscope_core.models import DEFAULT_BRANCH, CommitRecord

logger = logging.getLogger(__name__)

MAX_COMMITS = 1000
DEFAULT_TIMEOUT = 10

_RECORD_SEP = "\x1e"
_FIELD_SEP = "\x1f"
# hash, author date (strict ISO), author name, author email, source ref, subject
_LOG_FORMAT = "%x1e%H%x1f%aI%x1f%an%x1f%ae%x1f%S%x1f%s"

_REF_PREFIXES = ("refs/heads/", "refs/remotes/origin/", "refs/remotes/", "refs/tags/")


class GitCommitSource:
    """Reads commits, branches and remote updates from local checkouts."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        max_commits: int = MAX_COMMITS,
        all_branches: bool = False,
    ):
        self._timeout = timeout
        self._max_commits = max_commits
        self._all_branches = all_branches

    def _run(self, path: str, args: list[str]) -> str:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=path,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired:
            raise SourceUnavailable(path, f"git {args[0]} timed out after {self._timeout}s")
        except OSError as e:
            raise SourceUnavailable(path, str(e))
        if result.returncode != 0:
            raise SourceUnavailable(path, result.stderr.strip() or f"git {args[0]} exited with {result.returncode}")
        return result.stdout

    def is_valid_repository(self, path: str) -> bool:
        if not Path(path).is_dir():
            return False
        try:
            out = self._run(path, ["rev-parse", "--is-inside-work-tree"])
        except SourceUnavailable as e:
            logger.debug("Not a git repository: %s", e)
            return False
        return out.strip() == "true"

    def current_branch(self, path: str) -> str:
        try:
            name = self._run(path, ["rev-parse", "--abbrev-ref", "HEAD"]).strip()
        except SourceUnavailable:
            return DEFAULT_BRANCH
        # Detached HEAD reports the literal "HEAD".
        return name if name and name != "HEAD" else DEFAULT_BRANCH

    def list_branches(self, path: str) -> list[str]:
        out = self._run(path, ["branch", "-a", "--format=%(refname:short)"])
        branches = []
        for line in out.splitlines():
            name = line.strip()
            if not name or name.endswith("/HEAD") or name == "origin":
                continue
            branches.append(name)
        return branches

    def list_commits(
        self,
        path: str,
        since: datetime | None = None,
        until: datetime | None = None,
        *,
        ref: str | None = None,
        max_count: int | None = None,
    ) -> list[CommitRecord]:
        """Return up to ``max_count`` (default: the configured cap) newest commits.

        When walking all refs, each commit is tagged with the branch it was
        reached from; otherwise with ``ref`` or the checked-out branch.
        """
        limit = min(max_count or self._max_commits, self._max_commits)
        args = ["log", f"--max-count={limit}", f"--pretty=format:{_LOG_FORMAT}", "--numstat"]
        if since is not None:
            args.append(f"--since={since.isoformat()}")
        if until is not None:
            args.append(f"--until={until.isoformat()}")

        if ref is not None:
            args.extend([ref, "--"])
            default_branch = short_branch_name(ref)
        elif self._all_branches:
            args.extend(["--all", "--source"])
            default_branch = self.current_branch(path)
        else:
            default_branch = self.current_branch(path)

        try:
            output = self._run(path, args)
        except SourceUnavailable as e:
            if "does not have any commits" in e.reason:
                return []
            raise
        return parse_log_output(output, default_branch)

    def fetch(self, path: str) -> None:
        self._run(path, ["fetch", "--all", "--prune"])


def parse_log_output(output: str, default_branch: str = DEFAULT_BRANCH) -> list[CommitRecord]:
    """Parse ``git log --numstat`` output produced with ``_LOG_FORMAT``.

    Binary files (``-`` counts) count as changed with no line changes. A
    malformed header skips that commit; malformed stat rows count as zero.
    """
    commits: list[CommitRecord] = []
    for chunk in output.split(_RECORD_SEP):
        if not chunk.strip():
            continue
        header, _, stats = chunk.partition("\n")
        fields = header.split(_FIELD_SEP, 5)
        if len(fields) < 6:
            logger.debug("Skipping malformed log header: %r", header)
            continue
        sha, date_str, author_name, author_email, source_ref, subject = fields
        try:
            timestamp = _parse_iso(date_str)
        except ValueError:
            logger.debug("Skipping commit %s with unparseable date %r", sha, date_str)
            continue

        files_changed = insertions = deletions = 0
        for line in stats.splitlines():
            parts = line.split("\t", 2)
            if len(parts) != 3:
                continue
            files_changed += 1
            insertions += _to_int(parts[0])
            deletions += _to_int(parts[1])

        commits.append(
            CommitRecord(
                hash=sha.strip(),
                author_name=author_name.strip(),
                author_email=author_email.strip(),
                timestamp=timestamp,
                message=subject.strip(),
                files_changed=files_changed,
                insertions=insertions,
                deletions=deletions,
                branch=short_branch_name(source_ref) if source_ref.strip() else default_branch,
            )
        )
    return commits


def short_branch_name(ref: str) -> str:
    """``refs/remotes/origin/feature`` → ``feature``; ``origin/feature`` → ``feature``."""
    ref = ref.strip()
    for prefix in _REF_PREFIXES:
        if ref.startswith(prefix):
            return ref[len(prefix) :]
    if ref.startswith("origin/"):
        return ref[len("origin/") :]
    return ref or DEFAULT_BRANCH


def remote_branch_ref(branch: str) -> str:
    """Resolve a branch name against the remote-tracking namespace (``foo`` → ``origin/foo``)."""
    branch = branch.strip()
    if branch.startswith("remotes/"):
        return branch[len("remotes/") :]
    if branch.startswith("origin/"):
        return branch
    return f"origin/{branch}"


def _to_int(value: str) -> int:
    try:
        return max(int(value), 0)
    except ValueError:
        return 0


def _parse_iso(value: str) -> datetime:
    value = value.strip()
    # git prints UTC as "Z", which fromisoformat only accepts from 3.11 on.
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)
