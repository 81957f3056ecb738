"""Tests for the git-backed commit source."""

from __future__ import annotations

import os
import shutil
import subprocess
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from commitscope_core.errors import SourceUnavailable
from commitscope_core.git.source import (
    GitCommitSource,
    parse_log_output,
    remote_branch_ref,
    short_branch_name,
)

RS, US = "\x1e", "\x1f"


def _header(sha, date, name="Ana Silva", email="ana@example.com", ref="", subject="Fix login"):
    return RS + US.join([sha, date, name, email, ref, subject])


def _completed(stdout="", returncode=0, stderr=""):
    return MagicMock(stdout=stdout, returncode=returncode, stderr=stderr)


# ---------------------------------------------------------------------------
# parse_log_output
# ---------------------------------------------------------------------------


class TestParseLogOutput:
    def test_parses_header_and_numstat(self):
        output = (
            _header("a" * 40, "2024-01-15T10:30:00+01:00")
            + "\n10\t2\tsrc/app.py\n3\t0\tREADME.md\n"
        )
        [commit] = parse_log_output(output, "develop")
        assert commit.hash == "a" * 40
        assert commit.author_name == "Ana Silva"
        assert commit.author_email == "ana@example.com"
        assert commit.message == "Fix login"
        assert commit.timestamp == datetime(2024, 1, 15, 10, 30, tzinfo=timezone(timedelta(hours=1)))
        assert commit.files_changed == 2
        assert commit.insertions == 13
        assert commit.deletions == 2
        assert commit.branch == "develop"

    def test_utc_z_suffix(self):
        [commit] = parse_log_output(_header("a" * 40, "2024-01-15T10:30:00Z"))
        assert commit.timestamp == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)

    def test_binary_files_count_as_changed_without_lines(self):
        output = _header("b" * 40, "2024-01-15T10:30:00+00:00") + "\n-\t-\tlogo.png\n4\t1\tapp.py\n"
        [commit] = parse_log_output(output)
        assert commit.files_changed == 2
        assert commit.insertions == 4
        assert commit.deletions == 1

    def test_commit_without_stats_has_zero_counts(self):
        [commit] = parse_log_output(_header("c" * 40, "2024-01-15T10:30:00+00:00", subject="Merge branch"))
        assert (commit.files_changed, commit.insertions, commit.deletions) == (0, 0, 0)

    def test_multiple_commits(self):
        output = (
            _header("a" * 40, "2024-01-15T10:30:00+00:00")
            + "\n1\t1\ta.py\n\n"
            + _header("b" * 40, "2024-01-14T09:00:00+00:00", email="bo@example.com")
            + "\n2\t0\tb.py\n"
        )
        commits = parse_log_output(output)
        assert [c.hash[0] for c in commits] == ["a", "b"]
        assert commits[1].author_email == "bo@example.com"

    def test_source_ref_sets_branch(self):
        [commit] = parse_log_output(_header("a" * 40, "2024-01-15T10:30:00+00:00", ref="refs/remotes/origin/feature/x"))
        assert commit.branch == "feature/x"

    def test_subject_may_contain_separator_like_text(self):
        [commit] = parse_log_output(_header("a" * 40, "2024-01-15T10:30:00+00:00", subject="a | b: c"))
        assert commit.message == "a | b: c"

    def test_malformed_header_skipped(self):
        output = RS + "not a header\n" + _header("a" * 40, "2024-01-15T10:30:00+00:00")
        commits = parse_log_output(output)
        assert len(commits) == 1

    def test_unparseable_date_skipped(self):
        assert parse_log_output(_header("a" * 40, "yesterday")) == []

    def test_empty_output(self):
        assert parse_log_output("") == []


class TestBranchNames:
    @pytest.mark.parametrize(
        "ref,expected",
        [
            ("refs/heads/main", "main"),
            ("refs/remotes/origin/feature", "feature"),
            ("refs/remotes/upstream/feature", "upstream/feature"),
            ("refs/tags/v1.0", "v1.0"),
            ("origin/release", "release"),
            ("develop", "develop"),
            ("", "main"),
        ],
    )
    def test_short_branch_name(self, ref, expected):
        assert short_branch_name(ref) == expected

    @pytest.mark.parametrize(
        "branch,expected",
        [
            ("foo", "origin/foo"),
            ("origin/foo", "origin/foo"),
            ("remotes/origin/foo", "origin/foo"),
        ],
    )
    def test_remote_branch_ref(self, branch, expected):
        assert remote_branch_ref(branch) == expected


# ---------------------------------------------------------------------------
# GitCommitSource (subprocess mocked)
# ---------------------------------------------------------------------------


class TestGitCommitSource:
    def test_is_valid_repository_true(self, tmp_path, mocker):
        mocker.patch("commitscope_core.git.source.subprocess.run", return_value=_completed("true\n"))
        assert GitCommitSource().is_valid_repository(str(tmp_path)) is True

    def test_is_valid_repository_missing_path(self, tmp_path, mocker):
        run = mocker.patch("commitscope_core.git.source.subprocess.run")
        assert GitCommitSource().is_valid_repository(str(tmp_path / "missing")) is False
        run.assert_not_called()

    def test_is_valid_repository_git_error(self, tmp_path, mocker):
        mocker.patch(
            "commitscope_core.git.source.subprocess.run",
            return_value=_completed(returncode=128, stderr="fatal: not a git repository"),
        )
        assert GitCommitSource().is_valid_repository(str(tmp_path)) is False

    def test_is_valid_repository_never_raises_on_timeout(self, tmp_path, mocker):
        mocker.patch(
            "commitscope_core.git.source.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="git", timeout=10),
        )
        assert GitCommitSource().is_valid_repository(str(tmp_path)) is False

    def test_timeout_raises_source_unavailable(self, tmp_path, mocker):
        mocker.patch(
            "commitscope_core.git.source.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="git", timeout=3),
        )
        with pytest.raises(SourceUnavailable, match="timed out"):
            GitCommitSource(timeout=3).list_commits(str(tmp_path), ref="origin/main")

    def test_missing_git_binary_raises_source_unavailable(self, tmp_path, mocker):
        mocker.patch("commitscope_core.git.source.subprocess.run", side_effect=FileNotFoundError("git"))
        with pytest.raises(SourceUnavailable):
            GitCommitSource().fetch(str(tmp_path))

    def test_list_commits_passes_timeout_and_cap(self, tmp_path, mocker):
        run = mocker.patch(
            "commitscope_core.git.source.subprocess.run",
            side_effect=[_completed("develop\n"), _completed(_header("a" * 40, "2024-01-15T10:30:00+00:00"))],
        )
        commits = GitCommitSource(timeout=5, max_commits=50).list_commits(str(tmp_path))

        assert len(commits) == 1
        assert commits[0].branch == "develop"
        log_call = run.call_args_list[1]
        args = log_call.args[0]
        assert args[:3] == ["git", "log", "--max-count=50"]
        assert "--numstat" in args
        assert log_call.kwargs["timeout"] == 5
        assert log_call.kwargs["cwd"] == str(tmp_path)

    def test_list_commits_since_until(self, tmp_path, mocker):
        run = mocker.patch("commitscope_core.git.source.subprocess.run", return_value=_completed(""))
        since = datetime(2024, 1, 1, tzinfo=timezone.utc)
        until = datetime(2024, 1, 31, tzinfo=timezone.utc)
        GitCommitSource().list_commits(str(tmp_path), since, until, ref="origin/main")

        args = run.call_args.args[0]
        assert f"--since={since.isoformat()}" in args
        assert f"--until={until.isoformat()}" in args
        assert args[-2:] == ["origin/main", "--"]

    def test_max_count_never_exceeds_cap(self, tmp_path, mocker):
        run = mocker.patch("commitscope_core.git.source.subprocess.run", return_value=_completed(""))
        GitCommitSource(max_commits=1000).list_commits(str(tmp_path), ref="origin/main", max_count=5000)
        assert "--max-count=1000" in run.call_args.args[0]

    def test_all_branches_walks_every_ref(self, tmp_path, mocker):
        run = mocker.patch(
            "commitscope_core.git.source.subprocess.run",
            side_effect=[_completed("main\n"), _completed("")],
        )
        GitCommitSource(all_branches=True).list_commits(str(tmp_path))
        args = run.call_args.args[0]
        assert "--all" in args
        assert "--source" in args

    def test_empty_repository_returns_no_commits(self, tmp_path, mocker):
        mocker.patch(
            "commitscope_core.git.source.subprocess.run",
            side_effect=[
                _completed("main\n"),
                _completed(returncode=128, stderr="fatal: your current branch 'main' does not have any commits yet"),
            ],
        )
        assert GitCommitSource().list_commits(str(tmp_path)) == []

    def test_git_error_raises_source_unavailable(self, tmp_path, mocker):
        mocker.patch(
            "commitscope_core.git.source.subprocess.run",
            return_value=_completed(returncode=128, stderr="fatal: bad revision 'origin/nope'"),
        )
        with pytest.raises(SourceUnavailable) as exc:
            GitCommitSource().list_commits(str(tmp_path), ref="origin/nope")
        assert exc.value.path == str(tmp_path)
        assert "bad revision" in exc.value.reason

    def test_current_branch_detached_head_falls_back(self, tmp_path, mocker):
        mocker.patch("commitscope_core.git.source.subprocess.run", return_value=_completed("HEAD\n"))
        assert GitCommitSource().current_branch(str(tmp_path)) == "main"

    def test_current_branch_error_falls_back(self, tmp_path, mocker):
        mocker.patch("commitscope_core.git.source.subprocess.run", return_value=_completed(returncode=128))
        assert GitCommitSource().current_branch(str(tmp_path)) == "main"

    def test_list_branches_skips_head_pointers(self, tmp_path, mocker):
        mocker.patch(
            "commitscope_core.git.source.subprocess.run",
            return_value=_completed("main\nfeature/x\norigin/HEAD\norigin\norigin/main\n"),
        )
        assert GitCommitSource().list_branches(str(tmp_path)) == ["main", "feature/x", "origin/main"]

    def test_fetch_runs_fetch_all_prune(self, tmp_path, mocker):
        run = mocker.patch("commitscope_core.git.source.subprocess.run", return_value=_completed(""))
        GitCommitSource().fetch(str(tmp_path))
        assert run.call_args.args[0] == ["git", "fetch", "--all", "--prune"]


# ---------------------------------------------------------------------------
# Against a real repository
# ---------------------------------------------------------------------------


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
def test_reads_a_real_repository(tmp_path):
    def git(*args, date=None):
        env = {
            "GIT_AUTHOR_NAME": "Ana Silva",
            "GIT_AUTHOR_EMAIL": "ana@example.com",
            "GIT_COMMITTER_NAME": "Ana Silva",
            "GIT_COMMITTER_EMAIL": "ana@example.com",
            "HOME": str(tmp_path),
            "PATH": os.environ.get("PATH", ""),
        }
        if date:
            env["GIT_AUTHOR_DATE"] = env["GIT_COMMITTER_DATE"] = date
        subprocess.run(["git", *args], cwd=tmp_path, check=True, capture_output=True, env=env)

    git("init", "-b", "trunk")
    (tmp_path / "app.py").write_text("a\nb\nc\n")
    git("add", "app.py")
    git("commit", "-m", "Add app", date="2024-01-15T10:30:00+01:00")
    (tmp_path / "app.py").write_text("a\nc\nd\n")
    git("commit", "-am", "Edit app", date="2024-01-16T09:00:00+01:00")

    source = GitCommitSource()
    assert source.is_valid_repository(str(tmp_path))
    commits = source.list_commits(str(tmp_path))

    assert [c.message for c in commits] == ["Edit app", "Add app"]
    assert commits[0].insertions == 1
    assert commits[0].deletions == 1
    assert commits[1].insertions == 3
    assert commits[1].files_changed == 1
    assert commits[1].branch == "trunk"
    assert commits[1].timestamp == datetime(2024, 1, 15, 10, 30, tzinfo=timezone(timedelta(hours=1)))
