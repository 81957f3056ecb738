"""Tests for period reports."""

from datetime import datetime, timezone

from commitscope_core.models import CommitRecord
from commitscope_core.reports import build_report


def _commit(sha, day, email="ana@x", name="Ana", repository="api", files=1, ins=0, dels=0):
    return CommitRecord(
        hash=sha,
        author_name=name,
        author_email=email,
        timestamp=datetime(2024, 2, day, 12, 0, tzinfo=timezone.utc),
        message="",
        repository=repository,
        files_changed=files,
        insertions=ins,
        deletions=dels,
    )


def test_totals():
    commits = [
        _commit("1", 1, files=2, ins=10, dels=1),
        _commit("2", 1, email="bo@x", repository="web", files=1, ins=5, dels=5),
        _commit("3", 3, files=4, ins=1),
    ]
    report = build_report(commits, tz=timezone.utc)
    g = report.general
    assert (g.total_commits, g.total_authors, g.total_repositories) == (3, 2, 2)
    assert (g.total_files_changed, g.total_insertions, g.total_deletions) == (7, 16, 6)


def test_top_authors_ordered_and_limited():
    commits = [_commit(f"a{i}", 1) for i in range(3)] + [_commit("b", 1, email="bo@x", name="Bo", files=5)]
    report = build_report(commits, top=1, tz=timezone.utc)
    assert len(report.top_authors) == 1
    top = report.top_authors[0]
    assert (top.author_email, top.commits_count, top.total_files) == ("ana@x", 3, 3)


def test_commits_by_day_ascending():
    commits = [_commit("3", 9), _commit("1", 2, email="bo@x"), _commit("2", 2)]
    report = build_report(commits, tz=timezone.utc)
    assert [(d.day.day, d.commits_count, d.authors_count) for d in report.commits_by_day] == [(2, 2, 2), (9, 1, 1)]


def test_empty_report():
    report = build_report([], tz=timezone.utc)
    assert report.general.total_commits == 0
    assert report.top_authors == []
    assert report.commits_by_day == []
    assert report.to_dict()["general"]["total_commits"] == 0
