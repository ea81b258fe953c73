"""
Author Statistics Test Suite.

Tests for the per-author commit aggregation, covering:
- Main author and co-author credit
- Biggest commit tracking
- Derived averages and ratios
- Zero-division fallbacks
"""

import pytest

from analyzers.commit_stats import (
    additions_deletions_ratio,
    aggregate_author_stats,
    apply_derived_metrics,
)
from analyzers.models import AuthorStats, UNKNOWN_CO_AUTHOR_EMAIL


@pytest.fixture
def bob_and_carol_commits(commit_factory):
    """Bob commits with Carol as co-author, then Carol commits alone."""
    return [
        commit_factory(
            sha="c1",
            author_name="Bob",
            author_email="bob@x.com",
            additions=10,
            deletions=0,
            message="Add feature\n\nCo-authored-by: Carol <carol@y.com>",
        ),
        commit_factory(
            sha="c2",
            author_name="Carol",
            author_email="carol@y.com",
            additions=0,
            deletions=5,
            message="Remove dead code",
        ),
    ]


def test_end_to_end_attribution(bob_and_carol_commits):
    """Test main author and co-author credit on a two-commit history."""
    summary = aggregate_author_stats(bob_and_carol_commits)

    bob = summary.authors["bob@x.com"]
    carol = summary.authors["carol@y.com"]

    assert (bob.commits, bob.total, bob.co_authored_lines) == (1, 10, 0)
    assert (carol.commits, carol.total, carol.co_authored_lines) == (1, 5, 10)
    assert carol.name == "Carol"


def test_total_is_additions_plus_deletions(commit_factory):
    """Test the total invariant holds for every entry."""
    commits = [
        commit_factory(sha="1", author_email="a@x.com", additions=3, deletions=7),
        commit_factory(sha="2", author_email="a@x.com", additions=20, deletions=1),
        commit_factory(
            sha="3",
            author_email="b@x.com",
            additions=4,
            message="Co-authored-by: C <c@x.com>",
        ),
    ]

    summary = aggregate_author_stats(commits)

    for stats in summary.authors.values():
        assert stats.total == stats.additions + stats.deletions
    assert summary.overall_total == 35
    assert summary.overall_commits == 3


def test_co_author_only_identity_has_no_commits(commit_factory):
    """Test identities seen only as co-authors get lines but no commits."""
    commits = [
        commit_factory(
            additions=6,
            deletions=2,
            message="Fix\n\nCo-authored-by: Dana <Dana@Z.com>",
        )
    ]

    dana = aggregate_author_stats(commits).authors["dana@z.com"]

    assert dana.commits == 0
    assert dana.co_authored_lines == 8
    assert dana.average_changes == 0.0
    assert dana.additions_deletions_ratio == 0.0


def test_malformed_co_author_is_skipped(commit_factory):
    """Test sentinel co-authors never become author entries."""
    commits = [commit_factory(additions=1, message="Co-authored-by: somebody")]

    summary = aggregate_author_stats(commits)

    assert UNKNOWN_CO_AUTHOR_EMAIL not in summary.authors
    assert list(summary.authors) == ["bob@x.com"]


def test_biggest_commit_keeps_first_on_tie(commit_factory):
    """Test the biggest commit only moves on a strictly larger commit."""
    commits = [
        commit_factory(sha="first", additions=5, deletions=5),
        commit_factory(sha="second", additions=10),
        commit_factory(sha="third", additions=2),
    ]

    bob = aggregate_author_stats(commits).authors["bob@x.com"]

    assert bob.biggest_commit == 10
    assert bob.biggest_commit_url.endswith("/first")


def test_missing_author_defaults_to_unknown(commit_factory):
    """Test commits without author data aggregate under `unknown`."""
    commits = [commit_factory(author_name=None, author_email=None, additions=1)]

    summary = aggregate_author_stats(commits)

    assert summary.authors["unknown"].name == "unknown"
    assert summary.authors["unknown"].commits == 1


def test_derived_averages(commit_factory):
    """Test per-author and project-wide averages."""
    commits = [
        commit_factory(sha="1", author_email="a@x.com", additions=10, changed_files=2),
        commit_factory(sha="2", author_email="a@x.com", additions=20, changed_files=4),
        commit_factory(sha="3", author_email="b@x.com", deletions=30, changed_files=3),
    ]

    summary = aggregate_author_stats(commits)
    a = summary.authors["a@x.com"]

    assert a.average_changes == 15.0
    assert a.average_files_changed == 3.0
    assert summary.group_average == 20.0
    assert summary.group_average_files_changed == 3.0
    assert all(stats.group_average == 20.0 for stats in summary.authors.values())


@pytest.mark.parametrize(
    "additions,deletions,expected",
    [(10, 4, 2.5), (7, 0, 7.0), (0, 0, 0.0), (0, 3, 0.0)],
)
def test_additions_deletions_ratio(additions, deletions, expected):
    """Test the ratio stays finite when nothing was deleted."""
    assert additions_deletions_ratio(additions, deletions) == expected


def test_no_commits_yields_empty_summary():
    """Test empty histories produce zeroed totals."""
    summary = aggregate_author_stats([])

    assert summary.authors == {}
    assert summary.overall_total == 0
    assert summary.group_average == 0.0


def test_apply_derived_metrics_updates_entries():
    """Test derived fields are written onto the given entries."""
    authors = {"a@x.com": AuthorStats(name="A", commits=2, additions=8, total=8)}

    summary = apply_derived_metrics(authors)

    assert summary.authors["a@x.com"].average_changes == 4.0
    assert summary.authors["a@x.com"].additions_deletions_ratio == 8.0
