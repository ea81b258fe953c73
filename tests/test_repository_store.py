"""
Repository Store Test Suite.

Tests for the JSON history storage of snapshots and analyses, covering:
- Save and load of repository snapshots
- Analysis history ordering and limits
- Missing and corrupted files
"""

from datetime import datetime, timedelta, timezone

import pytest

from miners.models import RepositoryData
from analyzers.models import RepositoryMetrics
from storage.repository_store import RepositoryStore


@pytest.fixture
def store(tmp_path):
    """Create a store writing into a temporary directory."""
    return RepositoryStore(str(tmp_path / "data"))


def test_load_missing_repository_data(store):
    """Test loading a repository that was never stored."""
    assert store.load_repository_data("test", "repo") is None
    assert store.load_analysis("test", "repo") is None


def test_repository_data_history_newest_first(store, commit_factory, pull_request_factory):
    """Test snapshots are appended and returned newest first."""
    now = datetime.now(timezone.utc)
    older = RepositoryData(
        owner="test",
        repo="repo",
        collection_date=now - timedelta(days=1),
        commits=[commit_factory()],
    )
    newer = RepositoryData(
        owner="test",
        repo="repo",
        collection_date=now,
        pull_requests=[pull_request_factory(4)],
        skipped_pull_requests=[9],
    )

    store.save_repository_data(older)
    store.save_repository_data(newer)
    snapshots = store.load_repository_data("test", "repo")

    assert len(snapshots) == 2
    assert snapshots[0].collection_date == now
    assert snapshots[0].pull_requests[0].number == 4
    assert snapshots[0].skipped_pull_requests == [9]
    assert snapshots[1].commits[0].sha == "abc123"


def test_analysis_history_with_limit(store):
    """Test analyses are returned newest first and truncated by limit."""
    now = datetime.now(timezone.utc)
    for days_ago in (3, 1, 2):
        store.store_analysis(
            RepositoryMetrics(
                owner="test",
                repo="repo",
                analysis_date=now - timedelta(days=days_ago),
                raw_author_count=days_ago,
            )
        )

    analyses = store.load_analysis("test", "repo", limit=2)

    assert [a.raw_author_count for a in analyses] == [1, 2]


def test_analysis_round_trip_keeps_aggregates(store):
    """Test stored metrics validate back into the same model."""
    metrics = RepositoryMetrics(owner="test", repo="repo", top_contributors=["a@x.com"])

    store.store_analysis(metrics)
    loaded = store.load_analysis("test", "repo")[0]

    assert loaded == metrics


def test_repositories_are_stored_separately(store):
    """Test files are keyed by owner and repository."""
    store.save_repository_data(RepositoryData(owner="a", repo="one"))
    store.save_repository_data(RepositoryData(owner="b", repo="one"))

    assert len(store.load_repository_data("a", "one")) == 1
    assert len(store.load_repository_data("b", "one")) == 1


def test_corrupted_history_starts_fresh(store):
    """Test a corrupted history file is replaced on the next save."""
    path = store._get_repo_data_file_path("test", "repo")
    with open(path, "w") as f:
        f.write("{not json")

    store.save_repository_data(RepositoryData(owner="test", repo="repo"))

    assert len(store.load_repository_data("test", "repo")) == 1


def test_corrupted_history_loads_as_missing(store):
    """Test unreadable history files load as if nothing was stored."""
    for path in (
        store._get_repo_data_file_path("test", "repo"),
        store._get_repo_analysis_file_path("test", "repo"),
    ):
        with open(path, "w") as f:
            f.write("{not json")

    assert store.load_repository_data("test", "repo") is None
    assert store.load_analysis("test", "repo") is None
