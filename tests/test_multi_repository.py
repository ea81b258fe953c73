import json

import pytest
from unittest.mock import Mock, AsyncMock
from datetime import datetime, timedelta, timezone

from analyzers.multi_repository import MultiRepositoryAnalyzer, parse_repository_url
from analyzers.repository import RepositoryAnalyzer
from storage.repository_store import RepositoryStore
from miners.models import RepositoryData
from analyzers.models import RepositoryMetrics


@pytest.fixture
def mock_store():
    """Mock repository store."""
    store = Mock()
    store.load_repository_data.return_value = None
    store.load_analysis.return_value = None
    store.store_analysis.return_value = None
    return store


@pytest.fixture
def mock_miner():
    """Mock repository miner."""
    miner = Mock()
    miner.mine_repository = AsyncMock()
    miner.mine_repository.side_effect = lambda owner, repo: RepositoryData(
        owner=owner, repo=repo
    )
    return miner


@pytest.fixture
def mock_analyzer():
    """Mock repository analyzer."""
    analyzer = Mock()
    analyzer.fast_merge_threshold_minutes = 5
    analyzer.analyze_repository = AsyncMock()
    analyzer.analyze_repository.side_effect = lambda data: RepositoryMetrics(
        owner=data.owner, repo=data.repo
    )
    return analyzer


def make_analyzer(store, analyzer, miner, urls):
    return MultiRepositoryAnalyzer(
        repository_store=store,
        analyzer=analyzer,
        miner=miner,
        repository_urls=urls,
    )


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://github.com/test/repo1", ("test", "repo1")),
        ("https://github.com/test/repo1.git", ("test", "repo1")),
        ("https://github.example.com/org/course-repo/", ("org", "course-repo")),
        ("test/repo1", ("test", "repo1")),
    ],
)
def test_parse_repository_url(url, expected):
    """Test owner and repository extraction from URLs."""
    assert parse_repository_url(url) == expected


def test_parse_repository_url_invalid():
    """Test URLs without an owner are rejected."""
    with pytest.raises(ValueError):
        parse_repository_url("repo-only")


@pytest.mark.asyncio
async def test_analyze_repositories_success(mock_store, mock_miner, mock_analyzer):
    """Test mining, storing and analyzing repositories without stored data."""
    analyzer = make_analyzer(
        mock_store,
        mock_analyzer,
        mock_miner,
        ["https://github.com/test/repo1", "https://github.com/test/repo2"],
    )

    results = await analyzer.analyze_repositories()

    assert list(results) == ["test/repo1", "test/repo2"]
    assert all(isinstance(metrics, RepositoryMetrics) for metrics in results.values())
    mock_miner.mine_repository.assert_any_call("test", "repo1")
    assert mock_store.save_repository_data.call_count == 2
    assert mock_store.store_analysis.call_count == 2


@pytest.mark.asyncio
async def test_analyze_repositories_with_existing_data(
    mock_store, mock_miner, mock_analyzer
):
    """Test analysis when repository data already exists for today."""
    today_data = RepositoryData(owner="test", repo="repo1")
    mock_store.load_repository_data.return_value = [today_data]

    analyzer = make_analyzer(
        mock_store, mock_analyzer, mock_miner, ["https://github.com/test/repo1"]
    )

    results = await analyzer.analyze_repositories()

    assert len(results) == 1
    mock_store.load_repository_data.assert_called_once_with("test", "repo1")
    mock_store.save_repository_data.assert_not_called()
    mock_miner.mine_repository.assert_not_called()
    mock_analyzer.analyze_repository.assert_awaited_once_with(today_data)


@pytest.mark.asyncio
async def test_stale_snapshot_is_mined_again(mock_store, mock_miner, mock_analyzer):
    """Test a snapshot from a previous day triggers fresh mining."""
    stale = RepositoryData(
        owner="test",
        repo="repo1",
        collection_date=datetime.now(timezone.utc) - timedelta(days=2),
    )
    mock_store.load_repository_data.return_value = [stale]

    analyzer = make_analyzer(
        mock_store, mock_analyzer, mock_miner, ["https://github.com/test/repo1"]
    )

    await analyzer.analyze_repositories()

    mock_miner.mine_repository.assert_awaited_once_with("test", "repo1")
    mock_store.save_repository_data.assert_called_once()


@pytest.mark.asyncio
async def test_analyze_repositories_with_existing_analysis(
    mock_store, mock_miner, mock_analyzer
):
    """Test when analysis already exists for today."""
    mock_store.load_repository_data.return_value = [
        RepositoryData(owner="test", repo="repo1")
    ]
    today_analysis = RepositoryMetrics(owner="test", repo="repo1")
    mock_store.load_analysis.return_value = [today_analysis]

    analyzer = make_analyzer(
        mock_store, mock_analyzer, mock_miner, ["https://github.com/test/repo1"]
    )

    results = await analyzer.analyze_repositories()

    assert results["test/repo1"] == today_analysis
    mock_analyzer.analyze_repository.assert_not_called()
    mock_store.store_analysis.assert_not_called()


@pytest.mark.asyncio
async def test_analyze_repositories_error_handling(
    mock_store, mock_miner, mock_analyzer
):
    """Test a failing repository does not stop the remaining ones."""
    mock_miner.mine_repository.side_effect = [
        Exception("Mining failed"),
        RepositoryData(owner="test", repo="repo2"),
    ]

    analyzer = make_analyzer(
        mock_store,
        mock_analyzer,
        mock_miner,
        [
            "https://github.com/test/repo1",
            "not-a-repository",
            "https://github.com/test/repo2",
        ],
    )

    results = await analyzer.analyze_repositories()

    assert list(results) == ["test/repo2"]
    assert mock_miner.mine_repository.call_count == 2
    assert mock_analyzer.analyze_repository.call_count == 1
    assert mock_store.store_analysis.call_count == 1


@pytest.mark.asyncio
async def test_corrupted_snapshot_history_is_mined_again(
    tmp_path, mock_miner, mock_analyzer
):
    """Test an unreadable snapshot file is replaced by a fresh mining run."""
    store = RepositoryStore(str(tmp_path))
    snapshot_file = tmp_path / "test_repo1.json"
    snapshot_file.write_text("{not json")

    analyzer = make_analyzer(
        store, mock_analyzer, mock_miner, ["https://github.com/test/repo1"]
    )

    results = await analyzer.analyze_repositories()

    assert list(results) == ["test/repo1"]
    mock_miner.mine_repository.assert_awaited_once_with("test", "repo1")
    history = json.loads(snapshot_file.read_text())
    assert len(history) == 1
    assert history[0]["repo"] == "repo1"


@pytest.mark.asyncio
async def test_analysis_with_other_threshold_is_recomputed(
    tmp_path, mock_miner, pull_request_factory
):
    """Test today's analysis is not reused after the fast-merge threshold changes."""
    store = RepositoryStore(str(tmp_path))
    pr = pull_request_factory(1)
    pr = pr.model_copy(update={"merged_at": pr.created_at + timedelta(minutes=30)})
    store.save_repository_data(
        RepositoryData(owner="test", repo="repo1", pull_requests=[pr])
    )
    store.store_analysis(RepositoryMetrics(owner="test", repo="repo1"))

    analyzer = make_analyzer(
        store,
        RepositoryAnalyzer(fast_merge_threshold_minutes=60),
        mock_miner,
        ["https://github.com/test/repo1"],
    )

    results = await analyzer.analyze_repositories()

    summary = results["test/repo1"].pull_requests
    assert summary.fast_merge_threshold_minutes == 60
    assert [p.number for p in summary.fast_merged_prs] == [1]
    mock_miner.mine_repository.assert_not_called()
    assert len(store.load_analysis("test", "repo1")) == 2


@pytest.mark.asyncio
async def test_analysis_with_other_state_is_recomputed(
    mock_store, mock_miner, mock_analyzer
):
    """Test today's analysis is not reused for a different pull request state."""
    today_data = RepositoryData(owner="test", repo="repo1", pull_request_state="open")
    mock_store.load_repository_data.return_value = [today_data]
    mock_store.load_analysis.return_value = [
        RepositoryMetrics(owner="test", repo="repo1")
    ]

    analyzer = make_analyzer(
        mock_store, mock_analyzer, mock_miner, ["https://github.com/test/repo1"]
    )

    await analyzer.analyze_repositories()

    mock_analyzer.analyze_repository.assert_awaited_once_with(today_data)
    mock_store.store_analysis.assert_called_once()
