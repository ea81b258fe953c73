"""
Analysis of every configured repository.

Each repository URL is resolved to `owner/repo`. A snapshot stored today
(UTC) is reused, as is an analysis stored today with the same pull request
state and fast-merge threshold; otherwise the repository is mined,
snapshotted, analyzed and the analysis stored. One failing repository is
logged and skipped.
"""

from datetime import datetime, timezone
from typing import Dict, List, Tuple

from config import logger
from analyzers.repository import RepositoryAnalyzer
from analyzers.models import RepositoryMetrics
from miners.base import RepositoryMiner
from storage.repository_store import RepositoryStore


def parse_repository_url(repo_url: str) -> Tuple[str, str]:
    """
    Extract owner and repository name from a repository URL.

    Args:
        repo_url (str): e.g. `https://github.com/owner/repo.git` or `owner/repo`

    Returns:
        Tuple[str, str]: Owner and repository name

    Raises:
        ValueError: If the URL does not contain an owner and a repository
    """
    path = str(repo_url).strip().rstrip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    parts = [part for part in path.split("/") if part]
    if len(parts) < 2:
        raise ValueError(f"Cannot parse repository from URL: {repo_url}")
    return parts[-2], parts[-1]


class MultiRepositoryAnalyzer:
    """
    Runs the mine, store and analyze cycle over a list of repository URLs.

    Attributes:
        analyzer (RepositoryAnalyzer): Per-repository analyzer.
        store (RepositoryStore): Snapshot and analysis history.
        miner (RepositoryMiner): Source of repository data.
        repository_urls (List[str]): Repositories to process, in order.
    """

    def __init__(
        self,
        repository_store: RepositoryStore,
        analyzer: RepositoryAnalyzer,
        miner: RepositoryMiner,
        repository_urls: List[str],
    ):
        """
        Args:
            repository_store (RepositoryStore): Snapshot and analysis history.
            analyzer (RepositoryAnalyzer): Per-repository analyzer.
            miner (RepositoryMiner): Source of repository data.
            repository_urls (List[str]): Repositories to process.
        """
        self.analyzer = analyzer
        self.store = repository_store
        self.miner = miner
        self.repository_urls = repository_urls

    def _same_settings(self, metrics: RepositoryMetrics, state: str) -> bool:
        """Whether a stored analysis was made with the current PR state and threshold."""
        summary = metrics.pull_requests
        return (
            summary.state == state
            and summary.fast_merge_threshold_minutes
            == self.analyzer.fast_merge_threshold_minutes
        )

    async def analyze_repositories(self) -> Dict[str, RepositoryMetrics]:
        """
        Analyze all configured repositories.

        Returns:
            Dict[str, RepositoryMetrics]: Mapping of `owner/repo` to analysis results.

        Note:
            Repositories that fail are logged and missing from the result.
        """
        results = {}
        for repo_url in self.repository_urls:
            repo_name = repo_url
            try:
                owner, repo = parse_repository_url(repo_url)
                repo_name = f"{owner}/{repo}"

                logger.info(
                    {"message": "Analyzing repository", "repository": repo_name}
                )

                today = datetime.now(timezone.utc).date()
                snapshots = self.store.load_repository_data(owner, repo)

                if snapshots and snapshots[0].collection_date.date() == today:
                    logger.info(
                        {
                            "message": "Reusing today's repository snapshot",
                            "repository": repo_name,
                        }
                    )
                    repo_data = snapshots[0]
                else:
                    repo_data = await self.miner.mine_repository(owner, repo)
                    self.store.save_repository_data(repo_data)

                analysis = self.store.load_analysis(owner, repo)
                if (
                    analysis
                    and analysis[0].analysis_date.date() == today
                    and self._same_settings(analysis[0], repo_data.pull_request_state)
                ):
                    logger.info(
                        {
                            "message": "Reusing today's repository analysis",
                            "repository": repo_name,
                        }
                    )
                    results[repo_name] = analysis[0]
                    continue

                repo_metrics = await self.analyzer.analyze_repository(repo_data)
                results[repo_name] = repo_metrics
                self.store.store_analysis(repo_metrics)

            except Exception as e:
                logger.error(
                    {
                        "message": "Repository skipped after failure",
                        "repository": repo_name,
                        "error": str(e),
                    }
                )

        return results
