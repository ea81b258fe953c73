"""
Repository Analysis Module.

Combines the commit and pull request analyzers into one metrics bundle per
repository:
- Per-author commit statistics, consolidated across identities
- Contributor leaderboard
- Day-indexed commit frequency
- Pull request participation summary

The analyzer is a pure function of the mined data; it performs no I/O and can
be re-run or run for several repositories concurrently.
"""

from typing import List

import pandas as pd

from config import logger
from miners.models import RepositoryData
from analyzers.commit_stats import aggregate_author_stats
from analyzers.consolidation import consolidate_contributors
from analyzers.frequency import parse_commit_frequency
from analyzers.models import AuthorStatsSummary, RepositoryMetrics
from analyzers.pull_requests import (
    DEFAULT_FAST_MERGE_THRESHOLD_MINUTES,
    summarize_pull_requests,
)


class RepositoryAnalyzer:
    """
    Repository analyzer producing commit attribution and PR statistics.

    Attributes:
        fast_merge_threshold_minutes (int): Window for flagging fast-merged PRs
    """

    def __init__(
        self, fast_merge_threshold_minutes: int = DEFAULT_FAST_MERGE_THRESHOLD_MINUTES
    ):
        """
        Initialize the analyzer.

        Args:
            fast_merge_threshold_minutes (int): PRs merged within this many
                minutes of creation are reported as fast-merged.
        """
        self.fast_merge_threshold_minutes = fast_merge_threshold_minutes

    @staticmethod
    def rank_contributors(authors: AuthorStatsSummary) -> List[str]:
        """
        Order contributor emails by total changed lines, largest first.

        Args:
            authors (AuthorStatsSummary): Consolidated author statistics

        Returns:
            List[str]: Emails, ties broken by commit count
        """
        if not authors.authors:
            return []

        df = pd.DataFrame.from_dict(
            {email: stats.model_dump() for email, stats in authors.authors.items()},
            orient="index",
        )
        df = df.sort_values(["total", "commits"], ascending=False, kind="stable")
        return df.index.tolist()

    async def analyze_repository(self, repo_data: RepositoryData) -> RepositoryMetrics:
        """
        Perform the commit and pull request analysis of a repository.

        Args:
            repo_data (RepositoryData): Mined repository data

        Returns:
            RepositoryMetrics: Analysis results

        Raises:
            Exception: If analysis fails unexpectedly
        """
        logger.info(
            {
                "message": "Starting repository analysis",
                "repository": repo_data.repository_name,
                "commits": len(repo_data.commits),
                "pull_requests": len(repo_data.pull_requests),
            }
        )
        try:
            if not repo_data.commits:
                logger.warning(
                    {
                        "message": "No commits found for repository",
                        "repository": repo_data.repository_name,
                    }
                )

            raw_authors = aggregate_author_stats(repo_data.commits)
            authors = consolidate_contributors(raw_authors.authors)
            frequency = parse_commit_frequency(repo_data.commits)

            if repo_data.skipped_pull_requests:
                logger.warning(
                    {
                        "message": "Pull requests skipped after failed enrichment",
                        "repository": repo_data.repository_name,
                        "skipped": repo_data.skipped_pull_requests,
                    }
                )

            pull_requests = summarize_pull_requests(
                repo_data.pull_requests,
                fast_merge_threshold_minutes=self.fast_merge_threshold_minutes,
                state=repo_data.pull_request_state,
                skipped=len(repo_data.skipped_pull_requests),
            )

            logger.info({"message": "creating metrics object"})
            metrics = RepositoryMetrics(
                owner=repo_data.owner,
                repo=repo_data.repo,
                raw_author_count=len(raw_authors.authors),
                authors=authors,
                top_contributors=self.rank_contributors(authors),
                commit_frequency=frequency,
                pull_requests=pull_requests,
            )

            logger.info(
                {
                    "message": "Repository analysis completed",
                    "repository": repo_data.repository_name,
                }
            )

            return metrics

        except Exception as e:
            logger.error(
                {
                    "message": "Repository analysis failed",
                    "repository": repo_data.repository_name,
                    "error": str(e),
                    "error_line": e.__traceback__.tb_lineno,
                }
            )
            raise e
