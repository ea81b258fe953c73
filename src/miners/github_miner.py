"""
GitHub Repository Data Mining Module.

This module handles the extraction of raw commit and pull request data from
GitHub (or GitHub Enterprise). It owns pagination, rate-limit reporting and
retries; the analyzers only receive fully materialized lists.

Pull requests are enriched with their reviews and issue comments concurrently,
one fetch per PR. A PR whose enrichment fails is reported as a failed
`PullRequestFetchResult` and left out of the snapshot; sibling fetches continue.
"""

import asyncio
from collections import Counter
from datetime import datetime, timezone
from typing import List, Optional

from github import Auth, Github
from github.Commit import Commit
from github.PullRequest import PullRequest
from github.Repository import Repository
from tenacity import retry, stop_after_attempt, wait_exponential

from config import logger
from miners.base import RepositoryMiner
from miners.models import (
    Label,
    PullRequestFetchResult,
    PullRequestRecord,
    RawCommit,
    RepositoryData,
    count_linked_issues,
    partition_fetch_results,
)


class GitHubMiner(RepositoryMiner):
    """
    GitHubMiner is responsible for mining data from GitHub repositories.
    It extracts commits and pull requests, transforming them into Pydantic models.
    """

    def __init__(
        self,
        github_token: Optional[str] = None,
        base_url: str = "https://api.github.com",
        pull_request_state: str = "all",
        branch: Optional[str] = None,
    ):
        """Initialize GitHub miner with authentication and configuration.

        Args:
            github_token (Optional[str]): GitHub API token for authentication.
            base_url (str): REST API base URL, e.g. a GitHub Enterprise host.
            pull_request_state (str): `open`, `closed` or `all`.
            branch (Optional[str]): Branch to read commits from, default branch if None.
        """
        auth = Auth.Token(github_token) if github_token else None
        self.github = Github(auth=auth, base_url=base_url)
        self.pull_request_state = pull_request_state
        self.branch = branch

    def _check_rate_limit(self, check_name: str = None) -> None:
        """
        Check and log the GitHub API rate limit status.

        Args:
            check_name (Optional[str]): Identifier for the rate limit check point.

        Raises:
            Exception: Raised when the rate limit is exhausted, indicating time until reset.
        """
        remaining, limit = self.github.rate_limiting
        reset_time = datetime.fromtimestamp(
            self.github.rate_limiting_resettime, tz=timezone.utc
        )
        now = datetime.now(timezone.utc)

        logger.info(
            {
                "message": f"{check_name} API rate limit status",
                "remaining_points": remaining,
                "total_points": limit,
                "reset_time": reset_time.isoformat(),
                "minutes_to_reset": (reset_time - now).total_seconds() / 60,
            }
        )

        # If less than 10% of rate limit remains, log a warning
        if remaining < (limit * 0.1) and remaining > 0:
            logger.warning(
                {
                    "message": "GitHub API rate limit running low",
                    "remaining_points": remaining,
                    "reset_time": reset_time.isoformat(),
                }
            )

        if remaining == 0:
            wait_time = (reset_time - now).total_seconds()
            logger.critical(
                {
                    "message": "GitHub API rate limit exhausted",
                    "reset_time": reset_time.isoformat(),
                    "wait_time_seconds": wait_time,
                }
            )
            raise Exception(
                f"GitHub API rate limit exhausted. Resets in {wait_time/60:.1f} minutes"
            )

    def _get_commit_data(self, commit: Commit) -> RawCommit:
        """Convert a GitHub Commit object to a Pydantic model.

        Reading `stats` and `files` completes the commit with one REST call.

        Args:
            commit (Commit): The GitHub Commit object.

        Returns:
            RawCommit: A Pydantic model representing the commit.
        """
        git_author = commit.commit.author
        stats = commit.stats
        return RawCommit(
            sha=commit.sha,
            author_name=git_author.name if git_author else None,
            author_email=git_author.email if git_author else None,
            committed_at=git_author.date if git_author else commit.commit.committer.date,
            message=commit.commit.message,
            additions=stats.additions,
            deletions=stats.deletions,
            changed_files=sum(1 for _ in commit.files),
            url=commit.html_url,
        )

    def _get_pr_record(
        self, pr: PullRequest, reviews: list, comments: list
    ) -> PullRequestRecord:
        """Convert a GitHub PullRequest and its activity to a Pydantic model.

        Args:
            pr (PullRequest): The GitHub PullRequest object.
            reviews (list): Reviews of the pull request.
            comments (list): Issue comments of the pull request.

        Returns:
            PullRequestRecord: A Pydantic model representing the PR.
        """
        reviewers = Counter(
            review.user.login for review in reviews if review.user and review.user.login
        )
        commenters = Counter(
            comment.user.login
            for comment in comments
            if comment.user and comment.user.login
        )
        return PullRequestRecord(
            number=pr.number,
            url=pr.html_url,
            title=pr.title,
            state=pr.state,
            milestone=pr.milestone.title if pr.milestone else None,
            created_at=pr.created_at,
            updated_at=pr.updated_at,
            closed_at=pr.closed_at,
            merged_at=pr.merged_at,
            author=pr.user.login if pr.user else None,
            reviews=len(reviews),
            review_comments=", ".join(review.body or "" for review in reviews),
            comments=len(comments),
            linked_issues=count_linked_issues(pr.body),
            reviewers=dict(reviewers),
            commenters=dict(commenters),
            labels=[Label(name=label.name, color=label.color) for label in pr.labels],
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    def _enrich_pull_request(self, pr: PullRequest) -> PullRequestRecord:
        """Fetch reviews and issue comments of one pull request."""
        reviews = list(pr.get_reviews())
        comments = list(pr.get_issue_comments())
        return self._get_pr_record(pr, reviews, comments)

    async def _fetch_pull_request(
        self, pr: PullRequest, repo_name: str
    ) -> PullRequestFetchResult:
        """Enrich one pull request in a worker thread, capturing failures."""
        try:
            record = await asyncio.to_thread(self._enrich_pull_request, pr)
            return PullRequestFetchResult(number=pr.number, record=record)
        except Exception as e:
            logger.error(
                {
                    "message": "Failed to fetch pull request activity",
                    "repository": repo_name,
                    "pr_number": pr.number,
                    "error": str(e),
                }
            )
            return PullRequestFetchResult(number=pr.number, error=str(e))

    async def fetch_pull_requests(
        self, repo: Repository, repo_name: str
    ) -> List[PullRequestFetchResult]:
        """
        List pull requests and enrich them concurrently.

        Args:
            repo (Repository): The GitHub repository.
            repo_name (str): `owner/repo`, used for logging.

        Returns:
            List[PullRequestFetchResult]: One result per PR, in listing order.
        """
        pulls = list(
            repo.get_pulls(state=self.pull_request_state, sort="created", direction="asc")
        )
        tasks = [self._fetch_pull_request(pr, repo_name) for pr in pulls]
        return await asyncio.gather(*tasks)

    def fetch_commits(self, repo: Repository) -> List[RawCommit]:
        """
        List commits of the configured branch with their line statistics.

        Args:
            repo (Repository): The GitHub repository.

        Returns:
            List[RawCommit]: Commits, newest first as listed by the host.
        """
        if self.branch:
            commits = repo.get_commits(sha=self.branch)
        else:
            commits = repo.get_commits()
        return [self._get_commit_data(commit) for commit in commits]

    async def mine_repository(self, owner: str, repo: str) -> RepositoryData:
        """
        Extract and transform data from a specified GitHub repository.

        Args:
            owner (str): Repository owner.
            repo (str): Repository name.

        Returns:
            RepositoryData: A Pydantic model containing the mined repository data.

        Raises:
            Exception: Raised if the mining process fails.
        """
        repo_name = f"{owner}/{repo}"
        logger.info({"message": "Starting repository mining", "repository": repo_name})

        try:
            repository: Repository = self.github.get_repo(repo_name)

            self._check_rate_limit("Repository mining")

            commits = self.fetch_commits(repository)
            self._check_rate_limit("Commit mining")

            results = await self.fetch_pull_requests(repository, repo_name)
            pull_requests, skipped = partition_fetch_results(results)
            self._check_rate_limit("PR mining")

            logger.info(
                {
                    "message": "Repository mining completed",
                    "repository": repo_name,
                    "commits": len(commits),
                    "pull_requests": len(pull_requests),
                    "skipped_pull_requests": len(skipped),
                }
            )

            return RepositoryData(
                owner=owner,
                repo=repo,
                commits=commits,
                pull_requests=pull_requests,
                skipped_pull_requests=skipped,
                pull_request_state=self.pull_request_state,
            )

        except Exception as e:
            logger.error(
                {
                    "message": "Repository mining failed",
                    "repository": repo_name,
                    "error": str(e),
                }
            )
            raise
