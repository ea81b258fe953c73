"""
Repository Mining Data Models.

Defines the common data models used across different repository mining implementations.
Uses Pydantic for validation and serialization.

These models are the ingestion contract: the analyzers only ever read them and
assume the lists are complete and already materialized in memory.
"""

import re
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

UNKNOWN_AUTHOR = "unknown"

ISSUE_REFERENCE_PATTERN = re.compile(r"#\d+")


def count_linked_issues(body: Optional[str]) -> int:
    """Count `#<digits>` issue references in a pull request body."""
    if not isinstance(body, str):
        return 0
    return len(ISSUE_REFERENCE_PATTERN.findall(body))


def _as_utc(v: Optional[datetime]) -> Optional[datetime]:
    # Naive timestamps from the host are UTC
    if v is not None and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


class RawCommit(BaseModel):
    """Raw commit data from repository."""

    sha: str
    author_name: str = UNKNOWN_AUTHOR
    author_email: str = UNKNOWN_AUTHOR
    committed_at: datetime
    message: str = ""
    additions: int = Field(default=0, ge=0)
    deletions: int = Field(default=0, ge=0)
    changed_files: int = Field(default=0, ge=0)
    url: str = ""

    @field_validator("author_name", "author_email", mode="before")
    @classmethod
    def default_unknown(cls, v: Optional[str]) -> str:
        return UNKNOWN_AUTHOR if v is None else v

    @field_validator("message", "url", mode="before")
    @classmethod
    def default_empty(cls, v: Optional[str]) -> str:
        return "" if v is None else v

    @field_validator("additions", "deletions", "changed_files", mode="before")
    @classmethod
    def default_zero(cls, v: Optional[int]) -> int:
        return 0 if v is None else v

    @field_validator("committed_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @property
    def changes(self) -> int:
        """Lines touched by the commit (additions + deletions)."""
        return self.additions + self.deletions


class Label(BaseModel):
    """Pull request label."""

    name: str
    color: str = ""


class PullRequestRecord(BaseModel):
    """Pull Request data enriched with its reviews and issue comments."""

    number: int
    url: str = ""
    title: str = ""
    state: str
    milestone: str = "None"
    created_at: datetime
    updated_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    merged_at: Optional[datetime] = None
    author: str = UNKNOWN_AUTHOR
    reviews: int = 0
    review_comments: str = ""
    comments: int = 0
    linked_issues: int = 0
    reviewers: Dict[str, int] = Field(default_factory=dict)
    commenters: Dict[str, int] = Field(default_factory=dict)
    labels: List[Label] = Field(default_factory=list)

    @field_validator("author", mode="before")
    @classmethod
    def default_unknown(cls, v: Optional[str]) -> str:
        return UNKNOWN_AUTHOR if v is None else v

    @field_validator("milestone", mode="before")
    @classmethod
    def default_milestone(cls, v: Optional[str]) -> str:
        return "None" if v is None else v

    @field_validator("created_at", "updated_at", "closed_at", "merged_at")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)


class PullRequestFetchResult(BaseModel):
    """Outcome of enriching a single pull request.

    Exactly one of `record` and `error` is set.
    """

    number: int
    record: Optional[PullRequestRecord] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.record is not None and self.error is None


def partition_fetch_results(
    results: Iterable[PullRequestFetchResult],
) -> Tuple[List[PullRequestRecord], List[int]]:
    """
    Split per-PR enrichment results into records and skipped PR numbers.

    Args:
        results (Iterable[PullRequestFetchResult]): Enrichment outcomes

    Returns:
        Tuple[List[PullRequestRecord], List[int]]: Successful records in
            input order and the numbers of failed PRs
    """
    records: List[PullRequestRecord] = []
    skipped: List[int] = []
    for result in results:
        if result.ok:
            records.append(result.record)
        else:
            skipped.append(result.number)
    return records, skipped


class RepositoryData(BaseModel):
    """Container for all mined repository data."""

    owner: str
    repo: str
    collection_date: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    commits: List[RawCommit] = Field(default_factory=list)
    pull_requests: List[PullRequestRecord] = Field(default_factory=list)
    skipped_pull_requests: List[int] = Field(default_factory=list)
    pull_request_state: str = "all"

    @property
    def repository_name(self) -> str:
        return f"{self.owner}/{self.repo}"
