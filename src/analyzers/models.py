"""
Repository Analysis Data Models.

Defines the derived, non-persisted aggregates produced by the analyzers:
per-author commit statistics, the day-indexed commit series and the pull
request participation summary. Uses Pydantic for validation and serialization.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from miners.models import PullRequestRecord

UNKNOWN_CO_AUTHOR_EMAIL = "unknown@invalid.com"
TOTAL_COMMITS_KEY = "TOTAL@commits"


class ChartAttachment(BaseModel):
    """Optional chart image reference attached to a metric bundle.

    Set by the presentation layer after a chart image upload. Absent, empty
    or URL values are all accepted and never affect the aggregates.
    """

    include_image: Optional[bool] = None
    url: Optional[str] = None

    @property
    def show_image(self) -> bool:
        return bool(self.include_image) and isinstance(self.url, str) and bool(self.url)


class CoAuthor(BaseModel):
    """Identity declared by a `Co-authored-by:` trailer."""

    name: str
    email: str

    @property
    def is_sentinel(self) -> bool:
        return self.email == UNKNOWN_CO_AUTHOR_EMAIL


class AuthorStats(BaseModel):
    """Running commit statistics for one identity."""

    name: str = ""
    commits: int = 0
    additions: int = 0
    deletions: int = 0
    total: int = 0
    biggest_commit: int = 0
    biggest_commit_url: str = ""
    co_authored_lines: int = 0
    changed_files: int = 0
    average_changes: float = 0.0
    average_files_changed: float = 0.0
    group_average: float = 0.0
    additions_deletions_ratio: float = 0.0


class AuthorStatsSummary(ChartAttachment):
    """Per-identity statistics plus project-wide totals."""

    authors: Dict[str, AuthorStats] = Field(default_factory=dict)
    overall_total: int = 0
    overall_commits: int = 0
    group_average: float = 0.0
    group_average_files_changed: float = 0.0


class DayEntry(BaseModel):
    """Commit counts per author email for one UTC calendar day."""

    day: str
    counts: Dict[str, int] = Field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.counts.get(TOTAL_COMMITS_KEY, 0)

    def to_record(self) -> Dict[str, object]:
        """Flatten into a chart row: `{"day": ..., <email>: count, ...}`."""
        return {"day": self.day, **self.counts}


class CommitDetail(BaseModel):
    """Who committed what, and when."""

    sha: str
    author_name: str
    author_email: str
    committed_at: datetime
    day: str
    message: str
    url: str


class CommitFrequency(ChartAttachment):
    """Day-indexed commit series with drill-down details."""

    day_entries: List[DayEntry] = Field(default_factory=list)
    email_to_display_name: Dict[str, str] = Field(default_factory=dict)
    total: int = 0
    author_totals: Dict[str, int] = Field(default_factory=dict)
    commit_details: List[CommitDetail] = Field(default_factory=list)

    def details_for_day(self, day: str) -> List[CommitDetail]:
        return [detail for detail in self.commit_details if detail.day == day]


class MemberPullRequests(BaseModel):
    """Pull requests credited to one member."""

    count: int = 0
    prs: List[PullRequestRecord] = Field(default_factory=list)


class LabelUsage(BaseModel):
    """How many pull requests used a label."""

    count: int = 0
    color: str = ""


class MemberActivity(BaseModel):
    """Pull request participation of one member."""

    name: str
    pull_requests: int
    reviews: int
    comments: int
    review_percentage: int
    comment_percentage: int


class PullRequestSummary(ChartAttachment):
    """Participation statistics over a set of pull requests."""

    state: str = "all"
    total_prs: int = 0
    open_prs: int = 0
    closed_prs: int = 0
    # Hours; None when no pull request was merged
    average_time_to_merge: Optional[float] = None
    prs_by_member: Dict[str, MemberPullRequests] = Field(default_factory=dict)
    reviews_by_member: Dict[str, MemberPullRequests] = Field(default_factory=dict)
    comments_by_member: Dict[str, int] = Field(default_factory=dict)
    prs_with_review: int = 0
    prs_without_review: int = 0
    total_comments: int = 0
    average_comments_per_pr: float = 0.0
    prs_linked_to_issues: int = 0
    percentage_linked_to_issues: float = 0.0
    milestones: List[str] = Field(default_factory=list)
    label_counts: Dict[str, LabelUsage] = Field(default_factory=dict)
    fast_merge_threshold_minutes: int = 5
    fast_merged_prs: List[PullRequestRecord] = Field(default_factory=list)
    skipped_prs: int = 0


class RepositoryMetrics(BaseModel):
    """Metrics for a repository."""

    owner: str
    repo: str
    analysis_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    raw_author_count: int = 0
    authors: AuthorStatsSummary = Field(default_factory=AuthorStatsSummary)
    top_contributors: List[str] = Field(default_factory=list)
    commit_frequency: CommitFrequency = Field(default_factory=CommitFrequency)
    pull_requests: PullRequestSummary = Field(default_factory=PullRequestSummary)

    @property
    def repository_name(self) -> str:
        return f"{self.owner}/{self.repo}"
