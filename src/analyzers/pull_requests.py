"""
Pull request participation statistics.

Aggregates enriched pull requests into per-member PR, review and comment
counts, review coverage, issue linkage, label usage and fast-merge detection.
"""

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from config import logger
from miners.models import PullRequestRecord
from analyzers.models import (
    LabelUsage,
    MemberActivity,
    MemberPullRequests,
    PullRequestSummary,
)

DEFAULT_FAST_MERGE_THRESHOLD_MINUTES = 5


def _minutes_to_merge(pr: PullRequestRecord) -> Optional[float]:
    if pr.merged_at is None:
        return None
    return (pr.merged_at - pr.created_at).total_seconds() / 60


def _filter_by_state(
    pull_requests: Iterable[PullRequestRecord], state: str
) -> List[PullRequestRecord]:
    if state == "all":
        return list(pull_requests)
    return [pr for pr in pull_requests if pr.state == state]


def summarize_pull_requests(
    pull_requests: Iterable[PullRequestRecord],
    fast_merge_threshold_minutes: int = DEFAULT_FAST_MERGE_THRESHOLD_MINUTES,
    state: str = "all",
    skipped: int = 0,
) -> PullRequestSummary:
    """
    Summarize pull request participation.

    A PR that has review text credits its own author with one extra comment
    and adds one to `total_comments`, on top of the PR's issue comment count.

    Args:
        pull_requests (Iterable[PullRequestRecord]): Enriched pull requests
        fast_merge_threshold_minutes (int): Inclusive fast-merge window
        state (str): `open`, `closed` or `all`
        skipped (int): PRs dropped upstream because enrichment failed

    Returns:
        PullRequestSummary: Aggregated statistics
    """
    prs = _filter_by_state(pull_requests, state)

    prs_by_member: Dict[str, MemberPullRequests] = {}
    reviews_by_member: Dict[str, MemberPullRequests] = {}
    comments_by_member: Dict[str, int] = {}
    label_counts: Dict[str, LabelUsage] = {}
    milestones: List[str] = []

    total_comments = 0
    prs_with_review = 0
    prs_without_review = 0
    prs_linked_to_issues = 0

    for pr in prs:
        member = prs_by_member.setdefault(pr.author, MemberPullRequests())
        member.count += 1
        member.prs.append(pr)

        for reviewer, count in pr.reviewers.items():
            review = reviews_by_member.setdefault(reviewer, MemberPullRequests())
            review.count += count
            review.prs.append(pr)

        for commenter, count in pr.commenters.items():
            comments_by_member[commenter] = comments_by_member.get(commenter, 0) + count

        if pr.review_comments:
            comments_by_member[pr.author] = comments_by_member.get(pr.author, 0) + 1
            total_comments += 1
        total_comments += pr.comments

        if pr.reviews > 0:
            prs_with_review += 1
        else:
            prs_without_review += 1

        if pr.linked_issues > 0:
            prs_linked_to_issues += 1

        for label in pr.labels:
            usage = label_counts.setdefault(label.name, LabelUsage(color=label.color))
            usage.count += 1

        if pr.milestone not in milestones:
            milestones.append(pr.milestone)

    total_prs = len(prs)
    open_prs = len([pr for pr in prs if pr.state == "open"])

    merge_minutes = [m for m in (_minutes_to_merge(pr) for pr in prs) if m is not None]
    average_time_to_merge = (
        sum(merge_minutes) / 60 / len(merge_minutes) if merge_minutes else None
    )

    fast_merged_prs = [
        pr
        for pr in prs
        if pr.merged_at is not None
        and _minutes_to_merge(pr) <= fast_merge_threshold_minutes
    ]

    summary = PullRequestSummary(
        state=state,
        total_prs=total_prs,
        open_prs=open_prs,
        closed_prs=total_prs - open_prs,
        average_time_to_merge=average_time_to_merge,
        prs_by_member=prs_by_member,
        reviews_by_member=reviews_by_member,
        comments_by_member=comments_by_member,
        prs_with_review=prs_with_review,
        prs_without_review=prs_without_review,
        total_comments=total_comments,
        average_comments_per_pr=total_comments / total_prs if total_prs > 0 else 0.0,
        prs_linked_to_issues=prs_linked_to_issues,
        percentage_linked_to_issues=(
            prs_linked_to_issues / total_prs * 100 if total_prs > 0 else 0.0
        ),
        milestones=milestones,
        label_counts=label_counts,
        fast_merge_threshold_minutes=fast_merge_threshold_minutes,
        fast_merged_prs=fast_merged_prs,
        skipped_prs=skipped,
    )

    logger.debug(
        {
            "message": "Pull requests summarized",
            "total_prs": total_prs,
            "fast_merged_prs": len(fast_merged_prs),
            "skipped_prs": skipped,
        }
    )
    return summary


def _utc_day(moment: datetime) -> str:
    if moment.tzinfo is None:
        return moment.date().isoformat()
    return moment.astimezone(timezone.utc).date().isoformat()


def _percentage(part: int, whole: int) -> int:
    # Half-up rounding on non-negative values
    return int(part / whole * 100 + 0.5) if whole > 0 else 0


def pull_request_activity(summary: PullRequestSummary) -> List[MemberActivity]:
    """
    Per-member participation table for PR authors.

    Review percentage is relative to the number of PRs with at least one
    review; comment percentage is relative to `total_comments`.
    """
    activity = []
    for name, member in summary.prs_by_member.items():
        reviewed = summary.reviews_by_member.get(name)
        reviews = reviewed.count if reviewed else 0
        comments = summary.comments_by_member.get(name, 0)
        activity.append(
            MemberActivity(
                name=name,
                pull_requests=member.count,
                reviews=reviews,
                comments=comments,
                review_percentage=_percentage(reviews, summary.prs_with_review),
                comment_percentage=_percentage(comments, summary.total_comments),
            )
        )
    return activity


def pull_requests_by_date(
    summary: PullRequestSummary, members: Iterable[str], milestone: str = "all"
) -> List[Dict[str, object]]:
    """
    Count PRs opened per UTC day for the selected members.

    Args:
        summary (PullRequestSummary): Summary holding per-member PR lists
        members (Iterable[str]): Member logins to include
        milestone (str): Milestone title to filter on, or `all`

    Returns:
        List[Dict[str, object]]: Rows `{"date": "YYYY-MM-DD", <member>: count}`
            sorted by date
    """
    counts_by_date: Dict[str, Dict[str, int]] = {}

    for member in members:
        member_prs = summary.prs_by_member.get(member)
        if member_prs is None:
            continue

        for pr in member_prs.prs:
            if milestone != "all" and pr.milestone != milestone:
                continue
            date = _utc_day(pr.created_at)
            day_counts = counts_by_date.setdefault(date, {})
            day_counts[member] = day_counts.get(member, 0) + 1

    return [
        {"date": date, **counts} for date, counts in sorted(counts_by_date.items())
    ]
