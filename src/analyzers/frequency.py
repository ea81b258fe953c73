"""
Commit frequency timeline.

Buckets commits by UTC calendar day and author email for the frequency
charts, and keeps a per-commit detail index for day-level drill-down.

Unlike the per-author statistics, every co-author named in a trailer is
counted as active on the commit's day. Only the main author counts towards
the day total.
"""

from datetime import timezone
from typing import Dict, Iterable, List

from miners.models import RawCommit
from analyzers.coauthors import extract_co_authors
from analyzers.models import (
    CommitDetail,
    CommitFrequency,
    DayEntry,
    TOTAL_COMMITS_KEY,
)

TOTAL_DISPLAY_NAME = "Total"


def commit_day(commit: RawCommit) -> str:
    """UTC calendar day (`YYYY-MM-DD`) of a commit."""
    return commit.committed_at.astimezone(timezone.utc).date().isoformat()


def parse_commit_frequency(commits: Iterable[RawCommit]) -> CommitFrequency:
    """
    Build the day-indexed commit series.

    Args:
        commits (Iterable[RawCommit]): Repository commits in ingestion order

    Returns:
        CommitFrequency: Day entries sorted ascending, display names
            (last seen wins), grand total and commit details
    """
    day_map: Dict[str, Dict[str, int]] = {}
    day_totals: Dict[str, int] = {}
    email_to_display_name: Dict[str, str] = {}
    author_totals: Dict[str, int] = {}
    commit_details: List[CommitDetail] = []

    for commit in commits:
        day = commit_day(commit)
        email = commit.author_email

        commit_details.append(
            CommitDetail(
                sha=commit.sha,
                author_name=commit.author_name,
                author_email=email,
                committed_at=commit.committed_at,
                day=day,
                message=commit.message,
                url=commit.url,
            )
        )

        email_to_display_name[email] = commit.author_name
        counts = day_map.setdefault(day, {})
        counts[email] = counts.get(email, 0) + 1
        day_totals[day] = day_totals.get(day, 0) + 1
        author_totals[email] = author_totals.get(email, 0) + 1

        for co_author in extract_co_authors(commit.message):
            email_to_display_name[co_author.email] = co_author.name
            counts[co_author.email] = counts.get(co_author.email, 0) + 1

    for day, counts in day_map.items():
        counts[TOTAL_COMMITS_KEY] = day_totals[day]
        email_to_display_name[TOTAL_COMMITS_KEY] = TOTAL_DISPLAY_NAME

    # ISO dates are zero padded, so string order is chronological
    day_entries = [
        DayEntry(day=day, counts=counts) for day, counts in sorted(day_map.items())
    ]

    return CommitFrequency(
        day_entries=day_entries,
        email_to_display_name=email_to_display_name,
        total=sum(entry.total for entry in day_entries),
        author_totals=author_totals,
        commit_details=commit_details,
    )
