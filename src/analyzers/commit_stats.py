"""
Per-author commit statistics.

Folds a repository's commit stream into running statistics keyed by author
email. The main author of a commit is credited with the commit and its line
changes; co-authors declared in trailers only receive `co_authored_lines`.
"""

from typing import Dict, Iterable

from config import logger
from miners.models import RawCommit
from analyzers.coauthors import extract_co_authors
from analyzers.models import AuthorStats, AuthorStatsSummary

UNKNOWN_CO_AUTHOR_NAME = "Unknown Co-Author"


def additions_deletions_ratio(additions: int, deletions: int) -> float:
    """Ratio of added to deleted lines.

    Falls back to `additions` when nothing was deleted, so results remain
    finite and JSON-serializable.
    """
    if deletions > 0:
        return additions / deletions
    return float(additions) if additions > 0 else 0.0


def apply_derived_metrics(authors: Dict[str, AuthorStats]) -> AuthorStatsSummary:
    """
    Compute project-wide totals and write derived metrics onto every entry.

    Args:
        authors (Dict[str, AuthorStats]): Statistics keyed by email, updated in place

    Returns:
        AuthorStatsSummary: The same mapping with project totals
    """
    overall_total = sum(stats.total for stats in authors.values())
    overall_commits = sum(stats.commits for stats in authors.values())
    overall_files = sum(stats.changed_files for stats in authors.values())

    group_average = overall_total / overall_commits if overall_commits > 0 else 0.0
    group_average_files = overall_files / overall_commits if overall_commits > 0 else 0.0

    for stats in authors.values():
        if stats.commits > 0:
            stats.average_changes = stats.total / stats.commits
            stats.average_files_changed = stats.changed_files / stats.commits
        else:
            stats.average_changes = 0.0
            stats.average_files_changed = 0.0
        stats.group_average = group_average
        stats.additions_deletions_ratio = additions_deletions_ratio(
            stats.additions, stats.deletions
        )

    return AuthorStatsSummary(
        authors=authors,
        overall_total=overall_total,
        overall_commits=overall_commits,
        group_average=group_average,
        group_average_files_changed=group_average_files,
    )


def aggregate_author_stats(commits: Iterable[RawCommit]) -> AuthorStatsSummary:
    """
    Aggregate commit statistics per author email.

    Per commit, the main author gets the commit count, additions, deletions,
    changed files and biggest-commit tracking. Every co-author with a parsable
    trailer gets the commit's changed lines added to `co_authored_lines`; the
    commit count is never incremented for co-authors.

    Args:
        commits (Iterable[RawCommit]): Repository commits in ingestion order

    Returns:
        AuthorStatsSummary: Unconsolidated statistics keyed by raw email
    """
    authors: Dict[str, AuthorStats] = {}

    for commit in commits:
        email = commit.author_email
        commit_total = commit.changes

        if email not in authors:
            authors[email] = AuthorStats(name=commit.author_name)
        stats = authors[email]

        stats.additions += commit.additions
        stats.deletions += commit.deletions
        stats.total = stats.additions + stats.deletions
        stats.changed_files += commit.changed_files
        stats.commits += 1

        if commit_total > stats.biggest_commit:
            stats.biggest_commit = commit_total
            stats.biggest_commit_url = commit.url

        for co_author in extract_co_authors(commit.message):
            if co_author.is_sentinel:
                logger.debug(
                    {
                        "message": "Skipping unrecognized co-author format",
                        "sha": commit.sha,
                        "trailer": co_author.name,
                    }
                )
                continue

            if co_author.email not in authors:
                authors[co_author.email] = AuthorStats(
                    name=co_author.name or UNKNOWN_CO_AUTHOR_NAME
                )
            authors[co_author.email].co_authored_lines += commit_total

    return apply_derived_metrics(authors)
