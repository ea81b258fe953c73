"""
Contributor identity consolidation.

Commit emails are unreliable identity keys: the same person commits from a
personal address and a `noreply` address, with `+tag` aliases, or with slightly
different display names. This module merges author statistics that very likely
belong to one person, in two independent passes:

1. Email pass: group emails sharing a normalized form (lower-cased, `+tag`
   dropped, dots removed from Gmail local parts).
2. Name pass: among identities not claimed by the email pass, group those
   sharing a normalized display name of at least three characters.

Groups of more than one identity are merged under a primary email. The
heuristics can under-merge (unrelated-looking identities of one person) and
over-merge (two people with the same normalized name).
"""

import re
from typing import Dict, List, Optional, Set

from config import logger
from analyzers.commit_stats import apply_derived_metrics
from analyzers.models import AuthorStats, AuthorStatsSummary, UNKNOWN_CO_AUTHOR_EMAIL

GMAIL_DOMAIN = "gmail.com"
NOREPLY_MARKER = "noreply"
MIN_NAME_LENGTH = 3

NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")


def normalize_email(email: str) -> Optional[str]:
    """
    Normalize an email for identity grouping.

    Args:
        email (str): Raw email as recorded by the VCS

    Returns:
        Optional[str]: Normalized email, or None when the value is not an email
    """
    if not email or "@" not in email:
        return None

    username, _, domain = email.lower().partition("@")
    if domain == GMAIL_DOMAIN:
        username = username.replace(".", "")
    username = username.split("+")[0]
    return f"{username}@{domain}"


def normalize_name(name: str) -> Optional[str]:
    """
    Normalize a display name for identity grouping.

    Returns None for names too short after normalization to be meaningful.
    """
    if not name:
        return None

    normalized = NON_ALPHANUMERIC.sub("", name.lower())
    if len(normalized) < MIN_NAME_LENGTH:
        return None
    return normalized


def select_primary_email(group: List[str], authors: Dict[str, AuthorStats]) -> List[str]:
    """Order a group so the primary email comes first.

    Non-noreply emails sort before noreply ones, then more commits first.
    The sort is stable, so ties keep input order.
    """
    return sorted(
        group,
        key=lambda email: (NOREPLY_MARKER in email, -authors[email].commits),
    )


def merge_group(group: List[str], authors: Dict[str, AuthorStats]) -> AuthorStats:
    """
    Merge the statistics of an ordered identity group.

    Numeric fields are summed, the biggest commit is the largest single commit
    across the group and the name is the longest non-empty one.

    Args:
        group (List[str]): Emails ordered with the primary first
        authors (Dict[str, AuthorStats]): Source statistics

    Returns:
        AuthorStats: Fresh merged entry
    """
    merged = AuthorStats()

    for email in group:
        stats = authors[email]
        merged.additions += stats.additions
        merged.deletions += stats.deletions
        merged.total += stats.total
        merged.commits += stats.commits
        merged.co_authored_lines += stats.co_authored_lines
        merged.changed_files += stats.changed_files

        if stats.biggest_commit > merged.biggest_commit:
            merged.biggest_commit = stats.biggest_commit
            merged.biggest_commit_url = stats.biggest_commit_url

        if len(stats.name or "") > len(merged.name):
            merged.name = stats.name

    return merged


def _group_by(keys: Dict[str, Optional[str]]) -> Dict[str, List[str]]:
    groups: Dict[str, List[str]] = {}
    for email, key in keys.items():
        if key is None:
            continue
        groups.setdefault(key, []).append(email)
    return groups


def consolidate_contributors(authors: Dict[str, AuthorStats]) -> AuthorStatsSummary:
    """
    Merge author entries that likely represent the same person.

    The email pass claims identities first; the name pass only considers
    identities the email pass left unmerged. The input mapping is not modified.

    Args:
        authors (Dict[str, AuthorStats]): Statistics keyed by raw email

    Returns:
        AuthorStatsSummary: Consolidated statistics with recomputed averages
    """
    consolidated: Dict[str, AuthorStats] = {}
    processed: Set[str] = set()

    email_groups = _group_by(
        {
            email: None if email == UNKNOWN_CO_AUTHOR_EMAIL else normalize_email(email)
            for email in authors
        }
    )
    for group in email_groups.values():
        if len(group) <= 1:
            continue
        ordered = select_primary_email(group, authors)
        consolidated[ordered[0]] = merge_group(ordered, authors)
        processed.update(ordered)

    name_groups = _group_by(
        {
            email: None if email == UNKNOWN_CO_AUTHOR_EMAIL else normalize_name(stats.name)
            for email, stats in authors.items()
        }
    )
    for group in name_groups.values():
        unprocessed = [email for email in group if email not in processed]
        if len(unprocessed) <= 1:
            continue
        ordered = select_primary_email(unprocessed, authors)
        consolidated[ordered[0]] = merge_group(ordered, authors)
        processed.update(ordered)

    for email, stats in authors.items():
        if email not in processed:
            consolidated[email] = stats.model_copy()

    logger.info(
        {
            "message": "Contributor consolidation results",
            "original_contributors": len(authors),
            "consolidated_contributors": len(consolidated),
        }
    )

    return apply_derived_metrics(consolidated)
