"""Shared fixtures and factories for the test suite."""

from datetime import datetime, timezone

import pytest

from miners.models import Label, PullRequestRecord, RawCommit

BASE_TIME = datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)


def make_commit(
    sha="abc123",
    author_name="Bob",
    author_email="bob@x.com",
    additions=0,
    deletions=0,
    message="Update",
    committed_at=BASE_TIME,
    changed_files=1,
):
    return RawCommit(
        sha=sha,
        author_name=author_name,
        author_email=author_email,
        committed_at=committed_at,
        message=message,
        additions=additions,
        deletions=deletions,
        changed_files=changed_files,
        url=f"https://github.com/test/repo/commit/{sha}",
    )


def make_pull_request(number=1, **overrides):
    fields = dict(
        number=number,
        url=f"https://github.com/test/repo/pull/{number}",
        title=f"PR {number}",
        state="closed",
        created_at=BASE_TIME,
        author="user1",
    )
    fields.update(overrides)
    return PullRequestRecord(**fields)


@pytest.fixture
def commit_factory():
    """Factory for raw commits with sensible defaults."""
    return make_commit


@pytest.fixture
def pull_request_factory():
    """Factory for enriched pull request records with sensible defaults."""
    return make_pull_request


@pytest.fixture
def sample_pull_requests():
    """Create a small mixed set of pull requests for testing."""
    return [
        make_pull_request(
            1,
            author="user1",
            state="closed",
            merged_at=BASE_TIME.replace(hour=14),
            reviews=2,
            reviewers={"user2": 2},
            review_comments="LGTM, nit",
            comments=3,
            commenters={"user2": 1, "user3": 2},
            linked_issues=1,
            labels=[Label(name="bug", color="d73a4a")],
            milestone="Sprint 1",
        ),
        make_pull_request(
            2,
            author="user2",
            state="open",
            reviews=0,
            comments=1,
            commenters={"user1": 1},
            labels=[Label(name="bug", color="d73a4a"), Label(name="docs", color="0075ca")],
        ),
        make_pull_request(
            3,
            author="user1",
            state="closed",
            created_at=BASE_TIME.replace(day=6),
            merged_at=BASE_TIME.replace(day=6, minute=3),
            reviews=1,
            reviewers={"user3": 1},
            milestone="Sprint 1",
        ),
    ]
