"""
Report data assembly.

Combines a repository's metrics into the section payload consumed by the
report renderers, including the commits of the busiest day. Each section
carries the chart image pass-through of its metric bundle; the payload never
alters the aggregates themselves.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from analyzers.models import ChartAttachment, RepositoryMetrics
from analyzers.pull_requests import pull_request_activity


class ReportSection(BaseModel):
    """One titled table of the report, with an optional chart image."""

    title: str
    headers: List[str]
    rows: List[List[str]] = Field(default_factory=list)
    image_url: Optional[str] = None


class ReportPayload(BaseModel):
    """All sections of a repository report."""

    repository_name: str
    analysis_date: str
    sections: List[ReportSection] = Field(default_factory=list)


def _image_url(bundle: ChartAttachment) -> Optional[str]:
    return bundle.url if bundle.show_image else None


def _format_hours(hours: Optional[float]) -> str:
    return "n/a" if hours is None else f"{hours:.1f} h"


def commit_quality_section(metrics: RepositoryMetrics) -> ReportSection:
    authors = metrics.authors
    rows = []
    for email in metrics.top_contributors:
        stats = authors.authors[email]
        rows.append(
            [
                stats.name or email,
                email,
                str(stats.commits),
                str(stats.additions),
                str(stats.deletions),
                str(stats.co_authored_lines),
                f"{stats.average_changes:.1f}",
                f"{stats.additions_deletions_ratio:.2f}",
                str(stats.biggest_commit),
            ]
        )
    return ReportSection(
        title="Contributions per Author",
        headers=[
            "Name",
            "Email",
            "Commits",
            "Additions",
            "Deletions",
            "Co-authored lines",
            "Avg changes",
            "Add/Del ratio",
            "Biggest commit",
        ],
        rows=rows,
        image_url=_image_url(authors),
    )


def commit_frequency_section(metrics: RepositoryMetrics) -> ReportSection:
    frequency = metrics.commit_frequency
    rows = [
        [frequency.email_to_display_name.get(email, email), email, str(count)]
        for email, count in sorted(
            frequency.author_totals.items(), key=lambda item: -item[1]
        )
    ]
    rows.append(["Total", "", str(frequency.total)])
    return ReportSection(
        title="Commit Frequency",
        headers=["Name", "Email", "Commits"],
        rows=rows,
        image_url=_image_url(frequency),
    )


def busiest_day_section(metrics: RepositoryMetrics) -> ReportSection:
    """List the commits of the day with the most commits, earliest day on ties."""
    frequency = metrics.commit_frequency
    rows = []
    if frequency.day_entries:
        busiest = max(frequency.day_entries, key=lambda entry: entry.total)
        rows = [
            [
                busiest.day,
                detail.committed_at.strftime("%H:%M"),
                detail.author_name,
                detail.sha[:7],
                detail.message.splitlines()[0][:60] if detail.message else "",
            ]
            for detail in frequency.details_for_day(busiest.day)
        ]
    return ReportSection(
        title="Busiest Commit Day",
        headers=["Day", "Time (UTC)", "Author", "Commit", "Message"],
        rows=rows,
    )



def pull_request_section(metrics: RepositoryMetrics) -> ReportSection:
    summary = metrics.pull_requests
    rows = [
        ["Total pull requests", str(summary.total_prs)],
        ["Open", str(summary.open_prs)],
        ["Closed", str(summary.closed_prs)],
        ["With review", str(summary.prs_with_review)],
        ["Without review", str(summary.prs_without_review)],
        ["Average comments per PR", f"{summary.average_comments_per_pr:.2f}"],
        ["Linked to issues", f"{summary.percentage_linked_to_issues:.0f}%"],
        ["Average time to merge", _format_hours(summary.average_time_to_merge)],
        [
            f"Merged within {summary.fast_merge_threshold_minutes} min",
            str(len(summary.fast_merged_prs)),
        ],
        ["Skipped (fetch failed)", str(summary.skipped_prs)],
    ]
    return ReportSection(
        title="Pull Requests",
        headers=["Metric", "Value"],
        rows=rows,
        image_url=_image_url(summary),
    )


def participation_section(metrics: RepositoryMetrics) -> ReportSection:
    rows = [
        [
            member.name,
            str(member.pull_requests),
            f"{member.reviews} ({member.review_percentage}%)",
            f"{member.comments} ({member.comment_percentage}%)",
        ]
        for member in pull_request_activity(metrics.pull_requests)
    ]
    return ReportSection(
        title="Pull Request Participation",
        headers=["Member", "Pull requests", "Reviews", "Comments"],
        rows=rows,
    )


def label_section(metrics: RepositoryMetrics) -> ReportSection:
    label_counts: Dict = metrics.pull_requests.label_counts
    return ReportSection(
        title="Label Usage",
        headers=["Label", "Pull requests"],
        rows=[[name, str(usage.count)] for name, usage in label_counts.items()],
    )


def build_report_payload(metrics: RepositoryMetrics) -> ReportPayload:
    """
    Assemble the report sections of a repository.

    Args:
        metrics (RepositoryMetrics): Analysis results

    Returns:
        ReportPayload: Sections in report order
    """
    return ReportPayload(
        repository_name=metrics.repository_name,
        analysis_date=metrics.analysis_date.strftime("%Y-%m-%d %H:%M:%S"),
        sections=[
            commit_quality_section(metrics),
            commit_frequency_section(metrics),
            busiest_day_section(metrics),
            pull_request_section(metrics),
            participation_section(metrics),
            label_section(metrics),
        ],
    )
