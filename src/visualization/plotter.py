"""
Repository Analysis Visualization Module.

Provides functionality for creating and managing data visualizations of repository
analysis results, including:
- Commit frequency over time per author
- Contribution distribution across authors
- Pull request participation per member
- Pull requests opened per day and member

The module uses matplotlib for creating the figures and handles proper file
management for generated plots.
"""

from typing import Dict, List, Optional
import os
import time

import matplotlib.pyplot as plt

from analyzers.models import (
    AuthorStatsSummary,
    CommitFrequency,
    MemberActivity,
    TOTAL_COMMITS_KEY,
)


class RepositoryPlotter:
    """
    Specialized plotter for repository-specific visualizations.

    Attributes:
        output_dir (str): Directory for saving generated plots
    """

    def __init__(self, output_dir: str = "plots"):
        """
        Initialize repository plotter with output configuration.

        Args:
            output_dir (str): Directory path for saving generated plots.
                Defaults to "plots"
        """
        self.output_dir = output_dir
        os.makedirs(output_dir, exist_ok=True)

    def create_commit_frequency_plot(
        self, frequency: CommitFrequency, emails: Optional[List[str]] = None
    ) -> plt.Figure:
        """Create a daily commit count plot.

        Args:
            frequency (CommitFrequency): Day-indexed commit series
            emails (Optional[List[str]]): Authors to draw, all when None

        Returns:
            plt.Figure: Generated line plot
        """
        rows = [entry.to_record() for entry in frequency.day_entries]
        days = [row["day"] for row in rows]
        if emails is None:
            emails = [
                email
                for email in frequency.email_to_display_name
                if email != TOTAL_COMMITS_KEY
            ]

        fig, ax = plt.subplots(figsize=(12, 6))
        for email in emails + [TOTAL_COMMITS_KEY]:
            values = [row.get(email, 0) for row in rows]
            ax.plot(
                days,
                values,
                marker="o",
                linestyle="--" if email == TOTAL_COMMITS_KEY else "-",
                label=frequency.email_to_display_name.get(email, email),
            )

        ax.set_title(f"Commits per Day ({frequency.total} total)")
        ax.set_xlabel("Day")
        ax.set_ylabel("Commits")
        ax.legend(title="Authors")
        ax.grid(True)
        plt.setp(ax.xaxis.get_majorticklabels(), rotation=45)

        plt.tight_layout()
        return fig

    def create_contribution_plot(self, authors: AuthorStatsSummary) -> plt.Figure:
        """Create a stacked bar plot of additions and deletions per author.

        Args:
            authors (AuthorStatsSummary): Consolidated author statistics

        Returns:
            plt.Figure: Generated bar plot
        """
        ranked = sorted(authors.authors.items(), key=lambda item: -item[1].total)
        names = [stats.name or email for email, stats in ranked]
        additions = [stats.additions for _, stats in ranked]
        deletions = [stats.deletions for _, stats in ranked]

        fig, ax = plt.subplots(figsize=(12, 6))
        ax.bar(names, additions, label="Additions", color="tab:green")
        ax.bar(names, deletions, bottom=additions, label="Deletions", color="tab:red")
        ax.axhline(
            authors.group_average,
            color="grey",
            linestyle="--",
            label="Project average per commit",
        )

        ax.set_title("Lines Changed per Contributor")
        ax.set_ylabel("Lines")
        ax.legend()
        plt.setp(ax.xaxis.get_majorticklabels(), rotation=45)

        plt.tight_layout()
        return fig

    def create_pull_request_activity_plot(
        self, activity: List[MemberActivity]
    ) -> plt.Figure:
        """Create a grouped bar plot of PRs, reviews and comments per member.

        Args:
            activity (List[MemberActivity]): Per-member participation

        Returns:
            plt.Figure: Generated bar plot
        """
        names = [member.name for member in activity]
        positions = range(len(names))
        width = 0.25

        fig, ax = plt.subplots(figsize=(12, 6))
        ax.bar(
            [p - width for p in positions],
            [m.pull_requests for m in activity],
            width,
            label="Pull Requests",
        )
        ax.bar(positions, [m.reviews for m in activity], width, label="Reviews")
        ax.bar(
            [p + width for p in positions],
            [m.comments for m in activity],
            width,
            label="Comments",
        )

        ax.set_xticks(list(positions))
        ax.set_xticklabels(names, rotation=45)
        ax.set_title("Pull Request Participation")
        ax.set_ylabel("Count")
        ax.legend()

        plt.tight_layout()
        return fig

    def create_pull_requests_by_date_plot(
        self, rows: List[Dict[str, object]], members: List[str]
    ) -> plt.Figure:
        """Create a stacked bar plot of PRs opened per day by each member.

        Args:
            rows (List[Dict[str, object]]): Rows `{"date": ..., <member>: count}`
            members (List[str]): Members to stack, bottom first

        Returns:
            plt.Figure: Generated bar plot
        """
        dates = [row["date"] for row in rows]
        bottom = [0] * len(rows)

        fig, ax = plt.subplots(figsize=(12, 6))
        for member in members:
            counts = [row.get(member, 0) for row in rows]
            ax.bar(dates, counts, bottom=bottom, label=member)
            bottom = [b + c for b, c in zip(bottom, counts)]

        ax.set_title("Pull Requests Opened per Day")
        ax.set_xlabel("Day")
        ax.set_ylabel("Pull Requests")
        if members:
            ax.legend(title="Members")
        plt.setp(ax.xaxis.get_majorticklabels(), rotation=45)

        plt.tight_layout()
        return fig

    def save_plot(self, fig: plt.Figure, filename: str) -> str:
        """Save a figure as PNG and release it.

        Args:
            fig (plt.Figure): Figure to save
            filename (str): File name inside the output directory

        Returns:
            str: Path of the saved image
        """
        plot_path = os.path.join(self.output_dir, filename)
        fig.savefig(plot_path, format="png", dpi=150, bbox_inches="tight")
        plt.close(fig)
        return plot_path

    def delete_old_plots(self, days: int):
        """Delete plots older than the given number of days.

        Args:
            days (int): Maximum plot age in days
        """
        cutoff = time.time() - days * 24 * 3600
        for file in os.listdir(self.output_dir):
            path = os.path.join(self.output_dir, file)
            if file.endswith(".png") and os.path.getmtime(path) < cutoff:
                os.remove(path)
