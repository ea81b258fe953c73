"""
PDF reports for analyzed repositories.

One report per repository renders the assembled sections (author table,
commit frequency, busiest day, pull request summary, participation, labels),
the list of fast-merged pull requests and four charts drawn by
`RepositoryPlotter`.
A summary report puts the headline numbers of all repositories side by side.
"""

from typing import Dict, List
import os

from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib import colors
from reportlab.lib.units import inch
from reportlab.lib.pagesizes import landscape, letter
from reportlab.platypus import (
    SimpleDocTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
    Image,
)

from config import logger
from analyzers.models import RepositoryMetrics
from analyzers.pull_requests import pull_request_activity, pull_requests_by_date
from report.assembler import ReportSection, build_report_payload
from visualization.plotter import RepositoryPlotter


class PDFReportGenerator:
    """
    Renders repository metrics into PDF documents with reportlab.

    Attributes:
        styles (StyleSheet1): Sample paragraph styles.
        plotter (RepositoryPlotter): Chart renderer for report images.
    """

    def __init__(self, plotter: RepositoryPlotter):
        """
        Args:
            plotter (RepositoryPlotter): Chart renderer for report images.
        """
        self.styles = getSampleStyleSheet()
        self.plotter = plotter

    def _create_table(self, headers: List[str], rows: List[List[str]]) -> Table:
        """Create a formatted table with a header row.

        Args:
            headers (List[str]): Column titles.
            rows (List[List[str]]): Table body.

        Returns:
            Table: Formatted ReportLab table.
        """
        table = Table([headers] + rows, repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.grey),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                    ("ALIGN", (0, 0), (-1, -1), "CENTER"),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 8),
                    ("BACKGROUND", (0, 1), (-1, -1), colors.beige),
                    ("GRID", (0, 0), (-1, -1), 1, colors.black),
                ]
            )
        )
        return table

    def _section_elements(self, section: ReportSection) -> list:
        """Render one report section as flowables."""
        elements = [
            Paragraph(section.title, self.styles["Heading2"]),
            Spacer(1, 10),
        ]
        if section.rows:
            elements.append(self._create_table(section.headers, section.rows))
        else:
            elements.append(Paragraph("No data available.", self.styles["Normal"]))
        if section.image_url:
            elements.extend(
                [
                    Spacer(1, 6),
                    Paragraph(
                        f'Chart: <link href="{section.image_url}">{section.image_url}</link>',
                        self.styles["Normal"],
                    ),
                ]
            )
        elements.append(Spacer(1, 20))
        return elements

    def _chart_elements(
        self, repo_metrics: RepositoryMetrics, safe_repo_name: str
    ) -> list:
        """Render the repository charts to PNG files and wrap them as images."""
        date_suffix = repo_metrics.analysis_date.strftime("%Y-%m-%d")
        members = list(repo_metrics.pull_requests.prs_by_member)
        figures = {
            "Commit Frequency": (
                "commit_frequency",
                self.plotter.create_commit_frequency_plot(repo_metrics.commit_frequency),
            ),
            "Lines Changed per Contributor": (
                "contributions",
                self.plotter.create_contribution_plot(repo_metrics.authors),
            ),
            "Pull Request Participation": (
                "pr_participation",
                self.plotter.create_pull_request_activity_plot(
                    pull_request_activity(repo_metrics.pull_requests)
                ),
            ),
            "Pull Requests per Day": (
                "prs_by_date",
                self.plotter.create_pull_requests_by_date_plot(
                    pull_requests_by_date(repo_metrics.pull_requests, members),
                    members,
                ),
            ),
        }

        elements = []
        for title, (name, fig) in figures.items():
            plot_path = self.plotter.save_plot(
                fig, f"{safe_repo_name}_{name}_{date_suffix}.png"
            )
            elements.extend(
                [
                    Paragraph(title, self.styles["Heading3"]),
                    Spacer(1, 10),
                    Image(plot_path, width=8 * inch, height=4 * inch),
                    Spacer(1, 20),
                ]
            )
        return elements

    def _fast_merged_elements(self, repo_metrics: RepositoryMetrics) -> list:
        summary = repo_metrics.pull_requests
        if not summary.fast_merged_prs:
            return []

        rows = [
            [str(pr.number), pr.title[:60], pr.author, pr.merged_at.strftime("%Y-%m-%d %H:%M")]
            for pr in summary.fast_merged_prs
        ]
        return [
            Paragraph(
                f"Pull Requests Merged Within {summary.fast_merge_threshold_minutes} Minutes",
                self.styles["Heading2"],
            ),
            Spacer(1, 10),
            self._create_table(["#", "Title", "Author", "Merged"], rows),
            Spacer(1, 20),
        ]

    def safe_repo_name(self, repo_name: str) -> str:
        """File name stem for `owner/repo`."""
        return repo_name.replace("/", "_").replace("\\", "_")

    def generate_report(
        self,
        metrics: Dict[str, RepositoryMetrics],
        output_path: str,
    ) -> None:
        """Generate a PDF report for every analyzed repository.

        Args:
            metrics (Dict[str, RepositoryMetrics]): Analysis results per repository.
            output_path (str): Directory where the PDF reports should be saved.

        Raises:
            Exception: If rendering fails.
        """
        try:
            for repo_name, repo_metrics in metrics.items():
                logger.info(
                    {
                        "message": "Rendering repository report",
                        "repository": repo_name,
                        "output_path": output_path,
                    }
                )
                safe_repo_name = self.safe_repo_name(repo_name)
                doc = SimpleDocTemplate(
                    os.path.join(
                        output_path,
                        f"{safe_repo_name}_{repo_metrics.analysis_date.strftime('%Y-%m-%d')}.pdf",
                    ),
                    pagesize=landscape(letter),
                )
                payload = build_report_payload(repo_metrics)

                elements = [
                    Paragraph(
                        f"Repository Analysis: {payload.repository_name}",
                        self.styles["Heading1"],
                    ),
                    Paragraph(
                        f"Generated {payload.analysis_date}", self.styles["Normal"]
                    ),
                    Spacer(1, 20),
                ]

                for section in payload.sections:
                    elements.extend(self._section_elements(section))

                elements.extend(self._fast_merged_elements(repo_metrics))
                elements.extend(self._chart_elements(repo_metrics, safe_repo_name))

                doc.build(elements)
                logger.info(
                    {
                        "message": "Repository report written",
                        "repository": repo_name,
                        "output_path": output_path,
                    }
                )

        except Exception as e:
            logger.error(
                {
                    "message": "Repository report failed",
                    "error": str(e),
                    "output_path": output_path,
                }
            )
            raise

    def generate_summary_report(
        self, results: Dict[str, RepositoryMetrics], output_path: str
    ) -> None:
        """Write one PDF comparing the headline numbers of every repository.

        Args:
            results (Dict[str, RepositoryMetrics]): Metrics keyed by `owner/repo`.
            output_path (str): PDF file to write.

        Raises:
            Exception: If rendering fails.
        """
        try:
            doc = SimpleDocTemplate(output_path, pagesize=landscape(letter))
            elements = [
                Paragraph("Repositories Analysis Summary", self.styles["Heading1"]),
                Spacer(1, 20),
            ]

            metrics_to_compare = [
                ("Contributors", lambda m: len(m.authors.authors)),
                ("Commits", lambda m: m.authors.overall_commits),
                ("Lines changed", lambda m: m.authors.overall_total),
                ("Average changes per commit", lambda m: f"{m.authors.group_average:.1f}"),
                ("Pull requests", lambda m: m.pull_requests.total_prs),
                ("PRs with review", lambda m: m.pull_requests.prs_with_review),
                (
                    "PRs linked to issues",
                    lambda m: f"{m.pull_requests.percentage_linked_to_issues:.0f}%",
                ),
                ("Fast-merged PRs", lambda m: len(m.pull_requests.fast_merged_prs)),
            ]

            rows = []
            for metric_name, metric_value in metrics_to_compare:
                row = [metric_name]
                for metrics in results.values():
                    row.append(str(metric_value(metrics)))
                rows.append(row)

            elements.append(self._create_table(["Metric"] + list(results.keys()), rows))

            doc.build(elements)
            logger.info(
                {
                    "message": "Summary report written",
                    "output_path": output_path,
                }
            )

        except Exception as e:
            logger.error(
                {
                    "message": "Summary report failed",
                    "error": str(e),
                    "output_path": output_path,
                }
            )
            raise
