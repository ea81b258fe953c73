"""
CommitLens entry point.

Mines the configured repositories, analyzes commit attribution and pull
request participation, stores the results and writes PDF reports.

Run with `python src/app.py`; configuration comes from the environment
(see `config.Settings`).
"""

import asyncio
import os

from config import settings, logger
from analyzers.multi_repository import MultiRepositoryAnalyzer
from analyzers.repository import RepositoryAnalyzer
from miners.base import RepositoryMiner
from miners.github_miner import GitHubMiner
from storage.repository_store import RepositoryStore
from report.pdf_generator import PDFReportGenerator
from visualization.plotter import RepositoryPlotter

PLOT_RETENTION_DAYS = 30


async def main() -> None:
    """
    Run one analysis and reporting cycle.

    Repositories already mined or analyzed today are served from the store.
    A repository that fails is logged and left out of the reports.
    """
    logger.info({"message": "Starting analysis", "repositories": len(settings.repository_urls)})

    os.makedirs(settings.report_output_dir, exist_ok=True)

    logger.debug({"message": "Connecting to GitHub", "api_url": settings.github_api_url})
    github_token = (
        settings.github_token.get_secret_value() if settings.github_token else None
    )
    github_miner: RepositoryMiner = GitHubMiner(
        github_token,
        base_url=settings.github_api_url,
        pull_request_state=settings.pull_request_state,
    )

    store = RepositoryStore(settings.data_dir)
    analyzer = RepositoryAnalyzer(settings.fast_merge_threshold_minutes)
    multi_analyzer = MultiRepositoryAnalyzer(
        store, analyzer, github_miner, settings.repository_urls
    )

    repo_metrics = await multi_analyzer.analyze_repositories()

    if not repo_metrics:
        logger.warning("no repositories analyzed, skipping reports")
        return

    logger.info({"message": "Writing reports", "output_dir": settings.report_output_dir})
    plot_dir = os.path.join(settings.report_output_dir, "plots")
    plotter = RepositoryPlotter(plot_dir)
    pdf_generator = PDFReportGenerator(plotter)
    pdf_generator.generate_report(repo_metrics, settings.report_output_dir)
    pdf_generator.generate_summary_report(
        repo_metrics, os.path.join(settings.report_output_dir, "summary.pdf")
    )

    plotter.delete_old_plots(PLOT_RETENTION_DAYS)

    logger.info({"message": "Analysis finished", "repositories": len(repo_metrics)})


if __name__ == "__main__":
    asyncio.run(main())
