"""
Application Configuration Module.

Settings are read from environment variables (or a `.env` file) and validated
with pydantic-settings. Importing this module creates the shared `settings`
instance and the application `logger`.

The analyzers never read `settings` directly; tunables such as the fast-merge
threshold are passed in by the entry point.
"""

from typing import List, Literal, Optional
import os

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from logger import LogManager


class Settings(BaseSettings):
    """
    CommitLens configuration.

    Attributes:
        app_name (str): Name used for the logger and log file
        dev (bool): Development mode, human-readable console logs
        log_dir (str): Directory for rotating log files
        log_level (int): Numeric logging level
        github_token (Optional[SecretStr]): Token for the GitHub API, anonymous access if unset
        github_api_url (str): REST API base URL, override for GitHub Enterprise
        github_repo_urls (str): Comma-separated URLs of the repositories to analyze
        pull_request_state (str): Which pull requests to mine: open, closed or all
        fast_merge_threshold_minutes (int): PRs merged within this window are flagged
        data_dir (str): Directory of the JSON snapshot and analysis history
        report_output_dir (str): Directory for PDF reports and plots
    """

    app_name: str = Field(default="CommitLens", description="Application name")
    dev: bool = Field(default=False, description="Development mode")
    log_dir: str = Field(default="logs", description="Log file directory")
    log_level: int = Field(default=10, description="Logging level, default debug")

    github_token: Optional[SecretStr] = Field(default=None, description="GitHub token")
    github_api_url: str = Field(
        default="https://api.github.com", description="GitHub REST API base URL"
    )
    github_repo_urls: str = Field(
        default="", description="Comma-separated repository URLs"
    )

    pull_request_state: Literal["open", "closed", "all"] = Field(
        default="all", description="Pull request state filter"
    )
    fast_merge_threshold_minutes: int = Field(
        default=5,
        ge=1,
        le=60,
        description="Minutes after creation within which a merge counts as fast",
    )

    data_dir: str = Field(default="data", description="Snapshot storage directory")
    report_output_dir: str = Field(
        default="reports", description="Report output directory"
    )

    @property
    def repository_urls(self) -> List[str]:
        """Configured repository URLs, stripped, without empty entries."""
        return [url.strip() for url in self.github_repo_urls.split(",") if url.strip()]

    @field_validator("report_output_dir")
    def ensure_absolute_path(cls, v: str) -> str:
        """Resolve a relative report directory against the working directory."""
        return v if os.path.isabs(v) else os.path.abspath(v)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()

logger = LogManager(
    app_name=settings.app_name.lower(),
    log_dir=settings.log_dir,
    development=settings.dev,
    level=settings.log_level,
).logger
