"""
Snapshot and Analysis Storage.

Keeps two JSON history files per `(owner, repo)` under the data directory:

- `<owner>_<repo>.json`: mined `RepositoryData` snapshots
- `<owner>_<repo>_analysis.json`: `RepositoryMetrics` analysis results

Every save appends to the history list; loads return the newest entry first.
"""

import json
from pathlib import Path
from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel

from config import logger
from miners.models import RepositoryData
from analyzers.models import RepositoryMetrics

ModelT = TypeVar("ModelT", bound=BaseModel)


class RepositoryStore:
    """
    File-backed history of repository snapshots and analyses.

    Attributes:
        storage_dir (Path): Directory holding the JSON history files
    """

    def __init__(self, data_dir: str):
        """Create the store, making the data directory if needed.

        Args:
            data_dir (str): Directory for the JSON history files.
        """
        self.storage_dir = Path(data_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _safe_name(owner: str, repo: str) -> str:
        return f"{owner}_{repo}".replace("/", "_").replace("\\", "_")

    def _get_repo_data_file_path(self, owner: str, repo: str) -> Path:
        return self.storage_dir / f"{self._safe_name(owner, repo)}.json"

    def _get_repo_analysis_file_path(self, owner: str, repo: str) -> Path:
        return self.storage_dir / f"{self._safe_name(owner, repo)}_analysis.json"

    @staticmethod
    def _read_history(file_path: Path, repository: str) -> list:
        """Read a history list for appending.

        A file that is not valid JSON is logged and treated as empty, so the
        next save replaces it.
        """
        if not file_path.exists():
            return []

        try:
            history = json.loads(file_path.read_text())
        except json.JSONDecodeError:
            logger.error(
                {
                    "message": "Corrupted history file, starting a new one",
                    "repository": repository,
                    "file": str(file_path),
                }
            )
            return []

        # Older files may hold a single record instead of a list
        return history if isinstance(history, list) else [history]

    def _append(self, file_path: Path, record: BaseModel, repository: str) -> None:
        history = self._read_history(file_path, repository)
        history.append(record.model_dump(mode="json"))
        file_path.write_text(json.dumps(history, indent=2, default=str))

    @staticmethod
    def _load(
        file_path: Path, model: Type[ModelT], repository: str
    ) -> Optional[List[ModelT]]:
        """Read a history list for loading.

        A file that is not valid JSON is logged and reported as missing, so the
        caller mines again and the next save replaces it.
        """
        if not file_path.exists():
            return None

        try:
            history = json.loads(file_path.read_text())
        except json.JSONDecodeError:
            logger.error(
                {
                    "message": "Corrupted history file, ignoring it",
                    "repository": repository,
                    "file": str(file_path),
                }
            )
            return None

        if isinstance(history, dict):
            history = [history]
        return [model.model_validate(item) for item in history]

    def store_analysis(self, metrics: RepositoryMetrics) -> None:
        """Append an analysis result to the repository's history.

        Args:
            metrics (RepositoryMetrics): Analysis to store.

        Raises:
            Exception: If the history file cannot be written.
        """
        file_path = self._get_repo_analysis_file_path(metrics.owner, metrics.repo)
        try:
            self._append(file_path, metrics, metrics.repository_name)
            logger.info(
                {
                    "message": "Stored repository analysis",
                    "repository": metrics.repository_name,
                    "file_path": str(file_path),
                    "contributors_tracked": len(metrics.authors.authors),
                }
            )

        except Exception as e:
            logger.error(
                {
                    "message": "Failed to store repository analysis",
                    "repository": metrics.repository_name,
                    "error": str(e),
                }
            )
            raise

    def load_analysis(
        self, owner: str, repo: str, limit: Optional[int] = None
    ) -> Optional[List[RepositoryMetrics]]:
        """Load stored analyses, newest first.

        Args:
            owner (str): Repository owner.
            repo (str): Repository name.
            limit (Optional[int]): Return at most this many analyses.

        Returns:
            Optional[List[RepositoryMetrics]]: Analyses, or None if none were stored.

        Raises:
            Exception: If the history file cannot be read or validated.
        """
        try:
            analyses = self._load(
                self._get_repo_analysis_file_path(owner, repo),
                RepositoryMetrics,
                f"{owner}/{repo}",
            )
            if analyses is None:
                return None

            analyses.sort(key=lambda x: x.analysis_date, reverse=True)
            return analyses[:limit] if limit else analyses

        except Exception as e:
            logger.error(
                {
                    "message": "Failed to load repository analysis",
                    "repository": f"{owner}/{repo}",
                    "error": str(e),
                }
            )
            raise

    def save_repository_data(self, data: RepositoryData) -> None:
        """Append a mined snapshot to the repository's history.

        Args:
            data (RepositoryData): Snapshot to save.

        Raises:
            Exception: If the history file cannot be written.
        """
        file_path = self._get_repo_data_file_path(data.owner, data.repo)
        try:
            self._append(file_path, data, data.repository_name)
            logger.info(
                {
                    "message": "Saved repository snapshot",
                    "repository": data.repository_name,
                    "file": str(file_path),
                    "commits": len(data.commits),
                    "pull_requests": len(data.pull_requests),
                }
            )

        except Exception as e:
            logger.error(
                {
                    "message": "Failed to save repository snapshot",
                    "repository": data.repository_name,
                    "error": str(e),
                }
            )
            raise

    def load_repository_data(self, owner: str, repo: str) -> Optional[List[RepositoryData]]:
        """Load stored snapshots, newest first.

        Args:
            owner (str): Repository owner.
            repo (str): Repository name.

        Returns:
            Optional[List[RepositoryData]]: Snapshots, or None if none were stored.

        Raises:
            Exception: If the history file cannot be read or validated.
        """
        try:
            snapshots = self._load(
                self._get_repo_data_file_path(owner, repo),
                RepositoryData,
                f"{owner}/{repo}",
            )
            if snapshots is None:
                return None

            snapshots.sort(key=lambda x: x.collection_date, reverse=True)
            return snapshots

        except Exception as e:
            logger.error(
                {
                    "message": "Failed to load repository snapshot",
                    "repository": f"{owner}/{repo}",
                    "error": str(e),
                }
            )
            raise
