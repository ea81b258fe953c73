"""
Abstract Base Class for Repository Miners.

Defines the interface for repository data mining implementations.
All repository miners (GitHub, GitHub Enterprise, etc.) should implement this interface.
"""

from abc import ABC, abstractmethod

from miners.models import RepositoryData


class RepositoryMiner(ABC):
    """
    Abstract base class for repository miners.

    Defines the contract for mining repository data from different sources.
    Implementations should handle:
    - Authentication with the repository service
    - Pagination and rate limits
    - Data transformation to common models
    - Isolation of per-item enrichment failures
    """

    @abstractmethod
    async def mine_repository(self, owner: str, repo: str) -> RepositoryData:
        """
        Extract commits and pull requests from a repository.

        Args:
            owner (str): Repository owner (user or organization)
            repo (str): Repository name

        Returns:
            RepositoryData: Collected repository data

        Raises:
            Exception: If mining fails
        """
        pass
