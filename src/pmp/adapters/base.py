"""
Base repository adapter interface.

This module defines the abstract interface that all repository adapters
must implement, so the analyzer can collect candidates without knowing
where the files live.
"""

from abc import ABC, abstractmethod

from ..core.models import CollectionResult, Config


class RepositoryAdapter(ABC):
    """
    Abstract base class for repository adapters.

    An adapter walks a source tree and turns it into an ordered list of
    candidate files, applying patterns, classification and limits.
    """

    def __init__(self, config: Config):
        """Initialize adapter with configuration."""
        self.config = config
        self.limits = config.limits

    @property
    @abstractmethod
    def root_dir(self) -> str:
        """Absolute path that candidate paths are relative to."""
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Get the repository name."""
        pass

    @abstractmethod
    def collect(self) -> CollectionResult:
        """
        Walk the repository and build the candidate list.

        Returns:
            CollectionResult with candidates in discovery order, plus every
            exclusion and advisory.

        Raises:
            TraversalError: If the root cannot be walked.
        """
        pass
