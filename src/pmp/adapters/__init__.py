"""Repository adapters for different source types."""
import os
from typing import Optional

from ..core.errors import TraversalError
from ..core.file_analyzer import BinaryClassifier
from ..core.models import Config
from .base import RepositoryAdapter
from .local import LocalAdapter, VisitCallback


def create_adapter(path: str, config: Config,
                   classifier: Optional[BinaryClassifier] = None,
                   on_visit: Optional[VisitCallback] = None) -> RepositoryAdapter:
    """
    Create the adapter for a project location.

    Args:
        path: Local directory path.
        config: Configuration object.
        classifier: Shared binary classifier.
        on_visit: Optional per-file progress hook.

    Returns:
        Appropriate RepositoryAdapter instance.

    Raises:
        TraversalError: If the path is not a directory.
    """
    expanded = os.path.expanduser(path)
    if not os.path.exists(expanded):
        raise TraversalError(f"Path does not exist: {path}")
    if not os.path.isdir(expanded):
        raise TraversalError(f"Path exists but is not a directory: {path}")
    return LocalAdapter(expanded, config, classifier=classifier, on_visit=on_visit)


__all__ = ['RepositoryAdapter', 'LocalAdapter', 'create_adapter']
