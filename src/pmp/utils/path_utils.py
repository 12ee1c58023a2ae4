"""Path normalization utilities for cross-platform compatibility."""

import os
from typing import List


class PathUtils:
    """Utilities for consistent path handling across platforms."""

    @staticmethod
    def normalize_path(path: str) -> str:
        """
        Normalize path separators to forward slashes.

        Args:
            path: File path with potentially mixed separators

        Returns:
            Path with forward slashes only
        """
        return path.replace('\\\\', '/').replace('\\', '/')

    @staticmethod
    def relative_to(path: str, root: str) -> str:
        """Relative path of ``path`` under ``root``, forward slashes."""
        return PathUtils.normalize_path(os.path.relpath(path, root))

    @staticmethod
    def is_within(path: str, root: str) -> bool:
        """Check whether ``path`` resolves inside ``root`` (or is ``root``)."""
        abs_root = os.path.abspath(root)
        abs_path = os.path.abspath(path)
        return abs_path == abs_root or abs_path.startswith(abs_root + os.sep)

    @staticmethod
    def normalize_and_split(path: str) -> List[str]:
        """
        Normalize path and split into components.

        Args:
            path: File path to split

        Returns:
            List of path components
        """
        return PathUtils.normalize_path(path).split('/')

    @staticmethod
    def join_path_components(components: List[str]) -> str:
        """Join path components with forward slashes."""
        return '/'.join(components)
