"""Local filesystem repository adapter implementation."""
import logging
import os
from typing import Callable, List, Optional, Tuple

from ..core.errors import TraversalError
from ..core.file_analyzer import BinaryClassifier
from ..core.models import Candidate, CollectionResult, Config, Exclusion, ExclusionReason
from ..utils.file_filter import PathMatcher
from ..utils.sizes import format_size
from .base import RepositoryAdapter

logger = logging.getLogger(__name__)

# Called with the relative path of every file the walk visits
VisitCallback = Callable[[str], None]


class LocalAdapter(RepositoryAdapter):
    """Adapter for collecting files from a local directory tree."""

    def __init__(self, repo_path: str, config: Config,
                 classifier: Optional[BinaryClassifier] = None,
                 on_visit: Optional[VisitCallback] = None):
        """
        Args:
            repo_path: Root directory to walk.
            config: Run configuration.
            classifier: Binary classifier; an uncached one is created if None.
            on_visit: Optional progress hook.
        """
        super().__init__(config)
        self._root = os.path.abspath(repo_path)
        self.repo_name = os.path.basename(self._root.rstrip(os.sep)) or self._root
        self.classifier = classifier or BinaryClassifier()
        self.on_visit = on_visit

    @property
    def root_dir(self) -> str:
        return self._root

    def get_name(self) -> str:
        """Get repository name."""
        return self.repo_name

    def _scan(self, rel_dir: str) -> List[os.DirEntry]:
        full_path = os.path.join(self._root, rel_dir) if rel_dir else self._root
        with os.scandir(full_path) as it:
            return sorted(it, key=lambda entry: entry.name)

    def collect(self) -> CollectionResult:
        """
        Walk the tree depth-first and build the candidate list.

        Entries of each directory are visited in name order, and a
        directory's subtree is finished before its next sibling, so the
        discovery order is stable across runs. Limits are applied after
        the walk.

        Raises:
            TraversalError: If the root is missing or cannot be listed.
        """
        if not os.path.isdir(self._root):
            raise TraversalError(f"Path is not a directory: {self._root}")

        result = CollectionResult()
        matcher = PathMatcher.from_config(self.config, self._root)
        result.advisories.extend(matcher.warnings)

        try:
            root_entries = self._scan('')
        except OSError as e:
            raise TraversalError(f"Cannot read directory {self._root}: {e}") from e

        # Explicit stack of (relative path, entry); pushed in reverse to pop in name order
        stack: List[Tuple[str, os.DirEntry]] = [(entry.name, entry) for entry in reversed(root_entries)]

        while stack:
            rel_path, entry = stack.pop()
            try:
                if entry.is_dir(follow_symlinks=False):
                    if matcher.is_excluded_dir(rel_path):
                        result.exclusions.append(Exclusion(rel_path + '/', ExclusionReason.EXCLUDED_DIR))
                        continue
                    children = self._scan(rel_path)
                    stack.extend((f"{rel_path}/{child.name}", child) for child in reversed(children))
                    continue

                if entry.is_symlink():
                    if entry.is_dir():
                        logger.debug(f"Not following directory symlink: {rel_path}")
                        continue
                    if not entry.is_file():
                        raise FileNotFoundError(f"broken symlink to {os.readlink(entry.path)}")

                if not entry.is_file():
                    # Sockets, FIFOs and other special files
                    continue

                self._visit_file(rel_path, entry, matcher, result)
            except OSError as e:
                message = f"Skipping unreadable entry {rel_path}: {e}"
                logger.warning(message)
                result.advisories.append(message)
                result.exclusions.append(Exclusion(rel_path, ExclusionReason.UNREADABLE))

        self._apply_file_limit(result)
        self._apply_total_size_limit(result)

        logger.debug(f"Collected {len(result.candidates)} of {result.considered} files from {self._root}")
        return result

    def _visit_file(self, rel_path: str, entry: os.DirEntry, matcher: PathMatcher,
                    result: CollectionResult) -> None:
        """Filter one file: patterns, then classification, then size bounds."""
        result.considered += 1
        if self.on_visit:
            self.on_visit(rel_path)

        reason = matcher.get_excluded_reason(rel_path)
        if reason is not None:
            result.exclusions.append(Exclusion(rel_path, reason))
            return

        # Follows symlinks; a broken link raises OSError here
        size = entry.stat().st_size

        if self.classifier.is_binary_file(entry.path):
            result.exclusions.append(Exclusion(rel_path, ExclusionReason.BINARY))
            return

        if self.limits.min_size > 0 and size < self.limits.min_size:
            result.exclusions.append(Exclusion(rel_path, ExclusionReason.TOO_SMALL))
            return
        if self.limits.max_size > 0 and size > self.limits.max_size:
            result.exclusions.append(Exclusion(rel_path, ExclusionReason.TOO_LARGE))
            return

        result.candidates.append(Candidate(rel_path, size))

    def _apply_file_limit(self, result: CollectionResult) -> None:
        """Keep the first ``max_files`` candidates in discovery order."""
        max_files = self.limits.max_files
        if max_files <= 0 or len(result.candidates) <= max_files:
            return

        dropped = result.candidates[max_files:]
        result.candidates = result.candidates[:max_files]
        result.exclusions.extend(Exclusion(c.path, ExclusionReason.MAX_FILES) for c in dropped)

        message = f"Reached max files limit ({max_files}), skipped {len(dropped)} files"
        logger.warning(message)
        result.advisories.append(message)

    def _apply_total_size_limit(self, result: CollectionResult) -> None:
        """
        Cap the candidate set by total size.

        First fit in discovery order: a candidate is kept while it fits in
        the remaining budget, so smaller files further down can still make
        it in after a large one is dropped.
        """
        max_total = self.limits.max_total_size
        total = result.total_size
        if max_total <= 0 or total <= max_total:
            return

        kept: List[Candidate] = []
        used = 0
        dropped = 0
        for candidate in result.candidates:
            if used + candidate.size <= max_total:
                kept.append(candidate)
                used += candidate.size
            else:
                result.exclusions.append(Exclusion(candidate.path, ExclusionReason.MAX_TOTAL_SIZE))
                dropped += 1
        result.candidates = kept

        message = (f"Total size {format_size(total)} exceeds limit {format_size(max_total)}, "
                   f"skipped {dropped} files")
        logger.warning(message)
        result.advisories.append(message)
