"""
Path filtering utilities for pmp.

This module decides whether a relative path takes part in a run, based on
include/exclude pattern sets (gitignore-style, with ``**`` and ``{a,b}``
alternation) and on the project's ``.gitignore``.
"""

import logging
import os
from typing import Iterable, List, Optional, Tuple

import pathspec

from ..core.models import Config, ExclusionReason
from ..core.settings import DEFAULT_EXCLUDES
from .path_utils import PathUtils

logger = logging.getLogger(__name__)


def _split_alternatives(body: str) -> List[str]:
    """Split the inside of a brace group on top-level commas."""
    parts = []
    depth = 0
    current = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == '\\' and i + 1 < len(body):
            current.append(body[i:i + 2])
            i += 2
            continue
        if ch == '{':
            depth += 1
        elif ch == '}':
            depth -= 1
        elif ch == ',' and depth == 0:
            parts.append(''.join(current))
            current = []
            i += 1
            continue
        current.append(ch)
        i += 1
    parts.append(''.join(current))
    return parts


def expand_braces(pattern: str) -> List[str]:
    """
    Expand ``{a,b}`` alternation into plain patterns.

    ``src/*.{go,py}`` becomes ``['src/*.go', 'src/*.py']``. Groups may nest.

    Raises:
        ValueError: If the braces are unbalanced.
    """
    depth = 0
    start = -1
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == '\\':
            i += 2
            continue
        if ch == '{':
            if depth == 0:
                start = i
            depth += 1
        elif ch == '}':
            if depth == 0:
                raise ValueError(f"Unbalanced '}}' in pattern: {pattern}")
            depth -= 1
            if depth == 0:
                prefix, suffix = pattern[:start], pattern[i + 1:]
                expanded = []
                for alternative in _split_alternatives(pattern[start + 1:i]):
                    for item in expand_braces(prefix + alternative + suffix):
                        if item not in expanded:
                            expanded.append(item)
                return expanded
        i += 1

    if depth != 0:
        raise ValueError(f"Unbalanced '{{' in pattern: {pattern}")
    return [pattern]


def compile_patterns(patterns: Iterable[str]) -> Tuple[pathspec.PathSpec, List[str]]:
    """
    Compile patterns into a single PathSpec.

    Each pattern is validated on its own; a malformed one is reported and
    skipped so it contributes no matches.

    Returns:
        Tuple of (spec, warnings).
    """
    lines = []
    warnings = []
    for raw in patterns:
        pattern = raw.strip()
        if not pattern:
            continue
        try:
            expanded = expand_braces(pattern)
            pathspec.GitIgnoreSpec.from_lines(expanded)
        except ValueError as e:
            message = f"Ignoring invalid pattern {pattern!r}: {e}"
            logger.warning(message)
            warnings.append(message)
            continue
        lines.extend(expanded)
    return pathspec.GitIgnoreSpec.from_lines(lines), warnings


def load_gitignore_patterns(root_dir: str) -> List[str]:
    """
    Read the root ``.gitignore`` into a pattern list.

    Missing file means no patterns. Blank lines and comments are dropped.

    Raises:
        OSError: If the file exists but cannot be read.
    """
    gitignore_path = os.path.join(root_dir, '.gitignore')
    if not os.path.isfile(gitignore_path):
        return []

    with open(gitignore_path, 'r', encoding='utf-8', errors='replace') as f:
        content = f.read()

    patterns = []
    for line in content.splitlines():
        line = line.strip()
        if line and not line.startswith('#'):
            patterns.append(line)
    return patterns


class PathMatcher:
    """Evaluates include/exclude patterns against relative paths."""

    def __init__(self, include_patterns: Optional[List[str]] = None,
                 exclude_patterns: Optional[List[str]] = None):
        self.include_patterns = list(include_patterns or [])
        self.exclude_patterns = list(exclude_patterns or [])
        self._include_spec, include_warnings = compile_patterns(self.include_patterns)
        self._exclude_spec, exclude_warnings = compile_patterns(self.exclude_patterns)
        self.warnings = include_warnings + exclude_warnings

    @classmethod
    def from_config(cls, config: Config, root_dir: str) -> 'PathMatcher':
        """
        Build the matcher for a run.

        Exclude set = built-in defaults + configured excludes + root
        ``.gitignore`` (unless disabled) + the output directory when it
        lives inside the project.
        """
        excludes = list(DEFAULT_EXCLUDES) + list(config.exclude_patterns)
        advisories = []

        if not config.no_gitignore:
            try:
                excludes.extend(load_gitignore_patterns(root_dir))
            except OSError as e:
                message = f"Error loading .gitignore: {e}"
                logger.warning(message)
                advisories.append(message)

        if config.output_dir:
            output_dir = config.output_dir
            if not os.path.isabs(output_dir):
                output_dir = os.path.join(root_dir, output_dir)
            if PathUtils.is_within(output_dir, root_dir) and os.path.abspath(output_dir) != os.path.abspath(root_dir):
                excludes.append('/' + PathUtils.relative_to(output_dir, root_dir).rstrip('/') + '/')

        matcher = cls(config.include_patterns, excludes)
        matcher.warnings = advisories + matcher.warnings
        return matcher

    def is_excluded(self, rel_path: str) -> bool:
        """Check if a file path matches any exclude pattern."""
        return self._exclude_spec.match_file(PathUtils.normalize_path(rel_path))

    def is_excluded_dir(self, rel_dir: str) -> bool:
        """
        Check if a directory should be skipped with its whole subtree.

        Args:
            rel_dir: Directory path relative to the root (no trailing slash).
        """
        rel_dir = PathUtils.normalize_path(rel_dir).rstrip('/')
        return self._exclude_spec.match_file(rel_dir + '/')

    def is_included(self, rel_path: str) -> bool:
        """
        Check if a file takes part in the run.

        With include patterns the path must match one of them; a matching
        exclude pattern always wins.
        """
        return self.get_excluded_reason(rel_path) is None

    def get_excluded_reason(self, rel_path: str) -> Optional[ExclusionReason]:
        """
        Get the reason why a file would be excluded.

        Returns:
            Reason if the file would be excluded, None otherwise.
        """
        rel_path = PathUtils.normalize_path(rel_path)
        if self.include_patterns and not self._include_spec.match_file(rel_path):
            return ExclusionReason.NOT_INCLUDED
        if self._exclude_spec.match_file(rel_path):
            return ExclusionReason.EXCLUDED_PATTERN
        return None
