"""
Core data models for pmp.

This module contains the data structures shared by every stage of the
pipeline: configuration and limits, traversal candidates, worker jobs and
results, and the final analysis result handed to report writers.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Literal

KB = 1024
MB = 1024 * KB

OutputFormat = Literal['txt', 'markdown', 'xml', 'json']


@dataclass(frozen=True)
class ProcessingLimits:
    """Bounds applied by every stage. Zero means unbounded for size/count fields."""

    min_size: int = 0
    max_size: int = 0
    max_files: int = 0
    max_total_size: int = 0
    worker_count: int = 1


@dataclass
class Config:
    """Configuration settings for pmp."""

    include_patterns: List[str] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)

    # Per-file and global bounds
    min_size: int = 1 * KB
    max_size: int = 100 * MB
    max_files: int = 500
    max_total_size: int = 10 * MB
    workers: int = field(default_factory=lambda: os.cpu_count() or 1)

    no_gitignore: bool = False

    # Output
    output_format: OutputFormat = 'txt'
    output_dir: str = 'pmp_output'

    # Reading
    stream_threshold: int = 10 * MB
    chunk_size: int = 1 * MB
    retry_max_retries: int = 3
    retry_delay: float = 0.5  # seconds, multiplied by the attempt number
    retry_max_file_size: int = 10 * MB

    # Token statistics
    enable_token_counting: bool = True
    token_encoder: Optional[str] = None  # tiktoken encoding for exact counts

    # Binary classification cache
    use_cache: bool = True
    cache_path: Optional[str] = None

    @property
    def limits(self) -> ProcessingLimits:
        """Limits view of this configuration."""
        return ProcessingLimits(
            min_size=self.min_size,
            max_size=self.max_size,
            max_files=self.max_files,
            max_total_size=self.max_total_size,
            worker_count=self.workers if self.workers > 0 else (os.cpu_count() or 1),
        )


@dataclass(frozen=True)
class Candidate:
    """A file that survived traversal-time filtering."""

    path: str  # relative, forward slashes
    size: int


class ExclusionReason(Enum):
    """Why a file did not become (or stay) a candidate."""

    EXCLUDED_DIR = "excluded directory"
    NOT_INCLUDED = "no include pattern matched"
    EXCLUDED_PATTERN = "matches exclude pattern"
    BINARY = "binary file"
    TOO_SMALL = "below minimum size"
    TOO_LARGE = "above maximum size"
    MAX_FILES = "file count limit"
    MAX_TOTAL_SIZE = "total size limit"
    UNREADABLE = "unreadable entry"

    @property
    def is_limit(self) -> bool:
        """True for drops caused by the count/total-size caps."""
        return self in (ExclusionReason.MAX_FILES, ExclusionReason.MAX_TOTAL_SIZE)


@dataclass(frozen=True)
class Exclusion:
    """A path that was filtered out, with the reason."""

    path: str
    reason: ExclusionReason


@dataclass
class CollectionResult:
    """Output of traversal: ordered candidates plus what was dropped and why."""

    candidates: List[Candidate] = field(default_factory=list)
    exclusions: List[Exclusion] = field(default_factory=list)
    advisories: List[str] = field(default_factory=list)
    considered: int = 0  # files seen by the walk

    @property
    def paths(self) -> List[str]:
        return [c.path for c in self.candidates]

    @property
    def total_size(self) -> int:
        return sum(c.size for c in self.candidates)

    @property
    def skipped_by_limits(self) -> int:
        return sum(1 for e in self.exclusions if e.reason.is_limit)

    def reasons(self) -> Dict[str, ExclusionReason]:
        """Map of excluded path to reason."""
        return {e.path: e.reason for e in self.exclusions}


@dataclass(frozen=True)
class Job:
    """Unit of work submitted to the worker pool."""

    index: int
    path: str
    root_dir: str
    size: int = 0


@dataclass
class Result:
    """
    Output of a Job.

    ``content`` is None for streamed files (read in chunks, never buffered)
    and for failed reads; ``error`` is set only for failures.
    """

    index: int
    path: str
    size: int = 0
    content: Optional[str] = None
    char_count: int = 0
    token_count: int = 0
    streamed: bool = False
    attempts: int = 0
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class FileEntry:
    """A file in the final, ordered file list handed to report writers."""

    path: str
    size: int
    content: Optional[str]
    char_count: int = 0
    token_count: int = 0
    streamed: bool = False
    language: str = ""
    is_binary: bool = False  # always False once a file reaches the file list


@dataclass
class AnalysisStats:
    """Aggregate counters for a run."""

    file_count: int = 0
    total_size: int = 0
    token_count: int = 0
    char_count: int = 0
    process_time: float = 0.0
    considered: int = 0
    skipped_by_limits: int = 0
    failed: int = 0
    streamed: int = 0

    @property
    def files_per_sec(self) -> float:
        if self.process_time <= 0:
            return 0.0
        return self.file_count / self.process_time


@dataclass
class FileNode:
    """Represents a file or directory in the project structure."""

    path: str
    name: str
    type: str  # 'file' or 'dir'
    size: Optional[int] = None
    token_count: Optional[int] = None
    children: List['FileNode'] = field(default_factory=list)
    total_tokens: int = 0

    def is_file(self) -> bool:
        """Check if this node represents a file."""
        return self.type == 'file'

    def is_directory(self) -> bool:
        """Check if this node represents a directory."""
        return self.type == 'dir'


@dataclass
class AnalysisResult:
    """Result of a project analysis."""

    root_dir: str
    project_name: str
    files: List[FileEntry]
    collection: CollectionResult
    stats: AnalysisStats
    file_tree: Optional[FileNode] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def file_paths(self) -> List[str]:
        return [f.path for f in self.files]

    @property
    def file_tree_string(self) -> str:
        """Render the file tree as box-drawing text."""
        if not self.file_tree:
            return ""

        lines = [f"{self.file_tree.name}/"]

        def format_recursive(node: FileNode, prefix: str) -> None:
            children = sorted(node.children, key=lambda x: (x.is_file(), x.name))
            for i, child in enumerate(children):
                is_last = i == len(children) - 1
                connector = "└── " if is_last else "├── "
                suffix = "/" if child.is_directory() else ""
                lines.append(f"{prefix}{connector}{child.name}{suffix}")
                if child.is_directory():
                    format_recursive(child, prefix + ("    " if is_last else "│   "))

        format_recursive(self.file_tree, "")
        return "\n".join(lines)

    def has_warnings(self) -> bool:
        """Check if any warnings were reported during analysis."""
        return len(self.warnings) > 0
