"""Main project analyzer orchestrator."""
import logging
import os
import time
from contextlib import nullcontext
from typing import Callable, List, Optional, TextIO

from ..adapters import create_adapter
from ..utils.languages import detect_language
from ..utils.tree_builder import FileTreeBuilder
from .cache import ClassificationCache
from .file_analyzer import BinaryClassifier
from .models import (AnalysisResult, AnalysisStats, CollectionResult, Config,
                     FileEntry, Job, Result)
from .reader import FileReader
from .report import ReportWriter
from .retry import RetryConfig, RetryPolicy
from .streaming import StreamProcessor
from .tokenizer import TokenCounter, TokenEstimator
from .worker_pool import WorkerPool

logger = logging.getLogger(__name__)


class ProjectAnalyzer:
    """
    Runs the collection pipeline for one project.

    Collection (walk, patterns, classification, limits) is single-threaded;
    only content reading runs on the worker pool. The classification cache
    is loaded before the walk and saved when the run ends, even on failure.
    """

    def __init__(self, config: Config,
                 on_visit: Optional[Callable[[str], None]] = None,
                 on_collected: Optional[Callable[[CollectionResult], None]] = None,
                 on_result: Optional[Callable[[Result], None]] = None):
        """
        Args:
            config: Resolved configuration.
            on_visit: Called with each file path the walk visits.
            on_collected: Called once with the candidate list before reading.
            on_result: Called with each read result as it arrives.
        """
        self.config = config
        self.on_visit = on_visit
        self.on_collected = on_collected
        self.on_result = on_result
        self.streams = StreamProcessor(chunk_size=config.chunk_size,
                                       threshold=config.stream_threshold)
        self.retry = RetryPolicy(RetryConfig(max_retries=config.retry_max_retries,
                                             delay=config.retry_delay,
                                             max_file_size=config.retry_max_file_size))

    def _build_reader(self, warnings: List[str]) -> FileReader:
        estimator = None
        counter = None
        if self.config.enable_token_counting:
            estimator = TokenEstimator()
            if self.config.token_encoder:
                counter = TokenCounter(self.config.token_encoder)
                if not counter.is_available:
                    warnings.append(f"Token encoder '{self.config.token_encoder}' unavailable, "
                                    "using estimated token counts")
        return FileReader(self.streams, self.retry, estimator=estimator, counter=counter)

    def analyze(self, path: str) -> AnalysisResult:
        """
        Collect and read the files of a project.

        Args:
            path: Project root directory.

        Returns:
            AnalysisResult with the ordered file list and statistics.

        Raises:
            TraversalError: If the root cannot be walked.
        """
        start_time = time.time()
        warnings: List[str] = []

        cache = ClassificationCache(self.config.cache_path) if self.config.use_cache else None
        with cache if cache is not None else nullcontext():
            classifier = BinaryClassifier(cache)
            adapter = create_adapter(path, self.config, classifier=classifier, on_visit=self.on_visit)
            collection = adapter.collect()
            logger.info(f"Collected {len(collection.candidates)} files "
                        f"({classifier.sniff_count} content sniffs)")
            if self.on_collected:
                self.on_collected(collection)

            reader = self._build_reader(warnings)
            results = self._read_all(adapter.root_dir, collection, reader)

        warnings = collection.advisories + warnings
        if cache is not None:
            warnings.extend(cache.warnings)

        files: List[FileEntry] = []
        failed = 0
        for result in results:
            if not result.ok:
                failed += 1
                warnings.append(f"{result.path}: {result.error}")
                continue
            files.append(FileEntry(
                path=result.path,
                size=result.size,
                content=result.content,
                char_count=result.char_count,
                token_count=result.token_count,
                streamed=result.streamed,
                language=detect_language(result.path),
            ))

        stats = AnalysisStats(
            file_count=len(files),
            total_size=sum(f.size for f in files),
            token_count=sum(f.token_count for f in files),
            char_count=sum(f.char_count for f in files),
            process_time=time.time() - start_time,
            considered=collection.considered,
            skipped_by_limits=collection.skipped_by_limits,
            failed=failed,
            streamed=sum(1 for f in files if f.streamed),
        )

        project_name = adapter.get_name()
        return AnalysisResult(
            root_dir=adapter.root_dir,
            project_name=project_name,
            files=files,
            collection=collection,
            stats=stats,
            file_tree=FileTreeBuilder.from_files(project_name, files),
            warnings=warnings,
        )

    def _read_all(self, root_dir: str, collection: CollectionResult,
                  reader: FileReader) -> List[Result]:
        if not collection.candidates:
            return []

        jobs = [Job(index=i, path=c.path, root_dir=root_dir, size=c.size)
                for i, c in enumerate(collection.candidates)]
        pool = WorkerPool(reader.process, worker_count=self.config.limits.worker_count)
        logger.debug(f"Reading {len(jobs)} files with {pool.worker_count} workers")
        return pool.run(jobs, on_result=self.on_result)

    def resolve_output_dir(self, root_dir: str) -> str:
        """Output directory; relative paths are taken from the project root."""
        output_dir = os.path.expanduser(self.config.output_dir)
        if not os.path.isabs(output_dir):
            output_dir = os.path.join(root_dir, output_dir)
        return output_dir

    def write_report(self, result: AnalysisResult, stream: Optional[TextIO] = None) -> Optional[str]:
        """
        Write the report for ``result``.

        Args:
            result: Analysis to render.
            stream: Write here instead of a file in the output directory.

        Returns:
            Path of the written file, or None when writing to a stream.
        """
        writer = ReportWriter(self.config.output_format, streams=self.streams)
        if stream is not None:
            writer.write(result, stream)
            return None
        return writer.write_file(result, self.resolve_output_dir(result.root_dir))
