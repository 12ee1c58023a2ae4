"""Worker job handler: reads one candidate file into a Result."""

import logging
import os
from typing import List, Optional, Tuple

from ..utils.encodings import EncodingDetector
from ..utils.languages import is_code_file
from .errors import FileReadError
from .models import Job, Result
from .retry import RetryPolicy
from .streaming import StreamProcessor
from .tokenizer import TokenCounter, TokenEstimator

logger = logging.getLogger(__name__)


class _StreamAccumulator:
    """Running character count and token weight of a streamed file."""

    def __init__(self, detector: EncodingDetector, estimator: Optional[TokenEstimator], is_code: bool):
        self.detector = detector
        self.estimator = estimator
        self.is_code = is_code
        self.decoder = None
        self.char_count = 0
        self.weight = 0.0

    def feed(self, chunk: bytes) -> None:
        if self.decoder is None:
            self.decoder = self.detector.incremental_decoder(chunk)
        self._add(self.decoder.decode(chunk))

    def finish(self) -> None:
        if self.decoder is not None:
            self._add(self.decoder.decode(b'', final=True))

    def _add(self, text: str) -> None:
        self.char_count += len(text)
        if self.estimator is not None:
            self.weight += self.estimator.weigh(text, self.is_code)


class FileReader:
    """
    Reads files for the worker pool.

    Small files are buffered and decoded whole. Files at or above the
    streaming threshold are decoded chunk by chunk to compute their
    statistics; their content is not kept.
    """

    def __init__(self, streams: StreamProcessor, retry: RetryPolicy,
                 estimator: Optional[TokenEstimator] = None,
                 counter: Optional[TokenCounter] = None,
                 detector: Optional[EncodingDetector] = None):
        """
        Args:
            streams: Chunked reader deciding whole vs streamed reads.
            retry: Retry policy wrapping every read.
            estimator: Heuristic token estimator; None disables token counts.
            counter: Exact tiktoken counter for buffered content, optional.
            detector: Decoder for file bytes.
        """
        self.streams = streams
        self.retry = retry
        self.estimator = estimator
        self.counter = counter if counter is not None and counter.is_available else None
        self.detector = detector or EncodingDetector()

    def process(self, job: Job) -> Result:
        """
        Read the file behind ``job``.

        Read failures, after retries, are returned as ``Result.error``
        rather than raised.
        """
        full_path = os.path.join(job.root_dir, job.path)
        is_code = is_code_file(job.path)

        try:
            (content, streamed, char_count, token_count), attempts = self.retry.run(
                full_path, lambda: self._read(full_path, is_code), size=job.size)
        except FileReadError as e:
            logger.warning(str(e))
            return Result(index=job.index, path=job.path, size=job.size,
                          attempts=e.attempts, error=e)

        return Result(
            index=job.index,
            path=job.path,
            size=job.size,
            content=content,
            char_count=char_count,
            token_count=token_count,
            streamed=streamed,
            attempts=attempts,
        )

    def _read(self, full_path: str, is_code: bool) -> Tuple[Optional[str], bool, int, int]:
        buffered: List[bytes] = []
        accumulator = _StreamAccumulator(self.detector, self.estimator, is_code)

        def on_chunk(chunk: bytes, offset: int, total_size: int) -> None:
            if self.streams.should_stream(total_size):
                accumulator.feed(chunk)
            else:
                buffered.append(chunk)

        streamed = self.streams.process_file(full_path, on_chunk)
        if streamed:
            accumulator.finish()
            return None, True, accumulator.char_count, int(accumulator.weight)

        data = b''.join(buffered)
        content, encoding, error = self.detector.decode_bytes(data, full_path)
        if content is None:
            # Decoding is deterministic, retrying cannot help
            raise FileReadError(full_path, 1, ValueError(error))
        return content, False, len(content), self._count_tokens(content, is_code)

    def _count_tokens(self, content: str, is_code: bool) -> int:
        if self.counter is not None:
            return self.counter.count(content)
        if self.estimator is not None:
            return self.estimator.estimate(content, is_code)
        return 0
