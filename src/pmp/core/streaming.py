"""
Chunked reading of large files.

Files below the streaming threshold are read in one call; larger files are
read through a buffered reader in fixed-size chunks that are handed to a
callback, so no more than one chunk per worker is ever held in memory.
"""

import logging
import os
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from .models import KB, MB

logger = logging.getLogger(__name__)

# chunk, offset of the chunk in the file, total file size
ChunkCallback = Callable[[bytes, int, int], None]
# bytes processed so far, total file size
ProgressCallback = Callable[[int, int], None]

READ_BUFFER_SIZE = 64 * KB


@dataclass
class StreamingStats:
    """Counters shared by every StreamProcessor call of a run."""

    files_streamed: int = 0
    chunks_processed: int = 0
    bytes_processed: int = 0


class StreamProcessor:
    """Reads files whole or in chunks depending on their size."""

    def __init__(self, chunk_size: int = 1 * MB, threshold: int = 10 * MB,
                 buffer_size: int = READ_BUFFER_SIZE):
        """
        Args:
            chunk_size: Bytes delivered per chunk callback when streaming.
            threshold: Files of at least this size are streamed.
            buffer_size: Size of the buffered reader underneath.
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size
        self.threshold = threshold
        self.buffer_size = buffer_size
        self.stats = StreamingStats()
        self._stats_lock = threading.Lock()

    def should_stream(self, size: int) -> bool:
        """True when a file of ``size`` bytes is read in chunks."""
        return self.threshold > 0 and size >= self.threshold

    def process_file(self, file_path: str, on_chunk: ChunkCallback,
                     on_progress: Optional[ProgressCallback] = None) -> bool:
        """
        Feed a file's content to ``on_chunk``.

        Below the threshold the whole file arrives as a single chunk at
        offset 0. Otherwise ``on_chunk`` is called once per chunk, in order.
        ``on_progress`` receives cumulative byte counts after each chunk.

        Returns:
            True if the file was streamed.

        Raises:
            OSError: If the file cannot be opened or read.
        """
        total_size = os.path.getsize(file_path)

        if not self.should_stream(total_size):
            with open(file_path, 'rb') as f:
                data = f.read()
            on_chunk(data, 0, total_size)
            if on_progress:
                on_progress(len(data), total_size)
            return False

        logger.debug(f"Streaming {file_path} ({total_size} bytes) in {self.chunk_size} byte chunks")
        offset = 0
        chunks = 0
        with open(file_path, 'rb', buffering=self.buffer_size) as f:
            while True:
                chunk = f.read(self.chunk_size)
                if not chunk:
                    break
                on_chunk(chunk, offset, total_size)
                offset += len(chunk)
                chunks += 1
                if on_progress:
                    on_progress(offset, total_size)

        with self._stats_lock:
            self.stats.files_streamed += 1
            self.stats.chunks_processed += chunks
            self.stats.bytes_processed += offset
        return True

    def iter_text(self, file_path: str, decoder_factory):
        """
        Yield decoded text of a file chunk by chunk.

        Used by report writers to copy streamed files without buffering them.

        Args:
            decoder_factory: Called with the first chunk, returns an
                incremental decoder (see ``EncodingDetector.incremental_decoder``).
        """
        decoder = None
        with open(file_path, 'rb', buffering=self.buffer_size) as f:
            while True:
                chunk = f.read(self.chunk_size)
                if not chunk:
                    break
                if decoder is None:
                    decoder = decoder_factory(chunk)
                text = decoder.decode(chunk)
                if text:
                    yield text
        if decoder is not None:
            tail = decoder.decode(b'', final=True)
            if tail:
                yield tail
