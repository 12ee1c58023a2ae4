"""Bounded retry with linear backoff for file reads."""

import logging
import os
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, TypeVar

from .errors import FileReadError
from .models import MB

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass(frozen=True)
class RetryConfig:
    """Retry configuration for file reads."""

    max_retries: int = 3
    delay: float = 0.5  # seconds, multiplied by the attempt number
    max_file_size: int = 10 * MB  # larger files get a single attempt


class RetryPolicy:
    """
    Runs a read operation with bounded retries.

    Only ``OSError`` is retried: anything else is a bug, not a transient
    condition, and propagates unchanged.
    """

    def __init__(self, config: Optional[RetryConfig] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.config = config or RetryConfig()
        self._sleep = sleep

    def max_attempts(self, size: int) -> int:
        """Total attempts allowed for a file of ``size`` bytes."""
        if self.config.max_file_size > 0 and size > self.config.max_file_size:
            return 1
        return 1 + max(0, self.config.max_retries)

    def run(self, path: str, operation: Callable[[], T], size: Optional[int] = None) -> Tuple[T, int]:
        """
        Call ``operation`` until it succeeds or attempts run out.

        Args:
            path: File the operation reads, for diagnostics and sizing.
            operation: Zero-argument callable performing the read.
            size: Known file size; looked up with ``os.path.getsize`` if None.

        Returns:
            Tuple of (operation result, attempts used).

        Raises:
            FileReadError: When the final attempt fails.
        """
        if size is None:
            try:
                size = os.path.getsize(path)
            except OSError:
                size = 0

        attempts = self.max_attempts(size)
        last_error: Optional[OSError] = None
        for attempt in range(1, attempts + 1):
            try:
                return operation(), attempt
            except OSError as e:
                last_error = e
                if attempt < attempts:
                    wait = self.config.delay * attempt
                    logger.debug(f"Read of {path} failed (attempt {attempt}/{attempts}), retrying in {wait:.2f}s: {e}")
                    self._sleep(wait)

        raise FileReadError(path, attempts, last_error)
