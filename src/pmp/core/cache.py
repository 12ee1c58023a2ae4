"""
Persistent cache of binary/text classification results.

The cache is a flat JSON object mapping a file fingerprint
(``path:size:mtime_ns``) to ``true`` (binary) or ``false`` (text). It is
loaded once when a run starts and saved once when it ends; in between,
workers share it through a single reader/writer lock.
"""

import json
import logging
import os
import tempfile
import threading
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

CACHE_DIR_NAME = os.path.join('.pmp', 'cache')
CACHE_FILE_NAME = 'binary_cache.json'


def default_cache_path() -> str:
    """
    User-scoped cache location: ``~/.pmp/cache/binary_cache.json``.

    Falls back to the temp directory when no home directory is available.
    """
    home = os.path.expanduser('~')
    if not home or home == '~':
        return os.path.join(tempfile.gettempdir(), 'pmp-cache', CACHE_FILE_NAME)
    return os.path.join(home, CACHE_DIR_NAME, CACHE_FILE_NAME)


class _ReadWriteLock:
    """Many concurrent readers or one writer."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    def acquire_read(self) -> None:
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True

    def release_write(self) -> None:
        with self._cond:
            self._writing = False
            self._cond.notify_all()


class ClassificationCache:
    """
    Fingerprint -> is_binary mapping persisted as a single JSON document.

    Use it as a context manager so the save happens even if the run fails::

        with ClassificationCache(path) as cache:
            classifier = BinaryClassifier(cache)
            ...
    """

    def __init__(self, cache_file: Optional[str] = None):
        """
        Args:
            cache_file: Location of the JSON document. Defaults to
                :func:`default_cache_path`.
        """
        self.cache_file = cache_file or default_cache_path()
        self._entries: Dict[str, bool] = {}
        self._lock = _ReadWriteLock()
        self._dirty = False
        self.warnings: List[str] = []

    def __enter__(self) -> 'ClassificationCache':
        self.load()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.save()

    def __len__(self) -> int:
        self._lock.acquire_read()
        try:
            return len(self._entries)
        finally:
            self._lock.release_read()

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def load(self) -> bool:
        """
        Load entries from disk.

        A missing file is a cold cache. An unreadable or corrupt file is
        discarded with a warning and the cache starts empty.

        Returns:
            True if entries were loaded from an existing file.
        """
        if not os.path.exists(self.cache_file):
            logger.debug(f"No classification cache at {self.cache_file}")
            return False

        try:
            with open(self.cache_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self._warn(f"Error loading binary cache, starting fresh: {e}")
            data = None

        if data is not None and not (isinstance(data, dict)
                                     and all(isinstance(v, bool) for v in data.values())):
            self._warn("Binary cache has an unexpected structure, starting fresh")
            data = None

        self._lock.acquire_write()
        try:
            self._entries = dict(data) if data else {}
            # A discarded file gets rewritten on save
            self._dirty = data is None
        finally:
            self._lock.release_write()

        logger.debug(f"Loaded {len(self._entries)} cached classifications")
        return data is not None

    def save(self) -> bool:
        """
        Write entries to disk if anything changed.

        Failures are reported as warnings, never raised.

        Returns:
            True if the file was written.
        """
        self._lock.acquire_read()
        try:
            if not self._dirty:
                return False
            payload = json.dumps(self._entries, indent=2, sort_keys=True)
        finally:
            self._lock.release_read()

        cache_dir = os.path.dirname(self.cache_file) or '.'
        try:
            os.makedirs(cache_dir, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix='.binary_cache', dir=cache_dir)
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    f.write(payload)
                os.replace(tmp_path, self.cache_file)
            except OSError:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            self._warn(f"Error saving binary cache: {e}")
            return False

        self._dirty = False
        return True

    def get(self, key: str) -> Optional[bool]:
        """Cached classification for a fingerprint, or None."""
        self._lock.acquire_read()
        try:
            return self._entries.get(key)
        finally:
            self._lock.release_read()

    def set(self, key: str, is_binary: bool) -> None:
        """Store a classification."""
        self._lock.acquire_write()
        try:
            if self._entries.get(key) is not is_binary:
                self._entries[key] = is_binary
                self._dirty = True
        finally:
            self._lock.release_write()
