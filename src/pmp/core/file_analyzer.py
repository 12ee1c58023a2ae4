"""
Binary file classification for pmp.

Uses multiple methods to determine if a file is binary, first conclusive
signal wins:
1. Check file extension against known binary extensions
2. Use the MIME type guessed from the extension
3. Sniff the first 512 bytes of content

Results are stored in a :class:`ClassificationCache` keyed by the file's
fingerprint, so unchanged files are never sniffed twice.
"""

import logging
import mimetypes
import os
from typing import Optional, Set

from ..utils.encodings import RECOGNIZED_TEXT_ENCODINGS, sniff_content_type
from ..utils.languages import LANGUAGES
from .cache import ClassificationCache

logger = logging.getLogger(__name__)

SNIFF_SIZE = 512

BINARY_EXTENSIONS: Set[str] = {
    # Executables & Libraries
    '.exe', '.dll', '.so', '.dylib', '.bin', '.obj', '.o', '.a', '.lib',
    '.pyc', '.pyo', '.pyd', '.class', '.jar', '.war', '.ear', '.dex', '.apk',
    # Archives
    '.zip', '.tar', '.gz', '.bz2', '.xz', '.7z', '.rar', '.whl',
    # Media
    '.png', '.jpg', '.jpeg', '.gif', '.bmp', '.ico', '.webp', '.tiff',
    '.mp3', '.mp4', '.avi', '.mov', '.wmv', '.flv', '.webm',
    '.wav', '.flac', '.ogg', '.m4a', '.aac',
    # Documents & data
    '.pdf', '.doc', '.docx', '.xls', '.xlsx', '.ppt', '.pptx',
    '.db', '.sqlite', '.mdb', '.accdb',
}

# Structured text served under application/*
TEXT_MIME_TYPES = {
    'application/json', 'application/xml',
    'application/javascript', 'application/ecmascript',
    'application/x-sh', 'application/x-csh', 'application/x-tcl', 'application/x-texinfo',
}

# Text formats the stock MIME table misses or maps to application/* types
TEXT_EXTENSIONS = {
    '.tex', '.csv', '.log', '.cfg', '.conf', '.lock', '.gradle', '.properties',
}


def fingerprint(path: str, size: int, mtime_ns: int) -> str:
    """Cache key for a file: absolute path, size and modification time."""
    return f"{os.path.abspath(path)}:{size}:{mtime_ns}"


def _build_mime_table() -> mimetypes.MimeTypes:
    """Stock MIME table plus text types for source code extensions."""
    table = mimetypes.MimeTypes()
    for ext, language in LANGUAGES.items():
        guessed, _ = table.guess_type('x' + ext)
        if not guessed or not _is_text_mime(guessed):
            table.add_type(f'text/x-{language}', ext)
    for ext in TEXT_EXTENSIONS:
        table.add_type('text/plain', ext)
    return table


def _is_text_mime(mime_type: str) -> bool:
    return (mime_type.startswith('text/')
            or mime_type in TEXT_MIME_TYPES
            or mime_type.startswith('application/x-troff')
            or mime_type.endswith('+json')
            or mime_type.endswith('+xml'))


class BinaryClassifier:
    """Decides whether a file is text or binary, backed by a persistent cache."""

    def __init__(self, cache: Optional[ClassificationCache] = None,
                 binary_extensions: Optional[Set[str]] = None):
        """
        Args:
            cache: Shared classification cache; None disables caching.
            binary_extensions: Override for the static extension set.
        """
        self.cache = cache
        self.binary_extensions = binary_extensions if binary_extensions is not None else BINARY_EXTENSIONS
        self._mime_table = _build_mime_table()
        self.sniff_count = 0

    def classify_by_extension(self, file_path: str) -> Optional[bool]:
        """True for a known binary extension, None when inconclusive."""
        ext = os.path.splitext(file_path)[1].lower()
        if ext in self.binary_extensions:
            return True
        return None

    def classify_by_mime(self, file_path: str) -> Optional[bool]:
        """
        Classify from the MIME type guessed from the extension.

        Returns:
            False for text types, True for other known types, None if unknown.
        """
        mime_type, _ = self._mime_table.guess_type(file_path, strict=False)
        if not mime_type:
            return None
        return not _is_text_mime(mime_type)

    def sniff(self, file_path: str) -> bool:
        """
        Classify from the first bytes of content.

        Raises:
            OSError: If the file cannot be opened or read.
        """
        self.sniff_count += 1
        with open(file_path, 'rb') as f:
            sample = f.read(SNIFF_SIZE)
        mime_type, charset = sniff_content_type(sample)
        return not (mime_type == 'text/plain' and charset in RECOGNIZED_TEXT_ENCODINGS)

    def is_binary_file(self, file_path: str) -> bool:
        """
        Check whether a file is binary.

        Any I/O failure classifies the file as binary. Conclusive answers
        are cached under the file's fingerprint before returning.
        """
        try:
            stat = os.stat(file_path)
        except OSError as e:
            logger.debug(f"Cannot stat {file_path}, treating as binary: {e}")
            return True

        key = fingerprint(file_path, stat.st_size, stat.st_mtime_ns)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        is_binary = self.classify_by_extension(file_path)
        if is_binary is None:
            is_binary = self.classify_by_mime(file_path)
        if is_binary is None:
            try:
                is_binary = self.sniff(file_path)
            except OSError as e:
                logger.warning(f"Cannot read {file_path} for classification, treating as binary: {e}")
                return True

        if self.cache is not None:
            self.cache.set(key, is_binary)
        return is_binary
