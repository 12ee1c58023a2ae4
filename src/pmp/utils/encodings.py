"""
Encoding detection and content sniffing utilities.

This module provides robust text decoding with multiple fallback
strategies, plus a small content-type sniffer used to tell text from
binary when neither the extension nor the MIME type is conclusive.
"""

import codecs
import logging
from typing import Optional, List, Tuple


# Common encodings to try, ordered by likelihood
DEFAULT_ENCODINGS = [
    'utf-8',
    'utf-8-sig',  # UTF-8 with BOM
    'latin-1',
    'cp1252',     # Windows-1252
    'iso-8859-1',
]

# Encodings a sniffed text/plain sample may carry and still count as text
RECOGNIZED_TEXT_ENCODINGS = {'utf-8', 'utf-8-sig', 'utf-16-le', 'utf-16-be'}

# Longest BOM first so UTF-32 is not mistaken for UTF-16
_BOMS = [
    (b'\xff\xfe\x00\x00', 'utf-32-le'),
    (b'\x00\x00\xfe\xff', 'utf-32-be'),
    (b'\xef\xbb\xbf', 'utf-8-sig'),
    (b'\xff\xfe', 'utf-16-le'),
    (b'\xfe\xff', 'utf-16-be'),
]

# Codecs that consume the BOM while decoding
_BOM_CODECS = {
    'utf-32-le': 'utf-32',
    'utf-32-be': 'utf-32',
    'utf-8-sig': 'utf-8-sig',
    'utf-16-le': 'utf-16',
    'utf-16-be': 'utf-16',
}

# Leading signatures of common binary formats
_SIGNATURES = [
    (b'\x89PNG\r\n\x1a\n', 'image/png'),
    (b'GIF87a', 'image/gif'),
    (b'GIF89a', 'image/gif'),
    (b'\xff\xd8\xff', 'image/jpeg'),
    (b'BM', 'image/bmp'),
    (b'%PDF-', 'application/pdf'),
    (b'PK\x03\x04', 'application/zip'),
    (b'\x1f\x8b\x08', 'application/x-gzip'),
    (b'Rar!\x1a\x07', 'application/x-rar-compressed'),
    (b'7z\xbc\xaf\x27\x1c', 'application/x-7z-compressed'),
    (b'\x7fELF', 'application/x-executable'),
    (b'MZ', 'application/x-msdownload'),
    (b'\x00asm', 'application/wasm'),
    (b'OggS', 'application/ogg'),
    (b'ID3', 'audio/mpeg'),
]

# Control bytes that never appear in text (tab, LF, FF, CR and ESC are allowed)
_BINARY_BYTES = frozenset(b for b in range(0x20) if b not in (0x09, 0x0a, 0x0c, 0x0d, 0x1b))

# Set up module logger
logger = logging.getLogger(__name__)


def has_bom(content: bytes) -> Tuple[bool, Optional[str]]:
    """
    Check if content starts with a Byte Order Mark (BOM).

    Args:
        content: Raw bytes to check.

    Returns:
        Tuple of (has_bom, encoding_name).
    """
    for bom, encoding in _BOMS:
        if content.startswith(bom):
            return True, encoding
    return False, None


def sniff_content_type(sample: bytes) -> Tuple[str, Optional[str]]:
    """
    Detect the content type of the first bytes of a file.

    Returns:
        Tuple of (mime_type, charset). charset is None for non-text types.
    """
    found, encoding = has_bom(sample)
    if found:
        return 'text/plain', encoding

    for signature, mime_type in _SIGNATURES:
        if sample.startswith(signature):
            return mime_type, None

    if any(byte in _BINARY_BYTES for byte in sample):
        return 'application/octet-stream', None

    return 'text/plain', 'utf-8'


class EncodingDetector:
    """Handles encoding detection and text decoding."""

    def __init__(self, fallback_encodings: Optional[List[str]] = None):
        """
        Initialize the encoding detector.

        Args:
            fallback_encodings: List of encodings to try. If None, uses defaults.
        """
        self.encodings = fallback_encodings or DEFAULT_ENCODINGS

    def decode_bytes(self, content: bytes, file_path: Optional[str] = None) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        """
        Attempt to decode bytes to string using multiple encodings.

        Args:
            content: Raw bytes to decode.
            file_path: Optional file path for better error messages.

        Returns:
            Tuple of (decoded_text, encoding_used, error_message).
            If successful: (text, encoding, None)
            If failed: (None, None, error_message)
        """
        found, bom_encoding = has_bom(content)
        if found:
            try:
                decoded = content.decode(_BOM_CODECS[bom_encoding])
                logger.debug(f"Decoded {file_path} using BOM-detected {bom_encoding}")
                return decoded, bom_encoding, None
            except UnicodeDecodeError as e:
                logger.debug(f"BOM decode failed for {file_path}: {e}")

        last_error = None
        for encoding in self.encodings:
            try:
                decoded = content.decode(encoding)
                logger.debug(f"Decoded {file_path} using {encoding}")
                return decoded, encoding, None
            except UnicodeDecodeError as e:
                last_error = e
                continue
            except LookupError as e:
                logger.warning(f"Unknown encoding {encoding} while decoding {file_path}")
                last_error = e
                continue

        error_msg = f"Unable to decode file with available encodings ({', '.join(self.encodings[:3])}, ...)"
        if last_error is not None and hasattr(last_error, 'start'):
            error_msg += f" - failed at byte {last_error.start}"

        logger.info(f"Encoding detection failed for {file_path}: tried {len(self.encodings)} encodings")
        return None, None, error_msg

    def incremental_decoder(self, first_chunk: bytes) -> codecs.IncrementalDecoder:
        """
        Build an incremental decoder for a file read in chunks.

        The encoding is taken from a BOM in the first chunk, otherwise UTF-8;
        undecodable bytes are replaced so chunk boundaries never fail a read.
        """
        found, encoding = has_bom(first_chunk)
        codec = _BOM_CODECS[encoding] if found else 'utf-8'
        return codecs.getincrementaldecoder(codec)(errors='replace')
