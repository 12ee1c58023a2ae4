"""Utility modules for pmp."""

from .encodings import EncodingDetector
from .path_utils import PathUtils
from .sizes import format_size, parse_size

__all__ = ["EncodingDetector", "PathUtils", "format_size", "parse_size"]
