"""Core components for pmp."""

from .errors import ConfigError, FileReadError, PMPError, TraversalError
from .models import AnalysisResult, Candidate, Config, FileNode, ProcessingLimits
from .tokenizer import TokenCounter, TokenEstimator

__all__ = [
    "Config",
    "ProcessingLimits",
    "Candidate",
    "FileNode",
    "AnalysisResult",
    "PMPError",
    "ConfigError",
    "TraversalError",
    "FileReadError",
    "TokenCounter",
    "TokenEstimator",
]
