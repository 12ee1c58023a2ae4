"""
Token counting functionality for pmp.

:class:`TokenEstimator` is a deterministic character-weight heuristic used
for run statistics; it gives a sense of how much of a model's context
window the report will take, not the count of any specific tokenizer.
:class:`TokenCounter` counts exactly with a tiktoken encoding when the
user asks for it.
"""

import logging
from typing import Any, Dict, Optional

import tiktoken

logger = logging.getLogger(__name__)

# Weights for whitespace and syntax punctuation
SPECIAL_CHAR_WEIGHTS: Dict[str, float] = {
    ' ': 0.3, '\t': 0.5, '\n': 0.5, '(': 0.5, ')': 0.5,
    '[': 0.7, ']': 0.7, '{': 0.7, '}': 0.7, ':': 0.5,
    ';': 0.5, '.': 0.3, ',': 0.3, '=': 0.5, '+': 0.5,
    '-': 0.3, '*': 0.5, '/': 0.5, '\\': 0.7, '"': 0.5,
    '\'': 0.3, '`': 0.5, '<': 0.5, '>': 0.5, '&': 0.7,
    '|': 0.7, '!': 0.5, '?': 0.5, '#': 0.5, '@': 0.7,
}

OTHER_WHITESPACE_WEIGHT = 0.3


class TokenEstimator:
    """
    Approximate token counts from character weights.

    Every character contributes a fractional weight: punctuation and
    whitespace use fixed weights, everything else uses the base weight of
    the mode (code is denser per token than natural-language text).
    """

    def __init__(self, code_factor: float = 0.8, text_factor: float = 0.25,
                 special_chars: Optional[Dict[str, float]] = None):
        self.code_factor = code_factor
        self.text_factor = text_factor
        self.special_chars = dict(special_chars if special_chars is not None else SPECIAL_CHAR_WEIGHTS)

    def weigh(self, text: str, is_code: bool = True) -> float:
        """
        Raw (fractional) token weight of ``text``.

        Weights are additive, so a text processed in pieces can be summed
        and truncated once at the end.
        """
        base = self.code_factor if is_code else self.text_factor
        special = self.special_chars
        total = 0.0
        for ch in text:
            weight = special.get(ch)
            if weight is not None:
                total += weight
            elif ch.isspace():
                total += OTHER_WHITESPACE_WEIGHT
            else:
                total += base
        return total

    def estimate(self, text: str, is_code: bool = True) -> int:
        """
        Estimate the number of tokens in the given text.

        Args:
            text: The text to estimate tokens for.
            is_code: Whether the text is source code or natural language.

        Returns:
            Estimated number of tokens.
        """
        if not text:
            return 0
        return int(self.weigh(text, is_code))


class TokenCounter:
    """
    Handles exact token counting for text content with tiktoken.
    """

    def __init__(self, encoding_name: str = "cl100k_base"):
        """
        Initialize the token counter.

        Args:
            encoding_name: The name of the tiktoken encoding to use.
                         Default is cl100k_base (used by GPT-4).
        """
        self.encoding_name = encoding_name
        self.encoder: Optional[Any] = None

        try:
            self.encoder = tiktoken.get_encoding(encoding_name)
        except (KeyError, ValueError, OSError) as e:
            logger.warning(f"Failed to initialize token encoder '{encoding_name}': {e}")

    @property
    def is_available(self) -> bool:
        """Check if token counting is available."""
        return self.encoder is not None

    def count(self, text: str) -> int:
        """
        Count tokens in the given text.

        Args:
            text: The text to count tokens for.

        Returns:
            Number of tokens, or 0 if counting is unavailable.
        """
        if not self.is_available or not text:
            return 0

        try:
            return len(self.encoder.encode(text, disallowed_special=()))
        except ValueError as e:
            logger.debug(f"Error counting tokens: {e}")
            return 0
