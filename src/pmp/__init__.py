"""prompt-my-project: turn a source tree into a single prompt-ready report."""

__version__ = "1.0.0"
