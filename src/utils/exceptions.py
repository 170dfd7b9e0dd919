"""Errors raised by the sampling, segmentation and search operations.

Probability lookups never raise: unseen data scores 0.0 or a floor epsilon.
Only operations that cannot produce a result fail, and every failure is
recoverable by the caller.
"""

from typing import Tuple


class DecipherError(Exception):
    """Base class for all errors raised by this project."""


class EmptyDistribution(DecipherError):
    """Raised when sampling from a distribution with no observations."""


class UnseenContext(DecipherError):
    """Raised when sampling a continuation for a context never observed."""

    def __init__(self, context: Tuple[str, ...]):
        self.context = context
        super().__init__(f"Context {context!r} was never observed")


class EmptyInput(DecipherError):
    """Raised when segmenting an empty string."""


class NoSolution(DecipherError):
    """Raised when the permutation search ends without a full permutation."""

    def __init__(self, message: str, expansions: int = 0):
        self.expansions = expansions
        super().__init__(message)
