"""Exceptions raised by the scale-profile analysis.

Every error is a :class:`ValueError` subclass, so callers that only care
about "bad input or bad state" can keep catching ``ValueError``.  Some kinds
also inherit the closest builtin (``IndexError``, ``RuntimeError``).
"""

from __future__ import annotations


class ScaleProfileError(ValueError):
    """Base class for all scale-profile errors."""


class InvalidStateError(ScaleProfileError, RuntimeError):
    """The profile has not been initialized (or was cleared)."""


class IndexOutOfRangeError(ScaleProfileError, IndexError):
    """A scale index lies outside ``[0, n_scales)``."""


class InvalidScaleCountError(ScaleProfileError):
    """Empty scale sequence, or a scale that is not strictly positive."""


class EmptyAccumulatorError(ScaleProfileError):
    """A statistic with zero samples cannot be reduced to a value."""


class NonPositiveReductionError(ScaleProfileError):
    """A reduced profile value is <= 0, so its logarithm is undefined."""


class MedianUnavailableError(ScaleProfileError):
    """Median requested without retained samples or a cached median."""


class InsufficientPointsError(ScaleProfileError):
    """Linear regression needs at least two distinct x-values."""
