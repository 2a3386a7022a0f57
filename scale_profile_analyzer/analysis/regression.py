"""Least-squares line fit over a sub-range of a profile curve."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from scale_profile_analyzer.errors import InsufficientPointsError


@dataclass(frozen=True)
class LinearFit:
    """Ordinary least-squares fit ``y = slope * x + intercept``.

    Attributes
    ----------
    slope, intercept:
        Fitted coefficients.
    n_points:
        Number of points used by the fit.
    """

    slope: float
    intercept: float
    n_points: int


def fit_line(
    x: np.ndarray,
    y: np.ndarray,
    start: int = 0,
    end: Optional[int] = None,
) -> LinearFit:
    """Fit a straight line to the points ``start..end`` (inclusive).

    Parameters
    ----------
    x, y:
        1D arrays of equal length.
    start, end:
        Inclusive point-index range. ``end=None`` means the last point.

    Raises
    ------
    InsufficientPointsError
        If the range holds fewer than two distinct x-values.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.ndim != 1 or y.ndim != 1 or x.shape != y.shape:
        raise ValueError(f"x and y must be 1D arrays of equal length, got {x.shape} and {y.shape}")

    if end is None:
        end = x.size - 1
    if not (0 <= start <= end < x.size) and x.size:
        raise ValueError(f"range [{start}, {end}] outside [0, {x.size - 1}]")

    xs = x[start : end + 1]
    ys = y[start : end + 1]
    if np.unique(xs).size < 2:
        raise InsufficientPointsError(
            f"linear regression needs >= 2 distinct x-values, got {np.unique(xs).size} in [{start}, {end}]"
        )

    slope, intercept = np.polyfit(xs, ys, 1)
    return LinearFit(slope=float(slope), intercept=float(intercept), n_points=int(xs.size))


def least_squares_slope(
    x: np.ndarray,
    y: np.ndarray,
    start: int = 0,
    end: Optional[int] = None,
) -> float:
    """Slope of :func:`fit_line` over ``start..end``."""
    return fit_line(x, y, start, end).slope
