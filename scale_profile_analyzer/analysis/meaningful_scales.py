"""Meaningful-scale detection on a log-log profile curve.

A *meaningful scale interval* is a maximal run of consecutive profile steps
whose slope stays inside ``[min_slope, max_slope]``, at least ``min_width``
steps long.  Intervals are expressed as closed ranges of *point* indices: a
run of steps ``i..j`` covers points ``i..j+1``, so its width ``end - start``
equals its number of steps.

Functions
---------
step_slopes
    Signed slope of every step ``i -> i+1`` of the curve.
acceptable_steps
    Boolean mask of steps whose slope lies within the bounds.
admissible_points
    Boolean mask of points lying on or above an exponential floor.
contiguous_step_runs
    Runs of consecutive True steps, converted to point intervals.
find_meaningful_scales
    Full detection (slopes -> mask -> runs -> width filter).
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

Interval = Tuple[int, int]


def _check_curve(x: np.ndarray, y: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.ndim != 1 or y.ndim != 1 or x.shape != y.shape:
        raise ValueError(f"x and y must be 1D arrays of equal length, got {x.shape} and {y.shape}")
    return x, y


def step_slopes(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Return ``(y[i+1]-y[i]) / (x[i+1]-x[i])`` for ``i = 0..N-2``.

    A step with ``x[i+1] == x[i]`` yields ``inf`` or ``nan``; neither passes
    a finite slope bound.
    """
    x, y = _check_curve(x, y)
    if x.size < 2:
        return np.empty(0, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.diff(y) / np.diff(x)


def acceptable_steps(slopes: np.ndarray, max_slope: float, min_slope: float) -> np.ndarray:
    """Mask of steps with ``min_slope <= slope <= max_slope`` (nan is rejected)."""
    s = np.asarray(slopes, dtype=float)
    return (s >= float(min_slope)) & (s <= float(max_slope))


def admissible_points(
    x: np.ndarray,
    y: np.ndarray,
    lower_bound_at_scale_1: float,
    lower_bound_slope: float,
) -> np.ndarray:
    """Mask of points with ``y[i] >= ln(lower_bound_at_scale_1) + lower_bound_slope * x[i]``.

    In raw (non-log) terms the profile must stay above
    ``lower_bound_at_scale_1 * scale**lower_bound_slope``.
    """
    x, y = _check_curve(x, y)
    if not lower_bound_at_scale_1 > 0:
        raise ValueError(f"lower_bound_at_scale_1 must be > 0, got {lower_bound_at_scale_1}")
    floor = math.log(lower_bound_at_scale_1) + float(lower_bound_slope) * x
    return y >= floor


def contiguous_step_runs(step_mask: np.ndarray, min_width: int = 1) -> List[Interval]:
    """Turn runs of consecutive True steps into point intervals.

    Parameters
    ----------
    step_mask : ndarray of bool, shape (N-1,)
        One flag per step.
    min_width : int
        Only return intervals with ``end - start >= min_width``.

    Returns
    -------
    list of (start, end) tuples
        Inclusive point-index intervals in ascending order.
    """
    runs: List[Interval] = []
    in_run = False
    start = 0
    for i, ok in enumerate(step_mask):
        if ok:
            if not in_run:
                start = i
                in_run = True
        else:
            if in_run:
                runs.append((start, i))  # steps start..i-1 -> points start..i
                in_run = False
    if in_run:
        runs.append((start, len(step_mask)))
    return [(s, e) for s, e in runs if (e - s) >= min_width]


def find_meaningful_scales(
    x: np.ndarray,
    y: np.ndarray,
    min_width: int = 1,
    max_slope: float = -0.2,
    min_slope: float = -1e10,
    point_mask: Optional[np.ndarray] = None,
) -> List[Interval]:
    """Detect meaningful scale intervals of the curve ``(x, y)``.

    Parameters
    ----------
    x, y:
        Log-scale and log-value arrays of the profile.
    min_width:
        Minimum interval width (>= 1).
    max_slope, min_slope:
        Inclusive bounds on the per-step slope.
    point_mask:
        Optional per-point admissibility. A step is usable only if both of
        its end points are admissible.

    Returns
    -------
    list of (start, end)
        Possibly empty; an empty list means no stable scale range was found.
    """
    if int(min_width) < 1:
        raise ValueError(f"min_width must be >= 1, got {min_width}")
    x, y = _check_curve(x, y)

    ok = acceptable_steps(step_slopes(x, y), max_slope, min_slope)
    if point_mask is not None:
        pm = np.asarray(point_mask, dtype=bool)
        if pm.shape != x.shape:
            raise ValueError(f"point_mask must have shape {x.shape}, got {pm.shape}")
        ok = ok & pm[:-1] & pm[1:]

    intervals = contiguous_step_runs(ok, int(min_width))
    logger.debug(
        "meaningful scales: %d/%d acceptable steps, intervals=%s (min_width=%d, slope in [%g, %g])",
        int(np.count_nonzero(ok)),
        ok.size,
        intervals,
        int(min_width),
        min_slope,
        max_slope,
    )
    return intervals
