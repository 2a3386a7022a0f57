"""Tabular export and plotting of a :class:`ScaleProfile`.

Functions
---------
profile_table
    One row per scale with the raw statistics and the log-log profile point.
plot_profile
    Log-log profile on a matplotlib Axes, meaningful intervals highlighted.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from scale_profile_analyzer.analysis.scale_profile import ScaleProfile, reduce_statistic
from scale_profile_analyzer.errors import InvalidStateError, ScaleProfileError


def profile_table(profile: ScaleProfile) -> pd.DataFrame:
    """Build a per-scale DataFrame.

    Columns: ``scale``, ``n_samples``, ``mean``, ``min``, ``max``, ``median``,
    ``log_scale``, ``log_value``.  Undefined entries (empty scale, median not
    available, non-positive reduced value) are NaN rather than errors, so the
    table can be used to inspect degenerate profiles.
    """
    if not profile.is_valid():
        raise InvalidStateError("ScaleProfile is not initialized; call init() first")

    rows = []
    for scale, stat in zip(profile.scales, profile.stats):
        n = stat.count
        row = {
            "scale": float(scale),
            "n_samples": int(n),
            "mean": stat.mean() if n else np.nan,
            "min": stat.min() if n else np.nan,
            "max": stat.max() if n else np.nan,
            "median": stat.median() if stat.has_median() else np.nan,
            "log_scale": math.log(scale),
            "log_value": np.nan,
        }
        try:
            v = reduce_statistic(stat, profile.profile_def)
        except ScaleProfileError:
            v = np.nan
        if v > 0:
            row["log_value"] = math.log(v)
        rows.append(row)
    return pd.DataFrame(rows)


def plot_profile(
    ax,
    profile: ScaleProfile,
    intervals: Optional[Sequence[Tuple[int, int]]] = None,
    lower_bound: Optional[Tuple[float, float]] = None,
    color: str = "tab:blue",
    interval_color: str = "tab:orange",
):
    """Plot the log-log profile of ``profile``.

    Parameters
    ----------
    ax : matplotlib Axes
    profile : ScaleProfile
        Must be able to build its profile (see :meth:`ScaleProfile.get_profile`).
    intervals : list of (start, end), optional
        Point intervals to highlight. Defaults to ``profile.meaningful_scales()``.
    lower_bound : (at_scale_1, slope), optional
        If given, the floor ``log(at_scale_1) + slope * log(scale)`` is drawn.
    color, interval_color : str
        Matplotlib colors for the curve and the highlighted intervals.

    Returns
    -------
    list of (start, end)
        The intervals that were highlighted.
    """
    x, y = profile.get_profile()
    if intervals is None:
        intervals = profile.meaningful_scales()

    ax.plot(x, y, "o-", color=color, ms=4, lw=1.0, label=f"profile ({profile.profile_def.value})", zorder=2)
    for k, (s, e) in enumerate(intervals):
        ax.plot(
            x[s : e + 1], y[s : e + 1], "-",
            color=interval_color, lw=3.0, alpha=0.8,
            label="meaningful scales" if k == 0 else None,
            zorder=3,
        )
    if intervals:
        ax.axvline(x[intervals[0][0]], color=interval_color, ls=":", lw=1.0, zorder=1)

    if lower_bound is not None:
        at1, slope = lower_bound
        ax.plot(x, math.log(at1) + slope * x, "--", color="grey", lw=1.0, label="lower bound", zorder=1)

    ax.set_xlabel("log(scale)")
    ax.set_ylabel("log(value)")
    ax.legend(loc="best", fontsize="small")
    return list(intervals)
