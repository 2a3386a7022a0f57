"""One-call noise-level estimation driven by a :class:`NoiseLevelConfig`.

The result carries the configuration it was computed with, so that an
exported noise level can always be traced back to its parameters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from scale_profile_analyzer.analysis.meaningful_scales import (
    Interval,
    admissible_points,
    find_meaningful_scales,
)
from scale_profile_analyzer.analysis.regression import least_squares_slope
from scale_profile_analyzer.analysis.scale_profile import ScaleProfile
from scale_profile_analyzer.errors import InsufficientPointsError
from scale_profile_analyzer.models.config import NoiseLevelConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoiseLevelResult:
    """Noise level of one profile together with its diagnostics.

    Attributes
    ----------
    noise_level:
        Scale value at the start of the first meaningful interval, 0 if none.
    intervals:
        Meaningful intervals (point indices) used for ``noise_level``.
    slope_found:
        True if ``slope`` was fitted on a meaningful interval of width >= ``min_size``.
    slope:
        Least-squares slope (first interval, or whole profile as a fallback).
        None if the regression was undefined.
    config:
        ``NoiseLevelConfig.to_dict()`` of the parameters used.
    warnings:
        Non-fatal issues found during estimation.
    """

    noise_level: float
    intervals: Tuple[Interval, ...]
    slope_found: bool
    slope: Optional[float]
    config: Dict[str, Any]
    warnings: Tuple[str, ...] = ()

    @property
    def found(self) -> bool:
        return bool(self.intervals)


def estimate_noise_level(
    profile: ScaleProfile,
    config: Optional[NoiseLevelConfig] = None,
) -> NoiseLevelResult:
    """Compute the (optionally lower-bounded) noise level of ``profile``.

    The curve is built with the profile definition of ``config``; the
    definition stored on ``profile`` is left as it was.  Errors from the
    profile itself (uninitialized, empty scale, non-positive value, missing
    median) propagate unchanged.
    """
    cfg = config if config is not None else NoiseLevelConfig()
    warnings: List[str] = []

    previous = profile.profile_def
    try:
        profile.set_profile_def(cfg.profile_def)
        x, y = profile.get_profile()
    finally:
        profile.set_profile_def(previous)

    point_mask = None
    if cfg.lower_bounded:
        point_mask = admissible_points(x, y, cfg.lower_bound_at_scale_1, cfg.lower_bound_slope)
        n_below = int((~point_mask).sum())
        if n_below:
            warnings.append(
                f"{n_below}/{point_mask.size} scales below the lower bound "
                f"{cfg.lower_bound_at_scale_1:g}*scale^{cfg.lower_bound_slope:g}"
            )

    intervals = find_meaningful_scales(x, y, cfg.min_width, cfg.max_slope, cfg.min_slope, point_mask=point_mask)
    scales = profile.scales
    level = float(scales[intervals[0][0]]) if intervals else 0.0
    if not intervals:
        warnings.append("no meaningful scale interval found; noise level set to 0")

    # Slope: same rule as ScaleProfile.get_slope_from_meaningful_scales (no floor).
    slope: Optional[float]
    slope_intervals = find_meaningful_scales(x, y, cfg.min_size, cfg.max_slope, cfg.min_slope)
    slope_found = bool(slope_intervals)
    try:
        if slope_found:
            start, end = slope_intervals[0]
            slope = least_squares_slope(x, y, start, end)
        else:
            slope = least_squares_slope(x, y)
            warnings.append("slope fitted on the whole profile (no meaningful interval of width >= min_size)")
    except InsufficientPointsError as exc:
        slope = None
        warnings.append(f"slope undefined: {exc}")

    for msg in warnings:
        logger.warning("noise level: %s", msg)

    return NoiseLevelResult(
        noise_level=level,
        intervals=tuple(intervals),
        slope_found=slope_found,
        slope=slope,
        config=cfg.to_dict(),
        warnings=tuple(warnings),
    )
