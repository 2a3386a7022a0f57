"""Scale-profile analysis package.

Design principle:
  - A :class:`~scale_profile_analyzer.analysis.scale_profile.ScaleProfile` only
    describes one location; aggregating many locations is the caller's job.
  - All curve computations are done in log-log space.

Degenerate inputs (empty scale, non-positive value, missing median) raise;
"no meaningful scale" is a regular result (empty interval list, noise level 0).
"""

from .meaningful_scales import find_meaningful_scales
from .noise_level import NoiseLevelResult, estimate_noise_level
from .regression import LinearFit, fit_line, least_squares_slope
from .scale_profile import ScaleProfile

__all__ = [
    "find_meaningful_scales",
    "NoiseLevelResult",
    "estimate_noise_level",
    "LinearFit",
    "fit_line",
    "least_squares_slope",
    "ScaleProfile",
]
