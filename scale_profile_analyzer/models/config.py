"""Noise-level configuration -- bundles every detection parameter.

A :class:`NoiseLevelConfig` groups the parameters that affect the noise-level
output into one frozen dataclass.  It can be:

- Constructed with defaults (the classic digital-contour setting)
- Overridden field-by-field via ``dataclasses.replace()``
- Serialized to/from a dict for JSON provenance
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Union


class ProfileDefinition(str, Enum):
    """How the samples of one scale are reduced to a profile value."""

    MEAN = "mean"
    MAX = "max"
    MIN = "min"
    MEDIAN = "median"

    @classmethod
    def parse(cls, value: Union["ProfileDefinition", str]) -> "ProfileDefinition":
        """Accept an enum member, its value (``"mean"``) or its name (``"MEAN"``)."""
        if isinstance(value, cls):
            return value
        s = str(value).strip()
        try:
            return cls(s.lower())
        except ValueError:
            raise ValueError(
                f"Unknown profile definition {value!r}; expected one of {[m.value for m in cls]}"
            ) from None


@dataclass(frozen=True)
class NoiseLevelConfig:
    """Frozen configuration for noise-level estimation.

    Fields
    ------
    min_width : int
        Minimum width (``end - start`` in point indices) of a meaningful interval.
    max_slope : float
        Upper bound on the per-step log-log slope. Steps flatter than this
        (or increasing) break a meaningful interval.
    min_slope : float
        Lower bound on the per-step slope. Steeper steps are treated as noise.
    min_size : int
        Minimum interval width used by the slope estimate.
    lower_bounded : bool
        If True, use the lower-bounded noise level.
    lower_bound_at_scale_1 : float
        Floor of the raw profile at scale 1 (must be > 0).
    lower_bound_slope : float
        Exponent of the floor ``lower_bound_at_scale_1 * scale**lower_bound_slope``.
        Typically -1 for digital contour lengths, -3 for areas divided by scale^3.
    profile_def : ProfileDefinition
        Reduction used to build the profile curve.
    """

    min_width: int = 1
    max_slope: float = -0.2
    min_slope: float = -1e10
    min_size: int = 2

    lower_bounded: bool = False
    lower_bound_at_scale_1: float = 1.0
    lower_bound_slope: float = -2.0

    profile_def: ProfileDefinition = ProfileDefinition.MEAN

    def __post_init__(self) -> None:
        # Callers may pass the string form ("median")
        object.__setattr__(self, "profile_def", ProfileDefinition.parse(self.profile_def))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly dict (the enum becomes its string value)."""
        d = asdict(self)
        d["profile_def"] = self.profile_def.value
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> NoiseLevelConfig:
        """Reconstruct from a dict (e.g. loaded from JSON)."""
        d = dict(d)  # shallow copy
        if "profile_def" in d:
            d["profile_def"] = ProfileDefinition.parse(d["profile_def"])
        return cls(**d)
