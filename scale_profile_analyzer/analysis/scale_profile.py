"""Multiscale profile of one measured location.

A :class:`ScaleProfile` stores, for a fixed sequence of scales, one
:class:`~scale_profile_analyzer.models.statistic.Statistic` per scale.  Samples
(e.g. digital lengths measured at that scale) are folded into those
statistics; the profile curve is then built in log-log space and analysed for
meaningful scales and the noise level.

The object only represents what happens at one place.  It knows nothing about
neighbouring locations.

Typical use::

    sp = ScaleProfile(ProfileDefinition.MEAN)
    sp.init(10)                       # scales 1..10
    for k, length in enumerate(lengths_per_scale):
        sp.add_value(k, length)
    level = sp.noise_level(min_width=2)
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Tuple, Union

import numpy as np

from scale_profile_analyzer.analysis.meaningful_scales import (
    Interval,
    admissible_points,
    find_meaningful_scales,
)
from scale_profile_analyzer.analysis.regression import least_squares_slope
from scale_profile_analyzer.errors import (
    IndexOutOfRangeError,
    InvalidScaleCountError,
    InvalidStateError,
    NonPositiveReductionError,
)
from scale_profile_analyzer.models.config import ProfileDefinition
from scale_profile_analyzer.models.statistic import Statistic

logger = logging.getLogger(__name__)


def reduce_statistic(stat: Statistic, profile_def: ProfileDefinition) -> float:
    if profile_def is ProfileDefinition.MEAN:
        return stat.mean()
    if profile_def is ProfileDefinition.MAX:
        return stat.max()
    if profile_def is ProfileDefinition.MIN:
        return stat.min()
    return stat.median()


class ScaleProfile:
    """Sequence of per-scale statistics, analysed in log-log space.

    Parameters
    ----------
    profile_def:
        Reduction used by :meth:`get_profile` (MEAN by default).

    The object is invalid until :meth:`init` is called.
    """

    def __init__(self, profile_def: Union[ProfileDefinition, str] = ProfileDefinition.MEAN) -> None:
        self._scales: np.ndarray = np.empty(0, dtype=float)
        self._stats: List[Statistic] = []
        self._profile_def = ProfileDefinition.parse(profile_def)
        self._store_values = False

    # ------------------------------------------------------------------
    # Standard services
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Return to the just-constructed (invalid) state."""
        self._scales = np.empty(0, dtype=float)
        self._stats = []
        self._store_values = False

    def init(self, scales: Union[int, Iterable[float]], store_values: bool = False) -> None:
        """Set the scales of the profile and reset every statistic.

        Parameters
        ----------
        scales:
            Either a count ``n`` (scales ``1..n``; an integral float such as
            ``3.0`` is accepted) or any finite iterable of strictly positive
            scale values.
        store_values:
            If True, statistics keep their raw samples so that the median is
            available. Call :meth:`stop_stats_saving` once all values are in.
        """
        if isinstance(scales, (int, float, np.integer, np.floating)) and not isinstance(scales, bool):
            # 3 and 3.0 both mean scales 1..3
            if not float(scales).is_integer():
                raise InvalidScaleCountError(f"number of scales must be an integer, got {scales!r}")
            n = int(scales)
            if n <= 0:
                raise InvalidScaleCountError(f"number of scales must be > 0, got {n}")
            arr = np.arange(1, n + 1, dtype=float)
        else:
            try:
                arr = np.asarray(list(scales), dtype=float).reshape(-1)
            except (TypeError, ValueError) as exc:
                raise InvalidScaleCountError(
                    f"scales must be a count or an iterable of numbers, got {scales!r}"
                ) from exc
            if arr.size == 0:
                raise InvalidScaleCountError("scale sequence is empty")
            bad = ~(np.isfinite(arr) & (arr > 0))
            if np.any(bad):
                raise InvalidScaleCountError(
                    f"scales must be finite and > 0; offending indices: {np.where(bad)[0][:20].tolist()}"
                )

        self._scales = arr
        self._store_values = bool(store_values)
        self._stats = [Statistic(store_samples=self._store_values) for _ in range(arr.size)]
        logger.debug("init: %d scales in [%g, %g], store_values=%s", arr.size, arr[0], arr[-1], self._store_values)

    def _check_index(self, idx_scale: int) -> int:
        i = int(idx_scale)
        if not (0 <= i < len(self._stats)):
            raise IndexOutOfRangeError(f"scale index {idx_scale} outside [0, {len(self._stats)})")
        return i

    def add_value(self, idx_scale: int, value: float) -> None:
        """Add one sample at the scale of index ``idx_scale``."""
        self._stats[self._check_index(idx_scale)].add_value(value)

    def add_statistic(self, idx_scale: int, stat: Statistic) -> None:
        """Merge ``stat`` into the statistic of index ``idx_scale``."""
        self._stats[self._check_index(idx_scale)].merge(stat)

    def stop_stats_saving(self) -> None:
        """Cache the median of every statistic, then stop storing samples.

        Example::

            sp = ScaleProfile(ProfileDefinition.MEDIAN)
            sp.init(5, store_values=True)
            sp.add_value(0, 10.5)
            sp.add_value(0, 9.2)
            ...
            sp.stop_stats_saving()   # medians stay available, samples are freed
        """
        if not self._store_values:
            return
        for stat in self._stats:
            stat.terminate()
        self._store_values = False

    def is_valid(self) -> bool:
        return len(self._scales) > 0 and len(self._scales) == len(self._stats)

    def _require_valid(self) -> None:
        if not self.is_valid():
            raise InvalidStateError("ScaleProfile is not initialized; call init() first")

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def scales(self) -> np.ndarray:
        """Read-only view of the scale values."""
        v = self._scales.view()
        v.flags.writeable = False
        return v

    @property
    def stats(self) -> Tuple[Statistic, ...]:
        """The per-scale statistics (live objects, in scale order)."""
        return tuple(self._stats)

    @property
    def profile_def(self) -> ProfileDefinition:
        return self._profile_def

    @property
    def store_values(self) -> bool:
        return self._store_values

    def __len__(self) -> int:
        return len(self._scales)

    # ------------------------------------------------------------------
    # Profile services
    # ------------------------------------------------------------------

    def set_profile_def(self, profile_def: Union[ProfileDefinition, str]) -> None:
        """Select the reduction (MEAN, MAX, MIN, MEDIAN) used by :meth:`get_profile`."""
        self._profile_def = ProfileDefinition.parse(profile_def)

    def get_profile(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(x, y)`` with ``x = log(scale)`` and ``y = log(reduced statistic)``.

        Raises
        ------
        InvalidStateError
            Profile not initialized.
        EmptyAccumulatorError
            A scale received no sample.
        NonPositiveReductionError
            A reduced value is <= 0.
        MedianUnavailableError
            MEDIAN requested without retained or cached medians.
        """
        self._require_valid()
        n = len(self._scales)
        y = np.empty(n, dtype=float)
        for i, stat in enumerate(self._stats):
            v = reduce_statistic(stat, self._profile_def)
            if not v > 0:
                raise NonPositiveReductionError(
                    f"{self._profile_def.value} at scale {self._scales[i]:g} (index {i}) is {v!r}; log undefined"
                )
            y[i] = math.log(v)
        x = np.log(self._scales)
        return x, y

    def meaningful_scales(
        self,
        min_width: int = 1,
        max_slope: float = -0.2,
        min_slope: float = -1e10,
    ) -> List[Interval]:
        """Intervals of scales of width >= ``min_width`` with slopes in ``[min_slope, max_slope]``.

        Returns a list of inclusive ``(start, end)`` point indices, ascending.
        An empty list means no meaningful scale was found.
        """
        x, y = self.get_profile()
        return find_meaningful_scales(x, y, min_width, max_slope, min_slope)

    def get_slope_from_meaningful_scales(
        self,
        max_slope: float = -0.2,
        min_slope: float = -1e10,
        min_size: int = 2,
    ) -> Tuple[bool, float]:
        """Least-squares slope of the first meaningful interval.

        Returns ``(True, slope)`` when an interval of width >= ``min_size``
        exists. Otherwise returns ``(False, slope)`` where the slope is
        fitted over the whole profile.
        """
        x, y = self.get_profile()
        intervals = find_meaningful_scales(x, y, min_size, max_slope, min_slope)
        if intervals:
            start, end = intervals[0]
            return True, least_squares_slope(x, y, start, end)
        slope = least_squares_slope(x, y)
        logger.debug("no meaningful scale (min_size=%d); global slope=%g", min_size, slope)
        return False, slope

    def noise_level(
        self,
        min_width: int = 1,
        max_slope: float = -0.2,
        min_slope: float = -1e10,
    ) -> float:
        """First scale of the first meaningful interval, or 0 if there is none."""
        intervals = self.meaningful_scales(min_width, max_slope, min_slope)
        if not intervals:
            return 0.0
        return float(self._scales[intervals[0][0]])

    def lower_bounded_noise_level(
        self,
        min_width: int = 1,
        max_slope: float = -0.2,
        min_slope: float = -1e10,
        lower_bound_at_scale_1: float = 1.0,
        lower_bound_slope: float = -2.0,
    ) -> float:
        """Noise level restricted to points above ``lower_bound_at_scale_1 * scale**lower_bound_slope``.

        Flat stretches where the profile has decayed below that floor are not
        considered meaningful. Returns 0 if no interval survives.
        """
        x, y = self.get_profile()
        above = admissible_points(x, y, lower_bound_at_scale_1, lower_bound_slope)
        intervals = find_meaningful_scales(x, y, min_width, max_slope, min_slope, point_mask=above)
        if not intervals:
            return 0.0
        return float(self._scales[intervals[0][0]])

    # ------------------------------------------------------------------
    # Copy / comparison / display
    # ------------------------------------------------------------------

    def copy(self) -> "ScaleProfile":
        """Deep copy: scales and every statistic are duplicated."""
        out = ScaleProfile(self._profile_def)
        out._scales = self._scales.copy()
        out._stats = [s.copy() for s in self._stats]
        out._store_values = self._store_values
        return out

    __copy__ = copy

    def __deepcopy__(self, memo: Dict[int, Any]) -> "ScaleProfile":
        return self.copy()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScaleProfile):
            return NotImplemented
        return (
            self._profile_def is other._profile_def
            and self._store_values == other._store_values
            and np.array_equal(self._scales, other._scales)
            and self._stats == other._stats
        )

    __hash__ = None  # type: ignore[assignment]

    def self_display(self) -> str:
        """Human-readable dump: one line per scale."""
        head = (
            f"[ScaleProfile] n_scales={len(self._scales)} def={self._profile_def.name} "
            f"store_values={self._store_values}"
        )
        if not self.is_valid():
            return head + " (invalid)"
        lines = [head]
        for s, stat in zip(self._scales, self._stats):
            lines.append(f"  scale={s:g}: {stat!r}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.self_display()

    def __repr__(self) -> str:
        return (
            f"ScaleProfile(n_scales={len(self._scales)}, profile_def={self._profile_def.name}, "
            f"store_values={self._store_values})"
        )

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly snapshot of scales and statistics."""
        return {
            "profile_def": self._profile_def.value,
            "store_values": self._store_values,
            "scales": self._scales.tolist(),
            "stats": [s.to_dict() for s in self._stats],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ScaleProfile":
        """Rebuild a profile from :meth:`to_dict` output."""
        out = cls(d.get("profile_def", ProfileDefinition.MEAN))
        scales = list(d.get("scales", []))
        stats = list(d.get("stats", []))
        if len(scales) != len(stats):
            raise ValueError(f"scales ({len(scales)}) and stats ({len(stats)}) lengths differ")
        if scales:
            out.init(scales)
            out._stats = [Statistic.from_dict(s) for s in stats]
            out._store_values = bool(d.get("store_values", False))
        return out
