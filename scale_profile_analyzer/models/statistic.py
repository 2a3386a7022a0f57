"""Sample accumulator used for each scale of a profile.

A :class:`Statistic` folds float samples into a running sum, a running sum
of squared deviations (Welford, merged with Chan's formula) and extrema.  It
has two explicit modes:

- ``store_samples=True``: raw samples are kept, so the median is available.
- ``store_samples=False``: raw samples are discarded; only count, sums and
  extrema are updated.

:meth:`Statistic.terminate` is the one-way transition from the first mode to
the second.  It computes the median from the retained samples, caches it,
then drops the samples.  The cached median is frozen: values added later do
not update it.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from scale_profile_analyzer.errors import EmptyAccumulatorError, MedianUnavailableError


class Statistic:
    """Mutable accumulator over a bag of float samples."""

    def __init__(self, store_samples: bool = False) -> None:
        self._store_samples = bool(store_samples)
        self._samples: List[float] = []
        self._count = 0
        self._sum = 0.0
        self._m2 = 0.0
        self._min = math.inf
        self._max = -math.inf
        self._median: Optional[float] = None

    # ------------------------------------------------------------------
    # Accumulation
    # ------------------------------------------------------------------

    @property
    def store_samples(self) -> bool:
        return self._store_samples

    @property
    def count(self) -> int:
        return self._count

    def __len__(self) -> int:
        return self._count

    def add_value(self, value: float) -> None:
        v = float(value)
        old_mean = self._sum / self._count if self._count else 0.0
        self._count += 1
        self._sum += v
        # Welford: sum of squared deviations from the running mean
        self._m2 += (v - old_mean) * (v - self._sum / self._count)
        if v < self._min:
            self._min = v
        if v > self._max:
            self._max = v
        if self._store_samples:
            self._samples.append(v)

    def add_values(self, values: Iterable[float]) -> None:
        for v in values:
            self.add_value(v)

    def merge(self, other: "Statistic") -> "Statistic":
        """Fold ``other`` into this statistic (bag union) and return ``self``.

        Retained samples of ``other`` are copied only if this statistic
        retains samples itself.  If ``other`` did not keep all of its samples,
        this statistic's samples no longer describe the whole bag and its
        median becomes unavailable (unless a cached one exists).
        """
        if other._count == 0:
            return self
        if self._count:
            delta = other._sum / other._count - self._sum / self._count
            n = self._count + other._count
            self._m2 += other._m2 + delta * delta * self._count * other._count / n
        else:
            self._m2 = other._m2
        self._count += other._count
        self._sum += other._sum
        self._min = min(self._min, other._min)
        self._max = max(self._max, other._max)
        if self._store_samples:
            self._samples.extend(other._samples)
        return self

    def __iadd__(self, other: "Statistic") -> "Statistic":
        return self.merge(other)

    def __add__(self, other: "Statistic") -> "Statistic":
        out = self.copy()
        out.merge(other)
        return out

    def terminate(self) -> None:
        """Cache the median, then stop retaining samples.

        Calling it on a statistic that no longer retains samples is a no-op.
        """
        if not self._store_samples:
            return
        if self._samples and len(self._samples) == self._count:
            self._median = float(np.median(self._samples))
        self._samples = []
        self._store_samples = False

    def clear(self) -> None:
        """Forget every sample; the retain mode is kept."""
        self._samples = []
        self._count = 0
        self._sum = 0.0
        self._m2 = 0.0
        self._min = math.inf
        self._max = -math.inf
        self._median = None

    def copy(self) -> "Statistic":
        out = Statistic(store_samples=self._store_samples)
        out._samples = list(self._samples)
        out._count = self._count
        out._sum = self._sum
        out._m2 = self._m2
        out._min = self._min
        out._max = self._max
        out._median = self._median
        return out

    __copy__ = copy

    def __deepcopy__(self, memo: Dict[int, Any]) -> "Statistic":
        return self.copy()

    # ------------------------------------------------------------------
    # Reductions
    # ------------------------------------------------------------------

    def _require_samples(self, what: str) -> None:
        if self._count == 0:
            raise EmptyAccumulatorError(f"{what} of an empty statistic is undefined")

    def mean(self) -> float:
        self._require_samples("mean")
        return self._sum / self._count

    def min(self) -> float:
        self._require_samples("min")
        return self._min

    def max(self) -> float:
        self._require_samples("max")
        return self._max

    def variance(self) -> float:
        """Population variance (divides by ``count``)."""
        self._require_samples("variance")
        return max(self._m2 / self._count, 0.0)

    def unbiased_variance(self) -> float:
        """Sample variance (divides by ``count - 1``); 0 for a single sample."""
        self._require_samples("variance")
        if self._count < 2:
            return 0.0
        return self.variance() * self._count / (self._count - 1)

    def has_median(self) -> bool:
        """True if :meth:`median` would succeed."""
        if self._count == 0:
            return False
        if self._store_samples and len(self._samples) == self._count:
            return True
        return self._median is not None

    def median(self) -> float:
        self._require_samples("median")
        if self._store_samples and len(self._samples) == self._count:
            return float(np.median(self._samples))
        if self._median is not None:
            return self._median
        raise MedianUnavailableError(
            "median requires retained samples (store_samples=True) or a median cached by terminate()"
        )

    def samples(self) -> List[float]:
        """Copy of the retained raw samples (empty when not retained)."""
        return list(self._samples)

    # ------------------------------------------------------------------
    # Comparison / display / snapshot
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Statistic):
            return NotImplemented
        return (
            self._store_samples == other._store_samples
            and self._count == other._count
            and self._sum == other._sum
            and self._m2 == other._m2
            and self._min == other._min
            and self._max == other._max
            and self._median == other._median
            and self._samples == other._samples
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self._count == 0:
            return f"Statistic(n=0, store_samples={self._store_samples})"
        return (
            f"Statistic(n={self._count}, mean={self.mean():.6g}, min={self._min:.6g}, "
            f"max={self._max:.6g}, store_samples={self._store_samples})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly dict of the full accumulator state."""
        return {
            "store_samples": self._store_samples,
            "count": self._count,
            "sum": self._sum,
            "m2": self._m2,
            "min": self._min if self._count else None,
            "max": self._max if self._count else None,
            "median": self._median,
            "samples": list(self._samples),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Statistic":
        out = cls(store_samples=bool(d.get("store_samples", False)))
        out._count = int(d.get("count", 0))
        out._sum = float(d.get("sum", 0.0))
        out._m2 = float(d.get("m2", 0.0))
        out._min = math.inf if d.get("min") is None else float(d["min"])
        out._max = -math.inf if d.get("max") is None else float(d["max"])
        med = d.get("median")
        out._median = None if med is None else float(med)
        out._samples = [float(v) for v in d.get("samples", [])]
        return out
