"""Tests for meaningful-scale detection, slope estimate and noise levels."""

from __future__ import annotations

import math

import numpy as np
import pytest

from scale_profile_analyzer.analysis.meaningful_scales import (
    acceptable_steps,
    admissible_points,
    contiguous_step_runs,
    find_meaningful_scales,
    step_slopes,
)
from scale_profile_analyzer.analysis.scale_profile import ScaleProfile
from scale_profile_analyzer.errors import InsufficientPointsError


def _curve_from_slopes(slopes, scales=None):
    """Log-log curve with the given per-step slopes, starting at y=0."""
    n = len(slopes) + 1
    scales = np.arange(1, n + 1, dtype=float) if scales is None else np.asarray(scales, dtype=float)
    x = np.log(scales)
    y = np.zeros(n)
    for i, s in enumerate(slopes):
        y[i + 1] = y[i] + s * (x[i + 1] - x[i])
    return x, y


def _profile_from_values(values, scales=None) -> ScaleProfile:
    sp = ScaleProfile()
    sp.init(len(values) if scales is None else scales)
    for i, v in enumerate(values):
        sp.add_value(i, float(v))
    return sp


def _profile_from_slopes(slopes) -> ScaleProfile:
    _, y = _curve_from_slopes(slopes)
    return _profile_from_values(np.exp(y))


# -----------------------------------------------------------------------
# Building blocks
# -----------------------------------------------------------------------


def test_step_slopes() -> None:
    x, y = _curve_from_slopes([-0.1, -2.0, 0.5])
    np.testing.assert_allclose(step_slopes(x, y), [-0.1, -2.0, 0.5])
    assert step_slopes(x[:1], y[:1]).size == 0


def test_duplicate_scale_step_is_never_acceptable() -> None:
    x = np.log([1.0, 2.0, 2.0, 3.0])
    y = np.array([0.0, -0.5, -0.6, -0.9])
    s = step_slopes(x, y)
    assert not np.isfinite(s[1])
    ok = acceptable_steps(s, max_slope=-0.2, min_slope=-1e10)
    assert ok.tolist() == [True, False, True]


def test_acceptable_steps_bounds_inclusive() -> None:
    x = np.array([0.0, 1.0, 2.0])
    y = np.array([0.0, -0.2, -0.4])
    ok = acceptable_steps(step_slopes(x, y), max_slope=-0.2, min_slope=-0.2)
    assert ok.tolist() == [True, True]


def test_contiguous_step_runs() -> None:
    mask = np.array([True, True, False, True])
    assert contiguous_step_runs(mask) == [(0, 2), (3, 4)]
    assert contiguous_step_runs(mask, min_width=2) == [(0, 2)]
    assert contiguous_step_runs(np.array([], dtype=bool)) == []
    assert contiguous_step_runs(np.array([False, True, True, True])) == [(1, 4)]


def test_admissible_points() -> None:
    x = np.log([1.0, 2.0, 4.0])
    y = np.log([1.0, 0.1, 0.1])  # floor 1/s^2: 1, 0.25, 0.0625
    assert admissible_points(x, y, 1.0, -2.0).tolist() == [True, False, True]
    with pytest.raises(ValueError):
        admissible_points(x, y, 0.0, -2.0)


# -----------------------------------------------------------------------
# meaningful_scales
# -----------------------------------------------------------------------


def test_meaningful_scales_reference_case() -> None:
    x, y = _curve_from_slopes([-0.1, -0.1, -5.0, -0.1])
    got = find_meaningful_scales(x, y, min_width=2, max_slope=-0.05, min_slope=-1.0)
    assert got == [(0, 2)]
    # Width-1 run survives with min_width=1.
    got1 = find_meaningful_scales(x, y, min_width=1, max_slope=-0.05, min_slope=-1.0)
    assert got1 == [(0, 2), (3, 4)]


def test_meaningful_scales_on_profile() -> None:
    sp = _profile_from_slopes([-0.1, -0.1, -5.0, -0.1])
    assert sp.meaningful_scales(2, -0.05, -1.0) == [(0, 2)]
    assert sp.noise_level(2, -0.05, -1.0) == 1.0


def test_meaningful_scales_rejects_increasing_steps() -> None:
    sp = _profile_from_values([1.0, 2.0, 3.0, 5.0])
    assert sp.meaningful_scales() == []
    assert sp.noise_level() == 0


def test_whole_curve_meaningful() -> None:
    sp = _profile_from_values([10.0 * s**-0.5 for s in range(1, 7)])
    assert sp.meaningful_scales() == [(0, 5)]


def test_single_scale_has_no_interval() -> None:
    sp = _profile_from_values([3.0])
    assert sp.meaningful_scales() == []
    assert sp.noise_level() == 0


def test_min_width_must_be_positive() -> None:
    x, y = _curve_from_slopes([-0.5, -0.5])
    with pytest.raises(ValueError):
        find_meaningful_scales(x, y, min_width=0)


def test_noise_level_returns_scale_not_index() -> None:
    # Steep first step, then flat decay: first interval starts at point 1.
    scales = [2.0, 4.0, 8.0, 16.0]
    _, y = _curve_from_slopes([-3.0, -0.5, -0.5], scales=scales)
    sp = _profile_from_values(np.exp(y), scales=scales)
    assert sp.meaningful_scales(1, -0.2, -1.0) == [(1, 3)]
    assert sp.noise_level(1, -0.2, -1.0) == 4.0


# -----------------------------------------------------------------------
# lower_bounded_noise_level
# -----------------------------------------------------------------------


def test_lower_bound_rejects_decayed_tail() -> None:
    # Steep drop at scale 2, then a flat-looking decay far below 1/s^2.
    values = [1.0] + [1e-3 * (s / 2.0) ** -0.5 for s in range(2, 9)]
    sp = _profile_from_values(values)

    assert sp.meaningful_scales(1, -0.2, -3.0) == [(1, 7)]
    assert sp.noise_level(1, -0.2, -3.0) == 2.0
    assert sp.lower_bounded_noise_level(1, -0.2, -3.0, 1.0, -2.0) == 0


def test_lower_bound_moves_noise_level_past_floor_crossing() -> None:
    # Decay with slope -0.5 crosses above 1/s^2 between scales 5 and 6.
    values = [1.0] + [0.05 * (s / 2.0) ** -0.5 for s in range(2, 9)]
    sp = _profile_from_values(values)

    assert sp.noise_level(2, -0.2, -3.0) == 2.0
    assert sp.lower_bounded_noise_level(2, -0.2, -3.0, 1.0, -2.0) == 6.0
    assert sp.lower_bounded_noise_level(3, -0.2, -3.0, 1.0, -2.0) == 0


def test_lower_bound_matches_plain_when_floor_is_low() -> None:
    sp = _profile_from_values([10.0 * s**-0.5 for s in range(1, 7)])
    assert sp.lower_bounded_noise_level() == sp.noise_level() == 1.0


def test_lower_bound_invalid_floor() -> None:
    sp = _profile_from_values([10.0 * s**-0.5 for s in range(1, 7)])
    with pytest.raises(ValueError):
        sp.lower_bounded_noise_level(lower_bound_at_scale_1=-1.0)


# -----------------------------------------------------------------------
# get_slope_from_meaningful_scales
# -----------------------------------------------------------------------


def test_slope_from_first_interval() -> None:
    sp = _profile_from_values([10.0 * s**-0.5 for s in range(1, 7)])
    found, slope = sp.get_slope_from_meaningful_scales()
    assert found is True
    assert slope == pytest.approx(-0.5)


def test_slope_uses_first_interval_only() -> None:
    sp = _profile_from_slopes([-0.5, -0.5, 2.0, -0.8, -0.8])
    found, slope = sp.get_slope_from_meaningful_scales(max_slope=-0.2, min_slope=-1.0, min_size=2)
    assert found is True
    assert slope == pytest.approx(-0.5)


def test_slope_fallback_to_whole_curve() -> None:
    values = [1.0, 2.0, 3.0, 5.0]
    sp = _profile_from_values(values)
    found, slope = sp.get_slope_from_meaningful_scales()
    assert found is False
    x = np.log(np.arange(1, 5, dtype=float))
    expected = np.polyfit(x, np.log(values), 1)[0]
    assert slope == pytest.approx(expected)


def test_slope_fallback_when_interval_too_narrow() -> None:
    sp = _profile_from_slopes([-0.5, 1.0, 1.0])
    found, _ = sp.get_slope_from_meaningful_scales(min_size=2)
    assert found is False
    found1, slope1 = sp.get_slope_from_meaningful_scales(min_size=1)
    assert found1 is True
    assert slope1 == pytest.approx(-0.5)


def test_slope_insufficient_points() -> None:
    sp = _profile_from_values([3.0])
    with pytest.raises(InsufficientPointsError):
        sp.get_slope_from_meaningful_scales()

    sp = _profile_from_values([3.0, 2.0], scales=[2.0, 2.0])
    with pytest.raises(InsufficientPointsError):
        sp.get_slope_from_meaningful_scales()


def test_queries_do_not_change_profile() -> None:
    sp = _profile_from_slopes([-0.5, -0.5, 2.0])
    before = sp.copy()
    sp.meaningful_scales()
    sp.noise_level(2)
    sp.lower_bounded_noise_level(2)
    sp.get_slope_from_meaningful_scales()
    assert sp == before
    assert math.isclose(sp.get_profile()[1][0], 0.0, abs_tol=1e-12)
