import numpy as np
import pytest

from scale_profile_analyzer.analysis.regression import fit_line, least_squares_slope
from scale_profile_analyzer.errors import InsufficientPointsError


class TestFitLine:
    def test_exact_line(self):
        x = np.array([0.0, 1.0, 2.0, 3.0])
        y = 2.5 * x - 1.0
        fit = fit_line(x, y)
        assert fit.slope == pytest.approx(2.5)
        assert fit.intercept == pytest.approx(-1.0)
        assert fit.n_points == 4

    def test_matches_polyfit_on_noisy_data(self):
        rng = np.random.default_rng(3)
        x = np.log(np.arange(1, 21, dtype=float))
        y = -0.7 * x + 0.2 + rng.normal(0, 0.05, x.size)
        slope, intercept = np.polyfit(x, y, 1)
        fit = fit_line(x, y)
        assert fit.slope == pytest.approx(slope)
        assert fit.intercept == pytest.approx(intercept)

    def test_sub_range_is_inclusive(self):
        x = np.arange(6, dtype=float)
        y = np.array([0.0, 1.0, 2.0, 10.0, 10.0, 10.0])
        assert least_squares_slope(x, y, 0, 2) == pytest.approx(1.0)
        assert least_squares_slope(x, y, 3, 5) == pytest.approx(0.0)
        assert fit_line(x, y, 1, 3).n_points == 3

    def test_insufficient_points(self):
        with pytest.raises(InsufficientPointsError):
            fit_line(np.array([1.0]), np.array([2.0]))
        with pytest.raises(InsufficientPointsError):
            fit_line(np.array([1.0, 1.0, 1.0]), np.array([0.0, 1.0, 2.0]))
        with pytest.raises(InsufficientPointsError):
            fit_line(np.array([]), np.array([]))

    def test_bad_arguments(self):
        with pytest.raises(ValueError):
            fit_line(np.arange(3.0), np.arange(4.0))
        with pytest.raises(ValueError):
            fit_line(np.arange(3.0), np.arange(3.0), 2, 5)
