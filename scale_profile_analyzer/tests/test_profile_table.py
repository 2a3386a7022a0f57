"""Tests for profile_table and plot_profile."""

import math

import numpy as np
import pytest

from scale_profile_analyzer.analysis.profile_table import plot_profile, profile_table
from scale_profile_analyzer.analysis.scale_profile import ScaleProfile
from scale_profile_analyzer.errors import EmptyAccumulatorError, InvalidStateError


def _profile(store_values=False) -> ScaleProfile:
    sp = ScaleProfile()
    sp.init([1.0, 2.0, 4.0], store_values=store_values)
    sp.add_value(0, 4.0)
    sp.add_value(0, 6.0)
    sp.add_value(1, 3.0)
    return sp


class TestProfileTable:
    def test_columns_and_values(self):
        df = profile_table(_profile(store_values=True))
        assert list(df.columns) == [
            "scale", "n_samples", "mean", "min", "max", "median", "log_scale", "log_value",
        ]
        assert len(df) == 3
        assert df.loc[0, "n_samples"] == 2
        assert df.loc[0, "mean"] == pytest.approx(5.0)
        assert df.loc[0, "median"] == pytest.approx(5.0)
        assert df.loc[0, "log_value"] == pytest.approx(math.log(5.0))
        assert df.loc[2, "log_scale"] == pytest.approx(math.log(4.0))

    def test_degenerate_entries_are_nan(self):
        df = profile_table(_profile(store_values=False))
        # no retained samples -> no median
        assert np.isnan(df.loc[0, "median"])
        # empty scale
        assert df.loc[2, "n_samples"] == 0
        assert np.isnan(df.loc[2, "mean"])
        assert np.isnan(df.loc[2, "log_value"])

    def test_invalid_profile(self):
        with pytest.raises(InvalidStateError):
            profile_table(ScaleProfile())


class TestPlotProfile:
    def test_smoke(self):
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        sp = ScaleProfile()
        sp.init(6)
        for i in range(6):
            sp.add_value(i, 10.0 * (i + 1) ** -0.5)

        fig, ax = plt.subplots()
        shown = plot_profile(ax, sp, lower_bound=(1.0, -2.0))
        assert shown == [(0, 5)]
        # curve + one interval + noise-level marker + floor
        assert len(ax.lines) == 4
        plt.close(fig)

    def test_requires_complete_profile(self):
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        fig, ax = plt.subplots()
        with pytest.raises(EmptyAccumulatorError):
            plot_profile(ax, _profile())
        plt.close(fig)
