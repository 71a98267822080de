"""
Tests for sweep plotting (Agg backend, see conftest).
"""

import matplotlib.pyplot as plt
import numpy as np

from tube_fem.plotting import YLABELS, plot_sweep
from tube_fem.simulation import SweepResult


def make_result(failures=None):
    freqs = np.array([100.0, 200.0, 300.0, 400.0])
    values = np.array([70.0, 72.0, 90.0, 71.0])
    failures = failures or {}
    solved = np.array([f not in failures for f in freqs])
    values[~solved] = np.nan
    return SweepResult(frequencies=freqs, values=values, solved=solved,
                       reduction="level", failures=failures)


class TestPlotSweep:
    """Tests for plot_sweep."""

    def test_curve_and_reference(self):
        result = make_result()
        ax = plot_sweep(result, reference=result.values - 0.1, title="tube")
        assert len(ax.lines) == 2
        np.testing.assert_array_equal(ax.lines[0].get_xdata(), result.frequencies)
        assert ax.get_ylabel() == YLABELS["level"]
        assert ax.get_title() == "tube"
        plt.close(ax.figure)

    def test_failed_frequency_marked(self):
        result = make_result({300.0: "singular"})
        ax = plot_sweep(result)
        # FEM curve plus one vertical marker
        assert len(ax.lines) == 2
        np.testing.assert_array_equal(ax.lines[1].get_xdata(), [300.0, 300.0])
        plt.close(ax.figure)

    def test_existing_axes(self):
        fig, ax = plt.subplots()
        assert plot_sweep(make_result(), ax=ax, label="quadratic") is ax
        assert ax.get_legend().get_texts()[0].get_text() == "quadratic"
        plt.close(fig)
