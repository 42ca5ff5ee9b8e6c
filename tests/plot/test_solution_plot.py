"""Tests for solution plots"""

import matplotlib.pyplot as plt
import numpy as np
import pytest

from pyrtk.core.time import CommonTime, TimeSystem
from pyrtk.gnss.geometry import enu_rotation, llh2ecef
from pyrtk.io.solution_writer import SolutionRecord, solutions_to_dataframe
from pyrtk.plot import enu_series, plot_solution

LLH = np.array([np.radians(35.71), np.radians(139.81), 45.0])
ORIGIN = llh2ecef(LLH)


def series(offsets_enu, fixed):
    t0 = CommonTime.from_gps_week_seconds(2138, 0.0, TimeSystem.GPS)
    records = []
    for k, (enu, is_fixed) in enumerate(zip(offsets_enu, fixed)):
        xyz = ORIGIN + enu_rotation(LLH).T @ np.asarray(enu, dtype=float)
        records.append(SolutionRecord(
            time=t0 + k, position=xyz, position_fixed=xyz, is_fixed=is_fixed,
            ratio=float('inf') if k == 0 else 12.0 + k,
            num_sats=8, status="fixed" if is_fixed else "float"))
    return records


def test_enu_relative_to_reference():
    df = solutions_to_dataframe(series([[1.0, 2.0, 3.0], [0.0, -1.0, 0.5]], [True, True]))
    enu = enu_series(df, reference=ORIGIN)
    np.testing.assert_allclose(enu, [[1.0, 2.0, 3.0], [0.0, -1.0, 0.5]], atol=1e-6)


def test_default_reference_is_fixed_mean():
    df = solutions_to_dataframe(series([[1.0, 0.0, 0.0], [-1.0, 0.0, 0.0], [50.0, 0.0, 0.0]],
                                       [True, True, False]))
    enu = enu_series(df)
    np.testing.assert_allclose(enu[:2, 0], [1.0, -1.0], atol=1e-6)


def test_default_reference_without_fixed():
    df = solutions_to_dataframe(series([[2.0, 0.0, 0.0], [-2.0, 0.0, 0.0]], [False, False]))
    np.testing.assert_allclose(enu_series(df)[:, 0], [2.0, -2.0], atol=1e-6)


def test_plot_saved(tmp_path):
    path = tmp_path / "solution.png"
    records = series([[0.01 * k, 0.0, 0.0] for k in range(5)], [False, True, True, True, True])
    fig = plot_solution(records, path=str(path))
    assert path.exists()
    assert len(fig.axes) == 4
    assert fig.axes[3].get_yscale() == 'log'
    assert "4/5 fixed" in fig.axes[0].get_title()
    plt.close(fig)


def test_plot_accepts_dataframe():
    df = solutions_to_dataframe(series([[0.0, 0.0, 0.0]] * 3, [True] * 3))
    fig = plot_solution(df, title="static")
    assert fig.axes[0].get_title().startswith("static")
    plt.close(fig)


def test_empty_series():
    with pytest.raises(ValueError):
        plot_solution([])
