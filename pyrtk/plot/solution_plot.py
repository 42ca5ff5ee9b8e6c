# Copyright 2024 inuex35
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Plots of RTK solution series"""

import logging
from typing import Iterable, Optional, Union

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402

from ..gnss.geometry import ecef2enu  # noqa: E402
from ..io.solution_writer import SolutionRecord, solutions_to_dataframe  # noqa: E402

logger = logging.getLogger(__name__)

_STATUS_COLORS = {
    'fixed': '#2ca02c',
    'float': '#ff7f0e',
}


def enu_series(df: pd.DataFrame, reference: Optional[np.ndarray] = None) -> np.ndarray:
    """
    East/north/up offsets (m) of the best solutions

    ``reference`` defaults to the mean of the fixed solutions, or of all
    solutions when none is fixed.
    """
    xyz = df[['x', 'y', 'z']].to_numpy(dtype=float)
    if reference is None:
        fixed = xyz[df['is_fixed'].to_numpy(dtype=bool)]
        reference = fixed.mean(axis=0) if len(fixed) else xyz.mean(axis=0)
    reference = np.asarray(reference, dtype=float)
    return np.array([ecef2enu(p, reference) for p in xyz]).reshape(-1, 3)


def plot_solution(solutions: Union[pd.DataFrame, Iterable[SolutionRecord]],
                  reference: Optional[np.ndarray] = None,
                  path: Optional[str] = None,
                  title: str = "RTK solution"):
    """
    Plot ENU offsets and the ratio test of a solution series

    Parameters
    ----------
    solutions : pd.DataFrame or iterable of SolutionRecord
        Output of ``solutions_to_dataframe`` or the records themselves
    reference : np.ndarray, optional
        ECEF origin of the ENU frame
    path : str, optional
        Save the figure there when given

    Returns
    -------
    matplotlib.figure.Figure
    """
    df = solutions if isinstance(solutions, pd.DataFrame) else solutions_to_dataframe(solutions)
    if df.empty:
        raise ValueError("No solutions to plot")

    enu = enu_series(df, reference)
    time = pd.to_datetime(df['time'])
    colors = [_STATUS_COLORS.get(s, '#7f7f7f') for s in df['status']]

    fig, axes = plt.subplots(4, 1, figsize=(10, 10), sharex=True)
    for i, label in enumerate(('East [m]', 'North [m]', 'Up [m]')):
        axes[i].scatter(time, enu[:, i], c=colors, s=4)
        axes[i].set_ylabel(label)
        axes[i].grid(True, alpha=0.3)

    ratio = np.array(df['ratio'].replace([np.inf], np.nan), dtype=float)
    ratio[ratio <= 0.0] = np.nan
    axes[3].plot(time, ratio, color='#1f77b4', lw=0.8)
    axes[3].set_yscale('log')
    axes[3].set_ylabel('Ratio')
    axes[3].grid(True, alpha=0.3)
    axes[0].set_title(f"{title} ({int(df['is_fixed'].sum())}/{len(df)} fixed)")
    fig.tight_layout()

    if path is not None:
        fig.savefig(path, dpi=150)
        logger.info(f"Solution plot saved to {path}")
    return fig
