"""
Visualization utilities.

- Trajectory plots (single plane or all three projections)
- Energy curves over a run (drift check)
"""

from mpnbody.viz.trajectories import (
    plot_energy,
    plot_trajectories,
    plot_projections,
    save_figure,
)

__all__ = [
    "plot_energy",
    "plot_trajectories",
    "plot_projections",
    "save_figure",
]
