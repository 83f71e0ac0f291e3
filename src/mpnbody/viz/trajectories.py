"""
Trajectory visualization for simulated bodies.

Plots body paths from a recorded position history (one [N, 3] array per
state, as kept by the leader with record_history=True or returned by the
sequential reference), and energy drift over a sequence of tables.
"""

from __future__ import annotations
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.figure import Figure
from matplotlib.axes import Axes

from mpnbody.analysis.diagnostics import kinetic_energy, potential_energy, total_energy

if TYPE_CHECKING:
    from mpnbody.core.bodies import BodyTable

AXIS_INDEX = {"x": 0, "y": 1, "z": 2}


def history_array(history: Sequence[np.ndarray]) -> np.ndarray:
    """Stack a position history into shape [n_states, N, 3]."""
    if len(history) == 0:
        raise ValueError("history is empty")
    return np.stack([np.asarray(h, dtype=np.float64) for h in history])


def plot_trajectories(
    history: Sequence[np.ndarray],
    plane: str = "xy",
    bodies: Sequence[int] | None = None,
    title: str = "Body Trajectories",
    ax: Axes | None = None,
    figsize: tuple[float, float] = (8, 8),
    show_start: bool = True,
    show_end: bool = True,
) -> tuple[Figure, Axes]:
    """
    Plot body paths projected onto one coordinate plane.

    Args:
        history: Positions per state, each [N, 3]
        plane: Two axis letters, e.g. "xy", "xz", "yz"
        bodies: Indices to draw (default: all)
        title: Plot title
        ax: Existing axes (creates new if None)
        show_start: Mark starting positions
        show_end: Mark final positions

    Returns:
        (fig, ax) tuple
    """
    if len(plane) != 2 or any(c not in AXIS_INDEX for c in plane):
        raise ValueError(f"plane must be two of 'x', 'y', 'z', got {plane!r}")
    h_axis, v_axis = AXIS_INDEX[plane[0]], AXIS_INDEX[plane[1]]

    paths = history_array(history)
    if bodies is None:
        bodies = range(paths.shape[1])

    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    cmap_lines = plt.get_cmap("tab10")
    for n, index in enumerate(bodies):
        color = cmap_lines(n % 10)
        xs, ys = paths[:, index, h_axis], paths[:, index, v_axis]
        ax.plot(xs, ys, color=color, linewidth=1.0, zorder=2)

        if show_start:
            ax.scatter(
                [xs[0]], [ys[0]],
                color=color, s=30, marker="o", zorder=3,
                edgecolors="white", linewidths=0.8
            )
        if show_end:
            ax.scatter([xs[-1]], [ys[-1]], color=color, s=30, marker="x", zorder=3)

    ax.set_title(title)
    ax.set_xlabel(plane[0])
    ax.set_ylabel(plane[1])
    ax.set_aspect("equal", adjustable="datalim")
    ax.grid(True, alpha=0.3)

    return fig, ax


def plot_projections(
    history: Sequence[np.ndarray],
    bodies: Sequence[int] | None = None,
    title: str = "Body Trajectories",
    figsize: tuple[float, float] = (15, 5),
) -> Figure:
    """Three side-by-side projections: xy, xz, yz."""
    fig, axes = plt.subplots(1, 3, figsize=figsize)
    for ax, plane in zip(axes, ("xy", "xz", "yz")):
        plot_trajectories(
            history, plane=plane, bodies=bodies,
            title=f"{plane} plane", ax=ax,
        )
    fig.suptitle(title)
    fig.tight_layout()
    return fig


def plot_energy(
    tables: Sequence["BodyTable"],
    gravitational_constant: float = 1.0,
    title: str = "Energy",
    ax: Axes | None = None,
    figsize: tuple[float, float] = (10, 5),
    relative: bool = False,
) -> tuple[Figure, Axes]:
    """
    Plot kinetic, potential and total energy against the state index.

    Args:
        tables: One table per recorded state, in step order
        gravitational_constant: G used for the potential term
        title: Plot title
        ax: Existing axes (creates new if None)
        relative: Plot (E - E0) / |E0| for each curve instead of raw values

    Returns:
        (fig, ax) tuple
    """
    if len(tables) == 0:
        raise ValueError("no tables to plot")

    curves = {
        "kinetic": np.array([kinetic_energy(t) for t in tables]),
        "potential": np.array([potential_energy(t, gravitational_constant) for t in tables]),
        "total": np.array([total_energy(t, gravitational_constant) for t in tables]),
    }
    if relative:
        with np.errstate(divide="ignore", invalid="ignore"):
            curves = {name: (e - e[0]) / abs(e[0]) for name, e in curves.items()}

    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    steps = np.arange(len(tables))
    styles = {"kinetic": "--", "potential": ":", "total": "-"}
    for name, values in curves.items():
        ax.plot(steps, values, styles[name], label=name, linewidth=1.5)

    ax.set_title(title)
    ax.set_xlabel("state")
    ax.set_ylabel("relative drift" if relative else "energy")
    ax.legend()
    ax.grid(True, alpha=0.3)

    return fig, ax


def save_figure(fig: Figure, path: str | Path, dpi: int = 150, **kwargs) -> None:
    """Save figure to file."""
    fig.savefig(path, dpi=dpi, bbox_inches="tight", **kwargs)
