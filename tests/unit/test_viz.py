"""Smoke tests for trajectory and energy plots."""

import matplotlib.pyplot as plt
import numpy as np
import pytest

from mpnbody.analysis import kinetic_energy, total_energy
from mpnbody.core import AuthoritativeTable, Body, SimulationConfig
from mpnbody.reference import run_sequential
from mpnbody.viz import plot_energy, plot_projections, plot_trajectories, save_figure


@pytest.fixture
def history(rng):
    start = rng.uniform(0, 10, (4, 3))
    return [start + 0.1 * k for k in range(6)]


def test_plot_trajectories(history):
    fig, ax = plot_trajectories(history, plane="xz")
    assert ax.get_xlabel() == "x"
    assert ax.get_ylabel() == "z"
    assert len(ax.lines) == 4
    plt.close(fig)


def test_plot_subset(history):
    fig, ax = plot_trajectories(history, bodies=[1, 3], show_start=False, show_end=False)
    assert len(ax.lines) == 2
    plt.close(fig)


def test_bad_plane(history):
    with pytest.raises(ValueError):
        plot_trajectories(history, plane="xw")


def test_empty_history():
    with pytest.raises(ValueError):
        plot_trajectories([])


def test_projections_saved(history, tmp_path):
    fig = plot_projections(history)
    path = tmp_path / "trajectories.png"
    save_figure(fig, path)
    assert path.exists()
    plt.close(fig)


@pytest.fixture
def energy_tables():
    start = AuthoritativeTable.from_bodies([
        Body(mass=1000.0, position=(0.0, 0.0, 0.0), velocity=(0.0, -1.0, 0.0)),
        Body(mass=1000.0, position=(100.0, 0.0, 0.0), velocity=(0.0, 1.0, 0.0)),
    ])
    config = SimulationConfig(n_bodies=2, n_iterations=1, timestep=0.1)
    tables = [start]
    for _ in range(5):
        table, _ = run_sequential(tables[-1], config)
        tables.append(table)
    return tables


def test_plot_energy_curves(energy_tables):
    fig, ax = plot_energy(energy_tables)
    assert [line.get_label() for line in ax.lines] == ["kinetic", "potential", "total"]
    kinetic, _, total = ax.lines
    assert np.array_equal(kinetic.get_xdata(), np.arange(6))
    assert kinetic.get_ydata()[0] == pytest.approx(kinetic_energy(energy_tables[0]))
    assert total.get_ydata()[-1] == pytest.approx(total_energy(energy_tables[-1]))
    plt.close(fig)


def test_plot_energy_relative(energy_tables):
    fig, ax = plot_energy(energy_tables, relative=True)
    for line in ax.lines:
        assert line.get_ydata()[0] == 0.0
    assert ax.get_ylabel() == "relative drift"
    plt.close(fig)


def test_plot_energy_empty():
    with pytest.raises(ValueError):
        plot_energy([])
