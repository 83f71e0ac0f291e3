#!/usr/bin/env python3
"""
Demo: Two-Body Orbit

Two masses orbiting their common centre of mass:
1. Set up a bound pair with opposite momenta
2. Advance it with the sequential reference
3. Track momentum and energy, plot both orbits and the energy curves

The centre-of-mass velocity must not move; energy drifts slowly because
the integrator is first order.
"""

import numpy as np
import matplotlib.pyplot as plt
from pathlib import Path

from mpnbody.analysis import center_of_mass_velocity, total_energy
from mpnbody.core import AuthoritativeTable, Body, SimulationConfig
from mpnbody.reference import run_sequential
from mpnbody.viz import plot_energy, plot_trajectories, save_figure


def circular_pair(m1: float, m2: float, separation: float, G: float) -> AuthoritativeTable:
    """Two bodies on circular orbits around their barycentre (at the origin)."""
    total = m1 + m2
    r1 = separation * m2 / total
    r2 = separation * m1 / total
    # Relative speed for a circular orbit, split by mass ratio
    v_rel = np.sqrt(G * total / separation)
    v1 = v_rel * m2 / total
    v2 = v_rel * m1 / total
    return AuthoritativeTable.from_bodies([
        Body(mass=m1, position=(-r1, 0.0, 0.0), velocity=(0.0, -v1, 0.0)),
        Body(mass=m2, position=(r2, 0.0, 0.0), velocity=(0.0, v2, 0.0)),
    ])


def main():
    print("=" * 60)
    print("  TWO-BODY ORBIT")
    print("=" * 60)

    G = 1.0
    m1, m2 = 1000.0, 300.0
    separation = 100.0
    config = SimulationConfig(
        n_bodies=2,
        n_iterations=4000,
        timestep=0.05,
        gravitational_constant=G,
    )
    start = circular_pair(m1, m2, separation, G)

    print(f"\n1. Setup:")
    print(f"   Masses: {m1:.0f} and {m2:.0f}, separation {separation:.0f}")
    print(f"   Steps: {config.n_iterations} x dt={config.timestep}")

    # Sequential reference, keeping a table every `stride` steps
    print("\n2. Sequential reference...")
    stride = 50
    tables = [start]
    history = [start.positions]
    for _ in range(config.n_iterations // stride):
        table, positions = run_sequential(tables[-1], config, n_iterations=stride)
        tables.append(table)
        history.extend(positions[1:])
    final = tables[-1]

    # Diagnostics
    print("\n3. Conserved quantities:")
    v_cm_start = center_of_mass_velocity(start)
    v_cm_end = center_of_mass_velocity(final)
    e_start = total_energy(start, G)
    e_end = total_energy(final, G)
    print(f"   CM velocity drift: {np.linalg.norm(v_cm_end - v_cm_start):.3e}")
    print(f"   Relative energy drift: {(e_end - e_start) / abs(e_start):.3e}")

    # Plot
    print("\n4. Creating visualization...")
    fig, ax = plot_trajectories(history, plane="xy", title="Two-Body Orbit (xy plane)")
    output_dir = Path("output/demo_two_body")
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / "two_body.png"
    save_figure(fig, output_path)
    plt.close(fig)
    print(f"   Saved: {output_path}")

    fig, ax = plot_energy(tables, G, title=f"Energy drift (every {stride} steps)", relative=True)
    output_path = output_dir / "energy.png"
    save_figure(fig, output_path)
    plt.close(fig)
    print(f"   Saved: {output_path}")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
