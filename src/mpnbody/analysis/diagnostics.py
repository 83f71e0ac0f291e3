"""
Conserved-quantity diagnostics and table comparison.

The kernel uses the same old-position snapshot for every body in a step,
so pairwise forces cancel: total momentum (and hence the centre-of-mass
velocity) must stay constant up to floating-point rounding. Energy is
NOT conserved exactly by a first-order integrator; it is reported for
inspection only.

These read tables; they never feed back into the simulation.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from scipy.spatial.distance import pdist

if TYPE_CHECKING:
    from mpnbody.core.bodies import BodyTable


def total_momentum(table: "BodyTable") -> np.ndarray:
    """Σ m·v, shape [3]."""
    return (table.masses[:, None] * table.velocities).sum(axis=0)


def center_of_mass(table: "BodyTable") -> np.ndarray:
    """Mass-weighted mean position, shape [3]."""
    masses = table.masses
    return (masses[:, None] * table.positions).sum(axis=0) / masses.sum()


def center_of_mass_velocity(table: "BodyTable") -> np.ndarray:
    """Total momentum / total mass, shape [3]."""
    return total_momentum(table) / table.masses.sum()


def kinetic_energy(table: "BodyTable") -> float:
    """Σ ½·m·|v|²."""
    v = table.velocities
    return float(0.5 * np.sum(table.masses * np.einsum("ij,ij->i", v, v)))


def potential_energy(table: "BodyTable", gravitational_constant: float = 1.0) -> float:
    """
    -Σ_{i<j} G·m_i·m_j / r_ij.

    Coincident bodies give -inf, matching the kernel's unguarded model.
    """
    if table.n_bodies < 2:
        return 0.0
    masses = table.masses
    distances = pdist(table.positions)
    # pdist order: (0,1), (0,2), ..., (1,2), ... matches triu_indices(k=1)
    i, j = np.triu_indices(table.n_bodies, k=1)
    with np.errstate(divide="ignore"):
        return float(-gravitational_constant * np.sum(masses[i] * masses[j] / distances))


def total_energy(table: "BodyTable", gravitational_constant: float = 1.0) -> float:
    """Kinetic + potential."""
    return kinetic_energy(table) + potential_energy(table, gravitational_constant)


@dataclass
class TableComparison:
    """Result of comparing two tables of the same shape."""

    max_abs_error: float
    rmse: float
    identical: bool  # Bitwise equal


def compare_tables(a: "BodyTable", b: "BodyTable") -> TableComparison:
    """
    Compare two tables element-wise.

    Raises:
        ValueError: if the tables hold different numbers of bodies
    """
    if a.n_bodies != b.n_bodies:
        raise ValueError(f"cannot compare {a.n_bodies} bodies with {b.n_bodies}")
    diff = a.as_array() - b.as_array()
    if diff.size == 0:
        return TableComparison(max_abs_error=0.0, rmse=0.0, identical=True)
    return TableComparison(
        max_abs_error=float(np.max(np.abs(diff))),
        rmse=float(np.sqrt(np.mean(diff ** 2))),
        identical=a.identical_to(b),
    )
