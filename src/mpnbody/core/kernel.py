"""
Kernels advance one body by one time step.

The kernel reads a snapshot of the whole table and returns a NEW row for
the body it was asked about. It never writes the snapshot: the new rows
of a step are committed by the leader only after every index has been
computed and reported.

Integration is semi-implicit Euler:
    v_i += Σ_j (F_ij / m_i) · Δt      (all j != i, OLD positions)
    x_i += v_i(new) · Δt

with F_ij = G·m_i·m_j / r² along the unit vector from body i to body j.

DEGENERATE INPUT: two coincident bodies give r = 0. This is an inherent
limit of the point-mass model and is not trapped; the division propagates
as inf/nan into that body's row. A positive min_distance clamps r from
below, which leaves every pair farther apart than the floor untouched.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Iterator, Protocol

import numpy as np

from mpnbody.core.bodies import BODY_FIELDS, MASS, POSITION, VELOCITY


class Kernel(Protocol):
    """Protocol for per-body update kernels."""

    def advance(self, snapshot: np.ndarray, index: int) -> np.ndarray:
        """
        Compute the state of body `index` after one step.

        Args:
            snapshot: [N, 7] table as it was at the start of the step
            index: Body to advance

        Returns:
            New [7] row for that body
        """
        ...


@dataclass(frozen=True)
class GravityKernel:
    """All-pairs Newtonian gravity with semi-implicit Euler integration."""

    gravitational_constant: float = 1.0
    timestep: float = 0.005
    min_distance: float = 0.0

    def advance(self, snapshot: np.ndarray, index: int) -> np.ndarray:
        n = snapshot.shape[0]
        if not 0 <= index < n:
            raise IndexError(f"body index {index} out of range [0, {n})")

        body = snapshot[index]
        new_row = np.array(body, dtype=np.float64, copy=True)
        dt = self.timestep

        # Every other body; self-interaction is skipped entirely
        others = np.arange(n) != index
        if np.any(others):
            mass_i = body[MASS]
            masses_j = snapshot[others, MASS]

            # Vectors from body i toward each body j
            delta = snapshot[others, POSITION] - body[POSITION]
            r = np.sqrt(np.einsum("ij,ij->i", delta, delta))
            if self.min_distance > 0:
                r = np.maximum(r, self.min_distance)

            with np.errstate(divide="ignore", invalid="ignore"):
                force = self.gravitational_constant * mass_i * masses_j / r**2
                direction = delta / r[:, None]
                dv = ((force / mass_i) * dt)[:, None] * direction

            new_row[VELOCITY] += dv.sum(axis=0)

        new_row[POSITION] += new_row[VELOCITY] * dt
        return new_row

    def advance_all(
        self, snapshot: np.ndarray, indices: Iterable[int]
    ) -> Iterator[tuple[int, np.ndarray]]:
        """Advance several bodies against the same snapshot, in order."""
        for index in indices:
            yield index, self.advance(snapshot, index)

    def step(self, snapshot: np.ndarray) -> np.ndarray:
        """Advance every body of a table; returns a new [N, 7] array."""
        new = np.empty((snapshot.shape[0], BODY_FIELDS), dtype=np.float64)
        for index, row in self.advance_all(snapshot, range(snapshot.shape[0])):
            new[index] = row
        return new


def create_default_kernel(timestep: float = 0.005) -> GravityKernel:
    """
    Factory for the default kernel (G = 1, no distance floor).

    Args:
        timestep: Δt per step
    """
    return GravityKernel(gravitational_constant=1.0, timestep=timestep)
