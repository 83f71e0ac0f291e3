"""
Body store: the row-major table of per-body state.

Each body is one row of 7 float64 values:
    [mass, x, y, z, vx, vy, vz]

A body is identified ONLY by its row index 0..N-1. Indices never change
during a run (no insertion, no removal).

Two table types share one layout but not one role:
- AuthoritativeTable: the leader's copy, the only one that is ever written
- ReplicaTable: a worker's read-only copy, refreshed by each broadcast

Keeping them as separate types makes the single-writer rule structural:
a replica has no commit methods and its array refuses writes.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator

import numpy as np


BODY_FIELDS = 7

# Column layout
MASS = 0
POSITION = slice(1, 4)
VELOCITY = slice(4, 7)


@dataclass(frozen=True)
class Body:
    """A single point mass, detached from any table."""

    mass: float
    position: tuple[float, float, float]
    velocity: tuple[float, float, float]

    @classmethod
    def from_row(cls, row: np.ndarray) -> Body:
        row = np.asarray(row, dtype=np.float64)
        if row.shape != (BODY_FIELDS,):
            raise ValueError(f"body row must have shape ({BODY_FIELDS},), got {row.shape}")
        return cls(
            mass=float(row[MASS]),
            position=tuple(float(v) for v in row[POSITION]),
            velocity=tuple(float(v) for v in row[VELOCITY]),
        )

    def to_row(self) -> np.ndarray:
        row = np.empty(BODY_FIELDS, dtype=np.float64)
        row[MASS] = self.mass
        row[POSITION] = self.position
        row[VELOCITY] = self.velocity
        return row


def rows_from_bodies(bodies: list[Body]) -> np.ndarray:
    """Stack bodies into an (N, 7) array, index order = list order."""
    if not bodies:
        return np.empty((0, BODY_FIELDS), dtype=np.float64)
    return np.stack([b.to_row() for b in bodies])


class BodyTable:
    """
    Read-only view of N bodies.

    Base for both table roles. Accessors always return copies so callers
    cannot write through them.
    """

    def __init__(self, data: np.ndarray):
        data = np.asarray(data, dtype=np.float64)
        if data.ndim != 2 or data.shape[1] != BODY_FIELDS:
            raise ValueError(
                f"body table must have shape (N, {BODY_FIELDS}), got {data.shape}"
            )
        self._data = data

    @property
    def n_bodies(self) -> int:
        return self._data.shape[0]

    def __len__(self) -> int:
        return self.n_bodies

    def __iter__(self) -> Iterator[Body]:
        for i in range(self.n_bodies):
            yield self.body(i)

    def body(self, index: int) -> Body:
        return Body.from_row(self._data[index])

    def row(self, index: int) -> np.ndarray:
        return self._data[index].copy()

    @property
    def masses(self) -> np.ndarray:
        return self._data[:, MASS].copy()

    @property
    def positions(self) -> np.ndarray:
        """Positions, shape [N, 3]."""
        return self._data[:, POSITION].copy()

    @property
    def velocities(self) -> np.ndarray:
        """Velocities, shape [N, 3]."""
        return self._data[:, VELOCITY].copy()

    def as_array(self) -> np.ndarray:
        """Copy of the full [N, 7] table."""
        return self._data.copy()

    def view(self) -> np.ndarray:
        """
        Read-only array over the table, without copying.

        This is what the kernel reads from: it must never be written.
        """
        view = self._data.view()
        view.flags.writeable = False
        return view

    def identical_to(self, other: BodyTable) -> bool:
        """Bitwise equality of the two tables (NaNs with equal bits match)."""
        a, b = self._data, other._data
        return a.shape == b.shape and bool(
            np.array_equal(a.view(np.uint64), b.view(np.uint64))
        )


class AuthoritativeTable(BodyTable):
    """
    The leader's table. Exactly one exists per run.

    Writes happen only through commit/commit_rows, and only on the leader.
    """

    @classmethod
    def empty(cls, n_bodies: int) -> AuthoritativeTable:
        # NaN-filled so an uncommitted row is never mistaken for a body at rest
        return cls(np.full((n_bodies, BODY_FIELDS), np.nan, dtype=np.float64))

    @classmethod
    def from_bodies(cls, bodies: list[Body]) -> AuthoritativeTable:
        return cls(rows_from_bodies(bodies))

    def __init__(self, data: np.ndarray):
        # Always own the storage, never alias a caller's array
        super().__init__(np.array(data, dtype=np.float64, copy=True))

    def commit(self, index: int, row: np.ndarray) -> None:
        """Write one body's updated state."""
        if not 0 <= index < self.n_bodies:
            raise IndexError(f"body index {index} out of range [0, {self.n_bodies})")
        self._data[index] = row

    def commit_rows(self, start: int, rows: np.ndarray) -> None:
        """Write a contiguous block of rows starting at start."""
        rows = np.asarray(rows, dtype=np.float64).reshape(-1, BODY_FIELDS)
        stop = start + rows.shape[0]
        if start < 0 or stop > self.n_bodies:
            raise IndexError(
                f"rows [{start}, {stop}) out of range [0, {self.n_bodies})"
            )
        self._data[start:stop] = rows

    def replica(self) -> ReplicaTable:
        """Immutable snapshot of the current state."""
        return ReplicaTable(self._data)


class ReplicaTable(BodyTable):
    """A worker's read-only copy of the table."""

    def __init__(self, data: np.ndarray):
        data = np.array(data, dtype=np.float64, copy=True)
        data.flags.writeable = False
        super().__init__(data)
