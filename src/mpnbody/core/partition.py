"""
Work partition: which process is responsible for which body indices.

Two rules exist, one per phase, and they deliberately differ:

- "init" (InitializationPartition): contiguous blocks. Balances the raw
  random-generation work. The leader does not generate a block of its own,
  so worker 1 takes a double block and the leader only fills the tail
  remainder.
- "step" (SteadyStatePartition): round-robin striding over workers. Spreads
  the per-step force computation evenly even when neighbouring indices
  would cost different amounts. The leader owns nothing here; it only
  routes and aggregates.

Both are pure functions of (rank, process/worker count, N). Every process
recomputes them instead of receiving them, which is what allows the leader
to validate a report's index without an extra coordination round.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Literal, Protocol

LEADER_RANK = 0

Phase = Literal["init", "step"]


class Partition(Protocol):
    """Protocol shared by both partition rules."""

    n_bodies: int

    def indices(self, rank: int) -> range:
        """Body indices owned by rank, in the order they are processed."""
        ...

    def owner_of(self, index: int) -> int:
        """Rank responsible for a body index."""
        ...

    @property
    def ranks(self) -> range:
        """Every rank this rule can assign work to."""
        ...

    def covering(self) -> dict[int, range]:
        """Map each rank to its owned indices (empty ranges included)."""
        ...


class _PartitionRule:
    """Behaviour shared by both rules, built on indices() and ranks."""

    def covering(self) -> dict[int, range]:
        return {rank: self.indices(rank) for rank in self.ranks}


@dataclass(frozen=True)
class InitializationPartition(_PartitionRule):
    """
    Contiguous blocks for the initialization phase.

    With P processes and block = N // P:
        worker 1:        [0, 2*block)
        worker r >= 2:   [r*block, (r+1)*block)
        leader:          [P*block, N)
    """

    process_count: int
    n_bodies: int

    def __post_init__(self):
        if self.process_count < 2:
            raise ValueError(
                f"initialization needs a leader and at least one worker, "
                f"got {self.process_count} process(es)"
            )
        if self.n_bodies < 0:
            raise ValueError(f"n_bodies must not be negative, got {self.n_bodies}")

    @property
    def block(self) -> int:
        return self.n_bodies // self.process_count

    @property
    def ranks(self) -> range:
        return range(self.process_count)

    def indices(self, rank: int) -> range:
        block = self.block
        if rank == LEADER_RANK:
            return range(self.process_count * block, self.n_bodies)
        if rank == 1:
            return range(0, 2 * block)
        if 1 < rank < self.process_count:
            return range(rank * block, (rank + 1) * block)
        raise ValueError(f"rank {rank} outside group of {self.process_count}")

    def owner_of(self, index: int) -> int:
        if not 0 <= index < self.n_bodies:
            raise IndexError(f"body index {index} out of range [0, {self.n_bodies})")
        block = self.block
        if index >= self.process_count * block:
            return LEADER_RANK
        return max(1, index // block)


@dataclass(frozen=True)
class SteadyStatePartition(_PartitionRule):
    """
    Round-robin striding for every simulation step.

    Worker k (rank k, 1-based among workers) owns
        k-1, k-1+W, k-1+2W, ...
    stopping at the first index past N-1.
    """

    worker_count: int
    n_bodies: int

    def __post_init__(self):
        if self.worker_count < 1:
            raise ValueError(f"need at least one worker, got {self.worker_count}")
        if self.n_bodies < 0:
            raise ValueError(f"n_bodies must not be negative, got {self.n_bodies}")

    @property
    def stride(self) -> int:
        return self.worker_count

    @property
    def ranks(self) -> range:
        return range(1, self.worker_count + 1)

    def indices(self, rank: int) -> range:
        if rank == LEADER_RANK:
            return range(0)
        if not 1 <= rank <= self.worker_count:
            raise ValueError(f"rank {rank} is not one of {self.worker_count} workers")
        return range(rank - 1, self.n_bodies, self.stride)

    def owner_of(self, index: int) -> int:
        if not 0 <= index < self.n_bodies:
            raise IndexError(f"body index {index} out of range [0, {self.n_bodies})")
        return index % self.stride + 1


def partition_for(phase: Phase, process_count: int, n_bodies: int) -> Partition:
    """
    Select the partition rule for a phase.

    Args:
        phase: "init" or "step"
        process_count: leader + workers
        n_bodies: table size

    Returns:
        The rule for that phase
    """
    if phase == "init":
        return InitializationPartition(process_count, n_bodies)
    if phase == "step":
        return SteadyStatePartition(process_count - 1, n_bodies)
    raise ValueError(f"unknown partition phase: {phase!r}")
