"""
Synchronization protocol: the per-step leader/worker state machines.

Each iteration, in lockstep:

    1. Broadcast  leader → all   full authoritative table (barrier)
    2. Compute    each worker    advance its steady-state indices
    3. Report     worker → leader one BodyReport per body, sent as soon
                                 as that body is computed
    4. Collect    leader         exactly N reports, any order, committed
                                 at the index each report names
    5. Publish    leader         iteration report, then next broadcast

Ordering guarantees:
- a worker cannot compute step t before it holds the step t table
- the leader does not broadcast step t+1 until all N step t reports
  are committed

The leader never computes bodies itself; it only routes and aggregates.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, Protocol

import numpy as np

from mpnbody.core.bodies import AuthoritativeTable, ReplicaTable
from mpnbody.core.errors import CommunicationTimeout, ProtocolError, WorkerLostError
from mpnbody.core.initializer import initialize_leader, initialize_worker
from mpnbody.core.messages import TAG_REPORT, BodyReport, TableBroadcast
from mpnbody.core.partition import LEADER_RANK, SteadyStatePartition

if TYPE_CHECKING:
    from mpnbody.core.comm import Communicator
    from mpnbody.core.config import SimulationConfig

logger = logging.getLogger(__name__)


class Reporter(Protocol):
    """Receives the leader's published state."""

    def initial_state(self, table: AuthoritativeTable) -> None:
        ...

    def iteration(self, iteration: int, table: AuthoritativeTable) -> None:
        ...

    def finished(self, elapsed: float) -> None:
        ...


@dataclass
class RunResult:
    """What the leader hands back after the last iteration."""

    initial: ReplicaTable
    final: ReplicaTable
    n_iterations: int
    elapsed: float  # Seconds, initialization + all iterations
    history: list[np.ndarray] = field(default_factory=list)  # [N, 3] positions per state

    @property
    def n_bodies(self) -> int:
        return self.final.n_bodies


class Leader:
    """
    Rank 0: holds the authoritative table and drives every step.

    The rank is read-only for the life of the object.
    """

    def __init__(
        self,
        comm: "Communicator",
        config: "SimulationConfig",
        reporter: Reporter | None = None,
    ):
        if comm.rank != LEADER_RANK:
            raise ValueError(f"leader must run on rank {LEADER_RANK}, not {comm.rank}")
        self._comm = comm
        self._rank = comm.rank
        self.config = config
        self.reporter = reporter
        self.partition = SteadyStatePartition(comm.size - 1, config.n_bodies)
        self.table: AuthoritativeTable | None = None

    @property
    def rank(self) -> int:
        return self._rank

    def run(self) -> RunResult:
        """Initialize, run every iteration, and return the outcome."""
        cfg = self.config
        cfg.validate(self._comm.size)
        start = self._comm.wtime()
        logger.info(
            "leader: %d bodies, %d iterations, %d workers, dt=%g, G=%g",
            cfg.n_bodies, cfg.n_iterations, self.partition.worker_count,
            cfg.timestep, cfg.gravitational_constant,
        )

        self.table = initialize_leader(self._comm, cfg)
        initial = self.table.replica()
        history = [initial.positions] if cfg.record_history else []
        if self.reporter is not None:
            self.reporter.initial_state(self.table)

        for step in range(cfg.n_iterations):
            self._broadcast(step)
            self._collect(step)
            if cfg.record_history:
                history.append(self.table.positions)
            if self.reporter is not None:
                self.reporter.iteration(step + 1, self.table)

        elapsed = self._comm.wtime() - start
        if self.reporter is not None:
            self.reporter.finished(elapsed)
        logger.info("leader: simulation finished in %.6f s", elapsed)

        return RunResult(
            initial=initial,
            final=self.table.replica(),
            n_iterations=cfg.n_iterations,
            elapsed=elapsed,
            history=history,
        )

    def _broadcast(self, step: int):
        frame = TableBroadcast(step=step, table=self.table.view()).to_bytes()
        self._comm.bcast(frame, root=self._rank)
        logger.debug("leader: broadcast step %d", step)

    def _collect(self, step: int):
        """Receive and commit exactly N reports for this step."""
        n = self.config.n_bodies
        received = np.zeros(n, dtype=bool)
        for _ in range(n):
            try:
                frame, source = self._comm.recv(
                    tag=TAG_REPORT, timeout=self.config.collect_timeout
                )
            except CommunicationTimeout as exc:
                missing = np.flatnonzero(~received).tolist()
                ranks = [self.partition.owner_of(i) for i in missing]
                logger.error("leader: step %d stalled, %d reports missing", step, len(missing))
                raise WorkerLostError(missing, ranks, step=step) from exc

            report = BodyReport.from_bytes(frame)
            self._check_report(report, source, step, received)
            received[report.index] = True
            self.table.commit(report.index, report.row)

        logger.debug("leader: collected %d reports for step %d", n, step)

    def _check_report(self, report: BodyReport, source: int, step: int, received: np.ndarray):
        if report.step != step:
            raise ProtocolError(
                f"rank {source} reported step {report.step} during step {step}"
            )
        if not 0 <= report.index < self.config.n_bodies:
            raise ProtocolError(f"rank {source} reported out-of-range body {report.index}")
        owner = self.partition.owner_of(report.index)
        if owner != source:
            raise ProtocolError(
                f"rank {source} reported body {report.index}, which rank {owner} owns"
            )
        if received[report.index]:
            raise ProtocolError(f"body {report.index} reported twice in step {step}")


class Worker:
    """Ranks 1..W: advance owned bodies against each broadcast table."""

    def __init__(self, comm: "Communicator", config: "SimulationConfig"):
        if comm.rank == LEADER_RANK:
            raise ValueError("workers cannot run on the leader's rank")
        self._comm = comm
        self._rank = comm.rank
        self.config = config
        self.kernel = config.kernel()
        self.owned = SteadyStatePartition(comm.size - 1, config.n_bodies).indices(comm.rank)

    @property
    def rank(self) -> int:
        return self._rank

    def run(self) -> int:
        """
        Run every iteration.

        Returns:
            Number of body updates this worker reported
        """
        self.config.validate(self._comm.size)
        initialize_worker(self._comm, self.config)

        reported = 0
        for step in range(self.config.n_iterations):
            replica = self._receive_table(step)
            snapshot = replica.view()
            for index, row in self.kernel.advance_all(snapshot, self.owned):
                report = BodyReport(step=step, index=index, row=row)
                self._comm.send(report.to_bytes(), LEADER_RANK, TAG_REPORT)
                reported += 1
            logger.debug("rank %d: step %d done (%d bodies)", self._rank, step, len(self.owned))

        return reported

    def _receive_table(self, step: int) -> ReplicaTable:
        frame = self._comm.bcast(None, root=LEADER_RANK)
        broadcast = TableBroadcast.from_bytes(frame)
        if broadcast.step != step:
            raise ProtocolError(
                f"rank {self._rank} expected table for step {step}, got {broadcast.step}"
            )
        if broadcast.table.shape[0] != self.config.n_bodies:
            raise ProtocolError(
                f"broadcast table has {broadcast.table.shape[0]} bodies, "
                f"expected {self.config.n_bodies}"
            )
        return ReplicaTable(broadcast.table)
