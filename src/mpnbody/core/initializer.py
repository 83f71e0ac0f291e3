"""
Initializer: random initial conditions, generated in parallel.

Each process draws the rows of its own initialization block (see
InitializationPartition) from an independent random stream, then every
worker ships its block to the leader, which assembles the one
authoritative table.

Random streams come from one SeedSequence spawned into one child per
process: no coordination is needed to keep streams independent, and a
fixed seed reproduces the exact same table whatever order the batches
arrive in.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING

import numpy as np

from mpnbody.core.bodies import BODY_FIELDS, MASS, POSITION, VELOCITY, AuthoritativeTable
from mpnbody.core.errors import CommunicationTimeout, ProtocolError, WorkerLostError
from mpnbody.core.messages import TAG_INIT, InitBatch
from mpnbody.core.partition import LEADER_RANK, InitializationPartition

if TYPE_CHECKING:
    from mpnbody.core.comm import Communicator
    from mpnbody.core.config import SimulationConfig

logger = logging.getLogger(__name__)


def rank_generator(seed: int | None, rank: int, process_count: int) -> np.random.Generator:
    """
    Independent random generator for one process.

    Args:
        seed: Run seed (None = fresh OS entropy; then only the rank's
              stream is independent, runs are not reproducible)
        rank: This process's rank
        process_count: Group size
    """
    children = np.random.SeedSequence(seed).spawn(process_count)
    return np.random.default_rng(children[rank])


def generate_rows(
    rng: np.random.Generator, count: int, config: "SimulationConfig"
) -> np.ndarray:
    """
    Draw `count` random bodies.

    Returns:
        [count, 7] rows: mass in [floor, floor + range), each position
        coordinate in [0, domain), each velocity component in
        [-range/2, range/2)
    """
    rows = np.empty((count, BODY_FIELDS), dtype=np.float64)
    rows[:, MASS] = rng.uniform(config.mass_floor, config.mass_floor + config.mass_range, count)
    rows[:, POSITION] = rng.uniform(0.0, config.domain_size, (count, 3))
    half = config.velocity_range / 2
    rows[:, VELOCITY] = rng.uniform(-half, half, (count, 3))
    return rows


def generate_block(
    config: "SimulationConfig", rank: int, process_count: int
) -> tuple[range, np.ndarray]:
    """Indices and rows this rank generates during initialization."""
    block = InitializationPartition(process_count, config.n_bodies).indices(rank)
    rng = rank_generator(config.seed, rank, process_count)
    return block, generate_rows(rng, len(block), config)


def initialize_worker(comm: "Communicator", config: "SimulationConfig") -> None:
    """Generate this worker's block and send it to the leader."""
    block, rows = generate_block(config, comm.rank, comm.size)
    comm.send(InitBatch(start=block.start, rows=rows).to_bytes(), LEADER_RANK, TAG_INIT)
    logger.debug("rank %d: sent %d initial bodies from index %d", comm.rank, len(block), block.start)


def initialize_leader(
    comm: "Communicator", config: "SimulationConfig"
) -> AuthoritativeTable:
    """
    Build the authoritative table.

    The leader fills the tail remainder itself, then receives exactly one
    batch from every worker, in whatever order they arrive.

    Raises:
        ProtocolError: a batch does not match its sender's block
        WorkerLostError: collect_timeout elapsed before every batch arrived
    """
    process_count = comm.size
    partition = InitializationPartition(process_count, config.n_bodies)
    table = AuthoritativeTable.empty(config.n_bodies)

    tail, rows = generate_block(config, LEADER_RANK, process_count)
    table.commit_rows(tail.start, rows)

    pending = set(range(1, process_count))
    while pending:
        try:
            frame, source = comm.recv(tag=TAG_INIT, timeout=config.collect_timeout)
        except CommunicationTimeout as exc:
            missing = [i for rank in sorted(pending) for i in partition.indices(rank)]
            logger.error("initialization stalled waiting for ranks %s", sorted(pending))
            raise WorkerLostError(missing, sorted(pending)) from exc

        batch = InitBatch.from_bytes(frame)
        expected = partition.indices(source)
        if source not in pending:
            raise ProtocolError(f"duplicate initialization batch from rank {source}")
        if batch.start != expected.start or batch.rows.shape[0] != len(expected):
            raise ProtocolError(
                f"rank {source} sent rows [{batch.start}, "
                f"{batch.start + batch.rows.shape[0]}), expected "
                f"[{expected.start}, {expected.stop})"
            )
        if len(expected):
            table.commit_rows(batch.start, batch.rows)
        pending.discard(source)

    logger.info("initialized %d bodies across %d processes", config.n_bodies, process_count)
    return table
