"""
Entry points: validate, pick a role by rank, run.

- simulate(comm, config): run this process's role over any Communicator
- run_local(config, worker_count): start a local process group
  (multiprocessing), leader in the calling process
- run_mpi(config): run under mpiexec over MPI.COMM_WORLD

Configuration is always validated before any message is exchanged.
"""

from __future__ import annotations
import logging
import multiprocessing as mp
from typing import TYPE_CHECKING

from mpnbody.core.comm import LocalCommunicator, MPICommunicator
from mpnbody.core.partition import LEADER_RANK
from mpnbody.core.protocol import Leader, Worker
from mpnbody.reporting import ConsoleReporter

if TYPE_CHECKING:
    from mpnbody.core.comm import Communicator
    from mpnbody.core.config import SimulationConfig
    from mpnbody.core.protocol import Reporter, RunResult

logger = logging.getLogger(__name__)

# Seconds to wait for workers to exit once the leader is done
JOIN_TIMEOUT = 5.0


def simulate(
    comm: "Communicator",
    config: "SimulationConfig",
    reporter: "Reporter | None" = None,
) -> "RunResult | None":
    """
    Run this process's role.

    Returns:
        RunResult on the leader, None on workers
    """
    config.validate(comm.size)
    if comm.rank == LEADER_RANK:
        return Leader(comm, config, reporter=reporter).run()
    Worker(comm, config).run()
    return None


def _worker_main(rank: int, inboxes, config: "SimulationConfig") -> None:
    comm = LocalCommunicator(rank, inboxes)
    try:
        Worker(comm, config).run()
    except Exception:
        logger.exception("rank %d: worker failed", rank)
        raise


def run_local(
    config: "SimulationConfig",
    worker_count: int,
    reporter: "Reporter | None" = None,
    start_method: str | None = None,
) -> "RunResult":
    """
    Run a full simulation with worker_count local worker processes.

    Args:
        config: Run parameters
        worker_count: Number of worker processes (leader not included)
        reporter: Receives the leader's reports (None = no console output)
        start_method: multiprocessing start method (None = platform default)

    Returns:
        The leader's RunResult
    """
    process_count = worker_count + 1
    config.validate(process_count)

    ctx = mp.get_context(start_method)
    inboxes = [ctx.Queue() for _ in range(process_count)]
    workers = [
        ctx.Process(
            target=_worker_main,
            args=(rank, inboxes, config),
            name=f"mpnbody-worker-{rank}",
            daemon=True,
        )
        for rank in range(1, process_count)
    ]
    for proc in workers:
        proc.start()

    completed = False
    try:
        leader = Leader(LocalCommunicator(LEADER_RANK, inboxes), config, reporter=reporter)
        result = leader.run()
        completed = True
        return result
    finally:
        for proc in workers:
            # After a failed run the remaining workers wait on a broadcast forever
            proc.join(JOIN_TIMEOUT if completed else 0)
            if proc.is_alive():
                logger.warning("terminating %s", proc.name)
                proc.terminate()
                proc.join()
            elif proc.exitcode:
                logger.warning("%s exited with code %d", proc.name, proc.exitcode)


def run_mpi(
    config: "SimulationConfig",
    reporter: "Reporter | None" = None,
) -> "RunResult | None":
    """
    Run under mpiexec; every rank calls this.

    The leader prints to stdout unless a reporter is given.
    """
    comm = MPICommunicator()
    if reporter is None and comm.rank == LEADER_RANK:
        reporter = ConsoleReporter()
    return simulate(comm, config, reporter=reporter)
