"""
Sequential reference: the same physics in a single process.

No partition, no messages. Used as a correctness oracle for the
distributed run: given the same initial table and parameters, both must
produce identical tables, because both advance every body with the same
kernel against the same pre-step snapshot.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

import numpy as np

from mpnbody.core.bodies import AuthoritativeTable
from mpnbody.core.initializer import generate_block
from mpnbody.core.partition import InitializationPartition

if TYPE_CHECKING:
    from mpnbody.core.bodies import BodyTable
    from mpnbody.core.config import SimulationConfig


def initial_table(config: "SimulationConfig", process_count: int) -> AuthoritativeTable:
    """
    The table a seeded distributed run of process_count processes starts from.

    Generates every rank's block locally, exactly as each rank would.
    """
    partition = InitializationPartition(process_count, config.n_bodies)
    table = AuthoritativeTable.empty(config.n_bodies)
    for rank in partition.ranks:
        block, rows = generate_block(config, rank, process_count)
        table.commit_rows(block.start, rows)
    return table


def run_sequential(
    table: "BodyTable",
    config: "SimulationConfig",
    n_iterations: int | None = None,
) -> tuple[AuthoritativeTable, list[np.ndarray]]:
    """
    Advance a table in one process.

    Args:
        table: Starting state (not modified)
        config: Run parameters
        n_iterations: Override for config.n_iterations

    Returns:
        (final table, positions per state including the initial one)
    """
    if n_iterations is None:
        n_iterations = config.n_iterations
    kernel = config.kernel()

    current = AuthoritativeTable(table.as_array())
    history = [current.positions]
    for _ in range(n_iterations):
        snapshot = current.replica().view()
        # Commit only after every body of the step has been computed
        current = AuthoritativeTable(kernel.step(snapshot))
        history.append(current.positions)
    return current, history
