"""
Pytest configuration and shared fixtures.
"""

import queue
import threading

import matplotlib
import numpy as np
import pytest

matplotlib.use("Agg")


@pytest.fixture
def small_config():
    """A small seeded run that finishes in well under a second."""
    from mpnbody.core import SimulationConfig
    return SimulationConfig(
        n_bodies=10,
        n_iterations=3,
        seed=1234,
        collect_timeout=10.0,
    )


@pytest.fixture
def two_body_table():
    """Two equal masses 100 units apart on the x axis, at rest."""
    from mpnbody.core import AuthoritativeTable, Body
    return AuthoritativeTable.from_bodies([
        Body(mass=1000.0, position=(0.0, 0.0, 0.0), velocity=(0.0, 0.0, 0.0)),
        Body(mass=1000.0, position=(100.0, 0.0, 0.0), velocity=(0.0, 0.0, 0.0)),
    ])


@pytest.fixture
def rng():
    """Reproducible random number generator."""
    return np.random.default_rng(seed=42)


@pytest.fixture
def thread_group():
    """
    Run a whole process group as threads over LocalCommunicator.

    Returns a function (config, worker_count, reporter=None) -> RunResult.
    Same protocol code as a real run, minus the process startup cost.
    """
    from mpnbody.core import LocalCommunicator
    from mpnbody.runner import simulate

    def run(config, worker_count, reporter=None):
        inboxes = [queue.Queue() for _ in range(worker_count + 1)]
        threads = [
            threading.Thread(
                target=simulate,
                args=(LocalCommunicator(rank, inboxes), config),
                daemon=True,
            )
            for rank in range(1, worker_count + 1)
        ]
        for t in threads:
            t.start()
        result = simulate(LocalCommunicator(0, inboxes), config, reporter=reporter)
        for t in threads:
            t.join(timeout=10.0)
        return result

    return run
