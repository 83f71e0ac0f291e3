"""Unit tests for random initialization."""

import queue

import numpy as np
import pytest

from mpnbody.core import LocalCommunicator, SimulationConfig
from mpnbody.core.bodies import MASS, POSITION, VELOCITY
from mpnbody.core.errors import ProtocolError, WorkerLostError
from mpnbody.core.initializer import (
    generate_block,
    generate_rows,
    initialize_leader,
    initialize_worker,
    rank_generator,
)
from mpnbody.core.messages import TAG_INIT, InitBatch


class TestGenerateRows:
    """Tests for the sampling ranges."""

    def test_ranges(self, rng):
        config = SimulationConfig(mass_floor=100, mass_range=1000, domain_size=50, velocity_range=20)
        rows = generate_rows(rng, 500, config)
        assert rows.shape == (500, 7)
        assert np.all((rows[:, MASS] >= 100) & (rows[:, MASS] < 1100))
        assert np.all((rows[:, POSITION] >= 0) & (rows[:, POSITION] < 50))
        assert np.all((rows[:, VELOCITY] >= -10) & (rows[:, VELOCITY] < 10))

    def test_zero_rows(self, rng):
        assert generate_rows(rng, 0, SimulationConfig()).shape == (0, 7)


class TestRankGenerator:
    """Per-process random streams."""

    def test_seeded_is_reproducible(self):
        a = rank_generator(7, rank=2, process_count=4).uniform(size=5)
        b = rank_generator(7, rank=2, process_count=4).uniform(size=5)
        assert np.array_equal(a, b)

    def test_ranks_are_independent(self):
        a = rank_generator(7, rank=1, process_count=4).uniform(size=5)
        b = rank_generator(7, rank=2, process_count=4).uniform(size=5)
        assert not np.array_equal(a, b)

    def test_unseeded_runs_differ(self):
        a = rank_generator(None, rank=1, process_count=3).uniform(size=5)
        b = rank_generator(None, rank=1, process_count=3).uniform(size=5)
        assert not np.array_equal(a, b)


class TestGenerateBlock:
    """Each rank generates exactly its initialization block."""

    def test_block_sizes(self):
        config = SimulationConfig(n_bodies=11, seed=3)
        sizes = {rank: len(generate_block(config, rank, 4)[0]) for rank in range(4)}
        # block = 11 // 4 = 2: worker 1 doubles up, leader takes the tail
        assert sizes == {0: 3, 1: 4, 2: 2, 3: 2}


class TestInitializationExchange:
    """Leader assembles the table from every worker's batch."""

    def _group(self, size):
        inboxes = [queue.Queue() for _ in range(size)]
        return [LocalCommunicator(rank, inboxes) for rank in range(size)]

    def test_assembles_full_table(self):
        config = SimulationConfig(n_bodies=13, seed=99, collect_timeout=5.0)
        comms = self._group(4)
        # Workers send in reverse order: arrival order must not matter
        for comm in reversed(comms[1:]):
            initialize_worker(comm, config)

        table = initialize_leader(comms[0], config)
        data = table.as_array()
        assert np.all(np.isfinite(data))
        for rank in range(4):
            block, rows = generate_block(config, rank, 4)
            assert np.array_equal(data[block.start:block.stop], rows)

    def test_missing_worker_times_out(self):
        config = SimulationConfig(n_bodies=12, seed=1, collect_timeout=0.1)
        comms = self._group(4)
        initialize_worker(comms[1], config)
        initialize_worker(comms[3], config)

        with pytest.raises(WorkerLostError) as info:
            initialize_leader(comms[0], config)
        assert info.value.ranks == [2]
        assert info.value.step is None
        assert info.value.missing == [6, 7, 8]

    def test_wrong_block_rejected(self):
        config = SimulationConfig(n_bodies=12, seed=1, collect_timeout=1.0)
        comms = self._group(3)
        bad = InitBatch(start=1, rows=np.zeros((8, 7)))
        comms[1].send(bad.to_bytes(), 0, TAG_INIT)
        with pytest.raises(ProtocolError):
            initialize_leader(comms[0], config)

    def test_duplicate_batch_rejected(self):
        config = SimulationConfig(n_bodies=12, seed=1, collect_timeout=1.0)
        comms = self._group(4)
        initialize_worker(comms[1], config)
        initialize_worker(comms[1], config)
        with pytest.raises(ProtocolError, match="duplicate"):
            initialize_leader(comms[0], config)
