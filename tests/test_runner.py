"""End-to-end runs with real worker processes."""

import io

import pytest

from mpnbody.core import ConfigurationError, SimulationConfig
from mpnbody.reference import initial_table, run_sequential
from mpnbody.reporting import ConsoleReporter
from mpnbody.runner import run_local, simulate


def test_run_local_matches_reference():
    config = SimulationConfig(n_bodies=12, n_iterations=4, seed=2024, collect_timeout=30.0)
    result = run_local(config, worker_count=3)

    start = initial_table(config, process_count=4)
    expected, _ = run_sequential(start, config)
    assert result.initial.identical_to(start)
    assert result.final.identical_to(expected)


def test_run_local_spawn_with_report():
    config = SimulationConfig(n_bodies=5, n_iterations=2, seed=11, collect_timeout=30.0)
    stream = io.StringIO()
    result = run_local(config, worker_count=2, reporter=ConsoleReporter(stream), start_method="spawn")

    text = stream.getvalue()
    assert "Iteration 2" in text
    assert text.rstrip().splitlines()[-1].startswith("Executed in")
    assert result.n_bodies == 5


@pytest.mark.parametrize("worker_count", [0, 1])
def test_run_local_rejects_too_few_workers(worker_count):
    with pytest.raises(ConfigurationError):
        run_local(SimulationConfig(n_bodies=4), worker_count=worker_count)


def test_run_local_rejects_bad_config_before_starting():
    with pytest.raises(ConfigurationError):
        run_local(SimulationConfig(n_bodies=0), worker_count=2)


def test_simulate_validates_first():
    class Unreachable:
        """A communicator that must never be used."""
        rank = 0
        size = 2

        def __getattr__(self, name):
            raise AssertionError(f"communicator used before validation: {name}")

    with pytest.raises(ConfigurationError):
        simulate(Unreachable(), SimulationConfig())
