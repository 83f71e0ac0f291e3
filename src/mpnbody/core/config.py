"""
Run parameters for a simulation.

Read once at process start, never mutated. Every process (leader and
workers) holds an identical copy, which is what lets them all derive the
same work partition without exchanging a single message about it.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

from mpnbody.core.errors import ConfigurationError

if TYPE_CHECKING:
    from mpnbody.core.kernel import GravityKernel


# The leader does not generate its own block during initialization, so
# one worker has to double up: a run needs at least two workers.
MIN_WORKERS = 2


@dataclass(frozen=True)
class SimulationConfig:
    """Configuration for one simulation run."""

    n_bodies: int = 100
    n_iterations: int = 100
    timestep: float = 0.005
    gravitational_constant: float = 1.0

    # Random placement bounds
    mass_floor: float = 100.0  # Mass drawn from [floor, floor + range)
    mass_range: float = 1000.0
    domain_size: float = 1000.0  # Each coordinate drawn from [0, domain_size)
    velocity_range: float = 200.0  # Each component drawn from [-range/2, range/2)

    seed: int | None = None  # None = fresh OS entropy per run
    min_distance: float = 0.0  # Distance floor for force evaluation; 0 = none
    collect_timeout: float | None = None  # Seconds; None = wait forever
    record_history: bool = False  # Keep per-step positions on the leader

    def worker_count(self, process_count: int) -> int:
        """Number of workers in a group of process_count processes."""
        return process_count - 1

    def validate(self, process_count: int) -> None:
        """
        Reject parameters that cannot produce a valid run.

        Must be called before any message is exchanged.

        Raises:
            ConfigurationError: describing the first problem found
        """
        workers = self.worker_count(process_count)
        if workers < MIN_WORKERS:
            raise ConfigurationError(
                f"need at least {MIN_WORKERS} workers (got {workers} worker(s) "
                f"in a group of {process_count} process(es))"
            )
        if self.n_bodies < 1:
            raise ConfigurationError(f"n_bodies must be positive, got {self.n_bodies}")
        if self.n_iterations < 0:
            raise ConfigurationError(
                f"n_iterations must not be negative, got {self.n_iterations}"
            )
        if not self.timestep > 0:
            raise ConfigurationError(f"timestep must be positive, got {self.timestep}")
        if self.mass_floor < 0 or not self.mass_range > 0:
            raise ConfigurationError(
                f"mass range [{self.mass_floor}, {self.mass_floor + self.mass_range}) "
                "must be non-empty and non-negative"
            )
        if not self.domain_size > 0:
            raise ConfigurationError(f"domain_size must be positive, got {self.domain_size}")
        if self.velocity_range < 0:
            raise ConfigurationError(
                f"velocity_range must not be negative, got {self.velocity_range}"
            )
        if self.min_distance < 0:
            raise ConfigurationError(
                f"min_distance must not be negative, got {self.min_distance}"
            )
        if self.collect_timeout is not None and not self.collect_timeout > 0:
            raise ConfigurationError(
                f"collect_timeout must be positive or None, got {self.collect_timeout}"
            )

    def kernel(self) -> "GravityKernel":
        """Build the force/integration kernel for these parameters."""
        from mpnbody.core.kernel import GravityKernel
        return GravityKernel(
            gravitational_constant=self.gravitational_constant,
            timestep=self.timestep,
            min_distance=self.min_distance,
        )
