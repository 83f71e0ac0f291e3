#!/usr/bin/env python3
"""
Demo: Distributed Run under MPI

Launch with at least 3 ranks (leader + 2 workers):

    mpiexec -n 4 python demo/demo_mpi_run.py --bodies 100 --iterations 100

Rank 0 prints the initial table, every iteration, and the elapsed time.
"""

import argparse
import logging

from mpnbody.core import SimulationConfig
from mpnbody.runner import run_mpi


def main():
    parser = argparse.ArgumentParser(description="Distributed N-body run over MPI")
    parser.add_argument("--bodies", type=int, default=100)
    parser.add_argument("--iterations", type=int, default=100)
    parser.add_argument("--dt", type=float, default=0.005)
    parser.add_argument("--G", type=float, default=1.0)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--timeout", type=float, default=None,
                        help="Seconds before a missing worker aborts the run")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    config = SimulationConfig(
        n_bodies=args.bodies,
        n_iterations=args.iterations,
        timestep=args.dt,
        gravitational_constant=args.G,
        seed=args.seed,
        collect_timeout=args.timeout,
    )
    run_mpi(config)


if __name__ == "__main__":
    main()
