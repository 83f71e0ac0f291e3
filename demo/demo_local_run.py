#!/usr/bin/env python3
"""
Demo: Distributed Run on Local Processes

The classic setup: 100 random bodies, 100 steps, split over local
worker processes:
1. Run leader + workers (multiprocessing)
2. Recompute the same run sequentially
3. Confirm both final tables are bit-identical
4. Plot the trajectories

Per-iteration table dumps are thinned out to keep the console readable.
"""

import logging

import matplotlib.pyplot as plt
from pathlib import Path

from mpnbody.analysis import compare_tables, total_momentum
from mpnbody.core import SimulationConfig
from mpnbody.reference import initial_table, run_sequential
from mpnbody.reporting import ConsoleReporter
from mpnbody.runner import run_local
from mpnbody.viz import plot_projections, save_figure


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    print("=" * 60)
    print("  DISTRIBUTED N-BODY (LOCAL PROCESSES)")
    print("=" * 60)

    worker_count = 4
    config = SimulationConfig(
        n_bodies=100,
        n_iterations=100,
        seed=42,
        collect_timeout=60.0,
        record_history=True,
    )

    print(f"\n1. Running {config.n_bodies} bodies x {config.n_iterations} steps "
          f"on {worker_count} workers...")
    result = run_local(config, worker_count, reporter=ConsoleReporter(every=25))

    print("\n2. Sequential reference...")
    start = initial_table(config, process_count=worker_count + 1)
    expected, _ = run_sequential(start, config)

    comparison = compare_tables(result.final, expected)
    print("\n3. Comparison:")
    print(f"   Bit-identical: {comparison.identical}")
    print(f"   Max |error|:   {comparison.max_abs_error:.3e}")
    p0, p1 = total_momentum(result.initial), total_momentum(result.final)
    print(f"   Momentum drift: {abs(p1 - p0).max():.3e}")

    print("\n4. Creating visualization...")
    fig = plot_projections(result.history, bodies=range(10), title="First 10 bodies")
    output_dir = Path("output/demo_local_run")
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / "trajectories.png"
    save_figure(fig, output_path)
    plt.close(fig)
    print(f"   Saved: {output_path}")

    print("\n" + "=" * 60)
    print(f"  Elapsed: {result.elapsed:.3f} s")
    print("=" * 60)


if __name__ == "__main__":
    main()
