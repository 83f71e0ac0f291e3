"""
Console reporting for the leader.

Prints the full table once after initialization and once per iteration,
then the total elapsed time:

    Iteration 3

    [1]     512   431.2210        ...
    [2]     ...

Body numbers in the dump are 1-based. Mass is printed without decimals,
the six state values (x, y, z, vx, vy, vz) with four.
"""

from __future__ import annotations
import sys
from typing import TextIO, TYPE_CHECKING

if TYPE_CHECKING:
    from mpnbody.core.bodies import BodyTable


def format_table(table: "BodyTable") -> str:
    """Render every body, one line each, in index order."""
    data = table.as_array()
    lines = []
    for i, row in enumerate(data):
        values = "".join(f"{v:<16.4f}" for v in row[1:])
        lines.append(f"[{i + 1}]\t{row[0]:<6.0f}{values}")
    return "\n".join(lines) + "\n"


class ConsoleReporter:
    """
    Writes the leader's per-iteration dumps to a text stream.

    Args:
        stream: Destination (stdout by default)
        every: Dump only every `every`-th iteration; 0 disables iteration
               dumps (initial state and timing are still printed)
    """

    def __init__(self, stream: TextIO | None = None, every: int = 1):
        self.stream = stream if stream is not None else sys.stdout
        self.every = every

    def initial_state(self, table: "BodyTable") -> None:
        print("Initial state", file=self.stream)
        print(format_table(table), file=self.stream)

    def iteration(self, iteration: int, table: "BodyTable") -> None:
        if self.every <= 0 or iteration % self.every:
            return
        print(f"Iteration {iteration}\n", file=self.stream)
        print(format_table(table), file=self.stream)

    def finished(self, elapsed: float) -> None:
        print("Simulation finished", file=self.stream)
        print(f"Executed in {elapsed:f} seconds", file=self.stream)
        self.stream.flush()
