"""
Exception taxonomy for the simulator.

- ConfigurationError: bad run parameters, detected before any message
  is exchanged. Never recoverable.
- ProtocolError: a frame that violates the step protocol (wrong kind,
  wrong step, index not owned by its sender, duplicate index).
- CommunicationTimeout: a transport receive ran past its deadline.
- WorkerLostError: the leader gave up waiting for reports it expected.

Degenerate numerical input (coincident bodies) is NOT an error here;
it propagates as non-finite values through the kernel.
"""

from __future__ import annotations


class NBodyError(Exception):
    """Base class for all simulator errors."""


class ConfigurationError(NBodyError, ValueError):
    """Run parameters that cannot produce a valid run."""


class ProtocolError(NBodyError):
    """A message that does not fit the current protocol state."""


class CommunicationTimeout(NBodyError, TimeoutError):
    """A receive did not complete before its deadline."""


class WorkerLostError(NBodyError):
    """
    Expected reports never arrived.

    Attributes:
        missing: body indices that were not reported
        ranks: worker ranks owning the missing indices
        step: iteration being collected (None during initialization)
    """

    def __init__(self, missing: list[int], ranks: list[int], step: int | None = None):
        self.missing = list(missing)
        self.ranks = sorted(set(ranks))
        self.step = step
        phase = "initialization" if step is None else f"iteration {step}"
        shown = ", ".join(str(i) for i in self.missing[:10])
        if len(self.missing) > 10:
            shown += ", ..."
        super().__init__(
            f"worker(s) {self.ranks} lost during {phase}: "
            f"{len(self.missing)} body report(s) missing [{shown}]"
        )
