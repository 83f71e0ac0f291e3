"""
Communicators: blocking point-to-point and one-to-all message transport.

The protocol layer only ever sees the Communicator protocol below. Two
transports implement it:

- MPICommunicator: mpi4py, for runs launched with mpiexec/mpirun.
  mpi4py is imported lazily so the rest of the package (and the local
  transport) works on machines without an MPI runtime.
- LocalCommunicator: one multiprocessing queue per rank, for local
  process groups started by runner.run_local.

Payloads are opaque bytes (encoded frames from mpnbody.core.messages).
Every receive blocks; an optional timeout turns an endless wait into a
CommunicationTimeout.
"""

from __future__ import annotations
from collections import deque
import queue
import time
from typing import Any, Protocol, Sequence

from mpnbody.core.errors import CommunicationTimeout

ANY_SOURCE = -1
ANY_TAG = -1

TAG_BROADCAST = 1


class Communicator(Protocol):
    """Transport seen by the leader and worker state machines."""

    @property
    def rank(self) -> int:
        ...

    @property
    def size(self) -> int:
        ...

    def send(self, payload: bytes, dest: int, tag: int) -> None:
        """Send payload to dest. May block until the transport accepts it."""
        ...

    def recv(
        self,
        source: int = ANY_SOURCE,
        tag: int = ANY_TAG,
        timeout: float | None = None,
    ) -> tuple[bytes, int]:
        """
        Block until a matching message arrives.

        Returns:
            (payload, source rank)

        Raises:
            CommunicationTimeout: if timeout elapses first
        """
        ...

    def bcast(self, payload: bytes | None, root: int = 0) -> bytes:
        """
        One-to-all broadcast. Root passes the payload, every rank gets it.

        Returns only once root's payload has been handed to every rank
        (on root) or received (elsewhere).
        """
        ...

    def wtime(self) -> float:
        """Wall-clock seconds, for elapsed-time measurement."""
        ...


class LocalCommunicator:
    """
    Queue-based transport for a group of local processes.

    Each rank reads from its own inbox queue and writes into the inboxes
    of others. Messages that arrive while waiting for a different
    (source, tag) are held back and delivered by a later matching recv,
    so per-sender ordering is preserved.
    """

    def __init__(self, rank: int, inboxes: Sequence[Any]):
        if not 0 <= rank < len(inboxes):
            raise ValueError(f"rank {rank} outside group of {len(inboxes)}")
        self._rank = rank
        self._inboxes = inboxes
        self._held: deque[tuple[int, int, bytes]] = deque()

    @property
    def rank(self) -> int:
        return self._rank

    @property
    def size(self) -> int:
        return len(self._inboxes)

    def send(self, payload: bytes, dest: int, tag: int) -> None:
        self._inboxes[dest].put((self._rank, tag, payload))

    def recv(
        self,
        source: int = ANY_SOURCE,
        tag: int = ANY_TAG,
        timeout: float | None = None,
    ) -> tuple[bytes, int]:
        for i, (src, msg_tag, payload) in enumerate(self._held):
            if _matches(src, msg_tag, source, tag):
                del self._held[i]
                return payload, src

        deadline = None if timeout is None else time.monotonic() + timeout
        inbox = self._inboxes[self._rank]
        while True:
            remaining = None
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise CommunicationTimeout(
                        f"rank {self._rank}: no message from source={source} "
                        f"tag={tag} within {timeout}s"
                    )
            try:
                src, msg_tag, payload = inbox.get(timeout=remaining)
            except queue.Empty:
                raise CommunicationTimeout(
                    f"rank {self._rank}: no message from source={source} "
                    f"tag={tag} within {timeout}s"
                ) from None

            if _matches(src, msg_tag, source, tag):
                return payload, src
            self._held.append((src, msg_tag, payload))

    def bcast(self, payload: bytes | None, root: int = 0) -> bytes:
        if self._rank == root:
            if payload is None:
                raise ValueError("broadcast root must supply a payload")
            for dest in range(self.size):
                if dest != root:
                    self.send(payload, dest, TAG_BROADCAST)
            return payload
        received, _ = self.recv(source=root, tag=TAG_BROADCAST)
        return received

    def wtime(self) -> float:
        return time.perf_counter()


def _matches(src: int, msg_tag: int, source: int, tag: int) -> bool:
    return (source == ANY_SOURCE or src == source) and (tag == ANY_TAG or msg_tag == tag)


class MPICommunicator:
    """
    mpi4py transport.

    Uses the pickle-based lowercase API (send/recv/bcast) since payloads
    are already-encoded byte frames.
    """

    poll_interval: float = 0.001  # Seconds between probes when waiting with a timeout

    def __init__(self, comm=None):
        from mpi4py import MPI

        self._mpi = MPI
        self._comm = MPI.COMM_WORLD if comm is None else comm
        # Rank is fixed for the lifetime of the communicator
        self._rank = self._comm.Get_rank()
        self._size = self._comm.Get_size()

    @property
    def rank(self) -> int:
        return self._rank

    @property
    def size(self) -> int:
        return self._size

    def send(self, payload: bytes, dest: int, tag: int) -> None:
        self._comm.send(payload, dest=dest, tag=tag)

    def recv(
        self,
        source: int = ANY_SOURCE,
        tag: int = ANY_TAG,
        timeout: float | None = None,
    ) -> tuple[bytes, int]:
        MPI = self._mpi
        mpi_source = MPI.ANY_SOURCE if source == ANY_SOURCE else source
        mpi_tag = MPI.ANY_TAG if tag == ANY_TAG else tag
        status = MPI.Status()

        if timeout is not None:
            deadline = time.monotonic() + timeout
            while not self._comm.Iprobe(source=mpi_source, tag=mpi_tag, status=status):
                if time.monotonic() >= deadline:
                    raise CommunicationTimeout(
                        f"rank {self._rank}: no message from source={source} "
                        f"tag={tag} within {timeout}s"
                    )
                time.sleep(self.poll_interval)
            # Receive exactly the probed message
            mpi_source, mpi_tag = status.Get_source(), status.Get_tag()

        payload = self._comm.recv(source=mpi_source, tag=mpi_tag, status=status)
        return payload, status.Get_source()

    def bcast(self, payload: bytes | None, root: int = 0) -> bytes:
        return self._comm.bcast(payload, root=root)

    def wtime(self) -> float:
        return self._mpi.Wtime()
