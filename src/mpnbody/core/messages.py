"""
Messages exchanged between the leader and the workers.

Three kinds of message exist:
- InitBatch:      worker → leader, a contiguous block of freshly generated rows
- TableBroadcast: leader → every worker, the full table for one step
- BodyReport:     worker → leader, one updated body for one step

Every message is self-describing: a report carries its own step and body
index, so the leader can commit it correctly whatever order reports
arrive in.

Wire format (all little-endian):
    header  = magic "NBDY" | kind u8 | 3 pad bytes | step i64 | index i64 | rows i64
    payload = rows × 7 float64

Floats are copied byte for byte, so decode(encode(x)) reproduces every
value bitwise (NaN payloads and signed zeros included).
"""

from __future__ import annotations
from dataclasses import dataclass
import struct

import numpy as np

from mpnbody.core.bodies import BODY_FIELDS
from mpnbody.core.errors import ProtocolError


MAGIC = b"NBDY"
HEADER = struct.Struct("<4sB3xqqq")
WIRE_DTYPE = np.dtype("<f8")

KIND_INIT_BATCH = 1
KIND_TABLE_BROADCAST = 2
KIND_BODY_REPORT = 3

# Transport tags, one per message kind
TAG_INIT = 11
TAG_TABLE = 12
TAG_REPORT = 13


@dataclass(frozen=True)
class InitBatch:
    """Rows [start, start + len(rows)) generated by one worker."""

    start: int
    rows: np.ndarray  # [count, 7]

    def to_bytes(self) -> bytes:
        return _pack(KIND_INIT_BATCH, step=-1, index=self.start, rows=self.rows)

    @classmethod
    def from_bytes(cls, frame: bytes) -> InitBatch:
        _, index, rows = _unpack(frame, KIND_INIT_BATCH)
        return cls(start=index, rows=rows)


@dataclass(frozen=True)
class TableBroadcast:
    """The authoritative table as it stands at the start of `step`."""

    step: int
    table: np.ndarray  # [N, 7]

    def to_bytes(self) -> bytes:
        return _pack(KIND_TABLE_BROADCAST, step=self.step, index=-1, rows=self.table)

    @classmethod
    def from_bytes(cls, frame: bytes) -> TableBroadcast:
        step, _, rows = _unpack(frame, KIND_TABLE_BROADCAST)
        return cls(step=step, table=rows)


@dataclass(frozen=True)
class BodyReport:
    """One body's new state after `step`."""

    step: int
    index: int
    row: np.ndarray  # [7]

    def to_bytes(self) -> bytes:
        return _pack(KIND_BODY_REPORT, step=self.step, index=self.index, rows=self.row)

    @classmethod
    def from_bytes(cls, frame: bytes) -> BodyReport:
        step, index, rows = _unpack(frame, KIND_BODY_REPORT)
        if rows.shape[0] != 1:
            raise ProtocolError(f"body report carries {rows.shape[0]} rows, expected 1")
        return cls(step=step, index=index, row=rows[0])


def _pack(kind: int, step: int, index: int, rows: np.ndarray) -> bytes:
    payload = np.ascontiguousarray(rows, dtype=WIRE_DTYPE).reshape(-1, BODY_FIELDS)
    header = HEADER.pack(MAGIC, kind, step, index, payload.shape[0])
    return header + payload.tobytes()


def _unpack(frame: bytes, expected_kind: int) -> tuple[int, int, np.ndarray]:
    """Decode a frame of a given kind into (step, index, rows)."""
    if len(frame) < HEADER.size:
        raise ProtocolError(f"frame too short: {len(frame)} bytes")

    magic, kind, step, index, n_rows = HEADER.unpack_from(frame)
    if magic != MAGIC:
        raise ProtocolError(f"bad frame magic: {magic!r}")
    if kind != expected_kind:
        raise ProtocolError(f"expected message kind {expected_kind}, got {kind}")

    expected_len = HEADER.size + n_rows * BODY_FIELDS * WIRE_DTYPE.itemsize
    if n_rows < 0 or len(frame) != expected_len:
        raise ProtocolError(
            f"frame length {len(frame)} does not match {n_rows} row(s)"
        )

    if n_rows == 0:
        return step, index, np.empty((0, BODY_FIELDS), dtype=np.float64)

    rows = np.frombuffer(frame, dtype=WIRE_DTYPE, offset=HEADER.size)
    # frombuffer over bytes is read-only; hand out an owned native copy
    rows = rows.astype(np.float64, copy=True).reshape(n_rows, BODY_FIELDS)
    return step, index, rows
