"""Unit tests for message frames."""

import numpy as np
import pytest

from mpnbody.core.bodies import BODY_FIELDS, Body
from mpnbody.core.errors import ProtocolError
from mpnbody.core.messages import HEADER, BodyReport, InitBatch, TableBroadcast


def bits(array):
    return np.ascontiguousarray(array, dtype=np.float64).view(np.uint64)


class TestBodyReport:
    """Tests for single-body reports."""

    def test_round_trip_is_bitwise(self):
        row = Body(
            mass=123.456,
            position=(1e-300, -0.0, np.pi),
            velocity=(np.inf, -np.inf, np.nan),
        ).to_row()
        frame = BodyReport(step=4, index=17, row=row).to_bytes()
        decoded = BodyReport.from_bytes(frame)

        assert decoded.step == 4
        assert decoded.index == 17
        assert np.array_equal(bits(decoded.row), bits(row))

    def test_frame_size(self):
        frame = BodyReport(step=0, index=0, row=np.zeros(BODY_FIELDS)).to_bytes()
        assert len(frame) == HEADER.size + BODY_FIELDS * 8

    def test_decoded_row_is_writeable_copy(self):
        frame = BodyReport(step=0, index=0, row=np.ones(BODY_FIELDS)).to_bytes()
        row = BodyReport.from_bytes(frame).row
        row[0] = 5.0  # must not raise


class TestTableBroadcast:
    """Tests for full-table broadcasts."""

    def test_round_trip_is_bitwise(self, rng):
        table = rng.normal(size=(25, BODY_FIELDS)) * 1e6
        decoded = TableBroadcast.from_bytes(TableBroadcast(step=9, table=table).to_bytes())
        assert decoded.step == 9
        assert decoded.table.shape == (25, BODY_FIELDS)
        assert np.array_equal(bits(decoded.table), bits(table))

    def test_empty_table(self):
        empty = np.empty((0, BODY_FIELDS))
        decoded = TableBroadcast.from_bytes(TableBroadcast(step=0, table=empty).to_bytes())
        assert decoded.table.shape == (0, BODY_FIELDS)


class TestInitBatch:
    """Tests for initialization batches."""

    def test_round_trip(self, rng):
        rows = rng.uniform(size=(6, BODY_FIELDS))
        decoded = InitBatch.from_bytes(InitBatch(start=12, rows=rows).to_bytes())
        assert decoded.start == 12
        assert np.array_equal(bits(decoded.rows), bits(rows))


class TestMalformedFrames:
    """Decoding rejects anything that is not a well-formed frame."""

    def test_wrong_kind(self):
        frame = BodyReport(step=0, index=0, row=np.zeros(BODY_FIELDS)).to_bytes()
        with pytest.raises(ProtocolError):
            TableBroadcast.from_bytes(frame)

    def test_bad_magic(self):
        frame = bytearray(BodyReport(step=0, index=0, row=np.zeros(BODY_FIELDS)).to_bytes())
        frame[0:4] = b"XXXX"
        with pytest.raises(ProtocolError):
            BodyReport.from_bytes(bytes(frame))

    def test_truncated(self):
        frame = BodyReport(step=0, index=0, row=np.zeros(BODY_FIELDS)).to_bytes()
        with pytest.raises(ProtocolError):
            BodyReport.from_bytes(frame[:-1])

    def test_too_short_for_header(self):
        with pytest.raises(ProtocolError):
            BodyReport.from_bytes(b"NB")

    def test_report_with_several_rows(self):
        frame = InitBatch(start=0, rows=np.zeros((2, BODY_FIELDS))).to_bytes()
        # Same layout, relabelled as a report
        relabelled = frame[:4] + bytes([3]) + frame[5:]
        with pytest.raises(ProtocolError):
            BodyReport.from_bytes(relabelled)
