"""Unit tests for console reporting."""

import io

from mpnbody.core import AuthoritativeTable, Body
from mpnbody.reporting import ConsoleReporter, format_table


def test_format_table(two_body_table):
    text = format_table(two_body_table)
    lines = text.splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("[1]\t1000  0.0000")
    assert lines[1].startswith("[2]\t1000  100.0000")
    # mass (6 wide) + six values (16 wide each)
    assert len(lines[0].split("\t", 1)[1]) == 6 + 6 * 16


def test_mass_printed_without_decimals():
    table = AuthoritativeTable.from_bodies([
        Body(mass=512.7, position=(1.23456, 0.0, 0.0), velocity=(0.0, 0.0, -2.5)),
    ])
    line = format_table(table).splitlines()[0]
    fields = line.split("\t", 1)[1].split()
    assert fields[0] == "513"
    assert fields[1] == "1.2346"
    assert fields[-1] == "-2.5000"


def test_console_reporter_sequence(two_body_table):
    stream = io.StringIO()
    reporter = ConsoleReporter(stream)
    reporter.initial_state(two_body_table)
    reporter.iteration(1, two_body_table)
    reporter.finished(1.5)

    text = stream.getvalue()
    assert text.index("Initial state") < text.index("Iteration 1") < text.index("Executed in")
    assert "Executed in 1.500000 seconds" in text


def test_console_reporter_every(two_body_table):
    stream = io.StringIO()
    reporter = ConsoleReporter(stream, every=2)
    for k in range(1, 5):
        reporter.iteration(k, two_body_table)
    text = stream.getvalue()
    assert "Iteration 1\n" not in text
    assert "Iteration 2\n" in text
    assert "Iteration 4\n" in text


def test_console_reporter_disabled_iterations(two_body_table):
    stream = io.StringIO()
    reporter = ConsoleReporter(stream, every=0)
    reporter.iteration(1, two_body_table)
    assert stream.getvalue() == ""
