"""
Pytest configuration and shared fixtures for the curve tracer test suite.

This file provides:
- The reference live exchange for regime 1 (lines and wire chunks)
- A well-formed log file
- A valid TEST command
"""

import pytest

from pv_curve_tracer.protocol import CommandPacket, LOG_HEADER


@pytest.fixture
def regime_lines():
    """Board output for a short regime 1 sweep, one packet per line."""
    return [
        "TEST 1 0 600 1",
        "START 1",
        "DATA 1 0 0 0.0",
        "DATA 1 0 1 0.0",
        "DATA 1 1 0 1.0",
        "DATA 1 1 1 0.1",
        "END 1",
    ]


@pytest.fixture
def board_chunks():
    """
    Regime 1 data as the serial port delivers it.

    Records are split mid-token and several share a chunk.
    """
    stream = b"DATA 1 0 0 0.0;DATA 1 0 1 0.0;DATA 1 1 0 1.0;DATA 1 1 1 0.1;END 1;"
    return [stream[:7], stream[7:20], b"", stream[20:45], stream[45:61], stream[61:]]


@pytest.fixture
def test_command():
    """Valid CELL sweep command for regime 1."""
    return CommandPacket.test(1, 0.0, 600.0, 1.0)


@pytest.fixture
def log_text():
    """Log file with two regimes and one corrupt line."""
    return "\n".join([
        LOG_HEADER,
        "TEST 1 0.0 600.0 100.0",
        "START 1",
        "DATA 1 0 0 0.0",
        "DATA 1 0 1 2.5",
        "DATA 1 1 0 100.0",
        "DATA 1 1 1 2.4",
        "DATA 1 1 2 25.0",
        "DATA 1 1 x 3.0",
        "END 1",
        "TEST 2 0.0 6000.0 1000.0",
        "START 2",
        "DATA 2 0 0 0.0",
        "DATA 2 0 3 950.0",
        "END 2",
    ]) + "\n"
