"""
Integration tests for a live regime, from wire bytes to a saved log.
"""

import pytest

from pv_curve_tracer.config import sweep_command
from pv_curve_tracer.protocol import (
    LOG_HEADER, MeasurementKind, RegimeSession, SessionState,
    read_log, write_log,
)
from tests.mocks.mock_transport import ScriptedTransport


@pytest.fixture
def sweep_stream():
    """Board output for a three-step CELL sweep, cut into uneven chunks."""
    records = []
    for step, voltage in enumerate((0.0, 300.0, 600.0)):
        records.append(f"DATA 7 {step} 0 {voltage}")
        records.append(f"DATA 7 {step} 1 {2.0 - step * 0.8}")
        records.append(f"DATA 7 {step} 2 25.0")
        records.append(f"DATA 7 {step} 3 1000.0")
    records.append("END 7")
    stream = ("".join(r + ";" for r in records)).encode("ascii")
    return [stream[i:i + 11] for i in range(0, len(stream), 11)]


class TestLiveRegime:
    """Session, aggregation and log round trip together."""

    def test_sweep_to_log(self, tmp_path, sweep_stream):
        command = sweep_command(7, "CELL", end=600, resolution=100)
        transport = ScriptedTransport(sweep_stream)
        progress = []
        session = RegimeSession(
            transport,
            poll_timeout=0.01,
            progress_callback=lambda seen, expected, fraction: progress.append(seen),
        )

        result = session.run(command, lambda c: True)

        assert session.state == SessionState.COMPLETE
        assert transport.sent == [b"TEST 7 0.0 600.0 100.0;", b"START 7;"]
        assert progress == [1, 2, 3]
        assert result.sub_ids() == [0, 1, 2]

        curve = result.curve()
        assert [p.voltage for p in curve] == [0.0, 300.0, 600.0]
        assert curve[1].power == pytest.approx(300.0 * 1.2)
        assert curve[2].irradiance == 1000.0

        path = write_log(tmp_path / "regime_7.log", [result])
        assert path.read_text().splitlines()[0] == LOG_HEADER

        reloaded = read_log(path)
        assert len(reloaded) == 1
        assert reloaded[0].command_packet == result.command_packet
        assert reloaded[0].data_packets == result.data_packets

    def test_two_regimes_on_one_link(self, tmp_path):
        transport = ScriptedTransport([
            b"DATA 1 0 0 0.0;DATA 1 0 1 1.0;END 1;",
            b"DATA 2 0 0 0.0;DATA 2 0 2 30.0;END 2;",
        ])
        first = RegimeSession(transport, poll_timeout=0.01).run(
            sweep_command(1, "CELL"), lambda c: True
        )
        second = RegimeSession(transport, poll_timeout=0.01).run(
            sweep_command(2, "MODULE"), lambda c: True
        )

        assert [p.kind for p in second.data_packets] == [
            MeasurementKind.VOLTAGE, MeasurementKind.TEMPERATURE,
        ]

        path = write_log(tmp_path / "both.log", [first, second])
        assert [r.regime_id for r in read_log(path)] == [1, 2]
