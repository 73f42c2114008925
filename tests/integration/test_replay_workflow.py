"""
Integration tests for offline replay of board captures and log files.
"""

import pytest

from pv_curve_tracer.protocol import (
    InvalidHeaderError, LineReassembler, PacketAggregator, PacketCommand,
    parse_packet, read_log, render_packet,
)


class TestCaptureReplay:
    """Raw serial captures fed through reassembly and aggregation."""

    def test_capture_with_host_commands(self, regime_lines):
        capture = ";".join(regime_lines).encode("ascii") + b";"
        reassembler = LineReassembler()
        aggregator = PacketAggregator()

        for i in range(0, len(capture), 5):
            aggregator.feed_lines(reassembler.feed(capture[i:i + 5]))

        assert reassembler.pending == b""
        assert aggregator.is_started(1)
        assert aggregator.is_ended(1)
        packet_set = aggregator.get(1)
        assert packet_set.expected_groups == 601
        assert [p.power for p in packet_set.curve()] == [0.0, pytest.approx(0.1)]

    def test_capture_cut_mid_record(self, regime_lines):
        capture = ";".join(regime_lines[:5]).encode("ascii")
        reassembler = LineReassembler()
        aggregator = PacketAggregator()

        aggregator.feed_lines(reassembler.feed(capture))
        assert len(aggregator.get(1)) == 2

        aggregator.feed_lines(reassembler.flush())
        assert len(aggregator.get(1)) == 3
        assert not aggregator.is_ended(1)

    def test_lines_render_back(self, regime_lines):
        for line in regime_lines:
            packet = parse_packet(line)
            assert parse_packet(render_packet(packet)) == packet


class TestLogReplay:
    """Log files read from disk."""

    def test_log_with_corrupt_line(self, tmp_path, log_text):
        path = tmp_path / "regimes.log"
        path.write_text(log_text)

        first, second = read_log(path)

        assert first.command_packet.command == PacketCommand.TEST
        assert len(first) == 5
        assert [p.voltage for p in first.curve()] == [0.0, 100.0]
        assert first.curve()[1].temperature == 25.0
        assert second.command_packet.voltage_resolution == 1000.0
        assert second.curve()[0].irradiance == 950.0

    def test_crlf_log(self, tmp_path, log_text):
        path = tmp_path / "windows.log"
        path.write_bytes(log_text.replace("\n", "\r\n").encode("ascii"))
        assert [r.regime_id for r in read_log(path)] == [1, 2]

    def test_header_only(self, tmp_path, log_text):
        path = tmp_path / "empty.log"
        path.write_text(log_text.splitlines()[0] + "\n")
        assert read_log(path) == []

    def test_empty_file(self, tmp_path):
        path = tmp_path / "blank.log"
        path.write_text("")
        with pytest.raises(InvalidHeaderError):
            read_log(path)
