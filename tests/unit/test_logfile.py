"""
Unit tests for log file reading and writing.
"""

import pytest

from pv_curve_tracer.protocol.constants import LOG_HEADER, MeasurementKind
from pv_curve_tracer.protocol.exceptions import InvalidHeaderError
from pv_curve_tracer.protocol.logfile import (
    parse_log_lines, read_log, render_log, write_log,
)
from pv_curve_tracer.protocol.packet import CommandPacket, DataPacket
from pv_curve_tracer.protocol.regime import PacketSet


class TestParseLog:
    """Tests for offline replay."""

    def test_two_regimes(self, log_text):
        regimes = parse_log_lines(log_text.splitlines())
        assert [r.regime_id for r in regimes] == [1, 2]
        assert len(regimes[0]) == 5
        assert len(regimes[1]) == 2

    def test_corrupt_line_skipped(self, log_text):
        regimes = parse_log_lines(log_text.splitlines())
        kinds = [p.kind for p in regimes[0].data_packets]
        assert kinds == [
            MeasurementKind.VOLTAGE, MeasurementKind.CURRENT,
            MeasurementKind.VOLTAGE, MeasurementKind.CURRENT,
            MeasurementKind.TEMPERATURE,
        ]

    def test_end_not_required(self):
        regimes = parse_log_lines([LOG_HEADER, "TEST 3 0 600 1", "DATA 3 0 0 0.5"])
        assert len(regimes) == 1
        assert len(regimes[0]) == 1

    def test_trailing_newlines_accepted(self, log_text):
        lines = log_text.splitlines(keepends=True)
        assert len(parse_log_lines(lines)) == 2

    def test_blank_lines_ignored(self):
        regimes = parse_log_lines([LOG_HEADER, "", "TEST 3 0 600 1", "   "])
        assert len(regimes) == 1

    def test_wrong_header_rejected(self):
        with pytest.raises(InvalidHeaderError) as excinfo:
            parse_log_lines(["Curve Tracer Log V0.0.9", "TEST 1 0 600 1"])
        assert excinfo.value.found == "Curve Tracer Log V0.0.9"

    def test_missing_header_rejected(self):
        with pytest.raises(InvalidHeaderError):
            parse_log_lines(["TEST 1 0 600 1", "DATA 1 0 0 1.0"])

    def test_empty_input_rejected(self):
        with pytest.raises(InvalidHeaderError) as excinfo:
            parse_log_lines([])
        assert excinfo.value.found is None


class TestRenderLog:
    """Tests for log file rendering."""

    def test_layout(self):
        regime = PacketSet(CommandPacket.test(4, 0, 600, 300))
        regime.add(DataPacket(4, 0, MeasurementKind.VOLTAGE, 0.0))
        assert render_log([regime]).splitlines() == [
            LOG_HEADER,
            "TEST 4 0.0 600.0 300.0",
            "START 4",
            "DATA 4 0 0 0.0",
            "END 4",
        ]

    def test_no_regimes(self):
        assert render_log([]) == LOG_HEADER + "\n"


class TestFileIO:
    """Tests for reading and writing files."""

    def test_write_then_read(self, tmp_path, log_text):
        regimes = parse_log_lines(log_text.splitlines())
        path = write_log(tmp_path / "regimes.log", regimes)

        reloaded = read_log(path)
        assert [r.command_packet for r in reloaded] == [r.command_packet for r in regimes]
        assert [r.data_packets for r in reloaded] == [r.data_packets for r in regimes]

    def test_read_string_path(self, tmp_path, log_text):
        path = tmp_path / "regimes.log"
        path.write_text(log_text)
        assert len(read_log(str(path))) == 2

    def test_read_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_log(tmp_path / "missing.log")

    def test_read_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_log(tmp_path)

    def test_read_bad_header(self, tmp_path):
        path = tmp_path / "bad.log"
        path.write_text("not a log\nTEST 1 0 600 1\n")
        with pytest.raises(InvalidHeaderError):
            read_log(path)
