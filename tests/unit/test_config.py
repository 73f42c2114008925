"""
Unit tests for sweep presets.
"""

import pytest

from pv_curve_tracer.config import SWEEP_PRESETS, sweep_command
from pv_curve_tracer.protocol.constants import PacketCommand
from pv_curve_tracer.protocol.exceptions import ValidationError


class TestSweepCommand:
    """Tests for sweep_command()"""

    def test_cell_defaults(self):
        command = sweep_command(1, "CELL")
        assert command.command == PacketCommand.TEST
        assert command.params == (0.0, 600.0, 1.0)
        assert command.expected_groups == 601

    def test_mode_case_insensitive(self):
        assert sweep_command(2, "module").voltage_end == 6000.0

    def test_explicit_values(self):
        command = sweep_command(3, "ARRAY", start=1000, end=50000, resolution=500)
        assert command.params == (1000.0, 50000.0, 500.0)

    def test_unknown_mode(self):
        with pytest.raises(ValidationError):
            sweep_command(1, "STRING")

    def test_end_out_of_range(self):
        with pytest.raises(ValidationError):
            sweep_command(1, "CELL", end=700)

    def test_resolution_out_of_range(self):
        with pytest.raises(ValidationError):
            sweep_command(1, "CELL", resolution=200)

    def test_start_above_end(self):
        with pytest.raises(ValidationError):
            sweep_command(1, "CELL", start=500, end=100)

    def test_presets_ordered_by_range(self):
        ranges = [p["max_voltage"] for p in SWEEP_PRESETS.values()]
        assert ranges == sorted(ranges)
