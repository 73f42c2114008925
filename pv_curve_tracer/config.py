"""
Configuration constants for the curve tracer host.

Serial settings, session timing and the sweep ranges the board supports
for each rotary switch position are kept here instead of in the code that
uses them.
"""

from typing import Any, Dict, Optional

from .protocol.exceptions import ValidationError
from .protocol.packet import CommandPacket


# Serial link to the board
SERIAL_CONFIG: Dict[str, Any] = {
    # None picks the last enumerated port
    "port": None,
    "baudrate": 28800,
    # Default receive timeout in seconds
    "timeout": 1.0,
    # Background reader timeout in seconds
    "read_timeout": 0.1,
}


# Live regime collection
SESSION_CONFIG: Dict[str, Any] = {
    # Receive timeout per poll; also the cancel check interval
    "poll_timeout": 0.1,
    # Operator answer that starts a regime
    "confirm_answer": "Y",
}


# Sweep ranges per board mode, all in mV
SWEEP_PRESETS: Dict[str, Dict[str, float]] = {
    "CELL": {
        "min_voltage": 0.0,
        "max_voltage": 600.0,
        "min_resolution": 1.0,
        "max_resolution": 100.0,
        "default_resolution": 1.0,
    },
    "MODULE": {
        "min_voltage": 0.0,
        "max_voltage": 6000.0,
        "min_resolution": 1.0,
        "max_resolution": 1000.0,
        "default_resolution": 1.0,
    },
    "ARRAY": {
        "min_voltage": 0.0,
        "max_voltage": 100000.0,
        "min_resolution": 1.0,
        "max_resolution": 10000.0,
        "default_resolution": 1.0,
    },
}


def sweep_command(
    regime_id: int,
    mode: str,
    start: Optional[float] = None,
    end: Optional[float] = None,
    resolution: Optional[float] = None,
) -> CommandPacket:
    """
    Build a validated TEST command for a board mode.

    Unset values fall back to the mode's full range and default resolution.

    Raises:
        ValidationError: If the mode is unknown or a value is out of range
    """
    preset = SWEEP_PRESETS.get(mode.upper())
    if preset is None:
        raise ValidationError(
            f"Unknown mode {mode!r}, expected one of {', '.join(SWEEP_PRESETS)}"
        )

    start = preset["min_voltage"] if start is None else start
    end = preset["max_voltage"] if end is None else end
    resolution = preset["default_resolution"] if resolution is None else resolution

    for name, value in (("start", start), ("end", end)):
        if not preset["min_voltage"] <= value <= preset["max_voltage"]:
            raise ValidationError(
                f"{mode.upper()} {name} voltage {value} mV outside "
                f"[{preset['min_voltage']}, {preset['max_voltage']}] mV"
            )
    if not preset["min_resolution"] <= resolution <= preset["max_resolution"]:
        raise ValidationError(
            f"{mode.upper()} resolution {resolution} mV outside "
            f"[{preset['min_resolution']}, {preset['max_resolution']}] mV"
        )

    command = CommandPacket.test(regime_id, start, end, resolution)
    command.validate()
    return command
