"""
Protocol constants matching the curve tracer board firmware.

Wire format: ASCII, single-space separated fields.
- Live stream records end with ';'
- Log file records end with a newline
"""

from enum import Enum, IntEnum

# Record delimiters
DELIMITER = b";"
FIELD_SEPARATOR = " "

# Log files must start with exactly this line
LOG_HEADER = (
    "Curve Tracer Log V0.1.0. Authored by Matthew Yu. "
    "This file is property of UTSVT, 2020."
)

# Number of voltage parameters carried by a TEST command
TEST_PARAM_COUNT = 3


class PacketCommand(Enum):
    """Command packet types (Host -> Board, END also Board -> Host)."""
    START = "START"
    TEST = "TEST"
    END = "END"


# First token of a measurement line
DATA_TOKEN = "DATA"

# Token count per line shape, including the type token
PACKET_ARITY = {
    PacketCommand.START.value: 2,
    PacketCommand.END.value: 2,
    PacketCommand.TEST.value: 5,
    DATA_TOKEN: 5,
}


class MeasurementKind(IntEnum):
    """Measurement kind codes carried by DATA packets."""
    VOLTAGE = 0
    CURRENT = 1
    TEMPERATURE = 2
    IRRADIANCE = 3

    @classmethod
    def name_of(cls, code: int) -> str:
        """Get measurement name from code."""
        names = {
            cls.VOLTAGE: "Voltage",
            cls.CURRENT: "Current",
            cls.TEMPERATURE: "Temperature",
            cls.IRRADIANCE: "Irradiance",
        }
        return names.get(code, f"Unknown({code})")
