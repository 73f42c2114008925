"""
Log file reading and writing.

File Format:
    <LOG_HEADER>
    TEST <id> <v_start> <v_end> <v_res>
    START <id>
    DATA <id> <subid> <kind_code> <value>
    ...
    END <id>

Replay closes every regime at end of file; END markers are not required.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Union

from .aggregator import PacketAggregator
from .constants import LOG_HEADER
from .exceptions import InvalidHeaderError
from .packet import CommandPacket, render_packet
from .regime import PacketSet

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def parse_log_lines(lines: Iterable[str]) -> List[PacketSet]:
    """
    Rebuild regimes from log file lines.

    Args:
        lines: File lines, header first (trailing newlines allowed)

    Returns:
        Regimes in the order their TEST commands appear

    Raises:
        InvalidHeaderError: If the first line is missing or not LOG_HEADER
    """
    iterator = iter(lines)
    header = next(iterator, None)
    if header is None:
        raise InvalidHeaderError(None)
    if header.strip() != LOG_HEADER:
        raise InvalidHeaderError(header.strip())

    aggregator = PacketAggregator()
    for line in iterator:
        line = line.strip()
        if not line:
            continue
        aggregator.feed_line(line)

    regimes = aggregator.regimes
    logger.info(
        f"Parsed {len(regimes)} regimes "
        f"({len(aggregator.warnings)} lines skipped, {aggregator.dropped} packets dropped)"
    )
    return regimes


def read_log(path: PathLike) -> List[PacketSet]:
    """
    Read regimes from a log file.

    Raises:
        FileNotFoundError: If path is not a file
        InvalidHeaderError: If the header line does not match
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Not a log file: {path}")

    with path.open("r", encoding="ascii", errors="replace") as f:
        return parse_log_lines(f)


def render_log(packet_sets: Iterable[PacketSet]) -> str:
    """Render regimes to log file text."""
    lines = [LOG_HEADER]
    for packet_set in packet_sets:
        regime_id = packet_set.regime_id
        lines.append(render_packet(packet_set.command_packet))
        lines.append(render_packet(CommandPacket.start(regime_id)))
        lines.extend(render_packet(p) for p in packet_set.data_packets)
        lines.append(render_packet(CommandPacket.end(regime_id)))
    return "\n".join(lines) + "\n"


def write_log(path: PathLike, packet_sets: Iterable[PacketSet]) -> Path:
    """
    Write regimes to a log file.

    Returns:
        The path written
    """
    path = Path(path)
    text = render_log(packet_sets)
    path.write_bytes(text.encode("ascii"))
    logger.info(f"Wrote log file {path}")
    return path
