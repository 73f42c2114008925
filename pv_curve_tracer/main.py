#!/usr/bin/env python3
"""
PV Curve Tracer - CLI Entry Point

Usage:
    python -m pv_curve_tracer replay logs/regime_1.log
    python -m pv_curve_tracer run --mode CELL --id 1 --out logs/regime_1.log
    python -m pv_curve_tracer run --mode MODULE --start 0 --end 4000 --resolution 10
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import SERIAL_CONFIG, SESSION_CONFIG, SWEEP_PRESETS, sweep_command
from .protocol import (
    CommandPacket, PacketSet, RegimeSession, SerialTransport,
    find_port, read_log, write_log,
)
from .protocol.exceptions import AbortedError, PVProtocolError

logger = logging.getLogger(__name__)


def ask_operator(command: CommandPacket) -> bool:
    """Ask the operator to confirm the board is ready."""
    print(f"Regime {command.regime_id}: {command.voltage_start} mV to "
          f"{command.voltage_end} mV, {command.voltage_resolution} mV steps "
          f"({command.expected_groups} samples)")
    print("Rotate the rotary switch to the selected mode and connect the PV.")
    response = input("Are you ready to begin execution? (Y/abort) ")
    return response.strip() == SESSION_CONFIG["confirm_answer"]


def print_progress(seen: int, expected: int, fraction: float) -> None:
    print(f"\rReceived {seen}/{expected} samples ({fraction:.0%})", end="", flush=True)


def summarize(packet_set: PacketSet) -> str:
    """One-line description of a regime for the terminal."""
    command = packet_set.command_packet
    summary = (f"Regime {packet_set.regime_id}: "
               f"[{command.voltage_start}:{command.voltage_end}:{command.voltage_resolution}] mV, "
               f"{len(packet_set)} packets in {len(packet_set.groups())} samples")

    powers = [p.power for p in packet_set.curve() if p.power is not None]
    if powers:
        summary += f", max power {max(powers):.3f}"
    return summary


def replay(args: argparse.Namespace) -> int:
    regimes = read_log(args.log)
    for packet_set in regimes:
        print(summarize(packet_set))
    if not regimes:
        print("No regimes found.")
    return 0


def run(args: argparse.Namespace) -> int:
    command = sweep_command(
        args.id, args.mode, args.start, args.end, args.resolution
    )

    port = args.port or SERIAL_CONFIG["port"] or find_port()
    with SerialTransport(
        port,
        baudrate=args.baudrate,
        timeout=SERIAL_CONFIG["timeout"],
        read_timeout=SERIAL_CONFIG["read_timeout"],
    ) as transport:
        session = RegimeSession(
            transport,
            poll_timeout=SESSION_CONFIG["poll_timeout"],
            progress_callback=print_progress,
        )
        try:
            packet_set = session.run(command, ask_operator)
        except KeyboardInterrupt:
            session.abort("Interrupted by operator")
            print()
            logger.warning("Regime aborted, partial data discarded")
            return 130
        except AbortedError as e:
            print(f"Aborting: {e}")
            return 1
        print()

    print(summarize(packet_set))
    out = args.out or f"regime_{command.regime_id}.log"
    write_log(out, [packet_set])
    print(f"Saved to {out}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pv_curve_tracer",
        description="PV Curve Tracer command center",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    replay_parser = sub.add_parser("replay", help="summarize regimes in a log file")
    replay_parser.add_argument("log", help="log file path")
    replay_parser.set_defaults(func=replay)

    run_parser = sub.add_parser("run", help="run a regime on the board")
    run_parser.add_argument("--mode", choices=list(SWEEP_PRESETS), default="CELL")
    run_parser.add_argument("--id", type=int, default=0, help="regime id")
    run_parser.add_argument("--start", type=float, help="start voltage (mV)")
    run_parser.add_argument("--end", type=float, help="end voltage (mV)")
    run_parser.add_argument("--resolution", type=float, help="voltage step (mV)")
    run_parser.add_argument("--port", help="serial port (default: auto-detect)")
    run_parser.add_argument("--baudrate", type=int, default=SERIAL_CONFIG["baudrate"])
    run_parser.add_argument("--out", help="log file to write")
    run_parser.set_defaults(func=run)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except (PVProtocolError, OSError) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
