"""Command line entry point: read the meter once and print the values."""

import argparse
import logging
import sys

from pydantic import ValidationError

from mercury_meter import __version__
from mercury_meter.core.config import Settings, setup_logging
from mercury_meter.core.models import MeterReading, PhaseValues, PhaseValuesWithSum
from mercury_meter.protocol.handler import MeterError, MeterSession
from mercury_meter.serial.connection import SerialConnection

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAIL = 1


def _row(label: str, values: PhaseValues) -> str:
    line = f"{label:<9}{values.p1:8.2f} {values.p2:8.2f} {values.p3:8.2f}"
    if isinstance(values, PhaseValuesWithSum):
        line += f" ({values.total:8.2f})"
    return line


def format_reading(reading: MeterReading) -> str:
    """Render a reading as the classic fixed-width table."""
    lines = [
        _row("U (V):", reading.voltage),
        _row("I (A):", reading.current),
        _row("Cos(f):", reading.power_factor),
        f"{'F (Hz):':<9}{reading.frequency:8.2f}",
        _row("A (deg):", reading.phase_angles),
        _row("P (W):", reading.active_power),
        _row("S (VA):", reading.reactive_power),
        _row("PR (KW):", reading.energy_from_reset),
        _row("PY (KW):", reading.energy_yesterday),
        _row("PT (KW):", reading.energy_today),
    ]
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mercury-meter",
        description="Read voltage, current, power and energy counters from a Mercury 230/236 meter",
    )
    parser.add_argument("--debug", action="store_true", help="print every frame sent and received")
    parser.add_argument("--port", help="serial port (default: MERCURY_SERIAL_PORT or /dev/ttyUSB0)")
    parser.add_argument("--json", action="store_true", help="print the reading as JSON")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def run(settings: Settings, debug: bool = False) -> MeterReading:
    """Open the port and collect one reading.

    Raises:
        ConnectionError: If the port cannot be used.
        MeterError: If the meter rejects or garbles a request.
    """
    connection = SerialConnection(
        port=settings.serial_port,
        baudrate=settings.serial_baud,
        timeout=settings.channel_timeout,
    )
    connection.open()

    session = MeterSession(
        connection,
        address=settings.device_address,
        access_level=settings.access_level,
        password=settings.password_bytes,
        channel_timeout=settings.channel_timeout,
        inter_command_delay=settings.inter_command_delay,
        debug=debug,
    )
    return session.run()


def main(argv: list[str] | None = None) -> int:
    """Run the application (for CLI entry point)."""
    args = build_parser().parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as e:
        setup_logging("DEBUG" if args.debug else "INFO")
        logger.error("Invalid configuration: %s", e)
        return EXIT_FAIL

    if args.port:
        settings.serial_port = args.port

    setup_logging("DEBUG" if args.debug else settings.log_level)

    try:
        reading = run(settings, debug=args.debug)
    except MeterError as e:
        logger.error("Power meter communication failed: %s", e)
        return EXIT_FAIL
    except ConnectionError as e:
        logger.error("Serial port error: %s", e)
        return EXIT_FAIL

    if args.json:
        print(reading.model_dump_json(indent=2))
    else:
        print(format_reading(reading))

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
