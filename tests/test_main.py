"""Tests for the command line entry point."""

import json
import os
from unittest.mock import MagicMock, PropertyMock, patch

import pytest

from mercury_meter.core.config import Settings
from mercury_meter.core.models import MeterReading, PhaseValues, PhaseValuesWithSum
from mercury_meter.main import EXIT_FAIL, EXIT_OK, build_parser, format_reading, main, run
from mercury_meter.protocol.constants import ResultCode
from mercury_meter.protocol.handler import MeterError

from conftest import success_script


@pytest.fixture
def reading() -> MeterReading:
    return MeterReading(
        voltage=PhaseValues(p1=230.12, p2=229.87, p3=231.05),
        active_power=PhaseValuesWithSum(total=1050.5, p1=345.1, p2=510.2, p3=195.2),
        frequency=50.01,
    )


class TestFormatReading:
    """Tests for the result table."""

    def test_rows(self, reading):
        """Every quantity has a row in the classic order."""
        lines = format_reading(reading).splitlines()

        assert [line.split(":")[0] for line in lines] == [
            "U (V)",
            "I (A)",
            "Cos(f)",
            "F (Hz)",
            "A (deg)",
            "P (W)",
            "S (VA)",
            "PR (KW)",
            "PY (KW)",
            "PT (KW)",
        ]

    def test_phase_row(self, reading):
        """Phase rows use fixed-width columns."""
        assert format_reading(reading).splitlines()[0] == "U (V):     230.12   229.87   231.05"

    def test_sum_row(self, reading):
        """Rows with a total show it in parentheses."""
        assert format_reading(reading).splitlines()[5] == "P (W):     345.10   510.20   195.20 ( 1050.50)"

    def test_frequency_row(self, reading):
        """Frequency is a single value."""
        assert format_reading(reading).splitlines()[3] == "F (Hz):     50.01"


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self):
        """No flags given."""
        args = build_parser().parse_args([])

        assert args.debug is False
        assert args.port is None
        assert args.json is False

    def test_flags(self):
        """Flags are parsed."""
        args = build_parser().parse_args(["--debug", "--port", "/dev/ttyUSB1", "--json"])

        assert args.debug is True
        assert args.port == "/dev/ttyUSB1"
        assert args.json is True

    def test_help_exits(self):
        """--help prints usage and exits cleanly."""
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--help"])

        assert exc_info.value.code == 0


class TestMain:
    """Tests for main()."""

    def test_success_prints_table(self, reading, capsys):
        """Successful run prints the table and exits 0."""
        with patch("mercury_meter.main.run", return_value=reading):
            assert main([]) == EXIT_OK

        assert "U (V):" in capsys.readouterr().out

    def test_json_output(self, reading, capsys):
        """--json prints the reading as JSON."""
        with patch("mercury_meter.main.run", return_value=reading):
            assert main(["--json"]) == EXIT_OK

        data = json.loads(capsys.readouterr().out)
        assert data["frequency"] == 50.01

    def test_port_and_debug_forwarded(self, reading):
        """--port and --debug reach the session setup."""
        with patch("mercury_meter.main.run", return_value=reading) as run:
            main(["--port", "/dev/ttyUSB3", "--debug"])

        settings = run.call_args.args[0]
        assert settings.serial_port == "/dev/ttyUSB3"
        assert run.call_args.kwargs["debug"] is True

    def test_meter_error_exits_fail(self, capsys):
        """Meter failures exit with status 1 and print no table."""
        error = MeterError("Connection initialisation", ResultCode.ILLEGAL_COMMAND)
        with patch("mercury_meter.main.run", side_effect=error):
            assert main([]) == EXIT_FAIL

        assert capsys.readouterr().out == ""

    def test_connection_error_exits_fail(self):
        """Serial port failures exit with status 1."""
        with patch("mercury_meter.main.run", side_effect=ConnectionError("Cannot open /dev/ttyUSB0")):
            assert main([]) == EXIT_FAIL

    def test_offline_meter_exits_ok(self, capsys):
        """A silent meter is not a failure."""
        with patch("mercury_meter.main.run", return_value=MeterReading.offline()):
            assert main([]) == EXIT_OK

        assert "0.00" in capsys.readouterr().out

    def test_invalid_settings_exit_fail(self):
        """A bad environment value is reported, not raised."""
        with patch.dict(os.environ, {"MERCURY_DEVICE_ADDRESS": "300"}):
            with patch("mercury_meter.main.run") as run_mock:
                assert main([]) == EXIT_FAIL

        run_mock.assert_not_called()


class TestRun:
    """Tests for run() with a mock pyserial port."""

    def _scripted_port(self, responses: list[bytes]) -> MagicMock:
        """Port answering each request: first byte, then the buffered rest."""
        port = MagicMock()
        port.is_open = True
        port.read.side_effect = [part for r in responses for part in (r[:1], r[1:])]
        type(port).in_waiting = PropertyMock(side_effect=[len(r) - 1 for r in responses])
        return port

    def test_full_reading(self):
        """Settings reach the port and the session, and the port is closed once."""
        port = self._scripted_port(success_script())
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(serial_port="/dev/ttyUSB7", inter_command_delay=0.0)

        with patch("mercury_meter.serial.connection.serial.Serial", return_value=port):
            reading = run(settings)

        assert port.port == "/dev/ttyUSB7"
        assert port.baudrate == 9600
        assert port.write.call_count == 13
        assert reading.online is True
        assert reading.voltage.p1 == pytest.approx(230.12)
        assert reading.frequency == pytest.approx(50.01)
        assert reading.energy_from_reset.total == pytest.approx(12345.678)
        assert port.close.call_count == 1

    def test_silent_meter(self):
        """No answer to the first probe gives an offline reading."""
        port = MagicMock()
        port.is_open = True
        port.read.return_value = b""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(inter_command_delay=0.0)

        with patch("mercury_meter.serial.connection.serial.Serial", return_value=port):
            reading = run(settings)

        assert reading.online is False
        assert port.write.call_count == 1
        assert port.close.call_count == 1
