"""Session controller for Mercury meter communication.

Drives one complete exchange with the meter: channel test, channel open,
the fixed series of quantity reads, and channel close. Every request is
sent once and must be answered before the next one goes out.
"""

import logging
import time
from enum import Enum
from typing import Protocol

from mercury_meter.core.models import MeterReading, PhaseValues, PhaseValuesWithSum
from mercury_meter.protocol.codec import decode_values
from mercury_meter.protocol.constants import (
    CHANNEL_TIMEOUT,
    DEFAULT_ACCESS_LEVEL,
    DEFAULT_ADDRESS,
    DEFAULT_PASSWORD,
    INTER_COMMAND_DELAY,
    READ_BUFFER_SIZE,
    RESULT_DESCRIPTIONS,
    SCALE_ANGLE,
    SCALE_CURRENT,
    SCALE_ENERGY,
    SCALE_FREQUENCY,
    SCALE_POWER,
    SCALE_POWER_FACTOR,
    SCALE_VOLTAGE,
    Bwri,
    PowerPeriod,
    ResponseShape,
    ResultCode,
)
from mercury_meter.protocol.frames import (
    Frame,
    build_init_request,
    build_probe_request,
    build_read_energy_request,
    build_read_param_request,
    build_terminate_request,
    format_frame,
    validate_response,
)

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Byte stream the session talks through."""

    def write(self, data: bytes) -> int: ...

    def read_with_timeout(self, max_bytes: int, timeout: float) -> bytes: ...

    def close(self) -> None: ...


class SessionState(Enum):
    """Lifecycle of a meter session."""

    DISCONNECTED = "disconnected"
    CHANNEL_OK = "channel_ok"
    INITIALIZED = "initialized"
    QUERYING = "querying"
    TERMINATED = "terminated"
    ABORTED = "aborted"


class MeterError(Exception):
    """A request failed and the session was aborted.

    Attributes:
        step: Human readable name of the failed step.
        code: Outcome of the failed request.
    """

    def __init__(self, step: str, code: ResultCode):
        self.step = step
        self.code = code
        super().__init__(f"{step} failed: {RESULT_DESCRIPTIONS.get(code, code.name)} ({code.name})")


class MeterSession:
    """Runs the query sequence against a single meter.

    The session owns its transport: ``run()`` closes it on every exit path,
    exactly once.
    """

    def __init__(
        self,
        connection: Transport,
        address: int = DEFAULT_ADDRESS,
        access_level: int = DEFAULT_ACCESS_LEVEL,
        password: bytes = DEFAULT_PASSWORD,
        channel_timeout: float = CHANNEL_TIMEOUT,
        inter_command_delay: float = INTER_COMMAND_DELAY,
        debug: bool = False,
    ):
        """Initialize meter session.

        Args:
            connection: Open transport to the meter.
            address: Meter RS-485 address.
            access_level: Access level sent with the channel open request.
            password: 6-byte password sent with the channel open request.
            channel_timeout: Seconds to wait for each response.
            inter_command_delay: Seconds to pause after each request.
            debug: Log every frame sent and received in hex.
        """
        self._connection = connection
        self._address = address
        self._access_level = access_level
        self._password = bytes(password)
        self._channel_timeout = channel_timeout
        self._inter_command_delay = inter_command_delay
        self._debug = debug

        self._state = SessionState.DISCONNECTED
        self._released = False

    @property
    def state(self) -> SessionState:
        """Current session state."""
        return self._state

    @property
    def released(self) -> bool:
        """Whether the transport has been closed."""
        return self._released

    def run(self) -> MeterReading:
        """Collect a complete reading from the meter.

        Returns:
            The reading. If the meter does not answer the channel test, an
            all-zero reading with ``online=False``.

        Raises:
            MeterError: On any other failed request.
        """
        try:
            return self._run()
        except Exception:
            self._state = SessionState.ABORTED
            raise
        finally:
            self._release()

    def _run(self) -> MeterReading:
        result = self.check_channel()
        if result == ResultCode.CHANNEL_TIMEOUT:
            logger.warning("Meter at address %d did not answer, reporting zero values", self._address)
            return MeterReading.offline()
        self._expect_ok("Channel test", result)
        self._state = SessionState.CHANNEL_OK

        self._expect_ok("Connection initialisation", self.open_channel())
        self._state = SessionState.INITIALIZED

        self._state = SessionState.QUERYING
        reading = MeterReading(
            voltage=self.read_voltage(),
            current=self.read_current(),
            power_factor=self.read_power_factor(),
            frequency=self.read_frequency(),
            phase_angles=self.read_phase_angles(),
            active_power=self.read_active_power(),
            reactive_power=self.read_reactive_power(),
            energy_from_reset=self.read_energy(PowerPeriod.RESET),
            energy_yesterday=self.read_energy(PowerPeriod.YESTERDAY),
            energy_today=self.read_energy(PowerPeriod.TODAY),
        )

        self._expect_ok("Connection closing", self.close_channel())
        self._state = SessionState.TERMINATED
        logger.info("Reading from meter at address %d complete", self._address)

        return reading

    def _release(self) -> None:
        if self._released:
            return
        self._released = True
        self._connection.close()

    def _expect_ok(self, step: str, result: ResultCode) -> None:
        if result != ResultCode.OK:
            logger.error("%s failed: %s", step, result.name)
            raise MeterError(step, result)

    # -- exchange --------------------------------------------------------------

    def _dump(self, direction: str, data: bytes) -> None:
        if self._debug:
            logger.debug("%s %d bytes: %s", direction, len(data), format_frame(data))

    def exchange(self, request: bytes) -> bytes:
        """Send a request and wait for the answer.

        Args:
            request: Complete request frame.

        Returns:
            Received bytes, b"" if the meter stayed silent for the channel
            timeout.
        """
        self._dump("Sent", request)
        self._connection.write(request)
        time.sleep(self._inter_command_delay)

        response = self._connection.read_with_timeout(READ_BUFFER_SIZE, self._channel_timeout)
        if response:
            self._dump("Received", response)
        else:
            logger.debug("No response within %.1fs", self._channel_timeout)
        return response

    def _request(self, request: bytes, shape: ResponseShape) -> tuple[ResultCode, bytes]:
        response = self.exchange(request)
        if not response:
            return ResultCode.CHANNEL_TIMEOUT, b""
        return validate_response(response, shape), response

    def _query(self, step: str, request: bytes, shape: ResponseShape) -> bytes:
        """Send a read request and return the validated payload."""
        result, response = self._request(request, shape)
        self._expect_ok(step, result)
        return Frame.from_bytes(response, shape).payload

    # -- channel control -------------------------------------------------------

    def check_channel(self) -> ResultCode:
        """Send the channel test request."""
        result, _ = self._request(build_probe_request(self._address), ResponseShape.STATUS)
        return result

    def open_channel(self) -> ResultCode:
        """Open the channel with the configured access level and password."""
        request = build_init_request(self._address, self._access_level, self._password)
        result, _ = self._request(request, ResponseShape.STATUS)
        return result

    def close_channel(self) -> ResultCode:
        """Close the channel."""
        result, _ = self._request(build_terminate_request(self._address), ResponseShape.STATUS)
        return result

    # -- quantities ------------------------------------------------------------

    def _read_phases(self, step: str, bwri: Bwri, scale: float) -> PhaseValues:
        payload = self._query(step, build_read_param_request(self._address, bwri), ResponseShape.PHASES)
        return PhaseValues.from_list(decode_values(payload, 3, scale))

    def _read_phases_with_sum(self, step: str, bwri: Bwri, scale: float) -> PhaseValuesWithSum:
        payload = self._query(step, build_read_param_request(self._address, bwri), ResponseShape.SUM_PHASES)
        return PhaseValuesWithSum.from_list(decode_values(payload, 3, scale))

    def read_voltage(self) -> PhaseValues:
        """Voltage by phases, V."""
        return self._read_phases("Voltage read", Bwri.VOLTAGE, SCALE_VOLTAGE)

    def read_current(self) -> PhaseValues:
        """Current by phases, A."""
        return self._read_phases("Current read", Bwri.CURRENT, SCALE_CURRENT)

    def read_power_factor(self) -> PhaseValuesWithSum:
        """Power factor cos(f) by phases and total."""
        return self._read_phases_with_sum("Power factor read", Bwri.POWER_FACTOR, SCALE_POWER_FACTOR)

    def read_frequency(self) -> float:
        """Grid frequency, Hz."""
        request = build_read_param_request(self._address, Bwri.FREQUENCY)
        payload = self._query("Frequency read", request, ResponseShape.SCALAR)
        return decode_values(payload, 3, SCALE_FREQUENCY)[0]

    def read_phase_angles(self) -> PhaseValues:
        """Angles between phases, degrees."""
        return self._read_phases("Phase angle read", Bwri.PHASE_ANGLE, SCALE_ANGLE)

    def read_active_power(self) -> PhaseValuesWithSum:
        """Active power by phases and total, W."""
        return self._read_phases_with_sum("Active power read", Bwri.ACTIVE_POWER, SCALE_POWER)

    def read_reactive_power(self) -> PhaseValuesWithSum:
        """Reactive power by phases and total, VA."""
        return self._read_phases_with_sum("Reactive power read", Bwri.REACTIVE_POWER, SCALE_POWER)

    def read_energy(self, period: PowerPeriod, month: int = 0, tariff: int = 0) -> PhaseValuesWithSum:
        """Energy counters by phases and total for a period, kWh.

        Args:
            period: Accumulation period.
            month: Month number for PowerPeriod.MONTH.
            tariff: 0 for all tariffs, otherwise tariff number.
        """
        request = build_read_energy_request(self._address, period, month, tariff)
        payload = self._query(f"Energy counter read ({period.name.lower()})", request, ResponseShape.SUM_PHASES_WIDE)
        return PhaseValuesWithSum.from_list(decode_values(payload, 4, SCALE_ENERGY))
