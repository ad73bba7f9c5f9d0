"""Protocol constants for Mercury meter communication."""

from enum import Enum, IntEnum

# ============================================================================
# Frame Structure
# ============================================================================

CRC_LEN = 2
HEADER_LEN = 1  # address byte preceding every response payload

# ============================================================================
# Addresses and Credentials
# ============================================================================

DEFAULT_ADDRESS = 0  # RS-485 address of the meter
DEFAULT_ACCESS_LEVEL = 0x01  # user level
DEFAULT_PASSWORD = b"\x01\x01\x01\x01\x01\x01"
PASSWORD_LEN = 6

# ============================================================================
# Command Codes
# ============================================================================


class Command(IntEnum):
    """Request command codes."""

    TEST_CHANNEL = 0x00
    OPEN_CHANNEL = 0x01
    CLOSE_CHANNEL = 0x02
    READ_ENERGY = 0x05
    READ_PARAM = 0x08


# Parameter number for auxiliary (instantaneous) values
AUX_PARAM_ID = 0x16


class Bwri(IntEnum):
    """Sub-selector choosing the quantity of an auxiliary read."""

    ACTIVE_POWER = 0x00
    REACTIVE_POWER = 0x08
    VOLTAGE = 0x11
    CURRENT = 0x21
    POWER_FACTOR = 0x30
    FREQUENCY = 0x40
    PHASE_ANGLE = 0x51


class PowerPeriod(IntEnum):
    """Accumulation period of an energy counter read."""

    RESET = 0  # since reset
    THIS_YEAR = 1
    LAST_YEAR = 2
    MONTH = 3  # month given separately
    TODAY = 4
    YESTERDAY = 5


# ============================================================================
# Result Codes
# ============================================================================


class ResultCode(IntEnum):
    """Outcome of a request.

    Values 0-5 are device status codes carried in the low nibble of a
    1-byte response. Values from 256 are detected locally.
    """

    OK = 0
    ILLEGAL_COMMAND = 1
    INTERNAL_COUNTER_ERROR = 2
    PERMISSION_DENIED = 3
    CLOCK_ALREADY_CORRECTED = 4
    CHANNEL_NOT_OPEN = 5
    WRONG_SIZE = 256
    WRONG_CHECKSUM = 257
    CHANNEL_TIMEOUT = 258
    UNKNOWN_STATUS = 259


RESULT_DESCRIPTIONS = {
    ResultCode.OK: "ok",
    ResultCode.ILLEGAL_COMMAND: "illegal command or parameter",
    ResultCode.INTERNAL_COUNTER_ERROR: "internal counter error",
    ResultCode.PERMISSION_DENIED: "permission denied",
    ResultCode.CLOCK_ALREADY_CORRECTED: "clock already corrected today",
    ResultCode.CHANNEL_NOT_OPEN: "communication channel is not open",
    ResultCode.WRONG_SIZE: "wrong response size",
    ResultCode.WRONG_CHECKSUM: "wrong response checksum",
    ResultCode.CHANNEL_TIMEOUT: "communication channel timeout",
    ResultCode.UNKNOWN_STATUS: "unknown device status",
}

# ============================================================================
# Response Shapes
# ============================================================================


class ResponseShape(Enum):
    """Expected layout of a response frame."""

    STATUS = "status"  # address, status, crc
    SCALAR = "scalar"  # address, value[3], crc
    PHASES = "phases"  # address, 3 x value[3], crc
    SUM_PHASES = "sum_phases"  # address, sum[3], 3 x value[3], crc
    SUM_PHASES_WIDE = "sum_phases_wide"  # address, sum[4], 3 x value[4], crc


# Total frame size in bytes, address and checksum included
RESPONSE_SIZES = {
    ResponseShape.STATUS: 4,
    ResponseShape.SCALAR: 6,
    ResponseShape.PHASES: 12,
    ResponseShape.SUM_PHASES: 15,
    ResponseShape.SUM_PHASES_WIDE: 19,
}

# ============================================================================
# Scale Factors
# ============================================================================

SCALE_VOLTAGE = 100.0
SCALE_FREQUENCY = 100.0
SCALE_ANGLE = 100.0
SCALE_CURRENT = 1000.0
SCALE_POWER_FACTOR = 1000.0
SCALE_POWER = 1000.0
SCALE_ENERGY = 1000.0

# ============================================================================
# Communication Settings
# ============================================================================

SERIAL_BAUD = 9600
CHANNEL_TIMEOUT = 2.0  # Response wait (seconds)
INTER_COMMAND_DELAY = 0.05  # Device turnaround after each request (seconds)
READ_BUFFER_SIZE = 255
