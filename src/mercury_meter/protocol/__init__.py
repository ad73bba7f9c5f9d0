"""Mercury protocol implementation."""

from mercury_meter.protocol.codec import decode_3byte, decode_4byte, decode_values
from mercury_meter.protocol.constants import (
    Bwri,
    Command,
    PowerPeriod,
    ResponseShape,
    ResultCode,
)
from mercury_meter.protocol.crc import calculate_crc16, verify_crc16
from mercury_meter.protocol.frames import Frame, validate_response
from mercury_meter.protocol.handler import MeterError, MeterSession, SessionState

__all__ = [
    "Frame",
    "MeterError",
    "MeterSession",
    "SessionState",
    "calculate_crc16",
    "verify_crc16",
    "decode_3byte",
    "decode_4byte",
    "decode_values",
    "validate_response",
    "Bwri",
    "Command",
    "PowerPeriod",
    "ResponseShape",
    "ResultCode",
]
