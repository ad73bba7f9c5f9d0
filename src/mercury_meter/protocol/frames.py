"""Frame construction and validation for Mercury protocol."""

import struct

from mercury_meter.protocol.constants import (
    AUX_PARAM_ID,
    CRC_LEN,
    HEADER_LEN,
    PASSWORD_LEN,
    RESPONSE_SIZES,
    Command,
    PowerPeriod,
    ResponseShape,
    ResultCode,
)
from mercury_meter.protocol.crc import calculate_crc16


class Frame:
    """
    Represents a Mercury protocol frame.

    Frame structure:
    [ADDR][CMD][DATA...][CRC_L][CRC_H]

    Responses carry no command byte of their own; for them ``command`` is the
    first byte after the address (the status for 1-byte responses) and is
    also the first byte of ``data``. Use ``payload`` for response contents.

    Attributes:
        address: Meter address (8-bit)
        command: Command byte
        data: Payload following the command byte
    """

    def __init__(self, address: int, command: int, data: bytes = b""):
        """
        Initialize a frame.

        Args:
            address: Meter address (0-255)
            command: Command byte (0-255)
            data: Optional payload data
        """
        self.address = address
        self.command = command
        self.data = data

    def to_bytes(self) -> bytes:
        """
        Convert frame to bytes for transmission.

        Returns:
            Complete frame as bytes

        Example:
            >>> Frame(address=0, command=0x00).to_bytes().hex()
            '000001b0'
        """
        frame = bytearray()
        frame.append(self.address)
        frame.append(self.command)

        if self.data:
            frame.extend(self.data)

        # CRC over everything so far, low byte first
        frame.extend(struct.pack("<H", calculate_crc16(bytes(frame))))

        return bytes(frame)

    @classmethod
    def from_bytes(cls, data: bytes, shape: ResponseShape) -> "Frame":
        """
        Parse a response frame of a known shape.

        Args:
            data: Raw frame bytes
            shape: Expected response shape

        Returns:
            Parsed Frame object

        Raises:
            ValueError: If the frame fails size or CRC validation
        """
        result = validate_response(data, shape)
        if result in (ResultCode.WRONG_SIZE, ResultCode.WRONG_CHECKSUM):
            raise ValueError(f"Invalid {shape.value} response: {format_frame(data)}")

        return cls(address=data[0], command=data[1], data=bytes(data[2:-CRC_LEN]))

    @property
    def payload(self) -> bytes:
        """All bytes between address and CRC."""
        return bytes([self.command]) + self.data

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"Frame(addr={self.address}, cmd=0x{self.command:02X}, data_len={len(self.data)})"


def format_frame(data: bytes) -> str:
    """Format bytes as space separated uppercase hex."""
    return " ".join(f"{b:02X}" for b in data)


def validate_response(data: bytes, shape: ResponseShape) -> ResultCode:
    """Check a received buffer against the response shape of the last request.

    Args:
        data: Received bytes.
        shape: Shape expected for the issued command.

    Returns:
        WRONG_SIZE or WRONG_CHECKSUM for structural errors. For STATUS
        responses the device status from the low nibble of the status byte,
        otherwise OK.
    """
    if len(data) != RESPONSE_SIZES[shape]:
        return ResultCode.WRONG_SIZE

    expected_crc = struct.unpack("<H", data[-CRC_LEN:])[0]
    if calculate_crc16(data[:-CRC_LEN]) != expected_crc:
        return ResultCode.WRONG_CHECKSUM

    if shape is ResponseShape.STATUS:
        status = data[HEADER_LEN] & 0x0F
        try:
            return ResultCode(status)
        except ValueError:
            return ResultCode.UNKNOWN_STATUS

    return ResultCode.OK


# ============================================================================
# Request Builders
# ============================================================================


def build_probe_request(address: int) -> bytes:
    """Build the channel test request."""
    return Frame(address=address, command=Command.TEST_CHANNEL).to_bytes()


def build_init_request(address: int, access_level: int, password: bytes) -> bytes:
    """Build the channel open request.

    Args:
        address: Meter address.
        access_level: 1 for user, 2 for administrator.
        password: 6-byte password.

    Returns:
        Request frame bytes.

    Raises:
        ValueError: If password is not 6 bytes.
    """
    if len(password) != PASSWORD_LEN:
        raise ValueError(f"Password must be {PASSWORD_LEN} bytes, got {len(password)}")

    data = bytes([access_level]) + bytes(password)
    return Frame(address=address, command=Command.OPEN_CHANNEL, data=data).to_bytes()


def build_terminate_request(address: int) -> bytes:
    """Build the channel close request."""
    return Frame(address=address, command=Command.CLOSE_CHANNEL).to_bytes()


def build_read_param_request(address: int, bwri: int, param_id: int = AUX_PARAM_ID) -> bytes:
    """Build an auxiliary parameter read request.

    Args:
        address: Meter address.
        bwri: Quantity selector.
        param_id: Parameter number.

    Returns:
        Request frame bytes.
    """
    return Frame(address=address, command=Command.READ_PARAM, data=bytes([param_id, bwri])).to_bytes()


def build_read_energy_request(address: int, period: PowerPeriod, month: int = 0, tariff: int = 0) -> bytes:
    """Build an energy counter read request.

    Args:
        address: Meter address.
        period: Accumulation period.
        month: Month number (1-12), used with PowerPeriod.MONTH.
        tariff: 0 for the sum of all tariffs, otherwise tariff number.

    Returns:
        Request frame bytes.
    """
    param_id = ((int(period) << 4) | (month & 0x0F)) & 0xFF
    return Frame(address=address, command=Command.READ_ENERGY, data=bytes([param_id, tariff])).to_bytes()
