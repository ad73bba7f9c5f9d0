"""CRC-16 calculation for Mercury protocol frames."""


def calculate_crc16(data: bytes) -> int:
    """
    Calculate CRC-16 for Mercury protocol.

    This is the Modbus RTU CRC (reflected polynomial 0xA001, initial value
    0xFFFF). The meter expects the result in frames low byte first.

    Args:
        data: Bytes to calculate CRC over

    Returns:
        16-bit CRC value

    Example:
        >>> hex(calculate_crc16(b'\\x01\\x03\\x00\\x00\\x00\\x01'))
        '0xa84'
    """
    crc = 0xFFFF

    for byte in data:
        crc ^= byte
        for _ in range(8):
            if crc & 0x0001:
                crc = (crc >> 1) ^ 0xA001
            else:
                crc >>= 1

    return crc


def verify_crc16(data: bytes, expected_crc: int) -> bool:
    """
    Verify CRC-16 matches expected value.

    Args:
        data: Data bytes (excluding CRC)
        expected_crc: Expected CRC value

    Returns:
        True if CRC matches, False otherwise
    """
    calculated = calculate_crc16(data)
    return calculated == expected_crc
