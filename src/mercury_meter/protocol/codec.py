"""Value decoding for Mercury protocol responses.

The meter packs unsigned values with a non-standard byte order:

- 3-byte values: ``[b0][b1][b2]`` -> ``b0 << 16 | b2 << 8 | b1``
- 4-byte values: ``[b0][b1][b2][b3]`` -> ``b1 << 24 | b0 << 16 | b3 << 8 | b2``

Decoded integers are divided by a per-quantity scale factor.
"""


def decode_3byte(data: bytes, scale: float) -> float:
    """
    Decode a 3-byte packed value.

    Args:
        data: Exactly 3 bytes
        scale: Divisor turning the raw integer into a physical value

    Returns:
        Scaled value

    Raises:
        ValueError: If data is not 3 bytes long

    Example:
        >>> decode_3byte(b'\\x01\\x02\\x03', 100.0)
        663.06
    """
    if len(data) != 3:
        raise ValueError(f"3-byte value expected, got {len(data)} bytes")

    raw = (data[0] << 16) | (data[2] << 8) | data[1]
    return raw / scale


def decode_4byte(data: bytes, scale: float) -> float:
    """
    Decode a 4-byte packed value (16-bit words, each with swapped bytes).

    Args:
        data: Exactly 4 bytes
        scale: Divisor turning the raw integer into a physical value

    Returns:
        Scaled value

    Raises:
        ValueError: If data is not 4 bytes long

    Example:
        >>> decode_4byte(b'\\x01\\x02\\x03\\x04', 1000.0)
        33620.995
    """
    if len(data) != 4:
        raise ValueError(f"4-byte value expected, got {len(data)} bytes")

    raw = (data[1] << 24) | (data[0] << 16) | (data[3] << 8) | data[2]
    return raw / scale


def decode_value(data: bytes, scale: float) -> float:
    """Decode a packed value, choosing the layout by its width."""
    if len(data) == 3:
        return decode_3byte(data, scale)
    elif len(data) == 4:
        return decode_4byte(data, scale)
    else:
        raise ValueError(f"Unsupported value width: {len(data)}")


def decode_values(payload: bytes, width: int, scale: float) -> list[float]:
    """
    Split a response payload into consecutive values of equal width.

    Args:
        payload: Response bytes between address and checksum
        width: Size of each value (3 or 4)
        scale: Divisor applied to every value

    Returns:
        Decoded values in wire order

    Raises:
        ValueError: If payload is not a whole number of values
    """
    if width not in (3, 4):
        raise ValueError(f"Unsupported value width: {width}")
    if not payload or len(payload) % width:
        raise ValueError(f"Payload of {len(payload)} bytes is not a multiple of {width}")

    return [decode_value(payload[i : i + width], scale) for i in range(0, len(payload), width)]
