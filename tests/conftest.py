"""Shared test fixtures."""

import pytest

from mercury_meter.protocol.frames import Frame

# Address used by all tests
TEST_ADDRESS = 0


def encode_3byte(raw: int) -> bytes:
    """Pack an integer the way the meter sends 3-byte values."""
    return bytes([(raw >> 16) & 0xFF, raw & 0xFF, (raw >> 8) & 0xFF])


def encode_4byte(raw: int) -> bytes:
    """Pack an integer the way the meter sends 4-byte values."""
    return bytes([(raw >> 16) & 0xFF, (raw >> 24) & 0xFF, raw & 0xFF, (raw >> 8) & 0xFF])


def make_response(payload: bytes, address: int = TEST_ADDRESS) -> bytes:
    """Build a response frame with a valid CRC."""
    return Frame(address=address, command=payload[0], data=payload[1:]).to_bytes()


def make_status(status: int = 0, address: int = TEST_ADDRESS) -> bytes:
    """Build a 1-byte status response."""
    return make_response(bytes([status]), address)


class FakeTransport:
    """Scripted transport: answers each read with the next queued response.

    An empty bytes object in the script stands for a timeout.
    """

    def __init__(self, responses: list[bytes] | None = None):
        self.responses = list(responses or [])
        self.written: list[bytes] = []
        self.timeouts: list[float] = []
        self.close_count = 0

    def write(self, data: bytes) -> int:
        self.written.append(bytes(data))
        return len(data)

    def read_with_timeout(self, max_bytes: int, timeout: float) -> bytes:
        self.timeouts.append(timeout)
        if not self.responses:
            return b""
        return self.responses.pop(0)[:max_bytes]

    def close(self) -> None:
        self.close_count += 1


def success_script() -> list[bytes]:
    """Responses for a complete successful session."""
    phases = encode_3byte(23012) + encode_3byte(22987) + encode_3byte(23105)
    currents = encode_3byte(1500) + encode_3byte(2250) + encode_3byte(750)
    cos = encode_3byte(950) + encode_3byte(980) + encode_3byte(920) + encode_3byte(950)
    angles = encode_3byte(12000) + encode_3byte(12010) + encode_3byte(11990)
    active = encode_3byte(1050500) + encode_3byte(345100) + encode_3byte(510200) + encode_3byte(195200)
    reactive = encode_3byte(120000) + encode_3byte(40000) + encode_3byte(50000) + encode_3byte(30000)

    def energy(total: int) -> bytes:
        return make_response(
            encode_4byte(total) + encode_4byte(total // 2) + encode_4byte(total // 4) + encode_4byte(total // 4)
        )

    return [
        make_status(0),  # channel test
        make_status(0),  # channel open
        make_response(phases),
        make_response(currents),
        make_response(cos),
        make_response(encode_3byte(5001)),
        make_response(angles),
        make_response(active),
        make_response(reactive),
        energy(12345678),
        energy(10000),
        energy(4000),
        make_status(0),  # channel close
    ]


@pytest.fixture
def transport() -> FakeTransport:
    """Transport scripted for a complete successful session."""
    return FakeTransport(success_script())
