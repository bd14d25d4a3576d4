"""Shared test fixtures."""

from unittest.mock import MagicMock

import pytest

from fins_gateway.protocol.client import FinsClient

PLC_ADDR = ("192.168.250.1", 9600)

# Arbitrary reply header bytes preceding the SID
REPLY_HEADER = bytes([0xC0, 0x00, 0x02, 0x00, 0x22, 0x00, 0x00, 0x00, 0x00])


def make_reply(sid: int, command: bytes, end_code: bytes = b"\x00\x00", payload: bytes = b"") -> bytes:
    """Build a raw FINS reply datagram."""
    return REPLY_HEADER + bytes([sid]) + command + end_code + payload


@pytest.fixture
def fins_client() -> FinsClient:
    """Client with a short response budget and a mocked send path."""
    client = FinsClient(timeout=0, response_attempts=2, response_interval=0.02)
    client._connection.send = MagicMock()
    return client
