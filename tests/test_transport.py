"""Unit tests for the UDP transport layer (FinsDatagramProtocol + FinsUdpConnection)."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from fins_gateway.transport.connection import FinsUdpConnection
from fins_gateway.transport.protocol import FinsDatagramProtocol

# ============================================================================
# TestFinsDatagramProtocol
# ============================================================================


class TestFinsDatagramProtocol:
    """Tests for FinsDatagramProtocol -- asyncio.DatagramProtocol for FINS/UDP."""

    def _make_protocol(self) -> tuple[FinsDatagramProtocol, MagicMock, MagicMock]:
        """Create a protocol with a mock connection and transport."""
        connection = MagicMock()
        protocol = FinsDatagramProtocol(connection)
        transport = MagicMock()
        protocol.connection_made(transport)
        return protocol, connection, transport

    def test_connection_made(self):
        """connection_made stores transport and notifies the connection."""
        connection = MagicMock()
        protocol = FinsDatagramProtocol(connection)
        assert protocol.connected is False

        protocol.connection_made(MagicMock())

        assert protocol.connected is True
        connection._on_open.assert_called_once_with()

    def test_connection_lost(self):
        """connection_lost clears transport and notifies the connection."""
        protocol, connection, _ = self._make_protocol()

        protocol.connection_lost(None)

        assert protocol.connected is False
        connection._on_close.assert_called_once_with(None)

    def test_datagram_received(self):
        """Datagrams are passed through unchanged and counted."""
        protocol, connection, _ = self._make_protocol()

        protocol.datagram_received(b"\x01\x02\x03", ("10.0.0.5", 9600))

        connection._on_datagram.assert_called_once_with(b"\x01\x02\x03", ("10.0.0.5", 9600))
        assert protocol.stats["datagrams_read"] == 1
        assert protocol.stats["bytes_read"] == 3

    def test_error_received(self):
        """Transport errors are passed through verbatim."""
        protocol, connection, _ = self._make_protocol()
        error = ConnectionRefusedError("refused")

        protocol.error_received(error)

        connection._on_error.assert_called_once_with(error)
        assert protocol.stats["errors"] == 1

    def test_send(self):
        """send writes one datagram to the transport."""
        protocol, _, transport = self._make_protocol()

        assert protocol.send(b"\x80\x00") is True

        transport.sendto.assert_called_once_with(b"\x80\x00")
        assert protocol.stats["datagrams_written"] == 1

    def test_send_without_transport(self):
        """send returns False when the transport is gone."""
        protocol = FinsDatagramProtocol(MagicMock())

        assert protocol.send(b"\x80\x00") is False

    def test_stats_is_copy(self):
        """stats returns a snapshot."""
        protocol, _, _ = self._make_protocol()

        protocol.stats["datagrams_read"] = 99

        assert protocol.stats["datagrams_read"] == 0


# ============================================================================
# TestFinsUdpConnection
# ============================================================================


class TestFinsUdpConnection:
    """Tests for FinsUdpConnection lifecycle."""

    @pytest.mark.asyncio
    async def test_connect_and_disconnect(self):
        """Endpoint opens, reports open/close and closes."""
        connection = FinsUdpConnection("127.0.0.1", 9600)
        events = []
        connection.on_open = lambda: events.append("open")
        connection.on_close = lambda exc: events.append("close")

        assert await connection.connect() is True
        assert connection.connected is True
        assert events == ["open"]

        await connection.disconnect()
        await asyncio.sleep(0.01)

        assert connection.connected is False
        assert events == ["open", "close"]

    @pytest.mark.asyncio
    async def test_connect_twice(self):
        """A second connect reuses the open endpoint."""
        connection = FinsUdpConnection("127.0.0.1", 9600)

        assert await connection.connect() is True
        assert await connection.connect() is True

        await connection.disconnect()

    @pytest.mark.asyncio
    async def test_connect_failure(self):
        """Endpoint errors are reported through on_error and connect returns False."""
        connection = FinsUdpConnection("127.0.0.1", 9600)
        errors = []
        connection.on_error = errors.append
        loop = asyncio.get_running_loop()

        with patch.object(loop, "create_datagram_endpoint", AsyncMock(side_effect=OSError("boom"))):
            assert await connection.connect() is False

        assert connection.connected is False
        assert len(errors) == 1
        assert str(errors[0]) == "boom"

    @pytest.mark.asyncio
    async def test_send_while_closed(self):
        """send raises ConnectionError before connect."""
        connection = FinsUdpConnection("127.0.0.1", 9600)

        with pytest.raises(ConnectionError, match="Not connected to 127.0.0.1:9600"):
            connection.send(b"\x80")

    @pytest.mark.asyncio
    async def test_disconnect_when_closed(self):
        """disconnect is a no-op without an endpoint."""
        connection = FinsUdpConnection("127.0.0.1", 9600)

        await connection.disconnect()

        assert connection.connected is False

    @pytest.mark.asyncio
    async def test_context_manager(self):
        """async with opens and closes the endpoint."""
        async with FinsUdpConnection("127.0.0.1", 9600) as connection:
            assert connection.connected is True

        assert connection.connected is False
