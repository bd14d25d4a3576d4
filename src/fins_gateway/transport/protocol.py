"""asyncio.DatagramProtocol implementation for FINS/UDP."""

import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fins_gateway.transport.connection import FinsUdpConnection

logger = logging.getLogger(__name__)


class FinsDatagramProtocol(asyncio.DatagramProtocol):
    """Event-driven FINS datagram receiver.

    Every datagram is handed to the owning connection as-is; FINS/UDP has
    no framing beyond one message per datagram.
    """

    def __init__(self, connection: "FinsUdpConnection") -> None:
        self._connection = connection
        self._transport: asyncio.DatagramTransport | None = None
        self._stats = {
            "datagrams_read": 0,
            "bytes_read": 0,
            "datagrams_written": 0,
            "errors": 0,
        }

    # -- asyncio.DatagramProtocol callbacks ----------------------------------

    def connection_made(self, transport: asyncio.DatagramTransport) -> None:  # type: ignore[override]
        self._transport = transport
        logger.debug("FinsDatagramProtocol: connection made")
        self._connection._on_open()

    def connection_lost(self, exc: Exception | None) -> None:
        self._transport = None
        logger.debug("FinsDatagramProtocol: connection lost (exc=%s)", exc)
        self._connection._on_close(exc)

    def datagram_received(self, data: bytes, addr: tuple) -> None:
        self._stats["datagrams_read"] += 1
        self._stats["bytes_read"] += len(data)
        logger.debug("Datagram from %s: %s", addr, data.hex())
        self._connection._on_datagram(data, addr)

    def error_received(self, exc: Exception) -> None:
        self._stats["errors"] += 1
        logger.error("Transport error: %s", exc)
        self._connection._on_error(exc)

    # -- public API ----------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self._transport is not None

    @property
    def stats(self) -> dict:
        return self._stats.copy()

    def send(self, data: bytes) -> bool:
        """Send *data* to the connected peer.

        Returns True on success, False when the transport is unavailable.
        """
        if self._transport is None:
            return False

        self._transport.sendto(data)
        self._stats["datagrams_written"] += 1
        logger.debug("Datagram written: %s", data.hex())
        return True
