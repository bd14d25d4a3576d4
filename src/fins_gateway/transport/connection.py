"""UDP endpoint management for a single FINS peer."""

import asyncio
import logging
from collections.abc import Callable

from fins_gateway.transport.protocol import FinsDatagramProtocol

logger = logging.getLogger(__name__)


class FinsUdpConnection:
    """Manages the UDP endpoint to one FINS node.

    Callbacks ``on_open``, ``on_close``, ``on_error`` and ``on_datagram`` are
    invoked from the event loop as the underlying transport reports events.
    """

    def __init__(
        self,
        host: str,
        port: int,
        connect_timeout: float = 5.0,
    ):
        """
        Initialize connection manager.

        Args:
            host: Peer host name or IP address
            port: Peer UDP port
            connect_timeout: Seconds allowed for endpoint creation
        """
        self.host = host
        self.port = port
        self.connect_timeout = connect_timeout

        self.on_open: Callable[[], None] | None = None
        self.on_close: Callable[[Exception | None], None] | None = None
        self.on_error: Callable[[Exception], None] | None = None
        self.on_datagram: Callable[[bytes, tuple], None] | None = None

        self._transport: asyncio.DatagramTransport | None = None
        self._protocol: FinsDatagramProtocol | None = None
        self._lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        """Check if the endpoint is open."""
        return self._protocol is not None and self._protocol.connected

    @property
    def stats(self) -> dict:
        return self._protocol.stats if self._protocol is not None else {}

    async def connect(self) -> bool:
        """
        Open the UDP endpoint.

        Returns:
            True if the endpoint was opened, False otherwise
        """
        async with self._lock:
            if self.connected:
                logger.debug("Already connected to %s:%d", self.host, self.port)
                return True

            try:
                logger.info("Opening UDP endpoint to %s:%d", self.host, self.port)
                loop = asyncio.get_running_loop()
                transport, protocol = await asyncio.wait_for(
                    loop.create_datagram_endpoint(
                        lambda: FinsDatagramProtocol(self),
                        remote_addr=(self.host, self.port),
                    ),
                    timeout=self.connect_timeout,
                )
                self._transport = transport
                self._protocol = protocol
                return True

            except (OSError, TimeoutError) as e:
                logger.error("Failed to open UDP endpoint to %s:%d: %s", self.host, self.port, e)
                self._on_error(e)
                return False

    async def disconnect(self) -> None:
        """Close the UDP endpoint."""
        async with self._lock:
            if self._transport is None:
                return

            logger.info("Closing UDP endpoint to %s:%d", self.host, self.port)
            self._transport.close()
            self._transport = None
            self._protocol = None

    def send(self, data: bytes) -> None:
        """
        Send one datagram to the peer.

        Raises:
            ConnectionError: If the endpoint is not open
        """
        if self._protocol is None or not self._protocol.send(data):
            raise ConnectionError(f"Not connected to {self.host}:{self.port}")

    # -- transport events ----------------------------------------------------

    def _on_open(self) -> None:
        if self.on_open is not None:
            self.on_open()

    def _on_close(self, exc: Exception | None) -> None:
        self._transport = None
        self._protocol = None
        if self.on_close is not None:
            self.on_close(exc)

    def _on_error(self, exc: Exception) -> None:
        if self.on_error is not None:
            self.on_error(exc)

    def _on_datagram(self, data: bytes, addr: tuple) -> None:
        if self.on_datagram is not None:
            self.on_datagram(data, addr)

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.disconnect()
