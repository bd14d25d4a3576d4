"""FINS client: operations, events and reply correlation.

Each operation comes in two forms. ``send_*`` encodes and sends the request
and returns the SID at once; the decoded reply is delivered through the
``reply`` event and can be claimed later with ``wait_for_response()``. The
coroutine form sends and then waits for the matching reply, raising
FinsResponseTimeout when none arrives within the response budget.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from fins_gateway.core.config import Settings
from fins_gateway.core.models import FinsResponse, ReadResponse, StatusResponse
from fins_gateway.errors import FinsDecodeError, FinsError
from fins_gateway.protocol.codec import (
    build_fill_request,
    build_read_request,
    build_run_request,
    build_status_request,
    build_stop_request,
    build_write_request,
    decode_response,
)
from fins_gateway.protocol.constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    RESPONSE_ATTEMPTS,
    RESPONSE_INTERVAL,
    Command,
)
from fins_gateway.protocol.correlator import Correlator
from fins_gateway.protocol.frames import FinsFrame, FinsHeader, increment_sid
from fins_gateway.transport.connection import FinsUdpConnection

logger = logging.getLogger(__name__)

EVENTS = ("open", "close", "error", "timeout", "reply")


class FinsClient:
    """Client for one FINS node over UDP.

    Owns the header template (and with it the SID counter), the table of
    received replies and the UDP endpoint. Nothing is shared between
    instances.
    """

    def __init__(
        self,
        port: int = DEFAULT_PORT,
        host: str = DEFAULT_HOST,
        timeout: float | None = DEFAULT_TIMEOUT,
        header: FinsHeader | None = None,
        response_attempts: int = RESPONSE_ATTEMPTS,
        response_interval: float = RESPONSE_INTERVAL,
    ):
        """Initialize FINS client.

        Args:
            port: Peer UDP port.
            host: Peer host.
            timeout: Milliseconds after opening before a ``timeout`` event
                fires if no datagram has been received. 0 or None disables it.
            header: Header template; defaults to the standard addressing.
            response_attempts: Number of response intervals to wait per request.
            response_interval: Length of one response interval in seconds.
        """
        self.port = port
        self.host = host
        self.timeout = timeout
        self.header = header if header is not None else FinsHeader()
        self.response_attempts = response_attempts
        self.response_interval = response_interval

        self.responded = False
        self.last_reply: datetime | None = None

        self._correlator = Correlator()
        self._listeners: dict[str, list[Callable[..., Any]]] = {event: [] for event in EVENTS}
        self._timeout_handle: asyncio.TimerHandle | None = None

        self._connection = FinsUdpConnection(host, port)
        self._connection.on_open = self._handle_open
        self._connection.on_close = self._handle_close
        self._connection.on_error = self._handle_error
        self._connection.on_datagram = self.handle_datagram

    @classmethod
    def from_settings(cls, settings: Settings) -> "FinsClient":
        """Build a client from application settings."""
        header = FinsHeader(
            gct=settings.gateway_count,
            dna=settings.destination_network,
            da1=settings.destination_node,
            da2=settings.destination_unit,
            sna=settings.source_network,
            sa1=settings.source_node,
            sa2=settings.source_unit,
        )
        return cls(
            port=settings.plc_port,
            host=settings.plc_host,
            timeout=settings.timeout,
            header=header,
            response_attempts=settings.response_attempts,
            response_interval=settings.response_interval,
        )

    @property
    def connected(self) -> bool:
        """Whether the UDP endpoint is open."""
        return self._connection.connected

    @property
    def sid(self) -> int:
        """SID of the most recently sent request."""
        return self.header.sid

    @property
    def response_timeout(self) -> float:
        """Seconds an operation waits for its reply."""
        return self.response_attempts * self.response_interval

    @property
    def pending(self) -> list[int]:
        """SIDs with a received but unclaimed reply."""
        return self._correlator.pending_sids

    @property
    def stats(self) -> dict:
        """Datagram counters of the open endpoint."""
        return self._connection.stats

    # -- events --------------------------------------------------------------

    def on(self, event: str, listener: Callable[..., Any]) -> None:
        """Register *listener* for *event* (open, close, error, timeout, reply)."""
        if event not in self._listeners:
            raise ValueError(f"Unknown event: {event}")
        self._listeners[event].append(listener)

    def off(self, event: str, listener: Callable[..., Any]) -> None:
        """Remove a listener registered with ``on()``."""
        if event in self._listeners and listener in self._listeners[event]:
            self._listeners[event].remove(listener)

    def emit(self, event: str, *args: Any) -> None:
        for listener in list(self._listeners.get(event, ())):
            try:
                listener(*args)
            except Exception as e:
                logger.error("Error in %s listener: %s", event, e)

    # -- lifecycle -----------------------------------------------------------

    async def open(self) -> bool:
        """Open the UDP endpoint. Returns False if it could not be opened."""
        return await self._connection.connect()

    async def close(self) -> None:
        """Close the UDP endpoint; waiting operations run out their budgets."""
        self._cancel_timeout()
        await self._connection.disconnect()

    async def __aenter__(self) -> "FinsClient":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _handle_open(self) -> None:
        logger.info("FINS client ready for %s:%d", self.host, self.port)
        if self.timeout:
            loop = asyncio.get_running_loop()
            self._timeout_handle = loop.call_later(self.timeout / 1000, self._check_silence)
        self.emit("open")

    def _handle_close(self, exc: Exception | None) -> None:
        self._cancel_timeout()
        self.emit("close")

    def _handle_error(self, exc: Exception) -> None:
        self.emit("error", exc)

    def _check_silence(self) -> None:
        self._timeout_handle = None
        if not self.responded:
            logger.warning("No reply from %s within %sms", self.host, self.timeout)
            self.emit("timeout", self.host)

    def _cancel_timeout(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

    # -- inbound -------------------------------------------------------------

    def handle_datagram(self, data: bytes, addr: tuple) -> FinsResponse | None:
        """Decode an inbound datagram, store it for correlation and emit ``reply``.

        Malformed datagrams are logged and dropped.
        """
        self.responded = True
        self.last_reply = datetime.now()

        try:
            response = decode_response(data, addr[0])
        except FinsDecodeError as e:
            logger.warning("Discarding datagram from %s: %s (%s)", addr[0], e, data.hex())
            return None

        if not response.ok:
            logger.debug("SID %d: %s (%s)", response.sid, response.end_code_message, response.response_code)

        self._correlator.record(response)
        self.emit("reply", response)
        return response

    # -- outbound ------------------------------------------------------------

    def _send(self, frame: FinsFrame) -> int:
        logger.debug("Sending %s", frame)
        self._connection.send(frame.to_bytes())
        return frame.sid

    def send_read(self, address: str, count: int) -> int:
        """Send MEMORY AREA READ for *count* words at *address*; return the SID."""
        return self._send(build_read_request(self.header, address, count))

    def send_write(self, address: str, values: int | list[int]) -> int:
        """Send MEMORY AREA WRITE of *values* starting at *address*; return the SID."""
        return self._send(build_write_request(self.header, address, values))

    def send_fill(self, address: str, value: int, count: int) -> int:
        """Send MEMORY AREA FILL of *count* words with *value*; return the SID."""
        return self._send(build_fill_request(self.header, address, value, count))

    def send_run(self) -> int:
        return self._send(build_run_request(self.header))

    def send_stop(self) -> int:
        return self._send(build_stop_request(self.header))

    def send_status(self) -> int:
        return self._send(build_status_request(self.header))

    async def wait_for_response(self, sid: int, message: str | None = None) -> FinsResponse:
        """Wait for and claim the reply to *sid*.

        Raises:
            FinsResponseTimeout: If no reply arrives within the response budget
        """
        return await self._correlator.wait(sid, self.response_timeout, message)

    def claim(self, sid: int) -> FinsResponse | None:
        """Claim an already received reply without waiting."""
        return self._correlator.claim(sid)

    def _reserve_sid(self) -> None:
        # The next request takes the SID after the current one
        sid = increment_sid(self.header.sid)
        if self._correlator.is_awaited(sid):
            raise FinsError(f"SID {sid} is still awaited by an earlier request")

    async def _wait_for_command(self, sid: int, command: Command, message: str) -> FinsResponse:
        """Wait for the reply to *sid* that echoes *command*.

        Replies under the same SID for another command are left over from an
        earlier request that expired; they are discarded and the wait goes on
        within the same budget.
        """
        expected = command.as_bytes().hex()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.response_timeout

        while True:
            remaining = max(deadline - loop.time(), 0)
            response = await self._correlator.wait(sid, remaining, message)
            if response.command == expected:
                return response
            logger.warning(
                "SID %d: discarding stale %s reply while waiting for %s", sid, response.command, command.name
            )

    async def read(self, address: str, count: int) -> ReadResponse:
        """Read *count* words starting at *address*."""
        self._reserve_sid()
        sid = self.send_read(address, count)
        return await self._wait_for_command(sid, Command.MEMORY_AREA_READ, f"Data not found for {sid}")

    async def write(self, address: str, values: int | list[int]) -> FinsResponse:
        """Write *values* (one word or a list) starting at *address*."""
        self._reserve_sid()
        sid = self.send_write(address, values)
        return await self._wait_for_command(sid, Command.MEMORY_AREA_WRITE, f"Data not write on address {address}")

    async def fill(self, address: str, value: int, count: int) -> FinsResponse:
        """Fill *count* words starting at *address* with *value*."""
        self._reserve_sid()
        sid = self.send_fill(address, value, count)
        return await self._wait_for_command(
            sid, Command.MEMORY_AREA_FILL, f"Data not fill on address {address} for {count} regs"
        )

    async def run(self) -> FinsResponse:
        """Switch the controller to RUN."""
        self._reserve_sid()
        sid = self.send_run()
        return await self._wait_for_command(sid, Command.RUN, "Run command response not received")

    async def stop(self) -> FinsResponse:
        """Switch the controller to STOP."""
        self._reserve_sid()
        sid = self.send_stop()
        return await self._wait_for_command(sid, Command.STOP, "Stop command response not received")

    async def status(self) -> StatusResponse:
        """Read controller run status, mode and error flags."""
        self._reserve_sid()
        sid = self.send_status()
        return await self._wait_for_command(sid, Command.CONTROLLER_STATUS_READ, f"Data not found for {sid}")
