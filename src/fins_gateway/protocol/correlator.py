"""Request/response correlation by FINS service identifier."""

import asyncio
import logging

from fins_gateway.core.models import FinsResponse
from fins_gateway.errors import FinsError, FinsResponseTimeout

logger = logging.getLogger(__name__)


class Correlator:
    """Pending-operation table keyed by SID.

    The inbound path calls ``record()`` for every decoded reply; the latest
    reply per SID is kept until a caller claims it. Callers waiting on a SID
    are woken directly instead of polling the table.

    All access happens on the event loop thread, so no lock is needed: the
    inbound path is the only writer and each waiter only touches its own SID.
    """

    def __init__(self) -> None:
        self._responses: dict[int, FinsResponse] = {}
        self._waiters: dict[int, asyncio.Future[None]] = {}

    @property
    def pending_sids(self) -> list[int]:
        """SIDs with a received but unclaimed reply."""
        return sorted(self._responses)

    def __len__(self) -> int:
        return len(self._responses)

    def __contains__(self, sid: object) -> bool:
        return sid in self._responses

    def record(self, response: FinsResponse) -> None:
        """Store *response*, replacing any unclaimed reply for the same SID."""
        if response.sid in self._responses:
            logger.debug("Overwriting unclaimed reply for SID %d", response.sid)
        self._responses[response.sid] = response

        waiter = self._waiters.get(response.sid)
        if waiter is not None and not waiter.done():
            waiter.set_result(None)

    def is_awaited(self, sid: int) -> bool:
        """Whether a caller is currently waiting on *sid*."""
        return sid in self._waiters

    def claim(self, sid: int) -> FinsResponse | None:
        """Remove and return the reply for *sid*, if one has arrived."""
        return self._responses.pop(sid, None)

    async def wait(self, sid: int, timeout: float, message: str | None = None) -> FinsResponse:
        """Wait up to *timeout* seconds for the reply to *sid* and claim it.

        Raises:
            FinsResponseTimeout: If no reply for *sid* arrives in time
            FinsError: If another caller is already waiting on *sid*
        """
        response = self.claim(sid)
        if response is not None:
            return response

        if sid in self._waiters:
            raise FinsError(f"SID {sid} already has a waiter")

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters[sid] = waiter
        try:
            await asyncio.wait_for(waiter, timeout=timeout)
        except TimeoutError:
            logger.warning("No reply for SID %d after %.2fs", sid, timeout)
            raise FinsResponseTimeout(sid, message) from None
        finally:
            if self._waiters.get(sid) is waiter:
                del self._waiters[sid]

        response = self.claim(sid)
        if response is None:
            raise FinsResponseTimeout(sid, message)
        return response

    def clear(self) -> None:
        """Drop all unclaimed replies."""
        self._responses.clear()
