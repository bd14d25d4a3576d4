"""Unit tests for SID correlation."""

import asyncio

import pytest

from fins_gateway.core.models import FinsResponse
from fins_gateway.errors import FinsError, FinsResponseTimeout
from fins_gateway.protocol.correlator import Correlator


def make_response(sid: int, response_code: str = "0000") -> FinsResponse:
    """Create a test response record."""
    return FinsResponse(remote_host="10.0.0.5", sid=sid, command="0401", response_code=response_code)


class TestCorrelator:
    """Tests for Correlator table handling."""

    def test_init_empty(self):
        """Test table starts empty."""
        correlator = Correlator()

        assert len(correlator) == 0
        assert correlator.pending_sids == []

    def test_record_and_claim(self):
        """Test a recorded reply is claimed once."""
        correlator = Correlator()
        correlator.record(make_response(5))

        assert 5 in correlator
        assert correlator.claim(5).sid == 5
        assert correlator.claim(5) is None
        assert 5 not in correlator

    def test_overwrite_unclaimed(self):
        """Test a newer reply for the same SID replaces the old one."""
        correlator = Correlator()
        correlator.record(make_response(5, "0000"))
        correlator.record(make_response(5, "1103"))

        assert correlator.claim(5).response_code == "1103"

    def test_stale_entries_persist(self):
        """Test unclaimed replies stay in the table."""
        correlator = Correlator()
        correlator.record(make_response(9))
        correlator.record(make_response(3))

        assert correlator.pending_sids == [3, 9]

    def test_clear(self):
        """Test clear drops all unclaimed replies."""
        correlator = Correlator()
        correlator.record(make_response(1))
        correlator.clear()

        assert len(correlator) == 0


class TestCorrelatorWait:
    """Tests for Correlator.wait."""

    @pytest.mark.asyncio
    async def test_reply_already_received(self):
        """Test wait returns a reply that arrived before the waiter."""
        correlator = Correlator()
        correlator.record(make_response(7))

        response = await correlator.wait(7, timeout=0.1)

        assert response.sid == 7
        assert correlator.pending_sids == []

    @pytest.mark.asyncio
    async def test_reply_arrives_later(self):
        """Test the waiter is woken by record."""
        correlator = Correlator()
        asyncio.get_running_loop().call_later(0.01, correlator.record, make_response(7))

        response = await correlator.wait(7, timeout=1.0)

        assert response.sid == 7
        assert correlator.pending_sids == []

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test an unanswered SID fails after the budget instead of hanging."""
        correlator = Correlator()

        with pytest.raises(FinsResponseTimeout, match="Run command response not received") as exc_info:
            await asyncio.wait_for(
                correlator.wait(8, timeout=0.05, message="Run command response not received"),
                timeout=1.0,
            )

        assert exc_info.value.sid == 8

    @pytest.mark.asyncio
    async def test_timeout_default_message(self):
        """Test the default failure message names the SID."""
        correlator = Correlator()

        with pytest.raises(FinsResponseTimeout, match="Data not found for 8"):
            await correlator.wait(8, timeout=0.01)

    @pytest.mark.asyncio
    async def test_late_reply_is_stored(self):
        """Test a reply after expiry is kept in the table."""
        correlator = Correlator()

        with pytest.raises(FinsResponseTimeout):
            await correlator.wait(8, timeout=0.01)

        correlator.record(make_response(8))

        assert correlator.pending_sids == [8]

    @pytest.mark.asyncio
    async def test_other_sid_does_not_wake(self):
        """Test a reply for another SID does not resolve the waiter."""
        correlator = Correlator()
        asyncio.get_running_loop().call_later(0.01, correlator.record, make_response(6))

        with pytest.raises(FinsResponseTimeout):
            await correlator.wait(5, timeout=0.05)

        assert correlator.pending_sids == [6]

    @pytest.mark.asyncio
    async def test_independent_sids(self):
        """Test resolving SID 5 leaves SID 6 pending."""
        correlator = Correlator()
        wait5 = asyncio.create_task(correlator.wait(5, timeout=1.0))
        wait6 = asyncio.create_task(correlator.wait(6, timeout=1.0))
        await asyncio.sleep(0)

        correlator.record(make_response(5))
        await asyncio.sleep(0.01)

        assert wait5.done()
        assert not wait6.done()
        assert (await wait5).sid == 5

        correlator.record(make_response(6))
        assert (await wait6).sid == 6

    @pytest.mark.asyncio
    async def test_duplicate_waiter(self):
        """Test a SID can only be awaited once at a time."""
        correlator = Correlator()
        first = asyncio.create_task(correlator.wait(5, timeout=1.0))
        await asyncio.sleep(0)

        with pytest.raises(FinsError, match="already has a waiter"):
            await correlator.wait(5, timeout=1.0)

        correlator.record(make_response(5))
        assert (await first).sid == 5

    @pytest.mark.asyncio
    async def test_is_awaited(self):
        """Test a SID is reported as awaited only while a caller waits on it."""
        correlator = Correlator()
        task = asyncio.create_task(correlator.wait(3, timeout=1.0))
        await asyncio.sleep(0)

        assert correlator.is_awaited(3) is True
        assert correlator.is_awaited(4) is False

        correlator.record(make_response(3))
        await task

        assert correlator.is_awaited(3) is False
