"""Tests for the convergence poller."""

import asyncio
import time

import pytest
from unittest.mock import AsyncMock, patch

from cirrus.engine.poller import ConvergencePoller, wait_for_host_keys, wait_for_status
from cirrus.errors import ProviderError, WaitCancelledError, WaitTimeoutError
from cirrus.models.config import WaitSettings
from cirrus.models.server import ServerSnapshot


FAST = WaitSettings(timeout=0.3, poll_interval=0.05, min_poll_interval=0.01)


def snapshot(status, host_keys=("ecdsa AAAA",)):
    return ServerSnapshot(
        uuid="srv-1", name="web-1", status=status,
        flavor={"slug": "flex-2"}, image={"slug": "debian-9"},
        ssh_host_keys=list(host_keys),
    )


@pytest.mark.asyncio
class TestConvergencePoller:
    """Test ConvergencePoller.wait."""

    async def test_immediate_match_single_refresh(self):
        """Test that a target on the first refresh returns at once."""
        refresh = AsyncMock(return_value=snapshot("running"))
        poller = ConvergencePoller(FAST)

        result = await poller.wait("srv-1", wait_for_status(["changing"], "running"), refresh)

        assert result.status == "running"
        assert refresh.await_count == 1

    async def test_pending_then_target(self):
        """Test waiting through pending values."""
        refresh = AsyncMock(side_effect=[
            snapshot("changing"),
            snapshot("changing"),
            snapshot("running"),
        ])
        poller = ConvergencePoller(FAST)

        result = await poller.wait("srv-1", wait_for_status(["changing"], "running"), refresh)

        assert result.status == "running"
        assert refresh.await_count == 3

    async def test_no_signal_keeps_waiting(self):
        """Test that a refresh without a snapshot is not a failure."""
        refresh = AsyncMock(side_effect=[None, None, snapshot("running")])
        poller = ConvergencePoller(FAST)

        result = await poller.wait("srv-1", wait_for_status(["changing"], "running"), refresh)

        assert result.status == "running"

    async def test_unknown_value_is_transient(self):
        """Test that a value outside pending and target does not fail the wait."""
        refresh = AsyncMock(side_effect=[snapshot("migrating"), snapshot("running")])
        poller = ConvergencePoller(FAST)

        result = await poller.wait("srv-1", wait_for_status(["changing"], "running"), refresh)

        assert result.status == "running"
        assert refresh.await_count == 2

    async def test_timeout_is_bounded(self):
        """Test that a never-converging wait ends within timeout plus one interval."""
        refresh = AsyncMock(return_value=None)
        poller = ConvergencePoller(FAST)

        started = time.monotonic()
        with pytest.raises(WaitTimeoutError) as exc_info:
            await poller.wait("srv-1", wait_for_status(["changing"], "running"), refresh)
        elapsed = time.monotonic() - started

        assert elapsed < FAST.timeout + FAST.poll_interval + 0.1
        error = exc_info.value
        assert error.resource_id == "srv-1"
        assert error.attribute == "status"
        assert error.target == "running"
        assert error.elapsed >= FAST.timeout
        assert "srv-1" in str(error)

    async def test_refresh_error_aborts_immediately(self):
        """Test that refresh errors are not retried."""
        refresh = AsyncMock(side_effect=ProviderError("get", "forbidden", 403))
        poller = ConvergencePoller(FAST)

        with pytest.raises(ProviderError):
            await poller.wait("srv-1", wait_for_status(["changing"], "running"), refresh)

        assert refresh.await_count == 1

    async def test_backoff_ramps_to_poll_interval(self):
        """Test that sleeps double from the minimum up to the cap."""
        settings = WaitSettings(timeout=1000, poll_interval=10, min_poll_interval=3)
        refresh = AsyncMock(side_effect=[snapshot("changing")] * 4 + [snapshot("running")])
        poller = ConvergencePoller(settings)

        with patch("cirrus.engine.poller.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await poller.wait("srv-1", wait_for_status(["changing"], "running"), refresh)

        delays = [call.args[0] for call in mock_sleep.await_args_list]
        assert delays == [3, 6, 10, 10]

    async def test_cancel_event_interrupts_sleep(self):
        """Test that cancellation ends the wait promptly and is not a timeout."""
        settings = WaitSettings(timeout=60, poll_interval=30, min_poll_interval=30)
        cancel_event = asyncio.Event()
        refresh = AsyncMock(return_value=snapshot("changing"))
        poller = ConvergencePoller(settings, cancel_event=cancel_event)

        loop = asyncio.get_running_loop()
        loop.call_later(0.05, cancel_event.set)

        started = time.monotonic()
        with pytest.raises(WaitCancelledError) as exc_info:
            await poller.wait("srv-1", wait_for_status(["changing"], "running"), refresh)

        assert time.monotonic() - started < 5
        assert exc_info.value.target == "running"

    async def test_already_cancelled_skips_refresh(self):
        """Test that a set cancel event stops the wait before any refresh."""
        cancel_event = asyncio.Event()
        cancel_event.set()
        refresh = AsyncMock(return_value=snapshot("running"))
        poller = ConvergencePoller(FAST, cancel_event=cancel_event)

        with pytest.raises(WaitCancelledError):
            await poller.wait("srv-1", wait_for_status(["changing"], "running"), refresh)

        refresh.assert_not_awaited()

    async def test_wait_for_host_keys(self):
        """Test the host key condition."""
        refresh = AsyncMock(side_effect=[
            snapshot("running", host_keys=()),
            snapshot("running"),
        ])
        poller = ConvergencePoller(FAST)

        result = await poller.wait("srv-1", wait_for_host_keys(), refresh)

        assert result.ssh_host_keys == ["ecdsa AAAA"]
        assert refresh.await_count == 2

    async def test_independent_pollers_run_concurrently(self):
        """Test that pollers share no state."""
        first = AsyncMock(side_effect=[snapshot("changing"), snapshot("running")])
        second = AsyncMock(side_effect=[snapshot("running"), snapshot("stopped")])

        results = await asyncio.gather(
            ConvergencePoller(FAST).wait("a", wait_for_status(["changing"], "running"), first),
            ConvergencePoller(FAST).wait("b", wait_for_status(["running"], "stopped"), second),
        )

        assert [r.status for r in results] == ["running", "stopped"]
