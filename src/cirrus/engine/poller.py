"""Polling until a server attribute converges."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, FrozenSet, Iterable, Optional

from cirrus.errors import WaitCancelledError, WaitTimeoutError
from cirrus.models.config import WaitSettings
from cirrus.models.server import ServerSnapshot


logger = logging.getLogger(__name__)

# Returns a fresh snapshot, or None while there is nothing to compare yet.
RefreshFunc = Callable[[], Awaitable[Optional[ServerSnapshot]]]


@dataclass(frozen=True)
class WaitCondition:
    """Target value for one attribute of a server."""
    attribute: str
    pending: FrozenSet[str]
    target: str
    value_of: Callable[[ServerSnapshot], Optional[str]]


def wait_for_status(pending: Iterable[str], target: str) -> WaitCondition:
    """Wait for the server status to leave ``pending`` and reach ``target``."""
    return WaitCondition(
        attribute="status",
        pending=frozenset(pending),
        target=target,
        value_of=lambda snapshot: snapshot.status,
    )


def wait_for_host_keys() -> WaitCondition:
    """Wait for the server to publish its SSH host keys."""
    return WaitCondition(
        attribute="ssh_host_keys",
        pending=frozenset({"absent"}),
        target="present",
        value_of=lambda snapshot: "present" if snapshot.ssh_host_keys else "absent",
    )


class ConvergencePoller:
    """Blocks the calling task until a condition holds, times out or is cancelled."""

    def __init__(self, settings: WaitSettings, cancel_event: Optional[asyncio.Event] = None):
        """Initialize poller."""
        self.settings = settings
        self.cancel_event = cancel_event

    async def wait(
        self, resource_id: str, condition: WaitCondition, refresh: RefreshFunc
    ) -> ServerSnapshot:
        """Poll ``refresh`` until ``condition`` is met.

        Values in ``condition.pending`` and values outside the known
        vocabulary both keep the wait going; only the target ends it.
        Errors raised by ``refresh`` abort the wait unchanged.

        Raises:
            WaitTimeoutError: the timeout elapsed before convergence.
            WaitCancelledError: the cancel event was set.
        """
        logger.info(
            f"Waiting for server ({resource_id}) to have {condition.attribute} "
            f"of {condition.target}"
        )

        loop = asyncio.get_running_loop()
        started = loop.time()
        delay = self.settings.min_poll_interval
        attempt = 0

        while True:
            self._check_cancelled(resource_id, condition)

            attempt += 1
            snapshot = await refresh()
            value = condition.value_of(snapshot) if snapshot is not None else None

            if value == condition.target:
                logger.debug(
                    f"Server {resource_id} reached {condition.attribute}={value} "
                    f"after {attempt} checks"
                )
                return snapshot

            if value is None:
                logger.debug(f"Server {resource_id}: no {condition.attribute} yet")
            elif value in condition.pending:
                logger.debug(f"Server {resource_id}: {condition.attribute} is {value}, waiting")
            else:
                logger.debug(
                    f"Server {resource_id}: unexpected {condition.attribute} {value}, "
                    f"still waiting for {condition.target}"
                )

            elapsed = loop.time() - started
            remaining = self.settings.timeout - elapsed
            if remaining <= 0:
                raise WaitTimeoutError(resource_id, condition.attribute, condition.target, elapsed)

            if await self._sleep(min(delay, remaining)):
                raise WaitCancelledError(resource_id, condition.attribute, condition.target)

            delay = min(delay * 2, self.settings.poll_interval)

    def _check_cancelled(self, resource_id: str, condition: WaitCondition) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise WaitCancelledError(resource_id, condition.attribute, condition.target)

    async def _sleep(self, delay: float) -> bool:
        """Sleep for ``delay`` seconds; return True if cancelled meanwhile."""
        if self.cancel_event is None:
            await asyncio.sleep(delay)
            return False

        try:
            await asyncio.wait_for(self.cancel_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True
