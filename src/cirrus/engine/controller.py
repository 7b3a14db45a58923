"""Server lifecycle controller."""

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import ValidationError

from cirrus.engine.poller import ConvergencePoller, RefreshFunc, WaitCondition, wait_for_status
from cirrus.engine.projector import apply_snapshot, apply_spec, build_create_request
from cirrus.errors import (
    CirrusError,
    CreateFailedError,
    DeleteFailedError,
    ProviderError,
    ServerNotFoundError,
    SpecValidationError,
    UpdateFailedError,
)
from cirrus.models.config import WaitSettings
from cirrus.models.record import ConnectionInfo, ServerRecord
from cirrus.models.server import ServerSpec, immutable_fields
from cirrus.providers.base import ServerClient


logger = logging.getLogger(__name__)

SpecInput = Union[ServerSpec, Dict[str, Any]]

CREATE_PENDING: Tuple[str, ...] = ("changing",)
CREATE_TARGET = "running"

# Desired state -> (pending statuses, target status)
STATE_TRANSITIONS: Dict[str, Tuple[Tuple[str, ...], str]] = {
    "stopped": (("changing", "running"), "stopped"),
    "running": (("changing", "stopped"), "running"),
    "rebooted": (("changing",), "running"),
}


class ServerController:
    """Creates, reads, updates and deletes one kind of remote server.

    The controller holds no per-server state; every operation works on the
    ``ServerRecord`` passed in. Callers serialize operations on a record.
    """

    def __init__(
        self,
        client: ServerClient,
        wait_settings: Optional[WaitSettings] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        """Initialize controller."""
        self.client = client
        self.wait_settings = wait_settings or WaitSettings()
        self.cancel_event = cancel_event

    def validate_spec(self, spec_data: SpecInput) -> ServerSpec:
        """Turn caller input into a spec, failing before any remote call."""
        if isinstance(spec_data, ServerSpec):
            return spec_data

        try:
            return ServerSpec(**spec_data)
        except ValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error["loc"]) or "spec"
            raise SpecValidationError(field, error["msg"]) from e

    async def create(self, spec_data: SpecInput, record: Optional[ServerRecord] = None) -> ServerRecord:
        """Create a server and wait until it is running."""
        spec = self.validate_spec(spec_data)
        record = record if record is not None else ServerRecord()

        request = build_create_request(spec)
        logger.debug(f"Server create configuration: {request}")

        snapshot = await self.client.create(request)

        # Keep the id even if the wait below fails, so a later read finds it
        server_id = snapshot.uuid
        record.id = server_id
        apply_spec(record, spec)
        logger.info(f"Server ID {server_id}")

        try:
            await self._wait(record, wait_for_status(CREATE_PENDING, CREATE_TARGET))
        except CirrusError as e:
            record.id = server_id
            raise CreateFailedError(server_id, e) from e

        if spec.state == "stopped":
            await self._change_state(record, spec.state, CreateFailedError)

        return await self.read(record)

    async def read(self, record: ServerRecord) -> ServerRecord:
        """Refresh a record from the provider.

        A server that no longer exists clears the record's id instead of
        raising.
        """
        if record.id is None:
            return record

        server_id = record.id
        try:
            snapshot = await self.client.get(server_id)
        except ServerNotFoundError:
            logger.warning(f"Server ({server_id}) not found")
            record.id = None
            return record
        except ProviderError as e:
            raise ProviderError(
                "read", f"error retrieving server {server_id}: {e.message}", e.status_code
            ) from e

        apply_snapshot(record, snapshot)
        return record

    async def update(self, record: ServerRecord, spec_data: SpecInput) -> ServerRecord:
        """Apply a changed desired power state.

        Every other field is fixed at creation; changing one raises
        ``SpecValidationError`` before the provider is contacted.
        """
        spec = self.validate_spec(spec_data)
        if record.id is None:
            raise SpecValidationError("id", "record does not reference an existing server")
        self._check_immutable(record, spec)

        if spec.state is None or spec.state == record.state:
            return await self.read(record)

        await self._change_state(record, spec.state, UpdateFailedError)
        return await self.read(record)

    async def delete(self, record: ServerRecord) -> None:
        """Delete the server; a server that is already gone counts as deleted."""
        server_id = record.id
        if server_id is None:
            return

        logger.info(f"Deleting server: {server_id}")
        try:
            await self.client.delete(server_id)
        except ServerNotFoundError:
            logger.debug(f"Server {server_id} already deleted")
        except ProviderError as e:
            raise DeleteFailedError(server_id, e) from e

        record.id = None

    def connection_info(self, record: ServerRecord) -> Optional[ConnectionInfo]:
        """Connection descriptor for provisioners."""
        return record.connection

    def _check_immutable(self, record: ServerRecord, spec: ServerSpec) -> None:
        for field in immutable_fields():
            current = getattr(record, field)
            desired = getattr(spec, field)
            if field == "anti_affinity_with":
                changed = set(current) != set(desired)
            else:
                changed = current != desired
            if changed:
                raise SpecValidationError(
                    field,
                    f"cannot change from {current!r} to {desired!r} in place; "
                    "the server must be recreated",
                )

    async def _change_state(self, record: ServerRecord, state: str, failure: type) -> None:
        server_id = record.id
        pending, target = STATE_TRANSITIONS[state]

        logger.info(f"Changing server ({server_id}) state to {state}")
        await self.client.update(server_id, state)
        record.state = state

        try:
            await self._wait(record, wait_for_status(pending, target))
        except CirrusError as e:
            record.id = server_id
            raise failure(server_id, e) from e

    async def _wait(self, record: ServerRecord, condition: WaitCondition) -> None:
        poller = ConvergencePoller(self.wait_settings, self.cancel_event)
        await poller.wait(record.id, condition, self._refresh_func(record))

    def _refresh_func(self, record: ServerRecord) -> RefreshFunc:
        """Build the refresh step for waits on ``record``.

        Each step re-reads the record, then fetches a fresh snapshot. A server
        without SSH host keys has not finished booting and gives no signal.
        """
        server_id = record.id

        async def refresh():
            await self.read(record)
            if record.id is None:
                raise ServerNotFoundError("refresh", server_id)
            # Only a record that was never read lacks a status
            if record.status is None:
                return None

            try:
                snapshot = await self.client.get(server_id)
            except ProviderError as e:
                raise ProviderError(
                    "refresh", f"error retrieving server {server_id}: {e.message}", e.status_code
                ) from e

            if not snapshot.ssh_host_keys:
                return None
            return snapshot

        return refresh
