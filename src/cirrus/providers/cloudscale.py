"""Server client for the cloudscale.ch REST API."""

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from cirrus.errors import ProviderError, ServerNotFoundError
from cirrus.models.server import ServerSnapshot
from cirrus.providers.base import ServerClient


logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.cloudscale.ch/v1"

# Desired power state -> server action endpoint
STATE_ACTIONS = {
    "running": "start",
    "stopped": "stop",
    "rebooted": "reboot",
}


class CloudscaleClient(ServerClient):
    """Async HTTP client for /servers."""

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize client."""
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def create(self, request: Dict[str, Any]) -> ServerSnapshot:
        """Create a server."""
        logger.debug(f"Server create request: {request}")
        data = await self._request("create", "POST", "/servers", json=request)
        return self._parse("create", data)

    async def get(self, server_id: str) -> ServerSnapshot:
        """Get a server by UUID."""
        data = await self._request("get", "GET", f"/servers/{server_id}", server_id=server_id)
        return self._parse("get", data)

    async def update(self, server_id: str, state: str) -> None:
        """Start, stop or reboot a server."""
        action = STATE_ACTIONS.get(state)
        if action is None:
            raise ProviderError("update", f"unsupported server state: {state}")

        await self._request(
            "update", "POST", f"/servers/{server_id}/{action}", server_id=server_id
        )

    async def delete(self, server_id: str) -> None:
        """Delete a server."""
        await self._request("delete", "DELETE", f"/servers/{server_id}", server_id=server_id)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "CloudscaleClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        server_id: Optional[str] = None,
        **kwargs,
    ) -> Any:
        """Send a request and map failures to provider errors."""
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            raise ProviderError(operation, f"connection error: {e}") from e

        if response.status_code == 404 and server_id is not None:
            raise ServerNotFoundError(operation, server_id)

        if response.is_error:
            raise ProviderError(operation, _error_detail(response), response.status_code)

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(operation, f"invalid JSON response: {e}") from e

    @staticmethod
    def _parse(operation: str, data: Any) -> ServerSnapshot:
        """Validate a server response body."""
        try:
            return ServerSnapshot.model_validate(data)
        except ValidationError as e:
            raise ProviderError(operation, f"unexpected server payload: {e}") from e


def _error_detail(response: httpx.Response) -> str:
    """Extract the API's error message."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase

    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return str(body)
