"""Base server client interface."""

from abc import ABC, abstractmethod
from typing import Any, Dict

from cirrus.models.server import ServerSnapshot


class ServerClient(ABC):
    """Interface to a provider's server API.

    Implementations raise ``ServerNotFoundError`` when the server does not
    exist and ``ProviderError`` for any other failure. They never retry.
    """

    @abstractmethod
    async def create(self, request: Dict[str, Any]) -> ServerSnapshot:
        """Create a server from a create request payload."""
        pass

    @abstractmethod
    async def get(self, server_id: str) -> ServerSnapshot:
        """Fetch the current snapshot of a server."""
        pass

    @abstractmethod
    async def update(self, server_id: str, state: str) -> None:
        """Request a power state change (running, stopped, rebooted)."""
        pass

    @abstractmethod
    async def delete(self, server_id: str) -> None:
        """Delete a server."""
        pass

    async def close(self) -> None:
        """Release transport resources."""
        pass
