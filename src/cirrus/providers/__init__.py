"""Server API clients for cirrus."""

from cirrus.providers.base import ServerClient
from cirrus.providers.cloudscale import CloudscaleClient

__all__ = [
    "ServerClient",
    "CloudscaleClient",
]
