"""
Cirrus - declarative lifecycle management for cloud servers.

Reconciles a desired server specification against a provider's server API,
waiting for asynchronous transitions such as boot and shutdown to settle.
"""

__version__ = "1.0.0"
__author__ = "Cirrus Development Team"

# Re-export key components for easier access
from cirrus.engine.controller import ServerController
from cirrus.models.record import ServerRecord
from cirrus.models.server import ServerSpec
from cirrus.providers.cloudscale import CloudscaleClient

__all__ = [
    "ServerController",
    "ServerRecord",
    "ServerSpec",
    "CloudscaleClient",
]
