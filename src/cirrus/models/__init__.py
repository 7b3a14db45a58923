"""Pydantic models for configuration, specs and records."""

from cirrus.models.config import CirrusConfig, ApiConfig, WaitSettings
from cirrus.models.record import ServerRecord, ConnectionInfo
from cirrus.models.server import (
    FIELD_MUTABILITY,
    Mutability,
    ServerSpec,
    ServerSnapshot,
    Flavor,
    Image,
    Volume,
    Interface,
    Address,
    ServerRef,
)

__all__ = [
    "CirrusConfig",
    "ApiConfig",
    "WaitSettings",
    "ServerRecord",
    "ConnectionInfo",
    "FIELD_MUTABILITY",
    "Mutability",
    "ServerSpec",
    "ServerSnapshot",
    "Flavor",
    "Image",
    "Volume",
    "Interface",
    "Address",
    "ServerRef",
]
