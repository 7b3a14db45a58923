"""Server specification and snapshot models."""

from enum import Enum
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field, validator


class Mutability(Enum):
    """Whether a spec field can change in place."""
    IMMUTABLE = "immutable"
    MUTABLE = "mutable"


ServerState = Literal["running", "stopped", "rebooted"]


class ServerSpec(BaseModel):
    """Desired server configuration."""
    name: str = Field(..., description="Server name")
    flavor: str = Field(..., description="Flavor slug, e.g. flex-4")
    image: str = Field(..., description="Image slug, e.g. debian-9")
    volume_size_gb: int = Field(..., gt=0, description="Root volume size")
    bulk_volume_size_gb: Optional[int] = Field(None, gt=0)
    ssh_keys: List[str] = Field(..., description="Public keys to install")
    use_public_network: Optional[bool] = None
    use_private_network: Optional[bool] = None
    use_ipv6: Optional[bool] = None
    anti_affinity_with: List[str] = Field(default_factory=list)
    user_data: Optional[str] = None
    state: Optional[ServerState] = Field(None, description="Desired power state")

    @validator("ssh_keys")
    def validate_ssh_keys(cls, v):
        """At least one key is needed to reach the server."""
        if not v:
            raise ValueError("at least one SSH key is required")
        return v

    @validator("anti_affinity_with")
    def validate_anti_affinity(cls, v):
        """Drop duplicate peers, keeping first occurrence."""
        return list(dict.fromkeys(v))

    class Config:
        """Pydantic config."""
        extra = "forbid"
        frozen = True


# Fields a framework must recreate the server for when they change.
FIELD_MUTABILITY: Dict[str, Mutability] = {
    "name": Mutability.IMMUTABLE,
    "flavor": Mutability.IMMUTABLE,
    "image": Mutability.IMMUTABLE,
    "volume_size_gb": Mutability.IMMUTABLE,
    "bulk_volume_size_gb": Mutability.IMMUTABLE,
    "ssh_keys": Mutability.IMMUTABLE,
    "use_public_network": Mutability.IMMUTABLE,
    "use_private_network": Mutability.IMMUTABLE,
    "use_ipv6": Mutability.IMMUTABLE,
    "anti_affinity_with": Mutability.IMMUTABLE,
    "user_data": Mutability.IMMUTABLE,
    "state": Mutability.MUTABLE,
}


def immutable_fields() -> List[str]:
    """Names of spec fields that force recreation."""
    return [name for name, kind in FIELD_MUTABILITY.items() if kind is Mutability.IMMUTABLE]


class Flavor(BaseModel):
    """Flavor reference on a server."""
    slug: str
    name: Optional[str] = None
    vcpu_count: Optional[int] = None
    memory_gb: Optional[int] = None

    class Config:
        """Pydantic config."""
        extra = "ignore"


class Image(BaseModel):
    """Image reference on a server."""
    slug: str
    name: Optional[str] = None
    operating_system: Optional[str] = None

    class Config:
        """Pydantic config."""
        extra = "ignore"


class Volume(BaseModel):
    """Volume attached to a server."""
    type: str
    device_path: str
    size_gb: int

    class Config:
        """Pydantic config."""
        extra = "ignore"


class Address(BaseModel):
    """IP address on an interface."""
    version: Literal[4, 6]
    address: str
    prefix_length: Optional[int] = None
    gateway: Optional[str] = None

    class Config:
        """Pydantic config."""
        extra = "ignore"


class Interface(BaseModel):
    """Network interface of a server."""
    type: str = Field(..., description="public, private, ...")
    addresses: List[Address] = Field(default_factory=list)

    class Config:
        """Pydantic config."""
        extra = "ignore"


class ServerRef(BaseModel):
    """Reference to another server."""
    uuid: str
    href: Optional[str] = None
    name: Optional[str] = None

    class Config:
        """Pydantic config."""
        extra = "ignore"


class ServerSnapshot(BaseModel):
    """Provider's view of a server."""
    uuid: str
    href: Optional[str] = None
    name: str
    status: str
    flavor: Flavor
    image: Image
    volumes: List[Volume] = Field(default_factory=list)
    interfaces: List[Interface] = Field(default_factory=list)
    ssh_fingerprints: List[str] = Field(default_factory=list)
    ssh_host_keys: List[str] = Field(default_factory=list)
    anti_affinity_with: List[ServerRef] = Field(default_factory=list)

    class Config:
        """Pydantic config."""
        extra = "ignore"
