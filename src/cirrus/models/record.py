"""Local server record models."""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from cirrus.models.server import ServerState, Volume


class ConnectionInfo(BaseModel):
    """How provisioners reach the server."""
    type: Literal["ssh"] = "ssh"
    host: Optional[str] = None


class ServerRecord(BaseModel):
    """Tracked state of one managed server."""
    id: Optional[str] = None
    href: Optional[str] = None

    # Desired configuration as last applied
    name: Optional[str] = None
    flavor: Optional[str] = None
    image: Optional[str] = None
    volume_size_gb: Optional[int] = None
    bulk_volume_size_gb: Optional[int] = None
    ssh_keys: List[str] = Field(default_factory=list)
    use_public_network: Optional[bool] = None
    use_private_network: Optional[bool] = None
    use_ipv6: Optional[bool] = None
    anti_affinity_with: List[str] = Field(default_factory=list)
    user_data: Optional[str] = None
    state: Optional[ServerState] = None

    # Observed on the provider side
    status: Optional[str] = None
    volumes: List[Volume] = Field(default_factory=list)
    ipv4_address: Optional[str] = None
    ipv6_address: Optional[str] = None
    ipv4_private_address: Optional[str] = None
    ipv6_private_address: Optional[str] = None
    ssh_fingerprints: List[str] = Field(default_factory=list)
    ssh_host_keys: List[str] = Field(default_factory=list)
    connection: Optional[ConnectionInfo] = None

    class Config:
        """Pydantic config."""
        extra = "ignore"
        validate_assignment = True

    @property
    def exists(self) -> bool:
        """Whether the record points at a remote server."""
        return self.id is not None
