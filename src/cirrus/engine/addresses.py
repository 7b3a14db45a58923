"""Address lookup on server network interfaces."""

from typing import Iterable, Optional

from cirrus.models.server import Interface


PUBLIC = "public"
PRIVATE = "private"


def resolve_address(
    interfaces: Iterable[Interface], interface_type: str, ip_version: int
) -> Optional[str]:
    """Return the first address of the given version on an interface of the given type.

    Interfaces and their addresses are scanned in order; an interface of the
    right type without an address of the right version is skipped.
    """
    for interface in interfaces:
        if interface.type != interface_type:
            continue
        for address in interface.addresses:
            if address.version == ip_version:
                return address.address
    return None
