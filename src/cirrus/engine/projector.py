"""Mapping between server specs, provider snapshots and local records."""

from typing import Any, Dict

from cirrus.engine.addresses import PRIVATE, PUBLIC, resolve_address
from cirrus.models.record import ConnectionInfo, ServerRecord
from cirrus.models.server import (
    FIELD_MUTABILITY,
    Flavor,
    Image,
    ServerRef,
    ServerSnapshot,
    ServerSpec,
)

REQUIRED_REQUEST_FIELDS = ("name", "flavor", "image", "volume_size_gb")
OPTIONAL_REQUEST_FIELDS = (
    "bulk_volume_size_gb",
    "use_public_network",
    "use_private_network",
    "use_ipv6",
    "user_data",
)


def build_create_request(spec: ServerSpec) -> Dict[str, Any]:
    """Build the provider create payload for a spec.

    Unset optional fields are left out of the payload entirely so the
    provider applies its own defaults instead of an explicit false or zero.
    """
    request: Dict[str, Any] = {field: getattr(spec, field) for field in REQUIRED_REQUEST_FIELDS}
    request["ssh_keys"] = list(spec.ssh_keys)

    for field in OPTIONAL_REQUEST_FIELDS:
        value = getattr(spec, field)
        if value is not None:
            request[field] = value

    if spec.anti_affinity_with:
        request["anti_affinity_with"] = list(spec.anti_affinity_with)

    return request


def apply_spec(record: ServerRecord, spec: ServerSpec) -> None:
    """Copy desired configuration onto a record."""
    for field in FIELD_MUTABILITY:
        value = getattr(spec, field)
        if isinstance(value, list):
            value = list(value)
        setattr(record, field, value)


def apply_snapshot(record: ServerRecord, snapshot: ServerSnapshot) -> None:
    """Project a provider snapshot onto a record."""
    record.href = snapshot.href
    record.name = snapshot.name
    record.flavor = snapshot.flavor.slug
    record.image = snapshot.image.slug
    record.status = snapshot.status

    # An empty volume list keeps whatever the record already had
    if snapshot.volumes:
        record.volumes = [volume.model_copy() for volume in snapshot.volumes]

    record.ipv4_address = resolve_address(snapshot.interfaces, PUBLIC, 4)
    record.ipv6_address = resolve_address(snapshot.interfaces, PUBLIC, 6)
    record.ipv4_private_address = resolve_address(snapshot.interfaces, PRIVATE, 4)
    record.ipv6_private_address = resolve_address(snapshot.interfaces, PRIVATE, 6)

    record.ssh_fingerprints = list(snapshot.ssh_fingerprints)
    record.ssh_host_keys = list(snapshot.ssh_host_keys)

    if snapshot.anti_affinity_with:
        record.anti_affinity_with = [peer.uuid for peer in snapshot.anti_affinity_with]

    record.connection = ConnectionInfo(host=record.ipv4_address)


def snapshot_from_record(record: ServerRecord) -> ServerSnapshot:
    """Rebuild a snapshot from a record.

    Addresses are derived from interfaces on the way in and are not
    reconstructed here.
    """
    if record.id is None:
        raise ValueError("record has no server id")

    return ServerSnapshot(
        uuid=record.id,
        href=record.href,
        name=record.name or "",
        status=record.status or "",
        flavor=Flavor(slug=record.flavor or ""),
        image=Image(slug=record.image or ""),
        volumes=[volume.model_copy() for volume in record.volumes],
        ssh_fingerprints=list(record.ssh_fingerprints),
        ssh_host_keys=list(record.ssh_host_keys),
        anti_affinity_with=[ServerRef(uuid=uuid) for uuid in record.anti_affinity_with],
    )
