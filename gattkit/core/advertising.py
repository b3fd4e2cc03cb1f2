"""Advertising-data (AD structure) encoding and decoding.

Each field renders to ``[length][type][payload...]`` where length counts the
type byte plus the payload.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from gattkit.core.assigned import MAX_ADV_PAYLOAD, ADType
from gattkit.core.errors import AdvertisementDecodeError, AdvertisementTooLongError
from gattkit.core.model import AdvertisedService, AdvertisementSchema, FlagSet, ServiceList

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ADStructure:
    ad_type: int
    payload: bytes

    @property
    def length(self) -> int:
        return len(self.payload) + 1

    def to_bytes(self) -> bytes:
        if self.length > 0xFF:
            raise AdvertisementTooLongError(
                f"AD structure of type {self.ad_type:#04x} has {len(self.payload)} payload bytes"
            )
        return bytes((self.length, self.ad_type)) + self.payload


def render_flags(flags: FlagSet) -> ADStructure:
    return ADStructure(ADType.FLAGS, bytes((flags.value,)))


def _service_bytes(service: AdvertisedService, width: int) -> bytes:
    if width == 128:
        return bytes(service.value)
    return int(service.value).to_bytes(width // 8, "little")


def render_services(services: ServiceList) -> ADStructure:
    payload = b"".join(_service_bytes(s, services.width) for s in services.services)
    return ADStructure(services.ad_type, payload)


def render_name(name: str, *, full: bool) -> ADStructure:
    ad_type = ADType.COMPLETE_LOCAL_NAME if full else ADType.SHORTENED_LOCAL_NAME
    return ADStructure(ad_type, name.encode("utf-8"))


def ad_structures(schema: AdvertisementSchema) -> list[ADStructure]:
    structures: list[ADStructure] = []
    if schema.flags is not None:
        structures.append(render_flags(schema.flags))
    if schema.services is not None:
        structures.append(render_services(schema.services))
    if schema.short_name is not None:
        structures.append(render_name(schema.short_name, full=False))
    if schema.full_name is not None:
        structures.append(render_name(schema.full_name, full=True))
    return structures


def encode_advertisement(schema: AdvertisementSchema, *, limit: int | None = MAX_ADV_PAYLOAD) -> bytes:
    """Render all present fields into one advertising or scan-response payload.

    Pass ``limit=None`` to skip the payload ceiling check.
    """
    data = b"".join(s.to_bytes() for s in ad_structures(schema))
    LOGGER.debug("Rendered advertisement %r: %s", schema.name, data.hex())
    if limit is not None and len(data) > limit:
        raise AdvertisementTooLongError(
            f"Advertisement data {schema.name or ''} is {len(data)} bytes and may not exceed {limit} bytes. "
            "Try using incomplete lists or shortened names, or move fields to the scan response."
        )
    return data


def parse_ad_structures(data: bytes) -> list[ADStructure]:
    structures: list[ADStructure] = []
    offset = 0
    while offset < len(data):
        length = data[offset]
        if length == 0:
            # Zero length terminates significant data.
            break
        end = offset + 1 + length
        if end > len(data):
            raise AdvertisementDecodeError(
                f"AD structure at offset {offset} declares {length} bytes but only "
                f"{len(data) - offset - 1} remain"
            )
        structures.append(ADStructure(data[offset + 1], bytes(data[offset + 2 : end])))
        offset = end
    return structures
