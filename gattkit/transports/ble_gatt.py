"""BLE GATT client transport and discovery driver backed by bleak."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import asynccontextmanager
from typing import Any

from gattkit.core.errors import (
    CapabilityError,
    NotDiscoveredError,
    ServiceIncompleteError,
    TransportConnectError,
    TryWriteError,
    UuidParseError,
)
from gattkit.core.model import ServiceSchema
from gattkit.core.uuid import Uuid, from_platform_string, parse_uuid
from gattkit.gatt.client import CCCD_UUID, Client
from gattkit.gatt.events import NotificationEvent
from gattkit.transports.base import DiscoveredCharacteristic, DiscoveredDescriptor

LOGGER = logging.getLogger(__name__)


class BleakGattTransport:
    """Client transport where the connection object is a connected `BleakClient`."""

    def __init__(self) -> None:
        self._pending: set[asyncio.Task[None]] = set()
        self._failure: BaseException | None = None

    async def read(self, conn: Any, handle: int) -> bytes:
        return bytes(await conn.read_gatt_char(handle))

    async def write(self, conn: Any, handle: int, data: bytes) -> None:
        await conn.write_gatt_char(handle, data, response=True)

    async def write_without_response(self, conn: Any, handle: int, data: bytes) -> None:
        await conn.write_gatt_char(handle, data, response=False)

    def try_write_without_response(self, conn: Any, handle: int, data: bytes) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise TryWriteError("No running event loop to queue the write on") from exc
        if not getattr(conn, "is_connected", False):
            raise TryWriteError("Peer is not connected")
        if self._failure is not None:
            failure, self._failure = self._failure, None
            raise TryWriteError(f"Previous queued write failed: {failure}") from failure
        if self._pending:
            raise TryWriteError("A write without response is already queued")
        task = loop.create_task(self.write_without_response(conn, handle, data))
        self._pending.add(task)
        task.add_done_callback(self._write_done)

    def _write_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error("Queued write without response failed: %s", exc)
            self._failure = exc


def _platform_uuid(value: str, declared: Iterable[Uuid]) -> Uuid | None:
    """Map a host-stack UUID string onto the form the schema declared it in."""
    try:
        short = from_platform_string(value)
        full = parse_uuid(value)
    except UuidParseError:
        return None
    for candidate in (full, short):
        if candidate in declared:
            return candidate
    return short


def discover(client: Client, conn: Any | None = None) -> Client:
    """Run discovery for `client` over an already connected `BleakClient`."""
    conn = conn if conn is not None else client.conn
    target = None
    for service in conn.services:
        if _platform_uuid(service.uuid, (client.uuid,)) == client.uuid:
            target = service
            break
    if target is None:
        raise ServiceIncompleteError(f"Peer does not expose service {client.uuid}")

    declared = [ch.uuid for ch in client.schema.characteristics]
    for characteristic in target.characteristics:
        descriptors = [
            DiscoveredDescriptor(_platform_uuid(desc.uuid, (CCCD_UUID,)), desc.handle)
            for desc in characteristic.descriptors
        ]
        client.discovered_characteristic(
            DiscoveredCharacteristic(_platform_uuid(characteristic.uuid, declared), characteristic.handle),
            descriptors,
        )
    client.discovery_complete()
    return client


async def subscribe(
    client: Client,
    name: str,
    callback: Callable[[NotificationEvent], None],
) -> None:
    """Enable notifications/indications for `name` and deliver decoded events."""
    ch = client.schema.characteristic(name)
    if ch is None:
        raise CapabilityError(f"Client '{client.schema.name}' has no characteristic '{name}'")
    if not ch.has_cccd:
        raise CapabilityError(f"Characteristic '{name}' does not declare notify or indicate")
    if not client.discovered:
        raise NotDiscoveredError(f"Client '{client.schema.name}' has not completed discovery")
    handle = client.characteristics[name].value_handle

    def _handler(_: Any, data: bytearray) -> None:
        event = client.on_notification(handle, bytes(data))
        if event is not None:
            callback(event)

    await client.conn.start_notify(handle, _handler)


@asynccontextmanager
async def connect(schema: ServiceSchema, address: str, *, timeout_s: float = 10.0) -> AsyncIterator[Client]:
    try:
        from bleak import BleakClient  # type: ignore
    except Exception as exc:  # pragma: no cover - import failure path
        raise TransportConnectError(
            "BLE transport requires 'bleak'. Install dependency and retry."
        ) from exc

    async with BleakClient(address, timeout=timeout_s) as conn:
        if not conn.is_connected:
            raise TransportConnectError(f"BLE connect failed for {address}")
        client = Client.new_undiscovered(schema, conn, BleakGattTransport())
        discover(client)
        yield client
