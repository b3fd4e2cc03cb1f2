"""Client-side access to a peer's service described by a client schema."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from functools import partial
from typing import Any

from gattkit.core.assigned import CCCD_UUID16
from gattkit.core.errors import (
    CapabilityError,
    NotDiscoveredError,
    ReadError,
    ServiceIncompleteError,
    TryWriteError,
    WriteError,
)
from gattkit.core.model import CharacteristicSchema, ServiceSchema
from gattkit.core.uuid import Uuid, Uuid16
from gattkit.gatt.events import NotificationEvent
from gattkit.gatt.layout import ArtifactLayout, client_layout
from gattkit.transports.base import DiscoveredCharacteristic, DiscoveredDescriptor, GattClientTransport

LOGGER = logging.getLogger(__name__)

CCCD_UUID = Uuid16(CCCD_UUID16)


@dataclass
class ClientCharacteristic:
    uuid: Uuid
    value_handle: int = 0
    cccd_handle: int = 0


class Client:
    """Discovery state and declared operations for one peer service.

    Lifecycle: `new_undiscovered` -> `discovered_characteristic` for each
    characteristic found on the peer -> `discovery_complete`. Discovery is not
    reentrant and must finish before any read or write is issued.
    """

    def __init__(self, schema: ServiceSchema, conn: Any, transport: GattClientTransport) -> None:
        self.schema = schema
        self.conn = conn
        self.transport = transport
        self.characteristics = {ch.name: ClientCharacteristic(ch.uuid) for ch in schema.characteristics}
        self.discovered = False
        self._chars = {ch.name: ch for ch in schema.characteristics}

    @classmethod
    def new_undiscovered(cls, schema: ServiceSchema, conn: Any, transport: GattClientTransport) -> Client:
        return cls(schema, conn, transport)

    @property
    def uuid(self) -> Uuid:
        return self.schema.uuid

    @property
    def layout(self) -> ArtifactLayout:
        return client_layout(self.schema)

    def discovered_characteristic(
        self,
        characteristic: DiscoveredCharacteristic,
        descriptors: Sequence[DiscoveredDescriptor],
    ) -> None:
        if characteristic.uuid is None:
            return
        for ch in self.schema.characteristics:
            if characteristic.uuid != ch.uuid:
                continue
            state = self.characteristics[ch.name]
            state.value_handle = characteristic.handle_value
            LOGGER.debug("%s.%s: value handle %d", self.schema.name, ch.name, state.value_handle)
            if ch.has_cccd:
                for desc in descriptors:
                    if desc.uuid == CCCD_UUID:
                        state.cccd_handle = desc.handle

    def discovery_complete(self) -> None:
        """Check that every characteristic with a declared operation was found.

        Raises `ServiceIncompleteError` naming the unresolved characteristics.
        """
        missing = [
            ch.name
            for ch in self.schema.characteristics
            if ch.accessible and self.characteristics[ch.name].value_handle == 0
        ]
        if missing:
            self.discovered = False
            raise ServiceIncompleteError(
                f"Service '{self.schema.name}' is missing characteristic(s): {', '.join(missing)}"
            )
        self.discovered = True

    def _ready(self, name: str, capability: str) -> tuple[CharacteristicSchema, int]:
        ch = self._chars.get(name)
        if ch is None:
            raise CapabilityError(f"Client '{self.schema.name}' has no characteristic '{name}'")
        if not getattr(ch, capability) and not (capability == "write_without_response" and ch.write):
            raise CapabilityError(f"Characteristic '{name}' does not declare {capability}")
        if not self.discovered:
            raise NotDiscoveredError(
                f"Client '{self.schema.name}' has not completed discovery"
            )
        return ch, self.characteristics[name].value_handle

    async def read(self, name: str) -> Any:
        ch, handle = self._ready(name, "read")
        try:
            data = await self.transport.read(self.conn, handle)
        except Exception as exc:
            raise ReadError(f"Could not read '{name}': {exc}") from exc
        data = bytes(data)[: ch.value_type.max_size]
        if len(data) < ch.value_type.min_size:
            raise ReadError(
                f"Could not read '{name}': peer returned {len(data)} byte(s), "
                f"{ch.value_type.name} needs {ch.value_type.min_size}"
            )
        try:
            return ch.value_type.from_gatt(data)
        except Exception as exc:
            raise ReadError(f"Could not decode '{name}': {exc}") from exc

    async def write(self, name: str, value: Any) -> None:
        ch, handle = self._ready(name, "write")
        data = ch.value_type.to_gatt(value)
        try:
            await self.transport.write(self.conn, handle, data)
        except Exception as exc:
            raise WriteError(f"Could not write '{name}': {exc}") from exc

    async def write_without_response(self, name: str, value: Any) -> None:
        ch, handle = self._ready(name, "write_without_response")
        data = ch.value_type.to_gatt(value)
        try:
            await self.transport.write_without_response(self.conn, handle, data)
        except Exception as exc:
            raise WriteError(f"Could not write '{name}' without response: {exc}") from exc

    def try_write_without_response(self, name: str, value: Any) -> None:
        ch, handle = self._ready(name, "write_without_response")
        data = ch.value_type.to_gatt(value)
        try:
            self.transport.try_write_without_response(self.conn, handle, data)
        except Exception as exc:
            raise TryWriteError(f"Could not queue write to '{name}': {exc}") from exc

    def on_notification(self, handle: int, data: bytes) -> NotificationEvent | None:
        for ch in self.schema.characteristics:
            if ch.has_cccd and handle != 0 and handle == self.characteristics[ch.name].value_handle:
                if len(data) < ch.value_type.min_size:
                    return None
                return NotificationEvent(ch.name, ch.value_type.from_gatt(data))
        return None

    def __getattr__(self, name: str) -> Any:
        chars = self.__dict__.get("characteristics")
        if not chars:
            raise AttributeError(name)
        for ch_name, state in chars.items():
            if name == f"{ch_name}_value_handle":
                return state.value_handle
            if name == f"{ch_name}_cccd_handle" and self._chars[ch_name].has_cccd:
                return state.cccd_handle
            if name == f"{ch_name}_uuid":
                return state.uuid
        operation = name in self.layout.operations
        if operation:
            for ch_name in chars:
                prefix = f"{ch_name}_"
                suffix = name[len(prefix):]
                if name.startswith(prefix) and suffix in (
                    "read",
                    "write",
                    "write_without_response",
                    "try_write_without_response",
                ):
                    return partial(getattr(self, suffix), ch_name)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")
