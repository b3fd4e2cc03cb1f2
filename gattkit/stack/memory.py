"""In-memory attribute table implementing the server stack interface."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from gattkit.core.errors import StackError
from gattkit.core.uuid import Uuid
from gattkit.stack.base import Attribute, CharacteristicHandles, Properties

LOGGER = logging.getLogger(__name__)


@dataclass
class Connection:
    handle: int
    connected: bool = True


@dataclass(frozen=True)
class SentValue:
    kind: str
    conn: Any
    handle: int
    data: bytes


@dataclass
class _Entry:
    uuid: Uuid
    attribute: Attribute | None = None
    properties: Properties | None = None
    value: bytes = b""


@dataclass
class MemoryGattStack:
    """Deterministic attribute table.

    Handles are allocated sequentially from 1: one for each service
    declaration, then per characteristic a declaration handle, a value
    handle and, for notify/indicate, a CCCD handle.
    """

    attr_table_size: int | None = None
    entries: dict[int, _Entry] = field(default_factory=dict)
    services: dict[int, Uuid] = field(default_factory=dict)
    sent: list[SentValue] = field(default_factory=list)
    _next_handle: int = 1

    def _allocate(self, count: int) -> int:
        if self.attr_table_size is not None and self._next_handle - 1 + count > self.attr_table_size:
            raise StackError(
                f"Attribute table full ({self.attr_table_size} handles)"
            )
        first = self._next_handle
        self._next_handle += count
        return first

    def add_service(self, uuid: Uuid) -> int:
        handle = self._allocate(1)
        self.services[handle] = uuid
        LOGGER.debug("Service %s at handle %d", uuid, handle)
        return handle

    def add_characteristic(
        self,
        service_handle: int,
        uuid: Uuid,
        attribute: Attribute,
        properties: Properties,
    ) -> CharacteristicHandles:
        if service_handle not in self.services:
            raise StackError(f"Unknown service handle {service_handle}")
        if len(attribute.value) > attribute.max_len:
            raise StackError(
                f"Initial value of {len(attribute.value)} bytes exceeds max_len {attribute.max_len}"
            )
        has_cccd = properties.notify or properties.indicate
        first = self._allocate(3 if has_cccd else 2)
        value_handle = first + 1
        self.entries[value_handle] = _Entry(uuid, attribute, properties, bytes(attribute.value))
        cccd_handle = 0
        if has_cccd:
            cccd_handle = first + 2
            self.entries[cccd_handle] = _Entry(uuid, value=b"\x00\x00")
        return CharacteristicHandles(value_handle=value_handle, cccd_handle=cccd_handle)

    def _entry(self, handle: int) -> _Entry:
        entry = self.entries.get(handle)
        if entry is None:
            raise StackError(f"Invalid attribute handle {handle}")
        return entry

    def get_value(self, handle: int, max_len: int) -> bytes:
        return self._entry(handle).value[:max_len]

    def set_value(self, handle: int, data: bytes) -> None:
        entry = self._entry(handle)
        attribute = entry.attribute
        if attribute is not None:
            if len(data) > attribute.max_len:
                raise StackError(f"Value of {len(data)} bytes exceeds max_len {attribute.max_len}")
            if not attribute.variable_len and len(data) != attribute.max_len:
                raise StackError(
                    f"Fixed-length attribute requires {attribute.max_len} bytes, got {len(data)}"
                )
        entry.value = bytes(data)

    def write(self, handle: int, data: bytes) -> None:
        """Apply an inbound peer write the way a stack would before dispatching it.

        Writes shorter than a fixed-length attribute are left unapplied.
        """
        entry = self._entry(handle)
        attribute = entry.attribute
        if attribute is not None and not attribute.variable_len and len(data) < attribute.max_len:
            return
        entry.value = bytes(data[: attribute.max_len]) if attribute is not None else bytes(data)

    def _send(self, kind: str, conn: Any, handle: int, data: bytes) -> None:
        entry = self._entry(handle)
        props = entry.properties
        if props is None or not getattr(props, kind):
            raise StackError(f"Handle {handle} does not support {kind}")
        if not getattr(conn, "connected", False):
            raise StackError("Connection is not active")
        self.sent.append(SentValue(kind, conn, handle, bytes(data)))

    def notify_value(self, conn: Any, handle: int, data: bytes) -> None:
        self._send("notify", conn, handle, data)

    def indicate_value(self, conn: Any, handle: int, data: bytes) -> None:
        self._send("indicate", conn, handle, data)
