"""Interfaces to the BLE stack that hosts local (server-side) services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from gattkit.core.assigned import SecurityMode
from gattkit.core.uuid import Uuid


@dataclass(frozen=True)
class Attribute:
    value: bytes
    max_len: int
    variable_len: bool = False
    read_security: SecurityMode = SecurityMode.Open
    write_security: SecurityMode = SecurityMode.Open


@dataclass(frozen=True)
class Properties:
    read: bool = False
    write: bool = False
    write_without_response: bool = False
    notify: bool = False
    indicate: bool = False


@dataclass(frozen=True)
class CharacteristicHandles:
    value_handle: int
    cccd_handle: int = 0


class GattServerStack(Protocol):
    def add_service(self, uuid: Uuid) -> int:
        """Register a primary service and return its declaration handle."""

    def add_characteristic(
        self,
        service_handle: int,
        uuid: Uuid,
        attribute: Attribute,
        properties: Properties,
    ) -> CharacteristicHandles:
        """Register a characteristic; a CCCD is added for notify/indicate."""

    def get_value(self, handle: int, max_len: int) -> bytes:
        """Return at most `max_len` bytes of the attribute's current value."""

    def set_value(self, handle: int, data: bytes) -> None:
        """Replace the attribute's stored value."""

    def notify_value(self, conn: Any, handle: int, data: bytes) -> None:
        """Send a notification for `handle` on `conn`."""

    def indicate_value(self, conn: Any, handle: int, data: bytes) -> None:
        """Send an indication for `handle` on `conn`."""
