"""Transport interfaces for client-side GATT access."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from gattkit.core.uuid import Uuid


@dataclass(frozen=True)
class DiscoveredCharacteristic:
    uuid: Uuid | None
    handle_value: int
    handle_decl: int = 0


@dataclass(frozen=True)
class DiscoveredDescriptor:
    uuid: Uuid | None
    handle: int


class GattClientTransport(Protocol):
    async def read(self, conn: Any, handle: int) -> bytes:
        """Read the attribute at `handle` from the peer."""

    async def write(self, conn: Any, handle: int, data: bytes) -> None:
        """Write with response and wait for the confirmation."""

    async def write_without_response(self, conn: Any, handle: int, data: bytes) -> None:
        """Queue a write command, waiting for buffer space if needed."""

    def try_write_without_response(self, conn: Any, handle: int, data: bytes) -> None:
        """Queue a write command or fail immediately if that would block."""
