"""16-bit and 128-bit Bluetooth UUIDs.

128-bit UUIDs are stored in little-endian (over-the-air) byte order, the
order attribute tables and advertising data carry them in. Strings are
always rendered big-endian in the canonical dashed form.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from gattkit.core.assigned import BasicService
from gattkit.core.errors import UuidParseError

_UUID16_RE = re.compile(r"^(?:0x)?([0-9a-f]{4})$")
_UUID128_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")
_BASE_UUID_SUFFIX = "-0000-1000-8000-00805f9b34fb"


@dataclass(frozen=True)
class Uuid16:
    value: int

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 0xFFFF:
            raise UuidParseError(f"16-bit UUID out of range: {self.value:#x}")

    def to_bytes(self) -> bytes:
        return self.value.to_bytes(2, "little")

    def __str__(self) -> str:
        return f"{self.value:04x}"


@dataclass(frozen=True)
class Uuid128:
    data: bytes

    def __post_init__(self) -> None:
        if len(self.data) != 16:
            raise UuidParseError(f"128-bit UUID must be 16 bytes, got {len(self.data)}")

    def to_bytes(self) -> bytes:
        return self.data

    def __str__(self) -> str:
        h = self.data[::-1].hex()
        return f"{h[:8]}-{h[8:12]}-{h[12:16]}-{h[16:20]}-{h[20:]}"


Uuid = Union[Uuid16, Uuid128]


def parse_uuid(literal: str | int) -> Uuid:
    """Parse a schema UUID literal.

    Accepts an integer in 16-bit range, a 4-digit hex string (optionally
    ``0x``-prefixed), a basic service name such as ``HeartRate``, or the
    canonical dashed 128-bit form.
    """
    if isinstance(literal, bool):
        raise UuidParseError(f"Not a UUID literal: {literal!r}")
    if isinstance(literal, int):
        if not 0 <= literal <= 0xFFFF:
            raise UuidParseError(f"Integer UUID literal {literal:#x} is not a 16-bit value")
        return Uuid16(literal)

    text = literal.strip()
    if text in BasicService.__members__:
        return Uuid16(int(BasicService[text]))

    lowered = text.lower()
    match = _UUID16_RE.match(lowered)
    if match:
        return Uuid16(int(match.group(1), 16))
    if _UUID128_RE.match(lowered):
        return Uuid128(bytes.fromhex(lowered.replace("-", ""))[::-1])
    raise UuidParseError(
        f"Could not parse {literal!r} as a 16-bit or canonical 128-bit UUID"
    )


def from_platform_string(value: str) -> Uuid:
    """Convert a full 128-bit UUID string as reported by a host BLE stack.

    UUIDs built on the Bluetooth base UUID collapse back to their 16-bit
    alias so they compare equal to schema-declared 16-bit UUIDs.
    """
    lowered = value.strip().lower()
    if (
        _UUID128_RE.match(lowered)
        and lowered.startswith("0000")
        and lowered.endswith(_BASE_UUID_SUFFIX)
    ):
        return Uuid16(int(lowered[4:8], 16))
    return parse_uuid(lowered)


def to_platform_string(uuid: Uuid) -> str:
    if isinstance(uuid, Uuid16):
        return f"0000{uuid.value:04x}{_BASE_UUID_SUFFIX}"
    return str(uuid)
