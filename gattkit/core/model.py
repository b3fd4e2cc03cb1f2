"""Core schema data models shared by loader, validator, engine and encoder."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import reduce

from gattkit.core.assigned import SERVICE_LIST_AD_TYPES, ADType, Flag, SecurityMode
from gattkit.core.diagnostics import SourceLocation
from gattkit.core.uuid import Uuid
from gattkit.core.values import ValueType

_WORD_SPLIT_RE = re.compile(r"[_\-\s]+")


def to_pascal_case(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in _WORD_SPLIT_RE.split(name) if part)


@dataclass(frozen=True)
class CharacteristicSchema:
    name: str
    value_type: ValueType
    uuid: Uuid
    read: bool = False
    write: bool = False
    write_without_response: bool = False
    notify: bool = False
    indicate: bool = False
    security: SecurityMode | None = None
    location: SourceLocation | None = field(default=None, compare=False)

    @property
    def pascal_name(self) -> str:
        return to_pascal_case(self.name)

    @property
    def has_cccd(self) -> bool:
        return self.notify or self.indicate

    @property
    def writable(self) -> bool:
        return self.write or self.write_without_response

    @property
    def accessible(self) -> bool:
        return self.read or self.writable or self.has_cccd


@dataclass(frozen=True)
class ServiceSchema:
    name: str
    uuid: Uuid
    characteristics: tuple[CharacteristicSchema, ...]
    kind: str = "service"
    location: SourceLocation | None = field(default=None, compare=False)

    @property
    def event_name(self) -> str:
        return f"{self.name}Event"

    def characteristic(self, name: str) -> CharacteristicSchema | None:
        for ch in self.characteristics:
            if ch.name == name:
                return ch
        return None


@dataclass(frozen=True)
class ServerField:
    name: str
    service: ServiceSchema

    @property
    def pascal_name(self) -> str:
        return to_pascal_case(self.name)


@dataclass(frozen=True)
class ServerSchema:
    name: str
    services: tuple[ServerField, ...]
    location: SourceLocation | None = field(default=None, compare=False)

    @property
    def event_name(self) -> str:
        return f"{self.name}Event"


@dataclass(frozen=True)
class FlagSet:
    flags: tuple[Flag, ...]

    @property
    def value(self) -> int:
        return int(reduce(lambda acc, flag: acc | flag, self.flags, Flag(0)))


@dataclass(frozen=True)
class AdvertisedService:
    """One entry of a service list.

    `width` is the UUID's natural width: 16 for basic services and 4-digit
    custom literals, 32 for 8-digit custom literals, 128 for dashed literals.
    """

    width: int
    value: int | bytes
    label: str = field(default="", compare=False)


@dataclass(frozen=True)
class ServiceList:
    width: int
    complete: bool
    services: tuple[AdvertisedService, ...]

    @property
    def ad_type(self) -> ADType:
        return SERVICE_LIST_AD_TYPES[(self.width, self.complete)]


@dataclass(frozen=True)
class AdvertisementSchema:
    flags: FlagSet | None = None
    services: ServiceList | None = None
    short_name: str | None = None
    full_name: str | None = None
    name: str = ""
    location: SourceLocation | None = field(default=None, compare=False)
