"""Stable public API for building tooling on top of gattkit.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from gattkit.core.advertising import ADStructure, encode_advertisement, parse_ad_structures
from gattkit.core.assigned import BasicService, Flag, SecurityMode
from gattkit.core.diagnostics import Diagnostic, SourceLocation
from gattkit.core.errors import (
    AdvertisementDecodeError,
    AdvertisementTooLongError,
    CapabilityError,
    DiscoverError,
    GattkitError,
    GetValueError,
    IndicateValueError,
    NotDiscoveredError,
    NotifyValueError,
    ReadError,
    RegisterError,
    SchemaError,
    SchemaLoadError,
    SchemaValidationError,
    ServiceIncompleteError,
    SetValueError,
    StackError,
    TransportConnectError,
    TryWriteError,
    UuidParseError,
    WriteError,
)
from gattkit.core.grammar import compile_advertisement
from gattkit.core.model import (
    AdvertisementSchema,
    CharacteristicSchema,
    ServerSchema,
    ServiceSchema,
)
from gattkit.core.schema_loader import (
    LoadedSchemas,
    load_schema_file,
    load_schema_text,
    load_schemas,
    resolve_schema,
)
from gattkit.core.uuid import Uuid, Uuid16, Uuid128, parse_uuid
from gattkit.core.validator import compile_document
from gattkit.core.values import ValueType, value_type
from gattkit.gatt.client import Client
from gattkit.gatt.events import CccdWriteEvent, NotificationEvent, ServerEvent, WriteEvent
from gattkit.gatt.server import Server
from gattkit.gatt.service import Service
from gattkit.stack.base import GattServerStack
from gattkit.stack.memory import Connection, MemoryGattStack
from gattkit.transports.base import DiscoveredCharacteristic, DiscoveredDescriptor, GattClientTransport

__all__ = [
    "GattkitError",
    "SchemaError",
    "SchemaLoadError",
    "SchemaValidationError",
    "UuidParseError",
    "StackError",
    "RegisterError",
    "GetValueError",
    "SetValueError",
    "NotifyValueError",
    "IndicateValueError",
    "CapabilityError",
    "DiscoverError",
    "ServiceIncompleteError",
    "NotDiscoveredError",
    "TransportConnectError",
    "ReadError",
    "WriteError",
    "TryWriteError",
    "AdvertisementTooLongError",
    "AdvertisementDecodeError",
    "Diagnostic",
    "SourceLocation",
    "BasicService",
    "Flag",
    "SecurityMode",
    "Uuid",
    "Uuid16",
    "Uuid128",
    "parse_uuid",
    "ValueType",
    "value_type",
    "CharacteristicSchema",
    "ServiceSchema",
    "ServerSchema",
    "AdvertisementSchema",
    "LoadedSchemas",
    "load_schemas",
    "load_schema_file",
    "load_schema_text",
    "resolve_schema",
    "compile_document",
    "compile_advertisement",
    "ADStructure",
    "encode_advertisement",
    "parse_ad_structures",
    "Service",
    "Server",
    "Client",
    "WriteEvent",
    "CccdWriteEvent",
    "NotificationEvent",
    "ServerEvent",
    "GattServerStack",
    "MemoryGattStack",
    "Connection",
    "GattClientTransport",
    "DiscoveredCharacteristic",
    "DiscoveredDescriptor",
]
