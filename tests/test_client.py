from __future__ import annotations

import asyncio

import pytest

from gattkit.core.errors import (
    CapabilityError,
    NotDiscoveredError,
    ReadError,
    ServiceIncompleteError,
    TryWriteError,
    WriteError,
)
from gattkit.core.model import CharacteristicSchema, ServiceSchema
from gattkit.core.uuid import Uuid16, Uuid128, parse_uuid
from gattkit.core.values import value_type
from gattkit.gatt.client import CCCD_UUID, Client
from gattkit.gatt.events import NotificationEvent
from gattkit.transports.base import DiscoveredCharacteristic, DiscoveredDescriptor


class FakeTransport:
    def __init__(self) -> None:
        self.values: dict[int, bytes] = {}
        self.writes: list[tuple[str, int, bytes]] = []
        self.fail = False

    async def read(self, conn, handle: int) -> bytes:
        if self.fail:
            raise OSError("link lost")
        return self.values[handle]

    async def write(self, conn, handle: int, data: bytes) -> None:
        if self.fail:
            raise OSError("link lost")
        self.writes.append(("write", handle, data))

    async def write_without_response(self, conn, handle: int, data: bytes) -> None:
        self.writes.append(("command", handle, data))

    def try_write_without_response(self, conn, handle: int, data: bytes) -> None:
        if self.fail:
            raise BlockingIOError("queue full")
        self.writes.append(("try", handle, data))


def _discover(client: Client, *found: tuple[int, int, int]) -> None:
    """Feed (uuid16, value handle, cccd handle) triples and complete discovery."""
    for uuid, value_handle, cccd_handle in found:
        descriptors = [DiscoveredDescriptor(CCCD_UUID, cccd_handle)] if cccd_handle else []
        client.discovered_characteristic(
            DiscoveredCharacteristic(Uuid16(uuid), value_handle, value_handle - 1),
            descriptors,
        )
    client.discovery_complete()


@pytest.fixture
def client_schema(catalog) -> ServiceSchema:
    return catalog["BatteryServiceClient"]


def test_discovery_records_handles(client_schema: ServiceSchema) -> None:
    client = Client.new_undiscovered(client_schema, object(), FakeTransport())
    assert client.uuid == Uuid16(0x180F)
    assert client.battery_level_value_handle == 0

    _discover(client, (0x2A00, 3, 0), (0x2A19, 12, 13))

    assert client.discovered
    assert client.battery_level_value_handle == 12
    assert client.battery_level_cccd_handle == 13
    assert client.battery_level_uuid == Uuid16(0x2A19)


def test_missing_required_characteristic(client_schema: ServiceSchema) -> None:
    client = Client.new_undiscovered(client_schema, object(), FakeTransport())
    with pytest.raises(ServiceIncompleteError, match="battery_level"):
        _discover(client, (0x2A00, 3, 0))
    assert not client.discovered


def test_characteristic_without_operations_is_optional() -> None:
    read_only = CharacteristicSchema("level", value_type("u8"), Uuid16(0x2A19), read=True)
    hidden = CharacteristicSchema("hidden", value_type("u8"), Uuid16(0x2A1A))
    schema = ServiceSchema("Peer", Uuid16(0x180F), (read_only, hidden), kind="client")

    client = Client.new_undiscovered(schema, object(), FakeTransport())
    _discover(client, (0x2A19, 5, 0))
    assert client.discovered
    assert client.hidden_value_handle == 0

    client = Client.new_undiscovered(schema, object(), FakeTransport())
    with pytest.raises(ServiceIncompleteError, match="level"):
        _discover(client, (0x2A1A, 7, 0))


def test_operations_require_discovery(client_schema: ServiceSchema) -> None:
    client = Client.new_undiscovered(client_schema, object(), FakeTransport())
    with pytest.raises(NotDiscoveredError):
        asyncio.run(client.read("battery_level"))
    with pytest.raises(NotDiscoveredError):
        client.try_write_without_response("battery_level", 1)


def test_read_and_write(client_schema: ServiceSchema) -> None:
    transport = FakeTransport()
    client = Client.new_undiscovered(client_schema, object(), transport)
    _discover(client, (0x2A19, 12, 13))
    transport.values[12] = b"\x5a"

    assert asyncio.run(client.battery_level_read()) == 90
    asyncio.run(client.battery_level_write(10))
    asyncio.run(client.battery_level_write_without_response(11))
    client.battery_level_try_write_without_response(12)

    assert transport.writes == [
        ("write", 12, b"\x0a"),
        ("command", 12, b"\x0b"),
        ("try", 12, b"\x0c"),
    ]


def test_transport_failures_are_wrapped(client_schema: ServiceSchema) -> None:
    transport = FakeTransport()
    client = Client.new_undiscovered(client_schema, object(), transport)
    _discover(client, (0x2A19, 12, 13))
    transport.fail = True

    with pytest.raises(ReadError):
        asyncio.run(client.read("battery_level"))
    with pytest.raises(WriteError):
        asyncio.run(client.write("battery_level", 1))
    with pytest.raises(TryWriteError, match="queue full"):
        client.try_write_without_response("battery_level", 1)


def test_undeclared_capability() -> None:
    level = CharacteristicSchema("level", value_type("u8"), Uuid16(0x2A19), read=True)
    schema = ServiceSchema("Peer", Uuid16(0x180F), (level,), kind="client")
    client = Client.new_undiscovered(schema, object(), FakeTransport())

    with pytest.raises(CapabilityError):
        asyncio.run(client.write("level", 1))
    with pytest.raises(AttributeError):
        client.level_write
    with pytest.raises(AttributeError):
        client.level_cccd_handle


def test_notifications_decode_values(client_schema: ServiceSchema) -> None:
    client = Client.new_undiscovered(client_schema, object(), FakeTransport())
    _discover(client, (0x2A19, 12, 13))

    assert client.on_notification(12, b"\x33") == NotificationEvent("battery_level", 0x33)
    assert client.on_notification(12, b"\x33").variant == "BatteryLevelNotification"
    assert client.on_notification(13, b"\x33") is None
    assert client.on_notification(12, b"") is None


def test_128_bit_characteristics_match_on_full_uuid() -> None:
    uuid = parse_uuid("9e7312e0-2354-11eb-9f10-fbc30a63cf38")
    assert isinstance(uuid, Uuid128)
    foo = CharacteristicSchema("foo", value_type("u16"), uuid, read=True, notify=True)
    schema = ServiceSchema("Foo", parse_uuid("9e7312e0-2354-11eb-9f10-fbc30a62cf38"), (foo,), kind="client")
    client = Client.new_undiscovered(schema, object(), FakeTransport())

    client.discovered_characteristic(
        DiscoveredCharacteristic(parse_uuid("9e7312e0-2354-11eb-9f10-fbc30a64cf38"), 20),
        [],
    )
    client.discovered_characteristic(
        DiscoveredCharacteristic(uuid, 30),
        [DiscoveredDescriptor(Uuid16(0x2901), 31), DiscoveredDescriptor(CCCD_UUID, 32)],
    )
    client.discovery_complete()

    assert client.foo_value_handle == 30
    assert client.foo_cccd_handle == 32
    assert client.layout.operations == ("foo_read",)
    assert [v.name for v in client.layout.events] == ["FooNotification"]


def test_short_read_is_a_read_error() -> None:
    level = CharacteristicSchema("level", value_type("u16"), Uuid16(0x2A19), read=True)
    schema = ServiceSchema("Peer", Uuid16(0x180F), (level,), kind="client")
    transport = FakeTransport()
    client = Client.new_undiscovered(schema, object(), transport)
    _discover(client, (0x2A19, 5, 0))
    transport.values[5] = b"\x01"

    with pytest.raises(ReadError, match="needs 2"):
        asyncio.run(client.read("level"))
