from __future__ import annotations

import pytest

from gattkit.core.errors import (
    CapabilityError,
    GetValueError,
    NotifyValueError,
    RegisterError,
    SetValueError,
)
from gattkit.core.assigned import SecurityMode
from gattkit.core.model import CharacteristicSchema, ServiceSchema
from gattkit.core.uuid import Uuid16
from gattkit.core.values import value_type
from gattkit.gatt.events import CccdWriteEvent, WriteEvent
from gattkit.gatt.service import Service
from gattkit.stack.memory import Connection, MemoryGattStack


def _single(**caps: bool) -> ServiceSchema:
    ch = CharacteristicSchema(name="level", value_type=value_type("u16"), uuid=Uuid16(0x2A19), **caps)
    return ServiceSchema(name="Single", uuid=Uuid16(0x180F), characteristics=(ch,))


def test_register_allocates_handles(battery_schema: ServiceSchema) -> None:
    stack = MemoryGattStack()
    service = Service.register(battery_schema, stack)
    assert service.handles["battery_level"].value_handle == 3
    assert service.handles["battery_level"].cccd_handle == 4
    assert service.battery_level_value_handle == 3
    assert service.battery_level_cccd_handle == 4
    assert stack.services == {1: Uuid16(0x180F)}


def test_register_fails_when_table_is_full(battery_schema: ServiceSchema) -> None:
    with pytest.raises(RegisterError, match="battery_level"):
        Service.register(battery_schema, MemoryGattStack(attr_table_size=3))


def test_register_rejects_client_schema(catalog) -> None:
    with pytest.raises(RegisterError, match="client schema"):
        Service.register(catalog["BatteryServiceClient"], MemoryGattStack())


def test_initial_value_is_zero_and_set_round_trips(foo_schema: ServiceSchema) -> None:
    service = Service.register(foo_schema, MemoryGattStack())
    assert service.get("foo") == 0
    assert service.label_get() == ""

    service.foo_set(0xBEEF)
    assert service.foo_get() == 0xBEEF
    assert service.stack.get_value(service.foo_value_handle, 2) == b"\xef\xbe"

    service.set("label", "hello")
    assert service.get("label") == "hello"


def test_set_rejects_oversized_value(foo_schema: ServiceSchema) -> None:
    service = Service.register(foo_schema, MemoryGattStack())
    with pytest.raises(SetValueError):
        service.set("label", "x" * 21)
    with pytest.raises(SetValueError):
        service.set("foo", 70000)


def test_notify_and_indicate_reach_the_stack(foo_schema: ServiceSchema) -> None:
    stack = MemoryGattStack()
    service = Service.register(foo_schema, stack)
    conn = Connection(handle=1)

    service.foo_notify(conn, 7)
    service.foo_indicate(conn, 8)

    assert [(s.kind, s.handle, s.data) for s in stack.sent] == [
        ("notify", service.foo_value_handle, b"\x07\x00"),
        ("indicate", service.foo_value_handle, b"\x08\x00"),
    ]


def test_notify_on_dropped_connection_fails(battery_schema: ServiceSchema) -> None:
    service = Service.register(battery_schema, MemoryGattStack())
    with pytest.raises(NotifyValueError):
        service.notify("battery_level", Connection(handle=1, connected=False), 50)


def test_undeclared_operations_are_absent(battery_schema: ServiceSchema) -> None:
    service = Service.register(battery_schema, MemoryGattStack())
    with pytest.raises(CapabilityError):
        service.indicate("battery_level", Connection(handle=1), 1)
    with pytest.raises(AttributeError):
        service.battery_level_indicate
    with pytest.raises(CapabilityError):
        service.get("missing")


def test_get_on_unknown_handle_is_wrapped(battery_schema: ServiceSchema) -> None:
    service = Service.register(battery_schema, MemoryGattStack())
    service.stack.entries.clear()
    with pytest.raises(GetValueError):
        service.get("battery_level")


def test_write_dispatch(foo_schema: ServiceSchema) -> None:
    service = Service.register(foo_schema, MemoryGattStack())
    assert service.on_write(service.foo_value_handle, b"\x34\x12") == WriteEvent("foo", 0x1234)
    assert service.on_write(service.label_value_handle, b"hi") == WriteEvent("label", "hi")
    assert service.on_write(999, b"\x01") is None


def test_write_to_read_only_characteristic_is_ignored(battery_schema: ServiceSchema) -> None:
    service = Service.register(battery_schema, MemoryGattStack())
    assert service.on_write(service.battery_level_value_handle, b"\x05") is None


def test_short_write_reports_stored_value(foo_schema: ServiceSchema) -> None:
    stack = MemoryGattStack()
    service = Service.register(foo_schema, stack)
    service.set("foo", 42)

    stack.write(service.foo_value_handle, b"\x01")
    event = service.on_write(service.foo_value_handle, b"\x01")

    assert event == WriteEvent("foo", 42)


def test_short_write_with_unreadable_value_produces_no_event(foo_schema: ServiceSchema) -> None:
    service = Service.register(foo_schema, MemoryGattStack())
    handle = service.foo_value_handle
    del service.stack.entries[handle]
    assert service.on_write(handle, b"") is None


@pytest.mark.parametrize(
    ("caps", "bits", "expected"),
    [
        ({"notify": True}, 0x00, CccdWriteEvent("level", notifications=False)),
        ({"notify": True}, 0x01, CccdWriteEvent("level", notifications=True)),
        ({"notify": True}, 0x02, CccdWriteEvent("level", notifications=False)),
        ({"notify": True}, 0x03, CccdWriteEvent("level", notifications=True)),
        ({"indicate": True}, 0x00, CccdWriteEvent("level", indications=False)),
        ({"indicate": True}, 0x01, CccdWriteEvent("level", indications=False)),
        ({"indicate": True}, 0x02, CccdWriteEvent("level", indications=True)),
        ({"indicate": True}, 0x03, CccdWriteEvent("level", indications=True)),
        ({"notify": True, "indicate": True}, 0x00, CccdWriteEvent("level", False, False)),
        ({"notify": True, "indicate": True}, 0x01, CccdWriteEvent("level", True, False)),
        ({"notify": True, "indicate": True}, 0x02, CccdWriteEvent("level", False, True)),
        ({"notify": True, "indicate": True}, 0x03, CccdWriteEvent("level", True, True)),
    ],
)
def test_cccd_write_decoding(caps: dict[str, bool], bits: int, expected: CccdWriteEvent) -> None:
    service = Service.register(_single(**caps), MemoryGattStack())
    assert service.on_write(service.level_cccd_handle, bytes((bits, 0x00))) == expected


def test_empty_cccd_write_is_ignored() -> None:
    service = Service.register(_single(notify=True), MemoryGattStack())
    assert service.on_write(service.level_cccd_handle, b"") is None


def test_layout_names(foo_schema: ServiceSchema) -> None:
    layout = Service.register(foo_schema, MemoryGattStack()).layout
    assert layout.event_name == "FooServiceEvent"
    assert layout.handle_fields == ("foo_value_handle", "foo_cccd_handle", "label_value_handle")
    assert layout.operations == (
        "foo_get",
        "foo_set",
        "foo_notify",
        "foo_indicate",
        "label_get",
        "label_set",
    )
    assert [(v.name, v.fields) for v in layout.events] == [
        ("FooWrite", ("value",)),
        ("FooCccdWrite", ("indications", "notifications")),
        ("LabelWrite", ("value",)),
    ]


def test_registered_attributes_follow_schema(foo_schema: ServiceSchema) -> None:
    stack = MemoryGattStack()
    service = Service.register(foo_schema, stack)

    label = stack.entries[service.label_value_handle].attribute
    assert label.read_security is SecurityMode.JustWorks
    assert label.write_security is SecurityMode.JustWorks
    assert label.variable_len
    assert label.max_len == 20
    assert label.value == b""

    foo = stack.entries[service.foo_value_handle].attribute
    assert foo.read_security is SecurityMode.Open
    assert foo.write_security is SecurityMode.Open
    assert not foo.variable_len
    assert foo.max_len == 2
    assert foo.value == b"\x00\x00"
