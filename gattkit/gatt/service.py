"""Local GATT service instances built from a service schema."""

from __future__ import annotations

import logging
from functools import partial
from typing import Any

from gattkit.core.assigned import SecurityMode
from gattkit.core.errors import (
    CapabilityError,
    GetValueError,
    IndicateValueError,
    NotifyValueError,
    RegisterError,
    SetValueError,
)
from gattkit.core.model import CharacteristicSchema, ServiceSchema
from gattkit.gatt.events import CccdWriteEvent, ServiceEvent, WriteEvent
from gattkit.gatt.layout import ArtifactLayout, service_layout
from gattkit.stack.base import Attribute, CharacteristicHandles, GattServerStack, Properties

LOGGER = logging.getLogger(__name__)

CCCD_NOTIFY = 0x01
CCCD_INDICATE = 0x02


def _attribute_for(ch: CharacteristicSchema) -> Attribute:
    vtype = ch.value_type
    security = ch.security or SecurityMode.Open
    return Attribute(
        value=bytes(vtype.min_size),
        max_len=vtype.max_size,
        variable_len=vtype.variable_len,
        read_security=security,
        write_security=security,
    )


def _properties_for(ch: CharacteristicSchema) -> Properties:
    return Properties(
        read=ch.read,
        write=ch.write,
        write_without_response=ch.write_without_response,
        notify=ch.notify,
        indicate=ch.indicate,
    )


class Service:
    """A registered service.

    Besides `get`/`set`/`notify`/`indicate` taking a characteristic name, the
    per-characteristic names of the layout resolve as attributes, e.g.
    ``svc.battery_level_get()`` or ``svc.battery_level_cccd_handle``.
    """

    def __init__(
        self,
        schema: ServiceSchema,
        stack: GattServerStack,
        handles: dict[str, CharacteristicHandles],
    ) -> None:
        self.schema = schema
        self.stack = stack
        self.handles = handles
        self._chars = {ch.name: ch for ch in schema.characteristics}
        self._generated = self._generated_names()

    @classmethod
    def register(cls, schema: ServiceSchema, stack: GattServerStack) -> Service:
        if schema.kind != "service":
            raise RegisterError(f"Schema '{schema.name}' is a {schema.kind} schema, not a service")
        try:
            service_handle = stack.add_service(schema.uuid)
        except Exception as exc:
            raise RegisterError(f"Could not register service '{schema.name}': {exc}") from exc

        handles: dict[str, CharacteristicHandles] = {}
        for ch in schema.characteristics:
            try:
                handles[ch.name] = stack.add_characteristic(
                    service_handle,
                    ch.uuid,
                    _attribute_for(ch),
                    _properties_for(ch),
                )
            except Exception as exc:
                raise RegisterError(
                    f"Could not register characteristic '{schema.name}.{ch.name}': {exc}"
                ) from exc
            LOGGER.debug(
                "%s.%s: value handle %d, cccd handle %d",
                schema.name,
                ch.name,
                handles[ch.name].value_handle,
                handles[ch.name].cccd_handle,
            )
        return cls(schema, stack, handles)

    @property
    def layout(self) -> ArtifactLayout:
        return service_layout(self.schema)

    def _char(self, name: str) -> CharacteristicSchema:
        ch = self._chars.get(name)
        if ch is None:
            available = ", ".join(self._chars)
            raise CapabilityError(
                f"Service '{self.schema.name}' has no characteristic '{name}'. Available: {available}"
            )
        return ch

    def get(self, name: str) -> Any:
        ch = self._char(name)
        try:
            data = self.stack.get_value(self.handles[name].value_handle, ch.value_type.max_size)
        except Exception as exc:
            raise GetValueError(f"Could not read value of '{name}': {exc}") from exc
        return ch.value_type.from_gatt(data)

    def set(self, name: str, value: Any) -> None:
        ch = self._char(name)
        try:
            data = ch.value_type.to_gatt(value)
            self.stack.set_value(self.handles[name].value_handle, data)
        except Exception as exc:
            raise SetValueError(f"Could not set value of '{name}': {exc}") from exc

    def notify(self, name: str, conn: Any, value: Any) -> None:
        ch = self._char(name)
        if not ch.notify:
            raise CapabilityError(f"Characteristic '{name}' does not declare notify")
        try:
            data = ch.value_type.to_gatt(value)
            self.stack.notify_value(conn, self.handles[name].value_handle, data)
        except Exception as exc:
            raise NotifyValueError(f"Could not notify '{name}': {exc}") from exc

    def indicate(self, name: str, conn: Any, value: Any) -> None:
        ch = self._char(name)
        if not ch.indicate:
            raise CapabilityError(f"Characteristic '{name}' does not declare indicate")
        try:
            data = ch.value_type.to_gatt(value)
            self.stack.indicate_value(conn, self.handles[name].value_handle, data)
        except Exception as exc:
            raise IndicateValueError(f"Could not indicate '{name}': {exc}") from exc

    def on_write(self, handle: int, data: bytes) -> ServiceEvent | None:
        """Translate an inbound write into an event, or None if no handle matches."""
        for ch in self.schema.characteristics:
            handles = self.handles[ch.name]
            if ch.writable and handle == handles.value_handle:
                if len(data) < ch.value_type.min_size:
                    try:
                        return WriteEvent(ch.name, self.get(ch.name))
                    except GetValueError:
                        LOGGER.debug("Short write to '%s' and stored value unreadable", ch.name)
                        return None
                return WriteEvent(ch.name, ch.value_type.from_gatt(data))

            if ch.has_cccd and handle == handles.cccd_handle and data:
                return _decode_cccd(ch, data[0])
        return None

    def _generated_names(self) -> dict[str, Any]:
        names: dict[str, Any] = {}
        for ch in self.schema.characteristics:
            names[f"{ch.name}_get"] = partial(self.get, ch.name)
            names[f"{ch.name}_set"] = partial(self.set, ch.name)
            if ch.notify:
                names[f"{ch.name}_notify"] = partial(self.notify, ch.name)
            if ch.indicate:
                names[f"{ch.name}_indicate"] = partial(self.indicate, ch.name)
            names[f"{ch.name}_value_handle"] = self.handles[ch.name].value_handle
            if ch.has_cccd:
                names[f"{ch.name}_cccd_handle"] = self.handles[ch.name].cccd_handle
        return names

    def __getattr__(self, name: str) -> Any:
        generated = self.__dict__.get("_generated", {})
        if name in generated:
            return generated[name]
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")


def _decode_cccd(ch: CharacteristicSchema, bits: int) -> CccdWriteEvent:
    if ch.notify and ch.indicate:
        return CccdWriteEvent(
            ch.name,
            notifications=bool(bits & CCCD_NOTIFY),
            indications=bool(bits & CCCD_INDICATE),
        )
    if ch.notify:
        return CccdWriteEvent(ch.name, notifications=bool(bits & CCCD_NOTIFY))
    return CccdWriteEvent(ch.name, indications=bool(bits & CCCD_INDICATE))
