"""Names of the handle fields, operations and event variants of an artifact."""

from __future__ import annotations

from dataclasses import dataclass

from gattkit.core.model import CharacteristicSchema, ServerSchema, ServiceSchema


@dataclass(frozen=True)
class EventVariant:
    name: str
    fields: tuple[str, ...]


@dataclass(frozen=True)
class ArtifactLayout:
    name: str
    event_name: str
    handle_fields: tuple[str, ...]
    operations: tuple[str, ...]
    events: tuple[EventVariant, ...]


def _cccd_fields(ch: CharacteristicSchema) -> tuple[str, ...]:
    if ch.notify and ch.indicate:
        return ("indications", "notifications")
    if ch.notify:
        return ("notifications",)
    return ("indications",)


def service_layout(schema: ServiceSchema) -> ArtifactLayout:
    handles: list[str] = []
    operations: list[str] = []
    events: list[EventVariant] = []
    for ch in schema.characteristics:
        handles.append(f"{ch.name}_value_handle")
        if ch.has_cccd:
            handles.append(f"{ch.name}_cccd_handle")
        operations.extend((f"{ch.name}_get", f"{ch.name}_set"))
        if ch.notify:
            operations.append(f"{ch.name}_notify")
        if ch.indicate:
            operations.append(f"{ch.name}_indicate")
        if ch.writable:
            events.append(EventVariant(f"{ch.pascal_name}Write", ("value",)))
        if ch.has_cccd:
            events.append(EventVariant(f"{ch.pascal_name}CccdWrite", _cccd_fields(ch)))
    return ArtifactLayout(schema.name, schema.event_name, tuple(handles), tuple(operations), tuple(events))


def client_layout(schema: ServiceSchema) -> ArtifactLayout:
    handles: list[str] = []
    operations: list[str] = []
    events: list[EventVariant] = []
    for ch in schema.characteristics:
        handles.extend((f"{ch.name}_value_handle", f"{ch.name}_uuid"))
        if ch.has_cccd:
            handles.append(f"{ch.name}_cccd_handle")
        if ch.read:
            operations.append(f"{ch.name}_read")
        if ch.write:
            operations.append(f"{ch.name}_write")
        if ch.writable:
            operations.extend(
                (f"{ch.name}_write_without_response", f"{ch.name}_try_write_without_response")
            )
        if ch.has_cccd:
            events.append(EventVariant(f"{ch.pascal_name}Notification", ("value",)))
    return ArtifactLayout(schema.name, schema.event_name, tuple(handles), tuple(operations), tuple(events))


def server_layout(schema: ServerSchema) -> ArtifactLayout:
    return ArtifactLayout(
        schema.name,
        schema.event_name,
        tuple(f.name for f in schema.services),
        ("new", "on_write"),
        tuple(EventVariant(f.pascal_name, (f.service.event_name,)) for f in schema.services),
    )
