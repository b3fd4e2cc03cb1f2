"""A GATT server grouping several services under one event type."""

from __future__ import annotations

import logging
from typing import Any

from gattkit.core.model import ServerSchema
from gattkit.gatt.events import ServerEvent
from gattkit.gatt.layout import ArtifactLayout, server_layout
from gattkit.gatt.service import Service
from gattkit.stack.base import GattServerStack

LOGGER = logging.getLogger(__name__)


class Server:
    def __init__(self, schema: ServerSchema, services: dict[str, Service]) -> None:
        self.schema = schema
        self.services = services

    @classmethod
    def register(cls, schema: ServerSchema, stack: GattServerStack) -> Server:
        """Register every service in declaration order.

        The first `RegisterError` propagates unchanged and no server is built.
        """
        services: dict[str, Service] = {}
        for field in schema.services:
            services[field.name] = Service.register(field.service, stack)
        LOGGER.debug("Registered server %s with %d service(s)", schema.name, len(services))
        return cls(schema, services)

    @property
    def layout(self) -> ArtifactLayout:
        return server_layout(self.schema)

    def on_write(self, conn: Any, handle: int, data: bytes) -> ServerEvent | None:
        for field in self.schema.services:
            event = self.services[field.name].on_write(handle, data)
            if event is not None:
                return ServerEvent(field.pascal_name, event)
        return None

    def __getattr__(self, name: str) -> Any:
        services = self.__dict__.get("services", {})
        if name in services:
            return services[name]
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")
