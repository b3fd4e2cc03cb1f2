from __future__ import annotations

import pytest

from gattkit.core.model import ServerSchema, ServiceSchema
from gattkit.core.schema_loader import load_schemas


@pytest.fixture(scope="session")
def catalog():
    return load_schemas().schemas


@pytest.fixture
def battery_schema(catalog) -> ServiceSchema:
    return catalog["BatteryService"]


@pytest.fixture
def server_schema(catalog) -> ServerSchema:
    return catalog["Server"]


@pytest.fixture
def foo_schema(server_schema: ServerSchema) -> ServiceSchema:
    return server_schema.services[1].service
