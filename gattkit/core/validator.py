"""Structural and semantic validation of schema documents.

`compile_document` turns a loaded document (plain or located mapping) into
an immutable schema, recording every problem it can find on a `Diagnostics`
context before raising them together.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from functools import lru_cache
from importlib import resources
from typing import Any, Union

from jsonschema import validators

from gattkit.core.assigned import SecurityMode
from gattkit.core.diagnostics import Diagnostics, SourceLocation
from gattkit.core.errors import UuidParseError
from gattkit.core.grammar import parse_advertisement
from gattkit.core.model import (
    AdvertisementSchema,
    CharacteristicSchema,
    ServerField,
    ServerSchema,
    ServiceSchema,
)
from gattkit.core.uuid import parse_uuid
from gattkit.core.values import value_type

LOGGER = logging.getLogger(__name__)

Schema = Union[ServiceSchema, ServerSchema, AdvertisementSchema]

_CAPABILITIES = ("read", "write", "write_without_response", "notify", "indicate")


class _Fatal(Exception):
    """Stops compilation after a diagnostic that makes further checks meaningless."""


@lru_cache(maxsize=1)
def _load_schema_validator() -> Any:
    schema_text = resources.files("gattkit.schemas").joinpath("gatt.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _mark_location(diag: Diagnostics, mark: Any) -> SourceLocation:
    if mark is None:
        return diag.location()
    return diag.location(mark.line + 1, mark.column + 1)


def _key_location(diag: Diagnostics, node: Any, key: str | None = None) -> SourceLocation:
    marks = getattr(node, "key_marks", {})
    if key is not None and key in marks:
        return _mark_location(diag, marks[key])
    return _mark_location(diag, getattr(node, "start_mark", None))


def _path_location(diag: Diagnostics, doc: Any, path: Sequence[Any]) -> SourceLocation:
    node = doc
    location = _key_location(diag, doc)
    for part in path:
        if isinstance(node, Mapping) and part in node:
            location = _key_location(diag, node, part)
            node = node[part]
        else:
            break
    return location


def _check_duplicates(diag: Diagnostics, node: Any, parent_key: str | None = None) -> None:
    if not isinstance(node, Mapping):
        if isinstance(node, list):
            for item in node:
                _check_duplicates(diag, item, parent_key)
        return

    for key, mark in getattr(node, "duplicates", ()):
        location = _mark_location(diag, mark)
        if parent_key is None:
            plural = key if str(key).endswith("s") else f"{key}s"
            diag.error(location, f"multiple {plural} provided")
        elif parent_key == "characteristics":
            diag.error(location, f"duplicate characteristic '{key}'")
        elif parent_key == "services":
            diag.error(location, f"duplicate service field '{key}'")
        else:
            diag.error(location, f"duplicate key '{key}'")

    for key, value in node.items():
        _check_duplicates(diag, value, key)


def _check_named_fields(diag: Diagnostics, doc: Mapping[str, Any], kind: str) -> None:
    field_key = "services" if kind == "server" else "characteristics"
    fields = doc.get(field_key)
    if isinstance(fields, list):
        diag.error(
            _key_location(diag, doc, field_key),
            f"gatt_{kind} schemas must have named fields, not tuples.",
        )
        raise _Fatal()
    if kind == "server" and isinstance(fields, Mapping):
        for name, service in fields.items():
            if isinstance(service, Mapping) and isinstance(service.get("characteristics"), list):
                diag.error(
                    _key_location(diag, service, "characteristics"),
                    f"gatt_service schemas must have named fields, not tuples (service field '{name}').",
                )
                raise _Fatal()


def _check_structure(diag: Diagnostics, doc: Mapping[str, Any]) -> None:
    validator = _load_schema_validator()
    errors = sorted(validator.iter_errors(doc), key=lambda e: list(map(str, e.absolute_path)))
    for error in errors:
        path = ".".join(str(p) for p in error.absolute_path)
        where = f"{path}: " if path else ""
        diag.error(_path_location(diag, doc, list(error.absolute_path)), f"{where}{error.message}")
    if errors:
        raise _Fatal()


def _build_characteristic(
    diag: Diagnostics,
    name: str,
    spec: Mapping[str, Any],
    location: SourceLocation,
    *,
    kind: str,
) -> CharacteristicSchema | None:
    ok = True
    try:
        uuid = parse_uuid(spec["uuid"])
    except UuidParseError as exc:
        diag.error(_key_location(diag, spec, "uuid"), f"characteristic '{name}': {exc}")
        ok = False
    try:
        vtype = value_type(spec["type"])
    except ValueError as exc:
        diag.error(_key_location(diag, spec, "type"), f"characteristic '{name}': {exc}")
        ok = False

    flags = {cap: bool(spec.get(cap, False)) for cap in _CAPABILITIES}
    if not any(flags.values()):
        if kind == "client":
            LOGGER.warning(
                "%s: characteristic '%s' declares no operation and will not be required at discovery",
                location,
                name,
            )
        else:
            diag.error(location, f"characteristic '{name}' declares no accessible operation")
            ok = False

    if not ok:
        return None

    security = SecurityMode(spec["security"]) if "security" in spec else None
    return CharacteristicSchema(
        name=name,
        value_type=vtype,
        uuid=uuid,
        security=security,
        location=location,
        **flags,
    )


def _build_service(
    diag: Diagnostics,
    spec: Mapping[str, Any],
    location: SourceLocation,
    *,
    kind: str,
) -> ServiceSchema | None:
    ok = True
    try:
        uuid = parse_uuid(spec["uuid"])
    except UuidParseError as exc:
        diag.error(_key_location(diag, spec, "uuid"), f"service '{spec['name']}': {exc}")
        ok = False

    chars: list[CharacteristicSchema] = []
    characteristics = spec["characteristics"]
    for name, char_spec in characteristics.items():
        ch = _build_characteristic(
            diag,
            name,
            char_spec,
            _key_location(diag, characteristics, name),
            kind=kind,
        )
        if ch is None:
            ok = False
        else:
            chars.append(ch)

    if not ok:
        return None
    return ServiceSchema(
        name=spec["name"],
        uuid=uuid,
        characteristics=tuple(chars),
        kind=kind,
        location=location,
    )


def compile_document(doc: Any, *, source: str = "<memory>") -> Schema:
    """Validate a loaded schema document and build its schema object.

    Raises `SchemaValidationError` carrying every diagnostic found.
    """
    diag = Diagnostics(source)
    schema: Schema | None = None
    try:
        schema = _compile(diag, doc)
    except _Fatal:
        pass
    if schema is None and not diag.has_errors():
        diag.error(diag.location(), "schema produced no artifact")
    diag.check()
    return schema


def _compile(diag: Diagnostics, doc: Any) -> Schema | None:
    if not isinstance(doc, Mapping):
        diag.error(diag.location(), "schema document must contain a mapping at root")
        raise _Fatal()

    kind = doc.get("kind")
    _check_duplicates(diag, doc)
    if kind in ("service", "client", "server"):
        _check_named_fields(diag, doc, kind)
    _check_structure(diag, doc)

    location = _key_location(diag, doc)
    if kind == "advertisement":
        line, column = 1, 1
        data_mark = getattr(doc, "value_marks", {}).get("data")
        if data_mark is not None:
            line, column = data_mark.line + 1, data_mark.column + 1
            style = getattr(doc, "value_styles", {}).get("data")
            if style in ("|", ">"):
                line, column = line + 1, 1
            elif style in ('"', "'"):
                column += 1
        return parse_advertisement(doc["data"], diag, name=doc["name"], line=line, column=column)

    if kind == "server":
        fields: list[ServerField] = []
        services = doc["services"]
        for field_name, service_spec in services.items():
            service = _build_service(
                diag,
                service_spec,
                _key_location(diag, services, field_name),
                kind="service",
            )
            if service is not None:
                fields.append(ServerField(field_name, service))
        if diag.has_errors():
            return None
        return ServerSchema(name=doc["name"], services=tuple(fields), location=location)

    return _build_service(diag, doc, location, kind=kind)
