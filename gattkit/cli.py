"""Typer CLI entrypoint."""

from __future__ import annotations

from pathlib import Path

import typer

from gattkit.core.advertising import encode_advertisement, parse_ad_structures
from gattkit.core.assigned import MAX_ADV_PAYLOAD, ADType
from gattkit.core.errors import GattkitError, SchemaValidationError
from gattkit.core.grammar import compile_advertisement
from gattkit.core.model import AdvertisementSchema, ServerSchema, ServiceSchema
from gattkit.core.schema_loader import LoadedSchemas, load_schema_file, load_schemas, resolve_schema
from gattkit.core.validator import Schema
from gattkit.gatt.layout import ArtifactLayout, client_layout
from gattkit.gatt.server import Server
from gattkit.gatt.service import Service
from gattkit.stack.memory import MemoryGattStack

app = typer.Typer(help="Compile BLE GATT and advertising-data schemas")


def _load_catalog() -> LoadedSchemas:
    loaded = load_schemas()
    for warning in loaded.warnings:
        typer.echo(f"Warning: {warning}", err=True)
    return loaded


def _kind(schema: Schema) -> str:
    if isinstance(schema, ServerSchema):
        return "server"
    if isinstance(schema, AdvertisementSchema):
        return "advertisement"
    return schema.kind


def _report(exc: GattkitError) -> None:
    if isinstance(exc, SchemaValidationError):
        for diagnostic in exc.diagnostics:
            typer.echo(f"Error: {diagnostic}", err=True)
    else:
        typer.echo(f"Error: {exc}", err=True)


def _echo_layout(layout: ArtifactLayout, handles: dict[str, int] | None = None) -> None:
    typer.echo(f"{layout.name} -> {layout.event_name}")
    for field in layout.handle_fields:
        value = f" = {handles[field]}" if handles and field in handles else ""
        typer.echo(f"  field {field}{value}")
    for op in layout.operations:
        typer.echo(f"  fn {op}")
    for variant in layout.events:
        typer.echo(f"  event {variant.name}({', '.join(variant.fields)})")


def _service_handles(service: Service) -> dict[str, int]:
    return {field: getattr(service, field) for field in service.layout.handle_fields}


@app.command("list")
def list_schemas() -> None:
    """List packaged and user schemas."""
    try:
        loaded = _load_catalog()
        if not loaded.schemas:
            typer.echo("No schemas loaded")
            raise typer.Exit(code=1)

        for name, schema in sorted(loaded.schemas.items()):
            typer.echo(f"{name}: {_kind(schema)}")
            if isinstance(schema, ServiceSchema):
                for ch in schema.characteristics:
                    caps = [c for c in ("read", "write", "write_without_response", "notify", "indicate") if getattr(ch, c)]
                    typer.echo(f"  {ch.name} ({ch.value_type.name}, {ch.uuid}): {', '.join(caps) or '-'}")
    except GattkitError as exc:
        _report(exc)
        raise typer.Exit(code=1) from None


@app.command("check")
def check(path: str) -> None:
    """Validate a schema file and report every error found."""
    try:
        schema = load_schema_file(Path(path))
        typer.echo(f"OK: {schema.name} ({_kind(schema)})")
    except GattkitError as exc:
        _report(exc)
        raise typer.Exit(code=1) from None


@app.command("describe")
def describe(target: str) -> None:
    """Show the handles, operations and events a schema produces."""
    try:
        schema = resolve_schema(target, _load_catalog())
        if isinstance(schema, AdvertisementSchema):
            data = encode_advertisement(schema, limit=None)
            for structure in parse_ad_structures(data):
                typer.echo(_describe_structure(structure.ad_type, structure.payload))
            return
        if isinstance(schema, ServerSchema):
            stack = MemoryGattStack()
            server = Server.register(schema, stack)
            _echo_layout(server.layout)
            for service in server.services.values():
                _echo_layout(service.layout, _service_handles(service))
            return
        if schema.kind == "client":
            _echo_layout(client_layout(schema))
            return
        service = Service.register(schema, MemoryGattStack())
        _echo_layout(service.layout, _service_handles(service))
    except GattkitError as exc:
        _report(exc)
        raise typer.Exit(code=1) from None


@app.command("adv")
def adv(
    target: str | None = typer.Argument(None, help="Schema name or YAML path"),
    text: str | None = typer.Option(None, "--text", help="Advertisement declaration text"),
    no_limit: bool = typer.Option(False, "--no-limit", help="Skip the 31-byte payload check"),
) -> None:
    """Render advertising data as hex."""
    try:
        if text is not None:
            schema = compile_advertisement(text, source="--text")
        elif target is not None:
            schema = resolve_schema(target, _load_catalog())
        else:
            typer.echo("Error: pass a schema name, a path or --text", err=True)
            raise typer.Exit(code=2)
        if not isinstance(schema, AdvertisementSchema):
            typer.echo(f"Error: '{schema.name}' is not an advertisement schema", err=True)
            raise typer.Exit(code=1)
        typer.echo(encode_advertisement(schema, limit=None if no_limit else MAX_ADV_PAYLOAD).hex())
    except GattkitError as exc:
        _report(exc)
        raise typer.Exit(code=1) from None


@app.command("decode")
def decode(data: str) -> None:
    """Split a hex advertising payload into AD structures."""
    try:
        payload = bytes.fromhex(data.replace(":", "").replace(" ", ""))
    except ValueError:
        typer.echo(f"Error: '{data}' is not valid hex", err=True)
        raise typer.Exit(code=1) from None
    try:
        for structure in parse_ad_structures(payload):
            typer.echo(_describe_structure(structure.ad_type, structure.payload))
    except GattkitError as exc:
        _report(exc)
        raise typer.Exit(code=1) from None


def _describe_structure(ad_type: int, payload: bytes) -> str:
    try:
        type_name = ADType(ad_type).name
    except ValueError:
        type_name = f"{ad_type:#04x}"
    return f"{type_name} len={len(payload) + 1} {payload.hex()}"


def run() -> None:
    app()


if __name__ == "__main__":
    run()
