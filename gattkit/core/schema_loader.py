"""Schema loading for YAML-based gattkit schema documents."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml

from gattkit.core.diagnostics import Diagnostic, SourceLocation
from gattkit.core.errors import SchemaLoadError, SchemaValidationError
from gattkit.core.validator import Schema, compile_document

LOGGER = logging.getLogger(__name__)

_SCHEMA_SUFFIXES = (".yml", ".yaml")


class LocatedMapping(dict):
    """A mapping that remembers where its keys and values appeared.

    Duplicate keys are recorded instead of raised so the validator can report
    them alongside every other problem in the document.
    """

    def __init__(self, start_mark: yaml.Mark | None = None) -> None:
        super().__init__()
        self.start_mark = start_mark
        self.key_marks: dict[Any, yaml.Mark] = {}
        self.value_marks: dict[Any, yaml.Mark] = {}
        self.value_styles: dict[Any, str | None] = {}
        self.duplicates: list[tuple[Any, yaml.Mark]] = []


class LocatingLoader(yaml.SafeLoader):
    """YAML loader that builds `LocatedMapping` objects."""


def _construct_mapping(loader: LocatingLoader, node: yaml.MappingNode, deep: bool = False) -> LocatedMapping:
    mapping = LocatedMapping(node.start_mark)
    loader.flatten_mapping(node)
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=True)
        if key in mapping:
            mapping.duplicates.append((key, key_node.start_mark))
            continue
        mapping[key] = loader.construct_object(value_node, deep=True)
        mapping.key_marks[key] = key_node.start_mark
        mapping.value_marks[key] = value_node.start_mark
        mapping.value_styles[key] = getattr(value_node, "style", None)
    return mapping


LocatingLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class LoadedSchemas:
    schemas: dict[str, Schema]
    warnings: tuple[str, ...]


def _schema_dirs() -> tuple[Path, Path]:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    xdg_data = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return xdg_config / "gattkit/schemas", xdg_data / "gattkit/schemas"


def _read_yaml(path: Path | Traversable) -> Any:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SchemaLoadError(f"Could not read schema file {path}: {exc}") from exc
    return parse_yaml(content, source=str(path))


def parse_yaml(content: str, *, source: str = "<string>") -> Any:
    try:
        return yaml.load(content, Loader=LocatingLoader)
    except yaml.MarkedYAMLError as exc:
        mark = exc.problem_mark
        location = SourceLocation(source, mark.line + 1, mark.column + 1) if mark else SourceLocation(source)
        raise SchemaValidationError((Diagnostic(location, f"Invalid YAML: {exc.problem}"),)) from exc
    except yaml.YAMLError as exc:
        raise SchemaValidationError((Diagnostic(SourceLocation(source), f"Invalid YAML: {exc}"),)) from exc


def load_schema_text(content: str, *, source: str = "<string>") -> Schema:
    return compile_document(parse_yaml(content, source=source), source=source)


def load_schema_file(path: Path | Traversable) -> Schema:
    return compile_document(_read_yaml(path), source=str(path))


def _iter_packaged_schema_paths() -> list[Traversable]:
    catalog_root = resources.files("gattkit.catalog")
    return [item for item in catalog_root.iterdir() if item.name.endswith(_SCHEMA_SUFFIXES)]


def _iter_user_schema_paths() -> list[Path]:
    paths: list[Path] = []
    for directory in _schema_dirs():
        if not directory.exists() or not directory.is_dir():
            continue
        paths.extend(sorted(p for p in directory.iterdir() if p.suffix in _SCHEMA_SUFFIXES))
    return paths


def load_schemas() -> LoadedSchemas:
    schemas: dict[str, Schema] = {}
    warnings: list[str] = []

    for path in sorted(_iter_packaged_schema_paths(), key=lambda p: p.name):
        schema = load_schema_file(path)
        schemas[schema.name] = schema

    for path in _iter_user_schema_paths():
        schema = load_schema_file(path)
        if schema.name in schemas:
            warning = f"User schema '{schema.name}' overrides packaged schema"
            LOGGER.warning(warning)
            warnings.append(warning)
        schemas[schema.name] = schema

    return LoadedSchemas(schemas=schemas, warnings=tuple(warnings))


def resolve_schema(name_or_path: str, loaded: LoadedSchemas | None = None) -> Schema:
    """Find a schema by catalog name, falling back to a file path."""
    path = Path(name_or_path)
    if path.suffix in _SCHEMA_SUFFIXES and path.exists():
        return load_schema_file(path)
    catalog = loaded if loaded is not None else load_schemas()
    schema = catalog.schemas.get(name_or_path)
    if schema is None:
        available = ", ".join(sorted(catalog.schemas)) or "<none>"
        raise SchemaLoadError(f"Unknown schema '{name_or_path}'. Available: {available}")
    return schema
