"""Value types: the byte contract between characteristic values and attributes."""

from __future__ import annotations

import re
import struct
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

_BYTES_RE = re.compile(r"^(bytes|str)\[(\.\.)?(\d+)\]$")

_STRUCT_FORMATS = {
    "u8": "<B",
    "u16": "<H",
    "u32": "<I",
    "u64": "<Q",
    "i8": "<b",
    "i16": "<h",
    "i32": "<i",
    "i64": "<q",
    "f32": "<f",
    "f64": "<d",
}


@dataclass(frozen=True)
class ValueType:
    name: str
    min_size: int
    max_size: int
    decode: Callable[[bytes], Any]
    encode: Callable[[Any], bytes]

    @property
    def variable_len(self) -> bool:
        return self.min_size != self.max_size

    def from_gatt(self, data: bytes) -> Any:
        return self.decode(bytes(data))

    def to_gatt(self, value: Any) -> bytes:
        return self.encode(value)


def _struct_type(name: str, fmt: str) -> ValueType:
    codec = struct.Struct(fmt)

    def decode(data: bytes) -> Any:
        return codec.unpack(data[: codec.size])[0]

    def encode(value: Any) -> bytes:
        return codec.pack(value)

    return ValueType(name, codec.size, codec.size, decode, encode)


def _bool_type() -> ValueType:
    return ValueType(
        "bool",
        1,
        1,
        lambda data: data[0] != 0,
        lambda value: b"\x01" if value else b"\x00",
    )


def _bytes_type(name: str, size: int, variable: bool) -> ValueType:
    def encode(value: Any) -> bytes:
        data = bytes(value)
        if len(data) > size or (not variable and len(data) != size):
            raise ValueError(f"{name} value must be {'at most ' if variable else ''}{size} bytes")
        return data

    return ValueType(name, 0 if variable else size, size, lambda data: data[:size], encode)


def _str_type(name: str, size: int) -> ValueType:
    def encode(value: Any) -> bytes:
        data = str(value).encode("utf-8")
        if len(data) > size:
            raise ValueError(f"{name} value exceeds {size} bytes")
        return data

    return ValueType(name, 0, size, lambda data: data[:size].decode("utf-8", errors="replace"), encode)


def value_type(name: str) -> ValueType:
    """Resolve a schema type name such as ``u16``, ``bytes[6]`` or ``str[..20]``."""
    normalized = name.strip()
    if normalized in _STRUCT_FORMATS:
        return _struct_type(normalized, _STRUCT_FORMATS[normalized])
    if normalized == "bool":
        return _bool_type()

    match = _BYTES_RE.match(normalized)
    if match:
        kind, variable, size_text = match.groups()
        size = int(size_text)
        if size == 0 or size > 512:
            raise ValueError(f"Size of {normalized} must be between 1 and 512 bytes")
        if kind == "bytes":
            return _bytes_type(normalized, size, variable is not None)
        if variable is None:
            raise ValueError(f"String type {normalized} must be variable length (str[..N])")
        return _str_type(normalized, size)

    raise ValueError(f"Unknown value type '{name}'")
