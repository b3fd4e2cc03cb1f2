"""Parser for the advertisement-data declaration language.

Example::

    flags: (GeneralDiscovery),
    services: Complete16(HealthThermometer),
    short_name: "HelloRust"

Problems are recorded on a `Diagnostics` context; after a bad field the
parser skips to the next top-level comma so every error is reported in one
pass.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from gattkit.core.assigned import SERVICE_LIST_TAGS, BasicService, Flag
from gattkit.core.diagnostics import Diagnostics, SourceLocation
from gattkit.core.errors import UuidParseError
from gattkit.core.model import AdvertisedService, AdvertisementSchema, FlagSet, ServiceList
from gattkit.core.uuid import Uuid128, parse_uuid

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>[ \t\r\n]+|//[^\n]*)
    |(?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    |(?P<int>0[xX][0-9a-fA-F]+|[0-9]+)
    |(?P<string>"(?:[^"\\\n]|\\.)*")
    |(?P<punct>[(),:])
    """,
    re.VERBOSE,
)
_UUID32_RE = re.compile(r"^(?:0x)?([0-9a-f]{8})$")

FIELD_NAMES = ("flags", "services", "short_name", "full_name")


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    line: int
    column: int

    @property
    def value(self) -> Any:
        if self.kind == "int":
            return int(self.text, 0)
        if self.kind == "string":
            return re.sub(r"\\(.)", r"\1", self.text[1:-1])
        return self.text


class _FieldAbort(Exception):
    """Unwinds to the field loop once a diagnostic has been recorded."""


def tokenize(text: str, diagnostics: Diagnostics, *, line: int = 1, column: int = 1) -> list[Token]:
    tokens: list[Token] = []
    pos = 0
    cur_line, line_start = line, -column + 1
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        col = pos - line_start + 1
        if match is None:
            if text[pos] == '"':
                diagnostics.error(diagnostics.location(cur_line, col), "unterminated string literal")
                end = text.find("\n", pos)
                pos = len(text) if end < 0 else end
            else:
                diagnostics.error(diagnostics.location(cur_line, col), f"unexpected character {text[pos]!r}")
                pos += 1
            continue
        kind = match.lastgroup or ""
        chunk = match.group()
        if kind != "ws":
            tokens.append(Token(kind if kind != "punct" else chunk, chunk, cur_line, col))
        newlines = chunk.count("\n")
        if newlines:
            cur_line += newlines
            line_start = pos + chunk.rindex("\n") + 1
        pos = match.end()
    tokens.append(Token("eof", "", cur_line, pos - line_start + 1))
    return tokens


class AdvertisementParser:
    def __init__(self, tokens: list[Token], diagnostics: Diagnostics) -> None:
        self._tokens = tokens
        self._pos = 0
        self._depth = 0
        self._diag = diagnostics

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _next(self) -> Token:
        token = self._tokens[self._pos]
        if token.kind != "eof":
            self._pos += 1
        if token.kind == "(":
            self._depth += 1
        elif token.kind == ")":
            self._depth = max(self._depth - 1, 0)
        return token

    def _loc(self, token: Token) -> SourceLocation:
        return self._diag.location(token.line, token.column)

    def _fail(self, token: Token, message: str) -> _FieldAbort:
        self._diag.error(self._loc(token), message)
        return _FieldAbort()

    def _expect(self, kind: str, what: str) -> Token:
        token = self._next()
        if token.kind != kind:
            found = token.text or "end of input"
            raise self._fail(token, f"expected {what}, found {found!r}")
        return token

    def _sync(self) -> None:
        while self._peek().kind != "eof":
            if self._peek().kind == "," and self._depth == 0:
                return
            self._next()

    def parse(self, name: str = "") -> AdvertisementSchema:
        values: dict[str, Any] = {}
        first = self._peek()
        while self._peek().kind != "eof":
            self._depth = 0
            try:
                key = self._expect("ident", "advertisement field name")
                self._expect(":", "':'")
                if key.text not in FIELD_NAMES:
                    raise self._fail(key, f'unexpected advertisement field "{key.text}"')
                value = self._parse_field(key.text)
                if key.text in values:
                    plural = key.text if key.text.endswith("s") else f"{key.text}s"
                    self._diag.error(self._loc(key), f"multiple {plural} provided")
                else:
                    values[key.text] = value
            except _FieldAbort:
                self._sync()

            if self._peek().kind == "eof":
                break
            try:
                self._expect(",", "','")
            except _FieldAbort:
                self._sync()
                if self._peek().kind == ",":
                    self._next()

        return AdvertisementSchema(
            flags=values.get("flags"),
            services=values.get("services"),
            short_name=values.get("short_name"),
            full_name=values.get("full_name"),
            name=name,
            location=self._loc(first),
        )

    def _parse_field(self, key: str) -> Any:
        if key == "flags":
            return FlagSet(self._parse_set(self._parse_flag))
        if key == "services":
            return self._parse_services()
        return self._expect("string", "string literal").value

    def _parse_set(self, parse_item: Callable[[], T]) -> tuple[T, ...]:
        items: list[T] = []
        self._expect("(", "'('")
        while self._peek().kind != ")":
            token = self._peek()
            item = parse_item()
            if item in items:
                self._diag.error(self._loc(token), "identifiers must be unique")
            else:
                items.append(item)
            if self._peek().kind == ")":
                break
            self._expect(",", "',' or ')'")
        self._expect(")", "')'")
        return tuple(items)

    def _parse_flag(self) -> Flag:
        token = self._next()
        if token.kind != "ident" or token.text not in Flag.__members__:
            raise self._fail(token, "expected flag identifier")
        return Flag[token.text]

    def _parse_service(self) -> AdvertisedService:
        token = self._next()
        if token.kind == "int":
            if token.value > 0xFFFF:
                raise self._fail(token, "basic service number must fit in 16 bits")
            return AdvertisedService(16, token.value, token.text)
        if token.kind != "ident":
            raise self._fail(token, "expected service identifier")
        if token.text == "Custom":
            self._expect("(", "'('")
            literal = self._expect("string", "UUID string literal")
            self._expect(")", "')'")
            return self._custom_service(literal)
        if token.text in BasicService.__members__:
            return AdvertisedService(16, int(BasicService[token.text]), token.text)
        raise self._fail(token, "expected service identifier")

    def _custom_service(self, literal: Token) -> AdvertisedService:
        text = literal.value.strip().lower()
        match = _UUID32_RE.match(text)
        if match:
            return AdvertisedService(32, int(match.group(1), 16), literal.value)
        try:
            uuid = parse_uuid(text)
        except UuidParseError:
            raise self._fail(literal, "could not parse string literal as UUID") from None
        if isinstance(uuid, Uuid128):
            return AdvertisedService(128, uuid.data, literal.value)
        return AdvertisedService(16, uuid.value, literal.value)

    def _parse_services(self) -> ServiceList:
        tag = self._next()
        if tag.kind != "ident" or tag.text not in SERVICE_LIST_TAGS:
            raise self._fail(tag, "expected service list")
        width, complete = SERVICE_LIST_TAGS[tag.text]
        services = self._parse_set(self._parse_service)
        if not services:
            self._diag.error(self._loc(tag), "service list must not be empty")
        for service in services:
            if service.width != width and not (service.width == 16 and width == 32):
                self._diag.error(
                    self._loc(tag),
                    f"service {service.label} is a {service.width}-bit UUID "
                    f"and cannot appear in a {width}-bit list",
                )
        return ServiceList(width, complete, services)


def parse_advertisement(
    text: str,
    diagnostics: Diagnostics,
    *,
    name: str = "",
    line: int = 1,
    column: int = 1,
) -> AdvertisementSchema:
    """Parse advertisement DSL text, recording errors on `diagnostics`.

    The returned schema is only meaningful if `diagnostics` has no errors.
    """
    tokens = tokenize(text, diagnostics, line=line, column=column)
    schema = AdvertisementParser(tokens, diagnostics).parse(name)
    LOGGER.debug("Parsed advertisement %r with %d error(s)", name, len(diagnostics.errors))
    return schema


def compile_advertisement(text: str, *, source: str = "<advertisement>", name: str = "") -> AdvertisementSchema:
    """Parse and validate advertisement DSL text, raising all errors at once."""
    diagnostics = Diagnostics(source)
    schema = parse_advertisement(text, diagnostics, name=name)
    diagnostics.check()
    return schema
