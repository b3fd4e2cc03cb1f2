"""Collects schema errors with source locations and raises them together."""

from __future__ import annotations

from dataclasses import dataclass, field

from gattkit.core.errors import SchemaValidationError


@dataclass(frozen=True)
class SourceLocation:
    source: str
    line: int | None = None
    column: int | None = None

    def __str__(self) -> str:
        if self.line is None:
            return self.source
        if self.column is None:
            return f"{self.source}:{self.line}"
        return f"{self.source}:{self.line}:{self.column}"


@dataclass(frozen=True)
class Diagnostic:
    location: SourceLocation
    message: str

    def __str__(self) -> str:
        return f"{self.location}: {self.message}"


@dataclass
class Diagnostics:
    """Error context shared by one parse/validate pass.

    Parsers record problems with `error()` and keep going; the caller decides
    when to stop with `check()`.
    """

    source: str
    errors: list[Diagnostic] = field(default_factory=list)

    def location(self, line: int | None = None, column: int | None = None) -> SourceLocation:
        return SourceLocation(self.source, line, column)

    def error(self, location: SourceLocation, message: str) -> None:
        self.errors.append(Diagnostic(location, message))

    def has_errors(self) -> bool:
        return bool(self.errors)

    def check(self) -> None:
        if self.errors:
            raise SchemaValidationError(tuple(self.errors))
