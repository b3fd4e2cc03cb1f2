"""Domain-specific errors for gattkit."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gattkit.core.diagnostics import Diagnostic


class GattkitError(Exception):
    """Base error for gattkit."""


class SchemaError(GattkitError):
    """Base error for problems in a schema declaration."""


class SchemaLoadError(SchemaError):
    """Raised when reading schema sources fails."""


class SchemaValidationError(SchemaError):
    """Raised when a schema does not conform to structure or semantics.

    Carries every diagnostic collected while parsing, not only the first one.
    """

    def __init__(self, diagnostics: tuple[Diagnostic, ...]) -> None:
        self.diagnostics = diagnostics
        lines = [str(d) for d in diagnostics]
        if len(lines) == 1:
            message = lines[0]
        else:
            message = f"{len(lines)} schema errors:\n" + "\n".join(f"  {line}" for line in lines)
        super().__init__(message)


class UuidParseError(SchemaError):
    """Raised when a literal is neither a 16-bit nor a canonical 128-bit UUID."""


class StackError(GattkitError):
    """Raised by a BLE stack backend when it rejects an operation."""


class RegisterError(GattkitError):
    """Raised when a service or characteristic cannot be registered with the stack."""


class GetValueError(GattkitError):
    """Raised when reading a local attribute value fails."""


class SetValueError(GattkitError):
    """Raised when writing a local attribute value fails."""


class NotifyValueError(GattkitError):
    """Raised when sending a notification fails."""


class IndicateValueError(GattkitError):
    """Raised when sending an indication fails."""


class CapabilityError(GattkitError):
    """Raised when an operation is used that the characteristic did not declare."""


class DiscoverError(GattkitError):
    """Base error for client-side discovery."""


class ServiceIncompleteError(DiscoverError):
    """Raised when discovery finished without resolving a required handle."""


class NotDiscoveredError(DiscoverError):
    """Raised when a client operation is used before discovery completed."""


class TransportConnectError(GattkitError):
    """Raised when a connection to the peer cannot be established."""


class ReadError(GattkitError):
    """Raised when a GATT read on the peer fails."""


class WriteError(GattkitError):
    """Raised when a GATT write on the peer fails."""


class TryWriteError(GattkitError):
    """Raised when a write without response cannot be queued without blocking."""


class AdvertisementTooLongError(GattkitError):
    """Raised when rendered advertising data exceeds the payload ceiling."""


class AdvertisementDecodeError(GattkitError):
    """Raised when a byte sequence is not a well-formed list of AD structures."""
