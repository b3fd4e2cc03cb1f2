"""Events produced by write dispatch and client notifications."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from gattkit.core.model import to_pascal_case


@dataclass(frozen=True)
class WriteEvent:
    characteristic: str
    value: Any

    @property
    def variant(self) -> str:
        return f"{to_pascal_case(self.characteristic)}Write"


@dataclass(frozen=True)
class CccdWriteEvent:
    """Subscription state written by the peer.

    A field is None when the characteristic does not declare that capability.
    """

    characteristic: str
    notifications: bool | None = None
    indications: bool | None = None

    @property
    def variant(self) -> str:
        return f"{to_pascal_case(self.characteristic)}CccdWrite"


@dataclass(frozen=True)
class NotificationEvent:
    characteristic: str
    value: Any

    @property
    def variant(self) -> str:
        return f"{to_pascal_case(self.characteristic)}Notification"


ServiceEvent = Union[WriteEvent, CccdWriteEvent]


@dataclass(frozen=True)
class ServerEvent:
    service: str
    event: ServiceEvent

    @property
    def variant(self) -> str:
        return self.service
