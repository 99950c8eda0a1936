"""Shared data models for alexa-gate."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

# openHAB marker for an item that has never received a value
NULL_STATE = "NULL"


class ErrorType(Enum):
    INVALID_DIRECTIVE = "INVALID_DIRECTIVE"
    NO_SUCH_ENDPOINT = "NO_SUCH_ENDPOINT"
    ENDPOINT_UNREACHABLE = "ENDPOINT_UNREACHABLE"
    INVALID_VALUE = "INVALID_VALUE"


class DirectiveError(Exception):
    """Raised when a directive cannot be turned into a valid response."""

    def __init__(self, message: str, details: list[Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class InvalidItemStateError(DirectiveError):
    """Raised when openHAB returns the NULL state for a reported item."""

    def __init__(self, items: list[ItemState]) -> None:
        super().__init__("Invalid item state returned by openHAB", items)


class UndefinedPropertyError(DirectiveError):
    """Raised when a context property value cannot be resolved."""

    def __init__(self, properties: list[ContextProperty]) -> None:
        super().__init__("Undefined context property value", properties)


@dataclass(frozen=True)
class Header:
    namespace: str
    name: str
    message_id: str = ""
    correlation_token: str | None = None
    payload_version: str = "3"


@dataclass(frozen=True)
class Endpoint:
    endpoint_id: str = ""
    token: str | None = None
    cookie: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Directive:
    """Inbound Alexa directive, immutable for the lifetime of one request."""

    header: Header
    endpoint: Endpoint = field(default_factory=Endpoint)
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Directive:
        """Build a Directive from the wire shape, with or without the outer key."""
        raw = data.get("directive", data)
        header_raw = raw.get("header", {})
        header = Header(
            namespace=header_raw.get("namespace", ""),
            name=header_raw.get("name", ""),
            message_id=header_raw.get("messageId", ""),
            correlation_token=header_raw.get("correlationToken"),
            payload_version=header_raw.get("payloadVersion", "3"),
        )
        endpoint_raw = raw.get("endpoint") or {}
        # ReportState and discovery carry the token in different places
        scope = endpoint_raw.get("scope") or (raw.get("payload") or {}).get("scope") or {}
        endpoint = Endpoint(
            endpoint_id=endpoint_raw.get("endpointId", ""),
            token=scope.get("token"),
            cookie=endpoint_raw.get("cookie") or {},
        )
        return cls(header=header, endpoint=endpoint, payload=raw.get("payload") or {})


@dataclass(frozen=True)
class ItemRef:
    """Reference to the openHAB item bound to a capability."""

    name: str
    type: str = ""
    sensor: str | None = None


@dataclass
class ItemState:
    """State of an openHAB item as returned by the REST API."""

    name: str
    state: str
    type: str = ""
    pattern: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ItemState:
        description = data.get("stateDescription") or {}
        return cls(
            name=data["name"],
            state=str(data.get("state", NULL_STATE)),
            type=data.get("type", ""),
            pattern=description.get("pattern"),
        )

    @property
    def base_type(self) -> str:
        """Item type without its dimension, e.g. Number:Temperature -> Number."""
        return self.type.split(":")[0]


@dataclass
class Capability:
    """One interface/property binding of the property map."""

    interface: str
    property: str
    item: ItemRef
    parameters: dict[str, Any] = field(default_factory=dict)
    state: ItemState | None = None


@dataclass
class InterfaceItem:
    """An item to read, with every capability that references it."""

    name: str
    sensor: str | None = None
    capabilities: list[Capability] = field(default_factory=list)


@dataclass(frozen=True)
class ItemCommand:
    """A command to post to an openHAB item."""

    name: str
    state: str


@dataclass
class ContextProperty:
    """A reported {interface, property, value} triple."""

    namespace: str
    name: str
    value: Any
    time_of_sample: str = field(
        default_factory=lambda: datetime.now(UTC).isoformat(timespec="seconds").replace(
            "+00:00", "Z"
        )
    )
    uncertainty_in_milliseconds: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "namespace": self.namespace,
            "name": self.name,
            "value": self.value,
            "timeOfSample": self.time_of_sample,
            "uncertaintyInMilliseconds": self.uncertainty_in_milliseconds,
        }
