"""Property map: interface/property bindings to openHAB items, loaded from the endpoint cookie."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from alexa_gate.models import Capability, ContextProperty, InterfaceItem, ItemRef, ItemState


# --- Value normalization ---


def _number(state: str) -> float | None:
    try:
        return float(state.split()[0])
    except (IndexError, ValueError):
        return None


def percent_level(item: ItemState) -> int | None:
    """Percentage level of a Dimmer, Rollershutter, Number or Color (hsb) state."""
    state = item.state
    if item.base_type == "Color" and state.count(",") == 2:
        state = state.rsplit(",", 1)[1]
    value = _number(state)
    if value is None or not 0 <= value <= 100:
        return None
    return round(value)


def _power_state(item: ItemState, capability: Capability) -> str | None:
    if item.state in ("ON", "OFF"):
        return item.state
    level = percent_level(item)
    if level is None:
        return None
    return "ON" if level > 0 else "OFF"


def level_value(item: ItemState) -> int | None:
    """Percentage level of a state, with a Switch counting as 100 (ON) or 0 (OFF)."""
    if item.base_type == "Switch":
        return {"ON": 100, "OFF": 0}.get(item.state)
    return percent_level(item)


def _level_value(item: ItemState, capability: Capability) -> int | None:
    return level_value(item)


_LOCK_STATES = {
    "ON": "LOCKED",
    "OFF": "UNLOCKED",
    "CLOSED": "LOCKED",
    "OPEN": "UNLOCKED",
    "LOCKED": "LOCKED",
    "UNLOCKED": "UNLOCKED",
    "JAMMED": "JAMMED",
}


def _lock_state(item: ItemState, capability: Capability) -> str | None:
    return _LOCK_STATES.get(item.state.upper())


def _temperature(item: ItemState, capability: Capability) -> dict[str, Any] | None:
    value = _number(item.state)
    if value is None:
        return None
    scale = str(capability.parameters.get("scale", "CELSIUS")).upper()
    return {"value": value, "scale": scale}


_DETECTION_STATES = {
    "OPEN": "DETECTED",
    "CLOSED": "NOT_DETECTED",
    "ON": "DETECTED",
    "OFF": "NOT_DETECTED",
}


def _detection_state(item: ItemState, capability: Capability) -> str | None:
    return _DETECTION_STATES.get(item.state)


# Per-property converters: (item state, capability) -> Alexa value or None if undefined
PROPERTY_NORMALIZERS: dict[str, Callable[[ItemState, Capability], Any]] = {
    "powerState": _power_state,
    "brightness": _level_value,
    "percentage": _level_value,
    "powerLevel": _level_value,
    "lockState": _lock_state,
    "targetSetpoint": _temperature,
    "temperature": _temperature,
    "detectionState": _detection_state,
}


def normalize_property_value(capability: Capability) -> Any:
    """Return the Alexa value of a capability from its attached item state."""
    if capability.state is None:
        return None
    normalizer = PROPERTY_NORMALIZERS.get(capability.property)
    if normalizer is None:
        return capability.state.state
    return normalizer(capability.state, capability)


# --- Property map ---


class PropertyMap(Mapping[str, dict[str, Capability]]):
    """Mapping of interface name -> property name -> Capability for one endpoint."""

    def __init__(self) -> None:
        self._interfaces: dict[str, dict[str, Capability]] = {}

    def __getitem__(self, interface: str) -> dict[str, Capability]:
        return self._interfaces[interface]

    def __iter__(self) -> Iterator[str]:
        return iter(self._interfaces)

    def __len__(self) -> int:
        return len(self._interfaces)

    def load(self, blob: str | dict[str, Any]) -> None:
        """Load capabilities from a serialized (JSON) or decoded cookie property map.

        Raises ValueError on a malformed property map.
        """
        data = json.loads(blob) if isinstance(blob, str) else blob
        if not isinstance(data, dict):
            raise ValueError("Property map must be an object")
        for interface, properties in data.items():
            if not isinstance(properties, dict):
                raise ValueError(f"Invalid properties for interface {interface}")
            for prop, definition in properties.items():
                item_raw = definition.get("item") if isinstance(definition, dict) else None
                if not isinstance(item_raw, dict) or "name" not in item_raw:
                    raise ValueError(f"Missing item name for {interface}.{prop}")
                capability = Capability(
                    interface=interface,
                    property=prop,
                    item=ItemRef(
                        name=item_raw["name"],
                        type=item_raw.get("type", ""),
                        sensor=item_raw.get("sensor"),
                    ),
                    parameters=definition.get("parameters") or {},
                )
                self._interfaces.setdefault(interface, {})[prop] = capability

    def capabilities(self, interface_names: list[str]) -> list[Capability]:
        """Return capabilities of the given interfaces, in interface then property order."""
        return [
            capability
            for name in interface_names
            for capability in self._interfaces.get(name, {}).values()
        ]

    def get_items_by_interfaces(self, interface_names: list[str]) -> list[InterfaceItem]:
        """Return the unique items referenced by the given interfaces, first occurrence order.

        Items are keyed by the item actually read (its sensor if declared, else its name),
        so capabilities sharing a read target share one fetch.
        """
        items: dict[str, InterfaceItem] = {}
        for capability in self.capabilities(interface_names):
            key = capability.item.sensor or capability.item.name
            item = items.get(key)
            if item is None:
                item = items[key] = InterfaceItem(
                    name=capability.item.name, sensor=capability.item.sensor
                )
            item.capabilities.append(capability)
        return list(items.values())

    def get_context_properties_response(self, interface_names: list[str]) -> list[ContextProperty]:
        """Return the context properties of the given interfaces, in map order."""
        return [
            ContextProperty(
                namespace=f"Alexa.{capability.interface}",
                name=capability.property,
                value=normalize_property_value(capability),
            )
            for capability in self.capabilities(interface_names)
        ]
