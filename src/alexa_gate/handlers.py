"""Interface directive handlers and the namespace-to-handler mapping."""

from __future__ import annotations

import math
from typing import Any

from alexa_gate.directive import AlexaDirective, directive_handler
from alexa_gate.models import Capability, Directive, ErrorType, InvalidItemStateError, ItemCommand
from alexa_gate.property_map import level_value
from alexa_gate.response import ResponseSink
from alexa_gate.services.base import ItemService


class ControllerDirective(AlexaDirective):
    """Directive acting on a single property of its interface."""

    def get_capability(self, prop: str) -> Capability | None:
        """Return the capability of the directive interface, or return an error if unmapped."""
        capability = self.property_map.get(self.interface or "", {}).get(prop)
        if capability is None:
            self.response.return_alexa_error_response(
                {
                    "payload": {
                        "type": ErrorType.INVALID_DIRECTIVE,
                        "message": f"No item mapped for {self.interface}.{prop}",
                    }
                }
            )
        return capability

    def get_payload_number(self, *path: str) -> float | None:
        """Return a numeric payload value, or return INVALID_VALUE if missing or malformed."""
        value: Any = self.directive.payload
        try:
            for key in path:
                value = value[key]
            number = float(value)
            if not math.isfinite(number):
                raise ValueError(value)
        except (KeyError, TypeError, ValueError):
            self.response.return_alexa_error_response(
                {
                    "payload": {
                        "type": ErrorType.INVALID_VALUE,
                        "message": f"Invalid payload value for {'.'.join(path)}",
                    }
                }
            )
            return None
        return number


class AlexaReportState(AlexaDirective):
    @directive_handler("reportState")
    async def report_state(self) -> None:
        await self.get_properties_response_and_return({"header": {"name": "StateReport"}})


class PowerController(ControllerDirective):
    interface = "PowerController"
    aliases = {"turnOn": "setPowerState", "turnOff": "setPowerState"}

    @directive_handler("setPowerState")
    async def set_power_state(self) -> None:
        capability = self.get_capability("powerState")
        if capability is None:
            return
        state = "ON" if self.directive.header.name == "TurnOn" else "OFF"
        await self.post_items_and_return([ItemCommand(capability.item.name, state)])


class _LevelController(ControllerDirective):
    """Set/adjust directives on a 0-100 level property."""

    property_name = ""

    async def set_level(self, value: float) -> None:
        capability = self.get_capability(self.property_name)
        if capability is None:
            return
        level = max(0, min(100, int(value)))
        # Switch items only take ON/OFF
        if capability.item.type == "Switch":
            command = "ON" if level > 0 else "OFF"
        else:
            command = str(level)
        await self.post_items_and_return([ItemCommand(capability.item.name, command)])

    async def adjust_level(self, delta: float) -> None:
        capability = self.get_capability(self.property_name)
        if capability is None:
            return
        try:
            state = await self.get_item_state(capability.item)
            current = level_value(state)
            if current is None:
                raise InvalidItemStateError([state])
        except Exception as exc:
            self.return_error_response(f"adjust {self.property_name}", exc)
            return
        await self.set_level(current + delta)


class BrightnessController(_LevelController):
    interface = "BrightnessController"
    property_name = "brightness"

    @directive_handler("setBrightness")
    async def set_brightness(self) -> None:
        value = self.get_payload_number("brightness")
        if value is not None:
            await self.set_level(value)

    @directive_handler("adjustBrightness")
    async def adjust_brightness(self) -> None:
        delta = self.get_payload_number("brightnessDelta")
        if delta is not None:
            await self.adjust_level(delta)


class PercentageController(_LevelController):
    interface = "PercentageController"
    property_name = "percentage"

    @directive_handler("setPercentage")
    async def set_percentage(self) -> None:
        value = self.get_payload_number("percentage")
        if value is not None:
            await self.set_level(value)

    @directive_handler("adjustPercentage")
    async def adjust_percentage(self) -> None:
        delta = self.get_payload_number("percentageDelta")
        if delta is not None:
            await self.adjust_level(delta)


class LockController(ControllerDirective):
    interface = "LockController"
    aliases = {"lock": "setLockState", "unlock": "setLockState"}

    @directive_handler("setLockState")
    async def set_lock_state(self) -> None:
        capability = self.get_capability("lockState")
        if capability is None:
            return
        state = "ON" if self.directive.header.name == "Lock" else "OFF"
        await self.post_items_and_return([ItemCommand(capability.item.name, state)])


class ThermostatController(ControllerDirective):
    interface = "ThermostatController"

    @directive_handler("setTargetTemperature")
    async def set_target_temperature(self) -> None:
        capability = self.get_capability("targetSetpoint")
        if capability is None:
            return
        value = self.get_payload_number("targetSetpoint", "value")
        if value is None:
            return
        await self.post_items_and_return([ItemCommand(capability.item.name, f"{value:g}")])


# Explicit namespace-to-handler mapping
NAMESPACE_HANDLER_MAP: dict[str, type[AlexaDirective]] = {
    "Alexa": AlexaReportState,
    "Alexa.PowerController": PowerController,
    "Alexa.BrightnessController": BrightnessController,
    "Alexa.PercentageController": PercentageController,
    "Alexa.LockController": LockController,
    "Alexa.ThermostatController": ThermostatController,
}


def create_directive(
    directive: Directive, service: ItemService, sink: ResponseSink
) -> AlexaDirective:
    """Return the handler for the directive namespace.

    Unknown namespaces get the base handler, which answers INVALID_DIRECTIVE.
    """
    handler_cls = NAMESPACE_HANDLER_MAP.get(directive.header.namespace, AlexaDirective)
    return handler_cls(directive, service, sink)
