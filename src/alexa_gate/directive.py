"""Directive dispatch, item command submission and state report aggregation."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import re
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

from alexa_gate.formatter import format_item_state
from alexa_gate.models import (
    NULL_STATE,
    Directive,
    DirectiveError,
    ErrorType,
    InterfaceItem,
    InvalidItemStateError,
    ItemCommand,
    ItemRef,
    ItemState,
    UndefinedPropertyError,
)
from alexa_gate.property_map import PropertyMap
from alexa_gate.response import AlexaResponse, ResponseSink
from alexa_gate.services.base import ItemService

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SEPARATOR_RE = re.compile(r"[\s_.\-]+")


def camelcase(name: str) -> str:
    """Convert a directive name to lower camelCase, e.g. AdjustBrightness -> adjustBrightness."""
    words = [word for word in _SEPARATOR_RE.split(name.strip()) if word]
    if not words:
        return ""
    first, rest = words[0], words[1:]
    return first[:1].lower() + first[1:] + "".join(w[:1].upper() + w[1:] for w in rest)


def directive_handler(name: str) -> Callable[[Callable], Callable]:
    """Register a method as the handler of a camelCase directive name."""

    def decorator(func: Callable) -> Callable:
        func._directive_name = name
        return func

    return decorator


async def gather_in_order(aws: Iterable[Awaitable[T]]) -> list[T]:
    """Run awaitables concurrently and return their results in input order.

    Every awaitable runs to completion. If any of them failed, the first
    exception in input order is raised.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


class AlexaDirective:
    """Base directive handler.

    Subclasses declare handlers with @directive_handler, an optional primary
    `interface` reported after commands, and an optional `aliases` table
    mapping camelCase directive names to handler names.
    """

    interface: str | None = None
    aliases: dict[str, str] = {}
    handlers: dict[str, str] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        handlers = dict(cls.handlers)
        for attr, value in vars(cls).items():
            name = getattr(value, "_directive_name", None)
            if name is not None:
                handlers[name] = attr
        cls.handlers = handlers

    def __init__(self, directive: Directive, service: ItemService, sink: ResponseSink) -> None:
        self.directive = directive
        self.service = service
        self.response = AlexaResponse(directive, sink)
        self.property_map = PropertyMap()

        blob = directive.endpoint.cookie.get("propertyMap")
        if blob:
            self.property_map.load(blob)

    @property
    def token(self) -> str | None:
        return self.directive.endpoint.token

    async def execute(self) -> None:
        """Execute the handler matching the directive name, or return INVALID_DIRECTIVE."""
        name = camelcase(self.directive.header.name)
        method = self.aliases.get(name, name)
        attr = self.handlers.get(method)

        if attr is None:
            logger.error(
                "Unsupported directive: namespace=%s name=%s",
                self.directive.header.namespace,
                self.directive.header.name,
            )
            self.response.return_alexa_error_response(
                {
                    "payload": {
                        "type": ErrorType.INVALID_DIRECTIVE,
                        "message": "Unsupported directive",
                    }
                }
            )
            return

        await getattr(self, attr)()

    async def post_items_and_return(
        self, items: list[ItemCommand], parameters: dict[str, Any] | None = None
    ) -> None:
        """Post item commands to openHAB, then return a response.

        `parameters` may hold header, payload and context parts of the
        response, or a ready-made `response` returned as-is once all commands
        succeeded. Without it, the state of the directive interface is reported.
        """
        parameters = parameters or {}
        try:
            await gather_in_order(
                self.service.post_item_command(self.token, item.name, item.state)
                for item in items
            )
        except Exception as exc:
            self.return_error_response("post_items_and_return", exc)
            return

        if parameters.get("response"):
            logger.debug("post_items_and_return done with response: %s", parameters["response"])
            self.response.return_alexa_response(parameters["response"])
        else:
            await self.get_properties_response_and_return(parameters)

    async def get_properties_response_and_return(
        self, parameters: dict[str, Any] | None = None
    ) -> None:
        """Return a response with the latest openHAB state of the reported interfaces."""
        try:
            response = await self._get_properties_response(parameters or {})
        except Exception as exc:
            self.return_error_response("get_properties_response_and_return", exc)
            return

        logger.debug("get_properties_response_and_return done with response: %s", response)
        self.response.return_alexa_response(response)

    async def _get_properties_response(self, parameters: dict[str, Any]) -> dict[str, Any]:
        # Report every mapped interface when no primary one is set (e.g. ReportState)
        interface_names = [self.interface] if self.interface else list(self.property_map)
        interface_items = self.property_map.get_items_by_interfaces(interface_names)

        items = await gather_in_order(self.get_item_state(item) for item in interface_items)

        for interface_item, state in zip(interface_items, items):
            for capability in interface_item.capabilities:
                self.property_map[capability.interface][capability.property].state = state

        if any(item.state == NULL_STATE for item in items):
            raise InvalidItemStateError(items)

        properties = self.property_map.get_context_properties_response(interface_names)
        if any(prop.value is None for prop in properties):
            raise UndefinedPropertyError(properties)

        return self.response.generate_response(
            {**parameters, "context": {"properties": [prop.to_dict() for prop in properties]}}
        )

    async def get_item_state(self, item: InterfaceItem | ItemRef) -> ItemState:
        """Return the item state from openHAB, read from the sensor item when defined."""
        result = await self.service.get_item(self.token, item.sensor or item.name)
        return dataclasses.replace(result, state=format_item_state(result))

    def return_error_response(self, operation: str, exc: Exception) -> None:
        """Log a failed operation and return the matching error response."""
        if isinstance(exc, DirectiveError):
            logger.error("%s failed with error: %s %s", operation, exc, exc.details)
        else:
            logger.error("%s failed with error: %s", operation, exc)

        if getattr(exc, "status_code", None) == 404:
            self.response.return_alexa_error_response(
                {
                    "payload": {
                        "type": ErrorType.NO_SUCH_ENDPOINT,
                        "message": "Endpoint not found",
                    }
                }
            )
        else:
            self.response.return_alexa_generic_error_response()
