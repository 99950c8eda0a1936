"""Test helpers: an in-memory item service and directive event builders."""

from __future__ import annotations

import asyncio
import dataclasses
import json
from typing import Any

from alexa_gate.models import ItemState
from alexa_gate.services.base import ItemService


class MockItemService(ItemService):
    """In-memory item service that records calls.

    Posting a command updates the stored item state, so a report after a
    command sees the new state.
    """

    def __init__(self) -> None:
        self.items: dict[str, ItemState] = {}
        self.get_errors: dict[str, Exception] = {}
        self.post_errors: dict[str, Exception] = {}
        self.delays: dict[str, float] = {}
        self.gets: list[str] = []
        self.posts: list[tuple[str, str]] = []
        self.completed: list[str] = []
        self.tokens: list[str | None] = []

    def add_item(self, name: str, state: str, type: str = "Switch", pattern: str | None = None):
        self.items[name] = ItemState(name=name, state=state, type=type, pattern=pattern)

    async def get_item(self, token: str | None, name: str) -> ItemState:
        self.gets.append(name)
        self.tokens.append(token)
        await asyncio.sleep(self.delays.get(name, 0))
        self.completed.append(name)
        if name in self.get_errors:
            raise self.get_errors[name]
        return dataclasses.replace(self.items[name])

    async def post_item_command(self, token: str | None, name: str, command: str) -> None:
        self.posts.append((name, command))
        self.tokens.append(token)
        await asyncio.sleep(self.delays.get(name, 0))
        self.completed.append(name)
        if name in self.post_errors:
            raise self.post_errors[name]
        if name in self.items:
            self.items[name].state = command

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        pass


def make_event(
    namespace: str = "Alexa",
    name: str = "ReportState",
    property_map: dict[str, Any] | None = None,
    payload: dict[str, Any] | None = None,
    token: str = "user-token",
) -> dict[str, Any]:
    """Build an Alexa directive event with the property map serialized into the cookie."""
    endpoint: dict[str, Any] = {
        "scope": {"type": "BearerToken", "token": token},
        "endpointId": "endpoint-1",
        "cookie": {},
    }
    if property_map is not None:
        endpoint["cookie"]["propertyMap"] = json.dumps(property_map)
    return {
        "directive": {
            "header": {
                "namespace": namespace,
                "name": name,
                "messageId": "msg-1",
                "correlationToken": "corr-1",
                "payloadVersion": "3",
            },
            "endpoint": endpoint,
            "payload": payload or {},
        }
    }


def capability(name: str, type: str = "Switch", sensor: str | None = None, **parameters):
    """Property map entry for an item."""
    item: dict[str, Any] = {"name": name, "type": type}
    if sensor:
        item["sensor"] = sensor
    return {"parameters": parameters, "item": item}
