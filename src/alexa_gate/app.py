"""Request entry point: one Alexa event in, one response out."""

from __future__ import annotations

import logging
from typing import Any

from alexa_gate.handlers import create_directive
from alexa_gate.models import Directive, ErrorType
from alexa_gate.response import AlexaResponse, ResponseCollector
from alexa_gate.services.base import ItemService

logger = logging.getLogger(__name__)


async def handle_event(event: dict[str, Any], service: ItemService) -> dict[str, Any]:
    """Execute an Alexa directive event against the item service and return its response."""
    directive = Directive.from_dict(event)
    sink = ResponseCollector()
    try:
        handler = create_directive(directive, service, sink)
    except ValueError as exc:
        logger.error("Invalid endpoint property map: %s", exc)
        AlexaResponse(directive, sink).return_alexa_error_response(
            {"payload": {"type": ErrorType.INVALID_DIRECTIVE, "message": "Invalid property map"}}
        )
        return sink.response

    await handler.execute()
    if sink.response is None:
        raise RuntimeError(
            f"No response emitted for {directive.header.namespace}.{directive.header.name}"
        )
    return sink.response
