"""Alexa response envelope builder and response sinks."""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any

from alexa_gate.models import Directive, ErrorType

logger = logging.getLogger(__name__)


class ResponseSink(ABC):
    """Receives the single response produced for a directive."""

    @abstractmethod
    def emit_success(self, response: dict[str, Any]) -> None: ...

    @abstractmethod
    def emit_error(self, response: dict[str, Any]) -> None: ...


class ResponseCollector(ResponseSink):
    """Sink that keeps the response in memory, refusing a second one."""

    def __init__(self) -> None:
        self.response: dict[str, Any] | None = None
        self.is_error = False

    def _store(self, response: dict[str, Any], *, is_error: bool) -> None:
        if self.response is not None:
            raise RuntimeError("A response was already emitted for this directive")
        self.response = response
        self.is_error = is_error

    def emit_success(self, response: dict[str, Any]) -> None:
        self._store(response, is_error=False)

    def emit_error(self, response: dict[str, Any]) -> None:
        self._store(response, is_error=True)


class AlexaResponse:
    """Shapes Alexa v3 event responses for a directive and hands them to a sink."""

    def __init__(self, directive: Directive, sink: ResponseSink) -> None:
        self._directive = directive
        self._sink = sink

    def _event(self, header: dict[str, Any], payload: dict[str, Any]) -> dict[str, Any]:
        directive = self._directive
        event_header = {
            "namespace": "Alexa",
            "name": "Response",
            "messageId": str(uuid.uuid4()),
            "payloadVersion": directive.header.payload_version,
        }
        if directive.header.correlation_token:
            event_header["correlationToken"] = directive.header.correlation_token
        event_header.update(header)

        event: dict[str, Any] = {"header": event_header}
        if directive.endpoint.endpoint_id:
            event["endpoint"] = {
                "scope": {"type": "BearerToken", "token": directive.endpoint.token},
                "endpointId": directive.endpoint.endpoint_id,
            }
        event["payload"] = payload
        return event

    def generate_response(self, parameters: dict[str, Any] | None = None) -> dict[str, Any]:
        """Build a response from optional header, payload and context parts."""
        parameters = parameters or {}
        response: dict[str, Any] = {}
        if parameters.get("context"):
            response["context"] = parameters["context"]
        response["event"] = self._event(
            parameters.get("header") or {}, parameters.get("payload") or {}
        )
        return response

    def return_alexa_response(self, response: dict[str, Any]) -> None:
        logger.debug("Returning response: %s", response)
        self._sink.emit_success(response)

    def return_alexa_error_response(self, parameters: dict[str, Any]) -> None:
        """Build and emit an ErrorResponse; parameters carries payload type and message."""
        payload = dict(parameters.get("payload") or {})
        if isinstance(payload.get("type"), ErrorType):
            payload["type"] = payload["type"].value
        response = {"event": self._event({"name": "ErrorResponse"}, payload)}
        logger.debug("Returning error response: %s", response)
        self._sink.emit_error(response)

    def return_alexa_generic_error_response(self) -> None:
        self.return_alexa_error_response(
            {
                "payload": {
                    "type": ErrorType.ENDPOINT_UNREACHABLE,
                    "message": "Unable to reach device",
                }
            }
        )
