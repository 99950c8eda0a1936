"""alexa-gate: Alexa Smart Home directive dispatch for openHAB."""

from alexa_gate.app import handle_event
from alexa_gate.directive import AlexaDirective, directive_handler
from alexa_gate.formatter import format_item_state
from alexa_gate.property_map import PropertyMap
from alexa_gate.response import ResponseCollector, ResponseSink

__all__ = [
    "AlexaDirective",
    "PropertyMap",
    "ResponseCollector",
    "ResponseSink",
    "directive_handler",
    "format_item_state",
    "handle_event",
]
