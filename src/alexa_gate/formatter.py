"""Item state formatting based on openHAB state description patterns."""

from __future__ import annotations

import re

from alexa_gate.models import NULL_STATE, ItemState

# Accepted subset of the state description pattern syntax
ITEM_STATE_FORMATTER_RE = re.compile(r"%(?:[.0]\d+)?[dfs]")

# Leading numeric part of a state, e.g. "21.5 °C" -> "21.5"
_NUMBER_RE = re.compile(r"\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")

_NUMERIC_TYPES = frozenset({"Dimmer", "Number", "Rollershutter"})


def _parse_float(state: str) -> float | int | None:
    match = _NUMBER_RE.match(state)
    if match is None:
        return None
    value = float(match.group())
    return int(value) if value.is_integer() else value


def format_item_state(item: ItemState) -> str:
    """Return the item state formatted with its state description pattern.

    Falls back to the raw state when there is no usable pattern, when the
    state is NULL or when the item type has no formatting rule.
    """
    state = item.state
    match = ITEM_STATE_FORMATTER_RE.search(item.pattern) if item.pattern else None
    if match is None or state == NULL_STATE:
        return state

    fmt = match.group()
    try:
        if item.base_type in _NUMERIC_TYPES:
            value = _parse_float(state)
            if value is None:
                return state
            return fmt % value
        if item.base_type == "String":
            return fmt % state
    except (TypeError, ValueError):
        return state
    return state
