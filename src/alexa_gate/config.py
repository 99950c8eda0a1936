"""Configuration loading with env var substitution and validation."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml


class ConfigError(Exception):
    """Raised on configuration loading or validation errors."""


# --- Env var substitution ---

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")


def _replacer(match: re.Match) -> str:
    var = match.group(1)
    val = os.environ.get(var)
    if val is None:
        raise ConfigError(f"Environment variable {var} is not set")
    return val


def substitute_env_vars(obj: Any) -> Any:
    """Recursively substitute ${VAR} in all string values."""
    if isinstance(obj, str):
        return _ENV_VAR_RE.sub(_replacer, obj)
    if isinstance(obj, dict):
        return {k: substitute_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [substitute_env_vars(item) for item in obj]
    return obj


# --- Config dataclasses ---

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


@dataclass
class OpenHABConfig:
    url: str
    token: str | None = None
    timeout: float = 10


@dataclass
class Config:
    openhab: OpenHABConfig
    log_level: str = "INFO"


# --- Helpers ---


def _require(data: dict, key: str, context: str) -> Any:
    """Get a required key from a dict or raise ConfigError."""
    if key not in data or data[key] is None:
        raise ConfigError(f"Missing required config: {context}.{key}")
    return data[key]


def _coerce_float(value: Any, field_name: str) -> float:
    """Coerce a value to float (handles env-substituted strings)."""
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Cannot convert {field_name} to number: {value!r}") from None


# --- Loaders ---


def load_config(path: str = "config.yaml") -> Config:
    """Load and validate config.yaml, returning a typed Config."""
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file not found: {path}")

    with open(p) as f:
        raw = yaml.safe_load(f) or {}

    raw = substitute_env_vars(raw)

    # openHAB
    oh_raw = _require(raw, "openhab", "")
    url = _require(oh_raw, "url", "openhab")
    if not url:
        raise ConfigError("Missing required config: openhab.url")
    timeout = _coerce_float(oh_raw.get("timeout", 10), "openhab.timeout")
    if timeout <= 0:
        raise ConfigError(f"openhab.timeout must be positive, got: {timeout!r}")
    openhab = OpenHABConfig(url=url, token=oh_raw.get("token") or None, timeout=timeout)

    # Optional top-level
    log_level = str(raw.get("log_level", "INFO")).upper()
    if log_level not in _VALID_LOG_LEVELS:
        raise ConfigError(
            f"Invalid log_level: {log_level!r} (must be one of {sorted(_VALID_LOG_LEVELS)})"
        )

    return Config(openhab=openhab, log_level=log_level)
