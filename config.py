from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict

import yaml

USER_CONFIG_PATH = Path.home() / ".things_bridge_config.yaml"


@dataclass(frozen=True)
class ServerLimits:
    """Process-wide limits. Read once at startup, never changed per call."""

    max_string_length: int = 2000
    max_array_length: int = 100
    max_item_length: int = 100
    max_notes_length: int = 10000
    max_request_size: int = 32 * 1024
    max_script_size: int = 100 * 1024
    jxa_timeout: float = 30.0
    jxa_max_buffer: int = 256 * 1024


DEFAULT_LIMITS = ServerLimits()


def _load_config() -> Dict[str, Any]:
    if not USER_CONFIG_PATH.exists():
        return {}
    try:
        data = yaml.safe_load(USER_CONFIG_PATH.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError):
        return {}
    return data if isinstance(data, dict) else {}


def load_limits() -> ServerLimits:
    section = _load_config().get("limits") or {}
    if not isinstance(section, dict):
        raise ValueError(f"'limits' in {USER_CONFIG_PATH} must be a mapping")
    overrides: Dict[str, Any] = {}
    for item in fields(ServerLimits):
        if item.name not in section:
            continue
        raw = section[item.name]
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise ValueError(f"limits.{item.name} must be a number")
        if raw <= 0:
            raise ValueError(f"limits.{item.name} must be positive")
        overrides[item.name] = float(raw) if item.name == "jxa_timeout" else int(raw)
    return replace(DEFAULT_LIMITS, **overrides)


def is_debug_enabled() -> bool:
    for name in ("THINGS_BRIDGE_DEBUG", "DEBUG"):
        if os.environ.get(name, "").strip().lower() == "true":
            return True
    return bool(_load_config().get("debug", False))
