"""Recognise lookup results shaped like components or properties."""

from __future__ import annotations

import json
from typing import Any


def is_component(data: dict | None) -> bool:
    if not data:
        return False
    return "name" in data and "properties" in data


def is_property(data: dict | None) -> bool:
    if not data:
        return False
    return "name" in data and "properties" not in data


def _object_list(data: str | bytes) -> list[dict | None] | None:
    try:
        parsed: Any = json.loads(data)
    except (ValueError, TypeError):
        return None
    if not isinstance(parsed, list):
        return None
    if not all(item is None or isinstance(item, dict) for item in parsed):
        return None
    return parsed


def is_property_list(data: str | bytes) -> bool:
    """True if ``data`` is a JSON list whose first object looks like a property."""
    items = _object_list(data)
    return bool(items) and is_property(items[0])


def is_component_list(data: str | bytes) -> bool:
    """True if ``data`` is a JSON list whose first object looks like a component."""
    items = _object_list(data)
    return bool(items) and is_component(items[0])