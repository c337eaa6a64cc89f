"""
Telldus Live API response parsers.

This module provides functions for flattening Telldus Live JSON payloads
into ``Entry`` rows. Telldus responses are loosely typed (ids may be
numbers or strings, key names vary between API versions), so every
lookup tries a list of candidate keys.
"""

import json
from typing import Any, Iterable, List, Optional, Sequence

from .models import Category, Entry


_TRUE_VALUES = {"1", "true", "True", "TRUE"}
_FALSE_VALUES = {"0", "false", "False", "FALSE"}


def value_as_string(value: Any) -> Optional[str]:
    """Render a JSON scalar as text; None for null."""
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, separators=(",", ":"))


def pick_string(item: Any, keys: Sequence[str]) -> Optional[str]:
    """First non-empty value among ``keys``, rendered as text."""
    if not isinstance(item, dict):
        return None
    for key in keys:
        if key in item:
            text = value_as_string(item[key])
            if text:
                return text
    return None


def array_from(payload: Any, keys: Sequence[str]) -> List[Any]:
    """The payload itself if it is a list, else the first list under ``keys``."""
    if isinstance(payload, list):
        return list(payload)
    if isinstance(payload, dict):
        for key in keys:
            value = payload.get(key)
            if isinstance(value, list):
                return list(value)
    return []


def details_to_string(parts: Iterable[str]) -> Optional[str]:
    kept = [part for part in parts if part.strip()]
    return ", ".join(kept) if kept else None


def parse_controller(item: Any) -> Entry:
    """Parse one entry of /json/clients/list."""
    details = []

    online = pick_string(item, ["online"])
    if online in _TRUE_VALUES:
        details.append("online")
    elif online in _FALSE_VALUES:
        details.append("offline")

    last_seen = pick_string(item, ["lastSeen", "lastseen"])
    if last_seen and last_seen != "0":
        details.append(f"lastSeen={last_seen}")

    firmware = pick_string(item, ["firmware", "firmwareVersion"])
    if firmware:
        details.append(f"fw={firmware}")

    return Entry(
        category=Category.CONTROLLER,
        id=pick_string(item, ["id", "clientId"]) or "?",
        name=pick_string(item, ["name", "clientName"]) or "(controller)",
        details=details_to_string(details),
    )


def parse_device(item: Any) -> Entry:
    """Parse one entry of /json/devices/list."""
    details = []

    model = pick_string(item, ["model", "deviceType", "type"])
    if model:
        details.append(model)

    state = pick_string(item, ["statevalue", "state", "stateValue"])
    if state:
        details.append(f"state={state}")

    client_name = pick_string(item, ["clientName"])
    if client_name:
        details.append(f"client={client_name}")

    return Entry(
        category=Category.DEVICE,
        id=pick_string(item, ["id", "deviceId"]) or "?",
        name=pick_string(item, ["name"]) or "(unnamed device)",
        details=details_to_string(details),
    )


def parse_sensor(item: Any) -> Entry:
    """Parse one entry of /json/sensors/list (requested with includeValues)."""
    details = []

    model = pick_string(item, ["model"])
    if model:
        details.append(model)

    protocol = pick_string(item, ["protocol"])
    if protocol:
        details.append(f"protocol={protocol}")

    data = item.get("data") if isinstance(item, dict) else None
    if isinstance(data, list):
        samples = []
        for reading in data:
            name = pick_string(reading, ["name"])
            if not name:
                continue
            sample = f"{name}={pick_string(reading, ['value']) or ''}"
            scale = pick_string(reading, ["scale"])
            if scale:
                sample += f"@{scale}"
            samples.append(sample)
        if samples:
            details.append(", ".join(samples))

    return Entry(
        category=Category.SENSOR,
        id=pick_string(item, ["id", "sensorId"]) or "?",
        name=pick_string(item, ["name"]) or "(unnamed sensor)",
        details=details_to_string(details),
    )


def sort_entries(entries: Iterable[Entry]) -> List[Entry]:
    """Sort by category, then name, then id."""
    return sorted(entries, key=lambda e: (e.category.value, e.name, e.id))
