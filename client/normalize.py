# client/normalize.py
"""Turn whatever an aggregate endpoint returned into one `AggregateRecord`.

Current servers answer with a tagged envelope (``{"kind": ..., "data": ...}``).
Older deployments answered with a bare object, ``{"building": {...}}``,
``{"buildings": [...]}`` or a bare array; those shapes are still decoded.
"""
from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from blueprints.aggregates.classification import resolve_pin
from blueprints.aggregates.codec import DecodeMode, decode
from errors import NotFoundError

log = logging.getLogger(__name__)

ID_KEYS = ("id", "_id", "buildingId")
LAT_KEYS = ("lat", "latitude", "Lat", "Latitude")
LONG_KEYS = ("long", "lng", "longitude", "Long", "Lng", "Longitude")
NESTED_LAT_KEYS = ("lat", "latitude")
NESTED_LONG_KEYS = ("long", "lng", "longitude")

DEFAULT_LOCATION: Tuple[float, float] = (13.0827, 80.2707)


@dataclass
class AggregateRecord:
    id: str
    lat: float
    long: float
    needs_correction: bool = False
    address: str = ""
    language: str = "english"
    congregation_id: int = 1
    territory_id: Optional[int] = None
    number_of_doors: int = 0
    labels: List[str] = field(default_factory=list)
    pin_color: Optional[int] = None
    pin_image: Optional[str] = None


def _matches(candidate: Any, wanted: str) -> bool:
    if not isinstance(candidate, dict):
        return False
    return any(k in candidate and str(candidate[k]) == wanted for k in ID_KEYS)


def _has_id(candidate: Any) -> bool:
    return isinstance(candidate, dict) and any(candidate.get(k) not in (None, "") for k in ID_KEYS)


def unwrap_records(raw: Any) -> List[Any]:
    """Every candidate record in a response, whatever its shape."""
    if isinstance(raw, dict) and raw.get("kind") in ("aggregate", "aggregates") and "data" in raw:
        raw = raw["data"]

    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict) and isinstance(raw.get("buildings"), list):
        return raw["buildings"]
    if isinstance(raw, dict) and isinstance(raw.get("building"), dict):
        return [raw["building"]]
    if _has_id(raw):
        return [raw]
    return []


def normalize_shape(raw: Any, building_id: Any) -> Dict[str, Any]:
    """Pick the record for `building_id` out of any known response shape."""
    wanted = str(building_id)
    for item in unwrap_records(raw):
        if _matches(item, wanted):
            return item
    raise NotFoundError(f"Building {wanted} not found in response")


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    return num if math.isfinite(num) else None


def _first_valid(source: Dict[str, Any], keys, lo: float, hi: float) -> Optional[float]:
    for key in keys:
        num = _as_float(source.get(key))
        if num is not None and lo <= num <= hi:
            return num
    return None


def normalize_coordinates(
    raw: Dict[str, Any],
    default: Tuple[float, float] = DEFAULT_LOCATION,
) -> Tuple[float, float, bool]:
    """(lat, long, needs_correction).

    Both halves of the pair come from the same place: the top-level keys
    first, then the nested ``coordinates`` object. A top-level latitude is
    never combined with a nested longitude. When neither source yields a
    valid pair the default location comes back flagged for correction.
    """
    sources = [(raw, LAT_KEYS, LONG_KEYS)]
    nested = raw.get("coordinates")
    if isinstance(nested, dict):
        sources.append((nested, NESTED_LAT_KEYS, NESTED_LONG_KEYS))

    for source, lat_keys, long_keys in sources:
        lat = _first_valid(source, lat_keys, -90, 90)
        long = _first_valid(source, long_keys, -180, 180)
        if lat is not None and long is not None:
            return lat, long, False

    log.warning("record %s has no usable coordinates, using default %s", raw.get("id"), default)
    return default[0], default[1], True


def _door_count(raw: Dict[str, Any]) -> Optional[int]:
    value = raw.get("numberOfDoors")
    if isinstance(value, bool):
        return None
    if isinstance(value, int) and value >= 0:
        return value
    if isinstance(value, float) and value.is_integer() and value >= 0:
        return int(value)
    return None


def normalize_doors(raw: Dict[str, Any]) -> List[str]:
    """Door labels sized to the declared door count."""
    count = _door_count(raw)
    info = raw.get("info")
    if info is None and isinstance(raw.get("doors"), list):
        info = ", ".join(str(d) for d in raw["doors"] if d)
    return decode(info, DecodeMode.PADDED, count)


def _int_or(value: Any, fallback: Optional[int]) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback


def normalize(raw: Dict[str, Any], default: Tuple[float, float] = DEFAULT_LOCATION) -> AggregateRecord:
    if not isinstance(raw, dict):
        raise NotFoundError("Response item is not a building record")
    record_id = next((str(raw[k]) for k in ID_KEYS if raw.get(k) not in (None, "")), None)
    if record_id is None:
        raise NotFoundError("Building record has no id")
    lat, long, needs_correction = normalize_coordinates(raw, default)
    labels = normalize_doors(raw)
    congregation_id = _int_or(raw.get("congregationId"), 1) or 1
    language = raw.get("language") or "english"

    pin_color = _int_or(raw.get("pinColor"), None)
    pin_image = raw.get("pinImage") or None
    if pin_color is None and pin_image is None:
        # records from servers that predate embedded pins
        pin_color, pin_image = resolve_pin(congregation_id, language)

    return AggregateRecord(
        id=record_id,
        lat=lat,
        long=long,
        needs_correction=needs_correction,
        address=raw.get("address") or "",
        language=language,
        congregation_id=congregation_id,
        territory_id=_int_or(raw.get("territoryId", raw.get("territory_id")), None),
        number_of_doors=len(labels),
        labels=labels,
        pin_color=pin_color,
        pin_image=pin_image,
    )
