# blueprints/aggregates/classification.py
"""Marker color for a (congregation, language) pair.

Pure functions; the server is the only place that computes colors, the client
consumes `pinColor`/`pinImage` from the payload.
"""
from __future__ import annotations
from typing import Optional, Tuple

PALETTE_SIZE = 15
LANGUAGES_PER_CONGREGATION = 5

LANGUAGE_BASE = {
    "english": 1,
    "tamil": 2,
    "hindi": 3,
    "telugu": 4,
    "malayalam": 5,
}


def base_index(language: Optional[str]) -> int:
    if not language:
        return 1
    return LANGUAGE_BASE.get(language.strip().lower(), 1)


def color_for(congregation_id: int, language: Optional[str]) -> int:
    base = base_index(language)
    cong = congregation_id if congregation_id and congregation_id > 1 else 1
    if cong == 1:
        return base
    raw = (cong - 1) * LANGUAGES_PER_CONGREGATION + base
    if raw > PALETTE_SIZE:
        return ((raw - 1) % PALETTE_SIZE) + 1
    return raw


def image_path_for(color: int) -> str:
    return f"/pins/pin{color}.png"


def resolve_pin(
    congregation_id: int,
    language: Optional[str],
    pin_color: Optional[int] = None,
    pin_image: Optional[str] = None,
) -> Tuple[int, str]:
    """(color, image) for a record: stored image > stored color > computed."""
    color = pin_color if pin_color and pin_color > 0 else color_for(congregation_id, language)
    if pin_image:
        return color, pin_image
    return color, image_path_for(color)
