# blueprints/aggregates/codec.py
"""Door labels <-> single delimited text field.

Entries are not escaped: a label containing a comma cannot be told apart
from two labels once encoded.
"""
from __future__ import annotations
from enum import Enum
from typing import Iterable, List, Optional

from errors import CountMismatch

SEPARATOR = ", "


class DecodeMode(str, Enum):
    COMPACT = "compact"   # only real labels, used for counting doors
    PADDED = "padded"     # exactly `count` positional slots


def encode(labels: Iterable[str]) -> str:
    return SEPARATOR.join(labels)


def decode(text: Optional[str], mode: DecodeMode = DecodeMode.COMPACT, count: Optional[int] = None) -> List[str]:
    if not text:
        parts: List[str] = []
    else:
        parts = [p.strip() for p in str(text).split(",")]
        parts = [p for p in parts if p]

    if mode == DecodeMode.COMPACT:
        return parts

    size = len(parts) if count is None else max(int(count), 0)
    if len(parts) < size:
        parts.extend([""] * (size - len(parts)))
    return parts[:size]


def validate_count(labels: Iterable[str], number_of_doors: int) -> List[str]:
    """Compact the labels and require exactly `number_of_doors` of them."""
    real = [str(l).strip() for l in labels if l is not None and str(l).strip()]
    if len(real) != number_of_doors:
        raise CountMismatch(
            f"Number of doors ({number_of_doors}) must match the number of "
            f"door information fields provided ({len(real)})"
        )
    return real
