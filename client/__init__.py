"""Client side of the aggregates API: fetching, normalization, form sessions."""
from .location import LocationContext
from .normalize import (
    AggregateRecord, normalize, normalize_coordinates, normalize_doors, normalize_shape, unwrap_records,
)
from .resilient import ResilientClient
from .session import Draft, EditSession, SessionState

__all__ = [
    "AggregateRecord",
    "Draft",
    "EditSession",
    "LocationContext",
    "ResilientClient",
    "SessionState",
    "normalize",
    "normalize_coordinates",
    "normalize_doors",
    "normalize_shape",
    "unwrap_records",
]
