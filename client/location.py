# client/location.py
"""Last known device position, passed explicitly to whoever needs it."""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple

# same freshness a browser geolocation request accepts (maximumAge)
DEFAULT_MAX_AGE = timedelta(minutes=5)
CREATE_DEFAULT_LOCATION: Tuple[float, float] = (11.0168, 76.9558)


@dataclass(frozen=True)
class KnownLocation:
    lat: float
    long: float
    captured_at: datetime


class LocationContext:
    def __init__(
        self,
        default: Tuple[float, float] = CREATE_DEFAULT_LOCATION,
        max_age: timedelta = DEFAULT_MAX_AGE,
    ):
        self.default = default
        self.max_age = max_age
        self._last: Optional[KnownLocation] = None

    @property
    def last(self) -> Optional[KnownLocation]:
        return self._last

    def remember(self, lat: float, long: float, at: datetime) -> None:
        if not (-90 <= lat <= 90 and -180 <= long <= 180):
            raise ValueError(f"position out of range: {lat}, {long}")
        self._last = KnownLocation(lat, long, at)

    def is_fresh(self, now: datetime) -> bool:
        return self._last is not None and now - self._last.captured_at <= self.max_age

    def resolve(self, now: datetime) -> Tuple[float, float]:
        """The remembered fix while it is fresh, the default otherwise."""
        if self.is_fresh(now):
            return self._last.lat, self._last.long
        return self.default
