# client/session.py
"""State machine behind the create and edit forms.

    LOADING -> READY -> SAVING -> SAVED
                 ^         |
                 +-- FAILED <-+

Validation failures never leave READY. FAILED goes back to READY when the
message is dismissed or expires (see `tick`).
"""
from __future__ import annotations
import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, UTC
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from blueprints.aggregates.codec import encode, validate_count
from errors import AggregateError, CountMismatch
from .location import LocationContext
from .normalize import AggregateRecord
from .resilient import ResilientClient

log = logging.getLogger(__name__)

NAVIGATE_DELAY = timedelta(seconds=2)
MESSAGE_TTL = timedelta(seconds=5)


class SessionState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    SAVING = "saving"
    SAVED = "saved"
    FAILED = "failed"


class InvalidTransition(RuntimeError):
    pass


@dataclass
class Draft:
    lat: float
    long: float
    address: str = ""
    language: str = "english"
    number_of_doors: int = 1
    labels: List[str] = field(default_factory=lambda: [""])
    territory_id: Optional[int] = 1
    congregation_id: int = 1

    @classmethod
    def from_record(cls, record: AggregateRecord) -> "Draft":
        labels = list(record.labels) or [""]
        return cls(
            lat=record.lat,
            long=record.long,
            address=record.address,
            language=record.language,
            number_of_doors=len(labels),
            labels=labels,
            territory_id=record.territory_id if record.territory_id is not None else 1,
            congregation_id=record.congregation_id,
        )

    def set_door_count(self, count: int) -> None:
        count = max(0, int(count))
        labels = self.labels[:count]
        labels.extend([""] * (count - len(labels)))
        self.number_of_doors = count
        self.labels = labels

    def set_label(self, index: int, value: str) -> None:
        self.labels[index] = value

    def filled_labels(self) -> List[str]:
        return [l.strip() for l in self.labels if l and l.strip()]

    def payload(self) -> Dict[str, Any]:
        return {
            "lat": self.lat,
            "long": self.long,
            "language": self.language,
            "numberOfDoors": self.number_of_doors,
            "info": encode(self.filled_labels()),
            "address": self.address.strip(),
            "territoryId": self.territory_id,
            "congregationId": self.congregation_id,
        }


class EditSession:
    def __init__(
        self,
        client: ResilientClient,
        building_id: Any = None,
        location: Optional[LocationContext] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.client = client
        self.building_id = building_id
        self.location = location or LocationContext()
        self._clock = clock or (lambda: datetime.now(UTC))

        self.state = SessionState.LOADING
        self.draft: Optional[Draft] = None
        self.snapshot: Optional[Draft] = None
        self.needs_correction = False
        self.message: Optional[str] = None
        self.message_expires_at: Optional[datetime] = None
        self.navigate_at: Optional[datetime] = None

    @classmethod
    def for_create(cls, client: ResilientClient, location: LocationContext, clock=None) -> "EditSession":
        return cls(client, None, location, clock)

    @classmethod
    def for_edit(cls, client: ResilientClient, building_id: Any, clock=None) -> "EditSession":
        return cls(client, building_id, None, clock)

    @property
    def is_edit(self) -> bool:
        return self.building_id is not None

    @property
    def dirty(self) -> bool:
        return self.draft is not None and self.draft != self.snapshot

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            raise InvalidTransition(f"not allowed in state {self.state.value}")

    def _fail(self, message: str) -> None:
        self.state = SessionState.FAILED
        self.message = message
        self.message_expires_at = self._clock() + MESSAGE_TTL

    # ----- LOADING -----
    def load(self) -> SessionState:
        self._require(SessionState.LOADING)
        if not self.is_edit:
            lat, long = self.location.resolve(self._clock())
            self.draft = Draft(lat=lat, long=long)
            self.snapshot = copy.deepcopy(self.draft)
            self.state = SessionState.READY
            return self.state

        try:
            record = self.client.fetch_aggregate(self.building_id)
        except AggregateError as e:
            log.error("loading building %s failed: %s", self.building_id, e)
            lat, long = self.location.default
            self.draft = Draft(lat=lat, long=long)
            self.snapshot = copy.deepcopy(self.draft)
            self.needs_correction = True
            self._fail(f"Failed to load building data: {e}")
            return self.state

        self.draft = Draft.from_record(record)
        self.snapshot = copy.deepcopy(self.draft)
        self.needs_correction = record.needs_correction
        self.state = SessionState.READY
        return self.state

    # ----- READY -----
    def update(self, **changes: Any) -> None:
        self._require(SessionState.READY)
        if "number_of_doors" in changes:
            self.draft.set_door_count(changes.pop("number_of_doors"))
        for key, value in changes.items():
            if not hasattr(self.draft, key):
                raise AttributeError(key)
            setattr(self.draft, key, value)

    def move_to(self, lat: float, long: float) -> None:
        self.update(lat=lat, long=long)
        self.needs_correction = False

    def reset(self) -> None:
        self._require(SessionState.READY)
        self.draft = copy.deepcopy(self.snapshot)

    def validate(self) -> Optional[str]:
        d = self.draft
        if not d.address or not d.address.strip():
            return "Please enter a building address"
        if not (-90 <= d.lat <= 90 and -180 <= d.long <= 180):
            return f"Coordinates out of range: {d.lat}, {d.long}"
        try:
            validate_count(d.labels, d.number_of_doors)
        except CountMismatch as e:
            return e.message
        return None

    # ----- SAVING -----
    def save(self) -> bool:
        self._require(SessionState.READY)
        problem = self.validate()
        if problem:
            self.message = problem
            self.message_expires_at = None
            return False

        self.state = SessionState.SAVING
        self.message = None
        payload = self.draft.payload()
        try:
            if self.is_edit:
                self.client.update_aggregate(self.building_id, payload)
            else:
                self.building_id = self.client.create_aggregate(payload)
        except AggregateError as e:
            log.error("saving building %s failed: %s", self.building_id, e)
            self._fail(f"Failed to save building: {e}")
            return False

        self.snapshot = copy.deepcopy(self.draft)
        self.location.remember(self.draft.lat, self.draft.long, self._clock())
        self._done("Building saved successfully")
        return True

    def delete(self) -> bool:
        self._require(SessionState.READY)
        if not self.is_edit:
            raise InvalidTransition("nothing to delete in a create session")
        self.state = SessionState.SAVING
        try:
            self.client.delete_aggregate(self.building_id)
        except AggregateError as e:
            log.error("deleting building %s failed: %s", self.building_id, e)
            self._fail(f"Failed to delete building: {e}")
            return False
        self._done("Building deleted successfully")
        return True

    def _done(self, message: str) -> None:
        self.state = SessionState.SAVED
        self.message = message
        self.message_expires_at = None
        self.navigate_at = self._clock() + NAVIGATE_DELAY

    # ----- FAILED -----
    def dismiss(self) -> None:
        self._require(SessionState.FAILED)
        self.state = SessionState.READY
        self.message = None
        self.message_expires_at = None

    def tick(self, now: Optional[datetime] = None) -> bool:
        """Advance timers; True once a saved session should navigate away."""
        now = now or self._clock()
        if self.state == SessionState.FAILED and self.message_expires_at and now >= self.message_expires_at:
            self.dismiss()
        return self.state == SessionState.SAVED and self.navigate_at is not None and now >= self.navigate_at
