# blueprints/aggregates/services.py
from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from errors import InvalidCoordinate, NotFoundError, StorageError
from extensions import db
from models import Building, Classification, Door
from .classification import resolve_pin
from .codec import encode

log = logging.getLogger(__name__)

RECENT_WINDOW = timedelta(hours=24)


def _utcnow() -> datetime:
    # SQLite keeps DateTime naive; everything stored is UTC
    return datetime.now(UTC).replace(tzinfo=None)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_coordinates(lat: Any, long: Any) -> Tuple[float, float]:
    if not _is_number(lat) or not _is_number(long):
        raise InvalidCoordinate("Invalid coordinates")
    if not -90 <= lat <= 90:
        raise InvalidCoordinate(f"Latitude {lat} out of range [-90, 90]")
    if not -180 <= long <= 180:
        raise InvalidCoordinate(f"Longitude {long} out of range [-180, 180]")
    return float(lat), float(long)


# ===== DTO =====
@dataclass
class RecentAggregate:
    building: Building
    door_count: int
    info: str
    language: Optional[str]
    congregation_id: Optional[int]
    pin_color: int
    pin_image: str


# ===== store =====
class AggregateStore:
    """Building + its doors as one consistency unit.

    Every public mutation ends in exactly one commit, so the building and its
    door set are never observed half-written. There is no concurrency token:
    two updates of the same id race and the later commit wins.
    """

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    # ----- helpers -----
    def _commit(self, action: str, building_id: Optional[int] = None) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as ex:
            self.session.rollback()
            log.exception("aggregate %s failed (building_id=%s)", action, building_id)
            raise StorageError() from ex

    def _load(self, building_id: int) -> Building:
        building = self.session.get(Building, building_id)
        if building is None:
            raise NotFoundError(f"Building {building_id} not found")
        return building

    def _touch(self, building: Building) -> None:
        now = _utcnow()
        prev = building.last_modified
        if prev is not None and now <= prev:
            now = prev + timedelta(microseconds=1)
        building.last_modified = now

    def _classification(self, congregation_id: int, language: str) -> Optional[Classification]:
        return (
            self.session.query(Classification)
            .filter(
                Classification.congregation_id == congregation_id,
                Classification.language_name == (language or "").strip().lower(),
            )
            .first()
        )

    def _make_doors(
        self,
        congregation_id: int,
        language: str,
        number_of_doors: int,
        door_labels: Sequence[str],
    ) -> List[Door]:
        # never drop a supplied label, pad missing ones with ""
        labels = list(door_labels or [])
        count = max(int(number_of_doors or 0), len(labels))
        catalog = self._classification(congregation_id, language)
        return [
            Door(
                position=i,
                language_name=language,
                info_text=(labels[i] if i < len(labels) and labels[i] is not None else "").strip(),
                congregation_id=congregation_id,
                classification=catalog,
            )
            for i in range(count)
        ]

    # ----- operations -----
    def create_aggregate(
        self,
        lat: float,
        long: float,
        address: Optional[str] = "",
        territory_id: Optional[int] = 1,
        congregation_id: int = 1,
        language: str = "english",
        number_of_doors: int = 1,
        door_labels: Sequence[str] = (),
    ) -> int:
        lat, long = validate_coordinates(lat, long)
        building = Building(lat=lat, long=long, address=address, territory_id=territory_id)
        self._touch(building)
        building.doors = self._make_doors(congregation_id, language, number_of_doors, door_labels)
        self.session.add(building)
        self._commit("create")
        log.info("building %s created with %d doors", building.id, len(building.doors))
        return building.id

    def get_aggregate(self, building_id: int) -> Tuple[Building, List[Door]]:
        building = self._load(building_id)
        return building, list(building.doors)

    def list_recent_aggregates(self, window: timedelta = RECENT_WINDOW) -> List[RecentAggregate]:
        since = _utcnow() - window
        rows = (
            self.session.query(Building)
            .options(selectinload(Building.doors).selectinload(Door.classification))
            .filter(Building.last_modified >= since)
            .order_by(Building.last_modified.desc(), Building.id.desc())
            .all()
        )
        return [self.summarize(b, list(b.doors)) for b in rows]

    def update_aggregate(
        self,
        building_id: int,
        lat: float,
        long: float,
        address: Optional[str],
        congregation_id: int,
        language: str,
        number_of_doors: int,
        door_labels: Sequence[str],
        territory_id: Optional[int] = None,
    ) -> int:
        building = self._load(building_id)
        lat, long = validate_coordinates(lat, long)
        building.lat = lat
        building.long = long
        building.address = address
        if territory_id is not None:
            building.territory_id = territory_id
        self._touch(building)
        # discard + recreate inside the same transaction as the scalar update
        building.doors.clear()
        building.doors.extend(self._make_doors(congregation_id, language, number_of_doors, door_labels))
        self._commit("update", building_id)
        log.info("building %s updated, doors replaced (%d)", building_id, len(building.doors))
        return building.id

    def delete_aggregate(self, building_id: int) -> int:
        building = self._load(building_id)
        # orphaned doors are deleted ahead of their building in the same flush
        building.doors.clear()
        self.session.delete(building)
        self._commit("delete", building_id)
        log.info("building %s deleted", building_id)
        return building_id

    def door_count(self, building_id: int) -> int:
        return (
            self.session.query(func.count(Door.id))
            .filter(Door.building_id == building_id)
            .scalar()
        )

    # ----- read model -----
    @staticmethod
    def summarize(building: Building, doors: List[Door]) -> RecentAggregate:
        labels = [d.info_text for d in doors]
        first = doors[0] if doors else None
        language = first.language_name if first else None
        congregation_id = first.congregation_id if first else None
        catalog = first.classification if first else None
        color, image = resolve_pin(
            congregation_id or 1,
            language,
            pin_color=catalog.pin_color if catalog else None,
            pin_image=catalog.pin_image if catalog else None,
        )
        return RecentAggregate(
            building=building,
            door_count=len(doors),
            info=encode(l for l in labels if l),
            language=language,
            congregation_id=congregation_id,
            pin_color=color,
            pin_image=image,
        )


def aggregate_record(summary: RecentAggregate, doors: Optional[List[Door]] = None) -> Dict[str, Any]:
    """Flat dict with python field names, fed to the output schema."""
    b = summary.building
    return {
        "id": b.id,
        "lat": b.lat,
        "long": b.long,
        "address": b.address,
        "territory_id": b.territory_id,
        "last_modified": b.last_modified,
        "number_of_doors": summary.door_count,
        "info": summary.info,
        "doors": [d.info_text for d in (doors if doors is not None else b.doors)],
        "language": summary.language,
        "congregation_id": summary.congregation_id,
        "pin_color": summary.pin_color,
        "pin_image": summary.pin_image,
    }


store = AggregateStore()
