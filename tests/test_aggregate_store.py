from __future__ import annotations
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app import create_app
from errors import InvalidCoordinate, NotFoundError, StorageError
from extensions import db
from models import Building, Classification, Door
from blueprints.aggregates.services import AggregateStore

@pytest.fixture()
def app_ctx():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture()
def store(app_ctx):
    return AggregateStore()

def _create(store, **kw):
    args = dict(lat=11.0168, long=76.9558, address="Main St", territory_id=1,
                congregation_id=1, language="Tamil", number_of_doors=2,
                door_labels=["1/F", "2/F"])
    args.update(kw)
    return store.create_aggregate(**args)

@pytest.mark.parametrize("lat,long", [(0, 0), (-90, -180), (90, 180), (12.971599, 77.594566)])
def test_create_then_get_keeps_coordinates(store, lat, long):
    bid = _create(store, lat=lat, long=long)
    building, doors = store.get_aggregate(bid)
    assert (building.lat, building.long) == (lat, long)
    assert [d.info_text for d in doors] == ["1/F", "2/F"]

@pytest.mark.parametrize("lat,long", [(90.1, 0), (0, -180.5), ("12", 77), (None, 1), (True, 1)])
def test_invalid_coordinates_reject_whole_write(store, lat, long):
    with pytest.raises(InvalidCoordinate):
        _create(store, lat=lat, long=long)
    assert Building.query.count() == 0
    assert Door.query.count() == 0

def test_door_count_never_drops_labels(store):
    bid = _create(store, number_of_doors=1, door_labels=["A", "B", "C"])
    _, doors = store.get_aggregate(bid)
    assert [d.info_text for d in doors] == ["A", "B", "C"]

def test_missing_labels_are_padded(store):
    bid = _create(store, number_of_doors=3, door_labels=["A"])
    _, doors = store.get_aggregate(bid)
    assert [d.info_text for d in doors] == ["A", "", ""]
    assert all(d.building_id == bid for d in doors)

def test_get_unknown_raises(store):
    with pytest.raises(NotFoundError):
        store.get_aggregate(999)

def test_update_replaces_door_set(store):
    bid = _create(store, number_of_doors=3, door_labels=["A", "B", "C"])
    old_ids = {d.id for d in store.get_aggregate(bid)[1]}
    before = store.get_aggregate(bid)[0].last_modified

    store.update_aggregate(bid, lat=12.5, long=77.1, address="New St", congregation_id=2,
                           language="English", number_of_doors=2, door_labels=["X", "Y"])

    building, doors = store.get_aggregate(bid)
    assert (building.lat, building.long, building.address) == (12.5, 77.1, "New St")
    assert [d.info_text for d in doors] == ["X", "Y"]
    assert {d.congregation_id for d in doors} == {2}
    assert not old_ids & {d.id for d in doors}
    assert Door.query.count() == 2
    assert building.last_modified > before

def test_update_keeps_territory_unless_given(store):
    bid = _create(store, territory_id=7)
    store.update_aggregate(bid, 1, 1, "a", 1, "english", 1, ["x"])
    assert store.get_aggregate(bid)[0].territory_id == 7
    store.update_aggregate(bid, 1, 1, "a", 1, "english", 1, ["x"], territory_id=9)
    assert store.get_aggregate(bid)[0].territory_id == 9

def test_update_unknown_and_invalid(store):
    with pytest.raises(NotFoundError):
        store.update_aggregate(42, 1, 1, "a", 1, "english", 1, ["x"])
    bid = _create(store)
    with pytest.raises(InvalidCoordinate):
        store.update_aggregate(bid, 95, 1, "a", 1, "english", 1, ["x"])
    db.session.rollback()
    building, doors = store.get_aggregate(bid)
    assert building.lat == 11.0168
    assert len(doors) == 2

def test_delete_removes_building_and_doors(store):
    bid = _create(store)
    other = _create(store, lat=1, long=1)
    assert store.delete_aggregate(bid) == bid
    with pytest.raises(NotFoundError):
        store.get_aggregate(bid)
    assert store.door_count(bid) == 0
    assert store.door_count(other) == 2
    with pytest.raises(NotFoundError):
        store.delete_aggregate(bid)

def test_failed_commit_leaves_nothing_behind(store, monkeypatch):
    def boom(self):
        raise OperationalError("INSERT", {}, Exception("disk full"))
    monkeypatch.setattr(type(db.session()), "commit", boom)
    with pytest.raises(StorageError):
        _create(store)
    monkeypatch.undo()
    assert Building.query.count() == 0
    assert Door.query.count() == 0

def test_recent_window_and_derived_fields(store):
    bid = _create(store)
    stale = _create(store, lat=1, long=1)
    b = db.session.get(Building, stale)
    b.last_modified = b.last_modified - timedelta(days=2)
    db.session.commit()

    rows = store.list_recent_aggregates(timedelta(hours=24))
    assert [r.building.id for r in rows] == [bid]
    row = rows[0]
    assert row.door_count == 2
    assert row.info == "1/F, 2/F"
    assert row.language == "Tamil"
    assert row.congregation_id == 1
    assert row.pin_color == 2
    assert row.pin_image == "/pins/pin2.png"

def test_catalog_entry_overrides_computed_pin(store):
    db.session.add(Classification(congregation_id=3, language_name="hindi", pin_color=9,
                                  pin_image="/pins/special.png"))
    db.session.commit()
    _create(store, congregation_id=3, language="Hindi")
    row = store.list_recent_aggregates()[0]
    assert (row.pin_color, row.pin_image) == (9, "/pins/special.png")

def test_last_modified_is_strictly_increasing(store):
    bid = _create(store)
    stamps = []
    for i in range(3):
        store.update_aggregate(bid, 1, 1, "a", 1, "english", 1, [str(i)])
        stamps.append(store.get_aggregate(bid)[0].last_modified)
    assert stamps == sorted(stamps) and len(set(stamps)) == 3
