# blueprints/aggregates/routes.py
from __future__ import annotations
import logging
from datetime import timedelta
from typing import Any, Dict

from flask import current_app, jsonify, request, url_for
from pydantic import ValidationError as SchemaError

from errors import AggregateError, EmptyBody, StorageError, ValidationError
from . import api_bp
from .codec import DecodeMode, decode, validate_count
from .schemas import (
    AggregateEnvelope,
    AggregateIn,
    AggregateListEnvelope,
    AggregateOut,
    dump,
)
from .services import aggregate_record, store, validate_coordinates

log = logging.getLogger(__name__)

# ----------------------- Helpers -----------------------
def ok(data: Any, status: int = 200):
    return jsonify(data), status

def created(location: str, data: Any):
    resp = jsonify(data)
    resp.status_code = 201
    resp.headers["Location"] = location
    return resp

def error(msg: str, status: int = 400, code: str | None = None, detail: Any = None):
    payload: Dict[str, Any] = {"error": msg}
    if code: payload["code"] = code
    if detail is not None: payload["detail"] = detail
    return jsonify(payload), status

def _pydantic_errors_safe(ve: SchemaError):
    errs = ve.errors()
    for e in errs:
        if "ctx" in e and isinstance(e["ctx"], dict):
            e["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
        e.pop("url", None)
    return errs

def _recent_window() -> timedelta:
    return timedelta(hours=current_app.config.get("RECENT_WINDOW_HOURS", 24))

DOOR_KEYS = {"info", "numberOfDoors", "number_of_doors"}

def _parse_body() -> tuple[AggregateIn, list[str]]:
    """Validate the write body; door labels are checked against numberOfDoors here, not in the store."""
    if not request.get_data(cache=True).strip():
        raise EmptyBody()
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict) or not payload:
        raise EmptyBody("Request body must be a non-empty JSON object")
    # raw JSON types are checked before the schema gets a chance to coerce them
    validate_coordinates(payload.get("lat"), payload.get("long"))
    parsed = AggregateIn.model_validate(payload)
    labels = decode(parsed.info, DecodeMode.COMPACT)
    # a bare {lat, long} body keeps the one-door default
    if DOOR_KEYS & payload.keys():
        labels = validate_count(labels, parsed.number_of_doors)
    return parsed, labels

def _single(building_id: int) -> Dict[str, Any]:
    building, doors = store.get_aggregate(building_id)
    summary = store.summarize(building, doors)
    out = AggregateOut.model_validate(aggregate_record(summary, doors))
    return dump(AggregateEnvelope(data=out))

# ----------------------- Error mapping -----------------------
@api_bp.errorhandler(SchemaError)
def _on_schema_error(ve: SchemaError):
    return error("validation_error", 400, code="validation_error", detail=_pydantic_errors_safe(ve))

@api_bp.errorhandler(AggregateError)
def _on_aggregate_error(ex: AggregateError):
    if isinstance(ex, StorageError):
        # details are already in the log, the caller only gets a generic failure
        return error("Internal Server Error", 500, code=ex.code)
    if isinstance(ex, ValidationError):
        log.info("rejected write: %s", ex.message)
    return error(ex.message, ex.http_status, code=ex.code)

# ----------------------- JSON API -----------------------
@api_bp.get("/aggregates")
def api_aggregates_list():
    rows = store.list_recent_aggregates(_recent_window())
    wanted = request.args.get("id", type=int)
    if wanted is not None:
        rows = [r for r in rows if r.building.id == wanted]
    items = [AggregateOut.model_validate(aggregate_record(r)) for r in rows]
    return ok(dump(AggregateListEnvelope(data=items)))

@api_bp.post("/aggregates")
def api_aggregates_create():
    parsed, labels = _parse_body()
    building_id = store.create_aggregate(
        lat=parsed.lat,
        long=parsed.long,
        address=parsed.address,
        territory_id=parsed.territory_id,
        congregation_id=parsed.congregation_id,
        language=parsed.language,
        number_of_doors=parsed.number_of_doors,
        door_labels=labels,
    )
    return created(
        url_for("aggregates_api.api_aggregates_get", id=building_id),
        {"message": "Building and doors created successfully", "buildingId": building_id},
    )

@api_bp.get("/aggregates/<int:id>")
def api_aggregates_get(id: int):
    return ok(_single(id))

@api_bp.put("/aggregates/<int:id>")
def api_aggregates_update(id: int):
    parsed, labels = _parse_body()
    # territory is kept unless the body names it
    territory_id = parsed.territory_id if "territory_id" in parsed.model_fields_set else None
    store.update_aggregate(
        id,
        lat=parsed.lat,
        long=parsed.long,
        address=parsed.address,
        congregation_id=parsed.congregation_id,
        language=parsed.language,
        number_of_doors=parsed.number_of_doors,
        door_labels=labels,
        territory_id=territory_id,
    )
    return ok({"message": "Building and doors updated successfully", "buildingId": id})

@api_bp.delete("/aggregates/<int:id>")
def api_aggregates_delete(id: int):
    store.delete_aggregate(id)
    return ok({"message": "Building and doors deleted successfully", "deletedId": id})
