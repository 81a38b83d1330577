from __future__ import annotations
import json, logging
from datetime import datetime, UTC

from flask import current_app, g, jsonify, request
from werkzeug.wrappers.response import Response

from . import bp

def _utc_iso(timespec: str = "milliseconds") -> str:
    return datetime.now(UTC).replace(tzinfo=None).isoformat(timespec=timespec) + "Z"

class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": _utc_iso(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in ("event", "path", "method", "status", "duration_ms"):
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)

def _setup_structured_logging(app):
    logger = app.logger
    has_json = any(
        isinstance(h, logging.StreamHandler)
        and isinstance(getattr(h, "formatter", None), JSONFormatter)
        for h in logger.handlers
    )
    if not has_json:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

@bp.before_app_request
def _start_timer():
    g._req_start = datetime.now(UTC)

@bp.after_app_request
def _log_request(response: Response):
    try:
        duration_ms = int((datetime.now(UTC) - g._req_start).total_seconds() * 1000)
    except AttributeError:
        duration_ms = None
    extra = {
        "event": "http_request",
        "path": request.path,
        "method": request.method,
        "status": response.status_code,
        "duration_ms": duration_ms,
    }
    current_app.logger.info("request handled", extra=extra)
    return response

@bp.record_once
def _on_register(state):
    _setup_structured_logging(state.app)

@bp.get("/health")
def health():
    return jsonify({
        "status": "ok",
        "ts": _utc_iso("seconds"),
    })
