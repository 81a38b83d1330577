# client/resilient.py
"""
HTTP client for the aggregates API.

Reads try several candidate endpoints one after another and return the first
record that can be normalized; a failing candidate is logged and skipped.
Only when every candidate failed does the caller get a ``NotFoundError``,
chained to the last underlying failure.

Usage:
    from client import ResilientClient

    with ResilientClient("http://localhost:5000/api/v1") as api:
        record = api.fetch_aggregate(42)
        if record.needs_correction:
            ...
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from errors import NotFoundError, StorageError, ValidationError
from .normalize import DEFAULT_LOCATION, AggregateRecord, normalize, normalize_shape, unwrap_records

logger = logging.getLogger(__name__)


class ResilientClient:
    """Synchronous client; one request in flight at a time, bounded by `timeout`."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
        default_location: Tuple[float, float] = DEFAULT_LOCATION,
    ):
        self._base_url = base_url.rstrip("/")
        self._default_location = default_location
        self._http = httpx.Client(
            timeout=httpx.Timeout(timeout),
            transport=transport,
            headers={"Accept": "application/json"},
        )

    # ----- lifecycle -----
    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ResilientClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ----- reads -----
    def candidates(self, building_id: Any) -> List[Tuple[str, str, Dict[str, Any]]]:
        """(label, url, query params) in the order they are tried."""
        base = f"{self._base_url}/aggregates"
        return [
            ("direct", f"{base}/{building_id}", {}),
            ("query", base, {"id": str(building_id)}),
            ("list", base, {}),
        ]

    def fetch_aggregate(self, building_id: Any) -> AggregateRecord:
        last_error: Optional[Exception] = None

        for label, url, params in self.candidates(building_id):
            try:
                response = self._http.get(url, params=params or None)
                response.raise_for_status()
                raw = normalize_shape(response.json(), building_id)
                record = normalize(raw, self._default_location)
            except (httpx.HTTPError, ValueError, NotFoundError) as e:
                # ValueError covers malformed JSON bodies
                last_error = e
                logger.warning(f"Candidate '{label}' failed for building {building_id}: {e}")
                continue

            logger.debug(f"Building {building_id} resolved via '{label}' candidate")
            return record

        raise NotFoundError(
            f"Building {building_id} not found or failed to load from any endpoint"
        ) from last_error

    def list_recent(self) -> List[AggregateRecord]:
        response = self._send("GET", f"{self._base_url}/aggregates")
        try:
            body = response.json()
        except ValueError as e:
            raise StorageError(f"Malformed list response: {e}") from e

        records = []
        for item in unwrap_records(body):
            try:
                records.append(normalize(item, self._default_location))
            except NotFoundError as e:
                logger.warning(f"Skipping list item: {e}")
        return records

    # ----- writes -----
    def create_aggregate(self, payload: Dict[str, Any]) -> int:
        response = self._send("POST", f"{self._base_url}/aggregates", json=payload)
        return response.json()["buildingId"]

    def update_aggregate(self, building_id: Any, payload: Dict[str, Any]) -> int:
        response = self._send("PUT", f"{self._base_url}/aggregates/{building_id}", json=payload)
        return response.json()["buildingId"]

    def delete_aggregate(self, building_id: Any) -> Any:
        response = self._send("DELETE", f"{self._base_url}/aggregates/{building_id}")
        return response.json()["deletedId"]

    def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Single request; maps failures onto the shared error taxonomy."""
        try:
            response = self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise StorageError(f"Request failed: {e}") from e

        if response.status_code == 404:
            raise NotFoundError(_error_message(response, "not found"))
        if response.status_code == 400:
            raise ValidationError(_error_message(response, "invalid request"))
        if response.is_error:
            logger.error(f"{method} {url} -> {response.status_code}: {response.text[:200]}")
            raise StorageError(f"Server responded with {response.status_code}")
        return response


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return fallback
