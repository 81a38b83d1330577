"""Error taxonomy shared by the REST layer and the client.

Everything derives from ``AggregateError`` so callers can catch the family
at once. ``http_status`` is what the API boundary answers with.
"""
from __future__ import annotations


class AggregateError(Exception):
    http_status = 500
    code = "error"
    default_message = "aggregate error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AggregateError):
    http_status = 400
    code = "validation_error"
    default_message = "invalid request"


class InvalidCoordinate(ValidationError):
    code = "invalid_coordinates"
    default_message = "Invalid coordinates"


class EmptyBody(ValidationError):
    code = "empty_body"
    default_message = "Empty body"


class CountMismatch(ValidationError):
    code = "door_count_mismatch"
    default_message = "door label count does not match number of doors"


class NotFoundError(AggregateError):
    http_status = 404
    code = "not_found"
    default_message = "not found"


class StorageError(AggregateError):
    http_status = 500
    code = "storage_error"
    default_message = "Internal Server Error"
