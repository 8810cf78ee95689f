"""
Error taxonomy shared by the pipeline and the HTTP layer.

Provider lookups never raise; they degrade to empty results. Everything
here is terminal for the operation that raised it.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException


class ServiceError(Exception):
    status = 500
    code = "internal_error"

    def __init__(self, message: str = "", details: Optional[Any] = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details = details

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"ok": False, "error": self.code, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class BadInput(ServiceError):
    status = 400
    code = "bad_input"


class NotFound(ServiceError):
    status = 404
    code = "not_found"


class ValidationFailure(ServiceError):
    """Generator output, or a vote, that does not match what was expected."""

    status = 502
    code = "invalid_generator_output"


class InvalidVoteOption(ValidationFailure):
    """A vote named a side other than 1 or 2."""

    status = 400
    code = "bad_input"


class GeneratorUnavailable(ServiceError):
    """The candidate generator could not be reached or is not configured."""

    status = 502
    code = "generator_unavailable"


class PersistenceFailure(ServiceError):
    status = 500
    code = "persistence_failure"


class BlobStoreError(Exception):
    """Raised by blob store implementations; the orchestrator treats it as a missing image."""


def _abort_json(status: int, payload: Dict[str, Any]):
    resp = jsonify(payload)
    resp.status_code = status
    return resp


def register_error_handlers(app) -> None:
    @app.errorhandler(ServiceError)
    def _service_error(exc: ServiceError):
        if exc.status >= 500:
            current_app.logger.error("[errors] %s: %s", exc.code, exc.message)
        return _abort_json(exc.status, exc.to_payload())

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return _abort_json(exc.code or 500, {"ok": False, "error": (exc.name or "error").lower().replace(" ", "_"), "message": exc.description})

    @app.errorhandler(Exception)
    def _unhandled(exc: Exception):
        current_app.logger.exception("[errors] unhandled: %s", exc)
        return _abort_json(500, {"ok": False, "error": "internal_error", "message": "Internal server error"})
