import secrets
from typing import Optional

from flask import abort, current_app, request

OPEN_ENDPOINTS = {"auth.validate_api_key", "static"}


def supplied_api_key() -> Optional[str]:
    """Key from the `key` query parameter, falling back to the X-API-Key header."""
    return request.args.get("key") or request.headers.get("X-API-Key")


def is_valid_api_key(supplied: Optional[str]) -> bool:
    expected = current_app.config.get("APP_API_KEY")
    if not expected or not supplied:
        return False
    return secrets.compare_digest(str(supplied), str(expected))


def require_api_key() -> None:
    """
    before_request hook: every endpoint except the key check itself needs
    the shared key. Raises 401 on failure.
    """
    if request.method == "OPTIONS" or request.endpoint in OPEN_ENDPOINTS:
        return
    if not is_valid_api_key(supplied_api_key()):
        abort(401, description="Invalid or missing API key")
