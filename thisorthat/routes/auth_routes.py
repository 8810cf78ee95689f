from flask import Blueprint, jsonify

from thisorthat.security import is_valid_api_key, supplied_api_key

bp = Blueprint("auth", __name__)


@bp.route("/validate-api-key")
def validate_api_key():
    if is_valid_api_key(supplied_api_key()):
        return jsonify({"ok": True, "valid": True})
    return jsonify({"ok": False, "valid": False, "error": "invalid_api_key"}), 401
