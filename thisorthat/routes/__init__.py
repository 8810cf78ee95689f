from typing import Optional

from flask import request

from thisorthat.errors import BadInput

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def int_arg(name: str, default: Optional[int] = None, minimum: Optional[int] = None, maximum: Optional[int] = None, required: bool = False) -> Optional[int]:
    raw = request.args.get(name)
    if raw is None or raw == "":
        if required:
            raise BadInput(f"{name} is required")
        return default
    try:
        value = int(raw)
    except ValueError:
        raise BadInput(f"{name} must be an integer")
    if minimum is not None and value < minimum:
        raise BadInput(f"{name} must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise BadInput(f"{name} must be <= {maximum}")
    return value


def bool_arg(name: str, default: bool = False) -> bool:
    raw = (request.args.get(name) or "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise BadInput(f"{name} must be true or false")


def str_arg(name: str, required: bool = False) -> Optional[str]:
    value = (request.args.get(name) or "").strip()
    if not value and required:
        raise BadInput(f"{name} is required")
    return value or None
