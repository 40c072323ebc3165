# gdip/utils/request_helpers.py
from typing import Any, Dict, Optional

from flask import request

from gdip.errors import ValidationError


def json_body() -> Dict[str, Any]:
    """The request's JSON object; an empty body counts as {}."""
    if not request.get_data(cache=True):
        return {}
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid input", details={"body": "Expected a JSON object"})
    return data


def optional_int(payload: Dict[str, Any], *keys: str) -> Optional[int]:
    """First of `keys` present in payload as an integer id (digit strings allowed)."""
    for key in keys:
        value = payload.get(key)
        if value in (None, ""):
            continue
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        raise ValidationError("Invalid input", details={key: "Expected an integer id"})
    return None
