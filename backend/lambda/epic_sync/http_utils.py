"""http_utils.py — API Gateway body decoding.

Part of the epic_sync Lambda.
"""
from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Dict

from errors import MalformedEventError

__all__ = [
    "_json_body",
]


def _json_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """Decode the JSON object carried in an API Gateway proxy event body."""
    if not isinstance(event, dict):
        raise MalformedEventError("Lambda event must be an object")

    raw = event.get("body")
    if raw in (None, ""):
        raise MalformedEventError("Webhook request has no body")

    if event.get("isBase64Encoded"):
        try:
            raw = base64.b64decode(raw).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError, TypeError) as exc:
            raise MalformedEventError(f"Invalid base64 body: {exc}") from exc

    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as exc:
        raise MalformedEventError(f"Invalid JSON body: {exc}") from exc

    if not isinstance(parsed, dict):
        raise MalformedEventError("JSON body must be an object")
    return parsed
