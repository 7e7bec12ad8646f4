"""observability.py — Structured JSON log lines, timestamps.

Part of the epic_sync Lambda.
"""
from __future__ import annotations

import datetime as dt
import json
from typing import Any, Dict, Optional

from config import logger

__all__ = [
    "_emit_structured_observability",
    "_now_z",
]


def _now_z() -> str:
    """Current UTC timestamp in ISO 8601 format with Z suffix."""
    return dt.datetime.now(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _emit_structured_observability(
    *,
    component: str,
    event: str,
    webhook_id: Optional[str] = None,
    latency_ms: Optional[int] = None,
    error_code: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "timestamp": _now_z(),
        "component": component,
        "event": event,
        "webhook_id": str(webhook_id or ""),
        "latency_ms": int(max(0, latency_ms or 0)),
        "error_code": str(error_code or ""),
    }
    if extra:
        payload.update(extra)
    logger.info("[OBSERVABILITY] %s", json.dumps(payload, sort_keys=True, default=str))
    return payload
