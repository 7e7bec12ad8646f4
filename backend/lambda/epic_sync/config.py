"""config.py — Environment variables, constants, logging for the epic_sync Lambda.

Environment variables:
    CLUBHOUSE_API_TOKEN             API token (preferred source)
    CLUBHOUSE_API_TOKEN_SECRET      Secrets Manager secret id used when the token env is empty
    CLUBHOUSE_API_BASE              default: https://api.clubhouse.io
    CLUBHOUSE_HTTP_TIMEOUT_SECONDS  default: 15
    SECRETS_REGION                  default: DYNAMODB_REGION or us-west-2
    EPIC_SYNC_DRY_RUN               default: false
    LOG_LEVEL                       default: INFO
"""
from __future__ import annotations

import logging
import os


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


__all__ = [
    "CLUBHOUSE_API_BASE",
    "CLUBHOUSE_API_TOKEN",
    "CLUBHOUSE_API_TOKEN_SECRET",
    "CLUBHOUSE_API_VERSION_PATH",
    "CLUBHOUSE_HTTP_TIMEOUT_SECONDS",
    "COMPONENT_NAME",
    "DRY_RUN",
    "EPIC_STATE_IN_PROGRESS",
    "EPIC_STATE_TODO",
    "SECRETS_REGION",
    "TOKEN_CACHE_TTL_SECONDS",
    "logger",
]

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

CLUBHOUSE_API_TOKEN = os.environ.get("CLUBHOUSE_API_TOKEN", "")
CLUBHOUSE_API_TOKEN_SECRET = os.environ.get("CLUBHOUSE_API_TOKEN_SECRET", "")
CLUBHOUSE_API_BASE = os.environ.get("CLUBHOUSE_API_BASE", "https://api.clubhouse.io").rstrip("/")
CLUBHOUSE_API_VERSION_PATH = "/api/v2"
CLUBHOUSE_HTTP_TIMEOUT_SECONDS = _env_int("CLUBHOUSE_HTTP_TIMEOUT_SECONDS", 15)
SECRETS_REGION = os.environ.get("SECRETS_REGION", os.environ.get("DYNAMODB_REGION", "us-west-2"))
TOKEN_CACHE_TTL_SECONDS = 3600.0  # re-fetch from Secrets Manager every hour

DRY_RUN = _env_flag("EPIC_SYNC_DRY_RUN")

# Epic workflow state names, matched exactly against epic-workflow.epic_states[].name
EPIC_STATE_TODO = "to do"
EPIC_STATE_IN_PROGRESS = "in progress"

COMPONENT_NAME = "epic_sync"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logger = logging.getLogger()
logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())
