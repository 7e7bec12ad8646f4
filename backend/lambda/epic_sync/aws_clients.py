"""aws_clients.py — Secrets Manager client singleton and Clubhouse API token lookup.

Part of the epic_sync Lambda.
"""
from __future__ import annotations

import time
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

import config
from config import SECRETS_REGION, TOKEN_CACHE_TTL_SECONDS, logger
from errors import ConfigurationError

__all__ = [
    "_get_api_token",
    "_get_secretsmanager",
]

# ---------------------------------------------------------------------------
# AWS client singletons
# ---------------------------------------------------------------------------

_secretsmanager = None


def _get_secretsmanager(region: Optional[str] = None):
    """Get (or create) the Secrets Manager client singleton."""
    global _secretsmanager
    if _secretsmanager is None:
        _secretsmanager = boto3.client(
            "secretsmanager",
            region_name=region or SECRETS_REGION,
            config=Config(retries={"max_attempts": 3, "mode": "standard"}),
        )
    return _secretsmanager


# ---------------------------------------------------------------------------
# Clubhouse API token cache
# ---------------------------------------------------------------------------

_token_cache: Optional[str] = None
_token_fetched_at: float = 0.0


def _get_api_token() -> str:
    """Return the Clubhouse API token.

    The CLUBHOUSE_API_TOKEN env var wins. Otherwise the token is read from
    the Secrets Manager secret named by CLUBHOUSE_API_TOKEN_SECRET and cached
    across warm invocations.
    """
    global _token_cache, _token_fetched_at
    if config.CLUBHOUSE_API_TOKEN:
        return config.CLUBHOUSE_API_TOKEN

    secret_id = config.CLUBHOUSE_API_TOKEN_SECRET
    if not secret_id:
        raise ConfigurationError(
            "Clubhouse API token not configured: set CLUBHOUSE_API_TOKEN or CLUBHOUSE_API_TOKEN_SECRET"
        )

    now = time.time()
    if _token_cache and (now - _token_fetched_at) < TOKEN_CACHE_TTL_SECONDS:
        return _token_cache

    try:
        resp = _get_secretsmanager().get_secret_value(SecretId=secret_id)
    except (BotoCoreError, ClientError) as exc:
        logger.error("Secrets Manager lookup failed for %s: %s", secret_id, exc)
        raise ConfigurationError(f"Unable to read Clubhouse API token secret '{secret_id}'") from exc

    token = str(resp.get("SecretString") or "").strip()
    if not token:
        raise ConfigurationError(f"Clubhouse API token secret '{secret_id}' is empty")

    _token_cache = token
    _token_fetched_at = now
    return _token_cache
