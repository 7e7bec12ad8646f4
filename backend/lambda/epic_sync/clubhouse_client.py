"""clubhouse_client.py — Clubhouse REST API v2 resource client.

Reads and partial writes of named resources (``epic-workflow``, ``epics``,
``epics/{id}``). Authenticates with the ``token`` query parameter. No retries:
a failed call aborts the invocation and Clubhouse redelivers the webhook.

Part of the epic_sync Lambda.
"""
from __future__ import annotations

import http.client
import json
import urllib.error
import urllib.request
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

import config
from aws_clients import _get_api_token
from config import CLUBHOUSE_API_VERSION_PATH, logger
from epics import Epic, EpicWorkflow, epic_from_json, epic_workflow_from_json, epics_from_json
from errors import ParseError, TransportError

__all__ = [
    "ClubhouseClient",
]


class ClubhouseClient:
    """Minimal Clubhouse API client for epic reads and epic state writes."""

    def __init__(
        self,
        token: Optional[str] = None,
        *,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
        token_provider: Callable[[], str] = _get_api_token,
    ) -> None:
        self._token = token
        self._token_provider = token_provider
        self.api_base = (api_base or config.CLUBHOUSE_API_BASE).rstrip("/")
        self.timeout = timeout if timeout is not None else config.CLUBHOUSE_HTTP_TIMEOUT_SECONDS

    # -- plumbing -----------------------------------------------------------

    def _get_token(self) -> str:
        if not self._token:
            self._token = self._token_provider()
        return self._token

    def _url(self, resource_key: str) -> str:
        key = resource_key.strip("/")
        return (
            f"{self.api_base}{CLUBHOUSE_API_VERSION_PATH}/{key}"
            f"?token={quote(self._get_token(), safe='')}"
        )

    def _redact(self, url: str) -> str:
        return url.split("?token=", 1)[0] + "?token=***"

    def _request(self, method: str, resource_key: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        url = self._url(resource_key)
        safe_url = self._redact(url)
        headers = {"Content-Type": "application/json"}
        data = None
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            headers["Content-Length"] = str(len(data))

        req = urllib.request.Request(url, method=method, data=data, headers=headers)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as exc:
            body_text = exc.read().decode("utf-8", errors="replace")
            logger.error("Clubhouse API %s %s failed: %s %s", method, safe_url, exc.code, body_text)
            raise TransportError(
                f"Clubhouse API {method} {resource_key} failed ({exc.code}): {body_text}",
                url=safe_url,
                status=exc.code,
            ) from exc
        except (urllib.error.URLError, http.client.HTTPException, OSError) as exc:
            reason = getattr(exc, "reason", exc)
            logger.error("Clubhouse API %s %s unreachable: %s", method, safe_url, reason)
            raise TransportError(
                f"Clubhouse API {method} {resource_key} unreachable: {reason}",
                url=safe_url,
            ) from exc

        try:
            return json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as exc:
            raise ParseError(f"Clubhouse API {method} {resource_key} returned a non-JSON body") from exc

    # -- resource contract --------------------------------------------------

    def fetch(self, resource_key: str) -> Any:
        """GET /api/v2/{resource_key} and return the decoded JSON body."""
        logger.debug("Clubhouse fetch: %s", resource_key)
        return self._request("GET", resource_key)

    def update(self, resource_key: str, payload: Dict[str, Any]) -> Any:
        """PUT a partial payload to /api/v2/{resource_key} and return the decoded body."""
        logger.debug("Clubhouse update: %s fields=%s", resource_key, sorted(payload))
        return self._request("PUT", resource_key, payload)

    # -- typed readers/writers ----------------------------------------------

    def get_epic_workflow(self) -> EpicWorkflow:
        return epic_workflow_from_json(self.fetch("epic-workflow"))

    def list_epics(self) -> List[Epic]:
        return epics_from_json(self.fetch("epics"))

    def get_epic(self, epic_id: int) -> Epic:
        return epic_from_json(self.fetch(f"epics/{epic_id}"))

    def set_epic_state(self, epic_id: int, epic_state_id: int) -> Epic:
        return epic_from_json(self.update(f"epics/{epic_id}", {"epic_state_id": epic_state_id}))
