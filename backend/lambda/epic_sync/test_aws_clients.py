"""test_aws_clients.py — Clubhouse API token lookup (env and Secrets Manager).

Run: python3 -m pytest test_aws_clients.py -v
"""

from __future__ import annotations

import os
import sys
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

sys.path.insert(0, os.path.dirname(__file__))

import aws_clients  # noqa: E402
import config  # noqa: E402
from errors import ConfigurationError  # noqa: E402


@pytest.fixture
def secrets(monkeypatch):
    sm = MagicMock()
    monkeypatch.setattr(aws_clients, "_secretsmanager", sm)
    monkeypatch.setattr(aws_clients, "_token_cache", None)
    monkeypatch.setattr(aws_clients, "_token_fetched_at", 0.0)
    monkeypatch.setattr(config, "CLUBHOUSE_API_TOKEN", "")
    monkeypatch.setattr(config, "CLUBHOUSE_API_TOKEN_SECRET", "clubhouse/api-token")
    return sm


def test_env_token_wins(secrets, monkeypatch):
    monkeypatch.setattr(config, "CLUBHOUSE_API_TOKEN", "env-token")

    assert aws_clients._get_api_token() == "env-token"
    secrets.get_secret_value.assert_not_called()


def test_secret_token_fetched_once_and_cached(secrets):
    secrets.get_secret_value.return_value = {"SecretString": "  sm-token\n"}

    assert aws_clients._get_api_token() == "sm-token"
    assert aws_clients._get_api_token() == "sm-token"
    secrets.get_secret_value.assert_called_once_with(SecretId="clubhouse/api-token")


def test_secret_lookup_failure_is_configuration_error(secrets):
    secrets.get_secret_value.side_effect = ClientError(
        {"Error": {"Code": "ResourceNotFoundException", "Message": "missing"}},
        "GetSecretValue",
    )

    with pytest.raises(ConfigurationError):
        aws_clients._get_api_token()


def test_empty_secret_is_configuration_error(secrets):
    secrets.get_secret_value.return_value = {"SecretString": ""}

    with pytest.raises(ConfigurationError):
        aws_clients._get_api_token()


def test_no_token_source_is_configuration_error(secrets, monkeypatch):
    monkeypatch.setattr(config, "CLUBHOUSE_API_TOKEN_SECRET", "")

    with pytest.raises(ConfigurationError):
        aws_clients._get_api_token()
    secrets.get_secret_value.assert_not_called()


def test_secretsmanager_singleton(monkeypatch):
    created = []
    monkeypatch.setattr(aws_clients, "_secretsmanager", None)
    monkeypatch.setattr(
        aws_clients.boto3, "client", lambda *args, **kwargs: created.append((args, kwargs)) or MagicMock()
    )

    first = aws_clients._get_secretsmanager()
    second = aws_clients._get_secretsmanager()

    assert first is second
    assert len(created) == 1
    assert created[0][0] == ("secretsmanager",)
