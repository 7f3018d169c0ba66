"""Tests for secrets, access tokens and service wiring."""

import base64
import json
from unittest.mock import MagicMock, patch

import pytest

from workforce_portal.config import DeliveryConfig
from workforce_portal.core.exceptions import AppException
from workforce_portal.core.firebase import GoogleAccessTokenProvider
from workforce_portal.core.secrets import EnvironmentSecretStore, decode_service_account
from workforce_portal.dependencies import _split_header, build_notification_service

SERVICE_ACCOUNT = {"type": "service_account", "project_id": "test-project"}
ENCODED_SERVICE_ACCOUNT = base64.b64encode(json.dumps(SERVICE_ACCOUNT).encode()).decode()


def test_split_header():
    assert _split_header("B1, B2,,B3 ") == ["B1", "B2", "B3"]
    assert _split_header(None) == []


@pytest.mark.asyncio
async def test_environment_secret_store():
    store = EnvironmentSecretStore({"FIREBASE_SECRET": "value"})

    assert await store.get_secret("FIREBASE_SECRET") == "value"

    with pytest.raises(AppException):
        await store.get_secret("MISSING_SECRET")


def test_decode_service_account():
    assert decode_service_account(ENCODED_SERVICE_ACCOUNT) == SERVICE_ACCOUNT

    with pytest.raises(AppException):
        decode_service_account("not base64 json")


@pytest.mark.asyncio
async def test_access_token_is_requested_on_every_call():
    store = EnvironmentSecretStore({"FIREBASE_SECRET": ENCODED_SERVICE_ACCOUNT})
    provider = GoogleAccessTokenProvider(store, "FIREBASE_SECRET")
    creds = MagicMock(token="ya29.token")

    with patch(
        "workforce_portal.core.firebase.service_account.Credentials.from_service_account_info",
        return_value=creds,
    ) as from_info:
        assert await provider.get_access_token("tx-1") == "ya29.token"
        assert await provider.get_access_token("tx-2") == "ya29.token"

    assert from_info.call_count == 2
    assert creds.refresh.call_count == 2
    from_info.assert_called_with(
        SERVICE_ACCOUNT, scopes=["https://www.googleapis.com/auth/firebase.messaging"]
    )


def test_build_notification_service_shares_config():
    config = DeliveryConfig(fcm_project_id="test-project")

    service = build_notification_service(config, EnvironmentSecretStore({}))

    assert service.config is config
    assert service.push_service.config is config
    assert service.resolver.config is config
