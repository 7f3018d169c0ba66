"""Tests for notification endpoints."""

import json

import pytest
from httpx import AsyncClient

from workforce_portal.core.redis_client import CacheKey

BASE_URL = "/api/v1/notifications"


def push_payload(**overrides) -> dict:
    payload = {
        "placements": ["Push", "UserQueue"],
        "priority": "High",
        "visibility": "Individual",
        "notification_type": "Individual",
        "origin": "Alert",
        "title": "Shift update",
        "body": "Your shift moved to 9am",
        "user_ps_ids": ["P100"],
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_requests_without_identity_are_rejected(client: AsyncClient):
    response = await client.get(f"{BASE_URL}/me")

    assert response.status_code == 401
    assert response.json()["error"] == "UnauthorizedException"


@pytest.mark.asyncio
async def test_send_notification(client: AsyncClient, identity_headers, seed_employee, fake_fcm):
    await seed_employee("P100", ["device-1"])

    response = await client.post(BASE_URL, json=push_payload(), headers=identity_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["notification_id"].startswith("notification_")
    assert fake_fcm.sent_tokens == ["device-1"]

    response = await client.get(f"{BASE_URL}/{data['notification_id']}", headers=identity_headers)
    assert response.status_code == 200
    stored = response.json()
    assert stored["created_by_ps_id"] == "P100"
    assert stored["created_by_name"] == "Jamie Rivera"


@pytest.mark.asyncio
async def test_send_notification_missing_fields(client: AsyncClient, identity_headers):
    response = await client.post(
        BASE_URL, json=push_payload(title=None), headers=identity_headers
    )

    assert response.status_code == 422
    assert response.json()["message"] == "Required fields are missing."


@pytest.mark.asyncio
async def test_send_notification_rejects_oversized_id(
    client: AsyncClient, identity_headers, seed_employee, fake_fcm
):
    await seed_employee("P100", ["device-1"])

    response = await client.post(
        BASE_URL, json=push_payload(notification_id="n" * 65), headers=identity_headers
    )

    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"
    assert fake_fcm.requests == []


@pytest.mark.asyncio
async def test_send_notification_rejects_oversized_target_ids(
    client: AsyncClient, identity_headers, fake_fcm
):
    response = await client.post(
        BASE_URL,
        json=push_payload(user_ps_ids=None, branch_ids=["B" * 65]),
        headers=identity_headers,
    )

    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"
    assert fake_fcm.requests == []


@pytest.mark.asyncio
async def test_send_notification_without_devices(
    client: AsyncClient, identity_headers, seed_employee
):
    await seed_employee("P100")

    response = await client.post(BASE_URL, json=push_payload(), headers=identity_headers)

    assert response.status_code == 422
    assert response.json()["error"] == "NoDeviceTokensException"


@pytest.mark.asyncio
async def test_get_my_notifications(
    client: AsyncClient, identity_headers, seed_employee, seed_branch
):
    """The inbox is scoped to the caller's branches and ordered by priority."""
    await seed_employee("P100", ["device-1"])
    await seed_branch("B1")
    await seed_branch("B2")
    await client.post(
        BASE_URL,
        json=push_payload(notification_id="notification_low", priority="Low", branch_ids=["B1"]),
        headers=identity_headers,
    )
    await client.post(
        BASE_URL,
        json=push_payload(notification_id="notification_other_branch", branch_ids=["B2"]),
        headers=identity_headers,
    )
    await client.post(
        BASE_URL,
        json=push_payload(
            notification_id="notification_highest", priority="Highest", branch_ids=["B1"]
        ),
        headers=identity_headers,
    )

    response = await client.get(f"{BASE_URL}/me", headers=identity_headers)

    assert response.status_code == 200
    assert [item["notification_id"] for item in response.json()] == [
        "notification_highest",
        "notification_low",
    ]


@pytest.mark.asyncio
async def test_list_notifications_for_caller_locations(
    client: AsyncClient, identity_headers, seed_branch
):
    await seed_branch("B1")
    await seed_branch("B2")
    for notification_id, branch_id in (("notification_b1", "B1"), ("notification_b2", "B2")):
        response = await client.post(
            BASE_URL,
            json=push_payload(
                notification_id=notification_id,
                placements=["Dashboard"],
                visibility="Branch",
                notification_type="Group",
                user_ps_ids=None,
                branch_ids=[branch_id],
            ),
            headers=identity_headers,
        )
        assert response.status_code == 201

    response = await client.get(BASE_URL, headers=identity_headers)

    assert response.status_code == 200
    assert [item["notification_id"] for item in response.json()] == ["notification_b1"]


@pytest.mark.asyncio
async def test_get_unknown_notification(client: AsyncClient, identity_headers):
    response = await client.get(f"{BASE_URL}/notification_missing", headers=identity_headers)

    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundException"


@pytest.mark.asyncio
async def test_remove_notification(client: AsyncClient, identity_headers, seed_employee):
    await seed_employee("P100", ["device-1"])
    await client.post(
        BASE_URL, json=push_payload(notification_id="notification_gone"), headers=identity_headers
    )

    response = await client.delete(
        f"{BASE_URL}/notification_gone", params={"force": "true"}, headers=identity_headers
    )
    assert response.status_code == 200
    assert response.json()["notification_id"] == "notification_gone"

    response = await client.get(f"{BASE_URL}/notification_gone", headers=identity_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_interaction_is_recorded(client: AsyncClient, identity_headers, seed_employee):
    await seed_employee("P100", ["device-1"])
    await client.post(
        BASE_URL, json=push_payload(notification_id="notification_read"), headers=identity_headers
    )

    response = await client.post(
        f"{BASE_URL}/notification_read/interactions",
        json={"interaction_type": "Read"},
        headers=identity_headers,
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "notification_id": "notification_read",
        "pending": False,
    }

    response = await client.get(
        f"{BASE_URL}/interactions",
        params={"notification_ids": ["notification_read"]},
        headers=identity_headers,
    )
    assert response.status_code == 200
    assert response.json()[0]["interaction_type"] == "Read"


@pytest.mark.asyncio
async def test_interaction_with_unknown_notification_is_cached(
    client: AsyncClient, identity_headers, mock_redis
):
    response = await client.post(
        f"{BASE_URL}/notification_later/interactions",
        json={"interaction_type": "Acknowledged"},
        headers=identity_headers,
    )

    assert response.status_code == 200
    assert response.json()["pending"] is True

    key = CacheKey.notification_interaction("P100", "notification_later")
    mock_redis.setex.assert_called_once()
    cache_key, ttl, value = mock_redis.setex.call_args.args
    assert cache_key == str(key)
    assert ttl == key.ttl_seconds
    assert json.loads(value)["interaction_type"] == "Acknowledged"


@pytest.mark.asyncio
async def test_register_and_deactivate_token(client: AsyncClient, identity_headers, seed_employee):
    await seed_employee("P100")
    token = {"device_token": "fcm-token-1", "platform": "android"}

    response = await client.post(f"{BASE_URL}/register-token", json=token, headers=identity_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["employee_ps_id"] == "P100"
    assert data["is_active"] is True

    response = await client.request(
        "DELETE", f"{BASE_URL}/deactivate-token", json=token, headers=identity_headers
    )
    assert response.status_code == 204

    response = await client.request(
        "DELETE", f"{BASE_URL}/deactivate-token", json=token, headers=identity_headers
    )
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_deactivate_unknown_token(client: AsyncClient, identity_headers):
    response = await client.request(
        "DELETE",
        f"{BASE_URL}/deactivate-token",
        json={"device_token": "never-registered", "platform": "ios"},
        headers=identity_headers,
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_transaction_id_is_echoed(client: AsyncClient, identity_headers):
    headers = {**identity_headers, "X-Transaction-Id": "tx-from-gateway"}

    response = await client.get(f"{BASE_URL}/me", headers=headers)

    assert response.headers["X-Transaction-Id"] == "tx-from-gateway"


@pytest.mark.asyncio
async def test_transaction_id_is_generated(client: AsyncClient, identity_headers):
    response = await client.get(f"{BASE_URL}/me", headers=identity_headers)

    assert len(response.headers["X-Transaction-Id"]) == 32
