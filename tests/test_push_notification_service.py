"""Tests for push delivery over the FCM HTTP v1 API."""

from unittest.mock import MagicMock, patch

import pytest

from workforce_portal.config import DeliveryConfig
from workforce_portal.core.exceptions import DeliveryException, NoDeviceTokensException
from workforce_portal.services.push_notification_service import PushMessage

MESSAGE = PushMessage(title="Shift update", body="Your shift moved to 9am")


def test_messages_endpoint_includes_project():
    config = DeliveryConfig(
        fcm_endpoint="https://fcm.googleapis.com/v1/projects",
        fcm_project_id="p1",
    )

    assert config.messages_endpoint == "https://fcm.googleapis.com/v1/projects/p1/messages:send"


def test_push_message_data_without_screen_is_omitted():
    assert MESSAGE.data() is None


def test_push_message_data_stringifies_screen_props():
    message = PushMessage(
        title="t",
        body="b",
        redirection_screen="ShiftDetails",
        redirection_screen_props={"shiftId": 42},
    )

    assert message.data() == {
        "deeplinkTo": "ShiftDetails",
        "deepLinkParamsStringified": '{"shiftId": 42}',
    }


@pytest.mark.asyncio
async def test_send_push_notification_uses_bearer_token(push_service, fake_fcm, token_provider):
    result = await push_service.send_push_notification("tx-1", "P1", ["t1"], MESSAGE)

    assert result.success_tokens == ["t1"]
    assert result.failed_tokens == []
    assert token_provider.calls == 1

    request = fake_fcm.requests[0]
    assert str(request.url) == "https://fcm.test/v1/projects/test-project/messages:send"
    assert request.headers["Authorization"] == "Bearer test-access-token"
    assert fake_fcm.messages[0]["notification"] == {
        "title": "Shift update",
        "body": "Your shift moved to 9am",
    }
    assert "data" not in fake_fcm.messages[0]


@pytest.mark.asyncio
async def test_send_push_notification_requests_fresh_token_each_call(push_service, token_provider):
    await push_service.send_push_notification("tx-1", "P1", ["t1"], MESSAGE)
    await push_service.send_push_notification("tx-2", "P1", ["t1"], MESSAGE)

    assert token_provider.calls == 2


@pytest.mark.asyncio
async def test_send_push_notification_caps_devices(push_service, fake_fcm):
    """Only the newest three devices are contacted; the rest are not reported."""
    result = await push_service.send_push_notification(
        "tx-1", "P1", ["t5", "t4", "t3", "t2", "t1"], MESSAGE
    )

    assert sorted(fake_fcm.sent_tokens) == ["t3", "t4", "t5"]
    assert sorted(result.success_tokens) == ["t3", "t4", "t5"]
    assert result.failed_tokens == []


@pytest.mark.asyncio
async def test_send_push_notification_reports_failed_tokens(push_service, fake_fcm):
    fake_fcm.failing_tokens.add("stale")

    result = await push_service.send_push_notification("tx-1", "P1", ["fresh", "stale"], MESSAGE)

    assert result.success_tokens == ["fresh"]
    assert result.failed_tokens == ["stale"]


@pytest.mark.asyncio
async def test_send_push_notification_timeout_marks_token_failed(push_service, fake_fcm):
    fake_fcm.timeout_tokens.add("slow")

    result = await push_service.send_push_notification("tx-1", "P1", ["slow", "fast"], MESSAGE)

    assert result.success_tokens == ["fast"]
    assert result.failed_tokens == ["slow"]


@pytest.mark.asyncio
async def test_send_push_notification_without_tokens_raises(push_service, fake_fcm):
    with pytest.raises(NoDeviceTokensException):
        await push_service.send_push_notification("tx-1", "P1", [], MESSAGE)

    assert fake_fcm.requests == []


@pytest.mark.asyncio
async def test_send_push_notification_includes_deeplink_data(push_service, fake_fcm):
    message = PushMessage(
        title="t",
        body="b",
        redirection_screen="Timesheet",
        redirection_screen_props={"week": "2026-W10"},
    )

    await push_service.send_push_notification("tx-1", "P1", ["t1"], message)

    assert fake_fcm.messages[0]["data"] == {
        "deeplinkTo": "Timesheet",
        "deepLinkParamsStringified": '{"week": "2026-W10"}',
    }


@pytest.mark.asyncio
async def test_send_push_notification_by_topic(push_service, fake_fcm):
    topic = await push_service.send_push_notification_by_topic("tx-1", "topic_B1_u1", MESSAGE)

    assert topic == "topic_B1_u1"
    assert fake_fcm.sent_topics == ["topic_B1_u1"]
    assert fake_fcm.messages[0]["webpush"] == {
        "fcmOptions": {"link": "https://portal.test/chat"},
    }


@pytest.mark.asyncio
async def test_send_push_notification_by_topic_failure_raises(push_service, fake_fcm):
    fake_fcm.failing_topics.add("topic_B1_u1")

    with pytest.raises(DeliveryException) as exc_info:
        await push_service.send_push_notification_by_topic("tx-1", "topic_B1_u1", MESSAGE)

    assert "topic_B1_u1" in exc_info.value.message


@pytest.mark.asyncio
async def test_subscribe_to_topic(push_service):
    with patch("workforce_portal.services.push_notification_service.messaging") as messaging:
        messaging.subscribe_to_topic.return_value = MagicMock(failure_count=0, errors=[])

        await push_service.subscribe_to_topic("tx-1", "device-1", "topic_B1_u1")

    messaging.subscribe_to_topic.assert_called_once_with(["device-1"], "topic_B1_u1")


@pytest.mark.asyncio
async def test_unsubscribe_from_topic(push_service):
    with patch("workforce_portal.services.push_notification_service.messaging") as messaging:
        messaging.unsubscribe_from_topic.return_value = MagicMock(failure_count=0, errors=[])

        await push_service.unsubscribe_from_topic("tx-1", "device-1", "topic_B1_u1")

    messaging.unsubscribe_from_topic.assert_called_once_with(["device-1"], "topic_B1_u1")


@pytest.mark.asyncio
async def test_subscribe_to_topic_failure_raises(push_service):
    with patch("workforce_portal.services.push_notification_service.messaging") as messaging:
        messaging.subscribe_to_topic.return_value = MagicMock(
            failure_count=1,
            errors=[MagicMock(reason="INVALID_ARGUMENT")],
        )

        with pytest.raises(DeliveryException) as exc_info:
            await push_service.subscribe_to_topic("tx-1", "bad-device", "topic_B1_u1")

    assert "INVALID_ARGUMENT" in exc_info.value.message
