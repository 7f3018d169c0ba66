"""Push notification service for the FCM HTTP v1 API."""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog
from firebase_admin import messaging

from workforce_portal.config import DeliveryConfig
from workforce_portal.core.batching import settle_all
from workforce_portal.core.exceptions import DeliveryException, NoDeviceTokensException
from workforce_portal.core.firebase import AccessTokenProvider

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PushMessage:
    """Title, body and optional deeplink of a push message."""

    title: str
    body: str
    redirection_screen: str | None = None
    redirection_screen_props: dict[str, Any] | None = None

    def data(self) -> dict[str, str] | None:
        """FCM data payload. FCM only accepts string values."""
        if not self.redirection_screen:
            return None

        data = {"deeplinkTo": self.redirection_screen}
        if self.redirection_screen_props:
            data["deepLinkParamsStringified"] = json.dumps(self.redirection_screen_props)
        return data


@dataclass
class PushResult:
    """Per-token outcome of one push to a single recipient."""

    success_tokens: list[str] = field(default_factory=list)
    failed_tokens: list[str] = field(default_factory=list)


class PushNotificationService:
    """Service for sending push notifications to device tokens and topics."""

    def __init__(
        self,
        config: DeliveryConfig,
        token_provider: AccessTokenProvider,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.token_provider = token_provider
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.config.push_request_timeout_seconds,
            transport=self.transport,
        )

    async def _auth_headers(self, transaction_id: str) -> dict[str, str]:
        access_token = await self.token_provider.get_access_token(transaction_id)
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {access_token}",
        }

    @staticmethod
    def _build_message(target: dict[str, str], message: PushMessage) -> dict[str, Any]:
        payload: dict[str, Any] = {
            **target,
            "notification": {"title": message.title, "body": message.body},
        }
        data = message.data()
        if data:
            payload["data"] = data
        return {"message": payload}

    async def send_push_notification(
        self,
        transaction_id: str,
        user_ps_id: str,
        device_tokens: list[str],
        message: PushMessage,
    ) -> PushResult:
        """
        Send a push message to the devices of one recipient.

        Only the first max_devices_per_push tokens are used; the rest are
        neither contacted nor reported. Each token is sent independently and
        is not retried.

        Args:
            transaction_id: Request transaction id
            user_ps_id: Recipient PS id
            device_tokens: Recipient tokens, newest first
            message: Message to send

        Returns:
            Success and failed tokens

        Raises:
            NoDeviceTokensException: If no tokens were given
        """
        log = logger.bind(transaction_id=transaction_id, user_ps_id=user_ps_id)

        if not device_tokens:
            raise NoDeviceTokensException("No user tokens available to send push notifications")

        tokens = device_tokens[: self.config.max_devices_per_push]
        headers = await self._auth_headers(transaction_id)

        async with self._client() as client:

            async def post_to_token(token: str) -> str:
                response = await client.post(
                    self.config.messages_endpoint,
                    json=self._build_message({"token": token}, message),
                    headers=headers,
                )
                response.raise_for_status()
                return response.json().get("name", "")

            outcome = await settle_all(tokens, post_to_token)

        result = PushResult(
            success_tokens=[item.item for item in outcome.succeeded],
            failed_tokens=[item.item for item in outcome.failed],
        )

        if result.failed_tokens:
            log.warning(
                "push_notification_tokens_failed",
                failed_count=len(result.failed_tokens),
                reasons=[str(item.error) for item in outcome.failed],
            )

        log.info(
            "push_notification_sent",
            success_count=len(result.success_tokens),
            failure_count=len(result.failed_tokens),
        )
        return result

    async def send_push_notification_by_topic(
        self,
        transaction_id: str,
        topic_name: str,
        message: PushMessage,
    ) -> str:
        """
        Send one push message to a topic.

        Subscriber fan-out is left to FCM.

        Raises:
            DeliveryException: If FCM rejects the message or cannot be reached
        """
        log = logger.bind(transaction_id=transaction_id, topic=topic_name)
        log.info("topic_push_initiated")

        headers = await self._auth_headers(transaction_id)
        payload = self._build_message({"topic": topic_name}, message)
        payload["message"]["webpush"] = {
            "fcmOptions": {"link": f"{self.config.frontend_url}/chat"},
        }

        try:
            async with self._client() as client:
                response = await client.post(
                    self.config.messages_endpoint,
                    json=payload,
                    headers=headers,
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            log.error("topic_push_failed", error=str(e))
            log.debug("topic_push_failed_payload", payload=payload)
            raise DeliveryException(f"Push to topic {topic_name} failed") from e

        log.info("topic_push_sent", name=response.json().get("name"))
        return topic_name

    async def subscribe_to_topic(self, transaction_id: str, token: str, topic: str) -> None:
        """Subscribe a device token to a topic."""
        await self._manage_topic(
            transaction_id, "subscribe", messaging.subscribe_to_topic, token, topic
        )

    async def unsubscribe_from_topic(self, transaction_id: str, token: str, topic: str) -> None:
        """Unsubscribe a device token from a topic."""
        await self._manage_topic(
            transaction_id, "unsubscribe", messaging.unsubscribe_from_topic, token, topic
        )

    async def _manage_topic(
        self, transaction_id: str, action: str, operation, token: str, topic: str
    ) -> None:
        log = logger.bind(transaction_id=transaction_id, topic=topic, action=action)
        log.info("topic_management_initiated")

        try:
            response = await asyncio.to_thread(operation, [token], topic)
        except Exception as e:
            log.error("topic_management_failed", error=str(e))
            raise

        if response.failure_count:
            reason = response.errors[0].reason if response.errors else "unknown"
            log.error("topic_management_failed", error=reason)
            raise DeliveryException(f"Topic {topic} update failed: {reason}")

        log.info("topic_management_successful")
