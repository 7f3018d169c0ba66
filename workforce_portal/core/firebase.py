"""Firebase Admin SDK initialization and FCM credential exchange."""

import asyncio
from typing import Any, Protocol

import firebase_admin
import google.auth.transport.requests
from firebase_admin import credentials
from google.oauth2 import service_account
from structlog import get_logger

from workforce_portal.core.secrets import SecretStore, decode_service_account

logger = get_logger(__name__)

FCM_SCOPES = ["https://www.googleapis.com/auth/firebase.messaging"]

_firebase_app: firebase_admin.App | None = None


def initialize_firebase(service_account_info: dict[str, Any] | None = None) -> None:
    """
    Initialize Firebase Admin SDK.

    Args:
        service_account_info: Optional decoded service account document.

    Falls back to Application Default Credentials when no service account is
    given. Topic subscription management goes through this app.
    """
    global _firebase_app

    if _firebase_app is not None:
        logger.info("Firebase already initialized")
        return

    try:
        if service_account_info:
            logger.info("Initializing Firebase with service account from secret store")
            cred = credentials.Certificate(service_account_info)
            _firebase_app = firebase_admin.initialize_app(cred)
        else:
            _firebase_app = firebase_admin.initialize_app()
            logger.info("Firebase initialized with default credentials")

    except Exception as e:
        logger.error("Failed to initialize Firebase", error=str(e))
        raise


async def initialize_firebase_from_secret(secret_store: SecretStore, secret_name: str) -> None:
    """Initialize Firebase using the service account held in the secret store."""
    encoded = await secret_store.get_secret(secret_name)
    initialize_firebase(decode_service_account(encoded))


def get_firebase_app() -> firebase_admin.App:
    """
    Get the Firebase app instance.

    Returns:
        Firebase app instance

    Raises:
        RuntimeError: If Firebase is not initialized
    """
    if _firebase_app is None:
        raise RuntimeError("Firebase not initialized. Call initialize_firebase() first.")
    return _firebase_app


class AccessTokenProvider(Protocol):
    """Supplies short-lived bearer tokens for the FCM HTTP v1 API."""

    async def get_access_token(self, transaction_id: str) -> str: ...


class GoogleAccessTokenProvider:
    """
    Exchange the Firebase service account for an OAuth2 access token.

    A new token is requested on every call; nothing is cached between calls.
    """

    def __init__(self, secret_store: SecretStore, secret_name: str):
        self.secret_store = secret_store
        self.secret_name = secret_name

    async def get_access_token(self, transaction_id: str) -> str:
        encoded = await self.secret_store.get_secret(self.secret_name)
        service_account_info = decode_service_account(encoded)

        try:
            creds = service_account.Credentials.from_service_account_info(
                service_account_info, scopes=FCM_SCOPES
            )
            await asyncio.to_thread(creds.refresh, google.auth.transport.requests.Request())
        except Exception as e:
            logger.error(
                "fcm_access_token_failed",
                transaction_id=transaction_id,
                error=str(e),
            )
            raise

        return creds.token
