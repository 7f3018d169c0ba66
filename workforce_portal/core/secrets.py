"""Secret store access for provider credentials."""

import base64
import json
import os
from typing import Any, Protocol

import structlog

from workforce_portal.core.exceptions import AppException

logger = structlog.get_logger(__name__)


class SecretStore(Protocol):
    """Anything able to resolve a secret by name."""

    async def get_secret(self, name: str) -> str: ...


class EnvironmentSecretStore:
    """Secret store backed by process environment variables."""

    def __init__(self, environ: dict[str, str] | None = None):
        self._environ = environ if environ is not None else os.environ

    async def get_secret(self, name: str) -> str:
        value = self._environ.get(name)
        if not value:
            logger.error("secret_not_found", secret_name=name)
            raise AppException(f"Secret {name} is not configured")
        return value


def decode_service_account(encoded: str) -> dict[str, Any]:
    """Decode a base64 encoded service account JSON document."""
    try:
        return json.loads(base64.b64decode(encoded).decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as e:
        raise AppException(f"Invalid service account secret: {e!s}")
