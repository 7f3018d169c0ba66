import json
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import httpx
import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Load environment variables from .env file
load_dotenv()

from workforce_portal.config import DeliveryConfig
from workforce_portal.core.redis_client import CacheManager
from workforce_portal.database import get_db
from workforce_portal.dependencies import get_cache_manager, get_notification_service
from workforce_portal.main import app
from workforce_portal.models import branches, employees, metadata, push_tokens
from workforce_portal.services.notification_service import NotificationService
from workforce_portal.services.push_notification_service import PushNotificationService

# In-memory SQLite shared across the session's connections
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class StubTokenProvider:
    """Access token provider that never talks to Google."""

    def __init__(self, token: str = "test-access-token"):
        self.token = token
        self.calls = 0

    async def get_access_token(self, transaction_id: str) -> str:
        self.calls += 1
        return self.token


class FakeFCM:
    """In-process stand-in for the FCM HTTP v1 send endpoint."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.failing_tokens: set[str] = set()
        self.timeout_tokens: set[str] = set()
        self.failing_topics: set[str] = set()

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        message = json.loads(request.content)["message"]
        token = message.get("token")
        topic = message.get("topic")

        if token in self.timeout_tokens:
            raise httpx.ReadTimeout("Timed out", request=request)
        if token in self.failing_tokens or topic in self.failing_topics:
            return httpx.Response(
                404,
                json={"error": {"status": "NOT_FOUND", "message": "Entity not found."}},
            )
        return httpx.Response(200, json={"name": "projects/test-project/messages/0:1"})

    @property
    def messages(self) -> list[dict]:
        return [json.loads(request.content)["message"] for request in self.requests]

    @property
    def sent_tokens(self) -> list[str]:
        return [message["token"] for message in self.messages if "token" in message]

    @property
    def sent_topics(self) -> list[str]:
        return [message["topic"] for message in self.messages if "topic" in message]


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on a fresh in-memory database."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await test_engine.dispose()


@pytest.fixture
def delivery_config() -> DeliveryConfig:
    """Delivery config with no pause between batches."""
    return DeliveryConfig(
        batch_delay_seconds=0,
        fcm_endpoint="https://fcm.test/v1/projects",
        fcm_project_id="test-project",
        frontend_url="https://portal.test",
    )


@pytest.fixture
def fake_fcm() -> FakeFCM:
    return FakeFCM()


@pytest.fixture
def token_provider() -> StubTokenProvider:
    return StubTokenProvider()


@pytest.fixture
def push_service(
    delivery_config: DeliveryConfig,
    token_provider: StubTokenProvider,
    fake_fcm: FakeFCM,
) -> PushNotificationService:
    return PushNotificationService(
        delivery_config,
        token_provider,
        transport=httpx.MockTransport(fake_fcm.handler),
    )


@pytest.fixture
def notification_service(
    delivery_config: DeliveryConfig,
    push_service: PushNotificationService,
) -> NotificationService:
    return NotificationService(delivery_config, push_service)


@pytest.fixture
def mock_redis() -> MagicMock:
    return MagicMock()


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    notification_service: NotificationService,
    mock_redis: MagicMock,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_service] = lambda: notification_service
    app.dependency_overrides[get_cache_manager] = lambda: CacheManager(mock_redis)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def seed_employee(db_session: AsyncSession):
    """
    Insert an employee with device tokens.

    Tokens are registered in the given order, so the last one is the newest.
    """

    async def _seed(ps_id: str, tokens: list[str] | None = None, display_name: str | None = None):
        await db_session.execute(
            insert(employees).values(ps_id=ps_id, display_name=display_name or f"Employee {ps_id}")
        )
        registered_at = datetime(2026, 1, 1, tzinfo=UTC)
        for index, token in enumerate(tokens or []):
            await db_session.execute(
                insert(push_tokens).values(
                    employee_ps_id=ps_id,
                    device_token=token,
                    platform="android",
                    is_active=True,
                    created_at=registered_at + timedelta(minutes=index),
                )
            )
        await db_session.commit()
        return ps_id

    return _seed


@pytest.fixture
def seed_branch(db_session: AsyncSession):
    """Insert a branch."""

    async def _seed(branch_id: str, division_id: str = "D1", province_code: str = "ON"):
        await db_session.execute(
            insert(branches).values(
                branch_id=branch_id,
                branch_name=f"Branch {branch_id}",
                division_id=division_id,
                province_code=province_code,
            )
        )
        await db_session.commit()
        return branch_id

    return _seed


@pytest.fixture
def identity_headers() -> dict:
    """Gateway identity headers for an employee of branch B1."""
    return {
        "X-User-Ps-Id": "P100",
        "X-User-Display-Name": "Jamie Rivera",
        "X-User-Branch-Ids": "B1",
        "X-User-Division-Ids": "D1",
        "X-User-Provincial-Codes": "ON",
    }
