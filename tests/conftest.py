import os

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENABLE_METRICS", "false")
os.environ.setdefault("LOG_FORMAT", "plain")
os.environ.setdefault("AI_GATEWAY_API_KEY", "test-key")

import json
from datetime import date
from typing import AsyncGenerator, Callable, List, Optional

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import ortprep.models  # noqa: F401
from ortprep.ai.client import AIGatewayClient
from ortprep.core.database import Base, get_db
from ortprep.core.dependencies import create_access_token, get_ai_client, get_event_bus, get_session_store
from ortprep.adaptive.sessions import SessionStore
from ortprep.gamification.events import EventBus
from ortprep.models.gamification import Profile

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_profile(db_session):
    async def _make(user_id: str = "user-1", points: int = 0, streak: int = 0,
                    last_activity_date: Optional[date] = None, name: Optional[str] = None) -> Profile:
        profile = Profile(
            id=user_id,
            name=name or user_id,
            points=points,
            level=points // 500 + 1,
            streak=streak,
            last_activity_date=last_activity_date
        )
        db_session.add(profile)
        await db_session.commit()
        return profile
    return _make


class GatewayStub:
    """Scripted chat-completion gateway for httpx.MockTransport."""

    def __init__(self):
        self.replies: List[httpx.Response] = []
        self.requests: List[dict] = []

    def reply(self, content: str):
        self.replies.append(httpx.Response(200, json={"choices": [{"message": {"content": content}}]}))

    def fail(self, status_code: int, body: str = "error"):
        self.replies.append(httpx.Response(status_code, text=body))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append({
            "headers": dict(request.headers),
            "body": json.loads(request.content),
        })
        if not self.replies:
            raise AssertionError("unexpected gateway call")
        return self.replies.pop(0)


@pytest.fixture
def gateway() -> GatewayStub:
    return GatewayStub()


@pytest_asyncio.fixture
async def ai_client(gateway):
    async with httpx.AsyncClient(transport=httpx.MockTransport(gateway)) as http_client:
        yield AIGatewayClient(http_client, api_key="test-key", url="https://gateway.test/v1/chat/completions")


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def auth_headers() -> Callable[..., dict]:
    def _headers(user_id: str = "user-1", role: str = "student") -> dict:
        token = create_access_token({"sub": user_id, "role": role})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest_asyncio.fixture
async def client(session_factory, ai_client, event_bus):
    from ortprep.main import app

    async def _get_db():
        async with session_factory() as session:
            yield session

    store = SessionStore()
    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_ai_client] = lambda: ai_client
    app.dependency_overrides[get_event_bus] = lambda: event_bus
    app.dependency_overrides[get_session_store] = lambda: store

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client

    app.dependency_overrides.clear()
