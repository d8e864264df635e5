"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from tutorchat.database.connection import mongo_db_dependency
from tutorchat.main import app
from tutorchat.repositories.conversation_repository import ConversationRepository
from tutorchat.services.chat_service import ChatService
from tutorchat.utils.concurrency import KeyedLock


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 5, 9, 30, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def db():
    return AsyncMongoMockClient()["tutorchat_test"]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repo(db, clock) -> ConversationRepository:
    return ConversationRepository(db, clock=clock)


@pytest.fixture
def service(repo, clock) -> ChatService:
    return ChatService(repo, clock=clock, locks=KeyedLock())


@pytest.fixture
async def client(db) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""
    app.dependency_overrides[mongo_db_dependency] = lambda: db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
