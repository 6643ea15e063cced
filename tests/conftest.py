"""Pytest configuration and fixtures for the wishlist assistant test suite.

Provides:
- A fresh SQLite database (aiosqlite) per test, with all tables created
- Mock authentication (caller dependency bypass)
- Disabled rate limiting
- Factory fixtures for Category and Item
- A fake streaming chat model for dispatcher and route tests
"""

import json
import uuid
from collections.abc import AsyncGenerator, AsyncIterator, Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from langchain_core.messages import AIMessageChunk
from sqlalchemy.ext.asyncio import AsyncSession

from wishlist.core.auth import Caller, require_authenticated_caller
from wishlist.core.config import Settings
from wishlist.core.database import Database, get_async_session
from wishlist.core.rate_limit import limiter
from wishlist.main import app
from wishlist.models.action import Action
from wishlist.models.base import Base
from wishlist.models.category import Category, CategoryType
from wishlist.models.item import Item, ItemStatus

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
TEST_USER_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")
OTHER_USER_ID = uuid.UUID("00000000-0000-4000-8000-000000000002")
TEST_USER_EMAIL = "test@example.com"
TEST_JWT_SECRET = "test-secret-for-hs256-tokens-0123456789"

# ---------------------------------------------------------------------------
# Disable rate limiting globally for tests
# ---------------------------------------------------------------------------
limiter.enabled = False


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """An open Database backed by a throwaway SQLite file, schema created."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'wishlist_test.db'}")
    await db.open()
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db
    await db.close()


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Session for test setup (factory fixtures) and direct service tests."""
    async with database.session() as session:
        yield session


@pytest.fixture
def test_settings() -> Settings:
    """Settings with fixed thresholds, independent of the environment."""
    return Settings(
        openai_api_key="sk-test",
        jwt_secret=TEST_JWT_SECRET,
        duplicate_threshold=0.8,
        match_threshold=0.6,
        default_query_limit=50,
    )


# ---------------------------------------------------------------------------
# Auth mock
# ---------------------------------------------------------------------------


@pytest.fixture
def caller() -> Caller:
    """The default authenticated caller."""
    return Caller(id=TEST_USER_ID, email=TEST_USER_EMAIL)


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(database: Database, caller: Caller) -> AsyncGenerator[AsyncClient, None]:
    """Authenticated async test client backed by the test database."""

    async def _override_session() -> AsyncGenerator[AsyncSession, None]:
        async with database.session() as s:
            yield s

    async def _override_caller() -> Caller:
        return caller

    original_database = app.state.database
    app.state.database = database
    app.dependency_overrides[get_async_session] = _override_session
    app.dependency_overrides[require_authenticated_caller] = _override_caller

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.database = original_database


@pytest_asyncio.fixture
async def unauthed_client(database: Database) -> AsyncGenerator[AsyncClient, None]:
    """Async test client with the test database but NO auth bypass."""
    original_database = app.state.database
    app.state.database = database

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.database = original_database


# ---------------------------------------------------------------------------
# Model Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def category_factory(db_session: AsyncSession) -> Callable[..., Any]:
    """Factory that creates Category rows."""

    async def _create(
        *,
        name: str = "Movies",
        display_order: int = 0,
        type: CategoryType = CategoryType.DEFAULT,  # noqa: A002
    ) -> Category:
        category = Category(name=name, display_order=display_order, type=type)
        db_session.add(category)
        await db_session.commit()
        await db_session.refresh(category)
        return category

    return _create


@pytest.fixture
def action_factory(db_session: AsyncSession) -> Callable[..., Any]:
    """Factory that creates Action rows."""

    async def _create(*, name: str = "watch") -> Action:
        action = Action(name=name)
        db_session.add(action)
        await db_session.commit()
        await db_session.refresh(action)
        return action

    return _create


@pytest.fixture
def item_factory(db_session: AsyncSession) -> Callable[..., Any]:
    """Factory that creates Item rows (owned by the test user unless told otherwise)."""

    async def _create(
        *,
        category_id: uuid.UUID,
        title: str = "Test Item",
        user_id: uuid.UUID = TEST_USER_ID,
        status: ItemStatus = ItemStatus.TODO,
        description: str | None = None,
        location: str | None = None,
    ) -> Item:
        item = Item(
            user_id=user_id,
            category_id=category_id,
            title=title,
            status=status,
            description=description,
            location=location,
        )
        db_session.add(item)
        await db_session.commit()
        await db_session.refresh(item)
        return item

    return _create


@pytest.fixture
async def movies(category_factory: Callable[..., Any]) -> Category:
    return await category_factory(name="Movies", display_order=1)


@pytest.fixture
async def places(category_factory: Callable[..., Any]) -> Category:
    return await category_factory(name="Places", display_order=2)


# ---------------------------------------------------------------------------
# Fake chat model
# ---------------------------------------------------------------------------


def text_chunks(*parts: str) -> list[AIMessageChunk]:
    """Streamed text, one chunk per part."""
    return [AIMessageChunk(content=part) for part in parts]


def tool_call_chunk(name: str, args: dict[str, Any], call_id: str, index: int = 0) -> AIMessageChunk:
    """A single chunk carrying one complete tool call."""
    return AIMessageChunk(
        content="",
        tool_call_chunks=[
            {"name": name, "args": json.dumps(args), "id": call_id, "index": index, "type": "tool_call_chunk"}
        ],
    )


def fake_chat_model(chunks: list[AIMessageChunk], error: Exception | None = None) -> MagicMock:
    """A ChatOpenAI stand-in whose bound model streams ``chunks`` (then raises ``error``)."""

    async def _astream(_messages: Any, *args: Any, **kwargs: Any) -> AsyncIterator[AIMessageChunk]:
        for chunk in chunks:
            yield chunk
        if error is not None:
            raise error

    llm = MagicMock()
    llm.bind_tools.return_value.astream = _astream
    return llm
