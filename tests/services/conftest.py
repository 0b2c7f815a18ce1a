"""Service test fixtures — in-memory registry, async SQLite DB, FastAPI test client.

Invariants:
    - Every test gets fresh in-memory backends and a fresh in-memory SQLite database
    - get_db dependency overridden to use the test DB session factory
    - Registry settings pinned (deposit 10, name limit 8) regardless of environment
    - Event log and transition lock are per-test

Design Decisions:
    - SQLite in-memory: fast, no external dependency, FOR UPDATE is a no-op there
    - registry_config is a mutable dict read by the providers: tests change the
      deposit mid-test to check stored tags keep their original deposit
"""

import asyncio

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from tag_registry.api.dependencies import get_event_log, get_transition_lock
from tag_registry.config import Settings, get_settings
from tag_registry.db.base import Base
from tag_registry.infrastructure.database import get_db, DatabaseSessionManager
from tag_registry.infrastructure.event_log import EventLog
from tag_registry.infrastructure.memory_backends import (
    InMemoryIndexCounter, InMemoryJournal, InMemoryLedger, InMemoryTagStore,
    InMemoryTransaction,
)
from tag_registry.services.tag_registry import TagRegistry
import tag_registry.infrastructure.database as db_module
import tag_registry.models  # noqa: F401
from tag_registry.main import app

DEPOSIT = 10
NAME_LIMIT = 8


# ─── In-memory registry ──────────────────────────────────────────

@pytest.fixture
def registry_config():
    return {"deposit": DEPOSIT, "name_limit": NAME_LIMIT}


@pytest.fixture
def ledger():
    return InMemoryLedger({"alice": 100, "bob": 100})


@pytest.fixture
def journal():
    return InMemoryJournal()


@pytest.fixture
def store(journal):
    return InMemoryTagStore(journal)


@pytest.fixture
def counter(journal):
    return InMemoryIndexCounter(journal)


@pytest.fixture
def events():
    return EventLog()


@pytest.fixture
def make_registry(ledger, store, counter, journal, events, registry_config):
    """Build a registry over the shared fixtures, with any backend swapped out."""
    def _make(**overrides) -> TagRegistry:
        parts = {
            "ledger": ledger,
            "store": store,
            "counter": counter,
            "transaction": InMemoryTransaction(journal),
            "events": events,
            "deposit_amount": lambda: registry_config["deposit"],
            "name_limit": lambda: registry_config["name_limit"],
        }
        parts.update(overrides)
        return TagRegistry(**parts)
    return _make


@pytest.fixture
def registry(make_registry):
    return make_registry()


# ─── SQL database ────────────────────────────────────────────────

@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


# ─── HTTP client ─────────────────────────────────────────────────

@pytest.fixture
def test_settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        tag_deposit_amount=DEPOSIT,
        tag_name_limit=NAME_LIMIT,
    )


@pytest.fixture
async def client(test_engine, test_session_factory, test_settings):
    """FastAPI test client with DB, settings, lock, and event log overridden."""
    manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    manager.engine = test_engine
    manager._session_factory = test_session_factory

    async def override_get_db():
        async with manager.session() as session:
            yield session

    lock = asyncio.Lock()
    event_log = EventLog()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_transition_lock] = lambda: lock
    app.dependency_overrides[get_event_log] = lambda: event_log

    original_manager = db_module.db_manager
    db_module.db_manager = manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
async def funded(client):
    """Fund alice with 100 and bob with 100 through the accounts API."""
    for account in ("alice", "bob"):
        res = await client.put(
            f"/api/v1/accounts/{account}/balance", json={"free": 100},
        )
        assert res.status_code == 200
    return client
