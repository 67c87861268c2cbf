"""
Shared fixtures.

Service tests run against InMemoryAccountStore. Store and API tests run
against an in-memory SQLite database shared across threads via StaticPool.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import get_settings
from app.database import Base, get_db
from app.dependencies import get_notifier
from app.main import app
from app.services.account_store import SqlAlchemyAccountStore
from app.services.auth import TokenIssuer
from app.services.sessions import AuthService
from app.services.users import UserService
from tests.fakes import FakeClock, InMemoryAccountStore, RecordingNotifier, make_settings


# =============================================================================
# Service fixtures
# =============================================================================


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryAccountStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def users(store, notifier, settings, clock):
    return UserService(store, notifier, settings, clock=clock)


@pytest.fixture
def tokens(settings):
    return TokenIssuer(settings)


@pytest.fixture
def auth(users, store, tokens, settings):
    return AuthService(users, store, tokens, settings)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sql_store(db):
    return SqlAlchemyAccountStore(db)


# =============================================================================
# API fixtures
# =============================================================================


@pytest.fixture
def client(session_factory, settings, notifier):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
