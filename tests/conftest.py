"""
Test configuration and fixtures for the MaxMove waiting list API.

Every test gets its own SQLite database file, an in-memory rate limiter and
the log mailer, so nothing leaves the process and tests stay isolated.
"""

import os
from typing import Generator

from dotenv import load_dotenv

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

load_dotenv()

os.environ["ENVIRONMENT"] = "test"
os.environ["MAIL_MAILER"] = "log"
os.environ["FORCE_IN_MEMORY_RATE_LIMITER"] = "true"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_waitlist.db")

from app.platform.config import Settings  # noqa: E402


@pytest.fixture
def make_settings(tmp_path):
    def _make(**overrides) -> Settings:
        values = {
            "ENVIRONMENT": "test",
            "DATABASE_URL": f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
            "AUTO_CREATE_TABLES": True,
            "FORCE_IN_MEMORY_RATE_LIMITER": True,
            "MAIL_MAILER": "log",
            "JWT_SECRET_KEY": "test-secret",
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def test_app(make_settings):
    """Create FastAPI test application."""
    from app.main import create_app

    return create_app(make_settings())


@pytest.fixture(scope="function")
def client(test_app) -> Generator[TestClient, None, None]:
    """
    Test client with the application lifespan running, so app.state holds
    the database, rate limiter and notifier.
    """
    with TestClient(test_app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def db_session(tmp_path):
    """AsyncSession on a fresh SQLite database with the schema created."""
    from app.platform.db.session import create_engine_and_sessionmaker, create_tables

    engine, session_factory = create_engine_and_sessionmaker(
        f"sqlite+aiosqlite:///{tmp_path / 'store.db'}"
    )
    await create_tables(engine)

    async with session_factory() as session:
        yield session

    await engine.dispose()
