"""Shared test configuration and fixtures."""

import os
import tempfile
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from stockwatch.config.settings import get_settings
from stockwatch.core.models import Position
from stockwatch.storage import DeviceFingerprint, MemoryBackend, SecureStorage

FIXED_NOW = datetime(2024, 6, 12, 15, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def settings_env(monkeypatch, tmp_path):
    """Point every setting that touches disk at a temporary directory."""
    monkeypatch.setenv("ENVIRONMENT", "testing")
    monkeypatch.setenv("DATA_DIRECTORY", str(tmp_path))
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setenv("STORAGE_PATH", str(tmp_path / "store.json"))
    monkeypatch.setenv("REPORTS_DIRECTORY", str(tmp_path / "reports"))
    monkeypatch.setenv("LOG_FILE_ENABLED", "false")

    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()

    from stockwatch.ormdb.database import dispose_engine

    dispose_engine()


@pytest.fixture
def fingerprint():
    return DeviceFingerprint(
        user_agent="Mozilla/5.0 (X11; Linux x86_64)",
        language="en-US",
        screen_width=1920,
        screen_height=1080,
    )


@pytest.fixture
def memory_backend():
    return MemoryBackend()


@pytest.fixture
def secure_storage(memory_backend, fingerprint):
    return SecureStorage(memory_backend, fingerprint)


def make_position(**overrides) -> Position:
    """Position with sensible defaults; override any field by keyword."""
    fields = {
        "id": "p1",
        "symbol": "AAPL",
        "name": "Apple Inc.",
        "shares": 10.0,
        "buy_price": 100.0,
        "current_price": 100.0,
        "sector": "Technology",
    }
    fields.update(overrides)
    return Position(**fields)


@pytest.fixture
def sample_positions():
    """Three positions worth 1000 + 1500 + 500 = 3000 at current prices."""
    return [
        make_position(id="a", symbol="AAPL", shares=10, buy_price=100, current_price=100),
        make_position(
            id="m", symbol="MSFT", shares=5, buy_price=250, current_price=300, stop_loss=200
        ),
        make_position(id="x", symbol="XOM", shares=10, buy_price=60, current_price=50),
    ]


@pytest.fixture
def isolated_db():
    """Create an isolated database for testing."""
    temp_fd, temp_path = tempfile.mkstemp(suffix=".db")
    db_url = f"sqlite:///{temp_path}"

    engine = create_engine(db_url, connect_args={"check_same_thread": False})
    SessionLocal = sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
    )

    from stockwatch.ormdb import models  # noqa: F401
    from stockwatch.ormdb.database import Base

    Base.metadata.create_all(bind=engine)

    try:
        yield {
            "engine": engine,
            "session_factory": SessionLocal,
            "db_url": db_url,
            "db_path": temp_path,
        }
    finally:
        engine.dispose()
        os.close(temp_fd)
        os.unlink(temp_path)


@pytest.fixture
def db_session(isolated_db):
    session = isolated_db["session_factory"]()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(isolated_db):
    """API test client whose requests use the isolated database."""
    from fastapi.testclient import TestClient

    from stockwatch.ormdb.database import get_session
    from stockwatch.webapi.app import create_app

    def override_get_session():
        session = isolated_db["session_factory"]()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    with patch("stockwatch.webapi.app.create_tables"):
        app = create_app()
        app.dependency_overrides[get_session] = override_get_session
        with TestClient(app, raise_server_exceptions=False) as test_client:
            yield test_client


@pytest.fixture
def position_factory():
    return make_position
