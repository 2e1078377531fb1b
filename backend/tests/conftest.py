"""
Shared fixtures for the codedrop backend tests.

Every test gets its own SQLite database file under tmp_path, so tests never
share exchange records and can run against real SQL (unique keys,
conditional updates) without a PostgreSQL server.
"""

from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from app.core.config import Settings
from app.infra.database import create_db_engine, create_session_factory, init_db
from app.infra.exchange_store import ExchangeStore
from app.main import create_app

TEST_MAX_FILE_SIZE = 16 * 1024 * 1024
TEST_MAX_FILES = 5


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'codedrop.db'}"


@pytest.fixture
def engine(database_url: str) -> Iterator[Engine]:
    engine = create_db_engine(database_url)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine: Engine) -> ExchangeStore:
    return ExchangeStore(create_session_factory(engine))


@pytest.fixture
def settings(database_url: str) -> Settings:
    return Settings(
        database_url=database_url,
        max_file_size=TEST_MAX_FILE_SIZE,
        max_files=TEST_MAX_FILES,
    )


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    """Client with the lifespan running, so app.state.store is wired."""
    with TestClient(create_app(settings)) as client:
        yield client
