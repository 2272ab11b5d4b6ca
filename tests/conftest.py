# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from tasklist.app import create_app
from tasklist.config import Settings
from tasklist.core.database import TaskStore


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway database file."""
    return Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'tasks.db'}", LOG_LEVEL="DEBUG")


@pytest.fixture()
def store(tmp_path: Path) -> Iterator[TaskStore]:
    store = TaskStore(f"sqlite:///{tmp_path / 'store.db'}")
    store.initialize()
    yield store
    store.close()


@pytest.fixture()
def client(settings: Settings) -> Iterator[TestClient]:
    """Client with the lifespan running, so the store and templates exist."""
    with TestClient(create_app(settings)) as client:
        yield client


@pytest.fixture()
def app_store(client: TestClient) -> TaskStore:
    """The store the running application uses."""
    return client.app.state.store
