import os
from datetime import datetime, timezone

import pytest

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from fastapi.testclient import TestClient  # noqa: E402

from countie.db import SQLiteRepository  # noqa: E402
from countie.main import app  # noqa: E402
from countie.repositories import InMemoryRepository, get_repository  # noqa: E402


def parse_ts(value: str) -> datetime:
    """Parse an API timestamp ("...Z" or "+00:00") into an aware datetime."""
    return datetime.fromisoformat(value.replace("Z", "+00:00")).astimezone(timezone.utc)


@pytest.fixture(params=["memory", "sqlite"])
def repo(request, tmp_path):
    if request.param == "sqlite":
        return SQLiteRepository(str(tmp_path / "countdowns.db"))
    return InMemoryRepository()


@pytest.fixture
def memory_repo():
    return InMemoryRepository()


@pytest.fixture
def client(memory_repo):
    app.dependency_overrides[get_repository] = lambda: memory_repo
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
