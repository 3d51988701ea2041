"""
Shared fixtures: a temporary SQLite store and in-memory fakes for the
store and the sync server.
"""

import pytest
import pytest_asyncio

from hisab_sync.db import SQLiteLocalStore
from tests.fakes import FakeServer, FakeStore


@pytest_asyncio.fixture
async def store(tmp_path):
    db = SQLiteLocalStore(str(tmp_path / "offline.db"))
    await db.initialize()
    yield db
    await db.close()


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def server():
    return FakeServer()
