"""
Shared pytest fixtures for dbsession tests.

This module provides:
- An in-memory SQLite database with the session and lock tables
- A factory for DatabaseSessionHandler instances using the fake-table lock
- A recording handler that keeps payloads in memory
"""

from typing import Dict, List, Tuple, Union

import pytest

from dbsession.database import DatabaseManager
from dbsession.session.handler import DatabaseSessionHandler
from dbsession.session.store import SessionHandler
from dbsession.support import Config


TEST_SECRET = "test-secret"


@pytest.fixture(autouse=True)
def clean_config():
    """Drop runtime config overrides between tests."""
    Config.clear_runtime_overrides()
    yield
    Config.clear_runtime_overrides()


@pytest.fixture
async def db():
    """In-memory SQLite database with the session tables created."""
    manager = DatabaseManager("sqlite://:memory:")
    await manager.init()
    await manager.generate_schemas()
    yield manager
    await manager.close()


@pytest.fixture
def make_handler(db):
    """Factory for handlers on the test database."""

    async def factory(**options) -> DatabaseSessionHandler:
        params = {
            "security_code": TEST_SECRET,
            "lock_strategy": "fake-table",
            "lock_timeout": 2,
            "lock_poll_interval": 0.01,
        }
        params.update(options)
        return await DatabaseSessionHandler.create(db, **params)

    return factory


class RecordingHandler(SessionHandler):
    """Session handler keeping payloads in a dict and recording every call."""

    def __init__(self, payloads: Dict[str, bytes] = None):
        self.payloads: Dict[str, bytes] = payloads if payloads is not None else {}
        self.calls: List[Tuple[str, Union[str, None]]] = []

    async def open(self, save_path: str = "", session_name: str = "") -> bool:
        self.calls.append(("open", None))
        return True

    async def read(self, session_id: str) -> bytes:
        self.calls.append(("read", session_id))
        return self.payloads.get(session_id, b"")

    async def write(self, session_id: str, payload) -> bool:
        self.calls.append(("write", session_id))
        self.payloads[session_id] = payload
        return True

    async def close(self) -> bool:
        self.calls.append(("close", None))
        return True

    async def destroy(self, session_id: str) -> bool:
        self.calls.append(("destroy", session_id))
        return self.payloads.pop(session_id, None) is not None

    async def gc(self, max_lifetime: int) -> int:
        self.calls.append(("gc", None))
        return 0


@pytest.fixture
def recording_handler():
    """Recording in-memory session handler."""
    return RecordingHandler()
