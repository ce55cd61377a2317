"""Shared test configuration for sql-mcp tests.

Configures test environment including:
- Temporary SQLite databases with a seeded schema
- Mock MCP context for calling tools directly
- Recording adapters that keep hold of every native connection they open
- A throwaway PostgreSQL server (pgserver) unless SQL_MCP_TEST_POSTGRES_DSN is set
- Connection string for optional MySQL integration tests
"""

import os
import sqlite3
from collections.abc import Callable, Iterator
from contextlib import closing
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from sql_mcp.config import GatewaySettings
from sql_mcp.context import AppContext
from sql_mcp.sql import DEFAULT_BACKENDS, DatabaseEngine, OperationDispatcher, SqliteBackend

# External servers; PostgreSQL falls back to a local pgserver instance
POSTGRES_DSN = os.getenv("SQL_MCP_TEST_POSTGRES_DSN")
MYSQL_URL = os.getenv("SQL_MCP_TEST_MYSQL_URL")

SQLITE_SCHEMA = """
CREATE TABLE items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    value INTEGER,
    price REAL,
    payload BLOB,
    note TEXT
);
CREATE TABLE tags (
    name TEXT PRIMARY KEY,
    label TEXT
) WITHOUT ROWID;
"""


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """SQLite database file with the items/tags schema."""
    path = tmp_path / "test.db"
    with closing(sqlite3.connect(path)) as conn:
        conn.executescript(SQLITE_SCHEMA)
    return str(path)


class RecordingSqliteBackend(SqliteBackend):
    """SqliteBackend that records every connection it opens.

    Lets tests check that connections are closed after the call returns:
    executing on a closed sqlite3 connection raises ProgrammingError.
    """

    opened: list[sqlite3.Connection] = []

    async def connect(self, descriptor: str) -> None:
        await super().connect(descriptor)
        assert self._conn is not None
        self.opened.append(self._conn)


def is_closed(conn: sqlite3.Connection) -> bool:
    try:
        conn.execute("SELECT 1")
    except sqlite3.ProgrammingError:
        return True
    return False


@pytest.fixture
def recorded_connections() -> list[sqlite3.Connection]:
    """Fresh connection log for RecordingSqliteBackend."""
    RecordingSqliteBackend.opened = []
    return RecordingSqliteBackend.opened


@pytest.fixture
def recording_dispatcher(recorded_connections: list[sqlite3.Connection]) -> OperationDispatcher:
    """Dispatcher whose SQLite adapter records opened connections."""
    backends: dict[DatabaseEngine, Callable[[GatewaySettings], Any]] = dict(DEFAULT_BACKENDS)
    backends[DatabaseEngine.SQLITE] = RecordingSqliteBackend
    return OperationDispatcher(GatewaySettings(), backends)


@pytest.fixture
def mock_context() -> MagicMock:
    """Create mock MCP context with AppContext for unit testing MCP tools.

    Returns:
        Mock context object with request_context.lifespan_context structure
    """
    settings = GatewaySettings()
    app_context = AppContext(settings=settings, dispatcher=OperationDispatcher(settings))

    mock_ctx = MagicMock()
    mock_ctx.request_context.lifespan_context = app_context

    return mock_ctx


@pytest.fixture(scope="session")
def postgres_dsn(tmp_path_factory: pytest.TempPathFactory) -> Iterator[str]:
    """DSN of a PostgreSQL server for the whole test session.

    Uses SQL_MCP_TEST_POSTGRES_DSN when set, otherwise starts a throwaway
    server from the pgserver package in a temporary data directory.
    """
    if POSTGRES_DSN:
        yield POSTGRES_DSN
        return

    pgserver = pytest.importorskip("pgserver")
    with pgserver.get_server(tmp_path_factory.mktemp("pgdata"), cleanup_mode="stop") as server:
        yield server.get_uri()
