"""SQLite database backend implementation.

This module provides the SQLite adapter, using the stdlib sqlite3 module
with asyncio run_in_executor for async operation.

Features:
    - Blocking driver calls run in the default thread pool
    - busy_timeout and foreign_keys PRAGMAs from GatewaySettings
    - Optional parent directory creation for new database files
    - file: URIs opened in URI mode (e.g. "file:app.db?mode=ro")
    - Generated key read from cursor.lastrowid
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from ..config import GatewaySettings
from .backend import DatabaseBackendBase, DatabaseEngine, QueryResult
from .normalizer import rows_to_dicts

logger = logging.getLogger(__name__)


class SqliteBackend(DatabaseBackendBase):
    """SQLite backend using stdlib sqlite3 with async executor.

    This backend wraps the synchronous sqlite3 module in asyncio's
    run_in_executor so it fits the same awaitable contract as the
    natively async server backends.

    Example:
        backend = SqliteBackend()
        async with backend.session("/data/app.db"):
            result = await backend.query("SELECT * FROM users")
    """

    engine = DatabaseEngine.SQLITE

    def __init__(self, settings: GatewaySettings | None = None) -> None:
        """Initialize SQLite backend."""
        super().__init__(settings)
        self._conn: sqlite3.Connection | None = None

    async def connect(self, descriptor: str) -> None:
        """Connect to SQLite database.

        Creates the database file if it does not exist. Parent directories
        are only created when sqlite_create_dirs is enabled.

        Args:
            descriptor: Database file path, ":memory:", or a file: URI
        """
        settings = self._settings

        def _connect() -> sqlite3.Connection:
            path = descriptor
            if not path:
                raise ValueError("SQLite requires a database file path")

            is_uri = path.startswith("file:")
            if settings.sqlite_create_dirs and not is_uri and not path.startswith(":"):
                Path(path).parent.mkdir(parents=True, exist_ok=True)

            # Connect with check_same_thread=False: calls hop between executor threads
            conn = sqlite3.connect(path, check_same_thread=False, uri=is_uri)
            conn.row_factory = sqlite3.Row

            for pragma, value in settings.sqlite_pragmas.items():
                try:
                    conn.execute(f"PRAGMA {pragma}={value}")
                except sqlite3.Error as e:
                    logger.warning(f"Failed to set PRAGMA {pragma}={value}: {e}")

            return conn

        loop = asyncio.get_event_loop()
        self._conn = await loop.run_in_executor(None, _connect)
        logger.debug("Connected to SQLite database")

    async def disconnect(self) -> None:
        """Close SQLite connection.

        Safe to call multiple times or if not connected.
        """
        if self._conn is None:
            return

        conn, self._conn = self._conn, None

        def _close() -> None:
            try:
                conn.close()
            except sqlite3.Error as e:
                logger.warning(f"Error closing SQLite connection: {e}")

        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, _close)
        logger.debug("Disconnected from SQLite database")

    async def query(self, sql: str) -> QueryResult:
        """Execute a statement and return its rows.

        The statement is committed afterwards so write statements sent as
        raw queries persist.

        Args:
            sql: SQL statement, executed without parameters

        Returns:
            QueryResult with rows as list of dicts
        """
        conn = self._ensure_connected()

        def _query() -> QueryResult:
            cursor = conn.execute(sql)
            try:
                if cursor.description:
                    rows = rows_to_dicts(cursor.fetchall())
                    columns = [desc[0] for desc in cursor.description]
                else:
                    rows, columns = [], []
                conn.commit()
                return QueryResult(
                    rows=rows,
                    row_count=len(rows),
                    columns=columns,
                    affected_rows=max(cursor.rowcount, 0),
                )
            finally:
                cursor.close()

        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, _query)

    async def insert(
        self, sql: str, params: Sequence[Any], table: str | None = None
    ) -> QueryResult:
        """Execute a parameterized INSERT and commit it.

        Args:
            sql: INSERT statement with ? placeholders
            params: Values bound positionally

        Returns:
            QueryResult with affected_rows and last_insert_id
        """
        conn = self._ensure_connected()

        def _insert() -> QueryResult:
            cursor = conn.execute(sql, tuple(params))
            try:
                conn.commit()
                return QueryResult(
                    last_insert_id=cursor.lastrowid,
                    affected_rows=cursor.rowcount,
                )
            finally:
                cursor.close()

        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, _insert)

    @property
    def is_connected(self) -> bool:
        """Check if a connection is open."""
        return self._conn is not None

    def _ensure_connected(self) -> sqlite3.Connection:
        """Return the open connection.

        Raises:
            RuntimeError: If not connected
        """
        if self._conn is None:
            raise RuntimeError("Not connected to database. Call connect() first.")
        return self._conn
