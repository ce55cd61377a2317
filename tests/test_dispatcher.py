"""Tests for OperationDispatcher.

Covers dbType routing, the per-call connection lifecycle, result
normalization and the mapping of every failure onto an ExecutionOutcome.
SQLite is used end to end; PostgreSQL and MySQL are only exercised on
their connection failure paths, which need no server.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
from conftest import RecordingSqliteBackend, is_closed

from sql_mcp.config import GatewaySettings
from sql_mcp.sql import (
    DatabaseBackendBase,
    DatabaseEngine,
    ErrorKind,
    OperationDispatcher,
    OutcomeStatus,
    QueryResult,
    RawQuery,
    StructuredInsert,
)


class FakeBackend(DatabaseBackendBase):
    """In-memory adapter that records the calls made on it."""

    engine = DatabaseEngine.SQLITE
    instances: list[FakeBackend] = []

    def __init__(self, settings: GatewaySettings | None = None) -> None:
        super().__init__(settings)
        self.calls: list[str] = []
        self._open = False
        FakeBackend.instances.append(self)

    async def connect(self, descriptor: str) -> None:
        self.calls.append("connect")
        self._open = True

    async def disconnect(self) -> None:
        if self._open:
            self.calls.append("disconnect")
        self._open = False

    async def query(self, sql: str) -> QueryResult:
        self.calls.append("query")
        if sql == "fail":
            raise OSError("socket reset")
        return QueryResult(rows=[{"sql": sql}], row_count=1, columns=["sql"])

    async def insert(
        self, sql: str, params: Sequence[Any], table: str | None = None
    ) -> QueryResult:
        self.calls.append(f"insert:{table}")
        return QueryResult(last_insert_id=42, affected_rows=1)

    @property
    def is_connected(self) -> bool:
        return self._open


class ExplodingBackend(FakeBackend):
    """Adapter whose statement building fails with a non-gateway exception."""

    def build_insert(self, operation: StructuredInsert) -> tuple[str, list[Any]]:
        raise RuntimeError("builder exploded")


@pytest.fixture
def fake_dispatcher() -> OperationDispatcher:
    FakeBackend.instances = []
    return OperationDispatcher(GatewaySettings(), {DatabaseEngine.SQLITE: FakeBackend})


# ============================================================================
# Routing Tests
# ============================================================================


class TestRouting:
    """Tests for dbType resolution."""

    async def test_unsupported_type(self) -> None:
        """Unknown dbType fails without constructing any adapter."""
        factory = MagicMock()
        dispatcher = OperationDispatcher(GatewaySettings(), {DatabaseEngine.SQLITE: factory})

        outcome = await dispatcher.execute("oracle", "whatever", RawQuery("SELECT 1"))

        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.error == "unsupported database type"
        assert outcome.error_kind == ErrorKind.UNSUPPORTED_BACKEND
        factory.assert_not_called()

    async def test_unregistered_engine(self) -> None:
        """A known engine without a registered adapter is also unsupported."""
        dispatcher = OperationDispatcher(GatewaySettings(), {})

        outcome = await dispatcher.execute("sqlite", ":memory:", RawQuery("SELECT 1"))

        assert outcome.error_kind == ErrorKind.UNSUPPORTED_BACKEND

    async def test_tag_is_case_sensitive(self, fake_dispatcher: OperationDispatcher) -> None:
        outcome = await fake_dispatcher.execute("SQLite", ":memory:", RawQuery("SELECT 1"))

        assert outcome.error_kind == ErrorKind.UNSUPPORTED_BACKEND
        assert FakeBackend.instances == []

    async def test_engine_enum_accepted(self, fake_dispatcher: OperationDispatcher) -> None:
        outcome = await fake_dispatcher.execute(
            DatabaseEngine.SQLITE, ":memory:", RawQuery("SELECT 1")
        )

        assert outcome.is_success

    def test_supported_engines(self) -> None:
        assert set(OperationDispatcher().supported_engines) == set(DatabaseEngine)


# ============================================================================
# Lifecycle Tests
# ============================================================================


class TestLifecycle:
    """Tests for the connect/execute/release sequence per call."""

    async def test_fresh_backend_per_call(self, fake_dispatcher: OperationDispatcher) -> None:
        await fake_dispatcher.execute("sqlite", "a", RawQuery("SELECT 1"))
        await fake_dispatcher.execute("sqlite", "b", RawQuery("SELECT 2"))

        assert len(FakeBackend.instances) == 2
        for backend in FakeBackend.instances:
            assert backend.calls == ["connect", "query", "disconnect"]

    async def test_insert_sequence(self, fake_dispatcher: OperationDispatcher) -> None:
        outcome = await fake_dispatcher.execute("sqlite", "a", StructuredInsert("t", {"x": 1}))

        assert outcome.payload == 42
        assert FakeBackend.instances[0].calls == ["connect", "insert:t", "disconnect"]

    async def test_driver_error_still_disconnects(
        self, fake_dispatcher: OperationDispatcher
    ) -> None:
        """Driver exceptions become STATEMENT failures after the connection is released."""
        outcome = await fake_dispatcher.execute("sqlite", "a", RawQuery("fail"))

        assert outcome.error_kind == ErrorKind.STATEMENT
        assert outcome.error == "socket reset"
        assert FakeBackend.instances[0].calls == ["connect", "query", "disconnect"]

    async def test_empty_fields_never_connect(self, fake_dispatcher: OperationDispatcher) -> None:
        outcome = await fake_dispatcher.execute("sqlite", "a", StructuredInsert("t", {}))

        assert outcome.error_kind == ErrorKind.STATEMENT
        assert FakeBackend.instances[0].calls == []

    async def test_unexpected_exception_reported(self) -> None:
        """Exceptions outside the gateway hierarchy are reported, not raised."""
        dispatcher = OperationDispatcher(GatewaySettings(), {DatabaseEngine.SQLITE: ExplodingBackend})

        outcome = await dispatcher.execute("sqlite", "a", StructuredInsert("t", {"x": 1}))

        assert outcome.is_failure
        assert outcome.error_kind == ErrorKind.STATEMENT
        assert outcome.error == "builder exploded"

    async def test_metadata(self, fake_dispatcher: OperationDispatcher) -> None:
        outcome = await fake_dispatcher.execute("sqlite", "a", RawQuery("SELECT 1"))

        assert outcome.metadata["engine"] == "sqlite"
        assert outcome.metadata["operation"] == "RawQuery"
        assert outcome.metadata["row_count"] == 1
        assert outcome.metadata["execution_time_ms"] >= 0


# ============================================================================
# SQLite End-to-End Tests
# ============================================================================


class TestSqliteDispatch:
    """Tests running real statements through the SQLite adapter."""

    async def test_insert_then_select(
        self, recording_dispatcher: OperationDispatcher, db_path: str
    ) -> None:
        """Inserted rows come back with their exact values and increasing IDs."""
        first = await recording_dispatcher.execute(
            "sqlite", db_path, StructuredInsert("items", {"name": "a", "value": 1})
        )
        second = await recording_dispatcher.execute(
            "sqlite", db_path, StructuredInsert("items", {"name": "b", "value": 2})
        )

        assert first.is_success and second.is_success
        assert second.payload > first.payload

        rows = await recording_dispatcher.execute(
            "sqlite", db_path, RawQuery("SELECT name, value FROM items ORDER BY id")
        )
        assert rows.payload == [{"name": "a", "value": 1}, {"name": "b", "value": 2}]

    async def test_empty_result(self, recording_dispatcher: OperationDispatcher, db_path: str) -> None:
        outcome = await recording_dispatcher.execute(
            "sqlite", db_path, RawQuery("SELECT * FROM items")
        )

        assert outcome.is_success
        assert outcome.payload == []

    async def test_identifier_unavailable(
        self, recording_dispatcher: OperationDispatcher, db_path: str
    ) -> None:
        """Inserts into WITHOUT ROWID tables succeed but report no identifier."""
        outcome = await recording_dispatcher.execute(
            "sqlite", db_path, StructuredInsert("tags", {"name": "red", "label": "Red"})
        )

        assert outcome.error_kind == ErrorKind.IDENTIFIER_UNAVAILABLE
        assert "tags" in outcome.error

        rows = await recording_dispatcher.execute("sqlite", db_path, RawQuery("SELECT * FROM tags"))
        assert rows.payload == [{"name": "red", "label": "Red"}]

    async def test_invalid_sql(
        self,
        recording_dispatcher: OperationDispatcher,
        db_path: str,
        recorded_connections: list,
    ) -> None:
        outcome = await recording_dispatcher.execute(
            "sqlite", db_path, RawQuery("SELEC * FROM items")
        )

        assert outcome.error_kind == ErrorKind.STATEMENT
        assert "syntax error" in outcome.error
        assert is_closed(recorded_connections[0])

    async def test_missing_directory(
        self, recording_dispatcher: OperationDispatcher, tmp_path: Path
    ) -> None:
        path = tmp_path / "missing" / "app.db"

        outcome = await recording_dispatcher.execute("sqlite", str(path), RawQuery("SELECT 1"))

        assert outcome.error_kind == ErrorKind.CONNECTION
        assert not path.exists()

    async def test_concurrent_calls(
        self,
        recording_dispatcher: OperationDispatcher,
        db_path: str,
        recorded_connections: list,
    ) -> None:
        """Concurrent calls each get their own connection and their own result."""
        outcomes = await asyncio.gather(
            *(
                recording_dispatcher.execute("sqlite", db_path, RawQuery(f"SELECT {i} AS n"))
                for i in range(50)
            )
        )

        assert [o.payload for o in outcomes] == [[{"n": i}] for i in range(50)]
        assert len(recorded_connections) == 50
        assert all(is_closed(conn) for conn in recorded_connections)

    async def test_sqlite_backend_class_is_used(
        self, recording_dispatcher: OperationDispatcher, db_path: str, recorded_connections: list
    ) -> None:
        await recording_dispatcher.execute("sqlite", db_path, RawQuery("SELECT 1"))

        assert len(RecordingSqliteBackend.opened) == 1


# ============================================================================
# Server Backend Connection Failures
# ============================================================================


class TestServerConnectionFailures:
    """Connection failures for server engines need no running server."""

    async def test_postgres_refused(self) -> None:
        outcome = await OperationDispatcher().execute(
            "postgresql", "postgresql://user:pw@127.0.0.1:1/db", RawQuery("SELECT 1")
        )

        assert outcome.error_kind == ErrorKind.CONNECTION
        assert outcome.error

    async def test_mysql_refused(self) -> None:
        outcome = await OperationDispatcher().execute(
            "mysql", "mysql://user:pw@127.0.0.1:1/db", RawQuery("SELECT 1")
        )

        assert outcome.error_kind == ErrorKind.CONNECTION
        assert outcome.error

    async def test_mysql_bad_scheme(self) -> None:
        outcome = await OperationDispatcher().execute(
            "mysql", "postgresql://user:pw@127.0.0.1/db", RawQuery("SELECT 1")
        )

        assert outcome.error_kind == ErrorKind.CONNECTION
        assert "mysql" in outcome.error
