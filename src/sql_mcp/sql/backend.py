"""Database backend interface and shared data classes for the SQL gateway.

This module defines the abstract adapter interface that every database
backend implements, the logical operations the gateway accepts, and the
raw result shape adapters hand back to the dispatcher.

Each adapter instance serves exactly one call: the dispatcher constructs
it, runs one operation through it, and drops it. The connection it opens
is released by the session() context manager on every exit path.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from ..config import GatewaySettings
from .exceptions import (
    SqlConnectionError,
    SqlError,
    SqlStatementError,
    UnsupportedBackendError,
)

logger = logging.getLogger(__name__)


class DatabaseEngine(Enum):
    """Supported database engines (the dbType selector)."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"

    @classmethod
    def from_tag(cls, tag: DatabaseEngine | str) -> DatabaseEngine:
        """Resolve a dbType tag, raising UnsupportedBackendError if unknown."""
        if isinstance(tag, cls):
            return tag
        try:
            return cls(tag)
        except ValueError as e:
            raise UnsupportedBackendError(tag) from e


@dataclass(frozen=True)
class RawQuery:
    """Caller-supplied SQL statement, executed verbatim."""

    statement: str


@dataclass(frozen=True)
class StructuredInsert:
    """Declarative single-row insert.

    Attributes:
        table: Target table name (quoted by the adapter)
        fields: Column name -> value; iteration order is the column order
    """

    table: str
    fields: dict[str, Any]


LogicalOperation = RawQuery | StructuredInsert


@dataclass
class QueryResult:
    """Raw result of one statement, before normalization.

    Attributes:
        rows: Result rows as list of dicts (empty when no result set)
        row_count: Number of rows returned
        columns: Column names from result set
        last_insert_id: Backend-reported generated key (StructuredInsert only)
        affected_rows: Rows affected by a write statement
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    row_count: int = 0
    columns: list[str] = field(default_factory=list)
    last_insert_id: Any = None
    affected_rows: int = 0


class DatabaseBackendBase(ABC):
    """Abstract base class for backend adapters.

    Subclasses implement the native mechanics (connect, disconnect, query,
    insert); this class supplies statement building and the
    connect/execute/release sequence shared by all of them.
    """

    engine: ClassVar[DatabaseEngine]

    def __init__(self, settings: GatewaySettings | None = None) -> None:
        self._settings = settings or GatewaySettings()

    @abstractmethod
    async def connect(self, descriptor: str) -> None:
        """Open the native connection described by descriptor."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the native connection. Safe to call multiple times."""

    @abstractmethod
    async def query(self, sql: str) -> QueryResult:
        """Execute a statement without parameters and capture its rows."""

    @abstractmethod
    async def insert(
        self, sql: str, params: Sequence[Any], table: str | None = None
    ) -> QueryResult:
        """Execute a parameterized INSERT into table and capture the generated key."""

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Check if a native connection is currently open."""

    def build_insert(self, operation: StructuredInsert) -> tuple[str, list[Any]]:
        """Build the engine-specific INSERT statement and its parameters."""
        from .query_builder import InsertBuilder

        return InsertBuilder(self.engine).insert(operation.table, operation.fields)

    @asynccontextmanager
    async def session(self, descriptor: str) -> AsyncIterator[DatabaseBackendBase]:
        """Open a connection for the duration of the block.

        Connect failures surface as SqlConnectionError carrying the driver
        message. The connection is released when the block exits, whether
        it completes or raises.
        """
        try:
            await self.connect(descriptor)
        except SqlError:
            await self.disconnect()
            raise
        except Exception as e:
            await self.disconnect()
            raise SqlConnectionError.from_driver(e) from e

        try:
            yield self
        finally:
            await self.disconnect()

    async def run(self, descriptor: str, operation: LogicalOperation) -> QueryResult:
        """Connect, execute one logical operation, and release the connection.

        Args:
            descriptor: Connection string or file path, passed to the driver as is
            operation: RawQuery or StructuredInsert

        Returns:
            QueryResult with rows (RawQuery) or last_insert_id (StructuredInsert)

        Raises:
            SqlConnectionError: If the connection could not be opened
            SqlStatementError: If the statement could not be built or failed
        """
        params: list[Any] | None = None
        table: str | None = None
        if isinstance(operation, StructuredInsert):
            try:
                sql, params = self.build_insert(operation)
                table = operation.table
            except ValueError as e:
                raise SqlStatementError(str(e)) from e
        elif isinstance(operation, RawQuery):
            sql = operation.statement
        else:
            raise SqlStatementError(f"Unknown operation: {type(operation).__name__}")

        async with self.session(descriptor):
            try:
                if params is None:
                    return await self.query(sql)
                return await self.insert(sql, params, table=table)
            except SqlError:
                raise
            except Exception as e:
                raise SqlStatementError.from_driver(e) from e
