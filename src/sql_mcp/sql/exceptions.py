"""Exception hierarchy for the SQL gateway.

Adapters raise these; the OperationDispatcher catches them and converts
each one into a failed ExecutionOutcome. None of them is meant to escape
past the dispatcher.

Exception Hierarchy:
    SqlError (base)
    ├── UnsupportedBackendError (unknown dbType)
    ├── SqlConnectionError (connection could not be opened)
    ├── SqlStatementError (statement failed to build or execute)
    └── IdentifierUnavailableError (insert succeeded, no generated key)
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories reported in ExecutionOutcome.error_kind."""

    UNSUPPORTED_BACKEND = "unsupported_backend"
    CONNECTION = "connection"
    STATEMENT = "statement"
    IDENTIFIER_UNAVAILABLE = "identifier_unavailable"


class SqlError(Exception):
    """Base exception for all gateway errors.

    Attributes:
        kind: ErrorKind reported to the caller
    """

    kind: ErrorKind = ErrorKind.STATEMENT

    @classmethod
    def from_driver(cls, exc: BaseException) -> SqlError:
        """Wrap a native driver exception, keeping the driver's message.

        Some drivers raise exceptions with an empty str(); the class name is
        used instead so the caller never sees a blank message.
        """
        message = str(exc).strip() or type(exc).__name__
        return cls(message)


class UnsupportedBackendError(SqlError):
    """The requested database type has no adapter."""

    kind = ErrorKind.UNSUPPORTED_BACKEND

    def __init__(self, db_type: object = None) -> None:
        self.db_type = db_type
        super().__init__("unsupported database type")


class SqlConnectionError(SqlError):
    """Failed to establish database connection."""

    kind = ErrorKind.CONNECTION


class SqlStatementError(SqlError):
    """SQL statement could not be built or executed."""

    kind = ErrorKind.STATEMENT


class IdentifierUnavailableError(SqlError):
    """The insert succeeded but the backend reported no generated identifier.

    Raised for tables without an auto-generated key (WITHOUT ROWID tables in
    SQLite, tables without AUTO_INCREMENT in MySQL, inserts that did not
    advance any sequence in PostgreSQL).
    """

    kind = ErrorKind.IDENTIFIER_UNAVAILABLE

    def __init__(self, table: str | None = None) -> None:
        self.table = table
        message = "no identifier available"
        if table:
            message += f" for insert into '{table}'"
        super().__init__(message)
