"""ExecutionOutcome: the single result type returned by the dispatcher.

Every dispatcher call ends in exactly one ExecutionOutcome, either a
success carrying a payload or a failure carrying a message and an
ErrorKind. Modeled after the loader's discriminated-union result: the
status enum decides which fields are meaningful and __post_init__
rejects inconsistent combinations.

Usage:
    outcome = await dispatcher.execute("sqlite", "/data/app.db", RawQuery("SELECT 1"))
    if outcome.is_success:
        rows = outcome.payload
    else:
        print(f"{outcome.error_kind}: {outcome.error}")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import ErrorKind, SqlError


class OutcomeStatus(str, Enum):
    """Status of a dispatched operation."""

    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class ExecutionOutcome:
    """Uniform Success/Failure result of one logical operation.

    Attributes:
        status: SUCCESS or FAILED
        payload: Row list (RawQuery) or inserted identifier (StructuredInsert)
        error: Human-readable failure message (FAILED only)
        error_kind: Failure category (FAILED only)
        metadata: Engine, timing and count details for logging/diagnostics
    """

    status: OutcomeStatus
    payload: Any = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.status == OutcomeStatus.SUCCESS:
            if self.error is not None or self.error_kind is not None:
                raise ValueError("Success outcome must not carry an error")
        else:
            if not self.error:
                raise ValueError("Failed outcome must have an error message")
            if self.error_kind is None:
                raise ValueError("Failed outcome must have an error kind")
            if self.payload is not None:
                raise ValueError("Failed outcome must not carry a payload")

    @property
    def is_success(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS

    @property
    def is_failure(self) -> bool:
        return self.status == OutcomeStatus.FAILED

    @classmethod
    def success(cls, payload: Any, metadata: dict[str, Any] | None = None) -> ExecutionOutcome:
        """Create a successful outcome."""
        return cls(status=OutcomeStatus.SUCCESS, payload=payload, metadata=metadata or {})

    @classmethod
    def failure(
        cls,
        error: str,
        kind: ErrorKind,
        metadata: dict[str, Any] | None = None,
    ) -> ExecutionOutcome:
        """Create a failed outcome."""
        return cls(
            status=OutcomeStatus.FAILED,
            error=error,
            error_kind=kind,
            metadata=metadata or {},
        )

    @classmethod
    def from_error(cls, exc: SqlError, metadata: dict[str, Any] | None = None) -> ExecutionOutcome:
        """Create a failed outcome from a gateway exception."""
        return cls.failure(str(exc) or type(exc).__name__, exc.kind, metadata)

    def __bool__(self) -> bool:
        return self.is_success
