"""Result normalization across backends.

Maps each driver's native result shapes onto the uniform payloads the
gateway returns:

    - rows: sqlite3.Row, asyncpg.Record and aiomysql dict rows all become
      plain dicts, in result order, with NULL preserved as None
    - identifiers: lastrowid, lastval() and OK-packet insert ids become one
      scalar, or IdentifierUnavailableError when the backend generated none
    - values: json_default() renders driver types (Decimal, datetime, bytes,
      UUID, ...) that json.dumps cannot serialize on its own
"""

from __future__ import annotations

import base64
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

from .backend import DatabaseEngine, QueryResult
from .exceptions import IdentifierUnavailableError

# Engines whose driver reports 0 when no auto-generated key was produced
_ZERO_MEANS_NONE = frozenset({DatabaseEngine.SQLITE, DatabaseEngine.MYSQL})


def rows_to_dicts(rows: Iterable[Any]) -> list[dict[str, Any]]:
    """Copy native rows into dicts keyed by column name.

    Duplicate column names collapse to the last value, as with any mapping.
    """
    return [dict(row) for row in rows]


def extract_identifier(
    result: QueryResult, engine: DatabaseEngine, table: str | None = None
) -> Any:
    """Return the generated key of a structured insert.

    Args:
        result: QueryResult from the adapter's insert()
        engine: Engine that produced the result
        table: Target table, used in the error message

    Returns:
        The identifier as reported by the backend

    Raises:
        IdentifierUnavailableError: If the backend generated no identifier
    """
    identifier = result.last_insert_id
    if identifier is None:
        raise IdentifierUnavailableError(table)
    if engine in _ZERO_MEANS_NONE and not isinstance(identifier, bool) and identifier == 0:
        raise IdentifierUnavailableError(table)
    return identifier


def json_default(value: Any) -> Any:
    """json.dumps default hook for values drivers return natively.

    Temporal values become ISO-8601 strings, Decimal and UUID become
    strings (no precision loss), binary becomes base64.
    """
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID, timedelta)):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, (set, frozenset)):
        return list(value)
    return str(value)
