"""Shared formatting utilities for MCP tool responses.

All text the tools send back to the client is built here:

- Query results: pretty-printed JSON array of row objects
- Inserts: "Inserted ID: <identifier>"
- Failures: "Database error: <message>"
"""

import json
from typing import Any

from .sql.normalizer import json_default


def format_rows(rows: list[dict[str, Any]]) -> str:
    """Format result rows as an indented JSON array.

    Driver-native values (Decimal, datetime, bytes, ...) are converted by
    json_default.
    """
    return json.dumps(rows, indent=2, ensure_ascii=False, default=json_default)


def format_inserted_id(identifier: Any) -> str:
    return f"Inserted ID: {identifier}"


def format_database_error(message: str | None) -> str:
    return f"Database error: {message or 'unknown error'}"
