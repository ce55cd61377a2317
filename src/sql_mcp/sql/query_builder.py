"""INSERT statement builder for structured inserts.

This module generates parameterized single-row INSERT statements with the
identifier quoting and placeholder style of the target engine. Values are
never interpolated into the SQL text; they are returned separately in
column order for the driver to bind.

Example:
    builder = InsertBuilder(DatabaseEngine.POSTGRESQL)
    sql, params = builder.insert("tasks", {"name": "Task 1", "status": "pending"})
    # -> INSERT INTO "tasks" ("name", "status") VALUES ($1, $2) RETURNING *
    # -> ["Task 1", "pending"]
"""

from __future__ import annotations

import json
from typing import Any

from .backend import DatabaseEngine


class InsertBuilder:
    """Builds parameterized INSERT statements for one engine.

    Attributes:
        engine: Target database engine for SQL dialect differences
    """

    def __init__(self, engine: DatabaseEngine):
        self.engine = engine

    def _placeholder(self, index: int) -> str:
        """Get parameter placeholder for the engine.

        Args:
            index: 0-based parameter index

        Returns:
            Placeholder string (?, $1, %s depending on engine)
        """
        if self.engine == DatabaseEngine.SQLITE:
            return "?"
        elif self.engine == DatabaseEngine.POSTGRESQL:
            return f"${index + 1}"
        else:  # MYSQL
            return "%s"

    def quote_identifier(self, name: str) -> str:
        """Quote a table or column name, doubling any embedded quote character."""
        if not name:
            raise ValueError("Identifier must not be empty")
        quote = "`" if self.engine == DatabaseEngine.MYSQL else '"'
        quoted = quote + name.replace(quote, quote * 2) + quote
        if self.engine == DatabaseEngine.MYSQL:
            # aiomysql applies %-formatting to the statement when params are bound
            quoted = quoted.replace("%", "%%")
        return quoted

    def _bind_value(self, value: Any) -> Any:
        """Serialize dict/list values as JSON text.

        PostgreSQL values are left as is: the adapter converts them against
        the prepared statement's parameter types (arrays stay lists).
        """
        if self.engine != DatabaseEngine.POSTGRESQL and isinstance(value, (dict, list)):
            return json.dumps(value)
        return value

    def insert(self, table: str, data: dict[str, Any]) -> tuple[str, list[Any]]:
        """Generate INSERT statement.

        Args:
            table: Target table name
            data: Column name -> value for the single row

        Returns:
            Tuple of (SQL statement, parameter list)

        Raises:
            ValueError: If table or data is empty
        """
        if not table:
            raise ValueError("INSERT requires a table name")
        if not data:
            raise ValueError("INSERT requires at least one column value")

        columns = list(data.keys())
        values = [self._bind_value(v) for v in data.values()]
        placeholders = [self._placeholder(i) for i in range(len(values))]

        col_list = ", ".join(self.quote_identifier(c) for c in columns)
        val_list = ", ".join(placeholders)

        sql = f"INSERT INTO {self.quote_identifier(table)} ({col_list}) VALUES ({val_list})"

        # PostgreSQL hands the inserted row back on the same round trip
        if self.engine == DatabaseEngine.POSTGRESQL:
            sql += " RETURNING *"

        return sql, values
