"""MCP tool implementations for SQL execution.

This module contains the MCP tool functions that expose the SQL gateway
to agents via the MCP protocol.

Following official Anthropic MCP Python SDK patterns:
- Tool functions decorated with @mcp.tool()
- Flat parameter signatures with Annotated types for validation
- Async functions for all tools
- Clear docstrings (become tool descriptions)

Both tools return a CallToolResult with a single text content item. Backend
problems are reported in-band with isError=True, never as protocol errors.
"""

from typing import Annotated, Any, Literal

from mcp.types import CallToolResult, TextContent, ToolAnnotations
from pydantic import Field

from .context import AppContextType
from .formatting import format_database_error, format_inserted_id, format_rows
from .server import mcp
from .sql import ExecutionOutcome, RawQuery, StructuredInsert

DbType = Literal["mysql", "postgresql", "sqlite"]


def _text_result(text: str, is_error: bool = False) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=text)], isError=is_error)


def _error_result(outcome: ExecutionOutcome) -> CallToolResult:
    return _text_result(format_database_error(outcome.error), is_error=True)


# =============================================================================
# MCP Tools (following official SDK decorator pattern)
# =============================================================================


@mcp.tool(
    annotations=ToolAnnotations(
        title="Execute SQL Query",
        readOnlyHint=False,
        destructiveHint=True,  # Arbitrary SQL may modify or drop data
        idempotentHint=False,
        openWorldHint=True,
    )
)
async def execute_sql_query(
    dbType: Annotated[  # noqa: N803
        DbType,
        Field(description="Type of the database (mysql, postgresql or sqlite)"),
    ],
    connectionString: Annotated[  # noqa: N803
        str,
        Field(description="Connection string for the database (file path for sqlite)"),
    ],
    query: Annotated[
        str,
        Field(description="SQL query to execute"),
    ],
    *,
    ctx: AppContextType,
) -> CallToolResult:
    """Execute a SQL query and return the result rows as JSON."""
    dispatcher = ctx.request_context.lifespan_context.dispatcher

    outcome = await dispatcher.execute(dbType, connectionString, RawQuery(statement=query))
    if outcome.is_failure:
        return _error_result(outcome)

    return _text_result(format_rows(outcome.payload))


@mcp.tool(
    annotations=ToolAnnotations(
        title="Insert Data",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,  # Each call inserts a new row
        openWorldHint=True,
    )
)
async def insert_data(
    dbType: Annotated[  # noqa: N803
        DbType,
        Field(description="Type of the database (mysql, postgresql or sqlite)"),
    ],
    connectionString: Annotated[  # noqa: N803
        str,
        Field(description="Connection string for the database (file path for sqlite)"),
    ],
    tableName: Annotated[  # noqa: N803
        str,
        Field(description="Name of the table to insert into"),
    ],
    data: Annotated[
        dict[str, Any],
        Field(description="JSON object representing the data to insert (key-value pairs)"),
    ],
    *,
    ctx: AppContextType,
) -> CallToolResult:
    """Insert one row into a table and return the generated ID."""
    dispatcher = ctx.request_context.lifespan_context.dispatcher

    operation = StructuredInsert(table=tableName, fields=data)
    outcome = await dispatcher.execute(dbType, connectionString, operation)
    if outcome.is_failure:
        return _error_result(outcome)

    return _text_result(format_inserted_id(outcome.payload))
