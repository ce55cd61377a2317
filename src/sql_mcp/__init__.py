"""sql-mcp: MCP server for running SQL against SQLite, PostgreSQL and MySQL."""

__version__ = "0.1.0"
