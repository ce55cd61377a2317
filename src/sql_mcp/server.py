"""FastMCP server initialization for sql-mcp.

This module initializes the MCP server and manages shared resources via lifespan context.
All tool implementations are in the tools module.

Following the official Anthropic Python SDK patterns:
- Lifespan context manager for resource initialization and cleanup
- Context injection for tool access to shared resources
- FastMCP server with stdio transport
"""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from mcp.server.fastmcp import FastMCP

from .config import load_settings
from .context import AppContext, AppContextType
from .sql import OperationDispatcher

logger = logging.getLogger(__name__)

# =============================================================================
# Shared Resources and Lifespan Management
# =============================================================================


@asynccontextmanager
async def app_lifespan(_server: FastMCP) -> AsyncIterator[AppContext]:
    """Manage application lifecycle.

    Loads settings from the environment and builds the dispatcher shared by
    all tool calls. The dispatcher keeps no connections, so there is nothing
    to release on shutdown beyond logging.

    Args:
        _server: FastMCP server instance (unused, required by FastMCP signature)

    Yields:
        AppContext with settings and dispatcher
    """
    logger.info("Initializing MCP server resources...")

    settings = load_settings()
    dispatcher = OperationDispatcher(settings)

    engines = ", ".join(engine.value for engine in dispatcher.supported_engines)
    logger.info(f"Supported database types: {engines}")
    logger.debug(
        f"SQLite settings: busy_timeout={settings.sqlite_busy_timeout_ms}ms, "
        f"foreign_keys={settings.sqlite_foreign_keys}, create_dirs={settings.sqlite_create_dirs}"
    )

    try:
        yield AppContext(settings=settings, dispatcher=dispatcher)
    finally:
        logger.info("Shutting down MCP server...")


# Initialize MCP server with lifespan management
# Following Python MCP naming convention: {service}_mcp
mcp = FastMCP("sql_mcp", lifespan=app_lifespan)


# =============================================================================
# Server Entry Point
# =============================================================================


def main() -> None:
    """Entry point for running the MCP server.

    This function is called when the server is run directly via:
    - python -m sql_mcp
    - sql-mcp (console script entry point)

    Defaults to stdio transport for MCP protocol communication.
    """
    # Invalid SQL_MCP_LOG_LEVEL values fall back to INFO with a warning
    settings = load_settings()
    log_level = getattr(logging, settings.log_level)

    # Configure logging to stderr (stdout carries the MCP protocol)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    logger.info("SQL MCP server running on stdio")

    try:
        mcp.run()
    except KeyboardInterrupt:
        # anyio raises KeyboardInterrupt on SIGINT after cleaning up the lifespan
        logger.info("Received interrupt signal, shutting down gracefully...")
    except Exception as e:
        logger.exception(f"Server error: {e}")
        sys.exit(1)

    logger.info("Server shutdown complete")


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    "mcp",
    "main",
    "app_lifespan",
    "AppContext",
    "AppContextType",
]
