"""Shared context types for MCP server.

This module contains context types used across server and tools modules,
separated to avoid circular imports.
"""

from dataclasses import dataclass

from mcp.server.fastmcp import Context
from mcp.server.session import ServerSession

from .config import GatewaySettings
from .sql import OperationDispatcher


@dataclass
class AppContext:
    """Application context containing shared resources for MCP tools.

    Created during server startup and made available to all tools via
    dependency injection through the Context parameter. Both members are
    read-only after startup; no connections are held here.
    """

    settings: GatewaySettings
    dispatcher: OperationDispatcher


# Type alias for MCP tool context parameter
AppContextType = Context[ServerSession, AppContext]


__all__ = ["AppContext", "AppContextType"]
