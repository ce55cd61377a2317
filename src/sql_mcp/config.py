"""Environment-driven settings for the SQL gateway.

Environment Variables:
    SQL_MCP_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        Default: INFO
    SQL_MCP_SQLITE_BUSY_TIMEOUT_MS: SQLite busy_timeout PRAGMA in milliseconds.
        Default: 5000, Valid range: 0-600000 (clamped automatically)
    SQL_MCP_SQLITE_FOREIGN_KEYS: Enforce SQLite foreign keys ("true"/"false").
        Default: true
    SQL_MCP_SQLITE_CREATE_DIRS: Create missing parent directories for SQLite
        database paths ("true"/"false"). Default: false
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_SQLITE_BUSY_TIMEOUT_MS = 5000
MAX_SQLITE_BUSY_TIMEOUT_MS = 600_000


@dataclass(frozen=True)
class GatewaySettings:
    """Immutable gateway settings, shared read-only by every call.

    Attributes:
        log_level: Root logging level name
        sqlite_busy_timeout_ms: busy_timeout applied to each SQLite connection
        sqlite_foreign_keys: Whether to enable PRAGMA foreign_keys
        sqlite_create_dirs: Whether to create missing parent directories
    """

    log_level: str = DEFAULT_LOG_LEVEL
    sqlite_busy_timeout_ms: int = DEFAULT_SQLITE_BUSY_TIMEOUT_MS
    sqlite_foreign_keys: bool = True
    sqlite_create_dirs: bool = False

    @property
    def sqlite_pragmas(self) -> dict[str, str | int]:
        """PRAGMA settings applied on every SQLite connection."""
        return {
            "busy_timeout": self.sqlite_busy_timeout_ms,
            "foreign_keys": "ON" if self.sqlite_foreign_keys else "OFF",
        }


def _get_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    logger.warning(f"Invalid boolean for {name}: {raw!r}, using {default}")
    return default


def get_log_level(env: Mapping[str, str] | None = None) -> str:
    """Read SQL_MCP_LOG_LEVEL, falling back to INFO when unset or invalid."""
    env = os.environ if env is None else env
    level = env.get("SQL_MCP_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
    if level not in VALID_LOG_LEVELS:
        logger.warning(f"Invalid SQL_MCP_LOG_LEVEL {level!r}, using {DEFAULT_LOG_LEVEL}")
        return DEFAULT_LOG_LEVEL
    return level


def get_sqlite_busy_timeout(env: Mapping[str, str] | None = None) -> int:
    """Read SQL_MCP_SQLITE_BUSY_TIMEOUT_MS.

    Returns:
        Busy timeout in milliseconds (0-600000)
    """
    env = os.environ if env is None else env
    try:
        timeout = int(env.get("SQL_MCP_SQLITE_BUSY_TIMEOUT_MS", DEFAULT_SQLITE_BUSY_TIMEOUT_MS))
    except ValueError:
        logger.warning("Invalid SQL_MCP_SQLITE_BUSY_TIMEOUT_MS, using default")
        return DEFAULT_SQLITE_BUSY_TIMEOUT_MS
    return max(0, min(MAX_SQLITE_BUSY_TIMEOUT_MS, timeout))


def load_settings(env: Mapping[str, str] | None = None) -> GatewaySettings:
    """Build GatewaySettings from the environment (os.environ by default)."""
    env = os.environ if env is None else env
    return GatewaySettings(
        log_level=get_log_level(env),
        sqlite_busy_timeout_ms=get_sqlite_busy_timeout(env),
        sqlite_foreign_keys=_get_bool(env, "SQL_MCP_SQLITE_FOREIGN_KEYS", True),
        sqlite_create_dirs=_get_bool(env, "SQL_MCP_SQLITE_CREATE_DIRS", False),
    )
