"""
record/registry.py
------------------
Process-wide settings read by every query builder: the active SQL
executor and the table-name prefix. Both are set once at startup.
"""

from typing import Optional

from config import DB_POOL_MAX, DB_POOL_MIN, TABLE_PREFIX
from db.connection import close_pool, init_pool
from db.executor import SqlExecutor
from record.exceptions import ConfigurationError
from utils.logger import get_logger

logger = get_logger(__name__)

_executor: Optional[SqlExecutor] = None
_table_prefix: str = TABLE_PREFIX


def configure(executor: SqlExecutor, table_prefix: Optional[str] = None) -> None:
    """
    Install the executor used by all builders.

    Args:
        executor: Object exposing ``fetch_all``, ``fetch_first``,
            ``fetch_scalar`` and ``insert``.
        table_prefix: Overrides ``config.TABLE_PREFIX`` when given.
    """
    global _executor, _table_prefix
    _executor = executor
    if table_prefix is not None:
        _table_prefix = table_prefix


def get_executor() -> SqlExecutor:
    """
    Return the configured executor.

    Raises:
        ConfigurationError: If ``configure()`` / ``open_database()`` was never called.
    """
    if _executor is None:
        raise ConfigurationError()
    return _executor


def table_prefix() -> str:
    return _table_prefix


def reset() -> None:
    """Forget the executor and restore the configured table prefix."""
    global _executor, _table_prefix
    _executor = None
    _table_prefix = TABLE_PREFIX


def open_database(
    dsn: Optional[str] = None,
    min_conn: int = DB_POOL_MIN,
    max_conn: int = DB_POOL_MAX,
    table_prefix: Optional[str] = None,
) -> SqlExecutor:
    """
    Initialize the connection pool and register a pool-backed executor.

    Returns:
        The executor now installed in the registry.
    """
    init_pool(min_conn, max_conn, dsn)
    executor = SqlExecutor()
    configure(executor, table_prefix)
    logger.info(f"Record layer ready (table prefix: {_table_prefix!r}).")
    return executor


def close_database() -> None:
    """Close the pool and clear the registry."""
    close_pool()
    reset()
