"""
db/executor.py
--------------
Runs compiled SQL against the pool, one connection per statement.

Statements arrive with ``?`` placeholders and a positional parameter list.
They are rewritten to psycopg2's ``%s`` style before execution. A collection
bound behind ``IN ?`` becomes a tuple, which psycopg2 renders as
``(v1, v2, ...)``; any other list is left alone and goes out as an ARRAY.
"""

import re
from typing import Any, Callable, Optional, Sequence

from psycopg2 import extras

from db.connection import get_connection, release_connection
from utils.logger import get_logger

logger = get_logger(__name__)

_COLLECTION_TYPES = (list, tuple, set, frozenset)
_ENDS_WITH_IN = re.compile(r"\bIN\s*$", re.IGNORECASE)


def translate(sql: str, params: Sequence[Any] = ()) -> tuple[str, tuple]:
    """
    Convert a ``?``-style statement into psycopg2's pyformat style.

    Literal ``%`` characters are doubled so psycopg2 does not treat them as
    format markers. Only collections whose placeholder follows ``IN`` are
    turned into tuples.

    Args:
        sql: Statement using ``?`` placeholders.
        params: Positional parameters, one per placeholder.

    Returns:
        Tuple of (translated sql, parameter tuple).
    """
    text = sql.replace("%", "%%").replace("?", "%s")
    # text preceding each placeholder
    leads = sql.split("?")[:-1]
    values = tuple(
        tuple(p)
        if isinstance(p, _COLLECTION_TYPES) and i < len(leads) and _ENDS_WITH_IN.search(leads[i])
        else p
        for i, p in enumerate(params)
    )
    return text, values


class SqlExecutor:
    """
    Executes single statements on pooled connections.

    Every call acquires one connection, runs one statement and returns the
    connection to the pool, whether the statement succeeded or not.
    """

    def __init__(
        self,
        acquire: Callable[[], Any] = get_connection,
        release: Callable[[Any], None] = release_connection,
    ):
        self._acquire = acquire
        self._release = release

    # ── READ ──────────────────────────────────────────────

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict]:
        """Run a query and return every row as a dict keyed by column name."""
        text, values = translate(sql, params)
        conn = self._acquire()
        try:
            with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                cur.execute(text, values)
                rows = [dict(r) for r in cur.fetchall()]
            conn.commit()
            return rows
        except Exception as e:
            conn.rollback()
            logger.error(f"Query failed: {sql} | {e}")
            raise
        finally:
            self._release(conn)

    def fetch_first(self, sql: str, params: Sequence[Any] = ()) -> Optional[dict]:
        """Run a query and return its first row, or None if it matched nothing."""
        text, values = translate(sql, params)
        conn = self._acquire()
        try:
            with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                cur.execute(text, values)
                row = cur.fetchone()
            conn.commit()
            return dict(row) if row else None
        except Exception as e:
            conn.rollback()
            logger.error(f"Query failed: {sql} | {e}")
            raise
        finally:
            self._release(conn)

    def fetch_scalar(self, sql: str, params: Sequence[Any] = ()) -> Any:
        """Return the first column of the first row (None when there is no row)."""
        text, values = translate(sql, params)
        conn = self._acquire()
        try:
            with conn.cursor() as cur:
                cur.execute(text, values)
                row = cur.fetchone()
            conn.commit()
            return row[0] if row else None
        except Exception as e:
            conn.rollback()
            logger.error(f"Query failed: {sql} | {e}")
            raise
        finally:
            self._release(conn)

    # ── WRITE ─────────────────────────────────────────────

    def insert(self, sql: str, params: Sequence[Any], key_column: str) -> Any:
        """
        Execute an INSERT and return the key the database generated for it.

        Args:
            sql: ``INSERT INTO ... VALUES (...)`` statement.
            params: Values for the VALUES list, in column order.
            key_column: Column whose value is returned via ``RETURNING``.

        Returns:
            The generated key, or None if the statement returned no row.
        """
        text, values = translate(f"{sql} RETURNING {key_column}", params)
        conn = self._acquire()
        try:
            with conn.cursor() as cur:
                cur.execute(text, values)
                row = cur.fetchone()
            conn.commit()
            return row[0] if row else None
        except Exception as e:
            conn.rollback()
            logger.error(f"Insert failed: {sql} | {e}")
            raise
        finally:
            self._release(conn)
