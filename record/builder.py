"""
record/builder.py
-----------------
Query builder bound to one mapped entity type.

Chained calls accumulate predicate fragments, bound parameters and
ordering; a terminal call (``find_by_id``, ``all``, ``limit``, ``page``,
``count``, ``save``) compiles them into a single statement, runs it
through the configured executor and clears the accumulated state.

A builder belongs to one caller at a time. It may be reused after a
terminal call; it starts over from an empty state.
"""

from collections.abc import Iterable
from typing import Any, Optional

from record import registry
from record.exceptions import MappingError
from record.meta import TableMeta, from_row, is_mapping, resolve
from utils.logger import get_logger

logger = get_logger(__name__)

_AND = " AND "


class Record:
    """Accumulates SQL fragments for ``model_class`` and executes them."""

    def __init__(self, model_class: type):
        self.model_class = model_class
        self.meta: TableMeta = resolve(model_class)
        self.table_name = self.meta.table_name
        self.pk_name = self.meta.pk_name

        self._sub_sql: list[str] = []
        self._params: list[Any] = []
        self._order_by: list[str] = []
        self._group_by: list[str] = []
        self._excluded: set[str] = set()
        self._select_columns: Optional[str] = None

    # ── PREDICATES ────────────────────────────────────────

    def where(self, statement: str, *value: Any) -> "Record":
        """
        Add a raw boolean expression.

        ``where("age > ?", 15)`` binds one value to the single ``?`` inside
        the statement; ``where("name IS NOT NULL")`` binds nothing.
        """
        if len(value) > 1:
            raise TypeError("where() takes a statement and at most one value")
        self._sub_sql.append(_AND + statement)
        if value:
            self._params.append(value[0])
        return self

    def not_(self, column: str, value: Any) -> "Record":
        self._sub_sql.append(f"{_AND}{column} != ?")
        self._params.append(value)
        return self

    def is_not_null(self, column: str) -> "Record":
        self._sub_sql.append(f"{_AND}{column} IS NOT NULL")
        return self

    def like(self, column: str, value: Any) -> "Record":
        self._sub_sql.append(f"{_AND}{column} LIKE ?")
        self._params.append(value)
        return self

    def in_(self, column: str, *values: Any) -> "Record":
        """
        Restrict ``column`` to a set of values.

        Accepts either varargs (``in_("id", 1, 2, 3)``) or one iterable
        (``in_("id", [1, 2, 3])``). The collection is bound as a single
        parameter; the executor expands it into the IN-list.
        """
        if len(values) == 1 and _is_collection(values[0]):
            values = tuple(values[0])
        self._sub_sql.append(f"{_AND}{column} IN ?")
        self._params.append(list(values))
        return self

    # ── SHAPING ───────────────────────────────────────────

    def order(self, order: str) -> "Record":
        """Append an ordering clause such as ``"age DESC"``."""
        self._order_by.append(order)
        return self

    def group(self, column: str) -> "Record":
        self._group_by.append(column)
        return self

    def select(self, columns: str) -> "Record":
        """Replace ``*`` with an explicit column list for reads."""
        self._select_columns = columns
        return self

    def distinct(self, column: str) -> "Record":
        self._select_columns = f"DISTINCT {column}"
        return self

    def exclude(self, *field_names: str) -> "Record":
        """Leave these fields out of the next ``save``. Reads are unaffected."""
        self._excluded.update(field_names)
        return self

    execlud = exclude

    # ── COMPILATION ───────────────────────────────────────

    def _where_clause(self) -> str:
        if not self._sub_sql:
            return ""
        return " WHERE " + "".join(self._sub_sql)[len(_AND):]

    def compile_select(
        self, limit: Optional[int] = None, offset: Optional[int] = None
    ) -> tuple[str, list]:
        """
        Compile the accumulated state into a SELECT.

        Returns:
            Tuple of (sql, bound parameters in placeholder order).
        """
        sql = f"SELECT {self._select_columns or '*'} FROM {self.table_name}"
        sql += self._where_clause()
        if self._group_by:
            sql += " GROUP BY " + ", ".join(self._group_by)
        if self._order_by:
            sql += " ORDER BY " + ", ".join(self._order_by)
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
        if offset:
            sql += f" OFFSET {int(offset)}"
        return sql, list(self._params)

    def compile_count(self) -> tuple[str, list]:
        """Compile a COUNT over the predicates; ORDER BY and GROUP BY fragments are left out."""
        sql = f"SELECT COUNT(*) FROM {self.table_name}" + self._where_clause()
        return sql, list(self._params)

    def compile_insert(self, target: Any) -> tuple[str, list]:
        """
        Compile an INSERT for ``target`` over its persistable fields, in
        declaration order. A primary key still set to None is left out.

        Raises:
            MappingError: A field could not be read, or nothing is persistable.
        """
        entity = self.model_class.__name__
        columns: list[str] = []
        values: list[Any] = []
        for col in self.meta.columns:
            if col.field_name in self._excluded or col.ignored:
                continue
            if not is_mapping(col):
                continue
            try:
                value = getattr(target, col.field_name)
            except AttributeError as e:
                raise MappingError(entity, str(e), field=col.field_name) from e
            # unset key: let the database generate it
            if col.column == self.pk_name and value is None:
                continue
            columns.append(col.column)
            values.append(value)

        if not columns:
            raise MappingError(entity, "no persistable fields")

        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {self.table_name} ({', '.join(columns)}) VALUES ({placeholders})"
        return sql, values

    # ── TERMINAL OPERATIONS ───────────────────────────────

    def find_by_id(self, id: Any) -> Optional[Any]:
        """
        Fetch one entity by primary key.

        Returns:
            The entity, or None if no row has that key.
        """
        try:
            executor = registry.get_executor()
            sql = (
                f"SELECT {self._select_columns or '*'} FROM {self.table_name}"
                f" WHERE {self.pk_name} = ? LIMIT 1"
            )
            logger.debug(f"{sql} | {[id]}")
            row = executor.fetch_first(sql, [id])
            return from_row(self.meta, row) if row else None
        finally:
            self._reset()

    def all(self) -> list:
        """Fetch every entity matching the accumulated predicates."""
        return self._fetch()

    def limit(self, limit: int) -> list:
        """Like ``all()`` but returns at most ``limit`` entities."""
        return self._fetch(limit=limit)

    def page(self, page: int, limit: int) -> list:
        """
        Fetch one page of results; pages are numbered from 1.

        Raises:
            ValueError: If ``page`` or ``limit`` is below 1.
        """
        if page < 1 or limit < 1:
            self._reset()
            raise ValueError(f"page and limit must be >= 1 (got page={page}, limit={limit})")
        return self._fetch(limit=limit, offset=(page - 1) * limit)

    def count(self) -> int:
        """
        Count rows matching the accumulated predicates.

        ``order()`` and ``group()`` fragments do not apply; the result is
        always a single total, never one count per group.
        """
        try:
            executor = registry.get_executor()
            sql, params = self.compile_count()
            logger.debug(f"{sql} | {params}")
            return int(executor.fetch_scalar(sql, params) or 0)
        finally:
            self._reset()

    def save(self, target: Any) -> Any:
        """
        Insert ``target`` as a new row.

        Returns:
            The primary key generated by the database.
        """
        try:
            executor = registry.get_executor()
            sql, values = self.compile_insert(target)
            logger.debug(f"{sql} | {values}")
            return executor.insert(sql, values, self.pk_name)
        finally:
            self._reset()

    def _fetch(self, limit: Optional[int] = None, offset: Optional[int] = None) -> list:
        try:
            executor = registry.get_executor()
            sql, params = self.compile_select(limit, offset)
            logger.debug(f"{sql} | {params}")
            return [from_row(self.meta, r) for r in executor.fetch_all(sql, params)]
        finally:
            self._reset()

    def _reset(self) -> None:
        self._sub_sql = []
        self._params = []
        self._order_by = []
        self._group_by = []
        self._excluded = set()
        self._select_columns = None


def _is_collection(value: Any) -> bool:
    return isinstance(value, Iterable) and not isinstance(value, (str, bytes, bytearray, dict))
