"""
record/meta.py
--------------
Entity metadata: table name, primary key and the column descriptor list
of every mapped type.

Types opt in to explicit settings with the ``@table`` decorator; any other
type is described on first use from its class name and annotations.
Descriptors are computed once per type and looked up by type identity.
"""

import dataclasses
import types
import typing
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from record import registry
from utils.naming import to_column_name, to_table_name

# Never persisted, regardless of its type.
SERIAL_VERSION_FIELD = "serialVersionUID"


class FieldKind(Enum):
    """Scalar kinds a field may hold and still be written to a column."""
    INT = "int"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOL = "bool"
    STR = "str"
    BYTES = "bytes"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    UUID = "uuid"


_KIND_BY_TYPE: dict[type, FieldKind] = {
    int: FieldKind.INT,
    float: FieldKind.FLOAT,
    Decimal: FieldKind.DECIMAL,
    bool: FieldKind.BOOL,
    str: FieldKind.STR,
    bytes: FieldKind.BYTES,
    date: FieldKind.DATE,
    datetime: FieldKind.DATETIME,
    time: FieldKind.TIME,
    uuid.UUID: FieldKind.UUID,
}

# Fallback for annotations that could not be evaluated.
_KIND_BY_NAME: dict[str, FieldKind] = {t.__name__.lower(): k for t, k in _KIND_BY_TYPE.items()}


@dataclass(frozen=True)
class ColumnDescriptor:
    """One declared field of an entity and the column it maps to."""
    field_name: str
    column: str
    kind: Optional[FieldKind]
    ignored: bool = False


@dataclass(frozen=True)
class TableMeta:
    """Resolved mapping of one entity type."""
    model: type
    table_name: str
    pk_name: str
    columns: tuple[ColumnDescriptor, ...]


_overrides: dict[type, tuple[Optional[str], str]] = {}
_columns: dict[type, tuple[ColumnDescriptor, ...]] = {}


def field_kind(annotation: Any) -> Optional[FieldKind]:
    """
    Map a type annotation to its FieldKind.

    ``Optional[X]`` is treated as ``X``. Containers, nested objects and
    unions of several types have no kind.
    """
    if isinstance(annotation, str):
        return _KIND_BY_NAME.get(annotation.strip().lower())

    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) != 1:
            return None
        return field_kind(args[0])

    if isinstance(annotation, type):
        return _KIND_BY_TYPE.get(annotation)
    return None


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        hints: dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            hints.update(getattr(klass, "__annotations__", {}))
        return hints


def describe(cls: type) -> tuple[ColumnDescriptor, ...]:
    """Build column descriptors for ``cls`` in field-declaration order."""
    hints = _type_hints(cls)

    if dataclasses.is_dataclass(cls):
        return tuple(
            ColumnDescriptor(
                field_name=f.name,
                column=to_column_name(f.name),
                kind=field_kind(hints.get(f.name, f.type)),
                ignored=bool(f.metadata.get("ignore", False)),
            )
            for f in dataclasses.fields(cls)
        )

    return tuple(
        ColumnDescriptor(field_name=name, column=to_column_name(name), kind=field_kind(tp))
        for name, tp in hints.items()
        if typing.get_origin(tp) is not typing.ClassVar
    )


def table(cls: Optional[type] = None, *, name: Optional[str] = None, pk: str = "id"):
    """
    Class decorator declaring explicit table settings.

    Works above or below ``@dataclass``; columns are described on first
    ``resolve()``, once the dataclass fields exist::

        @table(name="people", pk="person_id")
        @dataclass
        class Person: ...

    Args:
        name: Table name; an empty value falls back to the derived name.
        pk: Primary key column name.
    """
    def decorator(klass: type) -> type:
        _overrides[klass] = (name, pk)
        _columns.pop(klass, None)
        return klass

    if cls is not None:
        return decorator(cls)
    return decorator


def resolve(cls: type) -> TableMeta:
    """
    Resolve the table settings for ``cls``. Never fails: types without
    ``@table`` get a derived, prefixed table name and an ``id`` key.
    """
    name, pk = _overrides.get(cls, (None, "id"))
    if cls not in _columns:
        _columns[cls] = describe(cls)
    table_name = name if name else to_table_name(cls.__name__, registry.table_prefix())
    return TableMeta(model=cls, table_name=table_name, pk_name=pk, columns=_columns[cls])


def is_mapping(column: ColumnDescriptor) -> bool:
    """Whether a field can be written to a column, judged by its name and kind."""
    if column.field_name == SERIAL_VERSION_FIELD:
        return False
    return column.kind is not None


def from_row(meta: TableMeta, row: dict) -> Any:
    """Build an instance of ``meta.model`` from a row keyed by column name."""
    cls = meta.model
    values: dict[str, Any] = {}
    for col in meta.columns:
        if col.column in row:
            values[col.field_name] = row[col.column]
        elif col.field_name in row:
            values[col.field_name] = row[col.field_name]

    if not dataclasses.is_dataclass(cls):
        # bypass __init__; its signature is unknown
        instance = cls.__new__(cls)
        for key, value in values.items():
            setattr(instance, key, value)
        return instance

    init_args: dict[str, Any] = {}
    late: dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        if not f.init:
            if f.name in values:
                late[f.name] = values[f.name]
            continue
        if f.name in values:
            init_args[f.name] = values[f.name]
        elif f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            # column not projected
            init_args[f.name] = None

    instance = cls(**init_args)
    for key, value in late.items():
        setattr(instance, key, value)
    return instance
