"""
record/ - Mapping Layer
=======================
Binds dataclasses to tables and builds parametrized SQL for them.
Depends on db/ for execution; nothing below this layer imports it.
"""

from record.builder import Record
from record.exceptions import ConfigurationError, MappingError, RecordError
from record.meta import FieldKind, table
from record.model import Model
from record.registry import close_database, configure, open_database

__all__ = [
    "Record",
    "Model",
    "table",
    "FieldKind",
    "configure",
    "open_database",
    "close_database",
    "RecordError",
    "ConfigurationError",
    "MappingError",
]
