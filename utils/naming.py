"""
utils/naming.py
---------------
Naming conventions shared by the mapper: class names become pluralized
snake_case table names and field names become snake_case column names.
"""

import re

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def to_snake_case(name: str) -> str:
    """Convert ``CamelCase`` / ``camelCase`` to ``snake_case``."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def pluralize(word: str) -> str:
    """
    Naive English plural for table names.

    Examples:
        user -> users, category -> categories, address -> addresses
    """
    if not word:
        return word
    if word.endswith("y") and word[-2:-1] not in ("a", "e", "i", "o", "u"):
        return word[:-1] + "ies"
    if word.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"
    return word + "s"


def to_table_name(class_name: str, prefix: str = "") -> str:
    """
    Derive a table name from a class name.

    Args:
        class_name: The entity's ``__name__`` (e.g. ``OrderItem``).
        prefix: Global table prefix, prepended verbatim.

    Returns:
        e.g. ``app_order_items`` for ``OrderItem`` with prefix ``app_``.
    """
    return f"{prefix or ''}{pluralize(to_snake_case(class_name))}"


def to_column_name(field_name: str) -> str:
    """Column name for an entity field (``createdAt`` -> ``created_at``)."""
    return to_snake_case(field_name)
