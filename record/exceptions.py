"""
record/exceptions.py
--------------------
Errors raised by the mapping layer.

Failures reported by the database driver (connectivity, syntax,
constraint violations) are not wrapped; they reach the caller as the
driver raised them.
"""

from typing import Optional


class RecordError(Exception):
    """Base exception for all mapping-layer errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(RecordError):
    """Raised when no SQL executor has been configured."""

    def __init__(self, message: str = "SQL executor is not configured. Call open_database() or configure() first."):
        super().__init__(message)


class MappingError(RecordError):
    """Raised when an entity's fields cannot be turned into column values."""

    def __init__(self, entity: str, reason: str, field: Optional[str] = None):
        message = f"Cannot map {entity}: {reason}"
        if field:
            message = f"Cannot map {entity}.{field}: {reason}"
        super().__init__(
            message=message, details={"entity": entity, "field": field, "reason": reason}
        )
