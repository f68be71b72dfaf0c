"""
models/user.py
--------------
Domain model for application users.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from record import Model


@dataclass
class User(Model):
    """
    A registered user, stored in the ``users`` table.

    Attributes:
        name: Display name.
        age: Age in years.
        email: Contact address.
        created_at: Set by the database on insert.
        roles: In-memory only; lists are never persisted.
        id: Database primary key (None for new records).
    """
    name: Optional[str] = None
    age: Optional[int] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = field(default=None, metadata={"ignore": True})
    roles: list[str] = field(default_factory=list)
    id: Optional[int] = None

    def __str__(self) -> str:
        return f"#{self.id} {self.name} ({self.age})"
