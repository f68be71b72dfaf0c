"""
record/model.py
---------------
ActiveRecord-style entry points for mapped dataclasses.

    @dataclass
    class User(Model):
        name: str
        age: int
        id: Optional[int] = None

    User.where("age > ?", 15).is_not_null("name").count()
    User.find_by_id(2)
    User(name="jack", age=20).save()

Every class-level call starts a fresh ``Record`` for the class.
"""

from typing import Any, Optional

from record.builder import Record


class Model:
    """Mixin giving a dataclass class-level query methods and ``save()``."""

    @classmethod
    def query(cls) -> Record:
        return Record(cls)

    # ── CHAIN STARTERS ────────────────────────────────────

    @classmethod
    def where(cls, statement: str, *value: Any) -> Record:
        return cls.query().where(statement, *value)

    @classmethod
    def not_(cls, column: str, value: Any) -> Record:
        return cls.query().not_(column, value)

    @classmethod
    def is_not_null(cls, column: str) -> Record:
        return cls.query().is_not_null(column)

    @classmethod
    def like(cls, column: str, value: Any) -> Record:
        return cls.query().like(column, value)

    @classmethod
    def in_(cls, column: str, *values: Any) -> Record:
        return cls.query().in_(column, *values)

    @classmethod
    def order(cls, order: str) -> Record:
        return cls.query().order(order)

    @classmethod
    def select(cls, columns: str) -> Record:
        return cls.query().select(columns)

    # ── TERMINALS ─────────────────────────────────────────

    @classmethod
    def find_by_id(cls, id: Any) -> Optional[Any]:
        return cls.query().find_by_id(id)

    @classmethod
    def all(cls) -> list:
        return cls.query().all()

    @classmethod
    def count(cls) -> int:
        return cls.query().count()

    def save(self, *exclude: str) -> Any:
        """
        Insert this instance and store the generated key on it.

        Args:
            *exclude: Field names to leave out of the INSERT.

        Returns:
            The generated primary key.
        """
        record = Record(type(self))
        key = record.exclude(*exclude).save(self)
        pk_field = next(
            (c.field_name for c in record.meta.columns if c.column == record.pk_name),
            None,
        )
        if pk_field is not None and key is not None:
            setattr(self, pk_field, key)
        return key
