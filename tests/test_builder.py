"""
Tests for the query builder.

Covers:
- Predicate accumulation and parameter order
- SELECT / COUNT / INSERT compilation
- State reset after every terminal call, on success and on failure
- Configuration and mapping errors
"""

import psycopg2
import pytest

from models.user import User
from record.builder import Record
from record.exceptions import ConfigurationError, MappingError
from tests.entities import Order, Person, Widget


def assert_fresh(record):
    """The builder holds no accumulated state."""
    assert record._sub_sql == []
    assert record._params == []
    assert record._order_by == []
    assert record._group_by == []
    assert record._excluded == set()
    assert record._select_columns is None


class TestPredicates:
    """Test fragment accumulation."""

    def test_chain_returns_same_builder(self, executor):
        record = Record(User)
        assert record.where("age > ?", 1) is record
        assert record.not_("name", "x") is record
        assert record.is_not_null("email") is record
        assert record.like("name", "j%") is record
        assert record.in_("id", 1, 2) is record
        assert record.order("id") is record
        assert record.group("age") is record
        assert record.select("id") is record
        assert record.distinct("age") is record
        assert record.exclude("age") is record

    def test_compile_count_example(self, executor):
        sql, params = Record(User).where("age > ?", 15).is_not_null("name").compile_count()

        assert sql == "SELECT COUNT(*) FROM users WHERE age > ? AND name IS NOT NULL"
        assert params == [15]

    def test_where_without_value_binds_nothing(self, executor):
        sql, params = Record(User).where("name is not null").compile_count()

        assert sql == "SELECT COUNT(*) FROM users WHERE name is not null"
        assert params == []

    def test_where_binds_none(self, executor):
        _, params = Record(User).where("email = ?", None).compile_count()
        assert params == [None]

    def test_where_rejects_two_values(self, executor):
        with pytest.raises(TypeError):
            Record(User).where("age BETWEEN ? AND ?", 1, 2)

    def test_fragments_and_params_in_call_order(self, executor):
        record = (
            Record(User)
            .like("name", "j%")
            .is_not_null("email")
            .not_("age", 30)
            .where("id > ?", 5)
        )
        sql, params = record.compile_count()

        assert sql == (
            "SELECT COUNT(*) FROM users WHERE name LIKE ? AND email IS NOT NULL"
            " AND age != ? AND id > ?"
        )
        assert params == ["j%", 30, 5]
        assert sql.count("?") == len(params)

    def test_leading_and_stripped_once(self, executor):
        sql, _ = Record(User).where("a = 1").where("b = 2").compile_count()
        assert sql == "SELECT COUNT(*) FROM users WHERE a = 1 AND b = 2"

    def test_no_predicates_no_where(self, executor):
        sql, params = Record(User).compile_count()
        assert sql == "SELECT COUNT(*) FROM users"
        assert params == []

    def test_in_varargs_bound_as_one_param(self, executor):
        sql, params = Record(User).in_("id", 1, 2, 3).compile_select()

        assert sql == "SELECT * FROM users WHERE id IN ?"
        assert params == [[1, 2, 3]]

    def test_in_accepts_iterable(self, executor):
        _, params = Record(User).in_("id", (n for n in (4, 5))).compile_select()
        assert params == [[4, 5]]

    def test_in_single_string_value(self, executor):
        _, params = Record(User).in_("name", "jack").compile_select()
        assert params == [["jack"]]


class TestSelect:
    """Test SELECT compilation and all()."""

    def test_all_plain(self, executor):
        Record(User).all()
        assert executor.last == ("all", "SELECT * FROM users", [])

    def test_all_applies_predicates_and_order(self, executor):
        Record(User).where("age > ?", 15).order("age DESC").order("id").all()

        assert executor.last == (
            "all",
            "SELECT * FROM users WHERE age > ? ORDER BY age DESC, id",
            [15],
        )

    def test_all_with_in(self, executor):
        Record(User).in_("id", 1, 2, 3).all()
        assert executor.last == ("all", "SELECT * FROM users WHERE id IN ?", [[1, 2, 3]])

    def test_projection_and_group(self, executor):
        Record(User).select("age, COUNT(*) AS n").group("age").all()
        assert executor.last[1] == "SELECT age, COUNT(*) AS n FROM users GROUP BY age"

    def test_distinct(self, executor):
        Record(User).distinct("age").all()
        assert executor.last[1] == "SELECT DISTINCT age FROM users"

    def test_all_maps_rows(self, executor):
        executor.rows = [
            {"id": 1, "name": "jack", "age": 20, "email": None, "created_at": None},
            {"id": 2, "name": "rose", "age": 21, "email": "r@x.io", "created_at": None},
        ]
        users = Record(User).all()

        assert [u.id for u in users] == [1, 2]
        assert users[1].name == "rose"
        assert all(isinstance(u, User) for u in users)

    def test_limit(self, executor):
        Record(User).order("id").limit(5)
        assert executor.last[1] == "SELECT * FROM users ORDER BY id LIMIT 5"

    def test_page(self, executor):
        Record(User).where("age > ?", 1).page(3, 10)
        assert executor.last == (
            "all",
            "SELECT * FROM users WHERE age > ? LIMIT 10 OFFSET 20",
            [1],
        )

    def test_first_page_has_no_offset(self, executor):
        Record(User).page(1, 10)
        assert executor.last[1] == "SELECT * FROM users LIMIT 10"

    @pytest.mark.parametrize("page,size", [(0, 10), (1, 0), (-1, 5)])
    def test_page_rejects_bad_bounds(self, executor, page, size):
        record = Record(User).where("age > ?", 1)
        with pytest.raises(ValueError):
            record.page(page, size)
        assert_fresh(record)
        assert executor.calls == []


class TestFindById:
    """Test primary key lookup."""

    def test_sql(self, executor):
        Record(User).find_by_id(2)
        assert executor.last == ("first", "SELECT * FROM users WHERE id = ? LIMIT 1", [2])

    def test_custom_pk(self, executor):
        Record(Person).find_by_id(9)
        assert executor.last[1] == "SELECT * FROM people WHERE person_id = ? LIMIT 1"

    def test_found(self, executor):
        executor.first = {"id": 2, "name": "jack", "age": 20}
        user = Record(User).find_by_id(2)

        assert user == User(name="jack", age=20, id=2)

    def test_missing_returns_none(self, executor):
        executor.first = None
        assert Record(User).find_by_id(404) is None


class TestCount:
    """Test count()."""

    def test_returns_int(self, executor):
        executor.scalar = 7
        assert Record(User).where("age > ?", 15).is_not_null("name").count() == 7
        assert executor.last == (
            "scalar",
            "SELECT COUNT(*) FROM users WHERE age > ? AND name IS NOT NULL",
            [15],
        )

    def test_order_not_applied(self, executor):
        Record(User).order("id").count()
        assert executor.last[1] == "SELECT COUNT(*) FROM users"


class TestSave:
    """Test INSERT compilation and save()."""

    def test_save_user(self, executor):
        executor.key = 42
        key = Record(User).save(User(name="jack", age=20, email="j@x.io"))

        assert key == 42
        assert executor.last == (
            "insert:id",
            "INSERT INTO users (name, age, email) VALUES (?, ?, ?)",
            ["jack", 20, "j@x.io"],
        )

    def test_filters_unmappable_fields(self, executor):
        widget = Widget(name="gear", weight=2.5, tags=["a"], secret="s")
        sql, values = Record(Widget).compile_insert(widget)

        assert sql == "INSERT INTO widgets (name, weight, created_at) VALUES (?, ?, ?)"
        assert values == ["gear", 2.5, None]
        assert "serial" not in sql
        assert "secret" not in sql

    def test_set_primary_key_included(self, executor):
        sql, values = Record(Order).compile_insert(Order(total=1, id=5))
        assert sql == "INSERT INTO orders (total, id) VALUES (?, ?)"
        assert values == [1, 5]

    def test_exclude(self, executor):
        Record(User).exclude("email").execlud("age").save(User(name="jack", age=1, email="e"))
        assert executor.last[1:] == ("INSERT INTO users (name) VALUES (?)", ["jack"])

    def test_exclude_does_not_affect_reads(self, executor):
        Record(User).exclude("age").where("age > ?", 1).all()
        assert executor.last[1] == "SELECT * FROM users WHERE age > ?"

    def test_custom_pk_returned(self, executor):
        Record(Person).save(Person(name="ann"))
        assert executor.last == ("insert:person_id", "INSERT INTO people (name) VALUES (?)", ["ann"])

    def test_unreadable_field_raises_mapping_error(self, executor):
        class Broken:
            @property
            def name(self):
                raise AttributeError("no name")

        with pytest.raises(MappingError) as exc:
            Record(User).where("x = ?", 1).save(Broken())

        assert exc.value.details["field"] == "name"
        assert isinstance(exc.value.__cause__, AttributeError)
        assert executor.calls == []

    def test_nothing_persistable(self, executor):
        with pytest.raises(MappingError):
            Record(User).exclude("name", "age", "email").save(User())


class TestStateReset:
    """Test that terminal calls leave the builder fresh."""

    @pytest.mark.parametrize(
        "terminal",
        [
            lambda r: r.all(),
            lambda r: r.count(),
            lambda r: r.find_by_id(1),
            lambda r: r.limit(3),
            lambda r: r.page(2, 3),
            lambda r: r.save(User(name="x")),
        ],
    )
    def test_reset_after_success(self, executor, terminal):
        record = (
            Record(User).where("age > ?", 1).order("id").group("age")
            .select("id").exclude("email")
        )
        terminal(record)
        assert_fresh(record)

    def test_reset_after_execution_error(self, executor):
        executor.error = psycopg2.OperationalError("connection lost")
        record = Record(User).where("age > ?", 1).order("id")

        with pytest.raises(psycopg2.OperationalError):
            record.all()
        assert_fresh(record)

    def test_no_leak_into_next_call(self, executor):
        record = Record(User)
        record.where("age > ?", 15).like("name", "j%").count()
        record.all()

        assert executor.last == ("all", "SELECT * FROM users", [])

    def test_reset_after_mapping_error(self, executor):
        record = Record(User).where("age > ?", 1)
        with pytest.raises(MappingError):
            record.exclude("name", "age", "email").save(User())
        assert_fresh(record)


class TestConfiguration:
    """Test behaviour without an executor."""

    @pytest.mark.parametrize(
        "terminal",
        [
            lambda r: r.all(),
            lambda r: r.count(),
            lambda r: r.find_by_id(1),
            lambda r: r.save(User(name="x")),
        ],
    )
    def test_missing_executor(self, no_executor, terminal):
        record = Record(User).where("age > ?", 1)
        with pytest.raises(ConfigurationError):
            terminal(record)
        assert_fresh(record)


class TestCountGrouping:
    """Test that count() returns one total even when grouping is set."""

    def test_group_left_out_of_count(self, executor):
        executor.scalar = 4
        record = Record(User).where("age > ?", 1).group("age").order("age")

        assert record.count() == 4
        assert executor.last == ("scalar", "SELECT COUNT(*) FROM users WHERE age > ?", [1])
        assert_fresh(record)
