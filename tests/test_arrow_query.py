"""
Tests for the Arrow query pipeline.

Covers:
- ordering text over flat and struct columns
- null_placement
- filters with plain and captured predicates
- projection into Arrow schemas, dataclasses and TypedDicts
- pandas interop (skipped when pandas is missing)
"""

from dataclasses import dataclass
from typing import Optional, TypedDict

import pyarrow as pa
import pytest

from dynq import ArrowQuery, OrderedQueryable, UnknownMember, schema_from_arrow, synthesize


def make_table():
    return pa.table(
        {
            "id": [3, 1, 2, 4],
            "name": ["Cid", "Ann", "Bob", "Dee"],
            "age": [25, 30, None, 25],
            "address": [
                {"city": "Berlin"},
                {"city": "Paris"},
                None,
                {"city": "Amsterdam"},
            ],
        }
    )


def ids(query):
    return query.to_arrow()["id"].to_pylist()


@pytest.fixture
def users():
    return ArrowQuery(make_table(), name="User")


@dataclass
class Person:
    id: int
    age: Optional[int]


class IdRow(TypedDict):
    id: int
    nickname: str


class TestArrowQueryBasics:
    def test_schema_from_table(self, users):
        assert users.schema.name == "User"
        assert users.schema.names() == ["id", "name", "age", "address"]
        assert users.schema.get("address").member_schema().names() == ["city"]

    def test_rows_are_dicts(self, users):
        assert users.first() == {"id": 3, "name": "Cid", "age": 25, "address": {"city": "Berlin"}}

    def test_len(self, users):
        assert len(users) == 4

    def test_requires_table(self):
        with pytest.raises(TypeError, match="pyarrow.Table"):
            ArrowQuery([{"id": 1}])

    def test_invalid_null_placement(self):
        with pytest.raises(ValueError, match="null_placement"):
            ArrowQuery(make_table(), null_placement="middle")


class TestArrowOrdering:
    def test_order_by_text(self, users):
        ordered = users.order_by("id desc")
        assert isinstance(ordered, OrderedQueryable)
        assert ids(ordered) == [4, 3, 2, 1]

    def test_nulls_at_start_by_default(self, users):
        assert ids(users.order_by("age desc, id")) == [2, 1, 3, 4]

    def test_nulls_at_end(self):
        users = ArrowQuery(make_table(), null_placement="at_end")
        assert ids(users.order_by("age desc, id")) == [1, 3, 4, 2]
        assert ids(users.order_by("age, id")) == [3, 4, 1, 2]

    def test_struct_member_chain(self, users):
        assert ids(users.order_by("address.city")) == [2, 4, 3, 1]

    def test_case_insensitive_chain(self, users):
        assert ids(users.order_by("Address.City DESC")) == [2, 1, 3, 4]

    def test_then_by(self, users):
        ordered = users.order_by("age").then_by("name desc")
        assert ordered.sort_keys == [("age", False), ("name", True)]
        assert ids(ordered) == [2, 4, 3, 1]

    def test_unknown_struct_member(self, users):
        with pytest.raises(UnknownMember) as exc_info:
            users.order_by("address.zip")
        assert exc_info.value.type_name == "User.address"
        assert exc_info.value.position == 1

    def test_all_null_key_keeps_order(self, users):
        assert ids(users.order_by(lambda r: None)) == [3, 1, 2, 4]

    def test_mixed_key_types(self, users):
        with pytest.raises(TypeError, match="Sort key"):
            users.order_by(lambda r: r["id"] if r["id"] > 2 else "low").to_arrow()

    def test_empty_table(self):
        empty = ArrowQuery(pa.table({"id": pa.array([], type=pa.int64())}))
        assert ids(empty.order_by("id desc")) == []


class TestArrowFilter:
    def test_plain_predicate(self, users):
        assert ids(users.where(lambda r: r["age"] == 25)) == [3, 4]

    def test_captured_predicate(self, users):
        adult = users.capture(lambda r: r.age > 26)
        assert ids(users.where(adult)) == [1]

    def test_where_if_bound(self, users):
        older = users.capture(lambda r, v: r.age >= v, None)
        assert ids(users.where_if_bound(25, older)) == [3, 1, 4]
        assert users.where_if_bound(None, older) is users

    def test_struct_member_in_predicate(self, users):
        in_city = users.capture(lambda r, v: r.address.city == v, None)
        assert ids(users.where_if_not_null("Paris", in_city)) == [1]

    def test_filter_after_order_keeps_order(self, users):
        result = users.order_by("id desc").where(lambda r: r["age"] is not None)
        assert ids(result) == [4, 3, 1]


class TestArrowProjection:
    def test_project_into_arrow_schema(self, users):
        target = schema_from_arrow(pa.schema([("id", pa.string()), ("age", pa.int64())]), "Out")
        projected = users.map_to(target)
        assert isinstance(projected, ArrowQuery)
        table = projected.to_arrow()
        assert table.schema.field("id").type == pa.string()
        assert table["id"].to_pylist() == ["3", "1", "2", "4"]
        assert table["age"].to_pylist() == [25, 30, None, 25]

    def test_project_into_dataclass(self, users):
        people = users.order_by("id").to_list(Person)
        assert people == [Person(1, 30), Person(2, None), Person(3, 25), Person(4, 25)]

    def test_project_into_typeddict(self, users):
        projected = users.map_to(IdRow)
        assert isinstance(projected, ArrowQuery)
        assert projected.first() == {"id": 3, "nickname": None}

    def test_select_plan_built_by_another_query_over_same_table(self, users):
        plan = synthesize(users.schema, users.schema)
        other = ArrowQuery(make_table(), name="User")
        assert other.schema is not users.schema
        assert ids(other.select(plan)) == [3, 1, 2, 4]

    def test_select_plan_for_different_columns(self, users):
        plan = synthesize(users.schema, IdRow)
        narrow = ArrowQuery(pa.table({"id": [1]}), name="User")
        with pytest.raises(ValueError, match="Projection plan"):
            narrow.select(plan)


class TestPandasInterop:
    def test_from_pandas(self):
        pd = pytest.importorskip("pandas")
        df = pd.DataFrame({"id": [2, 1, 3], "score": [0.5, 0.9, 0.1]})
        query = ArrowQuery.from_pandas(df)
        assert ids(query.order_by("score desc")) == [1, 2, 3]

    def test_from_pandas_requires_dataframe(self):
        pytest.importorskip("pandas")
        with pytest.raises(TypeError):
            ArrowQuery.from_pandas({"id": [1]})

    def test_to_pandas(self, users):
        pytest.importorskip("pandas")
        df = users.order_by("id").to_pandas()
        assert list(df["id"]) == [1, 2, 3, 4]
