"""
Contract tests for the entity store backends.

Every test runs against SQLite and against MongoDB (mongomock):
- CRUD and unique email enforcement
- Filtering, sorting and pagination through StoreQuery
- Set semantics of the relationship array operations
"""

import pytest

from academic_records_api.app.core.errors import ValidationFailure
from academic_records_api.app.core.store import (
    ASCENDING,
    CONTAINS,
    COURSES,
    DESCENDING,
    EQ,
    GTE,
    LTE,
    PREFIX,
    STUDENTS,
    Condition,
    StoreQuery,
)


def _student(store, name, email, age, major=None):
    return store.create(
        STUDENTS, {"name": name, "email": email, "age": age, "major": major, "courses": []}
    )


def _course(store, title, code, credits=3, instructor="Grace"):
    return store.create(
        COURSES,
        {"title": title, "code": code, "credits": credits, "instructor": instructor, "students": []},
    )


class TestCrud:
    def test_create_assigns_id(self, store):
        record = _student(store, "Ada", "ada@x.com", 22)
        assert record["id"]
        assert record["name"] == "Ada"
        assert record["courses"] == []

        fetched = store.find_by_id(STUDENTS, record["id"])
        assert fetched == record

    def test_find_by_unknown_id(self, store):
        assert store.find_by_id(STUDENTS, "does-not-exist") is None

    def test_duplicate_email_rejected(self, store):
        _student(store, "Ada", "ada@x.com", 22)
        with pytest.raises(ValidationFailure):
            _student(store, "Other Ada", "ada@x.com", 30)

    def test_update_by_id(self, store):
        record = _student(store, "Ada", "ada@x.com", 22)
        updated = store.update_by_id(STUDENTS, record["id"], {"major": "Maths", "age": 23})
        assert updated["major"] == "Maths"
        assert updated["age"] == 23
        assert updated["name"] == "Ada"

    def test_update_unknown_id(self, store):
        assert store.update_by_id(STUDENTS, "does-not-exist", {"age": 1}) is None

    def test_update_rejects_relationship_field(self, store):
        record = _student(store, "Ada", "ada@x.com", 22)
        with pytest.raises(ValueError):
            store.update_by_id(STUDENTS, record["id"], {"courses": ["x"]})

    def test_delete_by_id(self, store):
        record = _course(store, "Intro", "CS101")
        deleted = store.delete_by_id(COURSES, record["id"])
        assert deleted["id"] == record["id"]
        assert store.find_by_id(COURSES, record["id"]) is None
        assert store.delete_by_id(COURSES, record["id"]) is None

    def test_find_by_ids_keeps_order_and_skips_missing(self, store):
        first = _course(store, "Intro", "CS101")
        second = _course(store, "Algorithms", "CS201")
        records = store.find_by_ids(COURSES, [second["id"], "missing", first["id"]])
        assert [r["id"] for r in records] == [second["id"], first["id"]]


class TestFind:
    @pytest.fixture
    def students(self, store):
        return [
            _student(store, "Ada Lovelace", "ada@x.com", 22, "Maths"),
            _student(store, "Alan Turing", "alan@x.com", 25, "Maths"),
            _student(store, "Grace Hopper", "grace@x.com", 19, "Physics"),
            _student(store, "Edsger Dijkstra", "edsger@x.com", 30),
        ]

    def test_unfiltered_returns_insertion_order(self, store, students):
        records = store.find(STUDENTS, StoreQuery())
        assert [r["email"] for r in records] == [s["email"] for s in students]

    def test_equality(self, store, students):
        records = store.find(STUDENTS, StoreQuery([Condition("major", EQ, "Maths")]))
        assert {r["name"] for r in records} == {"Ada Lovelace", "Alan Turing"}

    def test_contains_is_case_insensitive(self, store, students):
        records = store.find(STUDENTS, StoreQuery([Condition("name", CONTAINS, "HOP")]))
        assert [r["name"] for r in records] == ["Grace Hopper"]

    def test_contains_folds_non_ascii_case(self, store):
        _student(store, "Émile Zola", "emile@x.com", 40)
        _student(store, "Ada Lovelace", "ada@x.com", 22)
        for needle in ("émile", "ÉMILE", "ZOLA"):
            records = store.find(STUDENTS, StoreQuery([Condition("name", CONTAINS, needle)]))
            assert [r["name"] for r in records] == ["Émile Zola"]

    def test_prefix_folds_non_ascii_case(self, store):
        _course(store, "Électronique", "ÉLEC200")
        _course(store, "Intro", "CS101")
        records = store.find(COURSES, StoreQuery([Condition("code", PREFIX, "élec")]))
        assert [r["code"] for r in records] == ["ÉLEC200"]

    def test_contains_is_literal(self, store, students):
        records = store.find(STUDENTS, StoreQuery([Condition("name", CONTAINS, ".*")]))
        assert records == []

    def test_inclusive_range(self, store, students):
        query = StoreQuery([Condition("age", GTE, 22), Condition("age", LTE, 25)])
        records = store.find(STUDENTS, query)
        assert sorted(r["age"] for r in records) == [22, 25]

    def test_sort_skip_limit(self, store, students):
        query = StoreQuery(sort=("age", DESCENDING), skip=1, limit=2)
        assert [r["age"] for r in store.find(STUDENTS, query)] == [25, 22]

        query = StoreQuery(sort=("name", ASCENDING), limit=1)
        assert [r["name"] for r in store.find(STUDENTS, query)] == ["Ada Lovelace"]

    def test_prefix(self, store):
        _course(store, "Intro", "CS101")
        _course(store, "Calculus", "MATH101")
        _course(store, "Systems", "cs301")
        records = store.find(COURSES, StoreQuery([Condition("code", PREFIX, "cs")]))
        assert sorted(r["code"] for r in records) == ["CS101", "cs301"]


class TestArrayOperations:
    def test_add_to_set_is_idempotent(self, store):
        student = _student(store, "Ada", "ada@x.com", 22)
        course = _course(store, "Intro", "CS101")

        assert store.add_to_set_field(STUDENTS, student["id"], "courses", course["id"])
        assert store.add_to_set_field(STUDENTS, student["id"], "courses", course["id"])
        assert store.find_by_id(STUDENTS, student["id"])["courses"] == [course["id"]]

    def test_set_operations_on_missing_record(self, store):
        course = _course(store, "Intro", "CS101")
        assert not store.add_to_set_field(STUDENTS, "missing", "courses", course["id"])
        assert not store.remove_from_set_field(STUDENTS, "missing", "courses", course["id"])

    def test_remove_from_set(self, store):
        student = _student(store, "Ada", "ada@x.com", 22)
        first = _course(store, "Intro", "CS101")
        second = _course(store, "Algorithms", "CS201")
        store.add_to_set_field(STUDENTS, student["id"], "courses", first["id"])
        store.add_to_set_field(STUDENTS, student["id"], "courses", second["id"])

        assert store.remove_from_set_field(STUDENTS, student["id"], "courses", first["id"])
        assert store.remove_from_set_field(STUDENTS, student["id"], "courses", first["id"])
        assert store.find_by_id(STUDENTS, student["id"])["courses"] == [second["id"]]

    def test_pull_from_every_record(self, store):
        course = _course(store, "Intro", "CS101")
        other = _course(store, "Algorithms", "CS201")
        ada = _student(store, "Ada", "ada@x.com", 22)
        alan = _student(store, "Alan", "alan@x.com", 25)
        grace = _student(store, "Grace", "grace@x.com", 19)
        for student in (ada, alan):
            store.add_to_set_field(STUDENTS, student["id"], "courses", course["id"])
        store.add_to_set_field(STUDENTS, ada["id"], "courses", other["id"])

        assert store.pull_from_array_field(STUDENTS, "courses", course["id"]) == 2
        assert store.find_by_id(STUDENTS, ada["id"])["courses"] == [other["id"]]
        assert store.find_by_id(STUDENTS, alan["id"])["courses"] == []
        assert store.find_by_id(STUDENTS, grace["id"])["courses"] == []

    def test_array_operations_reject_scalar_fields(self, store):
        student = _student(store, "Ada", "ada@x.com", 22)
        with pytest.raises(ValueError):
            store.add_to_set_field(STUDENTS, student["id"], "name", "x")
