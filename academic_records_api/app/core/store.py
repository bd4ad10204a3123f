"""
Entity store interface shared by the SQLite and MongoDB backends.

Services never talk to a database driver directly.  They describe reads
with a :class:`StoreQuery` and call the operations of
:class:`EntityStore`; the backend translates that into SQL or a MongoDB
filter document.  Records cross this boundary as plain dictionaries
with a string ``id`` and relationship fields as lists of string ids.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

STUDENTS = "students"
COURSES = "courses"
USERS = "users"

# Scalar fields per collection.  Relationship arrays are listed
# separately because they can only be changed through the set
# operations, never through ``update_by_id``.
COLLECTION_FIELDS: Dict[str, Tuple[str, ...]] = {
    STUDENTS: ("name", "email", "age", "major"),
    COURSES: ("title", "code", "credits", "instructor"),
    USERS: ("email", "password"),
}

ARRAY_FIELDS: Dict[str, Tuple[str, ...]] = {
    STUDENTS: ("courses",),
    COURSES: ("students",),
    USERS: (),
}

# Condition operators understood by every backend.
EQ = "eq"
CONTAINS = "contains"
PREFIX = "prefix"
GTE = "gte"
LTE = "lte"

OPERATORS = frozenset({EQ, CONTAINS, PREFIX, GTE, LTE})

ASCENDING = 1
DESCENDING = -1


@dataclass(frozen=True)
class Condition:
    """A single predicate on a scalar field."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in OPERATORS:
            raise ValueError(f"Unsupported operator {self.op!r}")


@dataclass
class StoreQuery:
    """Filter, sort and pagination parameters for ``EntityStore.find``.

    Conditions are combined with AND.  ``sort`` is a ``(field,
    direction)`` pair or ``None`` for the store's natural (insertion)
    order.  ``limit`` of ``None`` means no limit.
    """

    conditions: List[Condition] = field(default_factory=list)
    sort: Optional[Tuple[str, int]] = None
    skip: int = 0
    limit: Optional[int] = None


def check_field(collection: str, name: str, *, allow_id: bool = False) -> None:
    """Raise ``ValueError`` unless ``name`` is a scalar field of ``collection``."""
    if collection not in COLLECTION_FIELDS:
        raise ValueError(f"Unknown collection {collection!r}")
    if allow_id and name == "id":
        return
    if name not in COLLECTION_FIELDS[collection]:
        raise ValueError(f"Unknown field {name!r} for {collection}")


def check_array_field(collection: str, name: str) -> None:
    if name not in ARRAY_FIELDS.get(collection, ()):
        raise ValueError(f"{name!r} is not an array field of {collection}")


class EntityStore(Protocol):
    """Operations every backend provides."""

    def initialize(self) -> None:
        ...

    def find(self, collection: str, query: StoreQuery) -> List[Dict[str, Any]]:
        ...

    def find_by_id(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        ...

    def find_by_ids(self, collection: str, record_ids: Sequence[str]) -> List[Dict[str, Any]]:
        ...

    def create(self, collection: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def update_by_id(
        self, collection: str, record_id: str, fields: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        ...

    def delete_by_id(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        ...

    def pull_from_array_field(self, collection: str, field_name: str, value: str) -> int:
        ...

    def add_to_set_field(self, collection: str, record_id: str, field_name: str, value: str) -> bool:
        ...

    def remove_from_set_field(self, collection: str, record_id: str, field_name: str, value: str) -> bool:
        ...


def is_mongo_url(url: str) -> bool:
    return url.startswith(("mongodb://", "mongodb+srv://"))


def create_store(database_url: str, mongo_database: str = "academic_records") -> EntityStore:
    """Build the backend selected by ``database_url``.

    MongoDB connection strings select :class:`MongoEntityStore`; anything
    else is treated as a SQLite file path.
    """
    if is_mongo_url(database_url):
        from pymongo import MongoClient

        from .mongo import MongoEntityStore

        return MongoEntityStore(MongoClient(database_url), mongo_database)

    from .db import SqliteEntityStore, get_database_path

    return SqliteEntityStore(get_database_path(database_url))
