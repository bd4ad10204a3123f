"""
MongoDB entity store.

Selected when ``DATABASE_URL`` is a MongoDB connection string.  Record
ids are ``ObjectId`` values and relationship arrays hold ``ObjectId``
references; both are converted to strings on the way out so services
see the same record shape as with the SQLite backend.  Set updates use
``$addToSet`` and ``$pull``, which MongoDB applies atomically per
document.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from .errors import StoreFailure, ValidationFailure
from .store import (
    ARRAY_FIELDS,
    COLLECTION_FIELDS,
    CONTAINS,
    EQ,
    GTE,
    LTE,
    PREFIX,
    STUDENTS,
    USERS,
    Condition,
    StoreQuery,
    check_array_field,
    check_field,
)

logger = logging.getLogger(__name__)


def _object_id(value: Any) -> Optional[ObjectId]:
    """Return ``value`` as an ``ObjectId`` or ``None`` when it is not one."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _reference(value: str) -> Any:
    # Ids that are not ObjectIds are stored verbatim so they can still
    # be pulled again later.
    oid = _object_id(value)
    return oid if oid is not None else value


class MongoEntityStore:
    """Entity store backed by a MongoDB database."""

    def __init__(self, client, database_name: str) -> None:
        self.client = client
        self.db = client[database_name]

    def initialize(self) -> None:
        """Create the unique email indexes."""
        try:
            self.db[STUDENTS].create_index("email", unique=True)
            self.db[USERS].create_index("email", unique=True)
        except PyMongoError as exc:
            raise StoreFailure(f"Database error: {exc}") from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find(self, collection: str, query: StoreQuery) -> List[Dict[str, Any]]:
        check_field(collection, "id", allow_id=True)
        mongo_filter = _filter(collection, query.conditions)
        logger.debug("find %s: %s", collection, mongo_filter)
        try:
            cursor = self.db[collection].find(mongo_filter)
            if query.sort:
                sort_field, direction = query.sort
                check_field(collection, sort_field, allow_id=True)
                key = "_id" if sort_field == "id" else sort_field
                cursor = cursor.sort([(key, direction), ("_id", 1)])
            cursor = cursor.skip(query.skip)
            if query.limit is not None:
                cursor = cursor.limit(query.limit)
            return [_to_record(collection, doc) for doc in cursor]
        except PyMongoError as exc:
            raise StoreFailure(f"Database error: {exc}") from exc

    def find_by_id(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        check_field(collection, "id", allow_id=True)
        oid = _object_id(record_id)
        if oid is None:
            return None
        try:
            doc = self.db[collection].find_one({"_id": oid})
        except PyMongoError as exc:
            raise StoreFailure(f"Database error: {exc}") from exc
        return _to_record(collection, doc) if doc else None

    def find_by_ids(self, collection: str, record_ids: Sequence[str]) -> List[Dict[str, Any]]:
        check_field(collection, "id", allow_id=True)
        oids = [oid for oid in (_object_id(value) for value in record_ids) if oid is not None]
        if not oids:
            return []
        try:
            docs = list(self.db[collection].find({"_id": {"$in": oids}}))
        except PyMongoError as exc:
            raise StoreFailure(f"Database error: {exc}") from exc
        by_id = {str(doc["_id"]): _to_record(collection, doc) for doc in docs}
        return [by_id[record_id] for record_id in record_ids if record_id in by_id]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, collection: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        check_field(collection, "id", allow_id=True)
        document: Dict[str, Any] = {}
        for key, value in fields.items():
            if key in ARRAY_FIELDS[collection]:
                refs: List[Any] = []
                for item in value or []:
                    ref = _reference(item)
                    if ref not in refs:
                        refs.append(ref)
                document[key] = refs
            else:
                check_field(collection, key)
                document[key] = value
        for key in ARRAY_FIELDS[collection]:
            document.setdefault(key, [])
        try:
            result = self.db[collection].insert_one(document)
        except DuplicateKeyError as exc:
            raise ValidationFailure(_duplicate_message(exc)) from exc
        except PyMongoError as exc:
            raise StoreFailure(f"Database error: {exc}") from exc
        document["_id"] = result.inserted_id
        return _to_record(collection, document)

    def update_by_id(
        self, collection: str, record_id: str, fields: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        check_field(collection, "id", allow_id=True)
        for key in fields:
            check_field(collection, key)
        oid = _object_id(record_id)
        if oid is None:
            return None
        try:
            if fields:
                doc = self.db[collection].find_one_and_update(
                    {"_id": oid},
                    {"$set": dict(fields)},
                    return_document=ReturnDocument.AFTER,
                )
            else:
                doc = self.db[collection].find_one({"_id": oid})
        except DuplicateKeyError as exc:
            raise ValidationFailure(_duplicate_message(exc)) from exc
        except PyMongoError as exc:
            raise StoreFailure(f"Database error: {exc}") from exc
        return _to_record(collection, doc) if doc else None

    def delete_by_id(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        check_field(collection, "id", allow_id=True)
        oid = _object_id(record_id)
        if oid is None:
            return None
        try:
            doc = self.db[collection].find_one_and_delete({"_id": oid})
        except PyMongoError as exc:
            raise StoreFailure(f"Database error: {exc}") from exc
        return _to_record(collection, doc) if doc else None

    def pull_from_array_field(self, collection: str, field_name: str, value: str) -> int:
        check_array_field(collection, field_name)
        ref = _reference(value)
        try:
            result = self.db[collection].update_many(
                {field_name: ref}, {"$pull": {field_name: ref}}
            )
        except PyMongoError as exc:
            raise StoreFailure(f"Database error: {exc}") from exc
        return result.modified_count

    def add_to_set_field(self, collection: str, record_id: str, field_name: str, value: str) -> bool:
        return self._update_array(collection, record_id, field_name, "$addToSet", value)

    def remove_from_set_field(self, collection: str, record_id: str, field_name: str, value: str) -> bool:
        return self._update_array(collection, record_id, field_name, "$pull", value)

    def _update_array(
        self, collection: str, record_id: str, field_name: str, operator: str, value: str
    ) -> bool:
        check_array_field(collection, field_name)
        oid = _object_id(record_id)
        if oid is None:
            return False
        try:
            result = self.db[collection].update_one(
                {"_id": oid}, {operator: {field_name: _reference(value)}}
            )
        except PyMongoError as exc:
            raise StoreFailure(f"Database error: {exc}") from exc
        return result.matched_count > 0


def _filter(collection: str, conditions: Sequence[Condition]) -> Dict[str, Any]:
    """Translate conditions into a MongoDB filter document."""
    mongo_filter: Dict[str, Any] = {}
    for condition in conditions:
        check_field(collection, condition.field)
        if condition.op == EQ:
            mongo_filter[condition.field] = condition.value
            continue
        if condition.op == CONTAINS:
            clause = {"$regex": re.escape(condition.value), "$options": "i"}
        elif condition.op == PREFIX:
            clause = {"$regex": "^" + re.escape(condition.value), "$options": "i"}
        elif condition.op == GTE:
            clause = {"$gte": condition.value}
        else:
            clause = {"$lte": condition.value}
        # Range bounds on the same field merge into one clause.
        mongo_filter.setdefault(condition.field, {}).update(clause)
    return mongo_filter


def _to_record(collection: str, doc: Dict[str, Any]) -> Dict[str, Any]:
    record: Dict[str, Any] = {"id": str(doc["_id"])}
    for name in COLLECTION_FIELDS[collection]:
        record[name] = doc.get(name)
    for name in ARRAY_FIELDS[collection]:
        record[name] = [str(item) for item in doc.get(name, [])]
    return record


def _duplicate_message(exc: DuplicateKeyError) -> str:
    details = getattr(exc, "details", None) or {}
    key_value = details.get("keyValue") or {}
    if key_value:
        field_name = next(iter(key_value))
        return f"A record with this {field_name} already exists"
    return "A record with this email already exists"
