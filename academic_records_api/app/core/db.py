"""
SQLite entity store and simple migration system.

This module provides the default backend of the entity store.  Each
collection is a table; relationship arrays (``students.courses`` and
``courses.students``) are stored as JSON text and rewritten inside a
``BEGIN IMMEDIATE`` transaction, so a single record never loses a
concurrent set update.  Every call opens its own connection and closes
it on exit.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import json
import logging
import os
import sqlite3
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from .errors import StoreFailure, ValidationFailure
from .store import (
    ARRAY_FIELDS,
    COLLECTION_FIELDS,
    CONTAINS,
    DESCENDING,
    EQ,
    GTE,
    LTE,
    PREFIX,
    Condition,
    StoreQuery,
    check_array_field,
    check_field,
)

logger = logging.getLogger(__name__)

MIGRATIONS: List[tuple] = [
    # Migration 1: Initial schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS students (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            age INTEGER NOT NULL,
            major TEXT,
            courses TEXT NOT NULL DEFAULT '[]',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS courses (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            code TEXT NOT NULL,
            credits INTEGER NOT NULL,
            instructor TEXT NOT NULL,
            students TEXT NOT NULL DEFAULT '[]',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
        """,
    ),
    # Migration 2: indices for the common list filters
    (
        2,
        """
        CREATE INDEX IF NOT EXISTS idx_students_major ON students(major);
        CREATE INDEX IF NOT EXISTS idx_courses_code ON courses(code);
        CREATE INDEX IF NOT EXISTS idx_courses_instructor ON courses(instructor);
        """,
    ),
]


def get_database_path(db_url: str) -> str:
    """Compute the path to the SQLite database file.

    If ``db_url`` is an absolute path, use it directly.  Otherwise
    resolve it relative to the project root.
    """
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent  # academic_records_api/
    return str((base_dir / db_url).resolve())


class SqliteEntityStore:
    """Entity store backed by a single SQLite file."""

    def __init__(self, database_path: str) -> None:
        self.database_path = database_path

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    def get_connection(self) -> sqlite3.Connection:
        """Create and return a new SQLite connection with dict-like rows.

        SQLite's ``lower()`` only folds ASCII, so the connection gets a
        ``casefold()`` SQL function backed by ``str.casefold``.
        """
        conn = sqlite3.connect(self.database_path)
        conn.row_factory = sqlite3.Row
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        return conn

    @contextmanager
    def get_cursor(self, immediate: bool = False) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor, commit on success and always close the connection.

        With ``immediate`` the transaction takes the write lock up front,
        which makes read-modify-write sequences atomic.
        """
        conn = self.get_connection()
        try:
            if immediate:
                conn.execute("BEGIN IMMEDIATE")
            yield conn.cursor()
            conn.commit()
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise ValidationFailure(_integrity_message(exc)) from exc
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreFailure(f"Database error: {exc}") from exc
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create the database file if needed and apply pending migrations."""
        with self.get_cursor() as cursor:
            cursor.execute(
                "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
            )
            cursor.execute("SELECT MAX(version) as version FROM migrations")
            row = cursor.fetchone()
            current_version = row["version"] if row and row["version"] is not None else 0

            for version, sql in MIGRATIONS:
                if version > current_version:
                    logger.info("Applying migration %s to %s", version, self.database_path)
                    cursor.executescript(sql)
                    cursor.execute(
                        "INSERT INTO migrations (version) VALUES (?)", (version,)
                    )
                    current_version = version

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find(self, collection: str, query: StoreQuery) -> List[Dict[str, Any]]:
        check_field(collection, "id", allow_id=True)
        where_clauses, params = _where(collection, query.conditions)
        sql = f"SELECT * FROM {collection}"
        if where_clauses:
            sql += " WHERE " + " AND ".join(where_clauses)
        if query.sort:
            sort_field, direction = query.sort
            check_field(collection, sort_field, allow_id=True)
            order = "DESC" if direction == DESCENDING else "ASC"
            sql += f" ORDER BY {sort_field} {order}, rowid ASC"
        else:
            sql += " ORDER BY rowid ASC"
        # SQLite requires a LIMIT before OFFSET; -1 means unlimited.
        sql += " LIMIT ? OFFSET ?"
        params.extend([query.limit if query.limit is not None else -1, query.skip])
        logger.debug("find %s: %s %s", collection, sql, params)
        with self.get_cursor() as cursor:
            rows = cursor.execute(sql, tuple(params)).fetchall()
        return [_row_to_record(collection, row) for row in rows]

    def find_by_id(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        check_field(collection, "id", allow_id=True)
        with self.get_cursor() as cursor:
            row = cursor.execute(
                f"SELECT * FROM {collection} WHERE id = ?", (record_id,)
            ).fetchone()
        return _row_to_record(collection, row) if row else None

    def find_by_ids(self, collection: str, record_ids: Sequence[str]) -> List[Dict[str, Any]]:
        check_field(collection, "id", allow_id=True)
        if not record_ids:
            return []
        placeholders = ", ".join("?" for _ in record_ids)
        with self.get_cursor() as cursor:
            rows = cursor.execute(
                f"SELECT * FROM {collection} WHERE id IN ({placeholders})",
                tuple(record_ids),
            ).fetchall()
        by_id = {row["id"]: _row_to_record(collection, row) for row in rows}
        return [by_id[record_id] for record_id in record_ids if record_id in by_id]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, collection: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        check_field(collection, "id", allow_id=True)
        record_id = uuid.uuid4().hex
        columns = ["id"]
        values: List[Any] = [record_id]
        for key, value in fields.items():
            if key in ARRAY_FIELDS[collection]:
                value = json.dumps(_unique(value or []))
            else:
                check_field(collection, key)
            columns.append(key)
            values.append(value)
        placeholders = ", ".join("?" for _ in columns)
        with self.get_cursor() as cursor:
            cursor.execute(
                f"INSERT INTO {collection} ({', '.join(columns)}) VALUES ({placeholders})",
                tuple(values),
            )
            row = cursor.execute(
                f"SELECT * FROM {collection} WHERE id = ?", (record_id,)
            ).fetchone()
        return _row_to_record(collection, row)

    def update_by_id(
        self, collection: str, record_id: str, fields: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        check_field(collection, "id", allow_id=True)
        for key in fields:
            check_field(collection, key)
        with self.get_cursor() as cursor:
            if fields:
                assignments = ", ".join(f"{key} = ?" for key in fields)
                cursor.execute(
                    f"UPDATE {collection} SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (*fields.values(), record_id),
                )
            row = cursor.execute(
                f"SELECT * FROM {collection} WHERE id = ?", (record_id,)
            ).fetchone()
        return _row_to_record(collection, row) if row else None

    def delete_by_id(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        check_field(collection, "id", allow_id=True)
        with self.get_cursor(immediate=True) as cursor:
            row = cursor.execute(
                f"SELECT * FROM {collection} WHERE id = ?", (record_id,)
            ).fetchone()
            if not row:
                return None
            cursor.execute(f"DELETE FROM {collection} WHERE id = ?", (record_id,))
        return _row_to_record(collection, row)

    def pull_from_array_field(self, collection: str, field_name: str, value: str) -> int:
        """Remove ``value`` from ``field_name`` of every record holding it."""
        check_array_field(collection, field_name)
        with self.get_cursor(immediate=True) as cursor:
            rows = cursor.execute(
                f"SELECT id, {field_name} FROM {collection} "
                f"WHERE EXISTS (SELECT 1 FROM json_each({collection}.{field_name}) "
                f"WHERE json_each.value = ?)",
                (value,),
            ).fetchall()
            for row in rows:
                remaining = [item for item in json.loads(row[field_name]) if item != value]
                cursor.execute(
                    f"UPDATE {collection} SET {field_name} = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (json.dumps(remaining), row["id"]),
                )
        return len(rows)

    def add_to_set_field(self, collection: str, record_id: str, field_name: str, value: str) -> bool:
        return self._rewrite_array(
            collection,
            record_id,
            field_name,
            lambda items: items if value in items else items + [value],
        )

    def remove_from_set_field(self, collection: str, record_id: str, field_name: str, value: str) -> bool:
        return self._rewrite_array(
            collection,
            record_id,
            field_name,
            lambda items: [item for item in items if item != value],
        )

    def _rewrite_array(
        self,
        collection: str,
        record_id: str,
        field_name: str,
        change: Callable[[List[str]], List[str]],
    ) -> bool:
        """Apply ``change`` to one record's array; ``False`` if the record is missing."""
        check_array_field(collection, field_name)
        with self.get_cursor(immediate=True) as cursor:
            row = cursor.execute(
                f"SELECT {field_name} FROM {collection} WHERE id = ?", (record_id,)
            ).fetchone()
            if not row:
                return False
            items = json.loads(row[field_name])
            updated = change(items)
            if updated != items:
                cursor.execute(
                    f"UPDATE {collection} SET {field_name} = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (json.dumps(updated), record_id),
                )
        return True


def _where(collection: str, conditions: Sequence[Condition]) -> tuple:
    """Translate conditions into SQL fragments and parameters."""
    clauses: List[str] = []
    params: List[Any] = []
    for condition in conditions:
        check_field(collection, condition.field)
        column = condition.field
        if condition.op == EQ:
            clauses.append(f"{column} = ?")
        elif condition.op == CONTAINS:
            # instr() matches literally, so user input needs no escaping.
            clauses.append(f"instr(casefold({column}), casefold(?)) > 0")
        elif condition.op == PREFIX:
            clauses.append(f"instr(casefold({column}), casefold(?)) = 1")
        elif condition.op == GTE:
            clauses.append(f"{column} >= ?")
        elif condition.op == LTE:
            clauses.append(f"{column} <= ?")
        params.append(condition.value)
    return clauses, params


def _row_to_record(collection: str, row: sqlite3.Row) -> Dict[str, Any]:
    record: Dict[str, Any] = {"id": row["id"]}
    for name in COLLECTION_FIELDS[collection]:
        record[name] = row[name]
    for name in ARRAY_FIELDS[collection]:
        record[name] = json.loads(row[name]) if row[name] else []
    return record


def _casefold(value: Any) -> Any:
    return value.casefold() if isinstance(value, str) else value


def _unique(items: Sequence[str]) -> List[str]:
    seen: List[str] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen


def _integrity_message(exc: sqlite3.IntegrityError) -> str:
    text = str(exc)
    if "UNIQUE constraint failed" in text:
        # "UNIQUE constraint failed: students.email" -> "email"
        field_name = text.rsplit(".", 1)[-1]
        return f"A record with this {field_name} already exists"
    return f"Constraint violated: {text}"
