"""
Service layer abstraction.

Each service encapsulates business logic for a domain and works against
an ``EntityStore``, so the same code runs on SQLite and MongoDB.
Mutating operations take the caller's resolved identity as their first
argument and reject anonymous callers before touching the store.
"""
