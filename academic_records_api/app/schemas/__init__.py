"""
Pydantic schema definitions for service payloads.

Each domain (students, courses, users) defines its own models for
input validation and for the records returned by the services.
Schemas are separated from the storage records to decouple the API
representation from persistence.
"""
