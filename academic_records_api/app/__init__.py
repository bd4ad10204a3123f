"""
Application package initializer.

The project is organised into a few layers: ``core`` holds settings,
logging, security and the entity store backends; ``services`` holds the
business logic for students, courses, enrollment and accounts; ``api``
exposes everything through a GraphQL schema mounted on FastAPI.
"""

from .main import app  # noqa: F401
