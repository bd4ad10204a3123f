"""
Main entrypoint for the Academic Records API.

This module assembles the FastAPI application, sets up logging, creates
the entity store and mounts the GraphQL router.  The ``create_app``
function builds and configures the app, which is then instantiated at
module import time as ``app``, e.g.::

    uvicorn academic_records_api.app.main:app --reload
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from .api.graphql import create_graphql_router
from .core.config import settings
from .core.logging_config import setup_logging
from .core.store import EntityStore, create_store


def create_app(store: Optional[EntityStore] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    store : Optional[EntityStore]
        Entity store to serve.  Defaults to the backend selected by
        ``settings.database_url``.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    # Initialise logging before anything else so that the store and the
    # router can log during setup.
    setup_logging(settings.log_level, settings.log_file or None)

    if store is None:
        store = create_store(settings.database_url, settings.mongo_database)

    # Apply migrations / create indexes once the server starts.
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        store.initialize()
        yield

    app = FastAPI(
        title=settings.project_name,
        version=settings.api_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.store = store

    app.include_router(create_graphql_router(), prefix=settings.graphql_path)

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"status": "ok"}

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
