"""Entry point for the Academic Records API.

This script launches the GraphQL API with Uvicorn.  It is intended to
be executed from the project root, for example under Docker, where you
only specify a single Python file to run.

Configuration such as ``JWT_SECRET``, ``DATABASE_URL`` and the listen
address (``HOST``, ``PORT``) should be placed in a `.env` file in the
same directory.

Usage:
    python run.py
"""
import asyncio

from uvicorn import Config, Server

from academic_records_api.app.core.config import settings
from academic_records_api.app.main import app


async def main() -> None:
    """Serve the API until interrupted."""
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
