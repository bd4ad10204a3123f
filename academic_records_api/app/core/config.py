"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  A ``.env`` file in the working directory is
loaded first, so local development does not need exported variables.
Defaults are provided for all fields.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

SUPPORTED_ALGORITHM = "HS256"


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Academic Records API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    # JWT_SECRET is the name used by existing deployments; SECRET_KEY is
    # accepted as a fallback.
    secret_key: str = os.getenv("JWT_SECRET", os.getenv("SECRET_KEY", "change_me"))
    algorithm: str = os.getenv("ALGORITHM", SUPPORTED_ALGORITHM)

    # Tokens issued on signup live longer than tokens issued on login.
    signup_token_expire_minutes: int = int(os.getenv("SIGNUP_TOKEN_EXPIRE_MINUTES", "120"))
    login_token_expire_minutes: int = int(os.getenv("LOGIN_TOKEN_EXPIRE_MINUTES", "60"))

    # Either a path to a SQLite file (resolved relative to the project
    # root when not absolute) or a MongoDB connection string starting
    # with ``mongodb://`` or ``mongodb+srv://``.
    database_url: str = os.getenv("DATABASE_URL", "academic_records.db")
    mongo_database: str = os.getenv("MONGO_DATABASE", "academic_records")

    graphql_path: str = os.getenv("GRAPHQL_PATH", "/graphql")
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "4000"))

    def __post_init__(self) -> None:
        # Tokens are always signed with HMAC-SHA256.
        if self.algorithm != SUPPORTED_ALGORITHM:
            raise ValueError(
                f"Unsupported ALGORITHM {self.algorithm!r}; only {SUPPORTED_ALGORITHM} is implemented"
            )


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.
settings = Settings()
