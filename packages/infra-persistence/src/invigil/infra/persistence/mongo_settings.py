"""MongoDB configuration using Pydantic settings.

Settings are loaded from environment variables with the ``MONGODB_``
prefix and validated at construction time.
"""

from __future__ import annotations

from functools import lru_cache
from urllib.parse import urlparse

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_MONGO_SCHEMES = ("mongodb", "mongodb+srv")


def database_name_from_uri(uri: str) -> str | None:
    """Return the database name in a MongoDB URI path, if any.

    Example:
        >>> database_name_from_uri("mongodb://localhost:27017/lms?retryWrites=true")
        'lms'
    """
    path = urlparse(uri).path.strip("/")
    return path.split("/", 1)[0] or None


class MongoSettings(BaseSettings):
    """Configuration for the MongoDB connection.

    Environment Variables:
        MONGODB_URI: Connection string (mongodb:// or mongodb+srv://).
        MONGODB_DB: Database name. When unset, taken from the URI path.
        MONGODB_SERVER_SELECTION_TIMEOUT_MS: Server selection timeout
            (default: 5000).

    Example:
        >>> settings = MongoSettings(uri="mongodb://db:27017/lms")
        >>> settings.database_name
        'lms'
    """

    model_config = SettingsConfigDict(
        env_prefix="MONGODB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    uri: str = Field(
        default="mongodb://localhost:27017/invigil",
        repr=False,
        description="MongoDB connection string (may embed credentials)",
    )
    db: str | None = Field(default=None, description="Database name override")
    server_selection_timeout_ms: int = Field(
        default=5000,
        ge=100,
        le=120_000,
        description="Milliseconds to wait for a reachable server",
    )

    @field_validator("uri")
    @classmethod
    def validate_scheme(cls, v: str) -> str:
        """Reject connection strings that are not MongoDB URIs."""
        scheme = urlparse(v).scheme
        if scheme not in _MONGO_SCHEMES:
            msg = f"Invalid MongoDB URI scheme: {scheme or '(none)'}"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def _require_database_name(self) -> MongoSettings:
        if not self.db and database_name_from_uri(self.uri) is None:
            msg = "Database name not found. Provide it via MONGODB_URI or MONGODB_DB."
            raise ValueError(msg)
        return self

    @property
    def database_name(self) -> str:
        """Configured database name (MONGODB_DB wins over the URI path)."""
        if self.db:
            return self.db
        name = database_name_from_uri(self.uri)
        assert name is not None  # guaranteed by _require_database_name
        return name


@lru_cache(maxsize=1)
def get_mongo_settings() -> MongoSettings:
    """Get cached MongoDB settings singleton."""
    return MongoSettings()
