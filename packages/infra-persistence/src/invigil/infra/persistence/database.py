"""MongoDB client lifecycle.

Provides a manager that owns one ``MongoClient`` per configuration and
hands out the configured database and its collections:

Usage:
    from invigil.infra.persistence.database import get_mongo_manager

    manager = get_mongo_manager()
    staff = manager.get_collection("staff")

    # Explicit settings (e.g. tests or several databases)
    manager = MongoManager(MongoSettings(uri="mongodb://db:27017/lms"))
    manager.ping()
    manager.close()
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from invigil.infra.persistence.mongo_settings import MongoSettings

if TYPE_CHECKING:
    from pymongo.collection import Collection
    from pymongo.database import Database

logger = logging.getLogger(__name__)


class MongoManager:
    """Encapsulates the MongoDB client lifecycle.

    The client is created lazily on first use; ``close`` releases it and a
    later call creates a fresh one.
    """

    def __init__(self, settings: MongoSettings) -> None:
        self._settings = settings
        self._client: MongoClient[Any] | None = None

    @property
    def settings(self) -> MongoSettings:
        """The settings used by this manager."""
        return self._settings

    def get_client(self) -> MongoClient[Any]:
        """Get or create the MongoDB client."""
        if self._client is None:
            self._client = MongoClient(
                self._settings.uri,
                serverSelectionTimeoutMS=self._settings.server_selection_timeout_ms,
                tz_aware=True,
            )
            logger.info(
                "mongo_client_created",
                extra={"database": self._settings.database_name},
            )
        return self._client

    def get_database(self) -> Database[Any]:
        """Return the configured database."""
        return self.get_client()[self._settings.database_name]

    def get_collection(self, name: str) -> Collection[Any]:
        """Return a collection of the configured database."""
        return self.get_database()[name]

    def ping(self) -> bool:
        """Check that the server answers; never raises."""
        try:
            self.get_client().admin.command("ping")
        except PyMongoError as exc:
            logger.warning("mongo_ping_failed", extra={"error": str(exc)})
            return False
        return True

    def close(self) -> None:
        """Close the client. Safe to call multiple times."""
        if self._client is not None:
            self._client.close()
            self._client = None


@lru_cache(maxsize=1)
def get_mongo_manager() -> MongoManager:
    """Get the default MongoManager singleton configured from the environment."""
    from invigil.infra.persistence.mongo_settings import get_mongo_settings

    return MongoManager(get_mongo_settings())
