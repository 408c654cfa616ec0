"""Invigil Infra Persistence -- MongoDB settings and client lifecycle."""

from invigil.infra.persistence.database import MongoManager, get_mongo_manager
from invigil.infra.persistence.mongo_settings import (
    MongoSettings,
    database_name_from_uri,
    get_mongo_settings,
)

__all__ = [
    "MongoManager",
    "MongoSettings",
    "database_name_from_uri",
    "get_mongo_manager",
    "get_mongo_settings",
]
