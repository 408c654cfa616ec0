"""MongoDB-backed profile store.

One collection per principal kind. Unique indexes on ``email``,
``external_id`` and (students) ``registration_number`` are the store's
at-most-one guarantee; ``ensure_indexes`` creates them at startup.

The document ``_id`` is an ObjectId in MongoDB and a string everywhere
else; conversion happens at this boundary only.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, IndexModel, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from invigil.foundation.domain.exceptions import ConflictError, DependencyError, DependencyOrigin

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from pymongo.collection import Collection

    from invigil.foundation.domain.ports import Document

logger = logging.getLogger(__name__)


def _duplicate_field(err: DuplicateKeyError) -> str:
    details = err.details or {}
    key_pattern = details.get("keyPattern") or {}
    if key_pattern:
        return next(iter(key_pattern))
    key_value = details.get("keyValue") or {}
    return next(iter(key_value), "unknown")


@contextmanager
def _translated_errors(operation: str, collection_name: str) -> Iterator[None]:
    """Map pymongo exceptions onto the domain hierarchy."""
    try:
        yield
    except DuplicateKeyError as err:
        field_name = _duplicate_field(err)
        raise ConflictError(
            f"Duplicate value for unique field '{field_name}'",
            field=field_name,
            collection=collection_name,
        ) from err
    except PyMongoError as err:
        logger.warning(
            "profile_store_operation_failed",
            extra={"operation": operation, "collection": collection_name, "error": str(err)},
        )
        raise DependencyError(
            DependencyOrigin.PROFILE,
            f"{operation} failed: {err}",
            collection=collection_name,
        ) from err


class MongoProfileStore:
    """ProfileStorePort implementation over one pymongo collection.

    Args:
        collection: Target collection (one per principal kind).
        unique_fields: Fields backed by a unique index.
    """

    def __init__(
        self,
        collection: Collection[Any],
        unique_fields: Iterable[str] = ("email", "external_id"),
    ) -> None:
        self._collection = collection
        self._unique_fields = tuple(unique_fields)

    @property
    def name(self) -> str:
        return str(self._collection.name)

    def ensure_indexes(self) -> list[str]:
        """Create the unique indexes (idempotent) and return their names."""
        models = [
            IndexModel([(field_name, ASCENDING)], unique=True, name=f"unique_{field_name}")
            for field_name in self._unique_fields
        ]
        models.append(IndexModel([("created_at", DESCENDING)], name="created_at_desc"))
        with _translated_errors("ensure_indexes", self.name):
            names = self._collection.create_indexes(models)
        logger.info("profile_indexes_ensured", extra={"collection": self.name, "indexes": names})
        return names

    def insert(self, document: Mapping[str, Any]) -> Document:
        to_insert = {k: v for k, v in document.items() if k != "_id"}
        with _translated_errors("insert", self.name):
            result = self._collection.insert_one(to_insert)
        to_insert["_id"] = result.inserted_id
        return self._export(to_insert)

    def find_one(self, filter: Mapping[str, Any]) -> Document | None:
        query = self._query(filter)
        if query is None:
            return None
        with _translated_errors("find_one", self.name):
            found = self._collection.find_one(query)
        return self._export(found) if found is not None else None

    def update_one(self, filter: Mapping[str, Any], patch: Mapping[str, Any]) -> Document | None:
        query = self._query(filter)
        if query is None:
            return None
        changes = {k: v for k, v in patch.items() if k != "_id"}
        with _translated_errors("update_one", self.name):
            updated = self._collection.find_one_and_update(
                query,
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        return self._export(updated) if updated is not None else None

    def delete_one(self, filter: Mapping[str, Any]) -> int:
        query = self._query(filter)
        if query is None:
            return 0
        with _translated_errors("delete_one", self.name):
            result = self._collection.delete_one(query)
        return int(result.deleted_count)

    def find_many(self, filter: Mapping[str, Any] | None = None) -> list[Document]:
        query = self._query(filter or {})
        if query is None:
            return []
        with _translated_errors("find_many", self.name):
            cursor = self._collection.find(query).sort(
                [("created_at", DESCENDING), ("_id", DESCENDING)]
            )
            return [self._export(document) for document in cursor]

    @staticmethod
    def _query(filter: Mapping[str, Any]) -> dict[str, Any] | None:
        """Convert a string ``_id`` to ObjectId; None when it cannot match."""
        query = dict(filter)
        if "_id" in query and not isinstance(query["_id"], ObjectId):
            raw = str(query["_id"])
            if not ObjectId.is_valid(raw):
                return None
            query["_id"] = ObjectId(raw)
        return query

    @staticmethod
    def _export(document: Mapping[str, Any]) -> Document:
        exported = dict(document)
        exported["_id"] = str(exported["_id"])
        return exported
