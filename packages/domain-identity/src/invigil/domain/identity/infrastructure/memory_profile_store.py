"""In-memory profile store.

Holds one principal kind's profile documents in a dict and enforces the
same unique fields the MongoDB collection indexes, under a lock, so the
store remains the at-most-one authority even when the service's
pre-checks race.
"""

from __future__ import annotations

import copy
import threading
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from invigil.foundation.domain.exceptions import ConflictError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from invigil.foundation.domain.ports import Document


def _matches(document: Mapping[str, Any], filter: Mapping[str, Any] | None) -> bool:
    if not filter:
        return True
    return all(document.get(key) == value for key, value in filter.items())


class InMemoryProfileStore:
    """Dict-backed ProfileStorePort implementation.

    Args:
        unique_fields: Fields that must be unique across documents
            (``None`` values are ignored, like a sparse index).
    """

    def __init__(self, unique_fields: Iterable[str] = ("email", "external_id")) -> None:
        self._lock = threading.Lock()
        self._documents: dict[str, Document] = {}
        self._unique_fields = tuple(unique_fields)
        self._sequence = 0

    def insert(self, document: Mapping[str, Any]) -> Document:
        stored = copy.deepcopy(dict(document))
        stored.pop("_id", None)
        with self._lock:
            self._check_unique(stored, exclude_id=None)
            stored["_id"] = uuid4().hex[:24]
            self._sequence += 1
            stored["_seq"] = self._sequence
            self._documents[stored["_id"]] = stored
            return self._export(stored)

    def find_one(self, filter: Mapping[str, Any]) -> Document | None:
        with self._lock:
            found = self._first(filter)
            return self._export(found) if found is not None else None

    def update_one(self, filter: Mapping[str, Any], patch: Mapping[str, Any]) -> Document | None:
        with self._lock:
            found = self._first(filter)
            if found is None:
                return None
            candidate = {**found, **copy.deepcopy(dict(patch))}
            candidate["_id"] = found["_id"]
            self._check_unique(candidate, exclude_id=found["_id"])
            self._documents[found["_id"]] = candidate
            return self._export(candidate)

    def delete_one(self, filter: Mapping[str, Any]) -> int:
        with self._lock:
            found = self._first(filter)
            if found is None:
                return 0
            del self._documents[found["_id"]]
            return 1

    def find_many(self, filter: Mapping[str, Any] | None = None) -> list[Document]:
        with self._lock:
            matches = [d for d in self._documents.values() if _matches(d, filter)]
        matches.sort(key=lambda d: d["_seq"], reverse=True)
        return [self._export(d) for d in matches]

    def count(self) -> int:
        with self._lock:
            return len(self._documents)

    def _first(self, filter: Mapping[str, Any]) -> Document | None:
        for document in self._documents.values():
            if _matches(document, filter):
                return document
        return None

    def _check_unique(self, candidate: Mapping[str, Any], *, exclude_id: str | None) -> None:
        for field_name in self._unique_fields:
            value = candidate.get(field_name)
            if value is None:
                continue
            for existing in self._documents.values():
                if existing["_id"] != exclude_id and existing.get(field_name) == value:
                    raise ConflictError(
                        f"Duplicate value for unique field '{field_name}'",
                        field=field_name,
                        value=value,
                    )

    @staticmethod
    def _export(document: Mapping[str, Any]) -> Document:
        exported = copy.deepcopy(dict(document))
        exported.pop("_seq", None)
        return exported
