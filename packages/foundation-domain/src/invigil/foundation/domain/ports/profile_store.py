"""Port interface for the per-kind profile document store.

Documents are plain dicts with snake_case keys. The store-native id is
exposed under ``"_id"`` as a string. Filters are equality matches on
top-level fields.

Adapters translate store failures into the domain exception hierarchy:

- unique index violation -> ConflictError (with ``field`` context)
- anything else -> DependencyError(origin="profile")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

Document = dict[str, Any]


@runtime_checkable
class ProfileStorePort(Protocol):
    """Port for one principal kind's profile collection."""

    def insert(self, document: Mapping[str, Any]) -> Document:
        """Insert a document and return it with its ``_id`` assigned.

        Raises:
            ConflictError: A unique index (email, external_id, registration
                number) already holds the value.
            DependencyError: Any other store failure.
        """
        ...

    def find_one(self, filter: Mapping[str, Any]) -> Document | None:
        """Return the first document matching filter, or None."""
        ...

    def update_one(
        self,
        filter: Mapping[str, Any],
        patch: Mapping[str, Any],
    ) -> Document | None:
        """Atomically set patch fields on the first match and return it.

        Returns None when nothing matched.

        Raises:
            ConflictError: The patch would violate a unique index.
        """
        ...

    def delete_one(self, filter: Mapping[str, Any]) -> int:
        """Delete the first document matching filter; return deleted count."""
        ...

    def find_many(self, filter: Mapping[str, Any] | None = None) -> list[Document]:
        """Return all documents matching filter, newest first."""
        ...
