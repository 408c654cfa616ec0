"""Profile records and their document mapping.

A ProfileRecord is the application-side half of a principal. It is stored as
a flat document in the principal kind's collection; ``external_id`` joins it
to the identity directory account.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from invigil.foundation.domain.principal import PrincipalKind

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

# Document keys that are part of every profile (everything else is a
# kind-specific attribute).
_COMMON_FIELDS: frozenset[str] = frozenset(
    {
        "_id",
        "kind",
        "external_id",
        "email",
        "name",
        "secret",
        "is_active",
        "secret_updated_at",
        "created_at",
        "updated_at",
    }
)

# Kind-specific attributes, each with the default used when absent.
KIND_ATTRIBUTES: dict[PrincipalKind, dict[str, Any]] = {
    PrincipalKind.STAFF: {"department": "", "position": "Teacher", "phone": ""},
    PrincipalKind.STUDENT: {"program": "", "registration_number": "", "status": "Active"},
    PrincipalKind.USER: {"role": "student", "program": None},
}

# Fields backed by a unique index in each kind's collection.
UNIQUE_FIELDS: dict[PrincipalKind, tuple[str, ...]] = {
    PrincipalKind.STAFF: ("email", "external_id"),
    PrincipalKind.STUDENT: ("email", "external_id", "registration_number"),
    PrincipalKind.USER: ("email", "external_id"),
}

# Attributes that exist only on the profile side and may be patched without
# touching the identity directory.
PROFILE_ONLY_FIELDS: dict[PrincipalKind, frozenset[str]] = {
    PrincipalKind.STAFF: frozenset({"department", "position", "phone"}),
    PrincipalKind.STUDENT: frozenset({"program", "status"}),
    PrincipalKind.USER: frozenset({"program"}),
}


@dataclass
class ProfileRecord:
    """Data transfer object for a stored profile.

    Attributes:
        id: Store-native document id.
        kind: Principal kind (selects the collection).
        external_id: Identity directory key.
        email: Canonical email.
        name: Display name.
        secret: Plaintext credential kept for exports only. Hidden from repr.
        attributes: Kind-specific attributes (department, program, ...).
        is_active: False once the principal has been deactivated.
        created_at: Creation timestamp (UTC).
        updated_at: Last modification timestamp (UTC).
        secret_updated_at: When the secret was last changed, if ever.
    """

    id: str
    kind: PrincipalKind
    external_id: str
    email: str
    name: str
    secret: str = field(repr=False)
    attributes: dict[str, Any]
    is_active: bool
    created_at: datetime
    updated_at: datetime
    secret_updated_at: datetime | None = None

    @classmethod
    def from_document(cls, kind: PrincipalKind, document: Mapping[str, Any]) -> ProfileRecord:
        """Build a record from a stored document."""
        attributes = dict(KIND_ATTRIBUTES[kind])
        attributes.update({k: v for k, v in document.items() if k not in _COMMON_FIELDS})
        return cls(
            id=str(document["_id"]),
            kind=kind,
            external_id=str(document["external_id"]),
            email=str(document["email"]),
            name=str(document.get("name", "")),
            secret=str(document.get("secret", "")),
            attributes=attributes,
            is_active=bool(document.get("is_active", True)),
            created_at=document["created_at"],
            updated_at=document["updated_at"],
            secret_updated_at=document.get("secret_updated_at"),
        )

    def to_profile(self) -> dict[str, Any]:
        """Public representation without the stored secret."""
        return {
            "id": self.id,
            "kind": str(self.kind),
            "external_id": self.external_id,
            "email": self.email,
            "name": self.name,
            **self.attributes,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
