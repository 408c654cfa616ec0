"""Domain port interfaces for hexagonal architecture.

Ports define abstract interfaces that the domain layer uses to interact
with external services. Implementations (adapters) live in infrastructure.
"""

from invigil.foundation.domain.ports.identity_directory import (
    IdentityAccount,
    IdentityDirectoryPort,
)
from invigil.foundation.domain.ports.profile_store import Document, ProfileStorePort

__all__ = ["Document", "IdentityAccount", "IdentityDirectoryPort", "ProfileStorePort"]
