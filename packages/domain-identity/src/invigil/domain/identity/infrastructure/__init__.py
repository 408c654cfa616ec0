"""Invigil Domain Identity Infrastructure -- identity and profile adapters."""

from invigil.domain.identity.infrastructure.memory_directory import InMemoryIdentityDirectory
from invigil.domain.identity.infrastructure.memory_profile_store import InMemoryProfileStore

__all__ = [
    "InMemoryIdentityDirectory",
    "InMemoryProfileStore",
]
