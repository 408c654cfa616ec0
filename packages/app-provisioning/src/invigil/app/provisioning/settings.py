"""Provisioning composition settings.

Loaded from environment variables with PROVISIONING_ prefix.

Environment Variables:
    PROVISIONING_BACKEND: ``memory`` (in-process adapters) or ``live``
        (Firebase Authentication + MongoDB)
    PROVISIONING_STAFF_COLLECTION: Staff profile collection
    PROVISIONING_STUDENT_COLLECTION: Student profile collection
    PROVISIONING_USER_COLLECTION: Generic user profile collection
    PROVISIONING_ENSURE_INDEXES: Create unique indexes at startup (live only)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from invigil.foundation.domain.principal import PrincipalKind


class ProvisioningSettings(BaseSettings):
    """Backend selection and collection names.

    Example:
        >>> settings = ProvisioningSettings(backend="memory")
        >>> settings.collection_for(PrincipalKind.STUDENT)
        'students'
    """

    model_config = SettingsConfigDict(
        env_prefix="PROVISIONING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    backend: Literal["memory", "live"] = Field(
        default="memory",
        description="Adapter set: in-memory or Firebase + MongoDB",
    )
    staff_collection: str = Field(default="staff", min_length=1)
    student_collection: str = Field(default="students", min_length=1)
    user_collection: str = Field(default="users", min_length=1)
    ensure_indexes: bool = Field(
        default=True,
        description="Create unique profile indexes when the container is built",
    )

    def collection_for(self, kind: PrincipalKind) -> str:
        """Collection name holding profiles of kind."""
        return {
            PrincipalKind.STAFF: self.staff_collection,
            PrincipalKind.STUDENT: self.student_collection,
            PrincipalKind.USER: self.user_collection,
        }[kind]


@lru_cache(maxsize=1)
def get_provisioning_settings() -> ProvisioningSettings:
    """Get singleton ProvisioningSettings instance.

    Clear cache with ``get_provisioning_settings.cache_clear()`` for testing.
    """
    return ProvisioningSettings()
