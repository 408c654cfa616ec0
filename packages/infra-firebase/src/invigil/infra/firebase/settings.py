"""Firebase Admin configuration settings.

Loaded from environment variables with FIREBASE_ prefix.
Follows Pydantic BaseSettings pattern for type-safe configuration.

Environment Variables:
    FIREBASE_PROJECT_ID: Firebase project id
    FIREBASE_CLIENT_EMAIL: Service account client email
    FIREBASE_PRIVATE_KEY: Service account private key (``\\n`` escapes allowed)
    FIREBASE_CREDENTIALS_FILE: Path to a service account JSON file
    FIREBASE_APP_NAME: Name of the firebase_admin app instance
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_TOKEN_URI = "https://oauth2.googleapis.com/token"


class FirebaseSettings(BaseSettings):
    """Firebase Admin configuration loaded from environment variables.

    Either a credentials file or the inline service account triple
    (project id, client email, private key) must be configured before the
    Firebase app is initialized; the settings themselves load with neither so
    that the in-memory backend needs no Firebase environment.

    Example:
        >>> settings = FirebaseSettings(credentials_file="/etc/sa.json")
        >>> settings.is_configured()
        True
    """

    model_config = SettingsConfigDict(
        env_prefix="FIREBASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    project_id: str = Field(default="", description="Firebase project id")
    client_email: str = Field(default="", description="Service account client email")
    private_key: str = Field(
        default="",
        repr=False,  # Security: never log the key
        description="Service account private key (PEM)",
    )
    credentials_file: str = Field(
        default="",
        description="Path to a service account JSON file (takes precedence)",
    )
    app_name: str = Field(
        default="invigil",
        min_length=1,
        description="firebase_admin app name",
    )

    @field_validator("private_key")
    @classmethod
    def unescape_newlines(cls, v: str) -> str:
        """Environment files usually carry the PEM with literal ``\\n``."""
        return v.replace("\\n", "\n")

    def is_configured(self) -> bool:
        """Check if credentials are available (non-throwing)."""
        return bool(
            self.credentials_file or (self.project_id and self.client_email and self.private_key)
        )

    def credential_source(self) -> str | dict[str, Any]:
        """Argument for ``firebase_admin.credentials.Certificate``.

        Raises:
            ValueError: If no credentials are configured.
        """
        if self.credentials_file:
            return self.credentials_file
        if not self.is_configured():
            raise ValueError(
                "FIREBASE_CREDENTIALS_FILE or FIREBASE_PROJECT_ID, FIREBASE_CLIENT_EMAIL "
                "and FIREBASE_PRIVATE_KEY are required"
            )
        return {
            "type": "service_account",
            "project_id": self.project_id,
            "private_key": self.private_key,
            "client_email": self.client_email,
            "token_uri": _TOKEN_URI,
        }


@lru_cache(maxsize=1)
def get_firebase_settings() -> FirebaseSettings:
    """Get singleton FirebaseSettings instance.

    Clear cache with ``get_firebase_settings.cache_clear()`` for testing.
    """
    return FirebaseSettings()
