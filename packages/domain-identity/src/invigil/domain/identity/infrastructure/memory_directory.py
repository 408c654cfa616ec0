"""In-memory identity directory.

Process-local stand-in for the remote identity provider, used by the
``memory`` backend and by tests. Mirrors the provider's observable rules:
emails are globally unique, keys are opaque and immutable, short secrets are
rejected.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from invigil.foundation.domain.exceptions import ConflictError, IdentityNotFoundError, ValidationError
from invigil.foundation.domain.ports import IdentityAccount
from invigil.foundation.domain.principal_value_objects import MIN_SECRET_LENGTH

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)


class InMemoryIdentityDirectory:
    """Dict-backed IdentityDirectoryPort implementation.

    Attributes:
        _accounts: Accounts keyed by external_id.
        _secrets: Secrets keyed by external_id.
        _claims: Custom claims keyed by external_id.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._accounts: dict[str, IdentityAccount] = {}
        self._secrets: dict[str, str] = {}
        self._claims: dict[str, dict[str, Any]] = {}

    def create_account(
        self,
        email: str,
        secret: str,
        display_name: str,
        *,
        claims: Mapping[str, Any] | None = None,
    ) -> IdentityAccount:
        email = email.strip().lower()
        if len(secret) < MIN_SECRET_LENGTH:
            raise ValidationError("secret", f"Secret must be at least {MIN_SECRET_LENGTH} characters")
        with self._lock:
            if self._find_by_email(email) is not None:
                raise ConflictError("Email already registered in identity directory", email=email)
            account = IdentityAccount(
                external_id=uuid4().hex,
                email=email,
                display_name=display_name,
            )
            self._accounts[account.external_id] = account
            self._secrets[account.external_id] = secret
            if claims:
                self._claims[account.external_id] = dict(claims)
        return account

    def lookup_by_email(self, email: str) -> IdentityAccount | None:
        with self._lock:
            return self._find_by_email(email.strip().lower())

    def update_account(
        self,
        external_id: str,
        *,
        email: str | None = None,
        secret: str | None = None,
        display_name: str | None = None,
        disabled: bool | None = None,
    ) -> None:
        with self._lock:
            account = self._accounts.get(external_id)
            if account is None:
                raise IdentityNotFoundError(external_id)
            changes: dict[str, Any] = {}
            if email is not None:
                email = email.strip().lower()
                holder = self._find_by_email(email)
                if holder is not None and holder.external_id != external_id:
                    raise ConflictError("Email already registered in identity directory", email=email)
                changes["email"] = email
            if secret is not None:
                if len(secret) < MIN_SECRET_LENGTH:
                    raise ValidationError(
                        "secret", f"Secret must be at least {MIN_SECRET_LENGTH} characters"
                    )
                self._secrets[external_id] = secret
            if display_name is not None:
                changes["display_name"] = display_name
            if disabled is not None:
                changes["disabled"] = disabled
            self._accounts[external_id] = replace(account, **changes)

    def delete_account(self, external_id: str) -> None:
        with self._lock:
            if self._accounts.pop(external_id, None) is None:
                raise IdentityNotFoundError(external_id)
            self._secrets.pop(external_id, None)
            self._claims.pop(external_id, None)

    def list_accounts(self) -> list[IdentityAccount]:
        with self._lock:
            return list(self._accounts.values())

    # Inspection helpers (not part of the port)

    def claims_for(self, external_id: str) -> dict[str, Any]:
        with self._lock:
            return dict(self._claims.get(external_id, {}))

    def secret_for(self, external_id: str) -> str | None:
        with self._lock:
            return self._secrets.get(external_id)

    def _find_by_email(self, email: str) -> IdentityAccount | None:
        for account in self._accounts.values():
            if account.email == email:
                return account
        return None
