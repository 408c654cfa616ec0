"""Port interface for the external identity directory.

This module defines the IdentityDirectoryPort protocol for abstracting the
identity provider (a remote user directory), enabling provisioning logic to
create and remove accounts without coupling to a specific provider SDK.

Adapters translate provider failures into the domain exception hierarchy:

- duplicate email -> ConflictError
- weak credential or malformed email -> ValidationError
- missing account on update/delete -> NotFoundError
- anything else -> DependencyError(origin="identity")

Example:
    >>> from invigil.foundation.domain.ports import IdentityDirectoryPort
    >>> def account_exists(directory: IdentityDirectoryPort, email: str) -> bool:
    ...     return directory.lookup_by_email(email) is not None
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class IdentityAccount:
    """Account as reported by the identity directory.

    Attributes:
        external_id: Provider-assigned opaque key. Immutable.
        email: Account email (canonical lower-case form).
        display_name: Display name, empty string when unset.
        disabled: Whether sign-in is disabled.
    """

    external_id: str
    email: str
    display_name: str = ""
    disabled: bool = False


@runtime_checkable
class IdentityDirectoryPort(Protocol):
    """Port for the remote identity directory.

    The protocol is runtime_checkable to enable isinstance() verification
    in tests and in the composition root.
    """

    def create_account(
        self,
        email: str,
        secret: str,
        display_name: str,
        *,
        claims: Mapping[str, Any] | None = None,
    ) -> IdentityAccount:
        """Create a new account and return it with its external_id.

        Args:
            email: Canonical email address.
            secret: Plaintext credential.
            display_name: Display name.
            claims: Optional custom claims attached to the account. If the
                claims cannot be attached the adapter removes the account
                it just created before raising.

        Raises:
            ConflictError: Email already registered.
            ValidationError: Weak credential or malformed email.
            DependencyError: Any other provider failure.
        """
        ...

    def lookup_by_email(self, email: str) -> IdentityAccount | None:
        """Return the account registered under email, or None."""
        ...

    def update_account(
        self,
        external_id: str,
        *,
        email: str | None = None,
        secret: str | None = None,
        display_name: str | None = None,
        disabled: bool | None = None,
    ) -> None:
        """Apply the given (non-None) changes to an account.

        Raises:
            NotFoundError: No account with this external_id.
            ConflictError: The new email is already registered.
            DependencyError: Any other provider failure.
        """
        ...

    def delete_account(self, external_id: str) -> None:
        """Delete an account.

        Raises:
            NotFoundError: No account with this external_id.
            DependencyError: Any other provider failure.
        """
        ...

    def list_accounts(self) -> list[IdentityAccount]:
        """Return every account in the directory."""
        ...
