"""Firebase Authentication adapter for the identity directory port.

Wraps ``firebase_admin.auth`` user management and translates SDK errors:

- ``EmailAlreadyExistsError`` -> ConflictError
- ``UserNotFoundError`` -> IdentityNotFoundError
- ``ValueError`` (SDK-side argument checks such as a short password or a
  malformed email) and ``InvalidArgumentError`` -> ValidationError
- any other ``FirebaseError`` -> DependencyError(origin="identity")
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from firebase_admin import auth
from firebase_admin import exceptions as firebase_exceptions

from invigil.foundation.domain.exceptions import (
    ConflictError,
    DependencyError,
    DependencyOrigin,
    IdentityNotFoundError,
    ValidationError,
)
from invigil.foundation.domain.ports import IdentityAccount

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    import firebase_admin

logger = logging.getLogger(__name__)


def _to_account(user: Any) -> IdentityAccount:
    return IdentityAccount(
        external_id=user.uid,
        email=(user.email or "").lower(),
        display_name=user.display_name or "",
        disabled=bool(user.disabled),
    )


@contextmanager
def _translated_errors(operation: str, *, key: str = "") -> Iterator[None]:
    try:
        yield
    except auth.EmailAlreadyExistsError as err:
        raise ConflictError("Email already registered in identity directory", key=key) from err
    except auth.UserNotFoundError as err:
        raise IdentityNotFoundError(key) from err
    except firebase_exceptions.InvalidArgumentError as err:
        raise ValidationError("identity", str(err)) from err
    except firebase_exceptions.FirebaseError as err:
        logger.warning(
            "identity_provider_call_failed",
            extra={"operation": operation, "code": err.code, "error": str(err)},
        )
        raise DependencyError(
            DependencyOrigin.IDENTITY,
            f"{operation} failed: {err}",
            code=err.code,
        ) from err
    except ValueError as err:
        raise ValidationError("identity", str(err)) from err


class FirebaseIdentityDirectory:
    """IdentityDirectoryPort implementation backed by Firebase Authentication.

    Args:
        app: firebase_admin App to use; the default app when None.
    """

    def __init__(self, app: firebase_admin.App | None = None) -> None:
        self._app = app

    def create_account(
        self,
        email: str,
        secret: str,
        display_name: str,
        *,
        claims: Mapping[str, Any] | None = None,
    ) -> IdentityAccount:
        with _translated_errors("create_account", key=email):
            user = auth.create_user(
                email=email,
                password=secret,
                display_name=display_name or None,
                email_verified=False,
                disabled=False,
                app=self._app,
            )

        if claims:
            self._attach_claims(user.uid, claims)

        logger.debug("firebase_user_created", extra={"external_id": user.uid})
        return _to_account(user)

    def _attach_claims(self, uid: str, claims: Mapping[str, Any]) -> None:
        """Set custom claims; remove the new user if that fails."""
        try:
            auth.set_custom_user_claims(uid, dict(claims), app=self._app)
        except (firebase_exceptions.FirebaseError, ValueError) as err:
            logger.warning("firebase_claims_failed", extra={"external_id": uid, "error": str(err)})
            try:
                auth.delete_user(uid, app=self._app)
            except (firebase_exceptions.FirebaseError, ValueError):
                logger.exception("firebase_claims_cleanup_failed", extra={"external_id": uid})
                raise DependencyError(
                    DependencyOrigin.IDENTITY,
                    f"Could not set claims on {uid} and could not remove it: {err}",
                    external_id=uid,
                ) from err
            raise DependencyError(
                DependencyOrigin.IDENTITY,
                f"Could not set claims on new account: {err}",
                external_id=uid,
            ) from err

    def lookup_by_email(self, email: str) -> IdentityAccount | None:
        try:
            with _translated_errors("lookup_by_email", key=email):
                user = auth.get_user_by_email(email, app=self._app)
        except IdentityNotFoundError:
            return None
        return _to_account(user)

    def update_account(
        self,
        external_id: str,
        *,
        email: str | None = None,
        secret: str | None = None,
        display_name: str | None = None,
        disabled: bool | None = None,
    ) -> None:
        changes: dict[str, Any] = {}
        if email is not None:
            changes["email"] = email
        if secret is not None:
            changes["password"] = secret
        if display_name is not None:
            changes["display_name"] = display_name
        if disabled is not None:
            changes["disabled"] = disabled
        if not changes:
            return
        with _translated_errors("update_account", key=external_id):
            auth.update_user(external_id, app=self._app, **changes)

    def delete_account(self, external_id: str) -> None:
        with _translated_errors("delete_account", key=external_id):
            auth.delete_user(external_id, app=self._app)

    def list_accounts(self) -> list[IdentityAccount]:
        with _translated_errors("list_accounts"):
            return [_to_account(user) for user in auth.list_users(app=self._app).iterate_all()]
