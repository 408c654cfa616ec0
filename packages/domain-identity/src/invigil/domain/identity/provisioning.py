"""Provisioning service for paired identity + profile records.

Every principal exists twice: as an account in the external identity
directory and as a profile document in its kind's profile store. This
service is the only writer of that pair and orders its calls so that a
profile is never left without an identity once an operation returns.

Create flow (each failure short-circuits):
1. Validate and normalize input (no external calls before this succeeds)
2. Profile-side duplicate check (email, registration number for students)
3. Identity-side duplicate check (email is global across kinds)
4. Create the identity account
5. Insert the profile; on any failure delete the new identity account
   (compensating action) and re-raise the insert failure

Update flow: identity changes first, then profile changes. A profile write
failure after a successful identity write raises PartialStateError.

Delete flow: identity deletion is attempted first and never blocks profile
removal; "not found" on either side counts as already deleted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from invigil.domain.identity.inputs import (
    PrincipalPatch,
    StaffInput,
    StudentInput,
    UserInput,
    parse_kind,
    parse_principal_input,
    parse_principal_patch,
)
from invigil.domain.identity.records import ProfileRecord
from invigil.foundation.domain.exceptions import (
    ConflictError,
    DomainError,
    IdentityNotFoundError,
    NotFoundError,
    PartialStateError,
    ProfileNotFoundError,
    ValidationError,
)
from invigil.foundation.domain.principal import PrincipalKind, StudentStatus
from invigil.foundation.domain.principal_value_objects import Email

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from invigil.foundation.domain.ports import (
        Document,
        IdentityAccount,
        IdentityDirectoryPort,
        ProfileStorePort,
    )

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _attach_warning(exc: BaseException, warning: str) -> None:
    if isinstance(exc, DomainError):
        exc.add_warning(warning)
    else:
        exc.add_note(warning)


@dataclass
class DeletionResult:
    """Result of deleting one principal.

    Attributes:
        lookup_key: Key the caller asked to delete.
        profile_found: Whether a profile matched the key.
        identity_deleted: Whether the identity account was removed by this call.
        profile_deleted: Whether the profile row was removed by this call.
        warnings: Non-fatal problems (e.g. identity deletion failed).
    """

    lookup_key: str
    profile_found: bool = False
    identity_deleted: bool = False
    profile_deleted: bool = False
    warnings: list[str] = field(default_factory=list)


class ProvisioningService:
    """Creates, updates and deletes paired identity + profile records.

    One instance serves all principal kinds; ``kind`` selects the profile
    store and the kind-specific fields.

    Attributes:
        _directory: Identity directory adapter.
        _stores: Profile store per principal kind.
        _clock: Source of UTC timestamps.
    """

    def __init__(
        self,
        directory: IdentityDirectoryPort,
        stores: Mapping[PrincipalKind, ProfileStorePort],
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._directory = directory
        self._stores = dict(stores)
        self._clock = clock

    @property
    def directory(self) -> IdentityDirectoryPort:
        return self._directory

    def store_for(self, kind: PrincipalKind | str) -> ProfileStorePort:
        """Return the profile store for kind.

        Raises:
            ValidationError: Unknown kind or no store configured for it.
        """
        kind = parse_kind(kind)
        try:
            return self._stores[kind]
        except KeyError:
            raise ValidationError("kind", f"No profile store configured for {kind}") from None

    # -- Create --

    def create(
        self,
        kind: PrincipalKind | str,
        data: Mapping[str, Any] | StaffInput | StudentInput | UserInput,
        *,
        on_identity_created: Callable[[IdentityAccount], None] | None = None,
    ) -> ProfileRecord:
        """Provision a new principal: identity account first, then profile.

        Args:
            kind: Principal kind.
            data: Raw payload or parsed input model for that kind.
            on_identity_created: Called with the new account right after the
                identity directory creates it (bulk provisioning uses this to
                track accounts for group compensation).

        Returns:
            The stored profile, including the identity's external_id.

        Raises:
            ValidationError: Input rejected before any external call, or the
                directory rejected the credential/email.
            ConflictError: Email or registration number already in use.
            DependencyError: Directory or store failure.
        """
        kind = parse_kind(kind)
        principal = parse_principal_input(kind, data)
        store = self.store_for(kind)

        # 2. Profile-side duplicates. Racy by nature; the unique index is
        # the real guarantee and is handled by the compensation below.
        if store.find_one({"email": principal.email}) is not None:
            raise ConflictError(
                f"{kind} email already exists in profile store",
                email=principal.email,
                side="profile",
            )
        if isinstance(principal, StudentInput) and (
            store.find_one({"registration_number": principal.registration_number}) is not None
        ):
            raise ConflictError(
                "Registration number already exists in profile store",
                registration_number=principal.registration_number,
                side="profile",
            )

        # 3. Identity-side duplicates (global across kinds)
        if self._directory.lookup_by_email(principal.email) is not None:
            raise ConflictError(
                "Email already registered in identity directory",
                email=principal.email,
                side="identity",
            )

        # 4. Identity account
        account = self._directory.create_account(
            principal.email,
            principal.secret,
            principal.name,
            claims=principal.identity_claims(),
        )
        logger.debug(
            "identity_account_created",
            extra={"external_id": account.external_id, "principal_kind": str(kind)},
        )

        # 5. Profile, compensating on any failure
        now = self._clock()
        document: dict[str, Any] = {
            "kind": str(kind),
            "external_id": account.external_id,
            "email": principal.email,
            "name": principal.name,
            "secret": principal.secret,
            **principal.profile_attributes(),
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        try:
            if on_identity_created is not None:
                on_identity_created(account)
            stored = store.insert(document)
        except Exception as exc:
            self._compensate_identity(account.external_id, exc, kind=kind, email=principal.email)
            raise

        logger.info(
            "principal_provisioned",
            extra={
                "external_id": account.external_id,
                "principal_kind": str(kind),
                "email": principal.email,
            },
        )
        return ProfileRecord.from_document(kind, stored)

    def _compensate_identity(
        self,
        external_id: str,
        primary: BaseException,
        *,
        kind: PrincipalKind,
        email: str,
    ) -> None:
        """Delete an identity account whose profile could not be stored.

        Never raises: a failed cleanup is logged and attached to the primary
        error as a warning.
        """
        context = {"external_id": external_id, "principal_kind": str(kind), "email": email}
        try:
            self._directory.delete_account(external_id)
        except NotFoundError:
            logger.info("compensation_identity_already_absent", extra=context)
        except Exception as cleanup_exc:
            warning = (
                f"Failed to delete identity account {external_id} after profile "
                f"insert failure: {cleanup_exc}"
            )
            _attach_warning(primary, warning)
            logger.exception("compensation_identity_delete_failed", extra=context)
        else:
            logger.warning(
                "profile_insert_failed_identity_rolled_back",
                extra={**context, "error": str(primary)},
            )

    # -- Update --

    def update(
        self,
        kind: PrincipalKind | str,
        old_email: str,
        patch: Mapping[str, Any] | PrincipalPatch,
    ) -> None:
        """Update email, secret, name and kind fields of a principal.

        Identity changes are applied first; profile changes only after they
        succeed. The two writes are not atomic.

        Raises:
            ValidationError: Malformed or inapplicable patch.
            ProfileNotFoundError: No profile under old_email.
            IdentityNotFoundError: Profile exists but the identity does not.
            ConflictError: new_email or registration number already in use.
            PartialStateError: Identity updated but profile write failed.
        """
        kind = parse_kind(kind)
        parsed = parse_principal_patch(kind, patch)
        old = self._lookup_email(old_email, field="old_email")
        store = self.store_for(kind)

        profile = store.find_one({"email": old})
        if profile is None:
            raise ProfileNotFoundError(str(kind), old)

        account = self._directory.lookup_by_email(old)
        if account is None:
            raise IdentityNotFoundError(
                old,
                principal_kind=str(kind),
                external_id=profile.get("external_id"),
            )
        if account.external_id != profile.get("external_id"):
            raise PartialStateError(
                "Identity account and profile disagree on external id",
                email=old,
                identity_external_id=account.external_id,
                profile_external_id=profile.get("external_id"),
            )

        new_email = parsed.new_email
        if new_email is not None and new_email != old:
            if self._directory.lookup_by_email(new_email) is not None:
                raise ConflictError("New email is already in use", email=new_email, side="identity")
            if store.find_one({"email": new_email}) is not None:
                raise ConflictError("New email is already in use", email=new_email, side="profile")

        registration_number = parsed.registration_number
        if registration_number is not None and registration_number != profile.get(
            "registration_number"
        ):
            holder = store.find_one({"registration_number": registration_number})
            if holder is not None and holder["_id"] != profile["_id"]:
                raise ConflictError(
                    "Registration number already exists in profile store",
                    registration_number=registration_number,
                    side="profile",
                )

        identity_changes = parsed.identity_changes()
        if identity_changes:
            self._directory.update_account(account.external_id, **identity_changes)
            logger.info(
                "identity_account_updated",
                extra={"external_id": account.external_id, "fields": sorted(identity_changes)},
            )

        now = self._clock()
        profile_changes = parsed.profile_changes()
        if parsed.new_secret is not None:
            profile_changes["secret_updated_at"] = now
        profile_changes["updated_at"] = now

        try:
            updated = store.update_one({"email": old}, profile_changes)
        except Exception as exc:
            if not identity_changes:
                raise
            logger.exception(
                "profile_update_failed_after_identity_update",
                extra={"external_id": account.external_id, "email": old},
            )
            raise PartialStateError(
                "Identity account updated but profile update failed",
                external_id=account.external_id,
                identity_email=new_email or old,
                profile_email=old,
                cause=str(exc),
            ) from exc

        if updated is None:
            if identity_changes:
                raise PartialStateError(
                    "Identity account updated but profile disappeared",
                    external_id=account.external_id,
                    identity_email=new_email or old,
                    profile_email=old,
                )
            raise ProfileNotFoundError(str(kind), old)

        logger.info(
            "principal_updated",
            extra={"external_id": account.external_id, "principal_kind": str(kind)},
        )

    def patch_profile(
        self,
        kind: PrincipalKind | str,
        email: str,
        fields: Mapping[str, Any] | PrincipalPatch,
    ) -> ProfileRecord:
        """Update profile-only attributes (no identity-side counterpart).

        Raises:
            ValidationError: A field is not profile-only for this kind.
            ProfileNotFoundError: No profile under email.
        """
        kind = parse_kind(kind)
        parsed = parse_principal_patch(kind, fields, profile_only=True)
        lookup = self._lookup_email(email, field="email")
        changes = parsed.profile_changes()
        changes["updated_at"] = self._clock()
        updated = self.store_for(kind).update_one({"email": lookup}, changes)
        if updated is None:
            raise ProfileNotFoundError(str(kind), lookup)
        return ProfileRecord.from_document(kind, updated)

    # -- Delete / deactivate --

    def delete(self, kind: PrincipalKind | str, lookup_key: str) -> DeletionResult:
        """Delete a principal's identity account and profile.

        Idempotent: a missing profile is reported as success with
        ``profile_found=False``.

        Args:
            kind: Principal kind.
            lookup_key: external_id, store-native id, or email.

        Raises:
            ValidationError: Empty lookup key.
            DependencyError: The profile store failed (identity failures
                never raise here; they become warnings).
        """
        kind = parse_kind(kind)
        store = self.store_for(kind)
        result = DeletionResult(lookup_key=str(lookup_key))

        profile = self._resolve(store, lookup_key)
        if profile is None:
            logger.info(
                "principal_delete_noop",
                extra={"lookup_key": str(lookup_key), "principal_kind": str(kind)},
            )
            return result
        result.profile_found = True

        external_id = profile.get("external_id")
        if external_id:
            try:
                self._directory.delete_account(external_id)
            except NotFoundError:
                logger.info("identity_account_already_absent", extra={"external_id": external_id})
            except Exception as exc:
                result.warnings.append(f"Failed to delete identity account {external_id}: {exc}")
                logger.warning(
                    "identity_account_delete_failed",
                    exc_info=True,
                    extra={"external_id": external_id, "principal_kind": str(kind)},
                )
            else:
                result.identity_deleted = True

        result.profile_deleted = store.delete_one({"_id": profile["_id"]}) > 0
        logger.info(
            "principal_deleted",
            extra={
                "external_id": external_id,
                "principal_kind": str(kind),
                "identity_deleted": result.identity_deleted,
            },
        )
        return result

    def deactivate(self, kind: PrincipalKind | str, lookup_key: str) -> ProfileRecord:
        """Disable the identity account, then mark the profile inactive.

        A missing identity account is tolerated (logged); the profile is
        still marked inactive.

        Raises:
            ProfileNotFoundError: No profile matches lookup_key.
            DependencyError: Directory or store failure.
        """
        kind = parse_kind(kind)
        store = self.store_for(kind)
        profile = self._resolve(store, lookup_key)
        if profile is None:
            raise ProfileNotFoundError(str(kind), str(lookup_key))

        external_id = profile.get("external_id")
        if external_id:
            try:
                self._directory.update_account(external_id, disabled=True)
            except NotFoundError:
                logger.warning(
                    "identity_account_missing_on_deactivate",
                    extra={"external_id": external_id, "principal_kind": str(kind)},
                )

        updated = store.update_one(
            {"_id": profile["_id"]},
            {"is_active": False, "updated_at": self._clock()},
        )
        if updated is None:
            raise ProfileNotFoundError(str(kind), str(lookup_key))
        logger.info("principal_deactivated", extra={"external_id": external_id})
        return ProfileRecord.from_document(kind, updated)

    # -- Reads --

    def get(self, kind: PrincipalKind | str, lookup_key: str) -> ProfileRecord:
        """Return the profile matching external_id, store id or email."""
        kind = parse_kind(kind)
        profile = self._resolve(self.store_for(kind), lookup_key)
        if profile is None:
            raise ProfileNotFoundError(str(kind), str(lookup_key))
        return ProfileRecord.from_document(kind, profile)

    def list_profiles(
        self,
        kind: PrincipalKind | str,
        *,
        active_only: bool = False,
    ) -> list[ProfileRecord]:
        """Return every profile of kind, newest first."""
        kind = parse_kind(kind)
        filter = {"is_active": True} if active_only else None
        return [
            ProfileRecord.from_document(kind, document)
            for document in self.store_for(kind).find_many(filter)
        ]

    def list_identity_accounts(self) -> list[IdentityAccount]:
        """Return every account in the identity directory."""
        return self._directory.list_accounts()

    def student_status(self, email: str) -> StudentStatus:
        """Return a student's enrollment status (checked at login)."""
        lookup = self._lookup_email(email, field="email")
        profile = self.store_for(PrincipalKind.STUDENT).find_one({"email": lookup})
        if profile is None:
            raise ProfileNotFoundError(str(PrincipalKind.STUDENT), lookup)
        return StudentStatus(profile.get("status", StudentStatus.ACTIVE))

    # -- Helpers --

    @staticmethod
    def _lookup_email(email: str, *, field: str) -> str:
        try:
            return Email(email).value
        except ValueError as err:
            raise ValidationError(field, str(err)) from None

    @staticmethod
    def _resolve(store: ProfileStorePort, lookup_key: str) -> Document | None:
        key = str(lookup_key).strip()
        if not key:
            raise ValidationError("lookup_key", "Lookup key must not be empty")
        if "@" in key:
            return store.find_one({"email": key.lower()})
        return store.find_one({"external_id": key}) or store.find_one({"_id": key})
