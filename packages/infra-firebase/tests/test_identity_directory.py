"""Unit tests for FirebaseIdentityDirectory with the Admin SDK patched out."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from firebase_admin import auth
from firebase_admin import exceptions as firebase_exceptions

from invigil.foundation.domain.exceptions import (
    ConflictError,
    DependencyError,
    IdentityNotFoundError,
    ValidationError,
)
from invigil.foundation.domain.ports import IdentityAccount, IdentityDirectoryPort
from invigil.infra.firebase.identity_directory import FirebaseIdentityDirectory


def _user(uid: str = "uid-1", email: str = "A@x.com", **overrides: object) -> SimpleNamespace:
    fields = {"uid": uid, "email": email, "display_name": "A", "disabled": False}
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.fixture()
def app() -> MagicMock:
    return MagicMock(name="firebase-app")


@pytest.fixture()
def directory(app: MagicMock) -> FirebaseIdentityDirectory:
    return FirebaseIdentityDirectory(app)


@pytest.mark.unit
class TestCreateAccount:
    def test_conforms_to_port(self, directory: FirebaseIdentityDirectory) -> None:
        assert isinstance(directory, IdentityDirectoryPort)

    def test_creates_user_and_sets_claims(
        self, directory: FirebaseIdentityDirectory, app: MagicMock
    ) -> None:
        with (
            patch.object(auth, "create_user", return_value=_user()) as create_user,
            patch.object(auth, "set_custom_user_claims") as set_claims,
        ):
            account = directory.create_account(
                "a@x.com", "abcdef", "A", claims={"role": "staff"}
            )

        assert account == IdentityAccount(external_id="uid-1", email="a@x.com", display_name="A")
        create_user.assert_called_once_with(
            email="a@x.com",
            password="abcdef",
            display_name="A",
            email_verified=False,
            disabled=False,
            app=app,
        )
        set_claims.assert_called_once_with("uid-1", {"role": "staff"}, app=app)

    def test_no_claims_skips_claims_call(self, directory: FirebaseIdentityDirectory) -> None:
        with (
            patch.object(auth, "create_user", return_value=_user()),
            patch.object(auth, "set_custom_user_claims") as set_claims,
        ):
            directory.create_account("a@x.com", "abcdef", "A")
        set_claims.assert_not_called()

    def test_email_exists_becomes_conflict(self, directory: FirebaseIdentityDirectory) -> None:
        error = auth.EmailAlreadyExistsError("exists", None, None)
        with (
            patch.object(auth, "create_user", side_effect=error),
            pytest.raises(ConflictError),
        ):
            directory.create_account("a@x.com", "abcdef", "A")

    def test_sdk_value_error_becomes_validation(
        self, directory: FirebaseIdentityDirectory
    ) -> None:
        error = ValueError("Password must be a string at least 6 characters long.")
        with (
            patch.object(auth, "create_user", side_effect=error),
            pytest.raises(ValidationError),
        ):
            directory.create_account("a@x.com", "abc", "A")

    def test_invalid_argument_becomes_validation(
        self, directory: FirebaseIdentityDirectory
    ) -> None:
        error = firebase_exceptions.InvalidArgumentError("bad email")
        with (
            patch.object(auth, "create_user", side_effect=error),
            pytest.raises(ValidationError),
        ):
            directory.create_account("bad", "abcdef", "A")

    def test_unavailable_becomes_dependency_error(
        self, directory: FirebaseIdentityDirectory
    ) -> None:
        error = firebase_exceptions.UnavailableError("down")
        with (
            patch.object(auth, "create_user", side_effect=error),
            pytest.raises(DependencyError) as exc_info,
        ):
            directory.create_account("a@x.com", "abcdef", "A")

        assert exc_info.value.context["origin"] == "identity"
        assert exc_info.value.context["code"] == "UNAVAILABLE"

    def test_claims_failure_removes_new_user(
        self, directory: FirebaseIdentityDirectory, app: MagicMock
    ) -> None:
        error = firebase_exceptions.UnavailableError("down")
        with (
            patch.object(auth, "create_user", return_value=_user()),
            patch.object(auth, "set_custom_user_claims", side_effect=error),
            patch.object(auth, "delete_user") as delete_user,
            pytest.raises(DependencyError, match="claims"),
        ):
            directory.create_account("a@x.com", "abcdef", "A", claims={"role": "staff"})

        delete_user.assert_called_once_with("uid-1", app=app)

    def test_claims_cleanup_failure_still_raises(
        self, directory: FirebaseIdentityDirectory
    ) -> None:
        error = firebase_exceptions.UnavailableError("down")
        with (
            patch.object(auth, "create_user", return_value=_user()),
            patch.object(auth, "set_custom_user_claims", side_effect=error),
            patch.object(auth, "delete_user", side_effect=error),
            pytest.raises(DependencyError, match="could not remove"),
        ):
            directory.create_account("a@x.com", "abcdef", "A", claims={"role": "staff"})


@pytest.mark.unit
class TestLookupAndList:
    def test_lookup_found(self, directory: FirebaseIdentityDirectory) -> None:
        with patch.object(auth, "get_user_by_email", return_value=_user(disabled=True)):
            account = directory.lookup_by_email("a@x.com")
        assert account is not None
        assert account.email == "a@x.com"
        assert account.disabled is True

    def test_lookup_missing_returns_none(self, directory: FirebaseIdentityDirectory) -> None:
        with patch.object(auth, "get_user_by_email", side_effect=auth.UserNotFoundError("missing")):
            assert directory.lookup_by_email("a@x.com") is None

    def test_lookup_provider_failure_propagates(
        self, directory: FirebaseIdentityDirectory
    ) -> None:
        error = firebase_exceptions.DeadlineExceededError("slow")
        with (
            patch.object(auth, "get_user_by_email", side_effect=error),
            pytest.raises(DependencyError),
        ):
            directory.lookup_by_email("a@x.com")

    def test_list_accounts_pages_through_all(
        self, directory: FirebaseIdentityDirectory
    ) -> None:
        page = MagicMock()
        page.iterate_all.return_value = iter([_user("u1", "a@x.com"), _user("u2", "b@x.com")])
        with patch.object(auth, "list_users", return_value=page):
            accounts = directory.list_accounts()
        assert [a.external_id for a in accounts] == ["u1", "u2"]


@pytest.mark.unit
class TestUpdateAndDelete:
    def test_update_maps_secret_to_password(
        self, directory: FirebaseIdentityDirectory, app: MagicMock
    ) -> None:
        with patch.object(auth, "update_user") as update_user:
            directory.update_account("uid-1", email="b@x.com", secret="newsecret", disabled=True)

        update_user.assert_called_once_with(
            "uid-1", app=app, email="b@x.com", password="newsecret", disabled=True
        )

    def test_update_without_changes_is_noop(self, directory: FirebaseIdentityDirectory) -> None:
        with patch.object(auth, "update_user") as update_user:
            directory.update_account("uid-1")
        update_user.assert_not_called()

    def test_update_missing_user(self, directory: FirebaseIdentityDirectory) -> None:
        with (
            patch.object(auth, "update_user", side_effect=auth.UserNotFoundError("missing")),
            pytest.raises(IdentityNotFoundError) as exc_info,
        ):
            directory.update_account("uid-404", display_name="X")
        assert exc_info.value.resource_id == "uid-404"

    def test_update_email_taken(self, directory: FirebaseIdentityDirectory) -> None:
        error = auth.EmailAlreadyExistsError("exists", None, None)
        with (
            patch.object(auth, "update_user", side_effect=error),
            pytest.raises(ConflictError),
        ):
            directory.update_account("uid-1", email="b@x.com")

    def test_delete(self, directory: FirebaseIdentityDirectory, app: MagicMock) -> None:
        with patch.object(auth, "delete_user") as delete_user:
            directory.delete_account("uid-1")
        delete_user.assert_called_once_with("uid-1", app=app)

    def test_delete_missing_user(self, directory: FirebaseIdentityDirectory) -> None:
        with (
            patch.object(auth, "delete_user", side_effect=auth.UserNotFoundError("missing")),
            pytest.raises(IdentityNotFoundError),
        ):
            directory.delete_account("uid-404")
