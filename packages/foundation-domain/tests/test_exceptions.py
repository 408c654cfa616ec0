"""Tests for domain exception hierarchy."""

from __future__ import annotations

import pytest

from invigil.foundation.domain.exceptions import (
    ConflictError,
    DependencyError,
    DependencyOrigin,
    DomainError,
    ErrorKind,
    IdentityNotFoundError,
    NotFoundError,
    PartialStateError,
    ProfileNotFoundError,
    ValidationError,
)


@pytest.mark.unit
class TestDomainError:
    """Tests for base DomainError."""

    def test_message_and_code(self) -> None:
        err = DomainError("Something failed")
        assert err.message == "Something failed"
        assert err.error_code == "DOMAIN_ERROR"
        assert err.kind is ErrorKind.INTERNAL
        assert err.context == {}
        assert err.warnings == []

    def test_str_without_context(self) -> None:
        err = DomainError("Simple failure")
        assert str(err) == "Simple failure"

    def test_str_with_context(self) -> None:
        err = DomainError("Failed", context={"a": "1"})
        assert str(err) == "Failed (a=1)"

    def test_repr(self) -> None:
        err = DomainError("Failed", context={"a": "1"})
        assert "DomainError" in repr(err)
        assert "Failed" in repr(err)

    def test_add_warning_keeps_error(self) -> None:
        err = ConflictError("duplicate")
        err.add_warning("cleanup failed")
        assert err.warnings == ["cleanup failed"]
        assert err.kind is ErrorKind.CONFLICT


@pytest.mark.unit
class TestNotFoundErrors:
    """Tests for NotFoundError and its side-specific subclasses."""

    def test_message_format(self) -> None:
        err = NotFoundError("IdentityAccount", "uid-1")
        assert str(err).startswith("IdentityAccount not found: uid-1")
        assert err.error_code == "RESOURCE_NOT_FOUND"
        assert err.kind is ErrorKind.NOT_FOUND

    def test_profile_not_found_carries_kind(self) -> None:
        err = ProfileNotFoundError("staff", "a@x.com")
        assert err.error_code == "PROFILE_NOT_FOUND"
        assert err.resource_type == "Profile"
        assert err.context["principal_kind"] == "staff"

    def test_identity_not_found_is_distinct(self) -> None:
        err = IdentityNotFoundError("a@x.com")
        assert err.error_code == "IDENTITY_NOT_FOUND"
        assert err.error_code != ProfileNotFoundError("staff", "a@x.com").error_code
        assert isinstance(err, NotFoundError)


@pytest.mark.unit
class TestValidationError:
    def test_fields(self) -> None:
        err = ValidationError("secret", "too short")
        assert err.field == "secret"
        assert err.reason == "too short"
        assert str(err).startswith("Validation failed for 'secret': too short")
        assert err.kind is ErrorKind.VALIDATION


@pytest.mark.unit
class TestConflictError:
    def test_message_prefix_and_context(self) -> None:
        err = ConflictError("Email already registered", email="a@x.com")
        assert err.message == "Conflict: Email already registered"
        assert err.context == {"email": "a@x.com"}
        assert err.error_code == "CONFLICT"


@pytest.mark.unit
class TestDependencyError:
    def test_origin_tagged(self) -> None:
        err = DependencyError("identity", "provider unreachable")
        assert err.origin is DependencyOrigin.IDENTITY
        assert err.context["origin"] == "identity"
        assert err.kind is ErrorKind.DEPENDENCY

    def test_rejects_unknown_origin(self) -> None:
        with pytest.raises(ValueError):
            DependencyError("cache", "down")


@pytest.mark.unit
class TestPartialStateError:
    def test_code_and_context(self) -> None:
        err = PartialStateError("profile update failed", external_id="uid-1")
        assert err.error_code == "PARTIAL_STATE"
        assert err.kind is ErrorKind.PARTIAL_STATE
        assert err.context["external_id"] == "uid-1"
