"""Tests for Outcome objects and capture()."""

from __future__ import annotations

from typing import Any

import pytest

from invigil.domain.identity.outcomes import Outcome, capture
from invigil.domain.identity.provisioning import ProvisioningService
from invigil.foundation.domain.exceptions import (
    ConflictError,
    DependencyError,
    ErrorKind,
    PartialStateError,
)


@pytest.mark.unit
class TestOutcome:
    def test_success(self) -> None:
        outcome = Outcome.success(42, "done")
        assert outcome.ok is True
        assert outcome.value == 42
        assert outcome.error_kind is None
        assert outcome.to_dict() == {"ok": True, "message": "done"}

    def test_from_domain_error(self) -> None:
        exc = ConflictError("Email already registered", email="a@x.com")
        exc.add_warning("cleanup failed")

        outcome = Outcome.from_exception(exc)

        assert outcome.ok is False
        assert outcome.error_kind is ErrorKind.CONFLICT
        assert outcome.error_code == "CONFLICT"
        assert outcome.message == "Conflict: Email already registered"
        assert outcome.context == {"email": "a@x.com"}
        assert outcome.warnings == ("cleanup failed",)

    def test_dependency_origin_in_context(self) -> None:
        outcome = Outcome.from_exception(DependencyError("identity", "timeout"))
        assert outcome.error_kind is ErrorKind.DEPENDENCY
        assert outcome.context["origin"] == "identity"

    def test_partial_state_kind(self) -> None:
        outcome = Outcome.from_exception(PartialStateError("diverged"))
        assert outcome.to_dict()["error_kind"] == "partial_state"

    def test_from_unexpected_exception(self) -> None:
        exc = RuntimeError("boom")
        exc.add_note("rollback failed")

        outcome = Outcome.from_exception(exc)

        assert outcome.error_kind is ErrorKind.INTERNAL
        assert outcome.error_code == "INTERNAL_ERROR"
        assert outcome.message == "boom"
        assert outcome.warnings == ("rollback failed",)


@pytest.mark.unit
class TestCapture:
    def test_wraps_success(
        self, service: ProvisioningService, staff_payload: dict[str, Any]
    ) -> None:
        outcome = capture(service.create, "staff", staff_payload)
        assert outcome.ok is True
        assert outcome.value is not None
        assert outcome.value.email == "a@x.com"

    def test_wraps_domain_error(
        self, service: ProvisioningService, staff_payload: dict[str, Any]
    ) -> None:
        service.create("staff", staff_payload)
        outcome = capture(service.create, "staff", staff_payload)
        assert outcome.ok is False
        assert outcome.error_code == "CONFLICT"

    def test_other_exceptions_propagate(self) -> None:
        def broken() -> None:
            raise KeyError("bug")

        with pytest.raises(KeyError):
            capture(broken)
