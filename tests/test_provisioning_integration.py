"""End-to-end provisioning flows through the composition root."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from invigil.domain.identity import capture
from invigil.foundation.domain.exceptions import ErrorKind
from invigil.foundation.domain.principal import PrincipalKind, StudentStatus

if TYPE_CHECKING:
    from invigil.app.provisioning import ProvisioningContainer


@pytest.mark.integration
class TestPrincipalLifecycle:
    def test_create_update_deactivate_delete(self, container: ProvisioningContainer) -> None:
        service = container.service

        record = service.create(
            "staff",
            {"name": "Ada", "department": "CS", "email": "Ada@School.edu", "secret": "abcdef"},
        )
        assert record.email == "ada@school.edu"
        assert record.attributes["position"] == "Teacher"
        assert record.to_profile()["department"] == "CS"

        service.update("staff", "ada@school.edu", {"newEmail": "ada.l@school.edu", "name": "Ada L"})
        moved = service.get("staff", record.external_id)
        assert (moved.email, moved.name) == ("ada.l@school.edu", "Ada L")
        account = container.directory.lookup_by_email("ada.l@school.edu")
        assert account is not None
        assert account.display_name == "Ada L"

        assert service.deactivate("staff", moved.id).is_active is False

        result = service.delete("staff", "ada.l@school.edu")
        assert (result.identity_deleted, result.profile_deleted) == (True, True)
        assert container.directory.list_accounts() == []

    def test_email_unique_across_kinds(self, container: ProvisioningContainer) -> None:
        service = container.service
        service.create(
            "user", {"name": "Uma", "email": "uma@school.edu", "secret": "secret1", "role": "admin"}
        )

        outcome = capture(
            service.create,
            "staff",
            {"name": "Uma", "department": "Math", "email": "UMA@school.edu", "secret": "abcdef"},
        )

        assert outcome.ok is False
        assert outcome.error_kind is ErrorKind.CONFLICT
        assert container.stores[PrincipalKind.STAFF].find_many() == []

    def test_outcome_for_invalid_input(self, container: ProvisioningContainer) -> None:
        outcome = capture(container.service.create, "student", {"email": "x@school.edu"})

        assert outcome.ok is False
        assert outcome.to_dict()["error_code"] == "VALIDATION_ERROR"
        assert container.directory.list_accounts() == []


@pytest.mark.integration
class TestBulkImport:
    def test_import_then_remove(
        self, container: ProvisioningContainer, student_rows: list[dict[str, Any]]
    ) -> None:
        report = container.orchestrator.create_many("student", student_rows)

        assert report.to_dict()["success"] == 3
        profiles = container.service.list_profiles("student")
        assert sorted(p.attributes["registration_number"] for p in profiles) == [
            "BSCS001",
            "BSCS002",
            "BSCS003",
        ]
        assert container.service.student_status("student2@school.edu") is StudentStatus.ACTIVE

        removal = container.orchestrator.delete_many(
            "student", [p.external_id for p in profiles]
        )
        assert removal.deleted == 3
        assert container.directory.list_accounts() == []

    def test_duplicate_registration_number_rolls_back_batch(
        self, container: ProvisioningContainer, student_rows: list[dict[str, Any]]
    ) -> None:
        student_rows[2]["regNo"] = student_rows[0]["regNo"].upper()

        report = container.orchestrator.create_many("student", student_rows)

        assert (report.success, report.failed) == (2, 1)
        assert report.results[2].error is not None
        assert report.results[2].error.error_code == "CONFLICT"
        assert report.compensated is True
        assert container.directory.list_accounts() == []
