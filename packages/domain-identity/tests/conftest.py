"""Shared fixtures for domain-identity tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from invigil.domain.identity.bulk import BulkProvisioningOrchestrator
from invigil.domain.identity.infrastructure import (
    InMemoryIdentityDirectory,
    InMemoryProfileStore,
)
from invigil.domain.identity.provisioning import ProvisioningService
from invigil.domain.identity.records import UNIQUE_FIELDS
from invigil.foundation.domain.exceptions import DependencyError
from invigil.foundation.domain.principal import PrincipalKind

if TYPE_CHECKING:
    from collections.abc import Mapping

    from invigil.foundation.domain.ports import Document


class FlakyProfileStore(InMemoryProfileStore):
    """In-memory store whose writes can be made to fail on demand."""

    def __init__(self, unique_fields: tuple[str, ...]) -> None:
        super().__init__(unique_fields)
        self.fail_insert_emails: set[str] = set()
        self.fail_updates = False
        self.insert_calls = 0

    def insert(self, document: Mapping[str, Any]) -> Document:
        self.insert_calls += 1
        if document.get("email") in self.fail_insert_emails:
            raise DependencyError("profile", "insert rejected")
        return super().insert(document)

    def update_one(self, filter: Mapping[str, Any], patch: Mapping[str, Any]) -> Document | None:
        if self.fail_updates:
            raise DependencyError("profile", "update rejected")
        return super().update_one(filter, patch)


@pytest.fixture()
def directory() -> InMemoryIdentityDirectory:
    return InMemoryIdentityDirectory()


@pytest.fixture()
def stores() -> dict[PrincipalKind, FlakyProfileStore]:
    return {kind: FlakyProfileStore(UNIQUE_FIELDS[kind]) for kind in PrincipalKind}


@pytest.fixture()
def service(
    directory: InMemoryIdentityDirectory,
    stores: dict[PrincipalKind, FlakyProfileStore],
) -> ProvisioningService:
    return ProvisioningService(directory, stores)


@pytest.fixture()
def orchestrator(service: ProvisioningService) -> BulkProvisioningOrchestrator:
    return BulkProvisioningOrchestrator(service)


@pytest.fixture()
def staff_payload() -> dict[str, Any]:
    return {"name": "A", "department": "CS", "email": "A@X.com", "secret": "abcdef"}


@pytest.fixture()
def student_payload() -> dict[str, Any]:
    return {
        "name": "Sam Student",
        "email": "sam@x.com",
        "password": "secret1",
        "program": "BSCS",
        "regNo": "cs101",
        "status": "Active",
    }


@pytest.fixture()
def user_payload() -> dict[str, Any]:
    return {"name": "Uma", "email": "uma@x.com", "secret": "secret1", "role": "admin"}
