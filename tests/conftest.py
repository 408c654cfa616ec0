"""Shared fixtures for integration tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from invigil.app.provisioning import ProvisioningSettings, build_container

if TYPE_CHECKING:
    from collections.abc import Iterator

    from invigil.app.provisioning import ProvisioningContainer


@pytest.fixture()
def container() -> Iterator[ProvisioningContainer]:
    """Fresh in-memory provisioning container for each test."""
    built = build_container(ProvisioningSettings(backend="memory", _env_file=None))  # type: ignore[call-arg]
    yield built
    built.close()


@pytest.fixture()
def student_rows() -> list[dict[str, Any]]:
    """Spreadsheet-style student rows as a bulk import would send them."""
    return [
        {
            "name": f"Student {i}",
            "email": f"Student{i}@School.edu",
            "password": "secret1",
            "program": "BSCS",
            "regNo": f"bscs{i:03d}",
            "status": "Active",
        }
        for i in range(1, 4)
    ]
