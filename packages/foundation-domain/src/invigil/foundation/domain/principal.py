"""Principal kinds and kind-specific enumerations.

Pure domain types with no external dependencies. A principal is anyone who
can authenticate: it always has an identity account and a profile record.
"""

from __future__ import annotations

from enum import StrEnum


class PrincipalKind(StrEnum):
    """Kind of principal. Selects the profile collection and extra attributes."""

    STAFF = "staff"
    STUDENT = "student"
    USER = "user"


class StudentStatus(StrEnum):
    """Enrollment status of a student. Checked by the login flow."""

    ACTIVE = "Active"
    HOLD = "Hold"


class UserRole(StrEnum):
    """Role of a generic user, mirrored into the identity account claims."""

    STUDENT = "student"
    STAFF = "staff"
    ADMIN = "admin"
