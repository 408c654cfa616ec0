"""Invigil Foundation Domain -- pure Python domain primitives.

This package provides the foundational building blocks shared by the
provisioning core: exceptions, principal kinds, value objects and the port
interfaces of the identity directory and profile store.
"""

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
from invigil.foundation.domain.ports import (
    Document,
    IdentityAccount,
    IdentityDirectoryPort,
    ProfileStorePort,
)
from invigil.foundation.domain.principal import PrincipalKind, StudentStatus, UserRole
from invigil.foundation.domain.principal_value_objects import (
    MIN_SECRET_LENGTH,
    DisplayName,
    Email,
    RegistrationNumber,
    Secret,
)

__all__ = [
    "MIN_SECRET_LENGTH",
    "ConflictError",
    "DependencyError",
    "DependencyOrigin",
    "DisplayName",
    "Document",
    "DomainError",
    "Email",
    "ErrorKind",
    "IdentityAccount",
    "IdentityDirectoryPort",
    "IdentityNotFoundError",
    "NotFoundError",
    "PartialStateError",
    "PrincipalKind",
    "ProfileNotFoundError",
    "ProfileStorePort",
    "RegistrationNumber",
    "Secret",
    "StudentStatus",
    "UserRole",
    "ValidationError",
]
