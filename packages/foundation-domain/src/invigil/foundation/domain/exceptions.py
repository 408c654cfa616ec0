"""Domain exception hierarchy for type-safe error handling.

This module provides the base exception hierarchy for all domain errors.
Exceptions include a machine-readable error code, an error kind used by
outcome objects, and structured context for consistent logging.

Example:
    >>> from invigil.foundation.domain.exceptions import NotFoundError
    >>> raise NotFoundError("Profile", "a@x.com")
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, ClassVar

__all__ = [
    "ConflictError",
    "DependencyError",
    "DependencyOrigin",
    "DomainError",
    "ErrorKind",
    "IdentityNotFoundError",
    "NotFoundError",
    "PartialStateError",
    "ProfileNotFoundError",
    "ValidationError",
]


class ErrorKind(StrEnum):
    """Coarse error taxonomy exposed to callers through outcome objects."""

    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    DEPENDENCY = "dependency"
    PARTIAL_STATE = "partial_state"
    INTERNAL = "internal"


class DependencyOrigin(StrEnum):
    """Which external collaborator a dependency failure came from."""

    IDENTITY = "identity"
    PROFILE = "profile"


class DomainError(Exception):
    """Base class for all domain errors.

    Provides error code and structured context for debugging. All domain
    exceptions inherit from this class to enable consistent outcome mapping
    and logging.

    Attributes:
        error_code: Machine-readable error code for client handling.
        kind: Coarse error category.
        message: Human-readable error description.
        context: Structured debugging information (ids, field names).
        warnings: Secondary problems that happened while handling this error,
            such as a failed compensating action. Never change the error kind.

    Example:
        >>> raise DomainError("Operation failed", context={"external_id": "123"})
        DomainError: Operation failed (external_id=123)
    """

    error_code: str = "DOMAIN_ERROR"
    kind: ClassVar[ErrorKind] = ErrorKind.INTERNAL

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize domain error with message and optional context.

        Args:
            message: Human-readable error description.
            context: Structured debugging information. Keys should be snake_case.
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.warnings: list[str] = []

    def add_warning(self, warning: str) -> None:
        """Attach a secondary warning without changing the primary error."""
        self.warnings.append(warning)

    def __str__(self) -> str:
        """String representation including context for logging."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist.

    Attributes:
        error_code: "RESOURCE_NOT_FOUND" (class constant).
        resource_type: Type of missing resource.
        resource_id: Identifier of missing resource.

    Example:
        >>> raise NotFoundError("IdentityAccount", "uid-123")
        NotFoundError: IdentityAccount not found: uid-123
    """

    error_code: str = "RESOURCE_NOT_FOUND"
    kind: ClassVar[ErrorKind] = ErrorKind.NOT_FOUND

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        **extra_context: Any,
    ) -> None:
        """Initialize not found error.

        Args:
            resource_type: Type of resource (e.g., "Profile", "IdentityAccount").
            resource_id: Identifier of missing resource.
            **extra_context: Additional debugging context (e.g., principal kind).
        """
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type} not found: {resource_id}"
        context = {
            "resource_type": resource_type,
            "resource_id": str(resource_id),
            **extra_context,
        }
        super().__init__(message, context)


class ProfileNotFoundError(NotFoundError):
    """Raised when the Profile Store has no record for a principal."""

    error_code: str = "PROFILE_NOT_FOUND"

    def __init__(self, principal_kind: str, lookup_key: str, **extra_context: Any) -> None:
        super().__init__(
            "Profile",
            lookup_key,
            principal_kind=principal_kind,
            **extra_context,
        )


class IdentityNotFoundError(NotFoundError):
    """Raised when the Identity Directory has no account for a principal.

    Kept distinct from ProfileNotFoundError: a profile without an identity
    means an earlier operation left the pair half-done.
    """

    error_code: str = "IDENTITY_NOT_FOUND"

    def __init__(self, lookup_key: str, **extra_context: Any) -> None:
        super().__init__("IdentityAccount", lookup_key, **extra_context)


class ValidationError(DomainError):
    """Raised when input fails domain validation rules.

    Always raised before any call to an external collaborator.

    Attributes:
        error_code: "VALIDATION_ERROR" (class constant).
        field: Field path that failed validation.
        reason: Human-readable validation failure reason.

    Example:
        >>> raise ValidationError("secret", "Secret must be at least 6 characters")
        ValidationError: Validation failed for 'secret': Secret must be at least 6 characters
    """

    error_code: str = "VALIDATION_ERROR"
    kind: ClassVar[ErrorKind] = ErrorKind.VALIDATION

    def __init__(
        self,
        field: str,
        reason: str,
        **extra_context: Any,
    ) -> None:
        """Initialize validation error.

        Args:
            field: Field path that failed validation. Supports dot notation
                   for nested fields (e.g., "items.2.email").
            reason: Human-readable validation failure reason.
            **extra_context: Additional debugging context.
        """
        self.field = field
        self.reason = reason
        message = f"Validation failed for '{field}': {reason}"
        context = {
            "field": field,
            "reason": reason,
            **extra_context,
        }
        super().__init__(message, context)


class ConflictError(DomainError):
    """Raised when operation conflicts with current system state.

    Use for duplicate emails or registration numbers, whether detected by a
    pre-check or by a unique index at write time.

    Attributes:
        error_code: "CONFLICT" (class constant).
        reason: Description of the conflict.

    Example:
        >>> raise ConflictError("Email already registered", email="a@x.com")
        ConflictError: Conflict: Email already registered (email=a@x.com)
    """

    error_code: str = "CONFLICT"
    kind: ClassVar[ErrorKind] = ErrorKind.CONFLICT

    def __init__(
        self,
        reason: str,
        **context: Any,
    ) -> None:
        """Initialize conflict error.

        Args:
            reason: Description of conflict.
            **context: Additional debugging context (e.g., email, field).
        """
        self.reason = reason
        message = f"Conflict: {reason}"
        super().__init__(message, context)


class DependencyError(DomainError):
    """Raised when an external collaborator fails for an unexpected reason.

    Attributes:
        error_code: "DEPENDENCY_ERROR" (class constant).
        origin: Which side failed (identity directory or profile store).
        reason: Description of the failure.

    Example:
        >>> raise DependencyError(DependencyOrigin.PROFILE, "connection refused")
        DependencyError: profile dependency failed: connection refused (origin=profile)
    """

    error_code: str = "DEPENDENCY_ERROR"
    kind: ClassVar[ErrorKind] = ErrorKind.DEPENDENCY

    def __init__(
        self,
        origin: DependencyOrigin | str,
        reason: str,
        **extra_context: Any,
    ) -> None:
        self.origin = DependencyOrigin(origin)
        self.reason = reason
        message = f"{self.origin} dependency failed: {reason}"
        context = {"origin": str(self.origin), **extra_context}
        super().__init__(message, context)


class PartialStateError(DomainError):
    """Raised when the identity and profile sides disagree after a write.

    Not repaired automatically; an out-of-band reconciliation pass has to
    bring the pair back in line.

    Attributes:
        error_code: "PARTIAL_STATE" (class constant).
        reason: Description of the divergence.
    """

    error_code: str = "PARTIAL_STATE"
    kind: ClassVar[ErrorKind] = ErrorKind.PARTIAL_STATE

    def __init__(self, reason: str, **context: Any) -> None:
        self.reason = reason
        message = f"Partial state: {reason}"
        super().__init__(message, context)
