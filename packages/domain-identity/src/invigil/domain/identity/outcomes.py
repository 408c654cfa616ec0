"""Outcome objects returned to the (external) HTTP layer.

Service methods raise domain exceptions; callers that need a value instead
of an exception wrap the call with :func:`capture`, which returns an
:class:`Outcome` carrying a machine-checkable error kind and code plus a
human-readable message.

Example:
    >>> outcome = capture(service.create, "staff", payload)
    >>> if not outcome.ok:
    ...     respond(outcome.error_code, outcome.message)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from invigil.foundation.domain.exceptions import DomainError, ErrorKind

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of one operation.

    Attributes:
        ok: True when the operation succeeded.
        value: Operation result (None on failure).
        error_kind: Error category, None on success.
        error_code: Machine-readable code from the raised exception.
        message: Human-readable description.
        context: Structured context from the exception.
        warnings: Secondary problems (e.g. failed compensating deletes).
    """

    ok: bool
    value: T | None = None
    error_kind: ErrorKind | None = None
    error_code: str | None = None
    message: str = ""
    context: dict[str, Any] = field(default_factory=dict)
    warnings: tuple[str, ...] = ()

    @classmethod
    def success(cls, value: T | None = None, message: str = "") -> Outcome[T]:
        return cls(ok=True, value=value, message=message)

    @classmethod
    def from_exception(cls, exc: BaseException) -> Outcome[T]:
        """Convert an exception into a failed outcome.

        Domain errors keep their kind, code, context and warnings; anything
        else is reported as an internal error with its string form.
        """
        if isinstance(exc, DomainError):
            return cls(
                ok=False,
                error_kind=exc.kind,
                error_code=exc.error_code,
                message=exc.message,
                context=dict(exc.context),
                warnings=tuple(exc.warnings),
            )
        return cls(
            ok=False,
            error_kind=ErrorKind.INTERNAL,
            error_code="INTERNAL_ERROR",
            message=str(exc) or exc.__class__.__name__,
            warnings=tuple(getattr(exc, "__notes__", ())),
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly form; omits empty fields."""
        data: dict[str, Any] = {"ok": self.ok}
        if self.error_kind is not None:
            data["error_kind"] = str(self.error_kind)
            data["error_code"] = self.error_code
        if self.message:
            data["message"] = self.message
        if self.context:
            data["context"] = self.context
        if self.warnings:
            data["warnings"] = list(self.warnings)
        return data


def capture(fn: Callable[..., T], /, *args: Any, **kwargs: Any) -> Outcome[T]:
    """Run fn and return its result or its DomainError as an Outcome.

    Exceptions that are not DomainError propagate unchanged: adapters
    translate every provider failure, so anything else is a bug.
    """
    try:
        value = fn(*args, **kwargs)
    except DomainError as exc:
        return Outcome.from_exception(exc)
    return Outcome.success(value)
