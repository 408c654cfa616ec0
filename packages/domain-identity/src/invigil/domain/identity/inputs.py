"""Validated input models for provisioning commands.

Request bodies arrive as loose mappings. They are parsed here into a
discriminated union keyed by ``kind`` (one model per principal kind) before
they reach the provisioning service, so every shape and format problem is
reported as a domain ValidationError ahead of any external call.

Legacy field names (``password``, ``regNo``, ``newEmail``, ``newPassword``)
are accepted as aliases.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Literal

import pydantic
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from invigil.domain.identity.records import PROFILE_ONLY_FIELDS
from invigil.foundation.domain.exceptions import ValidationError
from invigil.foundation.domain.principal import PrincipalKind, StudentStatus, UserRole
from invigil.foundation.domain.principal_value_objects import (
    DisplayName,
    Email,
    RegistrationNumber,
    Secret,
)


def _required_text(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        msg = "must not be empty"
        raise ValueError(msg)
    return stripped


class _PrincipalInput(BaseModel):
    """Fields shared by every principal kind."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    name: str
    email: str
    secret: str = Field(repr=False, validation_alias=AliasChoices("secret", "password"))

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        return DisplayName(v).value

    @field_validator("email")
    @classmethod
    def _validate_email(cls, v: str) -> str:
        return Email(v).value

    @field_validator("secret")
    @classmethod
    def _validate_secret(cls, v: str) -> str:
        return Secret(v).value

    def profile_attributes(self) -> dict[str, Any]:
        """Kind-specific attributes in stored-document form."""
        return {}

    def identity_claims(self) -> dict[str, Any] | None:
        """Custom claims to attach to the identity account, if any."""
        return None


class StaffInput(_PrincipalInput):
    """Staff member: requires a department."""

    kind: Literal["staff"] = "staff"
    department: str
    position: str = "Teacher"
    phone: str = ""

    @field_validator("department")
    @classmethod
    def _validate_department(cls, v: str) -> str:
        return _required_text(v)

    @field_validator("position", "phone")
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip()

    def profile_attributes(self) -> dict[str, Any]:
        return {"department": self.department, "position": self.position, "phone": self.phone}


class StudentInput(_PrincipalInput):
    """Student: requires program, registration number and status."""

    kind: Literal["student"] = "student"
    program: str
    registration_number: str = Field(
        validation_alias=AliasChoices("registration_number", "regNo", "reg_no"),
    )
    status: StudentStatus

    @field_validator("program")
    @classmethod
    def _validate_program(cls, v: str) -> str:
        return _required_text(v)

    @field_validator("registration_number")
    @classmethod
    def _validate_registration_number(cls, v: str) -> str:
        return RegistrationNumber(v).value

    def profile_attributes(self) -> dict[str, Any]:
        return {
            "program": self.program,
            "registration_number": self.registration_number,
            "status": str(self.status),
        }


class UserInput(_PrincipalInput):
    """Generic user with a role claim."""

    kind: Literal["user"] = "user"
    role: UserRole = UserRole.STUDENT
    program: str | None = None

    @field_validator("program")
    @classmethod
    def _strip_program(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else None

    def profile_attributes(self) -> dict[str, Any]:
        return {"role": str(self.role), "program": self.program}

    def identity_claims(self) -> dict[str, Any] | None:
        return {"role": str(self.role)}


PrincipalInput = Annotated[
    StaffInput | StudentInput | UserInput,
    Field(discriminator="kind"),
]

_PRINCIPAL_INPUT_ADAPTER: TypeAdapter[StaffInput | StudentInput | UserInput] = TypeAdapter(
    PrincipalInput
)

# Patch fields that apply to every kind; the rest are kind attributes.
_COMMON_PATCH_FIELDS: frozenset[str] = frozenset({"new_email", "new_secret", "name"})

_KIND_PATCH_FIELDS: dict[PrincipalKind, frozenset[str]] = {
    PrincipalKind.STAFF: frozenset({"department", "position", "phone"}),
    PrincipalKind.STUDENT: frozenset({"program", "registration_number", "status"}),
    PrincipalKind.USER: frozenset({"program"}),
}


class PrincipalPatch(BaseModel):
    """Changes requested for an existing principal.

    Only fields that were provided (non-None) are applied. Role and
    ``external_id`` are not patchable.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    new_email: str | None = Field(
        default=None,
        validation_alias=AliasChoices("new_email", "newEmail"),
    )
    new_secret: str | None = Field(
        default=None,
        repr=False,
        validation_alias=AliasChoices("new_secret", "newSecret", "newPassword"),
    )
    name: str | None = None
    department: str | None = None
    position: str | None = None
    phone: str | None = None
    program: str | None = None
    registration_number: str | None = Field(
        default=None,
        validation_alias=AliasChoices("registration_number", "regNo", "reg_no"),
    )
    status: StudentStatus | None = None

    @field_validator("new_email")
    @classmethod
    def _validate_new_email(cls, v: str | None) -> str | None:
        return Email(v).value if v is not None else None

    @field_validator("new_secret")
    @classmethod
    def _validate_new_secret(cls, v: str | None) -> str | None:
        return Secret(v).value if v is not None else None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str | None) -> str | None:
        return DisplayName(v).value if v is not None else None

    @field_validator("department", "program")
    @classmethod
    def _validate_required_text(cls, v: str | None) -> str | None:
        return _required_text(v) if v is not None else None

    @field_validator("position", "phone")
    @classmethod
    def _strip(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else None

    @field_validator("registration_number")
    @classmethod
    def _validate_registration_number(cls, v: str | None) -> str | None:
        return RegistrationNumber(v).value if v is not None else None

    def provided(self) -> dict[str, Any]:
        """Fields that were provided, with enums as plain strings."""
        return {
            name: (str(value) if isinstance(value, StudentStatus) else value)
            for name, value in self.model_dump(exclude_none=True).items()
        }

    def identity_changes(self) -> dict[str, Any]:
        """Keyword arguments for IdentityDirectoryPort.update_account."""
        changes: dict[str, Any] = {}
        if self.new_email is not None:
            changes["email"] = self.new_email
        if self.new_secret is not None:
            changes["secret"] = self.new_secret
        if self.name is not None:
            changes["display_name"] = self.name
        return changes

    def profile_changes(self) -> dict[str, Any]:
        """Document fields to set on the profile."""
        provided = self.provided()
        changes = {k: v for k, v in provided.items() if k not in _COMMON_PATCH_FIELDS}
        if self.new_email is not None:
            changes["email"] = self.new_email
        if self.name is not None:
            changes["name"] = self.name
        if self.new_secret is not None:
            changes["secret"] = self.new_secret
        return changes


def _to_validation_error(
    err: pydantic.ValidationError, *, strip_prefix: str | None = None
) -> ValidationError:
    first = err.errors()[0]
    loc = [str(part) for part in first.get("loc", ())]
    if strip_prefix is not None and loc and loc[0] == strip_prefix:
        loc = loc[1:]
    field = ".".join(loc) or "input"
    reason = str(first.get("msg", "invalid value")).removeprefix("Value error, ")
    return ValidationError(field, reason, error_count=err.error_count())


def parse_principal_input(
    kind: PrincipalKind | str,
    data: Mapping[str, Any] | StaffInput | StudentInput | UserInput,
) -> StaffInput | StudentInput | UserInput:
    """Validate a create payload for the given kind.

    Args:
        kind: Target principal kind.
        data: Raw mapping, or an already-parsed input model.

    Returns:
        The kind's input model with normalized values.

    Raises:
        ValidationError: Unknown kind, kind mismatch, or any field problem.
    """
    kind = parse_kind(kind)
    if isinstance(data, _PrincipalInput):
        if data.kind != kind:
            raise ValidationError("kind", f"Expected {kind} input, got {data.kind}")
        return data  # type: ignore[return-value]

    if not isinstance(data, Mapping):
        raise ValidationError("input", "Payload must be an object")
    supplied_kind = data.get("kind")
    if supplied_kind is not None and supplied_kind != kind:
        raise ValidationError("kind", f"Expected {kind} input, got {supplied_kind}")
    try:
        return _PRINCIPAL_INPUT_ADAPTER.validate_python({**data, "kind": str(kind)})
    except pydantic.ValidationError as err:
        raise _to_validation_error(err, strip_prefix=str(kind)) from err


def parse_principal_patch(
    kind: PrincipalKind | str,
    data: Mapping[str, Any] | PrincipalPatch,
    *,
    profile_only: bool = False,
) -> PrincipalPatch:
    """Validate an update payload and check every field applies to kind.

    Args:
        kind: Principal kind being updated.
        data: Raw mapping or parsed patch.
        profile_only: Restrict to fields with no identity-side counterpart.

    Raises:
        ValidationError: Malformed values, empty patch, or fields that do
            not apply to this kind.
    """
    kind = parse_kind(kind)
    if isinstance(data, PrincipalPatch):
        patch = data
    else:
        try:
            patch = PrincipalPatch.model_validate(data)
        except pydantic.ValidationError as err:
            raise _to_validation_error(err) from err

    provided = patch.provided()
    if not provided:
        raise ValidationError("patch", "At least one field to update must be provided")

    allowed = (
        PROFILE_ONLY_FIELDS[kind]
        if profile_only
        else _COMMON_PATCH_FIELDS | _KIND_PATCH_FIELDS[kind]
    )
    for field_name in provided:
        if field_name not in allowed:
            raise ValidationError(field_name, f"Field cannot be updated on {kind} principals")
    return patch


def parse_kind(kind: PrincipalKind | str) -> PrincipalKind:
    """Coerce a kind argument, raising ValidationError for unknown values."""
    try:
        return PrincipalKind(kind)
    except ValueError:
        allowed = ", ".join(k.value for k in PrincipalKind)
        raise ValidationError("kind", f"Kind must be one of: {allowed}") from None
