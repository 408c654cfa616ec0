"""Value objects for principal attributes.

Immutable, validated domain primitives. All validation and normalization
occurs at construction.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_REGISTRATION_NUMBER_PATTERN = re.compile(r"^[A-Za-z0-9]+$")

MIN_SECRET_LENGTH = 6


@dataclass(frozen=True, slots=True)
class Email:
    """Validated, canonical email address.

    Leading and trailing whitespace is removed and the address is
    lower-cased; the canonical form is the lookup key on both sides.

    Attributes:
        value: The normalized email string.

    Raises:
        ValueError: If the email is empty, too long or malformed.
    """

    value: str

    def __post_init__(self) -> None:
        normalized = self.value.strip().lower()
        if not normalized:
            msg = "Email cannot be empty"
            raise ValueError(msg)
        if len(normalized) > 255:
            msg = f"Email too long: {len(normalized)} chars (max 255)"
            raise ValueError(msg)
        if not _EMAIL_PATTERN.match(normalized):
            msg = f"Invalid email format: '{self.value}'"
            raise ValueError(msg)
        object.__setattr__(self, "value", normalized)


@dataclass(frozen=True, slots=True)
class Secret:
    """Plaintext credential handed to the identity provider.

    Kept verbatim (no trimming). Excluded from repr so it never reaches logs.

    Raises:
        ValueError: If shorter than MIN_SECRET_LENGTH characters.
    """

    value: str = field(repr=False)

    def __post_init__(self) -> None:
        if len(self.value) < MIN_SECRET_LENGTH:
            msg = f"Secret must be at least {MIN_SECRET_LENGTH} characters"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class RegistrationNumber:
    """Student registration number, upper-cased alphanumeric.

    Raises:
        ValueError: If empty or containing non-alphanumeric characters.
    """

    value: str

    def __post_init__(self) -> None:
        normalized = self.value.strip().upper()
        if not _REGISTRATION_NUMBER_PATTERN.match(normalized):
            msg = "Registration number must be alphanumeric"
            raise ValueError(msg)
        object.__setattr__(self, "value", normalized)


@dataclass(frozen=True, slots=True)
class DisplayName:
    """Validated display name value object.

    Format: Non-empty string after whitespace stripping, max 255 characters.

    Raises:
        ValueError: If display name is empty/whitespace-only or exceeds 255 chars.
    """

    value: str

    def __post_init__(self) -> None:
        stripped = self.value.strip()
        if not stripped:
            msg = "Display name cannot be empty"
            raise ValueError(msg)
        if len(stripped) > 255:
            msg = f"Display name too long: {len(stripped)} chars (max 255)"
            raise ValueError(msg)
        object.__setattr__(self, "value", stripped)
