from __future__ import annotations

from typing import Optional

from .enums import DeviceVerdict


class DomainError(Exception):
    """Base exception for business rule violations.

    ``kind`` is a stable identifier callers can branch on; the message is for humans.
    """

    kind = "domain_error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "validation_error"


class NotFoundError(DomainError):
    """Raised when a person or branch is unknown."""

    kind = "not_found"


class AlreadyCheckedInError(DomainError):
    kind = "already_checked_in"


class AlreadyCheckedOutError(DomainError):
    kind = "already_checked_out"


class CheckInRequiredError(DomainError):
    kind = "check_in_required"


class DeviceNotApprovedError(DomainError):
    kind = "device_not_approved"

    def __init__(self, message: str, *, verdict: Optional[DeviceVerdict] = None):
        super().__init__(message)
        self.verdict = verdict


class ConflictError(DomainError):
    """A concurrent writer changed the record first."""

    kind = "conflict"


class InfrastructureError(Exception):
    """Storage or collaborator failure. Not the caller's fault; retry later."""

    kind = "unavailable"


class UpstreamTimeoutError(InfrastructureError):
    kind = "timeout"
