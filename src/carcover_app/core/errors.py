"""Named failure reasons raised by the insurance engine."""

from __future__ import annotations

from typing import Any


class InsuranceError(Exception):
    """Base error carrying a machine-readable reason code."""

    reason = "InsuranceError"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{key}={value}" for key, value in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class RecoverableError(InsuranceError, ValueError):
    """Validation failure: the call is rejected and nothing changes."""


class FatalSettlementError(InsuranceError, RuntimeError):
    """Invariant failure that should never happen under correct use."""


class AlreadyRegistered(RecoverableError):
    reason = "AlreadyRegistered"


class NotRegistered(RecoverableError):
    reason = "NotRegistered"


class CustomerBanned(RecoverableError):
    reason = "CustomerBanned"


class PlateAlreadyInsured(RecoverableError):
    reason = "PlateAlreadyInsured"


class InvalidPlan(RecoverableError):
    reason = "InvalidPlan"


class InvalidInput(RecoverableError):
    reason = "InvalidInput"


class PolicyNotFound(RecoverableError):
    reason = "PolicyNotFound"


class InvalidCaller(RecoverableError):
    reason = "InvalidCaller"


class TooSoon(RecoverableError):
    reason = "TooSoon"


class AlreadyClaimed(RecoverableError):
    reason = "AlreadyClaimed"


class MissingFields(RecoverableError):
    reason = "MissingFields"


class PeriodExpired(RecoverableError):
    reason = "PeriodExpired"


class ExceedsMaxPayout(RecoverableError):
    reason = "ExceedsMaxPayout"


class Unauthorized(RecoverableError):
    reason = "Unauthorized"


class WrongAmount(FatalSettlementError):
    reason = "WrongAmount"


class TransferFailed(FatalSettlementError):
    reason = "TransferFailed"
