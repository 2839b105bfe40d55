"""Errors raised by the entitlement engine and its stores."""
from __future__ import annotations


class EntitlementError(Exception):
    """Base class for entitlement failures surfaced to callers."""

    code = "entitlement_error"


class InvalidTier(EntitlementError, ValueError):
    """Raised when a tier outside the plan catalog is requested."""

    code = "invalid_tier"

    def __init__(self, tier: object) -> None:
        self.tier = tier
        super().__init__(f"Unknown subscription tier: {tier!r}")


class UnknownAction(EntitlementError, ValueError):
    """Raised when an action outside the metered set is checked or tracked."""

    code = "unknown_action"

    def __init__(self, action: object) -> None:
        self.action = action
        super().__init__(f"Unknown metered action: {action!r}")


class StorageFailure(EntitlementError, RuntimeError):
    """Raised when the subscription store cannot read or write a record."""

    code = "storage_failure"
