"""Custom exceptions used for feature gating enforcement."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from fastapi import HTTPException, status

from .paywall import PaywallReason, paywall_message

_REASON_STATUS_CODES: Dict[PaywallReason, int] = {
    PaywallReason.SUBSCRIPTION_REQUIRED: status.HTTP_403_FORBIDDEN,
    PaywallReason.SUBSCRIPTION_EXPIRED: status.HTTP_403_FORBIDDEN,
    PaywallReason.UPGRADE_REQUIRED: status.HTTP_403_FORBIDDEN,
    PaywallReason.LIMIT_REACHED: status.HTTP_402_PAYMENT_REQUIRED,
}


@dataclass
class FeatureGateError(Exception):
    """A gate refusal carrying the paywall reason code the UI should render."""

    code: str
    message: str
    status_code: int = status.HTTP_403_FORBIDDEN
    detail: Optional[Mapping[str, Any]] = None

    def __post_init__(self) -> None:
        base_detail: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.detail:
            base_detail.update(self.detail)
        object.__setattr__(self, "_payload", base_detail)
        super().__init__(self.message)

    @classmethod
    def for_reason(
        cls,
        reason: PaywallReason,
        *,
        message: Optional[str] = None,
        **detail: Any,
    ) -> "FeatureGateError":
        """Build an error whose payload embeds the paywall copy for ``reason``."""

        copy = paywall_message(reason)
        return cls(
            code=reason.value,
            message=message or copy.message,
            status_code=_REASON_STATUS_CODES[reason],
            detail={"paywall": copy.to_dict(), **detail},
        )

    @property
    def reason(self) -> Optional[PaywallReason]:
        try:
            return PaywallReason(self.code)
        except ValueError:
            return None

    @property
    def payload(self) -> Mapping[str, Any]:
        """Serialized representation suitable for JSON responses."""

        return self._payload

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=dict(self.payload))
