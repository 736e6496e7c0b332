# services/errors.py
from __future__ import annotations
from typing import Any, Dict, Optional


class CheckoutError(Exception):
    """Base for everything the checkout reports back to the user."""
    status_code = 500
    public_message: Optional[str] = None

    def __init__(self, message: str, status_code: int | None = None,
                 details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"error": self.public_message or self.message}
        if self.details is not None:
            out["details"] = self.details
        return out


class ConfigurationError(CheckoutError):
    # missing/invalid credentials: fatal for the request, not for the process
    status_code = 500


class ValidationError(CheckoutError):
    status_code = 400

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message, details={"missing": missing} if missing else None)
        self.missing = missing or []


class PaymentSessionError(CheckoutError):
    """Processor answered with a non-2xx status. status_code is the processor's."""


class TransportError(CheckoutError):
    status_code = 500
    public_message = "Internal server error"


class WidgetError(CheckoutError):
    status_code = 400
