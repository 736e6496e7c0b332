# services/checkout_flow.py
"""
Two-step checkout: collect billing, then hand over to the processor widget.

    collecting_billing --proceed()--> awaiting_payment
    awaiting_payment   --back()-----> collecting_billing

The builder is only called after the widget script reports it has loaded
(script_loaded). Success/failure pages are outside the machine; a widget
completion just tells the navigator where to go.

The flow knows nothing about Flask: controllers/checkout.py keeps it in the
cookie session via to_dict()/from_dict().
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol
from urllib.parse import urlencode

from models.checkout import BILLING_FIELDS, BillingInfo
from services.errors import CheckoutError, ValidationError, WidgetError
from services.metrics import FLOW_TRANSITIONS

log = logging.getLogger(__name__)

COLLECTING_BILLING = "collecting_billing"
AWAITING_PAYMENT = "awaiting_payment"

MSG_INCOMPLETE = "Please fill in all required billing information fields"
MSG_SCRIPT_FAILED = "Failed to load checkout script"
MSG_PAYMENT_FAILED = "Payment failed"
MSG_NO_PUBLIC_KEY = "CHECKOUT_PUBLIC_KEY is not configured"


class WidgetCallbacks(Protocol):
    """What the processor widget binding calls back into."""

    def on_completed(self, payment_id: str) -> Any: ...

    def on_failed(self, error_message: Any) -> Any: ...


# (amount, currency, billing) -> processor session JSON
SessionRequester = Callable[[int, str, BillingInfo], Dict[str, Any]]


@dataclass
class WidgetInit:
    payment_session: Dict[str, Any]
    public_key: str
    environment: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "paymentSession": self.payment_session,
            "publicKey": self.public_key,
            "environment": self.environment,
        }


class CheckoutFlow:
    def __init__(self, amount: int, currency: str,
                 billing: BillingInfo | None = None) -> None:
        self.amount = amount
        self.currency = currency
        self.billing = billing or BillingInfo()
        self.state = COLLECTING_BILLING
        self.error: Optional[str] = None
        self.script_ready = False
        self.mounted = False
        self.session: Optional[Dict[str, Any]] = None
        self.session_id: Optional[str] = None

    # ----- billing step ---------------------------------------------------

    def update_field(self, name: str, value: Any) -> None:
        if self.state != COLLECTING_BILLING:
            raise ValidationError("Billing information can't be changed during payment")
        if name not in BILLING_FIELDS:
            raise ValidationError(f"unknown billing field '{name}'")
        self.billing.set(name, value)

    def update(self, fields: Dict[str, Any]) -> None:
        for name, value in fields.items():
            if name in BILLING_FIELDS:
                self.update_field(name, value)

    def proceed(self) -> None:
        missing = self.billing.missing_required()
        if missing:
            self.error = MSG_INCOMPLETE
            FLOW_TRANSITIONS.labels(event="invalid").inc()
            raise ValidationError(MSG_INCOMPLETE, missing=missing)
        self.error = None
        self.state = AWAITING_PAYMENT
        self.script_ready = False
        self.mounted = False
        self.session = None
        self.session_id = None
        FLOW_TRANSITIONS.labels(event="proceed").inc()

    def back(self) -> None:
        if self.state != AWAITING_PAYMENT:
            return
        self.state = COLLECTING_BILLING
        self.script_ready = False
        self.session = None
        self.session_id = None
        self.mounted = False
        self.error = None
        FLOW_TRANSITIONS.labels(event="back").inc()

    # ----- payment step ---------------------------------------------------

    def _require_payment_step(self) -> None:
        if self.state != AWAITING_PAYMENT:
            raise ValidationError(MSG_INCOMPLETE)

    def script_loaded(self, requester: SessionRequester, public_key: str | None,
                      environment: str) -> WidgetInit:
        self._require_payment_step()
        self.script_ready = True
        self.error = None
        try:
            if not public_key:
                raise WidgetError(MSG_NO_PUBLIC_KEY, status_code=500)
            session = requester(self.amount, self.currency, self.billing)
        except CheckoutError as e:
            self.error = e.public_message or e.message
            raise
        self.session = session
        self.session_id = str(session.get("id") or "")
        return WidgetInit(session, public_key, environment)

    def script_failed(self, reason: str | None = None) -> None:
        self._require_payment_step()
        log.warning("Widget script failed to load: %s", reason or "unknown")
        self.script_ready = False
        self.error = MSG_SCRIPT_FAILED
        raise WidgetError(MSG_SCRIPT_FAILED)

    def widget_mounted(self) -> None:
        self._require_payment_step()
        if self.session_id is None:
            raise WidgetError("No payment session to mount")
        self.mounted = True

    def callbacks(self, success_path: str = "/success") -> "FlowCallbacks":
        return FlowCallbacks(self, success_path)

    # ----- persistence ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        # the processor session is not kept: the widget already holds it
        return {
            "amount": self.amount,
            "currency": self.currency,
            "billing": self.billing.to_dict(),
            "state": self.state,
            "error": self.error,
            "script_ready": self.script_ready,
            "mounted": self.mounted,
            "session_id": self.session_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CheckoutFlow":
        flow = cls(int(data["amount"]), data["currency"],
                   BillingInfo.from_dict(data.get("billing")))
        state = data.get("state")
        flow.state = state if state in (COLLECTING_BILLING, AWAITING_PAYMENT) else COLLECTING_BILLING
        flow.error = data.get("error")
        flow.script_ready = bool(data.get("script_ready"))
        flow.mounted = bool(data.get("mounted"))
        flow.session_id = data.get("session_id")
        return flow


class FlowCallbacks:
    """WidgetCallbacks bound to a flow."""

    def __init__(self, flow: CheckoutFlow, success_path: str) -> None:
        self.flow = flow
        self.success_path = success_path

    def on_completed(self, payment_id: str) -> str:
        """Returns the success URL to navigate to."""
        self.flow._require_payment_step()
        if not self.flow.session_id:
            raise WidgetError("No payment session was started")
        if not payment_id:
            raise WidgetError("Missing payment id")
        FLOW_TRANSITIONS.labels(event="completed").inc()
        log.info("Payment completed: %s", payment_id)
        return f"{self.success_path}?{urlencode({'paymentId': payment_id})}"

    def on_failed(self, error_message: Any) -> WidgetError:
        """Stays on the payment step; the message is shown in place."""
        # the widget may hand over its error object instead of a string
        if isinstance(error_message, dict):
            error_message = error_message.get("message")
        msg = str(error_message or "").strip() or MSG_PAYMENT_FAILED
        FLOW_TRANSITIONS.labels(event="failed").inc()
        log.info("Payment failed in widget: %s", msg)
        self.flow.error = msg
        return WidgetError(msg)
