# services/session_builder.py
"""
Turns {amount, currency?, billingInfo?} from the browser into the
processor's payment-session body and sends it.

Defaults keep "quick checkout" usable without a billing form: placeholder
address, customer@example.com, "Customer". Optional fields (address line 2,
state, phone) are left as None when blank so they never reach the wire.
"""

from __future__ import annotations
import itertools
import logging
import threading
import time
from typing import Any, Dict, Mapping

from models.checkout import (
    Address, BillingInfo, Customer, PaymentSessionRequest, Phone, blank_to_none,
)
from services.config import CheckoutConfig
from services.errors import (
    CheckoutError, PaymentSessionError, TransportError, ValidationError,
)
from services.metrics import SESSION_REQUESTS
from services.payments.base import PaymentProvider

log = logging.getLogger(__name__)

DEFAULT_ADDRESS_LINE1 = "123 Main Street"
DEFAULT_CITY = "Singapore"
DEFAULT_ZIP = "123456"
DEFAULT_COUNTRY = "SG"
DEFAULT_EMAIL = "customer@example.com"
DEFAULT_NAME = "Customer"
SHORT_ADDRESS_SUFFIX = " Street"

# countries offered on the billing form
CALLING_CODES = {
    "SG": "+65", "US": "+1", "GB": "+44", "AU": "+61",
    "CA": "+1", "MY": "+60", "TH": "+66", "ID": "+62",
}

_seq = itertools.count(1)
_seq_lock = threading.Lock()


def new_reference() -> str:
    """order-<epoch ms>-<n>; n makes same-millisecond requests distinct."""
    with _seq_lock:
        n = next(_seq)
    return f"order-{int(time.time() * 1000)}-{n}"


def _address_line1(raw: str | None, min_length: int) -> str:
    line = blank_to_none(raw)
    if line is None:
        return DEFAULT_ADDRESS_LINE1
    if min_length and len(line) < min_length:
        return line + SHORT_ADDRESS_SUFFIX
    return line


def _phone(billing: BillingInfo, phone_format: str):
    number = blank_to_none(billing.phone)
    if number is None:
        return None
    if phone_format != "structured":
        return number
    code = blank_to_none(billing.phone_country_code) or \
        CALLING_CODES.get((billing.country or "").strip().upper())
    if not code:
        # no calling code known -> flat string
        return number
    if not code.startswith("+"):
        code = "+" + code
    if number.startswith(code):
        number = number[len(code):].strip()
    return Phone(country_code=code, number=number.replace(" ", ""))


def _coerce_amount(amount: Any) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise ValidationError("amount must be a non-negative integer (minor units)")
    return amount


def build_session_request(config: CheckoutConfig, amount: Any,
                          currency: str | None = None,
                          billing: BillingInfo | Mapping[str, Any] | None = None,
                          reference: str | None = None) -> PaymentSessionRequest:
    amount = _coerce_amount(amount)
    currency = (blank_to_none(currency) or config.default_currency).upper()

    if billing is not None and not isinstance(billing, BillingInfo):
        billing = BillingInfo.from_dict(billing)
    b = billing or BillingInfo(country="")

    address = Address(
        address_line1=_address_line1(b.address_line1, config.address_min_length),
        address_line2=blank_to_none(b.address_line2),
        city=blank_to_none(b.city) or DEFAULT_CITY,
        state=blank_to_none(b.state),
        zip=blank_to_none(b.zip) or DEFAULT_ZIP,
        country=(blank_to_none(b.country) or DEFAULT_COUNTRY).upper(),
    )

    first, last = blank_to_none(b.first_name), blank_to_none(b.last_name)
    customer = Customer(
        email=blank_to_none(b.email) or DEFAULT_EMAIL,
        name=f"{first} {last}" if first and last else DEFAULT_NAME,
        phone=_phone(b, config.phone_format),
    )

    return PaymentSessionRequest(
        amount=amount,
        currency=currency,
        reference=reference or new_reference(),
        address=address,
        customer=customer,
        success_url=f"{config.base_url}/success",
        failure_url=f"{config.base_url}/failure",
        processing_channel_id=config.processing_channel_id,
    )


def create_payment_session(config: CheckoutConfig, provider: PaymentProvider, amount: Any,
                           currency: str | None = None,
                           billing: BillingInfo | Mapping[str, Any] | None = None
                           ) -> Dict[str, Any]:
    """
    Build + send one payment-session request. Returns the processor JSON.
    The secret key is checked before anything leaves the process.
    """
    pname = getattr(provider, "name", "unknown")
    try:
        config.require_secret()
    except CheckoutError:
        SESSION_REQUESTS.labels(provider=pname, outcome="config_error").inc()
        raise

    req = build_session_request(config, amount, currency, billing)
    payload = req.to_payload()
    log.info("Creating payment session ref=%s amount=%s currency=%s",
             req.reference, req.amount, req.currency)

    try:
        session = provider.create_session(payload)
    except PaymentSessionError:
        SESSION_REQUESTS.labels(provider=pname, outcome="rejected").inc()
        raise
    except TransportError:
        SESSION_REQUESTS.labels(provider=pname, outcome="transport_error").inc()
        raise

    SESSION_REQUESTS.labels(provider=pname, outcome="ok").inc()
    return session
