# models/checkout.py
"""
Checkout data shapes.

BillingInfo mirrors the billing form (camelCase keys on the wire).
PaymentSessionRequest is the processor-shaped body we POST to
/payment-sessions; every optional field is a real Optional and
to_payload() drops keys whose value is None.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any, List, Mapping

# form key -> attribute
BILLING_FIELDS: Dict[str, str] = {
    "firstName": "first_name",
    "lastName": "last_name",
    "email": "email",
    "phone": "phone",
    "phoneCountryCode": "phone_country_code",
    "addressLine1": "address_line1",
    "addressLine2": "address_line2",
    "city": "city",
    "state": "state",
    "zip": "zip",
    "country": "country",
}

REQUIRED_BILLING_FIELDS = ("firstName", "lastName", "email",
                           "addressLine1", "city", "zip")


def blank_to_none(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


@dataclass
class BillingInfo:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    phone_country_code: str = ""
    address_line1: str = ""
    address_line2: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = "SG"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "BillingInfo":
        """Accepts the camelCase JSON the browser sends. Unknown keys are ignored."""
        info = cls()
        for key, attr in BILLING_FIELDS.items():
            if data and data.get(key) is not None:
                setattr(info, attr, str(data[key]))
        return info

    def to_dict(self) -> Dict[str, str]:
        return {key: getattr(self, attr) for key, attr in BILLING_FIELDS.items()}

    def get(self, key: str) -> str:
        return getattr(self, BILLING_FIELDS[key])

    def set(self, key: str, value: Any) -> None:
        setattr(self, BILLING_FIELDS[key], "" if value is None else str(value))

    def missing_required(self) -> List[str]:
        return [k for k in REQUIRED_BILLING_FIELDS if not self.get(k).strip()]

    def is_complete(self) -> bool:
        return not self.missing_required()


def _drop_none(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: _drop_none(v) for k, v in obj.items() if v is not None}
    return obj


@dataclass
class Phone:
    country_code: str
    number: str


@dataclass
class Address:
    address_line1: str
    city: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    address_line2: Optional[str] = None
    state: Optional[str] = None


@dataclass
class Customer:
    email: str
    name: str
    # flat string or structured Phone, depending on PHONE_FORMAT
    phone: Optional[Any] = None


@dataclass
class PaymentSessionRequest:
    amount: int
    currency: str
    reference: str
    address: Address
    customer: Customer
    success_url: Optional[str] = None
    failure_url: Optional[str] = None
    processing_channel_id: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        customer = asdict(self.customer)
        payload: Dict[str, Any] = {
            "amount": self.amount,
            "currency": self.currency,
            "reference": self.reference,
            "billing": {"address": asdict(self.address)},
            "customer": customer,
            "success_url": self.success_url,
            "failure_url": self.failure_url,
            "processing_channel_id": self.processing_channel_id,
        }
        return _drop_none(payload)