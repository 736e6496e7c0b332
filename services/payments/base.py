# services/payments/base.py
"""
Interface every processor adapter implements.
"""

from __future__ import annotations
from typing import Dict, Any, Protocol


class PaymentProvider(Protocol):
    name: str

    def create_session(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST one payment-session request to the processor and return its JSON
        untouched. Exactly one round trip, no retry.
        Raise PaymentSessionError on a non-2xx answer and TransportError on
        network or decoding failures.
        """
