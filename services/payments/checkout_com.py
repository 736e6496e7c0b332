# services/payments/checkout_com.py
"""
Thin client for the Checkout.com payment-sessions endpoint.

  POST {CHECKOUT_API_URL}/payment-sessions
  Authorization: Bearer <CHECKOUT_SECRET_KEY>

Returns the processor's session JSON unchanged; the browser widget is the
only consumer of its contents.
"""

from __future__ import annotations
import json
import logging
from typing import Any, Dict

import requests

from services.config import CheckoutConfig, mask
from services.errors import PaymentSessionError, TransportError

log = logging.getLogger(__name__)


def error_message(data: Any, raw: str = "") -> str:
    """
    Pick the most useful message out of a processor error body:
    error_description, then error (when it is a string), then message,
    then the body itself.
    """
    if isinstance(data, dict):
        for key in ("error_description", "error", "message"):
            val = data.get(key)
            if isinstance(val, str) and val.strip():
                return val
        if data:
            return json.dumps(data, sort_keys=True)
    if raw.strip():
        return raw.strip()
    return "Payment session creation failed"


class CheckoutComProvider:
    name = "checkout_com"

    def __init__(self, config: CheckoutConfig) -> None:
        self.url = f"{config.api_url}/payment-sessions"
        self.timeout = config.timeout
        self.config = config

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.require_secret()}",
            "Content-Type": "application/json",
        }

    def _redacted_headers(self) -> Dict[str, str]:
        h = self._headers()
        h["Authorization"] = f"Bearer {mask(self.config.secret_key, keep=8)}"
        return h

    def create_session(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        log.info("POST %s headers=%s body=%s", self.url,
                 self._redacted_headers(), json.dumps(payload, sort_keys=True))
        try:
            r = requests.post(self.url, headers=self._headers(), json=payload,
                              timeout=self.timeout)
        except requests.RequestException as e:
            log.error("Payment session request failed: %s", e)
            raise TransportError("Payment processor unreachable",
                                 details=str(e)) from e

        try:
            data = r.json()
        except ValueError:
            data = None
        log.info("Processor response status=%s body=%s", r.status_code,
                 json.dumps(data, sort_keys=True) if data is not None else r.text[:2000])

        if not r.ok:
            message = error_message(data, r.text or "")
            log.error("Payment session creation failed (%s): %s", r.status_code, message)
            raise PaymentSessionError(message, status_code=r.status_code,
                                      details=data if data is not None else r.text)

        if not isinstance(data, dict):
            raise TransportError("Processor returned malformed JSON",
                                 details=(r.text or "")[:500])
        return data
