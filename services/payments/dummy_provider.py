# services/payments/dummy_provider.py
"""
A development-only provider that *simulates* the processor.
Useful to walk the checkout pages without a sandbox account.

create_session(...) echoes back a session-shaped dict keyed on the
request reference; no network is touched and no secret is needed.
"""

from __future__ import annotations
import logging
from typing import Any, Dict

log = logging.getLogger(__name__)


class DummyProvider:
    name = "dummy"

    def __init__(self) -> None:
        self.calls: list[Dict[str, Any]] = []

    def create_session(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(payload)
        ref = payload.get("reference") or "anon"
        log.info("dummy payment session for %s", ref)
        return {
            "id": f"ps_dummy_{ref}",
            "payment_session_token": f"tok_dummy_{ref}",
            "payment_session_secret": f"pss_dummy_{ref}",
            "_links": {"self": {"href": f"/payment-sessions/ps_dummy_{ref}"}},
        }
