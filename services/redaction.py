# services/redaction.py
"""Keep credentials out of log output."""
from __future__ import annotations
import logging
import re
from typing import Iterable

MIN_LITERAL_SECRET = 8

# Checkout.com secret keys (sandbox + live) and bearer headers
_CREDENTIAL_PATTERNS = [
    re.compile(r"\bsk_(?:sbox_|test_)?[A-Za-z0-9_-]{8,}"),
    re.compile(r"(?i)(authorization['\"]?\s*[:=]\s*['\"]?bearer\s+)[^\s'\",}]+"),
]


def redact(text: str, secrets: Iterable[str] = ()) -> str:
    for s in secrets:
        # short placeholders would mangle unrelated text
        if s and len(s) >= MIN_LITERAL_SECRET:
            text = text.replace(s, s[:4] + "[REDACTED]")
    text = _CREDENTIAL_PATTERNS[0].sub(
        lambda m: m.group(0)[:8] + "[REDACTED]", text)
    text = _CREDENTIAL_PATTERNS[1].sub(r"\1[REDACTED]", text)
    return text


class SecretRedactingFilter(logging.Filter):
    """
    Attach to a handler. Renders the record once, scrubs it and freezes the
    result into record.msg so formatters never see the raw secret.
    """

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        super().__init__()
        self.secrets = [s for s in secrets if s]

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            msg = record.getMessage()
        except Exception:
            return True
        clean = redact(msg, self.secrets)
        if clean != msg:
            record.msg = clean
            record.args = None
        return True
