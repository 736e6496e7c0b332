# services/config.py
"""
Process-wide checkout configuration.

Built once by create_app() and stored in app.extensions["checkout_config"].
Values come from the environment first, then from the Flask config
(tests pass overrides through create_app(test_config)).

  CHECKOUT_SECRET_KEY     server-only bearer credential (required per request)
  CHECKOUT_PUBLIC_KEY     browser key for the Flow widget
                          (NEXT_PUBLIC_CHECKOUT_PUBLIC_KEY is accepted too)
  BASE_URL                base for success/failure redirect targets
  PROCESSING_CHANNEL_ID   processor channel id
  CHECKOUT_API_URL        default: sandbox API
  CHECKOUT_ENVIRONMENT    "sandbox" | "production"
  PAYMENT_CURRENCY        default currency (SGD)
  PAYMENT_AMOUNT          amount shown on the checkout page, minor units (10000)
  PHONE_FORMAT            "flat" | "structured"
  ADDRESS_MIN_LENGTH      pad shorter address lines with " Street" (0 = off)
  CHECKOUT_TIMEOUT        seconds (15)
  PAYMENT_PROVIDER        "checkout_com" | "dummy"
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping

from services.errors import ConfigurationError

log = logging.getLogger(__name__)

SANDBOX_API_URL = "https://api.sandbox.checkout.com"
WIDGET_SCRIPT_URL = "https://checkout-web-components.checkout.com/index.js"

ENVIRONMENTS = ("sandbox", "production")
PHONE_FORMATS = ("flat", "structured")


def _get(key: str, flask_config: Mapping[str, Any] | None,
         default: str | None = None) -> str | None:
    """Env first, then Flask config."""
    env = os.environ.get(key)
    if env is not None:
        return env
    if flask_config is not None and flask_config.get(key) is not None:
        return str(flask_config.get(key))
    return default


def mask(value: str | None, keep: int = 10) -> str:
    if not value:
        return "N/A"
    return value[:keep] + "..."


@dataclass(frozen=True)
class CheckoutConfig:
    secret_key: str | None = field(default=None, repr=False)
    public_key: str | None = None
    base_url: str = "http://localhost:8000"
    processing_channel_id: str | None = None
    api_url: str = SANDBOX_API_URL
    environment: str = "sandbox"
    default_currency: str = "SGD"
    default_amount: int = 10000
    phone_format: str = "flat"
    address_min_length: int = 0
    timeout: int = 15
    provider: str = "checkout_com"

    @classmethod
    def from_env(cls, flask_config: Mapping[str, Any] | None = None) -> "CheckoutConfig":
        def g(key, default=None):
            return _get(key, flask_config, default)

        public_key = g("CHECKOUT_PUBLIC_KEY") or g("NEXT_PUBLIC_CHECKOUT_PUBLIC_KEY")
        return cls(
            secret_key=g("CHECKOUT_SECRET_KEY") or None,
            public_key=public_key or None,
            base_url=(g("BASE_URL") or g("NEXT_PUBLIC_BASE_URL")
                      or "http://localhost:8000").rstrip("/"),
            processing_channel_id=g("PROCESSING_CHANNEL_ID") or None,
            api_url=(g("CHECKOUT_API_URL") or SANDBOX_API_URL).rstrip("/"),
            environment=(g("CHECKOUT_ENVIRONMENT", "sandbox") or "sandbox").strip().lower(),
            default_currency=(g("PAYMENT_CURRENCY", "SGD") or "SGD").strip().upper(),
            default_amount=int(g("PAYMENT_AMOUNT", "10000")),
            phone_format=(g("PHONE_FORMAT", "flat") or "flat").strip().lower(),
            address_min_length=int(g("ADDRESS_MIN_LENGTH", "0")),
            timeout=int(g("CHECKOUT_TIMEOUT", "15")),
            provider=(g("PAYMENT_PROVIDER", "checkout_com") or "checkout_com").strip().lower(),
        )

    def validate(self) -> "CheckoutConfig":
        """
        Startup check. Bad enumerations are fatal; a missing secret key is
        only logged, each request then fails with ConfigurationError.
        """
        if self.environment not in ENVIRONMENTS:
            raise ConfigurationError(
                f"CHECKOUT_ENVIRONMENT must be one of {'|'.join(ENVIRONMENTS)}")
        if self.phone_format not in PHONE_FORMATS:
            raise ConfigurationError(
                f"PHONE_FORMAT must be one of {'|'.join(PHONE_FORMATS)}")
        if self.address_min_length < 0:
            raise ConfigurationError("ADDRESS_MIN_LENGTH must be >= 0")
        if not self.secret_key:
            log.warning("CHECKOUT_SECRET_KEY is not set; payment sessions will fail")
        if not self.public_key:
            log.warning("CHECKOUT_PUBLIC_KEY is not set; the payment widget cannot start")
        return self

    def require_secret(self) -> str:
        if not self.secret_key:
            raise ConfigurationError("CHECKOUT_SECRET_KEY is not configured")
        return self.secret_key

    def key_status(self) -> dict:
        """Presence + short prefix only. Never the full keys."""
        return {
            "secretKey": "Present" if self.secret_key else "Missing",
            "publicKey": "Present" if self.public_key else "Missing",
            "secretKeyPrefix": mask(self.secret_key),
            "publicKeyPrefix": mask(self.public_key),
        }


def get_config(app=None) -> CheckoutConfig:
    if app is None:
        from flask import current_app
        app = current_app
    return app.extensions["checkout_config"]
