from services.config import CheckoutConfig
from services.errors import ConfigurationError
from services.payments.base import PaymentProvider
# replace/add real adapters here
from services.payments.checkout_com import CheckoutComProvider
from services.payments.dummy_provider import DummyProvider


def get_provider(config: CheckoutConfig) -> PaymentProvider:
    name = (config.provider or "checkout_com").lower()
    if name == "checkout_com":
        return CheckoutComProvider(config)
    if name == "dummy":
        return DummyProvider()
    raise ConfigurationError(f"Unknown PAYMENT_PROVIDER: {name}")
