import pytest
from app import create_app

CHECKOUT_ENV_KEYS = (
    "CHECKOUT_SECRET_KEY", "CHECKOUT_PUBLIC_KEY", "NEXT_PUBLIC_CHECKOUT_PUBLIC_KEY",
    "BASE_URL", "NEXT_PUBLIC_BASE_URL", "PROCESSING_CHANNEL_ID", "CHECKOUT_API_URL",
    "CHECKOUT_ENVIRONMENT", "PAYMENT_CURRENCY", "PAYMENT_AMOUNT", "PHONE_FORMAT",
    "ADDRESS_MIN_LENGTH", "CHECKOUT_TIMEOUT", "PAYMENT_PROVIDER",
)

TEST_SETTINGS = {
    "TESTING": True,
    "WTF_CSRF_ENABLED": False,
    "CHECKOUT_SECRET_KEY": "sk_sbox_testsecret1234567890",
    "CHECKOUT_PUBLIC_KEY": "pk_sbox_testpublic1234567890",
    "BASE_URL": "http://shop.test",
    "PROCESSING_CHANNEL_ID": "pc_test_channel",
}


@pytest.fixture(autouse=True)
def _set_env(monkeypatch):
    # env wins over Flask config, so a developer's .env must not leak in
    for k in CHECKOUT_ENV_KEYS:
        monkeypatch.delenv(k, raising=False)
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("METRICS_ENABLED", "0")
    yield


@pytest.fixture()
def make_app():
    def _make(**overrides):
        settings = dict(TEST_SETTINGS)
        settings.update(overrides)
        return create_app(settings)
    return _make


@pytest.fixture()
def app(make_app):
    return make_app()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def config(app):
    return app.extensions["checkout_config"]


@pytest.fixture()
def billing():
    return {
        "firstName": "Jane",
        "lastName": "Doe",
        "email": "jane@x.com",
        "addressLine1": "1 Main St",
        "city": "Singapore",
        "zip": "123456",
        "country": "SG",
    }
