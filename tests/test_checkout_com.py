import pytest
import requests

from services.errors import PaymentSessionError, TransportError
from services.payments.checkout_com import CheckoutComProvider, error_message
from tests.utils import FakeResponse, install_post


def test_posts_with_bearer_and_json(config, monkeypatch):
    post = install_post(monkeypatch, FakeResponse(201, {"id": "ps_abc"}))
    out = CheckoutComProvider(config).create_session({"amount": 1})
    assert out == {"id": "ps_abc"}
    call = post.calls[0]
    assert call["url"] == "https://api.sandbox.checkout.com/payment-sessions"
    assert call["headers"]["Authorization"] == "Bearer sk_sbox_testsecret1234567890"
    assert call["json"] == {"amount": 1}
    assert call["timeout"] == 15


def test_request_body_logged_without_secret(config, monkeypatch, caplog):
    install_post(monkeypatch, FakeResponse(201, {"id": "ps_abc"}))
    caplog.set_level("INFO", logger="services.payments.checkout_com")
    CheckoutComProvider(config).create_session({"amount": 1, "currency": "SGD"})
    assert 'body={"amount": 1, "currency": "SGD"}' in caplog.text
    assert "testsecret1234567890" not in caplog.text


def test_declined_uses_error_description(config, monkeypatch):
    install_post(monkeypatch, FakeResponse(402, {"error_description": "card_declined"}))
    with pytest.raises(PaymentSessionError) as ei:
        CheckoutComProvider(config).create_session({"amount": 1})
    assert ei.value.message == "card_declined"
    assert ei.value.status_code == 402
    assert ei.value.details == {"error_description": "card_declined"}


@pytest.mark.parametrize("body,expected", [
    ({"error": "invalid_request", "message": "nope"}, "invalid_request"),
    ({"message": "bad currency"}, "bad currency"),
    ({"error": {"code": 1}, "message": "fallback"}, "fallback"),
    ({"request_id": "r1", "error_type": "request_invalid"},
     '{"error_type": "request_invalid", "request_id": "r1"}'),
    ({"error_codes": ["amount_invalid"]}, '{"error_codes": ["amount_invalid"]}'),
])
def test_error_message_preference(body, expected):
    assert error_message(body) == expected


def test_error_message_raw_body_fallback():
    assert error_message(None, "upstream exploded ") == "upstream exploded"
    assert error_message(None, "") == "Payment session creation failed"


def test_non_json_error_body_uses_text(config, monkeypatch):
    install_post(monkeypatch, FakeResponse(503, text="Service Unavailable"))
    with pytest.raises(PaymentSessionError) as ei:
        CheckoutComProvider(config).create_session({})
    assert ei.value.message == "Service Unavailable"
    assert ei.value.status_code == 503


def test_network_error_is_transport_error(config, monkeypatch):
    install_post(monkeypatch, requests.ConnectionError("boom"))
    with pytest.raises(TransportError) as ei:
        CheckoutComProvider(config).create_session({})
    assert ei.value.to_dict()["error"] == "Internal server error"


def test_malformed_success_json_is_transport_error(config, monkeypatch):
    install_post(monkeypatch, FakeResponse(200, text="<html>"))
    with pytest.raises(TransportError):
        CheckoutComProvider(config).create_session({})
