import pytest
from dataclasses import replace

from models.checkout import BillingInfo
from services.errors import ConfigurationError, ValidationError
from services.payments.dummy_provider import DummyProvider
from services.session_builder import (
    build_session_request, create_payment_session, new_reference,
)


def test_billing_form_payload(config, billing):
    p = build_session_request(config, 10000, "SGD", billing).to_payload()
    assert p["amount"] == 10000
    assert p["currency"] == "SGD"
    assert p["billing"]["address"]["country"] == "SG"
    assert p["billing"]["address"]["address_line1"] == "1 Main St"
    assert p["customer"]["name"] == "Jane Doe"
    assert p["customer"]["email"] == "jane@x.com"
    assert p["success_url"] == "http://shop.test/success"
    assert p["failure_url"] == "http://shop.test/failure"
    assert p["processing_channel_id"] == "pc_test_channel"
    assert p["reference"].startswith("order-")


def test_missing_optional_fields_are_absent_not_empty(config, billing):
    billing.update({"addressLine2": "   ", "state": "", "phone": ""})
    p = build_session_request(config, 500, "SGD", billing).to_payload()
    addr = p["billing"]["address"]
    assert "address_line2" not in addr
    assert "state" not in addr
    assert "phone" not in p["customer"]
    assert "" not in addr.values()


def test_optional_fields_included_when_present(config, billing):
    billing.update({"addressLine2": "#05-01", "state": "Central", "phone": "+65 1234 5678"})
    p = build_session_request(config, 500, "SGD", billing).to_payload()
    assert p["billing"]["address"]["address_line2"] == "#05-01"
    assert p["billing"]["address"]["state"] == "Central"
    assert p["customer"]["phone"] == "+65 1234 5678"


def test_quick_checkout_defaults(config):
    p = build_session_request(config, 100).to_payload()
    assert p["currency"] == "SGD"
    assert p["customer"] == {"email": "customer@example.com", "name": "Customer"}
    assert p["billing"]["address"] == {
        "address_line1": "123 Main Street",
        "city": "Singapore",
        "zip": "123456",
        "country": "SG",
    }


def test_blank_address_line_gets_placeholder(config, billing):
    billing["addressLine1"] = "  "
    p = build_session_request(config, 100, billing=billing).to_payload()
    assert p["billing"]["address"]["address_line1"] == "123 Main Street"


def test_name_needs_both_parts(config, billing):
    billing["lastName"] = ""
    p = build_session_request(config, 100, billing=billing).to_payload()
    assert p["customer"]["name"] == "Customer"


def test_currency_is_upper_cased(config):
    assert build_session_request(config, 100, "usd").currency == "USD"


def test_short_address_padding_is_off_by_default(config, billing):
    billing["addressLine1"] = "1 A"
    p = build_session_request(config, 100, billing=billing).to_payload()
    assert p["billing"]["address"]["address_line1"] == "1 A"


def test_short_address_padding_when_enabled(config, billing):
    cfg = replace(config, address_min_length=5)
    billing["addressLine1"] = "1 A"
    p = build_session_request(cfg, 100, billing=billing).to_payload()
    assert p["billing"]["address"]["address_line1"] == "1 A Street"


def test_structured_phone_uses_country_calling_code(config, billing):
    cfg = replace(config, phone_format="structured")
    billing["phone"] = "9123 4567"
    p = build_session_request(cfg, 100, billing=billing).to_payload()
    assert p["customer"]["phone"] == {"country_code": "+65", "number": "91234567"}


def test_structured_phone_explicit_code_and_prefix_stripped(config, billing):
    cfg = replace(config, phone_format="structured")
    billing.update({"phone": "+44 20 7946 0000", "phoneCountryCode": "44", "country": "GB"})
    p = build_session_request(cfg, 100, billing=billing).to_payload()
    assert p["customer"]["phone"] == {"country_code": "+44", "number": "2079460000"}


def test_structured_phone_falls_back_to_flat_without_code(config, billing):
    cfg = replace(config, phone_format="structured")
    billing.update({"phone": "555 0100", "country": "ZZ"})
    p = build_session_request(cfg, 100, billing=billing).to_payload()
    assert p["customer"]["phone"] == "555 0100"


@pytest.mark.parametrize("amount", [-1, "100", 10.5, True, None])
def test_bad_amount_rejected(config, amount):
    with pytest.raises(ValidationError):
        build_session_request(config, amount)


def test_references_unique_within_process(config):
    refs = {new_reference() for _ in range(500)}
    assert len(refs) == 500
    a = build_session_request(config, 100).reference
    b = build_session_request(config, 100).reference
    assert a != b


def test_accepts_billing_dataclass(config):
    info = BillingInfo(first_name="A", last_name="B", email="a@b.c",
                       address_line1="9 Road", city="KL", zip="50000", country="my")
    p = build_session_request(config, 100, billing=info).to_payload()
    assert p["billing"]["address"]["country"] == "MY"
    assert p["customer"]["name"] == "A B"


def test_missing_secret_fails_before_provider_call(config, billing):
    cfg = replace(config, secret_key=None)
    provider = DummyProvider()
    with pytest.raises(ConfigurationError) as ei:
        create_payment_session(cfg, provider, 100, "SGD", billing)
    assert ei.value.status_code == 500
    assert provider.calls == []


def test_two_submissions_two_independent_requests(config, billing):
    provider = DummyProvider()
    s1 = create_payment_session(config, provider, 10000, "SGD", billing)
    s2 = create_payment_session(config, provider, 10000, "SGD", billing)
    assert len(provider.calls) == 2
    assert provider.calls[0]["reference"] != provider.calls[1]["reference"]
    assert s1["id"] != s2["id"]
