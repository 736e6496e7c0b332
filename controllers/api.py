# controllers/api.py
from flask import Blueprint, request, jsonify, current_app

from services.config import get_config
from services.errors import CheckoutError, ValidationError
from services.payments.registry import get_provider
from services.session_builder import create_payment_session

api_bp = Blueprint("api", __name__)


@api_bp.post("/payment-session")
def payment_session():
    """
    Body: {amount: int, currency?: str, billingInfo?: object}
    200 -> processor session JSON; otherwise {error, details?}.
    """
    cfg = get_config()
    try:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise ValidationError("request body must be a JSON object")
        if "amount" not in payload:
            raise ValidationError("amount is required")
        billing = payload.get("billingInfo")
        if billing is not None and not isinstance(billing, dict):
            raise ValidationError("billingInfo must be an object")

        session = create_payment_session(
            cfg, get_provider(cfg),
            amount=payload.get("amount"),
            currency=payload.get("currency"),
            billing=billing,
        )
        return jsonify(session)
    except CheckoutError as e:
        current_app.logger.warning("payment-session failed (%s): %s",
                                   e.status_code, e.message)
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        current_app.logger.exception("Payment session creation error")
        return jsonify({"error": "Internal server error", "details": str(e)}), 500


@api_bp.get("/test-keys")
def test_keys():
    # presence + 10-char prefix only
    return jsonify(get_config().key_status())
