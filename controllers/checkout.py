# controllers/checkout.py
from __future__ import annotations
from flask import (Blueprint, request, render_template_string, redirect, url_for,
                   session, jsonify, current_app)

from ui_base import nav as render_nav
from models.checkout import BILLING_FIELDS
from services.checkout_flow import (CheckoutFlow, AWAITING_PAYMENT,
                                    COLLECTING_BILLING)
from services.config import WIDGET_SCRIPT_URL, get_config
from services.errors import CheckoutError, ValidationError
from services.payments.registry import get_provider
from services.session_builder import create_payment_session

checkout_bp = Blueprint("checkout", __name__)

FLOW_KEY = "checkout_flow"

COUNTRIES = [
    ("SG", "Singapore"), ("US", "United States"), ("GB", "United Kingdom"),
    ("AU", "Australia"), ("CA", "Canada"), ("MY", "Malaysia"),
    ("TH", "Thailand"), ("ID", "Indonesia"),
]

STYLE = """
<style>
  :root { --b:#1f7aec; --bg:#f9fafb; --muted:#666; --bd:#e5e7eb; --err:#b91c1c;}
  body{font-family:system-ui,Arial;margin:0;background:var(--bg)}
  .card{padding:1.25rem 1.5rem;border:1px solid var(--bd);border-radius:12px;margin-bottom:1rem;background:#fff}
  label{display:block;margin-top:.5rem;font-weight:600;font-size:.92rem}
  input,select{width:100%;padding:.6rem;border:1px solid #bbb;border-radius:8px;box-sizing:border-box}
  button{margin-top:1rem;padding:.6rem 1rem;border:0;border-radius:8px;background:var(--b);color:#fff;cursor:pointer}
  button.link{background:none;color:var(--b);padding:0;margin:0}
  .muted{color:var(--muted);font-size:.92rem}
  .grid{display:grid;grid-template-columns:repeat(2,1fr);gap:.75rem}
  .wide{grid-column:1 / -1}
  .err{padding:.75rem 1rem;border:1px solid #fecaca;background:#fef2f2;color:var(--err);border-radius:8px;margin:.75rem 0}
  .product{display:flex;justify-content:space-between;align-items:center}
  .price{font-size:1.5rem;font-weight:700}
  #flow-container{min-height:400px;border:1px solid var(--bd);border-radius:10px;padding:1rem}
</style>
"""

PRODUCT = """
<div class="card product">
  <div>
    <h3 style="margin:0">Premium Running Shoes</h3>
    <p class="muted">Color: Black | Size: US 10<br>SKU: SHOES-001</p>
  </div>
  <div style="text-align:right">
    <div class="price">{{ currency }} {{ '%.2f'|format(amount / 100) }}</div>
    <div class="muted">{{ currency }}</div>
  </div>
</div>
"""

BILLING_PAGE = """
<!doctype html><title>Secure Checkout</title>
""" + STYLE + """
{{ NAV|safe }}
<h2>Secure Checkout</h2>
""" + PRODUCT + """
<div class="card">
  <h3>Billing Information</h3>
  {% if error %}<div class="err" role="alert">{{ error }}{% if missing %} ({{ missing|join(', ') }}){% endif %}</div>{% endif %}
  <form method="post" action="{{ url_for('checkout.checkout_submit') }}" class="grid">
    <input type="hidden" name="csrf_token" value="{{ csrf_token() }}">
    <div><label>First Name *<input name="firstName" value="{{ b.firstName }}" required></label></div>
    <div><label>Last Name *<input name="lastName" value="{{ b.lastName }}" required></label></div>
    <div><label>Email Address *<input type="email" name="email" value="{{ b.email }}" required></label></div>
    <div><label>Phone Number<input type="tel" name="phone" value="{{ b.phone }}" placeholder="e.g., +65 1234 5678"></label></div>
    <div class="wide"><label>Address Line 1 *<input name="addressLine1" value="{{ b.addressLine1 }}" placeholder="e.g., 123 Marina Bay Street" required></label></div>
    <div class="wide"><label>Address Line 2<input name="addressLine2" value="{{ b.addressLine2 }}"></label></div>
    <div><label>City *<input name="city" value="{{ b.city }}" required></label></div>
    <div><label>State/Region<input name="state" value="{{ b.state }}"></label></div>
    <div><label>Postal Code *<input name="zip" value="{{ b.zip }}" required></label></div>
    <div><label>Country
      <select name="country">
        {% for code, label in countries %}
          <option value="{{ code }}" {{ 'selected' if b.country == code else '' }}>{{ label }}</option>
        {% endfor %}
      </select></label></div>
    <div class="wide" style="text-align:right"><button type="submit">Proceed to Payment</button></div>
  </form>
</div>
<p class="muted" style="text-align:center">Your payment is secured by Checkout.com{% if environment == 'sandbox' %}<br>This is a sandbox environment for testing purposes{% endif %}</p>
</div>
"""

PAYMENT_PAGE = """
<!doctype html><title>Secure Checkout - Payment</title>
""" + STYLE + """
{{ NAV|safe }}
<h2>Secure Checkout</h2>
""" + PRODUCT + """
<div class="card">
  <form method="post" action="{{ url_for('checkout.checkout_back') }}">
    <input type="hidden" name="csrf_token" value="{{ csrf_token() }}">
    <button class="link" type="submit">&larr; Back to Billing Information</button>
  </form>
  <div id="flow-error" class="err" role="alert" {% if not error %}hidden{% endif %}>{{ error or '' }}</div>
  <p id="flow-loading" class="muted" style="text-align:center">Loading checkout...</p>
  <div id="flow-container"></div>
</div>
</div>
<script>
(function () {
  var EVENTS = {{ events_url|tojson }};
  var CSRF = {{ csrf_token()|tojson }};
  var errBox = document.getElementById("flow-error");
  var loading = document.getElementById("flow-loading");

  function showError(msg) { errBox.textContent = msg; errBox.hidden = false; loading.hidden = true; }

  function send(evt) {
    return fetch(EVENTS, {
      method: "POST",
      headers: {"Content-Type": "application/json", "X-CSRFToken": CSRF},
      body: JSON.stringify(evt)
    }).then(function (r) { return r.json().then(function (js) { return {ok: r.ok, js: js}; }); });
  }

  function start() {
    send({type: "script_loaded"}).then(function (res) {
      if (!res.ok) { throw new Error(res.js.error || "Failed to initialize checkout"); }
      return window.CheckoutWebComponents({
        publicKey: res.js.publicKey,
        environment: res.js.environment,
        paymentSession: res.js.paymentSession,
        onPaymentCompleted: function (_, payment) {
          send({type: "completed", paymentId: payment.id}).then(function (r) {
            if (r.js.redirect) { window.location.href = r.js.redirect; }
          });
        },
        onPaymentFailed: function (_, error) {
          send({type: "failed", error: (error && error.message) || ""}).then(function (r) {
            showError(r.js.error || "Payment failed");
          });
        }
      });
    }).then(function (checkout) {
      checkout.create("flow").mount(document.getElementById("flow-container"));
      loading.hidden = true;
      return send({type: "mounted"});
    }).catch(function (e) { showError(e.message || "Failed to initialize checkout"); });
  }

  var s = document.createElement("script");
  s.src = {{ script_url|tojson }};
  s.onload = start;
  s.onerror = function () {
    send({type: "script_failed", reason: "load error"}).then(function (r) {
      showError(r.js.error || "Failed to load checkout script");
    });
  };
  document.head.appendChild(s);
})();
</script>
"""

SUCCESS_PAGE = """
<!doctype html><title>Payment Successful</title>
""" + STYLE + """
{{ NAV|safe }}
<div class="card" style="text-align:center">
  <h2>Payment Successful!</h2>
  <p class="muted">Your payment has been processed successfully.</p>
  {% if payment_id %}<p class="muted">Payment ID:</p><p><code>{{ payment_id }}</code></p>{% endif %}
  <p class="muted">You will receive a confirmation email shortly.</p>
  <a href="{{ url_for('checkout.checkout_form') }}"><button type="button">Make Another Payment</button></a>
</div>
</div>
"""

FAILURE_PAGE = """
<!doctype html><title>Payment Failed</title>
""" + STYLE + """
{{ NAV|safe }}
<div class="card" style="text-align:center">
  <h2>Payment Failed</h2>
  <p class="muted">We were unable to process your payment.</p>
  {% if error %}<div class="err">{{ error }}</div>{% endif %}
  <p class="muted">Please try again or contact support if the problem persists.</p>
  <a href="{{ url_for('checkout.checkout_form') }}"><button type="button">Try Again</button></a>
</div>
</div>
"""


def _load_flow() -> CheckoutFlow:
    data = session.get(FLOW_KEY)
    if data:
        try:
            return CheckoutFlow.from_dict(data)
        except (KeyError, TypeError, ValueError):
            current_app.logger.warning("Discarding unreadable checkout flow in session")
    cfg = get_config()
    return CheckoutFlow(cfg.default_amount, cfg.default_currency)


def _save_flow(flow: CheckoutFlow) -> None:
    session[FLOW_KEY] = flow.to_dict()


def _render_billing(flow: CheckoutFlow, error: str | None = None,
                    missing: list[str] | None = None):
    return render_template_string(
        BILLING_PAGE,
        NAV=render_nav("checkout"),
        b=flow.billing.to_dict(),
        amount=flow.amount,
        currency=flow.currency,
        countries=COUNTRIES,
        error=error,
        missing=missing or [],
        environment=get_config().environment,
    )


def _request_session(amount, currency, billing):
    cfg = get_config()
    return create_payment_session(cfg, get_provider(cfg), amount, currency, billing)


# ----- billing step -----

@checkout_bp.get("/checkout")
def checkout_form():
    flow = _load_flow()
    if flow.state == AWAITING_PAYMENT:
        return redirect(url_for("checkout.checkout_payment"))
    return _render_billing(flow, error=flow.error)


@checkout_bp.post("/checkout")
def checkout_submit():
    flow = _load_flow()
    if flow.state != COLLECTING_BILLING:
        flow.back()
    flow.update({k: request.form.get(k, "") for k in BILLING_FIELDS if k in request.form})
    try:
        flow.proceed()
    except ValidationError as e:
        _save_flow(flow)
        return _render_billing(flow, error=e.message, missing=e.missing), 400
    _save_flow(flow)
    return redirect(url_for("checkout.checkout_payment"))


@checkout_bp.post("/checkout/back")
def checkout_back():
    flow = _load_flow()
    flow.back()
    _save_flow(flow)
    return redirect(url_for("checkout.checkout_form"))


# ----- payment step -----

@checkout_bp.get("/checkout/payment")
def checkout_payment():
    flow = _load_flow()
    if flow.state != AWAITING_PAYMENT:
        return redirect(url_for("checkout.checkout_form"))
    return render_template_string(
        PAYMENT_PAGE,
        NAV=render_nav("checkout"),
        amount=flow.amount,
        currency=flow.currency,
        error=flow.error,
        events_url=url_for("checkout.checkout_events"),
        script_url=WIDGET_SCRIPT_URL,
    )


@checkout_bp.post("/checkout/events")
def checkout_events():
    """
    The payment page reports widget lifecycle here:
      script_loaded  -> create the payment session, return widget init
      script_failed  -> record error
      mounted        -> widget is on screen
      completed      -> {"redirect": "/success?paymentId=..."}
      failed         -> {"error": "..."} shown in place
    """
    evt = request.get_json(silent=True)
    kind = ""
    flow = _load_flow()
    cfg = get_config()
    try:
        if not isinstance(evt, dict):
            raise ValidationError("event body must be a JSON object")
        if not isinstance(evt.get("type"), str):
            raise ValidationError("event type must be a string")
        kind = evt["type"].strip()
        if kind == "script_loaded":
            init = flow.script_loaded(_request_session, cfg.public_key, cfg.environment)
            _save_flow(flow)
            return jsonify(init.to_dict())
        if kind == "script_failed":
            flow.script_failed(evt.get("reason"))
        if kind == "mounted":
            flow.widget_mounted()
            _save_flow(flow)
            return jsonify({"ok": True})
        if kind == "completed":
            target = flow.callbacks(url_for("checkout.success")).on_completed(
                str(evt.get("paymentId") or ""))
            session.pop(FLOW_KEY, None)
            return jsonify({"redirect": target})
        if kind == "failed":
            err = flow.callbacks().on_failed(evt.get("error"))
            _save_flow(flow)
            return jsonify(err.to_dict())
        raise ValidationError(f"unknown event '{kind}'")
    except CheckoutError as e:
        _save_flow(flow)
        current_app.logger.warning("checkout event %s failed: %s", kind or "?", e.message)
        return jsonify(e.to_dict()), e.status_code


# ----- result pages -----

@checkout_bp.get("/success")
def success():
    return render_template_string(SUCCESS_PAGE, NAV=render_nav("success"),
                                  payment_id=request.args.get("paymentId"))


@checkout_bp.get("/failure")
def failure():
    return render_template_string(FAILURE_PAGE, NAV=render_nav("failure"),
                                  error=request.args.get("error"))
