# services/metrics.py
from __future__ import annotations
import os

os.environ.setdefault("PROMETHEUS_DISABLE_CREATED_SERIES", "1")

from prometheus_client import (  # noqa: E402
    Counter, Histogram, CollectorRegistry,
    generate_latest, CONTENT_TYPE_LATEST,
)

# Use a DEDICATED registry so only our app metrics show up
APP_REGISTRY = CollectorRegistry(auto_describe=True)

# --- Generic HTTP metrics (bind to our registry) ---
REQUEST_COUNT = Counter(
    "http_requests_total", "HTTP requests total",
    ["method", "endpoint", "status"], registry=APP_REGISTRY
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Request latency (seconds)",
    ["endpoint", "method"], registry=APP_REGISTRY,
)

# --- Payment sessions ---
SESSION_REQUESTS = Counter(
    "payments_session_requests_total", "Payment session requests",
    ["provider", "outcome"], registry=APP_REGISTRY
)

# --- Checkout flow ---
FLOW_TRANSITIONS = Counter(
    "checkout_flow_transitions_total", "Checkout flow events",
    ["event"], registry=APP_REGISTRY
)


def init_app(app):
    @app.get("/metrics")
    def metrics():
        data = generate_latest(APP_REGISTRY)
        return app.response_class(data, mimetype=CONTENT_TYPE_LATEST)

    # --- pre-warm labeled series so dashboards don't say "No data" ---
    for outcome in ("ok", "config_error", "rejected", "transport_error"):
        SESSION_REQUESTS.labels(provider="checkout_com", outcome=outcome).inc(0)
    for event in ("proceed", "invalid", "back", "completed", "failed"):
        FLOW_TRANSITIONS.labels(event=event).inc(0)
