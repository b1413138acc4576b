"""
End-to-end tests of the HTTP surface through FastAPI's TestClient.
The payment gateway is replaced by FakeGateway; webhook signatures are real.
"""
import json
from datetime import datetime
from decimal import Decimal

import pytest
import stripe
from fastapi.testclient import TestClient

from conftest import FakeGateway, event_body, sign_payload
from app.config import Settings
from app.deps import get_catalog, get_gateway
from app.errors import ProviderError
from app.main import app
from app.services.catalog import ServiceCatalog, ServiceEntry
from app.services.payment_gateway import PaymentCharge

JANE = {"service": "wig-install", "name": "Jane Doe", "phone": "555-0100", "date": "2024-06-01"}


class TestCreatePaymentIntent:
    def test_wig_install_booking(self, client, fake_gateway):
        resp = client.post("/create-payment-intent", json={"booking": JANE})

        assert resp.status_code == 200
        data = resp.json()
        assert data == {"clientSecret": "pi_test_1_secret_abc", "paymentIntentId": "pi_test_1"}

        metadata = fake_gateway.created[0]["metadata"]
        assert metadata["service_price"] == "50"
        assert metadata["deposit_amount"] == "20"
        assert metadata["remaining_balance"] == "30"
        assert metadata["service_id"] == "wig-install"
        assert metadata["customer_phone"] == "555-0100"
        assert metadata["appointment_date"] == "2024-06-01"

    def test_unknown_service(self, client, fake_gateway):
        resp = client.post("/create-payment-intent", json={"booking": dict(JANE, service="not-a-real-service")})

        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid service selected"}
        assert fake_gateway.created == []

    @pytest.mark.parametrize("field", ["service", "name", "phone", "date"])
    def test_missing_field(self, client, field):
        booking = {k: v for k, v in JANE.items() if k != field}

        resp = client.post("/create-payment-intent", json={"booking": booking})

        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing required booking information"}

    def test_missing_booking_object(self, client):
        resp = client.post("/create-payment-intent", json={})

        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing required booking information"}

    def test_malformed_body(self, client):
        resp = client.post(
            "/create-payment-intent",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid request body"}

    def test_idempotency_key_header_forwarded(self, client, fake_gateway):
        client.post("/create-payment-intent", json={"booking": JANE}, headers={"Idempotency-Key": "abc-123"})

        assert fake_gateway.created[0]["idempotency_key"] == "abc-123"

    def test_provider_error_exposes_message(self, client, fake_gateway):
        fake_gateway.create_error = ProviderError("Invalid API Key provided", operation="create")

        resp = client.post("/create-payment-intent", json={"booking": JANE})

        assert resp.status_code == 500
        assert resp.json() == {"error": "Invalid API Key provided"}

    def test_provider_error_sanitized(self, client, fake_gateway, monkeypatch):
        monkeypatch.setattr(app.state, "settings", Settings(EXPOSE_PROVIDER_ERRORS=False))
        fake_gateway.create_error = ProviderError("Invalid API Key provided: sk_live_****", operation="create")

        resp = client.post("/create-payment-intent", json={"booking": JANE})

        assert resp.status_code == 500
        assert resp.json() == {"error": "Payment provider error"}

    def test_catalog_can_be_substituted(self, client, fake_gateway):
        fake_catalog = ServiceCatalog({"trim": ServiceEntry(id="trim", name="Trim", price=Decimal("25"))})
        app.dependency_overrides[get_catalog] = lambda: fake_catalog

        ok = client.post("/create-payment-intent", json={"booking": dict(JANE, service="trim")})
        gone = client.post("/create-payment-intent", json={"booking": JANE})

        assert ok.status_code == 200
        assert fake_gateway.created[0]["metadata"]["remaining_balance"] == "5"
        assert gone.status_code == 400


class TestBookingLookup:
    def test_succeeded_booking(self, client, fake_gateway):
        metadata = {"customer_name": "Jane Doe", "service_name": "Wig Install", "appointment_date": "2024-06-01"}
        fake_gateway.intents["pi_paid"] = PaymentCharge(
            id="pi_paid", client_secret="s", status="succeeded", amount=2000, metadata=metadata
        )

        resp = client.get("/booking/pi_paid")

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "booking": metadata}

    def test_unpaid_booking(self, client, fake_gateway):
        fake_gateway.intents["pi_open"] = PaymentCharge(
            id="pi_open", client_secret="s", status="requires_payment_method", amount=2000
        )

        resp = client.get("/booking/pi_open")

        assert resp.status_code == 200
        assert resp.json() == {"success": False, "status": "requires_payment_method"}

    def test_unknown_booking(self, client):
        resp = client.get("/booking/pi_missing")

        assert resp.status_code == 404
        assert "pi_missing" in resp.json()["error"]

    def test_unknown_booking_sanitized(self, client, monkeypatch):
        monkeypatch.setattr(app.state, "settings", Settings(EXPOSE_PROVIDER_ERRORS=False))

        resp = client.get("/booking/pi_missing")

        assert resp.status_code == 404
        assert resp.json() == {"error": "Booking not found"}

    def test_round_trip_after_create(self, client):
        created = client.post("/create-payment-intent", json={"booking": JANE}).json()

        resp = client.get(f"/booking/{created['paymentIntentId']}")

        assert resp.json() == {"success": False, "status": "requires_payment_method"}


class TestWebhook:
    def test_valid_event(self, client):
        body = event_body("payment_intent.succeeded", {"id": "pi_1", "amount": 2000, "metadata": {"customer_phone": "555"}})

        resp = client.post("/webhook", content=body, headers={"Stripe-Signature": sign_payload(body)})

        assert resp.status_code == 200
        assert resp.json() == {"received": True}

    def test_raw_bytes_are_verified_as_sent(self, client):
        # unusual whitespace would not survive a parse/re-serialize round trip
        body = b'{ "id" : "evt_9",\n  "type":"payment_intent.payment_failed", "data": {"object": {"id": "pi_9"}} }'

        resp = client.post("/webhook", content=body, headers={"Stripe-Signature": sign_payload(body)})

        assert resp.status_code == 200
        assert resp.json() == {"received": True}

    def test_invalid_signature(self, client):
        body = event_body("payment_intent.succeeded", {"id": "pi_1"})

        resp = client.post("/webhook", content=body, headers={"Stripe-Signature": sign_payload(body, secret="whsec_forged")})

        assert resp.status_code == 400
        assert resp.text.startswith("Webhook Error:")

    def test_missing_signature_header(self, client):
        body = event_body("payment_intent.succeeded", {"id": "pi_1"})

        resp = client.post("/webhook", content=body)

        assert resp.status_code == 400
        assert resp.text == "Webhook Error: Missing Stripe-Signature header"

    def test_unknown_event_type(self, client):
        body = event_body("invoice.finalized", {"id": "in_1"})

        resp = client.post("/webhook", content=body, headers={"Stripe-Signature": sign_payload(body)})

        assert resp.status_code == 200
        assert resp.json() == {"received": True}

    def test_non_object_event_data(self, client):
        body = json.dumps({"id": "evt_2", "type": "payment_intent.succeeded", "data": {"object": "pi_1"}}).encode()

        resp = client.post("/webhook", content=body, headers={"Stripe-Signature": sign_payload(body)})

        assert resp.status_code == 200
        assert resp.json() == {"received": True}

    def test_unconfigured_secret_fails_closed(self, client):
        app.dependency_overrides[get_gateway] = lambda: FakeGateway(webhook_secret="")
        body = event_body("payment_intent.succeeded", {"id": "pi_1"})

        resp = client.post("/webhook", content=body, headers={"Stripe-Signature": sign_payload(body)})

        assert resp.status_code == 503


class TestServiceEndpoints:
    def test_health(self, client):
        resp = client.get("/health")

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00"))

    def test_ready(self, client):
        resp = client.get("/ready")

        assert resp.status_code == 200
        assert resp.json() == {"status": "ready"}

    def test_not_ready_without_stripe_key(self, client, monkeypatch):
        monkeypatch.setattr(app.state, "settings", Settings(STRIPE_SECRET_KEY=""))

        assert client.get("/ready").status_code == 503

    def test_landing_page(self, client):
        resp = client.get("/")

        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert "Luxehairplug" in resp.text

    def test_static_asset(self, client):
        resp = client.get("/styles.css")

        assert resp.status_code == 200
        assert "text/css" in resp.headers["content-type"]

    def test_public_config(self, client):
        assert client.get("/config").json() == {"publishableKey": "pk_test_dummy"}

    def test_metrics(self, client):
        client.post("/create-payment-intent", json={"booking": JANE})

        resp = client.get("/metrics")

        assert resp.status_code == 200
        assert "salon_deposits_created_total" in resp.text

    def test_trace_id_echoed(self, client):
        resp = client.get("/health", headers={"X-Trace-Id": "trace-abc"})

        assert resp.headers["X-Trace-Id"] == "trace-abc"

    def test_trace_id_generated(self, client):
        resp = client.get("/health")

        assert resp.headers["X-Trace-Id"]


def test_startup_configures_stripe_client(monkeypatch):
    monkeypatch.setattr(stripe, "max_network_retries", None)
    monkeypatch.setattr(stripe, "default_http_client", None)

    with TestClient(app) as started:
        resp = started.get("/health")

    assert resp.status_code == 200
    assert stripe.max_network_retries == app.state.settings.STRIPE_MAX_NETWORK_RETRIES
    assert isinstance(stripe.default_http_client, stripe.HTTPXClient)
