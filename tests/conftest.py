"""
Shared fixtures: a fake payment gateway, a Stripe-format webhook signer and
a TestClient wired to the fake through dependency overrides.
"""
import hashlib
import hmac
import json
import os
import time
from typing import Dict, List, Optional

os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_PUBLISHABLE_KEY"] = "pk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["EXPOSE_PROVIDER_ERRORS"] = "true"
os.environ["CATALOG_PATH"] = ""

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.deps import get_gateway
from app.errors import NotFoundError, ProviderError
from app.main import app
from app.services.booking_validator import BookingRequest
from app.services.catalog import DEFAULT_SERVICES, ServiceCatalog
from app.services.payment_gateway import PaymentCharge, PaymentGateway, StripeGateway

WEBHOOK_SECRET = "whsec_test_secret"


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Build a Stripe-Signature header value for ``payload``."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.".encode() + payload
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def event_body(event_type: str, data_object: Dict, event_id: str = "evt_test_1") -> bytes:
    return json.dumps({"id": event_id, "type": event_type, "data": {"object": data_object}}).encode()


class FakeGateway(PaymentGateway):
    provider_name = "fake"

    def __init__(self, webhook_secret: str = WEBHOOK_SECRET):
        self.created: List[Dict] = []
        self.intents: Dict[str, PaymentCharge] = {}
        self.create_error: Optional[ProviderError] = None
        self._verifier = StripeGateway(api_key="sk_test_dummy", webhook_secret=webhook_secret)

    async def create_intent(self, amount, currency, metadata, description, receipt_email=None, idempotency_key=None):
        if self.create_error:
            raise self.create_error
        call = {
            "amount": amount,
            "currency": currency,
            "metadata": metadata,
            "description": description,
            "receipt_email": receipt_email,
            "idempotency_key": idempotency_key,
        }
        self.created.append(call)
        intent_id = f"pi_test_{len(self.created)}"
        charge = PaymentCharge(
            id=intent_id,
            client_secret=f"{intent_id}_secret_abc",
            status="requires_payment_method",
            amount=amount,
            metadata=metadata,
        )
        self.intents[intent_id] = charge
        return charge

    async def retrieve_intent(self, intent_id):
        if intent_id not in self.intents:
            raise NotFoundError(f"No such payment_intent: '{intent_id}'")
        return self.intents[intent_id]

    def verify_signature(self, body, signature):
        self._verifier.verify_signature(body, signature)


@pytest.fixture
def catalog():
    return ServiceCatalog.from_pairs(DEFAULT_SERVICES)


@pytest.fixture
def settings():
    return Settings(
        STRIPE_SECRET_KEY="sk_test_dummy",
        STRIPE_WEBHOOK_SECRET=WEBHOOK_SECRET,
        DEPOSIT_AMOUNT=2000,
        CURRENCY="usd",
        BUSINESS_NAME="Luxehairplug",
    )


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def wig_booking(catalog):
    return BookingRequest(
        service=catalog.lookup("wig-install"),
        customer_name="Jane Doe",
        phone="555-0100",
        date="2024-06-01",
    )


@pytest.fixture
def client(fake_gateway):
    app.dependency_overrides[get_gateway] = lambda: fake_gateway
    yield TestClient(app)
    app.dependency_overrides.clear()
