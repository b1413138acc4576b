import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import stripe

from app.config import Settings
from app.errors import NotFoundError, ProviderError, SignatureError, WebhookNotConfigured
from app.metrics import PROVIDER_ERRORS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentCharge:
    """Read-only view of a provider payment intent."""

    id: str
    client_secret: Optional[str]
    status: str
    amount: int
    metadata: Dict[str, str] = field(default_factory=dict)


class PaymentGateway:
    provider_name: str = "base"

    async def create_intent(
        self,
        amount: int,
        currency: str,
        metadata: Dict[str, str],
        description: str,
        receipt_email: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> PaymentCharge:
        raise NotImplementedError()

    async def retrieve_intent(self, intent_id: str) -> PaymentCharge:
        raise NotImplementedError()

    def verify_signature(self, body: bytes, signature: Optional[str]) -> None:
        """Raise SignatureError unless ``signature`` matches the raw ``body``."""
        raise NotImplementedError()


def _message(exc: stripe.StripeError) -> str:
    return exc.user_message or str(exc)


def _to_charge(intent) -> PaymentCharge:
    metadata = intent.metadata.to_dict() if intent.metadata is not None else {}
    return PaymentCharge(
        id=intent.id,
        client_secret=intent.client_secret,
        status=intent.status,
        amount=intent.amount,
        metadata={k: str(v) for k, v in metadata.items()},
    )


class StripeGateway(PaymentGateway):
    provider_name = "stripe"

    def __init__(self, api_key: str, webhook_secret: str = "", tolerance: int = 300):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.tolerance = tolerance

    async def create_intent(
        self,
        amount: int,
        currency: str,
        metadata: Dict[str, str],
        description: str,
        receipt_email: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> PaymentCharge:
        params = {
            "amount": amount,
            "currency": currency,
            "automatic_payment_methods": {"enabled": True},
            "metadata": metadata,
            "description": description,
        }
        if receipt_email:
            params["receipt_email"] = receipt_email
        if idempotency_key:
            params["idempotency_key"] = idempotency_key
        try:
            intent = await stripe.PaymentIntent.create_async(api_key=self.api_key, **params)
        except stripe.StripeError as exc:
            PROVIDER_ERRORS.labels(operation="create").inc()
            logger.exception("Error creating payment intent")
            raise ProviderError(_message(exc), operation="create") from exc
        return _to_charge(intent)

    async def retrieve_intent(self, intent_id: str) -> PaymentCharge:
        try:
            intent = await stripe.PaymentIntent.retrieve_async(intent_id, api_key=self.api_key)
        except stripe.InvalidRequestError as exc:
            if exc.code == "resource_missing":
                raise NotFoundError(_message(exc)) from exc
            PROVIDER_ERRORS.labels(operation="retrieve").inc()
            logger.exception("Error retrieving payment intent %s", intent_id)
            raise ProviderError(_message(exc), operation="retrieve") from exc
        except stripe.StripeError as exc:
            PROVIDER_ERRORS.labels(operation="retrieve").inc()
            logger.exception("Error retrieving payment intent %s", intent_id)
            raise ProviderError(_message(exc), operation="retrieve") from exc
        return _to_charge(intent)

    def verify_signature(self, body: bytes, signature: Optional[str]) -> None:
        if not self.webhook_secret:
            raise WebhookNotConfigured()
        if not signature:
            raise SignatureError("Missing Stripe-Signature header")
        try:
            payload = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SignatureError("Payload is not valid UTF-8") from exc
        try:
            stripe.WebhookSignature.verify_header(payload, signature, self.webhook_secret, self.tolerance)
        except stripe.SignatureVerificationError as exc:
            raise SignatureError(_message(exc)) from exc


def configure_stripe(settings: Settings) -> None:
    """Apply process-wide Stripe client options (timeout, network retries)."""
    stripe.max_network_retries = settings.STRIPE_MAX_NETWORK_RETRIES
    stripe.default_http_client = stripe.HTTPXClient(timeout=settings.STRIPE_TIMEOUT_SECONDS, allow_sync_methods=True)


def build_gateway(settings: Settings) -> PaymentGateway:
    return StripeGateway(
        api_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        tolerance=settings.STRIPE_WEBHOOK_TOLERANCE,
    )
