"""
Stripe webhook processing.

Signature verification runs over the raw request bytes before anything is
parsed. Verified events are routed through a registry keyed by ``EventKind``;
types outside the registry fall into ``EventKind.UNKNOWN`` and are
acknowledged without action so new provider event types never error.
"""
import json
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from app.errors import SignatureError, WebhookNotConfigured
from app.metrics import PAYMENT_FAILURE, PAYMENT_SUCCESS, WEBHOOK_EVENTS, WEBHOOK_SIGNATURE_FAILURES
from app.schemas.payment import WebhookAck
from app.services.deposits import format_amount, minor_to_major
from app.services.notification_service import NotificationService
from app.services.payment_gateway import PaymentGateway

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    PAYMENT_SUCCEEDED = "payment_intent.succeeded"
    PAYMENT_FAILED = "payment_intent.payment_failed"
    UNKNOWN = "unknown"

    @classmethod
    def from_type(cls, event_type: Optional[str]) -> "EventKind":
        try:
            return cls(event_type)
        except ValueError:
            return cls.UNKNOWN


EventCallback = Callable[[Dict[str, Any], Dict[str, Any]], Awaitable[None]]


def _booking_meta(payment_intent: Dict[str, Any], event: Dict[str, Any]) -> Dict[str, str]:
    metadata = payment_intent.get("metadata") or {}
    meta = {
        "payment_intent_id": payment_intent.get("id"),
        "service_id": metadata.get("service_id"),
        "event_id": event.get("id"),
    }
    return {key: str(value) for key, value in meta.items() if value}


class WebhookHandler:
    def __init__(self, gateway: PaymentGateway, notifications: Optional[NotificationService] = None):
        self.gateway = gateway
        self.notifications = notifications or NotificationService()
        self.handlers: Dict[EventKind, EventCallback] = {
            EventKind.PAYMENT_SUCCEEDED: self.handle_payment_succeeded,
            EventKind.PAYMENT_FAILED: self.handle_payment_failed,
            EventKind.UNKNOWN: self.handle_unknown,
        }

    async def handle(self, raw_body: bytes, signature: Optional[str]) -> WebhookAck:
        """
        Verify and dispatch one webhook delivery.

        Args:
            raw_body: request body exactly as received
            signature: value of the Stripe-Signature header

        Raises:
            SignatureError: the body does not match the signature, or is not JSON
            WebhookNotConfigured: no signing secret is configured
        """
        try:
            self.gateway.verify_signature(raw_body, signature)
        except WebhookNotConfigured:
            logger.error("Webhook received but no signing secret is configured")
            raise
        except SignatureError as exc:
            WEBHOOK_SIGNATURE_FAILURES.inc()
            logger.warning(
                "Webhook signature verification failed: %s",
                exc.message,
                extra={"security_event": "webhook_signature_invalid"},
            )
            raise

        try:
            event = json.loads(raw_body)
        except ValueError as exc:
            raise SignatureError("Invalid payload") from exc
        if not isinstance(event, dict):
            raise SignatureError("Invalid payload")

        event_type = event.get("type")
        kind = EventKind.from_type(event_type)
        WEBHOOK_EVENTS.labels(kind=kind.name.lower()).inc()
        logger.info("Processing webhook event: %s", event_type, extra={"event_id": event.get("id")})

        data = event.get("data")
        data_object = data.get("object") if isinstance(data, dict) else None
        if not isinstance(data_object, dict):
            data_object = {}
        await self.handlers[kind](data_object, event)
        return WebhookAck(received=True)

    async def handle_payment_succeeded(self, payment_intent: Dict[str, Any], event: Dict[str, Any]) -> None:
        metadata = payment_intent.get("metadata") or {}
        amount = format_amount(minor_to_major(payment_intent.get("amount") or 0))
        PAYMENT_SUCCESS.inc()
        logger.info(
            "Payment succeeded",
            extra={
                "payment_intent_id": payment_intent.get("id"),
                "customer": metadata.get("customer_name"),
                "phone": metadata.get("customer_phone"),
                "service": metadata.get("service_name"),
                "date": metadata.get("appointment_date"),
                "amount": f"${amount}",
            },
        )
        await self._notify(self.notifications.booking_confirmed(metadata, amount, meta=_booking_meta(payment_intent, event)))

    async def handle_payment_failed(self, payment_intent: Dict[str, Any], event: Dict[str, Any]) -> None:
        reason = (payment_intent.get("last_payment_error") or {}).get("message")
        PAYMENT_FAILURE.inc()
        logger.info("Payment failed: %s", reason, extra={"payment_intent_id": payment_intent.get("id")})
        metadata = payment_intent.get("metadata") or {}
        await self._notify(self.notifications.payment_failed(metadata, reason, meta=_booking_meta(payment_intent, event)))

    async def handle_unknown(self, data_object: Dict[str, Any], event: Dict[str, Any]) -> None:
        logger.info("Unhandled event type: %s", event.get("type"))

    async def _notify(self, send: Awaitable) -> None:
        # a failed notification still acknowledges the event
        try:
            await send
        except Exception:
            logger.exception("Booking notification failed")
