from abc import ABC, abstractmethod
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)

# booking references a provider may receive alongside a message
BOOKING_CONTEXT_KEYS = ("payment_intent_id", "service_id", "event_id")


def booking_context(meta: Optional[Dict[str, str]]) -> Dict[str, str]:
    return {key: meta[key] for key in BOOKING_CONTEXT_KEYS if meta and meta.get(key)}


class NotificationProvider(ABC):
    """Delivers a rendered booking message to one customer contact.

    ``meta`` identifies the booking the message belongs to (see
    ``BOOKING_CONTEXT_KEYS``); providers pass it on to their delivery records.
    """

    name: str = "base"

    @abstractmethod
    async def send_email(self, to: str, subject: str, body: str, meta: Optional[Dict[str, str]] = None) -> Dict:
        raise NotImplementedError()

    @abstractmethod
    async def send_sms(self, to: str, body: str, meta: Optional[Dict[str, str]] = None) -> Dict:
        raise NotImplementedError()


class LogProvider(NotificationProvider):
    """Writes booking messages to the log instead of delivering them."""

    name = "log"

    async def send_email(self, to: str, subject: str, body: str, meta: Optional[Dict[str, str]] = None) -> Dict:
        context = booking_context(meta)
        logger.info("Booking email for %s: %s", to, subject, extra=context)
        logger.debug("Email body: %s", body)
        return dict(context, status="logged", channel="email", provider=self.name)

    async def send_sms(self, to: str, body: str, meta: Optional[Dict[str, str]] = None) -> Dict:
        context = booking_context(meta)
        logger.info("Booking SMS for %s", to, extra=context)
        logger.debug("SMS body: %s", body)
        return dict(context, status="logged", channel="sms", provider=self.name)
