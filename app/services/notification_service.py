from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape
from pathlib import Path
from typing import Dict, Optional
from app.services.notification_providers import LogProvider, NotificationProvider
from prometheus_client import Counter
import logging

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "notifications" / "templates"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)

# metrics
NOTIF_COUNTER_SENT = Counter("salon_notifications_sent_total", "Total notifications sent", ["channel", "provider"])
NOTIF_COUNTER_FAILED = Counter("salon_notifications_failed_total", "Total notification failures", ["channel", "provider"])


class NotificationService:
    def __init__(self, provider: Optional[NotificationProvider] = None):
        self.provider = provider or LogProvider()

    @property
    def provider_label(self) -> str:
        return self.provider.name

    def render(self, template_name: str, locale: str = "en", context: Dict = None) -> str:
        ctx = context or {}
        # try locale-specific template, fallback to en
        for tpl in (f"{locale}/{template_name}", f"en/{template_name}"):
            try:
                template = _env.get_template(tpl)
            except TemplateNotFound:
                continue
            return template.render(**ctx)
        raise RuntimeError("Template not found: %s" % template_name)

    async def send_email(self, to: str, subject: str, template_name: str, context: Dict = None, locale: str = "en", meta: Dict = None):
        body = self.render(template_name, locale=locale, context=context)
        try:
            res = await self.provider.send_email(to=to, subject=subject, body=body, meta=meta)
        except Exception:
            NOTIF_COUNTER_FAILED.labels(channel="email", provider=self.provider_label).inc()
            logger.exception("Email send failed")
            raise
        NOTIF_COUNTER_SENT.labels(channel="email", provider=self.provider_label).inc()
        return res

    async def send_sms(self, to: str, template_name: str, context: Dict = None, locale: str = "en", meta: Dict = None):
        body = self.render(template_name, locale=locale, context=context)
        try:
            res = await self.provider.send_sms(to=to, body=body, meta=meta)
        except Exception:
            NOTIF_COUNTER_FAILED.labels(channel="sms", provider=self.provider_label).inc()
            logger.exception("SMS send failed")
            raise
        NOTIF_COUNTER_SENT.labels(channel="sms", provider=self.provider_label).inc()
        return res

    async def booking_confirmed(self, booking: Dict[str, str], amount_paid: str, meta: Optional[Dict[str, str]] = None):
        """Tell the customer their deposit went through."""
        context = dict(booking, amount_paid=amount_paid)
        phone = booking.get("customer_phone")
        if phone:
            await self.send_sms(to=phone, template_name="booking_confirmed.txt", context=context, meta=meta)
        email = booking.get("customer_email")
        if email:
            await self.send_email(
                to=email,
                subject="Your appointment is booked",
                template_name="booking_confirmed.txt",
                context=context,
                meta=meta,
            )

    async def payment_failed(self, booking: Dict[str, str], reason: Optional[str], meta: Optional[Dict[str, str]] = None):
        phone = booking.get("customer_phone")
        if phone:
            await self.send_sms(to=phone, template_name="payment_failed.txt", context=dict(booking, reason=reason), meta=meta)
