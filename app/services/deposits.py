"""Deposit payment intents and booking status lookups.

The provider is the only system of record: everything needed to rebuild a
booking (service, customer, date, money split) travels in the charge
metadata, and the confirmation page reads it back from there.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional

from app.config import Settings
from app.metrics import DEPOSITS_CREATED
from app.services.booking_validator import BookingRequest
from app.services.payment_gateway import PaymentGateway

logger = logging.getLogger(__name__)

SUCCEEDED = "succeeded"


@dataclass(frozen=True)
class DepositIntent:
    client_secret: str
    payment_intent_id: str


@dataclass(frozen=True)
class BookingStatus:
    success: bool
    booking: Optional[Dict[str, str]] = None
    status: Optional[str] = None


def format_amount(value: Decimal) -> str:
    """Render money without trailing zeros or exponent: 50, 20.5, 30."""
    return format(value.normalize(), "f")


def minor_to_major(amount: int) -> Decimal:
    return Decimal(amount) / Decimal(100)


def build_metadata(booking: BookingRequest, deposit_amount: int) -> Dict[str, str]:
    deposit = minor_to_major(deposit_amount)
    service = booking.service
    return {
        "customer_name": booking.customer_name,
        "customer_phone": booking.phone,
        "customer_instagram": booking.instagram,
        "customer_email": booking.email,
        "service_id": service.id,
        "service_name": service.name,
        "service_price": format_amount(service.price),
        "appointment_date": booking.date,
        "notes": booking.notes,
        "deposit_amount": format_amount(deposit),
        "remaining_balance": format_amount(service.price - deposit),
    }


async def create_deposit(
    booking: BookingRequest,
    gateway: PaymentGateway,
    settings: Settings,
    idempotency_key: Optional[str] = None,
) -> DepositIntent:
    """Create a fixed-amount deposit charge for ``booking``.

    The charged amount is always ``settings.DEPOSIT_AMOUNT``; the service price
    only feeds the remaining balance recorded in metadata. Provider failures
    propagate as ProviderError.
    """
    description = f"{settings.BUSINESS_NAME} Deposit - {booking.service.name} for {booking.customer_name}"
    charge = await gateway.create_intent(
        amount=settings.DEPOSIT_AMOUNT,
        currency=settings.CURRENCY,
        metadata=build_metadata(booking, settings.DEPOSIT_AMOUNT),
        description=description,
        receipt_email=booking.email or None,
        idempotency_key=idempotency_key,
    )
    DEPOSITS_CREATED.labels(service_id=booking.service_id).inc()
    logger.info(
        "Deposit payment intent created",
        extra={"payment_intent_id": charge.id, "service_id": booking.service_id},
    )
    return DepositIntent(client_secret=charge.client_secret, payment_intent_id=charge.id)


async def get_booking_status(payment_intent_id: str, gateway: PaymentGateway) -> BookingStatus:
    charge = await gateway.retrieve_intent(payment_intent_id)
    if charge.status == SUCCEEDED:
        return BookingStatus(success=True, booking=charge.metadata)
    return BookingStatus(success=False, status=charge.status)
