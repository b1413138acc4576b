from typing import Optional

from fastapi import APIRouter, Depends, Header

from app.config import Settings
from app.deps import get_catalog, get_gateway, get_settings
from app.schemas.booking import BookingStatusResponse, CreatePaymentIntentRequest
from app.schemas.payment import PaymentIntentResponse, PublicConfig
from app.services.booking_validator import validate_booking
from app.services.catalog import ServiceCatalog
from app.services.deposits import create_deposit, get_booking_status
from app.services.payment_gateway import PaymentGateway

router = APIRouter(tags=["payments"])


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    req: CreatePaymentIntentRequest,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    catalog: ServiceCatalog = Depends(get_catalog),
    gateway: PaymentGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
):
    booking = validate_booking(req.booking, catalog)
    deposit = await create_deposit(booking, gateway, settings, idempotency_key=idempotency_key)
    return PaymentIntentResponse(clientSecret=deposit.client_secret, paymentIntentId=deposit.payment_intent_id)


@router.get("/booking/{payment_intent_id}", response_model=BookingStatusResponse, response_model_exclude_none=True)
async def booking_details(payment_intent_id: str, gateway: PaymentGateway = Depends(get_gateway)):
    """Booking details for the confirmation page, read back from charge metadata."""
    result = await get_booking_status(payment_intent_id, gateway)
    return BookingStatusResponse(success=result.success, booking=result.booking, status=result.status)


@router.get("/config", response_model=PublicConfig)
async def public_config(settings: Settings = Depends(get_settings)):
    return PublicConfig(publishableKey=settings.STRIPE_PUBLISHABLE_KEY)
