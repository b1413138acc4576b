from pydantic import BaseModel, Field
from typing import Dict, Optional


class BookingPayload(BaseModel):
    service: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    date: Optional[str] = None
    email: Optional[str] = None
    instagram: Optional[str] = None
    notes: Optional[str] = None


class CreatePaymentIntentRequest(BaseModel):
    # required fields are checked by the booking validator so failures answer 400
    booking: Optional[BookingPayload] = None


class BookingStatusResponse(BaseModel):
    success: bool
    booking: Optional[Dict[str, str]] = Field(None, description="charge metadata when paid")
    status: Optional[str] = None
