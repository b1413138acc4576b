from dataclasses import dataclass
from typing import Optional

from app.errors import MissingFields, UnknownService
from app.schemas.booking import BookingPayload
from app.services.catalog import ServiceCatalog, ServiceEntry

REQUIRED_FIELDS = ("service", "name", "phone", "date")


@dataclass(frozen=True)
class BookingRequest:
    service: ServiceEntry
    customer_name: str
    phone: str
    date: str
    email: str = ""
    instagram: str = ""
    notes: str = ""

    @property
    def service_id(self) -> str:
        return self.service.id


def validate_booking(payload: Optional[BookingPayload], catalog: ServiceCatalog) -> BookingRequest:
    """Check required fields, then resolve the service id against the catalog.

    Only presence is checked; date and phone formats are taken as given.
    """
    if payload is None or any(not getattr(payload, field) for field in REQUIRED_FIELDS):
        raise MissingFields()

    service = catalog.lookup(payload.service)
    if service is None:
        raise UnknownService(payload.service)

    return BookingRequest(
        service=service,
        customer_name=payload.name,
        phone=payload.phone,
        date=payload.date,
        email=payload.email or "",
        instagram=payload.instagram or "",
        notes=payload.notes or "",
    )
