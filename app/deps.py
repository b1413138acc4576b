from fastapi import Depends, Request

from app.config import Settings
from app.services.catalog import ServiceCatalog
from app.services.payment_gateway import PaymentGateway
from app.services.webhook_handler import WebhookHandler


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_catalog(request: Request) -> ServiceCatalog:
    return request.app.state.catalog


def get_gateway(request: Request) -> PaymentGateway:
    return request.app.state.gateway


def get_webhook_handler(request: Request, gateway: PaymentGateway = Depends(get_gateway)) -> WebhookHandler:
    return WebhookHandler(gateway, request.app.state.notifications)


async def raw_body(request: Request) -> bytes:
    """Request body exactly as received, for routes that verify signatures."""
    return await request.body()
