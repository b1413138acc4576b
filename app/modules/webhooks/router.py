from typing import Optional

from fastapi import APIRouter, Depends, Header

from app.deps import get_webhook_handler, raw_body
from app.schemas.payment import WebhookAck
from app.services.webhook_handler import WebhookHandler

router = APIRouter(tags=["webhooks"])


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    body: bytes = Depends(raw_body),
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    handler: WebhookHandler = Depends(get_webhook_handler),
):
    return await handler.handle(body, stripe_signature)
