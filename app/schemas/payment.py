from pydantic import BaseModel


class PaymentIntentResponse(BaseModel):
    clientSecret: str
    paymentIntentId: str


class WebhookAck(BaseModel):
    received: bool


class PublicConfig(BaseModel):
    publishableKey: str
