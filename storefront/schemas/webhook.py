"""
Варианты событий Stripe, которые принимает webhook.

Каждый поддерживаемый тип события описан отдельной моделью с Literal-полем type;
всё остальное разбирается как UnhandledEvent и только логируется.
"""

from typing import Optional, Union, Literal

from pydantic import BaseModel, ConfigDict, Field


class CheckoutSessionMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = Field(None, alias="sessionId")
    customer_id: Optional[str] = Field(None, alias="customerId")
    # JSON-строка: metadata в Stripe хранит только строки
    shipping_address: Optional[str] = Field(None, alias="shippingAddress")


class PaymentIntentRef(BaseModel):
    id: str


class CheckoutSessionObject(BaseModel):
    id: str
    payment_intent: Optional[Union[str, PaymentIntentRef]] = None
    payment_status: Optional[str] = None
    metadata: CheckoutSessionMetadata = Field(default_factory=CheckoutSessionMetadata)

    @property
    def payment_intent_id(self) -> Optional[str]:
        if isinstance(self.payment_intent, PaymentIntentRef):
            return self.payment_intent.id
        return self.payment_intent


class CheckoutSessionData(BaseModel):
    object: CheckoutSessionObject


class PaymentIntentObject(BaseModel):
    id: str
    status: Optional[str] = None


class PaymentIntentData(BaseModel):
    object: PaymentIntentObject


class CheckoutSessionCompletedEvent(BaseModel):
    id: str
    type: Literal["checkout.session.completed"]
    data: CheckoutSessionData


class PaymentIntentSucceededEvent(BaseModel):
    id: str
    type: Literal["payment_intent.succeeded"]
    data: PaymentIntentData


class PaymentIntentFailedEvent(BaseModel):
    id: str
    type: Literal["payment_intent.payment_failed"]
    data: PaymentIntentData


class UnhandledEvent(BaseModel):
    id: str
    type: str


WebhookEvent = Union[
    CheckoutSessionCompletedEvent,
    PaymentIntentSucceededEvent,
    PaymentIntentFailedEvent,
    UnhandledEvent,
]

EVENT_MODELS = {
    "checkout.session.completed": CheckoutSessionCompletedEvent,
    "payment_intent.succeeded": PaymentIntentSucceededEvent,
    "payment_intent.payment_failed": PaymentIntentFailedEvent,
}
