# storefront/services/webhook.py
# Обработка событий Stripe после проверки подписи.
import logging

from pydantic import ValidationError
from sqlalchemy.orm import Session

from storefront.core.errors import BadRequestError
from storefront.schemas.webhook import (
    EVENT_MODELS,
    CheckoutSessionCompletedEvent,
    PaymentIntentFailedEvent,
    PaymentIntentSucceededEvent,
    UnhandledEvent,
    WebhookEvent,
)
from storefront.services import payments
from storefront.services.cart import CartStore

logger = logging.getLogger(__name__)


def parse_event(payload: dict) -> WebhookEvent:
    """Разбирает JSON события в вариант по полю type."""
    model = EVENT_MODELS.get(payload.get("type"), UnhandledEvent)
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Malformed Stripe event {payload.get('id')}: {e}")
        raise BadRequestError("Invalid webhook payload")


def handle_event(db: Session, store: CartStore, payload: dict) -> dict:
    event = parse_event(payload)
    logger.info(f"Processing Stripe event {event.id}: {event.type}")

    if isinstance(event, CheckoutSessionCompletedEvent):
        session = event.data.object
        order = payments.complete_checkout_session(db, store, session)
        return {"received": True, "order_id": order.id}

    if isinstance(event, PaymentIntentSucceededEvent):
        logger.info(f"Payment succeeded: {event.data.object.id}")
    elif isinstance(event, PaymentIntentFailedEvent):
        logger.info(f"Payment failed: {event.data.object.id}")
    else:
        logger.info(f"Unhandled event type: {event.type}")
    return {"received": True}
