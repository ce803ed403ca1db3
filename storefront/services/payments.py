# storefront/services/payments.py
# Интеграция со Stripe: сессии Checkout, проверка подписи webhook и
# завершение оплаченной сессии (общий путь для webhook и /checkout/success).
import json
import logging

import stripe
from pydantic import ValidationError
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.errors import BadRequestError
from storefront.models.order import Order, OrderStatus
from storefront.schemas.cart import CartRecord
from storefront.schemas.order import PaymentMethodType
from storefront.schemas.webhook import CheckoutSessionObject
from storefront.services import orders
from storefront.services.cart import CartStore

logger = logging.getLogger(__name__)


def create_checkout_session(
    record: CartRecord,
    owner: str,
    shipping_address: dict,
    customer_id: str | None = None,
) -> str:
    """Создаёт сессию Stripe Checkout и возвращает URL для редиректа."""
    line_items = [
        {
            "price_data": {
                "currency": settings.STRIPE_CURRENCY,
                "product_data": {
                    "name": line.name,
                    "images": [line.image_url] if line.image_url else [],
                },
                "unit_amount": int(round(line.price * 100)),
            },
            "quantity": line.quantity,
        }
        for line in record.items
    ]
    # в metadata Stripe допустимы только строки
    metadata = {"sessionId": owner, "shippingAddress": json.dumps(shipping_address)}
    if customer_id:
        metadata["customerId"] = customer_id

    session = stripe.checkout.Session.create(
        api_key=settings.STRIPE_SECRET_KEY,
        payment_method_types=["card"],
        line_items=line_items,
        mode="payment",
        success_url=f"{settings.FRONTEND_URL}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{settings.FRONTEND_URL}/checkout/cancel",
        metadata=metadata,
    )
    logger.info(f"Created Stripe checkout session {session['id']} for cart {owner}")
    return session["url"]


def retrieve_checkout_session(session_id: str) -> CheckoutSessionObject:
    try:
        session = stripe.checkout.Session.retrieve(session_id, api_key=settings.STRIPE_SECRET_KEY)
    except stripe.InvalidRequestError as e:
        logger.warning(f"Stripe rejected checkout session lookup {session_id}: {e}")
        raise BadRequestError("Invalid Stripe session")
    try:
        return CheckoutSessionObject.model_validate(session)
    except ValidationError as e:
        raise BadRequestError(f"Invalid Stripe session: {e.error_count()} validation errors")


def verify_webhook(payload: bytes, signature: str | None) -> dict:
    """
    Проверяет подпись Stripe по сырому телу запроса и возвращает JSON события.

    Без заголовка подписи или без настроенного секрета запрос отклоняется.
    """
    if not signature:
        raise BadRequestError("Missing Stripe signature")
    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.error("STRIPE_WEBHOOK_SECRET is not configured, rejecting webhook")
        raise BadRequestError("Webhook secret is not configured")

    try:
        body = payload.decode("utf-8")
        stripe.WebhookSignature.verify_header(
            body, signature, settings.STRIPE_WEBHOOK_SECRET, stripe.Webhook.DEFAULT_TOLERANCE
        )
    except UnicodeDecodeError:
        raise BadRequestError("Invalid webhook payload")
    except stripe.SignatureVerificationError as e:
        logger.warning(f"Stripe signature verification failed: {e}")
        raise BadRequestError("Invalid Stripe signature")

    try:
        event = json.loads(body)
    except ValueError:
        raise BadRequestError("Invalid webhook payload")
    if not isinstance(event, dict):
        raise BadRequestError("Invalid webhook payload")
    return event


def complete_checkout_session(db: Session, store: CartStore, session: CheckoutSessionObject) -> Order:
    """
    Создаёт заказ по оплаченной сессии Checkout.

    Если заказ с этим id сессии уже есть (повторная доставка webhook или
    повторный заход на страницу успеха), возвращается он же.
    """
    existing = orders.find_by_payment_session(db, session.id)
    if existing is not None:
        logger.info(f"Stripe session {session.id} already processed as order {existing.id}")
        return existing

    metadata = session.metadata
    if not metadata.session_id or not metadata.shipping_address:
        raise BadRequestError("Invalid session data")
    try:
        shipping_address = json.loads(metadata.shipping_address)
    except ValueError:
        raise BadRequestError("Invalid shipping address in session metadata")

    return orders.checkout(
        db,
        store,
        owner=metadata.session_id,
        customer_id=metadata.customer_id or None,
        shipping_address=shipping_address,
        payment_method={
            "type": PaymentMethodType.credit_card.value,
            "details": {
                "paymentIntentId": session.payment_intent_id,
                "stripeSessionId": session.id,
            },
        },
        payment_session_id=session.id,
        status=OrderStatus.paid,
    )
