# storefront/api/webhook.py
# Приём событий Stripe. Подпись проверяется по сырому телу запроса,
# поэтому тело читается до любого разбора JSON.
import logging

from fastapi import APIRouter, Depends, Header, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from storefront.api.deps import get_cart_store
from storefront.core.security import get_db
from storefront.services import payments, webhook
from storefront.services.cart import CartStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(None, alias="stripe-signature"),
    db: Session = Depends(get_db),
    store: CartStore = Depends(get_cart_store),
):
    payload = await request.body()
    logger.info(f"Received Stripe webhook ({len(payload)} bytes)")
    event = payments.verify_webhook(payload, stripe_signature)
    return await run_in_threadpool(webhook.handle_event, db, store, event)
