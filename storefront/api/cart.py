# storefront/api/cart.py
# Корзина, оформление заказа и заказы пользователя.
import logging
from typing import List, Union

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from storefront.api.deps import get_cart_owner, get_cart_store, ensure_cart_session, guest_session_from
from storefront.core.errors import BadRequestError, ForbiddenError, NotFoundError
from storefront.core.security import get_db, get_current_user, get_optional_user
from storefront.models.customer import Customer
from storefront.models.user import User, RoleEnum
from storefront.schemas.cart import AddToCartIn, UpdateCartItemIn, CartView, CartSessionOut
from storefront.schemas.order import CheckoutIn, CheckoutRedirect, OrderOut, PaymentMethodType
from storefront.services import auth as auth_service
from storefront.services import cart as cart_service
from storefront.services import orders, payments
from storefront.services.cart import CartStore, is_guest_session, user_cart_owner

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/cart/session", response_model=CartSessionOut)
def create_cart_session(request: Request, response: Response):
    return CartSessionOut(session_id=ensure_cart_session(request, response))


@router.get("/cart", response_model=CartView)
def get_cart(owner: str = Depends(get_cart_owner), store: CartStore = Depends(get_cart_store)):
    return cart_service.get_cart(store, owner)


@router.post("/cart", response_model=CartView)
def add_to_cart(
    payload: AddToCartIn,
    owner: str = Depends(get_cart_owner),
    store: CartStore = Depends(get_cart_store),
    db: Session = Depends(get_db),
):
    return cart_service.add_item(store, db, owner, payload.product_id, payload.quantity)


@router.put("/cart/items/{product_id}", response_model=CartView)
def update_cart_item(
    product_id: str,
    payload: UpdateCartItemIn,
    owner: str = Depends(get_cart_owner),
    store: CartStore = Depends(get_cart_store),
):
    return cart_service.update_item(store, owner, product_id, payload.quantity)


@router.delete("/cart/items/{product_id}", response_model=CartView)
def remove_cart_item(
    product_id: str,
    owner: str = Depends(get_cart_owner),
    store: CartStore = Depends(get_cart_store),
):
    return cart_service.remove_item(store, owner, product_id)


@router.delete("/cart", response_model=CartView)
def clear_cart(owner: str = Depends(get_cart_owner), store: CartStore = Depends(get_cart_store)):
    return cart_service.clear_cart(store, owner)


@router.post("/cart/merge", response_model=CartView)
def merge_cart(
    request: Request,
    current_user: User = Depends(get_current_user),
    store: CartStore = Depends(get_cart_store),
):
    """Переносит гостевую корзину из cookie в корзину пользователя."""
    session_id = guest_session_from(request)
    if not session_id:
        return cart_service.get_cart(store, user_cart_owner(current_user.id))
    return cart_service.merge_carts(store, session_id, current_user.id)


@router.post(
    "/checkout",
    response_model=Union[OrderOut, CheckoutRedirect],
    status_code=status.HTTP_201_CREATED,
)
def checkout(
    payload: CheckoutIn,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    store: CartStore = Depends(get_cart_store),
    current_user: User | None = Depends(get_optional_user),
):
    """
    Оформление заказа.

    Оплата картой: создаётся сессия Stripe Checkout, клиенту возвращается её URL,
    а заказ создаст webhook. Прочие способы оплаты оформляют заказ сразу.
    """
    owner = payload.session_id
    if owner and not is_guest_session(owner):
        # чужую корзину пользователя оформить нельзя
        if current_user is None or owner != user_cart_owner(current_user.id):
            raise ForbiddenError("Cannot check out this cart")
    if not owner and current_user is not None:
        owner = user_cart_owner(current_user.id)
    if not owner:
        owner = guest_session_from(request)
    if not owner:
        raise BadRequestError("Session ID is required")

    customer_id = payload.customer_id
    if not customer_id and current_user is not None:
        customer_id = auth_service.customer_id_for(db, current_user)

    shipping_address = payload.shipping_address.model_dump()

    if payload.payment_method.type == PaymentMethodType.credit_card:
        record = store.load(owner)
        if record is None or not record.items:
            raise NotFoundError("Cart is empty")
        if customer_id and db.query(Customer.id).filter(Customer.id == customer_id).first() is None:
            raise NotFoundError(f"Customer with ID {customer_id} not found")
        url = payments.create_checkout_session(record, owner, shipping_address, customer_id)
        response.status_code = status.HTTP_200_OK
        return CheckoutRedirect(url=url)

    return orders.checkout(
        db,
        store,
        owner,
        payment_method=payload.payment_method.model_dump(mode="json"),
        customer_id=customer_id,
        shipping_address=shipping_address,
    )


@router.get("/checkout/success", response_model=OrderOut)
def checkout_success(
    session_id: str,
    db: Session = Depends(get_db),
    store: CartStore = Depends(get_cart_store),
):
    """Возврат со Stripe: заказ создаётся, если webhook ещё не успел это сделать."""
    session = payments.retrieve_checkout_session(session_id)
    logger.info(f"Retrieved Stripe session {session.id}, payment status: {session.payment_status}")
    if session.payment_status != "paid":
        raise BadRequestError(f"Payment not completed. Status: {session.payment_status}")
    return payments.complete_checkout_session(db, store, session)


@router.get("/orders", response_model=List[OrderOut])
def list_orders(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    customer_id = auth_service.customer_id_for(db, current_user)
    if customer_id is None:
        return []
    return orders.orders_for_customer(db, customer_id)


@router.get("/orders/{order_id}", response_model=OrderOut)
def get_order(order_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    order = orders.get_order(db, order_id)
    if current_user.role != RoleEnum.admin and (
        order.customer_id is None or order.customer_id != auth_service.customer_id_for(db, current_user)
    ):
        raise NotFoundError(f"Order with ID {order_id} not found")
    return order
