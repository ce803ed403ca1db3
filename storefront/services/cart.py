# storefront/services/cart.py
# Корзина в Redis: ключ cart:<owner>, значение: JSON CartRecord с TTL.
# Каждая операция читает корзину целиком, меняет её в памяти и записывает
# целиком обратно. Версий нет: при параллельной записи побеждает последняя.
import logging
import uuid

import redis
from pydantic import ValidationError
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.errors import NotFoundError, BadRequestError
from storefront.models.product import Product
from storefront.schemas.cart import CartLine, CartRecord, CartView

logger = logging.getLogger(__name__)

CART_KEY_PREFIX = "cart:"


def cart_key(owner: str) -> str:
    return f"{CART_KEY_PREFIX}{owner}"


def user_cart_owner(user_id: str) -> str:
    """Владелец корзины авторизованного пользователя."""
    return f"user:{user_id}"


def is_guest_session(value: str | None) -> bool:
    """Гостевой id сессии принимается только в том виде, в каком его выдаёт сервер: UUID."""
    if not value:
        return False
    try:
        return str(uuid.UUID(value)) == value
    except ValueError:
        return False


class CartStore:
    """Чтение и запись CartRecord в Redis."""

    def __init__(self, cache: redis.Redis, ttl: int | None = None):
        self.cache = cache
        self.ttl = ttl or settings.CART_TTL_SECONDS

    def load(self, owner: str) -> CartRecord | None:
        """Возвращает корзину и продлевает её TTL; None, если ключа нет."""
        key = cart_key(owner)
        raw = self.cache.get(key)
        if raw is None:
            return None
        try:
            record = CartRecord.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Dropping malformed cart {key}: {e}")
            self.cache.delete(key)
            return None
        self.cache.expire(key, self.ttl)
        return record

    def save(self, owner: str, record: CartRecord) -> None:
        self.cache.set(cart_key(owner), record.model_dump_json(), ex=self.ttl)

    def delete(self, owner: str) -> None:
        self.cache.delete(cart_key(owner))


def _load_non_empty(store: CartStore, owner: str) -> CartRecord:
    record = store.load(owner)
    if record is None or not record.items:
        raise NotFoundError("Cart is empty")
    return record


def get_cart(store: CartStore, owner: str) -> CartView:
    record = store.load(owner) or CartRecord()
    return CartView.from_record(record)


def add_item(store: CartStore, db: Session, owner: str, product_id: str, quantity: int) -> CartView:
    """
    Добавляет товар в корзину.

    Для нового товара в корзину копируются название и цена из каталога;
    для уже лежащего в корзине увеличивается только количество.
    """
    product = db.query(Product).filter(Product.id == product_id).first()
    if product is None:
        raise NotFoundError(f"Product with ID {product_id} not found")
    if quantity <= 0:
        raise BadRequestError("Quantity must be greater than zero")

    record = store.load(owner) or CartRecord()
    line = next((item for item in record.items if item.product_id == product_id), None)
    if line is not None:
        line.quantity += quantity
    else:
        record.items.append(
            CartLine(
                product_id=product.id,
                name=product.name,
                price=float(product.price),
                quantity=quantity,
                image_url=product.image_url,
            )
        )

    store.save(owner, record)
    logger.info(f"Cart {owner}: added {quantity} x {product_id}")
    return CartView.from_record(record)


def update_item(store: CartStore, owner: str, product_id: str, quantity: int) -> CartView:
    record = _load_non_empty(store, owner)
    line = next((item for item in record.items if item.product_id == product_id), None)
    if line is None:
        raise NotFoundError(f"Item with ID {product_id} not found in cart")
    if quantity <= 0:
        raise BadRequestError("Quantity must be greater than zero")

    line.quantity = quantity
    store.save(owner, record)
    logger.info(f"Cart {owner}: set {product_id} quantity to {quantity}")
    return CartView.from_record(record)


def remove_item(store: CartStore, owner: str, product_id: str) -> CartView:
    record = _load_non_empty(store, owner)
    remaining = [item for item in record.items if item.product_id != product_id]
    if len(remaining) == len(record.items):
        raise NotFoundError("Item not found in cart")

    record.items = remaining
    store.save(owner, record)
    logger.info(f"Cart {owner}: removed {product_id}")
    return CartView.from_record(record)


def clear_cart(store: CartStore, owner: str) -> CartView:
    store.delete(owner)
    logger.info(f"Cart {owner}: cleared")
    return CartView.from_record(CartRecord())


def merge_carts(store: CartStore, session_id: str, user_id: str) -> CartView:
    """
    Переносит гостевую корзину в корзину пользователя.

    Позиции гостевой корзины дописываются в конец без объединения
    одинаковых товаров. Гостевой ключ удаляется, так что повторный вызов
    для той же сессии ничего не добавляет, пока гость не соберёт новую корзину.
    """
    owner = user_cart_owner(user_id)
    user_record = store.load(owner) or CartRecord()

    guest_record = store.load(session_id)
    if guest_record is None or not guest_record.items:
        return CartView.from_record(user_record)

    user_record.items.extend(guest_record.items)
    store.save(owner, user_record)
    store.delete(session_id)
    logger.info(f"Merged guest cart {session_id} into {owner} ({len(guest_record.items)} lines)")
    return CartView.from_record(user_record)
