# storefront/services/orders.py
# Оформление заказа из корзины и чтение заказов.
import logging
from collections import Counter

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from storefront.core.errors import NotFoundError, BadRequestError, StorefrontError
from storefront.models.customer import Customer
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.models.product import Product
from storefront.services.cart import CartStore

logger = logging.getLogger(__name__)


def checkout(
    db: Session,
    store: CartStore,
    owner: str,
    payment_method: dict,
    customer_id: str | None = None,
    shipping_address: dict | None = None,
    payment_session_id: str | None = None,
    status: OrderStatus = OrderStatus.pending,
) -> Order:
    """
    Превращает корзину owner в заказ.

    Заказ, его позиции и списание остатков пишутся одной транзакцией.
    Ключ корзины удаляется только после commit: если процесс упадёт между
    этими шагами, корзина останется в Redis и её можно оформить повторно.
    """
    record = store.load(owner)
    if record is None or not record.items:
        raise NotFoundError("Cart is empty")

    if customer_id:
        if db.query(Customer.id).filter(Customer.id == customer_id).first() is None:
            raise NotFoundError(f"Customer with ID {customer_id} not found")

    total = record.subtotal
    # одна и та же позиция может встретиться дважды после слияния корзин
    wanted = Counter()
    for line in record.items:
        wanted[line.product_id] += line.quantity

    try:
        for product_id, quantity in wanted.items():
            product = db.query(Product).filter(Product.id == product_id).first()
            if product is None:
                raise NotFoundError(f"Product {product_id} not found")
            if product.stock < quantity:
                raise BadRequestError(
                    f"Not enough inventory for product {product.name}. Available: {product.stock}"
                )
            product.stock -= quantity

        order = Order(
            customer_id=customer_id,
            total=total,
            status=status,
            shipping_address=shipping_address,
            payment_method=payment_method,
            payment_session_id=payment_session_id,
            items=[
                OrderItem(product_id=line.product_id, quantity=line.quantity, price=line.price)
                for line in record.items
            ],
        )
        db.add(order)
        db.commit()
    except (StorefrontError, SQLAlchemyError):
        db.rollback()
        raise

    db.refresh(order)
    store.delete(owner)
    logger.info(f"Order {order.id} created from cart {owner}: total={total}, items={len(order.items)}")
    return order


def find_by_payment_session(db: Session, payment_session_id: str) -> Order | None:
    return (
        db.query(Order)
        .options(selectinload(Order.items))
        .filter(Order.payment_session_id == payment_session_id)
        .first()
    )


def get_order(db: Session, order_id: str) -> Order:
    order = db.query(Order).options(selectinload(Order.items)).filter(Order.id == order_id).first()
    if order is None:
        raise NotFoundError(f"Order with ID {order_id} not found")
    return order


def orders_for_customer(db: Session, customer_id: str) -> list[Order]:
    return (
        db.query(Order)
        .options(selectinload(Order.items))
        .filter(Order.customer_id == customer_id)
        .order_by(Order.created_at.desc())
        .all()
    )
