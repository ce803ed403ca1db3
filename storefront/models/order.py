# storefront/models/order.py
# Модели Order и OrderItem. Цена позиции хранится как снимок на момент оформления.
from sqlalchemy import Column, Integer, String, ForeignKey, Float, DateTime, Enum, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from storefront.db.base import Base, new_id
import enum


class OrderStatus(str, enum.Enum):
    pending = "pending"
    paid = "paid"
    shipped = "shipped"
    delivered = "delivered"
    cancelled = "cancelled"


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=True)
    total = Column(Float, default=0.0)
    status = Column(Enum(OrderStatus), default=OrderStatus.pending)
    shipping_address = Column(JSON, nullable=True)
    payment_method = Column(JSON, nullable=True)
    # id сессии Stripe Checkout; по нему webhook проверяет повторную доставку
    payment_session_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    customer = relationship("Customer")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, default=1)
    price = Column(Float, nullable=False)

    order = relationship("Order", back_populates="items")
