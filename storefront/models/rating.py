# storefront/models/rating.py
# Оценка товара покупателем: одна на пару (product_id, customer_id).
from sqlalchemy import Column, String, Float, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from storefront.db.base import Base, new_id


class Rating(Base):
    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("product_id", "customer_id", name="uq_rating_product_customer"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False)
    value = Column(Float, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    product = relationship("Product", back_populates="ratings")
    customer = relationship("Customer")
