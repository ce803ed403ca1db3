# storefront/models/customer.py
# Покупатель. С учётной записью User связан только равенством email.
from sqlalchemy import Column, String, DateTime
from datetime import datetime
from storefront.db.base import Base, new_id


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    address = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
