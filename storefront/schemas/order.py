"""
Схемы оформления заказа и заказов.
"""

import enum
from datetime import datetime
from typing import Optional, List, Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from storefront.models.order import OrderStatus


class PaymentMethodType(str, enum.Enum):
    credit_card = "credit_card"
    paypal = "paypal"
    bank_transfer = "bank_transfer"


class ShippingAddress(BaseModel):
    full_name: str
    address1: str
    address2: Optional[str] = None
    city: str
    state: str
    postal_code: str
    country: str
    phone: str


class PaymentMethodIn(BaseModel):
    type: PaymentMethodType
    details: Dict[str, Any] = Field(default_factory=dict)


class CheckoutIn(BaseModel):
    session_id: Optional[str] = Field(None, description="Cart session id; taken from the cookie when omitted")
    customer_id: Optional[str] = None
    shipping_address: ShippingAddress
    payment_method: PaymentMethodIn


class CheckoutRedirect(BaseModel):
    url: str


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    product_id: str
    quantity: int
    price: float


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    customer_id: Optional[str] = None
    total: float
    status: OrderStatus
    shipping_address: Optional[Dict[str, Any]] = None
    payment_method: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    items: List[OrderItemOut]
