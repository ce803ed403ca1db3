"""
Схемы корзины.

CartRecord хранится в Redis под ключом cart:<owner>. Цена и название
позиции копируются из каталога при добавлении и дальше не обновляются:
изменение цены товара не меняет уже собранную корзину.
"""

from typing import Optional, List

from pydantic import BaseModel, Field


class CartLine(BaseModel):
    product_id: str
    name: str = Field(..., description="Product name snapshot")
    price: float = Field(..., ge=0, description="Unit price snapshot at add time")
    quantity: int = Field(..., ge=1)
    image_url: Optional[str] = None


class CartRecord(BaseModel):
    items: List[CartLine] = Field(default_factory=list)

    @property
    def subtotal(self) -> float:
        return round(sum(line.price * line.quantity for line in self.items), 2)


class CartView(BaseModel):
    items: List[CartLine]
    subtotal: float
    item_count: int

    @classmethod
    def from_record(cls, record: CartRecord) -> "CartView":
        return cls(
            items=record.items,
            subtotal=record.subtotal,
            item_count=sum(line.quantity for line in record.items),
        )


class AddToCartIn(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)


class UpdateCartItemIn(BaseModel):
    quantity: int = Field(..., ge=1)


class CartSessionOut(BaseModel):
    session_id: str
