"""
Схемы каталога: категории, товары и оценки.

Входные модели валидируют тела запросов, выходные читаются из ORM-объектов
(from_attributes).
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Product name")
    description: Optional[str] = Field(None, description="Marketing description")
    price: float = Field(..., ge=0, description="Unit price")
    stock: int = Field(..., ge=0, description="Available stock quantity")
    category_id: str = Field(..., description="Category id")
    image_url: Optional[str] = Field(None, description="Primary product image URL")


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    category_id: Optional[str] = None
    image_url: Optional[str] = None


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    price: float
    stock: int
    rating: float
    image_url: Optional[str] = None
    category_id: str
    category: Optional[CategoryOut] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RatingCreate(BaseModel):
    product_id: str = Field(..., description="Product id")
    customer_id: str = Field(..., min_length=1, description="Customer id or 'current' for the authenticated user")
    value: float = Field(..., ge=1, le=5, description="Rating value (1-5)")
    comment: Optional[str] = Field(None, description="Review comment")


class RaterOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class RatingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    product_id: str
    customer_id: str
    value: float
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    customer: Optional[RaterOut] = None
