from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class CustomerCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1)
    address: Optional[str] = None
    phone: Optional[str] = None


class CustomerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
