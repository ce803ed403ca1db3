from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from storefront.models.user import RoleEnum


class RegisterIn(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)


class LoginIn(BaseModel):
    email: EmailStr
    password: str


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: Optional[str] = None
    role: RoleEnum


class MeOut(BaseModel):
    id: str
    email: str
    role: RoleEnum
    customer_id: Optional[str] = None


class LoginOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: MeOut
