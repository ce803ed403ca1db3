# storefront/api/customers.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from storefront.core.security import get_db, require_role
from storefront.models.user import User, RoleEnum
from storefront.schemas.customer import CustomerCreate, CustomerOut
from storefront.services import customers

router = APIRouter()


@router.get("", response_model=List[CustomerOut])
def list_customers(
    db: Session = Depends(get_db),
    _admin: User = Depends(require_role(RoleEnum.admin)),
):
    return customers.list_customers(db)


@router.post("", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
def create_customer(payload: CustomerCreate, db: Session = Depends(get_db)):
    return customers.create_customer(db, payload)
