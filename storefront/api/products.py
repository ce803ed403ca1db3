# storefront/api/products.py
# Каталог товаров и оценки. Изменять каталог может только admin.
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from storefront.core.errors import BadRequestError, ForbiddenError
from storefront.core.security import get_db, get_current_user, require_role
from storefront.models.user import User, RoleEnum
from storefront.schemas.catalog import ProductCreate, ProductUpdate, ProductOut, RatingCreate, RatingOut
from storefront.services import auth as auth_service
from storefront.services import catalog

router = APIRouter()


@router.get("", response_model=List[ProductOut])
def list_products(
    category_id: Optional[str] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    min_rating: Optional[float] = Query(None, ge=0, le=5),
    search: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Literal["asc", "desc"] = "asc",
    limit: int = Query(20, ge=1, le=100),
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db),
):
    return catalog.list_products(
        db,
        category_id=category_id,
        min_price=min_price,
        max_price=max_price,
        min_rating=min_rating,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        limit=limit,
        page=page,
    )


@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_role(RoleEnum.admin)),
):
    return catalog.create_product(db, payload)


@router.post("/rate", response_model=RatingOut, status_code=status.HTTP_201_CREATED)
def rate_product(
    payload: RatingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Оценка товара. customer_id="current" означает покупателя с email текущего пользователя.
    Обычный пользователь может оценивать только от своего имени.
    """
    own_customer_id = auth_service.customer_id_for(db, current_user)
    customer_id = payload.customer_id
    if customer_id == "current":
        if own_customer_id is None:
            raise BadRequestError("User does not have an associated customer profile")
        customer_id = own_customer_id
    elif current_user.role != RoleEnum.admin and customer_id != own_customer_id:
        raise ForbiddenError("Cannot rate on behalf of another customer")

    return catalog.rate_product(db, payload.product_id, customer_id, payload.value, payload.comment)


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, db: Session = Depends(get_db)):
    return catalog.get_product(db, product_id)


@router.put("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: str,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_role(RoleEnum.admin)),
):
    return catalog.update_product(db, product_id, payload)


@router.delete("/{product_id}")
def delete_product(
    product_id: str,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_role(RoleEnum.admin)),
):
    catalog.delete_product(db, product_id)
    return {"id": product_id, "deleted": True}


@router.get("/{product_id}/ratings", response_model=List[RatingOut])
def product_ratings(product_id: str, db: Session = Depends(get_db)):
    return catalog.product_ratings(db, product_id)
