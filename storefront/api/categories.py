# storefront/api/categories.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.core.security import get_db
from storefront.schemas.catalog import CategoryOut, ProductOut
from storefront.services import catalog

router = APIRouter()


@router.get("", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return catalog.list_categories(db)


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(category_id: str, db: Session = Depends(get_db)):
    return catalog.get_category(db, category_id)


@router.get("/{category_id}/products", response_model=List[ProductOut])
def category_products(
    category_id: str,
    limit: Optional[int] = Query(None, ge=1, le=100),
    page: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    return catalog.category_products(db, category_id, limit=limit, page=page)
