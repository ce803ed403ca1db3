# storefront/services/catalog.py
# Каталог: категории, товары, оценки товаров.
import logging
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from storefront.core.errors import NotFoundError, ConflictError, BadRequestError
from storefront.models.category import Category
from storefront.models.customer import Customer
from storefront.models.product import Product
from storefront.models.rating import Rating
from storefront.schemas.catalog import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    "Electronics",
    "Clothing",
    "Books",
    "Home & Kitchen",
    "Sports & Outdoors",
    "Beauty & Personal Care",
    "Toys & Games",
    "Automotive",
    "Health & Household",
    "Office Products",
]

SORTABLE_FIELDS = {
    "name": Product.name,
    "price": Product.price,
    "rating": Product.rating,
    "stock": Product.stock,
    "created_at": Product.created_at,
}


# ---------- категории ----------

def list_categories(db: Session) -> list[Category]:
    return db.query(Category).order_by(Category.name).all()


def get_category(db: Session, category_id: str) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if category is None:
        raise NotFoundError(f"Category with ID {category_id} not found")
    return category


def category_products(db: Session, category_id: str, limit: int | None = None, page: int | None = None) -> list[Product]:
    get_category(db, category_id)
    query = (
        db.query(Product)
        .filter(Product.category_id == category_id)
        .order_by(Product.created_at.desc())
    )
    if limit:
        query = query.limit(limit)
        if page:
            query = query.offset((page - 1) * limit)
    return query.all()


def seed_categories(db: Session, names: list[str] = DEFAULT_CATEGORIES) -> int:
    """Добавляет отсутствующие категории. Повторный запуск ничего не дублирует."""
    existing = {name for (name,) in db.query(Category.name).all()}
    created = 0
    for name in names:
        if name not in existing:
            db.add(Category(name=name))
            created += 1
    db.commit()
    logger.info(f"Seeded {created} categories ({len(existing)} already present)")
    return created


# ---------- товары ----------

def list_products(
    db: Session,
    category_id: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    min_rating: float | None = None,
    search: str | None = None,
    sort_by: str | None = None,
    sort_order: str = "asc",
    limit: int = 20,
    page: int = 1,
) -> list[Product]:
    query = db.query(Product).options(joinedload(Product.category))

    if category_id:
        query = query.filter(Product.category_id == category_id)
    if min_price is not None:
        query = query.filter(Product.price >= min_price)
    if max_price is not None:
        query = query.filter(Product.price <= max_price)
    if min_rating is not None:
        query = query.filter(Product.rating >= min_rating)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))

    if sort_by:
        column = SORTABLE_FIELDS.get(sort_by)
        if column is None:
            raise BadRequestError(f"Cannot sort by '{sort_by}'")
        query = query.order_by(column.desc() if sort_order == "desc" else column.asc())
    else:
        query = query.order_by(Product.created_at.desc())

    return query.offset((page - 1) * limit).limit(limit).all()


def get_product(db: Session, product_id: str) -> Product:
    product = (
        db.query(Product)
        .options(joinedload(Product.category))
        .filter(Product.id == product_id)
        .first()
    )
    if product is None:
        raise NotFoundError(f"Product with ID {product_id} not found")
    return product


def create_product(db: Session, data: ProductCreate) -> Product:
    get_category(db, data.category_id)
    product = Product(**data.model_dump())
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info(f"Created product {product.id} ({product.name})")
    return product


def update_product(db: Session, product_id: str, data: ProductUpdate) -> Product:
    product = get_product(db, product_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("category_id"):
        get_category(db, changes["category_id"])
    for field, value in changes.items():
        setattr(product, field, value)
    db.commit()
    db.refresh(product)
    return product


def delete_product(db: Session, product_id: str) -> None:
    product = get_product(db, product_id)
    try:
        db.delete(product)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"Product with ID {product_id} is referenced by existing orders")
    logger.info(f"Deleted product {product_id}")


# ---------- оценки ----------

def rate_product(db: Session, product_id: str, customer_id: str, value: float, comment: str | None = None) -> Rating:
    """
    Upsert оценки по (product_id, customer_id) и пересчёт среднего.

    Среднее каждый раз считается заново по всем оценкам товара.
    """
    product = db.query(Product).filter(Product.id == product_id).first()
    if product is None:
        raise NotFoundError(f"Product with ID {product_id} not found")
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if customer is None:
        raise NotFoundError(f"Customer with ID {customer_id} not found")

    try:
        rating = (
            db.query(Rating)
            .filter(Rating.product_id == product_id, Rating.customer_id == customer_id)
            .first()
        )
        if rating:
            rating.value = value
            rating.comment = comment
            rating.updated_at = datetime.utcnow()
            logger.info(f"Updated rating {rating.id} for product {product_id} by customer {customer_id}")
        else:
            rating = Rating(product_id=product_id, customer_id=customer_id, value=value, comment=comment)
            db.add(rating)
            logger.info(f"Created rating for product {product_id} by customer {customer_id}")
        db.flush()

        values = [v for (v,) in db.query(Rating.value).filter(Rating.product_id == product_id).all()]
        product.rating = sum(values) / len(values)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating/updating rating: {e}")
        raise ConflictError("Error creating rating")

    db.refresh(rating)
    return rating


def product_ratings(db: Session, product_id: str) -> list[Rating]:
    if db.query(Product.id).filter(Product.id == product_id).first() is None:
        raise NotFoundError(f"Product with ID {product_id} not found")
    return (
        db.query(Rating)
        .options(joinedload(Rating.customer))
        .filter(Rating.product_id == product_id)
        .order_by(Rating.created_at.desc())
        .all()
    )
