# storefront/services/customers.py
# Покупатели. Учётная запись и покупатель связаны только по email.
import logging

from sqlalchemy.orm import Session

from storefront.core.errors import ConflictError
from storefront.models.customer import Customer
from storefront.schemas.customer import CustomerCreate

logger = logging.getLogger(__name__)


def list_customers(db: Session) -> list[Customer]:
    return db.query(Customer).order_by(Customer.created_at.desc()).all()


def get_by_email(db: Session, email: str) -> Customer | None:
    return db.query(Customer).filter(Customer.email == email).first()


def create_customer(db: Session, data: CustomerCreate) -> Customer:
    if get_by_email(db, data.email):
        raise ConflictError("Customer with this email already exists")
    customer = Customer(**data.model_dump())
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


def ensure_for_email(db: Session, email: str, name: str) -> Customer:
    """Возвращает покупателя с этим email, создаёт его при отсутствии (без commit)."""
    customer = get_by_email(db, email)
    if customer is None:
        customer = Customer(email=email, name=name)
        db.add(customer)
        db.flush()
        logger.info(f"Created customer {customer.id} for {email}")
    return customer
