# storefront/services/auth.py
# Регистрация и вход. Учётная запись и покупатель связаны только по email.
import logging

from sqlalchemy.orm import Session

from storefront.core import security
from storefront.core.errors import BadRequestError, UnauthorizedError
from storefront.models.user import User, RoleEnum
from storefront.services import customers

logger = logging.getLogger(__name__)


def register(db: Session, email: str, password: str, first_name: str, last_name: str) -> User:
    """
    Регистрация: создаёт пользователя с ролью user и, если покупателя
    с таким email ещё нет, создаёт и его.
    """
    if db.query(User).filter(User.email == email).first():
        raise BadRequestError("Email already registered")

    name = f"{first_name} {last_name}"
    customers.ensure_for_email(db, email, name)
    user = User(
        email=email,
        hashed_password=security.get_password_hash(password),
        name=name,
        role=RoleEnum.user,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Registered user {user.id}")
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Одинаковая ошибка и для неизвестного email, и для неверного пароля."""
    user = db.query(User).filter(User.email == email).first()
    if not user or not security.verify_password(password, user.hashed_password):
        logger.info("Failed login attempt")
        raise UnauthorizedError("Invalid credentials")
    return user


def customer_id_for(db: Session, user: User) -> str | None:
    customer = customers.get_by_email(db, user.email)
    return customer.id if customer else None


def user_from_refresh_token(db: Session, token: str) -> User:
    payload = security.decode_refresh_token(token)
    user = db.query(User).filter(User.id == payload["sub"]).first()
    if user is None:
        raise UnauthorizedError("Invalid refresh token")
    return user
