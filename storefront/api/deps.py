# storefront/api/deps.py
# Общие зависимости роутеров: хранилище корзин и владелец корзины.
import uuid

import redis
from fastapi import Depends, Request, Response

from storefront.core.config import settings
from storefront.core.cookies import set_cookie
from storefront.core.security import get_optional_user
from storefront.db.cache import get_cache
from storefront.models.user import User
from storefront.services.cart import CartStore, is_guest_session, user_cart_owner


def get_cart_store(cache: redis.Redis = Depends(get_cache)) -> CartStore:
    return CartStore(cache)


def guest_session_from(request: Request) -> str | None:
    """id гостевой сессии из cookie; значения не в формате UUID игнорируются."""
    session_id = request.cookies.get(settings.CART_SESSION_COOKIE)
    if is_guest_session(session_id):
        return session_id
    return None


def ensure_cart_session(request: Request, response: Response) -> str:
    """id гостевой сессии корзины; при отсутствии или подмене cookie выдаём новый."""
    session_id = guest_session_from(request)
    if session_id:
        return session_id
    session_id = str(uuid.uuid4())
    set_cookie(response, settings.CART_SESSION_COOKIE, session_id, max_age=settings.CART_SESSION_MAX_AGE)
    return session_id


def get_cart_owner(
    request: Request,
    response: Response,
    user: User | None = Depends(get_optional_user),
) -> str:
    """Авторизованный пользователь работает со своей корзиной, гость работает с корзиной сессии."""
    if user is not None:
        return user_cart_owner(user.id)
    return ensure_cart_session(request, response)
