# storefront/core/cookies.py
# Установка и сброс HTTP-only cookies (токены, id сессии корзины).
import logging

from fastapi import Response

from storefront.core.config import settings

logger = logging.getLogger(__name__)


def _cookie_options() -> dict:
    options = {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "none" if settings.is_production else "lax",
        "path": "/",
    }
    if settings.COOKIE_DOMAIN:
        options["domain"] = settings.COOKIE_DOMAIN
    return options


def set_cookie(response: Response, name: str, value: str, max_age: int) -> None:
    """max_age в секундах."""
    logger.debug(f"Setting cookie {name}")
    response.set_cookie(name, value, max_age=max_age, **_cookie_options())


def clear_cookie(response: Response, name: str) -> None:
    logger.debug(f"Clearing cookie {name}")
    response.delete_cookie(name, **_cookie_options())
