# storefront/main.py
# Точка входа FastAPI. Создание таблиц выполняется при старте с повторными попытками.

import logging
import time
from contextlib import asynccontextmanager

import redis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.db.session import engine
from storefront.db.base import Base
from storefront.db.cache import cache_client
from storefront.core.config import settings
from storefront.core.errors import register_exception_handlers
from storefront.api import auth, products, categories, customers, cart, webhook

# Импорт моделей, чтобы SQLAlchemy видел их определения
import storefront.models.user
import storefront.models.customer
import storefront.models.category
import storefront.models.product
import storefront.models.rating
import storefront.models.order

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def try_create_tables(retries: int = 5, delay: int = 2) -> bool:
    """
    Пытаемся создать таблицы с повторными попытками.
    Если БД недоступна, логируем ошибку и пробуем снова.

    Args:
        retries: Количество попыток подключения
        delay: Задержка между попытками в секундах

    Returns:
        True если таблицы созданы/существуют, False если все попытки исчерпаны
    """
    for attempt in range(1, retries + 1):
        try:
            logger.info(f"Creating tables ({attempt}/{retries})...")
            Base.metadata.create_all(bind=engine)
            logger.info("Database tables created (or already exist).")
            return True
        except Exception as e:
            logger.warning(f"Attempt {attempt}/{retries} failed to create tables: {e}")
            if attempt < retries:
                time.sleep(delay)
    logger.error(f"Could not create tables after {retries} retries.")
    return False


def cache_available() -> bool:
    try:
        return bool(cache_client.ping())
    except redis.RedisError as e:
        logger.warning(f"Redis is not reachable at startup: {e}")
        return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Старт: таблицы и проверка Redis. Остановка: закрываем соединения."""
    logger.info("Storefront API starting up...")
    if not try_create_tables(retries=5, delay=2):
        if settings.is_production:
            raise RuntimeError("Cannot start application: database tables creation failed")
        logger.error("Failed to create database tables. Application may not work correctly.")
    if not cache_available() and settings.is_production:
        raise RuntimeError("Cannot start application: cart cache is unavailable")

    yield

    logger.info("Storefront API shutting down...")
    engine.dispose()
    cache_client.close()


app = FastAPI(
    title="Storefront API",
    description="Каталог, корзина, оформление заказов и оплата через Stripe",
    version="1.0.0",
    lifespan=lifespan
)

# cookies (корзина, токены) требуют allow_credentials и явного origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

register_exception_handlers(app)

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(products.router, prefix="/products", tags=["products"])
app.include_router(categories.router, prefix="/categories", tags=["categories"])
app.include_router(customers.router, prefix="/customers", tags=["customers"])
app.include_router(cart.router, tags=["orders"])
app.include_router(webhook.router, prefix="/webhook", tags=["webhooks"])


@app.get("/", tags=["health"])
async def root():
    """Базовый health check."""
    return {
        "status": "ok",
        "service": "Storefront API",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health", tags=["health"])
def health():
    """Детальный health check."""
    return {
        "status": "healthy",
        "cache": "connected" if cache_available() else "unavailable",
        "version": "1.0.0"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower()
    )
