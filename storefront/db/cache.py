# storefront/db/cache.py
# Клиент Redis для хранения корзин. Один пул соединений на процесс.
import redis

from storefront.core.config import settings

cache_client = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)


def get_cache() -> redis.Redis:
    """Зависимость: клиент кеша корзин."""
    return cache_client
