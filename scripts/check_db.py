# scripts/check_db.py
# Проверяет подключение к DATABASE_URL и REDIS_URL из storefront.core.config.settings
import redis
from sqlalchemy import create_engine, text
from storefront.core.config import settings


def main():
    url = settings.DATABASE_URL
    print('Trying to connect to database:', url)
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    engine = create_engine(url, connect_args=connect_args)
    try:
        with engine.connect() as conn:
            print('Database OK, SELECT 1 ->', conn.execute(text("SELECT 1")).scalar())
    except Exception as e:
        print('Database connection failed:', e)
    finally:
        engine.dispose()

    print('Trying to connect to Redis:', settings.REDIS_URL)
    client = redis.Redis.from_url(settings.REDIS_URL)
    try:
        print('Redis OK, PING ->', client.ping())
    except redis.RedisError as e:
        print('Redis connection failed:', e)
    finally:
        client.close()


if __name__ == '__main__':
    main()
