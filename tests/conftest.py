# tests/conftest.py
# Общие фикстуры: SQLite в памяти, fakeredis вместо Redis, TestClient с подменой зависимостей.
import hashlib
import hmac
import os
import time

# Переменные окружения должны быть заданы до импорта storefront
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.core import security
from storefront.core.config import settings
from storefront.db.base import Base
from storefront.db.cache import get_cache
from storefront.main import app
from storefront.models.category import Category
from storefront.models.customer import Customer
from storefront.models.product import Product
from storefront.models.user import User, RoleEnum
from storefront.services.cart import CartStore

WEBHOOK_SECRET = "whsec_test_secret"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def cache():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def store(cache):
    return CartStore(cache)


@pytest.fixture
def client(session_factory, cache, monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[security.get_db] = _get_db
    app.dependency_overrides[get_cache] = lambda: cache
    # без with: lifespan (создание таблиц в настоящей БД, ping Redis) не запускается
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------- фабрики ----------

@pytest.fixture
def make_category(db):
    def _make(name="Electronics"):
        category = Category(name=name)
        db.add(category)
        db.commit()
        db.refresh(category)
        return category
    return _make


@pytest.fixture
def make_product(db, make_category):
    def _make(name="Phone", price=10.0, stock=100, category=None, description=None):
        category = category or make_category(f"Category for {name}")
        product = Product(name=name, price=price, stock=stock, category_id=category.id, description=description)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make


@pytest.fixture
def make_customer(db):
    def _make(email="buyer@example.com", name="Buyer"):
        customer = Customer(email=email, name=name)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer
    return _make


@pytest.fixture
def make_user(db):
    def _make(email="user@example.com", password="secret123", role=RoleEnum.user, with_customer=True):
        user = User(
            email=email,
            hashed_password=security.get_password_hash(password),
            name="Test User",
            role=role,
        )
        db.add(user)
        if with_customer:
            db.add(Customer(email=email, name="Test User"))
        db.commit()
        db.refresh(user)
        return user
    return _make


def auth_headers(user):
    return {"Authorization": f"Bearer {security.create_access_token(user)}"}


def stripe_signature(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Заголовок stripe-signature в формате t=<ts>,v1=<hmac-sha256>."""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"
