# storefront/db/base.py
# Общая declarative база для SQLAlchemy.
# Этот модуль должен быть максимально простым и не импортировать модели,
# чтобы избежать циклических импортов. Модели импортируют Base отсюда.
import uuid

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def new_id() -> str:
    """UUID в виде строки: первичные ключи всех таблиц магазина."""
    return str(uuid.uuid4())
