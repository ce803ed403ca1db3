# scripts/seed_categories.py
# Заполняет справочник категорий. Повторный запуск безопасен.
from storefront.db.base import Base
from storefront.db.session import SessionLocal, engine
from storefront.services.catalog import seed_categories

# Импорт моделей, чтобы create_all видел все таблицы
import storefront.models.user
import storefront.models.customer
import storefront.models.category
import storefront.models.product
import storefront.models.rating
import storefront.models.order


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        created = seed_categories(db)
        print(f'Categories seeded: {created} new')
    finally:
        db.close()


if __name__ == '__main__':
    main()
