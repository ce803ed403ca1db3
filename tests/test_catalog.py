import pytest

from conftest import auth_headers
from storefront.core.errors import NotFoundError
from storefront.models.category import Category
from storefront.models.rating import Rating
from storefront.models.user import RoleEnum
from storefront.services import catalog


# ---------- оценки ----------

def test_second_rating_overwrites_first(db, make_product, make_customer):
    product = make_product()
    customer = make_customer()

    catalog.rate_product(db, product.id, customer.id, 2, "meh")
    rating = catalog.rate_product(db, product.id, customer.id, 5, "great after all")

    rows = db.query(Rating).filter(Rating.product_id == product.id).all()
    assert len(rows) == 1
    assert rows[0].id == rating.id
    assert rows[0].value == 5
    assert rows[0].comment == "great after all"
    db.refresh(product)
    assert product.rating == 5


def test_product_rating_is_mean_of_all_ratings(db, make_product, make_customer):
    product = make_product()
    first = make_customer(email="a@example.com")
    second = make_customer(email="b@example.com")

    catalog.rate_product(db, product.id, first.id, 4)
    catalog.rate_product(db, product.id, second.id, 1)

    db.refresh(product)
    assert product.rating == pytest.approx(2.5)


def test_rating_unknown_product_or_customer(db, make_product, make_customer):
    product = make_product()
    customer = make_customer()
    with pytest.raises(NotFoundError):
        catalog.rate_product(db, "missing", customer.id, 3)
    with pytest.raises(NotFoundError):
        catalog.rate_product(db, product.id, "missing", 3)


def test_rate_endpoint_resolves_current_customer(client, make_product, make_user):
    product = make_product()
    user = make_user()

    response = client.post(
        "/products/rate",
        json={"product_id": product.id, "customer_id": "current", "value": 4, "comment": "Nice"},
        headers=auth_headers(user),
    )

    assert response.status_code == 201
    ratings = client.get(f"/products/{product.id}/ratings").json()
    assert len(ratings) == 1
    assert ratings[0]["value"] == 4
    assert ratings[0]["customer"]["name"] == "Test User"
    assert client.get(f"/products/{product.id}").json()["rating"] == 4


def test_rate_endpoint_requires_auth_and_ownership(client, make_product, make_user, make_customer):
    product = make_product()
    stranger = make_customer(email="stranger@example.com")
    user = make_user()

    unauthenticated = client.post(
        "/products/rate", json={"product_id": product.id, "customer_id": "current", "value": 4}
    )
    foreign = client.post(
        "/products/rate",
        json={"product_id": product.id, "customer_id": stranger.id, "value": 4},
        headers=auth_headers(user),
    )

    assert unauthenticated.status_code == 401
    assert foreign.status_code == 403


def test_rate_value_must_be_between_one_and_five(client, make_product, make_user):
    product = make_product()
    user = make_user()
    response = client.post(
        "/products/rate",
        json={"product_id": product.id, "customer_id": "current", "value": 6},
        headers=auth_headers(user),
    )
    assert response.status_code == 422


def test_ratings_for_unknown_product(client):
    assert client.get("/products/missing/ratings").status_code == 404


# ---------- товары ----------

def test_product_filters_and_sorting(client, make_category, make_product):
    books = make_category("Books")
    toys = make_category("Toys")
    make_product(name="Python Cookbook", price=40.0, category=books, description="recipes")
    make_product(name="Dune", price=15.0, category=books)
    make_product(name="Yo-yo", price=5.0, category=toys)

    by_category = client.get("/products", params={"category_id": books.id, "sort_by": "price"}).json()
    assert [p["name"] for p in by_category] == ["Dune", "Python Cookbook"]

    cheap = client.get("/products", params={"max_price": 20, "sort_by": "price", "sort_order": "desc"}).json()
    assert [p["name"] for p in cheap] == ["Dune", "Yo-yo"]

    found = client.get("/products", params={"search": "recipe"}).json()
    assert [p["name"] for p in found] == ["Python Cookbook"]
    assert found[0]["category"]["name"] == "Books"

    paged = client.get("/products", params={"sort_by": "name", "limit": 1, "page": 2}).json()
    assert [p["name"] for p in paged] == ["Python Cookbook"]


def test_unknown_sort_field_is_bad_request(client):
    assert client.get("/products", params={"sort_by": "password"}).status_code == 400


def test_product_mutations_require_admin(client, make_category, make_user):
    category = make_category()
    user = make_user()
    payload = {"name": "Tablet", "price": 199.0, "stock": 3, "category_id": category.id}

    assert client.post("/products", json=payload).status_code == 401
    assert client.post("/products", json=payload, headers=auth_headers(user)).status_code == 403


def test_admin_product_lifecycle(client, make_category, make_user):
    category = make_category()
    admin = make_user(email="admin@example.com", role=RoleEnum.admin)
    headers = auth_headers(admin)

    created = client.post(
        "/products",
        json={"name": "Tablet", "price": 199.0, "stock": 3, "category_id": category.id},
        headers=headers,
    )
    assert created.status_code == 201
    product_id = created.json()["id"]
    assert created.json()["rating"] == 0

    updated = client.put(f"/products/{product_id}", json={"price": 149.0}, headers=headers)
    assert updated.json()["price"] == 149.0
    assert updated.json()["name"] == "Tablet"

    assert client.delete(f"/products/{product_id}", headers=headers).status_code == 200
    assert client.get(f"/products/{product_id}").status_code == 404


def test_create_product_in_unknown_category(client, make_user):
    admin = make_user(email="admin@example.com", role=RoleEnum.admin)
    response = client.post(
        "/products",
        json={"name": "Tablet", "price": 1.0, "stock": 1, "category_id": "nope"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 404


# ---------- категории ----------

def test_categories_endpoints(client, make_category, make_product):
    books = make_category("Books")
    make_product(name="Dune", category=books)

    assert [c["name"] for c in client.get("/categories").json()] == ["Books"]
    assert client.get(f"/categories/{books.id}").json()["name"] == "Books"
    assert [p["name"] for p in client.get(f"/categories/{books.id}/products").json()] == ["Dune"]
    assert client.get("/categories/missing/products").status_code == 404


def test_seed_categories_is_idempotent(db):
    first = catalog.seed_categories(db)
    second = catalog.seed_categories(db)

    assert first == len(catalog.DEFAULT_CATEGORIES)
    assert second == 0
    assert db.query(Category).count() == len(catalog.DEFAULT_CATEGORIES)
