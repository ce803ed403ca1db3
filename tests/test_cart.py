import pytest

from conftest import auth_headers
from storefront.core.errors import NotFoundError, BadRequestError
from storefront.schemas.cart import CartRecord, CartLine
from storefront.services import cart as cart_service
from storefront.services.cart import cart_key, user_cart_owner


# ---------- сервис ----------

def test_repeated_add_sums_quantity(store, db, make_product):
    product = make_product(price=4.5)

    cart_service.add_item(store, db, "s1", product.id, 2)
    cart_service.add_item(store, db, "s1", product.id, 3)
    view = cart_service.get_cart(store, "s1")

    assert len(view.items) == 1
    assert view.items[0].quantity == 5
    assert view.subtotal == pytest.approx(5 * 4.5)
    assert view.item_count == 5


def test_add_unknown_product_is_not_found(store, db):
    with pytest.raises(NotFoundError):
        cart_service.add_item(store, db, "s1", "missing", 1)
    assert cart_service.get_cart(store, "s1").items == []


def test_add_rejects_non_positive_quantity(store, db, make_product):
    product = make_product()
    with pytest.raises(BadRequestError):
        cart_service.add_item(store, db, "s1", product.id, 0)


def test_cart_keeps_price_snapshot(store, db, make_product):
    product = make_product(price=10.0)
    cart_service.add_item(store, db, "s1", product.id, 1)

    product.price = 99.0
    db.commit()
    cart_service.add_item(store, db, "s1", product.id, 1)

    view = cart_service.get_cart(store, "s1")
    assert view.items[0].price == 10.0
    assert view.subtotal == 20.0


def test_cart_written_with_ttl_and_refreshed_on_read(store, cache, db, make_product):
    product = make_product()
    cart_service.add_item(store, db, "s1", product.id, 1)
    assert 0 < cache.ttl(cart_key("s1")) <= store.ttl

    cache.expire(cart_key("s1"), 10)
    cart_service.get_cart(store, "s1")
    assert cache.ttl(cart_key("s1")) > 10


def test_update_and_remove_items(store, db, make_product):
    first = make_product(name="First", price=1.0)
    second = make_product(name="Second", price=2.0)
    cart_service.add_item(store, db, "s1", first.id, 1)
    cart_service.add_item(store, db, "s1", second.id, 1)

    view = cart_service.update_item(store, "s1", first.id, 4)
    assert view.subtotal == 6.0

    view = cart_service.remove_item(store, "s1", second.id)
    assert [line.product_id for line in view.items] == [first.id]


def test_update_missing_cart_or_line_is_not_found(store, db, make_product):
    product = make_product()
    with pytest.raises(NotFoundError):
        cart_service.update_item(store, "nobody", product.id, 1)

    cart_service.add_item(store, db, "s1", product.id, 1)
    with pytest.raises(NotFoundError):
        cart_service.update_item(store, "s1", "other", 1)
    with pytest.raises(NotFoundError):
        cart_service.remove_item(store, "s1", "other")


def test_clear_deletes_key(store, cache, db, make_product):
    product = make_product()
    cart_service.add_item(store, db, "s1", product.id, 1)

    view = cart_service.clear_cart(store, "s1")

    assert view.items == []
    assert cache.get(cart_key("s1")) is None


def test_malformed_cart_is_dropped(store, cache):
    cache.set(cart_key("s1"), '{"items": [{"product_id": 1}]}')
    assert store.load("s1") is None
    assert cache.get(cart_key("s1")) is None


def test_merge_appends_guest_lines_without_dedup(store):
    line = CartLine(product_id="p1", name="Phone", price=5.0, quantity=1)
    store.save(user_cart_owner("u1"), CartRecord(items=[line]))
    store.save("guest", CartRecord(items=[line.model_copy(update={"quantity": 2})]))

    view = cart_service.merge_carts(store, "guest", "u1")

    assert [(item.product_id, item.quantity) for item in view.items] == [("p1", 1), ("p1", 2)]
    assert store.load("guest") is None


def test_merge_same_session_twice_adds_nothing(store):
    line = CartLine(product_id="p1", name="Phone", price=5.0, quantity=1)
    store.save("guest", CartRecord(items=[line]))
    cart_service.merge_carts(store, "guest", "u1")

    view = cart_service.merge_carts(store, "guest", "u1")

    assert [item.product_id for item in view.items] == ["p1"]


def test_new_guest_cart_under_same_session_is_merged_again(store):
    store.save("guest", CartRecord(items=[CartLine(product_id="p1", name="Phone", price=5.0, quantity=1)]))
    cart_service.merge_carts(store, "guest", "u1")

    # вышел, снова набрал корзину гостем в том же браузере и вошёл
    store.save("guest", CartRecord(items=[CartLine(product_id="p2", name="Case", price=2.0, quantity=1)]))
    view = cart_service.merge_carts(store, "guest", "u1")

    assert [item.product_id for item in view.items] == ["p1", "p2"]
    assert store.load("guest") is None


# ---------- HTTP ----------

def test_guest_cart_flow_uses_session_cookie(client, make_product):
    product = make_product(price=3.0)

    response = client.post("/cart", json={"product_id": product.id, "quantity": 2})
    assert response.status_code == 200
    assert "cart_session_id" in client.cookies
    assert response.json()["subtotal"] == 6.0

    response = client.put(f"/cart/items/{product.id}", json={"quantity": 5})
    assert response.json()["items"][0]["quantity"] == 5

    response = client.get("/cart")
    assert response.json()["item_count"] == 5

    response = client.delete(f"/cart/items/{product.id}")
    assert response.json()["items"] == []


def test_add_unknown_product_returns_404(client):
    response = client.post("/cart", json={"product_id": "nope", "quantity": 1})
    assert response.status_code == 404


def test_add_rejects_zero_quantity_at_boundary(client, make_product):
    product = make_product()
    response = client.post("/cart", json={"product_id": product.id, "quantity": 0})
    assert response.status_code == 422


def test_cart_session_endpoint_issues_cookie(client):
    response = client.post("/cart/session")
    assert response.status_code == 200
    assert response.json()["session_id"] == client.cookies["cart_session_id"]


def test_clear_cart_endpoint(client, make_product):
    product = make_product()
    client.post("/cart", json={"product_id": product.id, "quantity": 1})

    response = client.delete("/cart")

    assert response.status_code == 200
    assert client.get("/cart").json()["items"] == []


def test_authenticated_user_has_own_cart(client, make_product, make_user, cache):
    product = make_product()
    user = make_user()

    client.post("/cart", json={"product_id": product.id, "quantity": 1}, headers=auth_headers(user))

    assert cache.get(cart_key(user_cart_owner(user.id))) is not None


def test_merge_endpoint_moves_guest_cart(client, make_product, make_user):
    product = make_product()
    user = make_user()
    client.post("/cart", json={"product_id": product.id, "quantity": 2})

    response = client.post("/cart/merge", headers=auth_headers(user))

    assert response.status_code == 200
    assert response.json()["items"][0]["quantity"] == 2
    assert client.get("/cart", headers=auth_headers(user)).json()["item_count"] == 2


def test_merge_requires_authentication(client):
    assert client.post("/cart/merge").status_code == 401


def test_guest_session_must_be_server_issued_uuid():
    assert cart_service.is_guest_session("0b7e6f0e-4a53-4a8e-9a55-2f1a8d1f6c3e")
    assert not cart_service.is_guest_session("user:42")
    assert not cart_service.is_guest_session("0B7E6F0E-4A53-4A8E-9A55-2F1A8D1F6C3E")
    assert not cart_service.is_guest_session("")
    assert not cart_service.is_guest_session(None)


def test_forged_session_cookie_cannot_reach_user_cart(client, make_product, make_user, cache):
    product = make_product()
    victim = make_user()
    client.post("/cart", json={"product_id": product.id, "quantity": 3}, headers=auth_headers(victim))
    victim_key = cart_key(user_cart_owner(victim.id))

    client.cookies.clear()
    client.cookies.set("cart_session_id", user_cart_owner(victim.id))
    response = client.get("/cart")

    assert response.json()["items"] == []
    issued = response.cookies["cart_session_id"]
    assert cart_service.is_guest_session(issued)

    client.cookies.clear()
    client.cookies.set("cart_session_id", user_cart_owner(victim.id))
    client.delete("/cart")

    assert cache.get(victim_key) is not None
