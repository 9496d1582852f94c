import asyncio

import cart
import catalog


def test_add_item_creates_cart_and_increments():
    session = {}
    cart.add_item(session, "p1")
    cart.add_item(session, "p1")
    cart.add_item(session, "p2")

    assert session["cart"] == [
        {"product_id": "p1", "quantity": 2},
        {"product_id": "p2", "quantity": 1},
    ]


def test_remove_item_absent_is_noop():
    session = {"cart": [{"product_id": "p1", "quantity": 1}]}
    cart.remove_item(session, "missing")
    assert session["cart"] == [{"product_id": "p1", "quantity": 1}]

    empty = {}
    cart.remove_item(empty, "missing")
    assert empty == {}


def test_clear():
    session = {"cart": [{"product_id": "p1", "quantity": 3}]}
    cart.clear(session)
    assert cart.get_items(session) == []


def test_add_same_product_twice_yields_quantity_two(client, products):
    product_id = products[0]["id"]

    for _ in range(2):
        response = client.post("/api/cart/add", json={"product_id": product_id})
        assert response.status_code == 200
        assert response.json() == {"success": True}

    lines = client.get("/api/cart").json()
    assert len(lines) == 1
    assert lines[0]["product_id"] == product_id
    assert lines[0]["quantity"] == 2
    assert lines[0]["product"]["name"] == "Llama Birthday Bash"


def test_add_unknown_product_is_404(client, db):
    response = client.post("/api/cart/add", json={"product_id": "64b000000000000000000000"})
    assert response.status_code == 404

    response = client.post("/api/cart/add", json={"product_id": "not-an-id"})
    assert response.status_code == 404


def test_remove_absent_product_succeeds(client, products):
    client.post("/api/cart/add", json={"product_id": products[0]["id"]})

    response = client.post("/api/cart/remove", json={"product_id": products[1]["id"]})
    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert [line["product_id"] for line in client.get("/api/cart").json()] == [products[0]["id"]]


def test_remove_and_clear(client, products):
    for p in products:
        client.post("/api/cart/add", json={"product_id": p["id"]})

    client.post("/api/cart/remove", json={"product_id": products[0]["id"]})
    assert [line["product_id"] for line in client.get("/api/cart").json()] == [products[1]["id"]]

    assert client.post("/api/cart/clear").json() == {"success": True}
    assert client.get("/api/cart").json() == []


def test_cart_skips_deleted_products(client, products):
    for p in products:
        client.post("/api/cart/add", json={"product_id": p["id"]})

    asyncio.run(catalog.delete_product(products[0]["id"]))

    lines = client.get("/api/cart").json()
    assert [line["product_id"] for line in lines] == [products[1]["id"]]


def test_carts_are_per_session(client, products):
    from fastapi.testclient import TestClient
    from main import app

    client.post("/api/cart/add", json={"product_id": products[0]["id"]})
    other = TestClient(app)
    assert other.get("/api/cart").json() == []


def test_products_listing(client, products):
    response = client.get("/api/products")
    assert response.status_code == 200
    names = {p["name"] for p in response.json()}
    assert names == {"Llama Birthday Bash", "Thank Ewe Note"}
    assert all("id" in p for p in response.json())
