from asyncio import run
from unittest.mock import AsyncMock, patch

import aiosmtplib
import pytest

from notifications import Mailer

CUSTOMER = {"name": "Dolly", "email": "dolly@example.com", "payment_method": "stripe", "payment_intent_id": "pi_123"}


def count_orders(db):
    return run(db["order"].count_documents({}))


def test_finalize_empty_cart_is_rejected(client, db):
    response = client.post("/api/finalize-order", json=CUSTOMER)

    assert response.status_code == 400
    assert response.json()["detail"] == "Cart empty"
    assert count_orders(db) == 0


def test_finalize_creates_single_order_and_clears_cart(client, db, products):
    llama, note = products
    client.post("/api/cart/add", json={"product_id": llama["id"]})
    client.post("/api/cart/add", json={"product_id": llama["id"]})
    client.post("/api/cart/add", json={"product_id": note["id"]})

    response = client.post("/api/finalize-order", json=CUSTOMER)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert count_orders(db) == 1

    order = run(db["order"].find_one({}))
    assert str(order["_id"]) == body["order_id"]
    assert order["total"] == pytest.approx(2 * 4.99 + 3.49)
    assert order["status"] == "pending"
    assert order["customer"] == {"name": "Dolly", "email": "dolly@example.com"}
    assert order["payment_method"] == "stripe"
    assert order["payment_intent_id"] == "pi_123"
    assert {(i["name"], i["price"], i["quantity"]) for i in order["items"]} == {
        ("Llama Birthday Bash", 4.99, 2),
        ("Thank Ewe Note", 3.49, 1),
    }

    assert client.get("/api/cart").json() == []
    assert client.post("/api/finalize-order", json=CUSTOMER).status_code == 400


def test_order_keeps_price_snapshot(client, db, products):
    client.post("/api/cart/add", json={"product_id": products[0]["id"]})
    client.post("/api/finalize-order", json=CUSTOMER)

    from bson import ObjectId
    run(db["product"].update_one({"_id": ObjectId(products[0]["id"])}, {"$set": {"price": 99.0}}))

    order = run(db["order"].find_one({}))
    assert order["items"][0]["price"] == 4.99
    assert order["total"] == 4.99


def test_emails_sent_when_mail_configured(client, db, products):
    client.post("/api/cart/add", json={"product_id": products[0]["id"]})
    run(db["config"].insert_one({"_id": "store", "gmail_user": "shop@example.com", "gmail_pass": "app-pass"}))

    with patch.object(Mailer, "send", new_callable=AsyncMock) as send:
        response = client.post("/api/finalize-order", json=CUSTOMER)

    assert response.status_code == 200
    recipients = [call.kwargs["to"] for call in send.await_args_list]
    assert recipients == ["dolly@example.com", "shop@example.com"]


def test_email_failure_does_not_fail_checkout(client, db, products):
    client.post("/api/cart/add", json={"product_id": products[0]["id"]})
    run(db["config"].insert_one({"_id": "store", "gmail_user": "shop@example.com", "gmail_pass": "app-pass"}))

    with patch.object(Mailer, "send", new_callable=AsyncMock, side_effect=aiosmtplib.SMTPAuthenticationError(535, "bad credentials")):
        response = client.post("/api/finalize-order", json=CUSTOMER)

    assert response.status_code == 200
    assert count_orders(db) == 1
    assert client.get("/api/cart").json() == []


def test_emails_skipped_without_mail_config(client, db, products):
    client.post("/api/cart/add", json={"product_id": products[0]["id"]})

    with patch.object(Mailer, "send", new_callable=AsyncMock) as send:
        response = client.post("/api/finalize-order", json=CUSTOMER)

    assert response.status_code == 200
    send.assert_not_awaited()


def test_line_break_in_email_rejected_before_order(client, db, products):
    client.post("/api/cart/add", json={"product_id": products[0]["id"]})
    run(db["config"].insert_one({"_id": "store", "gmail_user": "shop@example.com", "gmail_pass": "app-pass"}))

    with patch("notifications.aiosmtplib.send", new_callable=AsyncMock) as send:
        response = client.post(
            "/api/finalize-order",
            json={**CUSTOMER, "email": "dolly@example.com\r\nBcc: everyone@example.com"},
        )

    assert response.status_code == 422
    assert count_orders(db) == 0
    assert len(client.get("/api/cart").json()) == 1
    send.assert_not_awaited()


def test_smtp_failure_keeps_order_and_clears_cart(client, db, products):
    client.post("/api/cart/add", json={"product_id": products[0]["id"]})
    run(db["config"].insert_one({"_id": "store", "gmail_user": "shop@example.com", "gmail_pass": "app-pass"}))

    with patch("notifications.aiosmtplib.send", new_callable=AsyncMock, side_effect=RuntimeError("TLS handshake failed")):
        response = client.post("/api/finalize-order", json=CUSTOMER)

    assert response.status_code == 200
    assert count_orders(db) == 1
    assert client.get("/api/cart").json() == []


def test_mailer_sends_over_implicit_tls(client, db, products):
    client.post("/api/cart/add", json={"product_id": products[0]["id"]})
    run(db["config"].insert_one({"_id": "store", "gmail_user": "shop@example.com", "gmail_pass": "app-pass"}))

    with patch("notifications.aiosmtplib.send", new_callable=AsyncMock) as send:
        response = client.post("/api/finalize-order", json={**CUSTOMER, "email": "  dolly@example.com "})

    assert response.status_code == 200
    messages = [call.args[0] for call in send.await_args_list]
    assert [m["To"] for m in messages] == ["dolly@example.com", "shop@example.com"]
    assert messages[0]["Subject"] == "Order Confirmed!"
    assert "shop@example.com" in messages[0]["From"]
    kwargs = send.await_args_list[0].kwargs
    assert kwargs["hostname"] == "smtp.gmail.com"
    assert kwargs["port"] == 465
    assert kwargs["use_tls"] is True
    assert kwargs["username"] == "shop@example.com"
    assert kwargs["password"] == "app-pass"
