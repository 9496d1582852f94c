import asyncio
import os

os.environ["SESSION_BACKEND"] = "memory"
os.environ["SESSION_SECRET"] = "test-session-secret"
for name in (
    "ADMIN_PASSWORD",
    "STRIPE_SECRET_KEY",
    "STRIPE_PUBLISHABLE_KEY",
    "PAYPAL_CLIENT_ID",
    "PAYPAL_CLIENT_SECRET",
    "GMAIL_USER",
    "GMAIL_PASS",
):
    os.environ[name] = ""

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

import catalog
import database
from main import app
from schemas import Product


@pytest.fixture
def db(monkeypatch):
    mock_db = AsyncMongoMockClient()["thank_ewe_test"]
    monkeypatch.setattr(database, "_db", mock_db)
    app.state.config_provider.invalidate()
    yield mock_db
    app.state.config_provider.invalidate()


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def products(db):
    def create(name, price):
        return asyncio.run(catalog.create_product(Product(name=name, price=price, category="Birthday", icon="Llama")))

    return [
        create("Llama Birthday Bash", 4.99),
        create("Thank Ewe Note", 3.49),
    ]


@pytest.fixture
def admin_client(client):
    response = client.post("/admin/login", json={"password": "woolly-secret"})
    assert response.status_code == 200
    return client
