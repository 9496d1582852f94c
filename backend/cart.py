"""Session cart.

The cart lives under ``session["cart"]`` as a list of
``{"product_id": str, "quantity": int}`` entries. Functions reassign the list
so session stores that track top-level keys see the change.
"""

from __future__ import annotations
from typing import Any, MutableMapping

from catalog import get_product

CART_KEY = "cart"


def get_items(session: MutableMapping[str, Any]) -> list[dict[str, Any]]:
    return [dict(item) for item in session.get(CART_KEY) or []]


def add_item(session: MutableMapping[str, Any], product_id: str) -> list[dict[str, Any]]:
    items = get_items(session)
    for item in items:
        if item["product_id"] == product_id:
            item["quantity"] += 1
            break
    else:
        items.append({"product_id": product_id, "quantity": 1})
    session[CART_KEY] = items
    return items


def remove_item(session: MutableMapping[str, Any], product_id: str) -> list[dict[str, Any]]:
    items = [item for item in get_items(session) if item["product_id"] != product_id]
    if CART_KEY in session:
        session[CART_KEY] = items
    return items


def clear(session: MutableMapping[str, Any]) -> None:
    session[CART_KEY] = []


async def populate(session: MutableMapping[str, Any]) -> list[dict[str, Any]]:
    """Cart lines joined with current product data, skipping deleted products."""
    lines = []
    for item in get_items(session):
        product = await get_product(item["product_id"])
        if product is not None:
            lines.append({**item, "product": product})
    return lines
