from __future__ import annotations
from typing import Any, MutableMapping

import cart
from catalog import get_product
from database import create_document
from logging_config import get_logger
from notifications import Mailer, send_order_emails
from schemas import Customer, FinalizeOrderIn, Order, OrderItem, StoreConfig

logger = get_logger("checkout")

ORDER_COLLECTION = "order"


class EmptyCartError(Exception):
    pass


async def snapshot_items(session: MutableMapping[str, Any]) -> list[OrderItem]:
    """Freeze name and unit price of every cart line that still has a product."""
    items = []
    for line in cart.get_items(session):
        product = await get_product(line["product_id"])
        if product is None:
            logger.warning("cart_product_missing", product_id=line["product_id"])
            continue
        items.append(
            OrderItem(
                product_id=product["id"],
                name=product["name"],
                price=float(product["price"]),
                quantity=line["quantity"],
            )
        )
    return items


def order_total(items: list[OrderItem]) -> float:
    return round(sum(item.quantity * item.price for item in items), 2)


async def finalize_order(
    session: MutableMapping[str, Any],
    payload: FinalizeOrderIn,
    config: StoreConfig,
    mailer: Mailer,
) -> dict[str, Any]:
    items = await snapshot_items(session)
    if not items:
        raise EmptyCartError("Cart empty")

    order = Order(
        items=items,
        total=order_total(items),
        customer=Customer(name=payload.name, email=payload.email),
        payment_method=payload.payment_method,
        payment_intent_id=payload.payment_intent_id,
        paypal_order_id=payload.paypal_order_id,
    )
    saved = await create_document(ORDER_COLLECTION, order.model_dump())
    logger.info("order_created", order_id=saved["id"], total=order.total, payment_method=order.payment_method)

    await send_order_emails(mailer, config, saved)

    cart.clear(session)
    return saved
