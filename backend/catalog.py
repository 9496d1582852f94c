from __future__ import annotations
import math
from typing import Any, Optional

from database import create_document, delete_document, get_db, get_document, get_documents
from logging_config import get_logger
from schemas import Product

logger = get_logger("catalog")

PRODUCT_COLLECTION = "product"

# Seed data: the default greeting card range
SEED_PRODUCTS: list[dict] = [
    {"name": "Llama Birthday Bash", "description": "Colorful llama birthday card.", "category": "Birthday", "icon": "Llama", "price": 4.99, "image": "https://via.placeholder.com/400x300?text=Llama+Birthday+Bash", "message": "Happy Baaa-thday!"},
    {"name": "Thank Ewe Note", "description": "Woolly gratitude card.", "category": "Thank You", "icon": "Sheep", "price": 3.49, "image": "https://via.placeholder.com/400x300?text=Thank+Ewe+Note", "message": "Thank ewe!"},
    {"name": "Alpaca My Bags", "description": "Bon voyage card for travellers.", "category": "Farewell", "icon": "Alpaca", "price": 4.49, "image": "https://via.placeholder.com/400x300?text=Alpaca+My+Bags", "message": "Alpaca-ing my heart to go with you."},
    {"name": "No Prob-llama", "description": "Cheerful card for a helping hand.", "category": "Thank You", "icon": "Llama", "price": 3.99, "image": "https://via.placeholder.com/400x300?text=No+Prob-llama", "message": "You made it no prob-llama!"},
    {"name": "Shear Joy", "description": "Congratulations on a big milestone.", "category": "Congratulations", "icon": "Sheep", "price": 4.99, "image": "https://via.placeholder.com/400x300?text=Shear+Joy", "message": "Shear joy for your big day!"},
    {"name": "Get Wool Soon", "description": "Cosy get well card.", "category": "Get Well", "icon": "Sheep", "price": 3.99, "image": "https://via.placeholder.com/400x300?text=Get+Wool+Soon", "message": "Get wool soon!"},
    {"name": "Ewe Are Loved", "description": "Soft pastel love note.", "category": "Love", "icon": "Sheep", "price": 4.49, "image": "https://via.placeholder.com/400x300?text=Ewe+Are+Loved", "message": "Ewe are so loved."},
    {"name": "Llama Thank You Party", "description": "Festive thank you.", "category": "Thank You", "icon": "Llama", "price": 3.99, "image": "https://via.placeholder.com/400x300?text=Llama+Thank+You+Party", "message": "Un-baaa-lievable party!"},
]


def coerce_price(value: Any) -> float:
    """Numeric coercion for admin-entered prices; ``ValueError`` when not a number."""
    price = float(value)
    if not math.isfinite(price) or price < 0:
        raise ValueError(f"Invalid price: {value!r}")
    return round(price, 2)


async def list_products() -> list[dict[str, Any]]:
    return await get_documents(PRODUCT_COLLECTION)


async def get_product(product_id: str) -> Optional[dict[str, Any]]:
    return await get_document(PRODUCT_COLLECTION, product_id)


async def create_product(product: Product) -> dict[str, Any]:
    saved = await create_document(PRODUCT_COLLECTION, product.model_dump())
    logger.info("product_created", product_id=saved.get("id"), name=product.name)
    return saved


async def delete_product(product_id: str) -> bool:
    deleted = await delete_document(PRODUCT_COLLECTION, product_id)
    if deleted:
        logger.info("product_deleted", product_id=product_id)
    return deleted


async def seed_products() -> int:
    # Insert only if products collection is empty
    db = await get_db()
    count = await db[PRODUCT_COLLECTION].count_documents({})
    if count > 0:
        return 0
    for p in SEED_PRODUCTS:
        await create_document(PRODUCT_COLLECTION, Product(**p).model_dump())
    logger.info("products_seeded", count=len(SEED_PRODUCTS))
    return len(SEED_PRODUCTS)
