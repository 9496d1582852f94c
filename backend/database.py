from __future__ import annotations
from typing import Any, Optional
from datetime import datetime, timezone
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from logging_config import get_logger
from settings import settings

logger = get_logger("database")

_client: Optional[AsyncIOMotorClient] = None
_db: Optional[AsyncIOMotorDatabase] = None


async def get_db() -> AsyncIOMotorDatabase:
    global _client, _db
    if _db is None:
        _client = AsyncIOMotorClient(settings.DATABASE_URL)
        _db = _client[settings.DATABASE_NAME]
        logger.info("mongodb_client_created", database=settings.DATABASE_NAME)
    return _db


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse a client supplied id; ``None`` when it is not a valid ObjectId."""
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def serialize(doc: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    if doc is None:
        return None
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    return doc


async def create_document(collection_name: str, data: dict[str, Any]) -> dict[str, Any]:
    db = await get_db()
    now = utcnow()
    data_with_meta = {**data, "created_at": now, "updated_at": now}
    result = await db[collection_name].insert_one(data_with_meta)
    inserted = await db[collection_name].find_one({"_id": result.inserted_id})
    return serialize(inserted) or {}


async def get_documents(
    collection_name: str,
    filter_dict: dict[str, Any] | None = None,
    limit: int = 0,
    sort: list[tuple[str, int]] | None = None,
) -> list[dict[str, Any]]:
    db = await get_db()
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    docs = []
    async for d in cursor:
        docs.append(serialize(d))
    return docs


async def get_document(collection_name: str, document_id: Any) -> Optional[dict[str, Any]]:
    oid = to_object_id(document_id)
    if oid is None:
        return None
    db = await get_db()
    return serialize(await db[collection_name].find_one({"_id": oid}))


async def update_document(collection_name: str, document_id: Any, changes: dict[str, Any]) -> bool:
    oid = to_object_id(document_id)
    if oid is None:
        return False
    db = await get_db()
    result = await db[collection_name].update_one(
        {"_id": oid}, {"$set": {**changes, "updated_at": utcnow()}}
    )
    return result.matched_count > 0


async def delete_document(collection_name: str, document_id: Any) -> bool:
    oid = to_object_id(document_id)
    if oid is None:
        return False
    db = await get_db()
    result = await db[collection_name].delete_one({"_id": oid})
    return result.deleted_count > 0
