from __future__ import annotations
from typing import Any, Optional
from fastapi import Request

from database import get_db, utcnow
from logging_config import get_logger
from schemas import StoreConfig
from settings import Settings, settings as default_settings

logger = get_logger("config")

CONFIG_COLLECTION = "config"
CONFIG_ID = "store"

# Stored config field => environment default
ENV_DEFAULTS = {
    "stripe_secret_key": "STRIPE_SECRET_KEY",
    "stripe_publishable_key": "STRIPE_PUBLISHABLE_KEY",
    "paypal_client_id": "PAYPAL_CLIENT_ID",
    "paypal_client_secret": "PAYPAL_CLIENT_SECRET",
    "gmail_user": "GMAIL_USER",
    "gmail_pass": "GMAIL_PASS",
}


class ConfigProvider:
    """Cached view of the stored config singleton merged over the environment.

    The cache is dropped by ``invalidate()``; ``update()`` and
    ``set_password_hash()`` do it themselves.
    """

    def __init__(self, env: Settings = default_settings) -> None:
        self.env = env
        self._cached: Optional[StoreConfig] = None

    async def _load_document(self) -> dict[str, Any]:
        db = await get_db()
        return await db[CONFIG_COLLECTION].find_one({"_id": CONFIG_ID}) or {}

    async def get(self) -> StoreConfig:
        if self._cached is None:
            doc = await self._load_document()
            merged = {}
            for field, env_name in ENV_DEFAULTS.items():
                merged[field] = doc.get(field) or getattr(self.env, env_name)
            self._cached = StoreConfig(**merged)
        return self._cached

    def invalidate(self) -> None:
        self._cached = None

    async def update(self, changes: dict[str, Any]) -> StoreConfig:
        changes = {k: v for k, v in changes.items() if k in ENV_DEFAULTS}
        db = await get_db()
        await db[CONFIG_COLLECTION].update_one(
            {"_id": CONFIG_ID},
            {"$set": {**changes, "updated_at": utcnow()}},
            upsert=True,
        )
        self.invalidate()
        logger.info("config_updated", fields=sorted(changes))
        return await self.get()

    async def get_password_hash(self) -> Optional[str]:
        doc = await self._load_document()
        return doc.get("admin_password_hash")

    async def set_password_hash(self, password_hash: str) -> None:
        db = await get_db()
        await db[CONFIG_COLLECTION].update_one(
            {"_id": CONFIG_ID},
            {"$set": {"admin_password_hash": password_hash, "updated_at": utcnow()}},
            upsert=True,
        )
        self.invalidate()


def get_config_provider(request: Request) -> ConfigProvider:
    return request.app.state.config_provider


async def get_store_config(request: Request) -> StoreConfig:
    return await get_config_provider(request).get()
