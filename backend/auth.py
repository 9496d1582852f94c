from __future__ import annotations
import bcrypt
from fastapi import HTTPException, Request
from starlette.concurrency import run_in_threadpool

from config_store import ConfigProvider
from logging_config import get_logger

logger = get_logger("auth")

MIN_PASSWORD_LENGTH = 6
ADMIN_SESSION_KEY = "admin"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


async def login(provider: ConfigProvider, password: str) -> bool:
    """Verify the admin password, bootstrapping it on first run.

    Returns ``True`` when this login set the password. Raises
    ``HTTPException`` (400 short bootstrap password, 401 wrong password).
    """
    stored_hash = await provider.get_password_hash()
    if stored_hash is None:
        env_password = provider.env.ADMIN_PASSWORD
        if env_password:
            stored_hash = await run_in_threadpool(hash_password, env_password)
            await provider.set_password_hash(stored_hash)
            logger.info("admin_password_seeded_from_env")
        elif len(password) >= MIN_PASSWORD_LENGTH:
            await provider.set_password_hash(await run_in_threadpool(hash_password, password))
            logger.info("admin_password_bootstrapped")
            return True
        else:
            raise HTTPException(status_code=400, detail=f"Set a password ({MIN_PASSWORD_LENGTH}+ chars)")

    if not await run_in_threadpool(check_password, password, stored_hash):
        logger.warning("admin_login_failed")
        raise HTTPException(status_code=401, detail="Wrong password")
    return False


async def change_password(provider: ConfigProvider, current: str, new_password: str) -> None:
    stored_hash = await provider.get_password_hash()
    if stored_hash is None or not await run_in_threadpool(check_password, current, stored_hash):
        raise HTTPException(status_code=400, detail="Current password wrong")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail=f"New password must be {MIN_PASSWORD_LENGTH}+ chars")
    await provider.set_password_hash(await run_in_threadpool(hash_password, new_password))
    logger.info("admin_password_changed")


def require_admin(request: Request) -> None:
    if not request.session.get(ADMIN_SESSION_KEY):
        raise HTTPException(status_code=401, detail="Unauthorized")
