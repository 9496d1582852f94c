"""Server-side sessions keyed by a signed cookie.

The cookie only carries a signed session id. Session data lives in a
``SessionStore`` and is exposed to handlers as ``request.session``, the same
way Starlette's cookie ``SessionMiddleware`` does.
"""

from __future__ import annotations

import copy
import secrets
import time
from datetime import timedelta
from typing import Any, Optional

from itsdangerous import BadSignature, TimestampSigner
from starlette.datastructures import MutableHeaders
from starlette.requests import HTTPConnection
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from database import get_db, utcnow

SESSION_COLLECTION = "session"


class SessionStore:
    async def load(self, session_id: str) -> Optional[dict[str, Any]]:
        raise NotImplementedError

    async def save(self, session_id: str, data: dict[str, Any], max_age: int) -> None:
        raise NotImplementedError

    async def delete(self, session_id: str) -> None:
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    """Process-local store for development and tests."""

    def __init__(self) -> None:
        self._sessions: dict[str, tuple[float, dict[str, Any]]] = {}

    async def load(self, session_id: str) -> Optional[dict[str, Any]]:
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        expires_at, data = entry
        if expires_at < time.time():
            del self._sessions[session_id]
            return None
        return copy.deepcopy(data)

    async def save(self, session_id: str, data: dict[str, Any], max_age: int) -> None:
        self._sessions[session_id] = (time.time() + max_age, copy.deepcopy(data))

    async def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)


class MongoSessionStore(SessionStore):
    def __init__(self, collection_name: str = SESSION_COLLECTION) -> None:
        self.collection_name = collection_name

    async def ensure_indexes(self) -> None:
        db = await get_db()
        await db[self.collection_name].create_index("expires_at", expireAfterSeconds=0)

    async def load(self, session_id: str) -> Optional[dict[str, Any]]:
        db = await get_db()
        doc = await db[self.collection_name].find_one(
            {"_id": session_id, "expires_at": {"$gt": utcnow()}}
        )
        return doc["data"] if doc else None

    async def save(self, session_id: str, data: dict[str, Any], max_age: int) -> None:
        db = await get_db()
        await db[self.collection_name].update_one(
            {"_id": session_id},
            {"$set": {"data": data, "expires_at": utcnow() + timedelta(seconds=max_age)}},
            upsert=True,
        )

    async def delete(self, session_id: str) -> None:
        db = await get_db()
        await db[self.collection_name].delete_one({"_id": session_id})


class ServerSessionMiddleware:
    def __init__(
        self,
        app: ASGIApp,
        store: SessionStore,
        secret_key: str,
        session_cookie: str = "session",
        max_age: int = 24 * 60 * 60,
        path: str = "/",
        same_site: str = "lax",
        https_only: bool = False,
    ) -> None:
        self.app = app
        self.store = store
        self.signer = TimestampSigner(str(secret_key))
        self.session_cookie = session_cookie
        self.max_age = max_age
        self.path = path
        self.security_flags = "httponly; samesite=" + same_site
        if https_only:
            self.security_flags += "; secure"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        connection = HTTPConnection(scope)
        session_id = self._unsign(connection.cookies.get(self.session_cookie))
        data: dict[str, Any] = {}
        if session_id is not None:
            stored = await self.store.load(session_id)
            if stored is None:
                session_id = None
            else:
                data = stored

        scope["session"] = data
        initial = copy.deepcopy(data)

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                current = scope["session"]
                headers = MutableHeaders(scope=message)
                if current:
                    if session_id is None or current != initial:
                        sid = session_id or secrets.token_urlsafe(32)
                        await self.store.save(sid, current, self.max_age)
                        # Re-signed on every save so the cookie expiry tracks the store's
                        headers.append("Set-Cookie", self._cookie(self._sign(sid), self.max_age))
                elif session_id is not None:
                    await self.store.delete(session_id)
                    headers.append("Set-Cookie", self._cookie("null", 0, expired=True))
            await send(message)

        await self.app(scope, receive, send_wrapper)

    def _sign(self, session_id: str) -> str:
        return self.signer.sign(session_id.encode("utf-8")).decode("utf-8")

    def _unsign(self, cookie: Optional[str]) -> Optional[str]:
        if not cookie:
            return None
        try:
            return self.signer.unsign(cookie.encode("utf-8"), max_age=self.max_age).decode("utf-8")
        except BadSignature:
            return None

    def _cookie(self, value: str, max_age: int, expired: bool = False) -> str:
        header = "{name}={value}; path={path}; Max-Age={max_age}; {flags}".format(
            name=self.session_cookie,
            value=value,
            path=self.path,
            max_age=max_age,
            flags=self.security_flags,
        )
        if expired:
            header += "; expires=Thu, 01 Jan 1970 00:00:00 GMT"
        return header
