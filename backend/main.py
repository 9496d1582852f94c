from __future__ import annotations
import os
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

import admin_api
import images
import store_api
from catalog import seed_products
from config_store import ConfigProvider
from database import get_db
from logging_config import configure_logging, get_logger
from notifications import Mailer
from sessions import MemorySessionStore, MongoSessionStore, ServerSessionMiddleware
from settings import Settings, settings

logger = get_logger("main")

HTML_PAGES = ("index.html", "cart.html", "admin.html")


def build_session_store(env: Settings):
    if env.SESSION_BACKEND == "memory":
        return MemorySessionStore()
    return MongoSessionStore()


@asynccontextmanager
async def lifespan(app: FastAPI):
    env: Settings = app.state.settings
    images.configure(env)
    inserted = await seed_products()
    if inserted:
        logger.info("catalog_ready", seeded=inserted)
    store = app.state.session_store
    if isinstance(store, MongoSessionStore):
        await store.ensure_indexes()
    logger.info("server_started", url=f"http://localhost:{env.PORT}", admin_panel=f"http://localhost:{env.PORT}/admin.html")
    yield


def create_app(env: Settings = settings) -> FastAPI:
    configure_logging(env.APP_ENV, env.LOG_FORMAT)

    app = FastAPI(title="Thank Ewe API", lifespan=lifespan)
    app.state.settings = env
    app.state.config_provider = ConfigProvider(env)
    app.state.mailer = Mailer.from_settings(env)
    app.state.session_store = build_session_store(env)

    app.add_middleware(
        ServerSessionMiddleware,
        store=app.state.session_store,
        secret_key=env.SESSION_SECRET,
        session_cookie=env.SESSION_COOKIE,
        max_age=env.SESSION_MAX_AGE,
        https_only=env.is_production,
    )
    # Allow all origins, as the storefront pages may be hosted separately
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(store_api.router)
    app.include_router(admin_api.session_router)
    app.include_router(admin_api.router)

    @app.get("/test")
    async def test():
        try:
            db = await get_db()
            colls = await db.list_collection_names()
            return {
                "backend": "Running",
                "database": "Available",
                "database_url": "Set" if os.getenv("DATABASE_URL") else "Not Set",
                "database_name": db.name,
                "collections": colls,
            }
        except Exception as e:
            logger.warning("diagnostics_database_unavailable", error=str(e))
            return {"backend": "Running", "database": "Not Available", "error": str(e)}

    public_dir = Path(env.PUBLIC_DIR)

    def serve_page(page_name: str) -> FileResponse:
        if page_name not in HTML_PAGES or not (public_dir / page_name).is_file():
            raise HTTPException(status_code=404, detail="Not found")
        return FileResponse(public_dir / page_name)

    @app.get("/", include_in_schema=False)
    async def index():
        return serve_page("index.html")

    # Registered last so /{page_name} never shadows the API routes
    @app.get("/{page_name}", include_in_schema=False)
    async def page(page_name: str):
        return serve_page(page_name)

    if public_dir.is_dir():
        app.mount("/static", StaticFiles(directory=public_dir), name="static")

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
