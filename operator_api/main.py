from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from operator_api.db_init import init_db
from operator_api.logging_config import configure_logging
from operator_api.routes import activity, blocks, bootstrap, changes, habits, notes, stats, storage, todos
from operator_api.settings import get_settings
from operator_api.store.base import SyncError


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Operator Dashboard API", version="0.1.0")

    app.include_router(bootstrap.router)
    app.include_router(todos.router)
    app.include_router(habits.router)
    app.include_router(activity.router)
    app.include_router(notes.router)
    app.include_router(blocks.router)
    app.include_router(stats.router)
    app.include_router(storage.router)
    app.include_router(changes.router)

    @app.on_event("startup")
    async def _startup():
        if get_settings().guest_mode:
            logging.getLogger("operator_api").info("Guest mode: skipping database init")
            return
        await init_db()

    @app.exception_handler(SyncError)
    async def _sync_error_handler(request: Request, exc: SyncError):
        logging.getLogger("operator_api").warning("Sync error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": "Sync error"})

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logging.getLogger("operator_api").exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal error"})

    @app.get("/health")
    async def health():
        return {"ok": True}

    return app


app = create_app()
