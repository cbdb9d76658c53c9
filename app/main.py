"""Application factory."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.adapters.base import BaseDocumentStore, BaseObjectStorage
from app.adapters.local_storage import LocalObjectStorage
from app.adapters.sql_document_store import SqlDocumentStore
from app.config import get_settings
from app.db import db_manager
from app.infra.logging_config import configure_logging, get_logger
from app.routers import system
from app.routers.chats_router import chats_router

logger = get_logger()


def create_app(
    testing: bool = False,
    document_store: Optional[BaseDocumentStore] = None,
    object_storage: Optional[BaseObjectStorage] = None,
) -> FastAPI:
    settings = get_settings()
    configure_logging("DEBUG" if testing else settings.log_level)

    app = FastAPI(
        title="Blinkchat",
        version="1.0.0",
        description="Two-party chat with disappearing messages",
    )

    if document_store is None:
        db_manager.init_db()
        document_store = SqlDocumentStore(db_manager.db_session)

    media_root = Path(settings.media_root)
    media_root.mkdir(parents=True, exist_ok=True)
    if object_storage is None:
        object_storage = LocalObjectStorage(media_root, settings.media_base_url)

    app.state.document_store = document_store
    app.state.object_storage = object_storage

    app.include_router(system.router)
    app.include_router(chats_router)
    app.mount(
        settings.media_url_path,
        StaticFiles(directory=str(media_root)),
        name="media",
    )

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    logger.info("Application %s created (env=%s)", settings.app_name, settings.environment)
    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
