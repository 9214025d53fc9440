import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docspace import __version__
from docspace.api.http.health import router as health_router
from docspace.api.router import api_router
from docspace.core.config import Settings, get_settings
from docspace.core.db import Database
from docspace.core.email import EmailSender
from docspace.core.errors import register_exception_handlers
from docspace.core.locks import KeyedLock
from docspace.core.logging_config import configure_logging
from docspace.db.base import CredentialBase, DocumentStoreBase
from docspace.storage import build_storage

logger = logging.getLogger(__name__)


def build_databases(settings: Settings):
    credential_db = Database(settings.database_url, echo=settings.sql_echo)
    document_db = Database(settings.document_database_url, echo=settings.sql_echo)
    return credential_db, document_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    credential_db, document_db = build_databases(settings)
    if settings.create_tables:
        await credential_db.create_all(CredentialBase.metadata)
        await document_db.create_all(DocumentStoreBase.metadata)

    app.state.credential_db = credential_db
    app.state.document_db = document_db
    app.state.storage = build_storage(settings)
    app.state.email_sender = EmailSender(settings)
    app.state.locks = KeyedLock()
    logger.info("docspace started (%s, storage=%s)", settings.environment, settings.storage_backend)
    try:
        yield
    finally:
        await credential_db.dispose()
        await document_db.dispose()
        logger.info("docspace stopped")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="docspace",
        description="Workspaces, documents and sharing",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(api_router)
    return app


def run() -> None:
    import uvicorn

    uvicorn.run("docspace.main:create_app", factory=True, host="0.0.0.0", port=8000)
