# Nombre de archivo: main.py
# Ubicación de archivo: api/app/main.py
# Descripción: Aplicación FastAPI principal de SISTEMA SIC (rutas, sesión, errores y archivos públicos)

import logging
import os
from typing import Optional

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from api.app.errors import register_exception_handlers
from api.app.routes.admin import router as admin_router
from api.app.routes.auth import router as auth_router
from api.app.routes.estadisticas import router as stats_router
from api.app.routes.health import router as health_router
from api.app.routes.realtime import router as realtime_router
from api.app.routes.servicios import router as services_router
from core.config import Settings, get_settings
from core.logging import setup_logging
from core.middlewares import RequestIDMiddleware
from core.storage import LocalBlobStorage
from core.store import RecordStore
from modules.informes_servicios import ReportConfig

logger = logging.getLogger(__name__)


def _default_store() -> RecordStore:
    from core.repositories.sql_store import SqlRecordStore
    from db.session import get_engine

    return SqlRecordStore(get_engine())


def create_app(
    store: Optional[RecordStore] = None,
    storage: Optional[LocalBlobStorage] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging("api", os.getenv("LOG_LEVEL", "INFO"), enable_file=False if settings.testing else None)

    storage = storage or LocalBlobStorage(
        base_dir=settings.storage.base_dir,
        public_url=settings.storage.public_url,
        bucket=settings.storage.bucket,
    )

    app = FastAPI(title="SISTEMA SIC API", version="0.1.0")
    app.state.settings = settings
    app.state.store = store or _default_store()
    app.state.storage = storage
    app.state.report_config = ReportConfig(reports_dir=settings.reports_dir, timezone=settings.timezone)

    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(SessionMiddleware, secret_key=settings.auth.secret_key, same_site="lax")
    register_exception_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(services_router)
    app.include_router(stats_router)
    app.include_router(admin_router)
    app.include_router(realtime_router)

    if storage.public_url.startswith("/"):
        storage.bucket_dir.mkdir(parents=True, exist_ok=True)
        app.mount(storage.public_url, StaticFiles(directory=storage.base_dir), name="storage")

    logger.info(
        "action=create_app stage=ok storage=%s timezone=%s",
        storage.base_dir,
        settings.timezone,
    )
    return app
