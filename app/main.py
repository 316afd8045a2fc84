"""Entrada principal de la app FastAPI (configura middlewares, excepciones y routers)."""
from fastapi import FastAPI
from app.core.config import settings
from app.infrastructure.db.mongo_async import init_mongo, db_ready, close_mongo
from app.infrastructure.db.bootstrap import ensure_collections
from app.api.router import api_router
from app.core.logging import setup_logging
from app.core.middleware import add_middlewares
from app.core.exceptions import register_exception_handlers
import logging

_log = logging.getLogger("vidtube.startup")

setup_logging(settings.log_level)
app = FastAPI(title=settings.app_name)

add_middlewares(app)
register_exception_handlers(app)


@app.on_event("startup")
async def on_startup():
    await init_mongo()
    # Garantiza colecciones/índices/validadores mínimos si hay conexión
    if db_ready():
        await ensure_collections()
    else:
        _log.warning("Mongo no listo; omitiendo ensure_collections()")
    if not settings.access_token_secret or not settings.refresh_token_secret:
        _log.warning("ACCESS_TOKEN_SECRET/REFRESH_TOKEN_SECRET sin configurar: login y refresh fallarán")


@app.on_event("shutdown")
async def on_shutdown():
    close_mongo()


# Monta routers bajo el prefijo configurado
app.include_router(api_router, prefix=settings.api_prefix_normalized)
