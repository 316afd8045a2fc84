"""Cliente MongoDB asíncrono (Motor).

Un único cliente/bd por proceso, inicializado de forma lazy. Los repositorios
reciben la base (`AsyncIOMotorDatabase`) ya resuelta vía dependencias.
"""
from __future__ import annotations

import certifi
import logging
from typing import Optional

from app.core.config import settings
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

_log = logging.getLogger("vidtube.mongo")

_aclient: Optional[AsyncIOMotorClient] = None
_adb: Optional[AsyncIOMotorDatabase] = None
_ready: bool = False


def _build_async_client() -> AsyncIOMotorClient:
    uri = settings.mongo_uri
    kwargs = dict(serverSelectionTimeoutMS=15000, tz_aware=True)
    if uri.startswith("mongodb+srv://"):
        # SRV ya implica TLS; proveemos CA bundle para robustez
        kwargs["tlsCAFile"] = certifi.where()
    elif settings.mongo_tls:
        kwargs["tls"] = True
        kwargs["tlsCAFile"] = certifi.where()
        if settings.mongo_tls_insecure:
            kwargs["tlsAllowInvalidCertificates"] = True
        if settings.mongo_tls_allow_invalid_hostnames:
            kwargs["tlsAllowInvalidHostnames"] = True
    return AsyncIOMotorClient(uri, **kwargs)


def get_async_db() -> AsyncIOMotorDatabase:
    """Devuelve la DB asíncrona; inicializa lazy un único cliente/bd."""
    global _aclient, _adb
    if _adb is None:
        _aclient = _aclient or _build_async_client()
        _adb = _aclient[settings.mongo_db]
        _log.info("Motor listo (db=%s)", settings.mongo_db)
    return _adb


async def init_mongo() -> bool:
    """Valida la conexión (ping). Llamar una sola vez en el startup.

    No tumba la app si Mongo no responde: deja `db_ready()` en False y loggea.
    """
    global _ready
    try:
        await get_async_db().client.admin.command("ping")
        _ready = True
        _log.info("Mongo conectado correctamente")
    except PyMongoError as e:
        _ready = False
        _log.warning("Mongo no accesible: %s", e)
    return _ready


def db_ready() -> bool:
    return _ready


def close_mongo() -> None:
    global _aclient, _adb, _ready
    if _aclient is not None:
        _aclient.close()
    _aclient = None
    _adb = None
    _ready = False
