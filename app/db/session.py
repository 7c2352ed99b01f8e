# app/db/session.py
from functools import lru_cache

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from app.core.settings import Settings, settings


def build_engine(cfg: Settings = settings) -> Engine:
    """
    Pool de conexiones hacia la BD configurada. El engine no abre conexiones
    hasta el primer checkout, así que crearlo no valida credenciales.
    """
    return create_engine(
        cfg.SQLALCHEMY_DATABASE_URL,
        pool_pre_ping=cfg.DB_POOL_PRE_PING,
        pool_recycle=cfg.DB_POOL_RECYCLE,
    )


@lru_cache(maxsize=1)
def _default_engine() -> Engine:
    # Lazy: importar la app no exige tener el driver ODBC instalado
    return build_engine(settings)


def get_engine() -> Engine:
    return _default_engine()


def get_plan(request: Request):
    return request.app.state.maintenance_plan
