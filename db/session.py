# Nombre de archivo: session.py
# Ubicación de archivo: db/session.py
# Descripción: Engine SQLAlchemy compartido para el store de SISTEMA SIC

from __future__ import annotations

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from core.config import get_settings


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_engine(get_settings().database.url, pool_pre_ping=True, pool_recycle=1800)
