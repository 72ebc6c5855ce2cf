# Nombre de archivo: base.py
# Ubicación de archivo: db/base.py
# Descripción: Declaración de la base SQLAlchemy compartida por los modelos de SISTEMA SIC

from __future__ import annotations

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def load_models() -> None:
    """Importa los modelos para que queden registrados en `Base.metadata`."""

    from db.models import auditoria, servicio, usuario  # noqa: F401
