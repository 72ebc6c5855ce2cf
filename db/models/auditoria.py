# Nombre de archivo: auditoria.py
# Ubicación de archivo: db/models/auditoria.py
# Descripción: Modelo SQLAlchemy para el registro de auditoría de mutaciones

from __future__ import annotations

from sqlalchemy import Column, DateTime, JSON, String

from db.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), nullable=True, index=True)
    action = Column(String(16), nullable=False)
    table_name = Column(String(64), nullable=False)
    record_id = Column(String(64), nullable=True)
    # {"new_data": {...}} para INSERT/UPDATE, {"deleted_record": {...}} para DELETE
    changes = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
