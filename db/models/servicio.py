# Nombre de archivo: servicio.py
# Ubicación de archivo: db/models/servicio.py
# Descripción: Modelo SQLAlchemy para los registros de visitas de servicio de campo

from __future__ import annotations

from sqlalchemy import Column, DateTime, JSON, String, Text

from db.base import Base


class ServiceRecord(Base):
    """Visita de un técnico (Ativação, Reparo, Mudança Endereço, Clean Up)."""

    __tablename__ = "service_records"

    id = Column(String(36), primary_key=True)
    operator_name = Column(String(128), nullable=False, index=True)
    technician_name = Column(String(128), nullable=False)
    company_name = Column(String(128), nullable=False)
    contract_number = Column(String(64), nullable=False, index=True)
    service_type = Column(String(32), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    street = Column(String(255), nullable=True)
    neighborhood = Column(String(128), nullable=True, index=True)
    cto_location = Column(String(255), nullable=True)
    area_cx = Column(String(64), nullable=True)
    # Texto libre: se interpreta como entero al calcular eficiencia
    available_slots = Column(String(32), nullable=True)
    unit = Column(String(64), nullable=True)
    visited_cxs = Column(Text, nullable=True)
    general_comments = Column(Text, nullable=True)
    images = Column(JSON, nullable=False, default=list)
    created_by = Column(String(36), nullable=True)

    def __repr__(self) -> str:
        return f"<ServiceRecord id={self.id} contrato='{self.contract_number}' tipo='{self.service_type}'>"
