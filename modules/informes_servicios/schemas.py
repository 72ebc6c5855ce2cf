# Nombre de archivo: schemas.py
# Ubicación de archivo: modules/informes_servicios/schemas.py
# Descripción: Modelos de datos para registros de servicio, estadísticas y exportación

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_CAMPOS_TEXTO = (
    "operator_name",
    "technician_name",
    "company_name",
    "contract_number",
    "service_type",
    "street",
    "neighborhood",
    "cto_location",
    "area_cx",
    "available_slots",
    "unit",
    "visited_cxs",
)


class TipoServicio(str, Enum):
    """Tipos de visita tal como se guardan en el store."""

    ATIVACAO = "Ativação"
    REPARO = "Reparo"
    MUDANCA_ENDERECO = "Mudança Endereço"
    CLEAN_UP = "Clean Up"


class ServiceRecord(BaseModel):
    """Fila de `service_records` validada una única vez en la frontera del store."""

    model_config = ConfigDict(extra="ignore")

    id: str
    operator_name: str = ""
    technician_name: str = ""
    company_name: str = ""
    contract_number: str = ""
    service_type: str = ""
    created_at: datetime
    street: str = ""
    neighborhood: str = ""
    cto_location: str = ""
    area_cx: str = ""
    available_slots: str = ""
    unit: str = ""
    visited_cxs: str = ""
    general_comments: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    created_by: Optional[str] = None

    @field_validator(*_CAMPOS_TEXTO, mode="before")
    @classmethod
    def _texto(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    @field_validator("images", mode="before")
    @classmethod
    def _imagenes(cls, value: Any) -> List[str]:
        if not value:
            return []
        return [str(v) for v in value]

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class RegistroAnotado(ServiceRecord):
    """Registro con la marca de duplicado calculada sobre el resultado de una consulta."""

    is_duplicate: bool = False


class ServiceRecordCreate(BaseModel):
    """Datos del formulario de alta; las reglas de negocio las valida el intake."""

    operator_name: str
    technician_name: str
    company_name: str
    contract_number: str
    service_type: str
    street: str = ""
    neighborhood: str = ""
    cto_location: str = ""
    area_cx: str = ""
    available_slots: str = ""
    unit: str = ""
    visited_cxs: str = ""
    general_comments: Optional[str] = None
    images: List[str] = Field(default_factory=list)


class ServiceRecordUpdate(BaseModel):
    operator_name: Optional[str] = None
    technician_name: Optional[str] = None
    company_name: Optional[str] = None
    contract_number: Optional[str] = None
    service_type: Optional[str] = None
    street: Optional[str] = None
    neighborhood: Optional[str] = None
    cto_location: Optional[str] = None
    area_cx: Optional[str] = None
    available_slots: Optional[str] = None
    unit: Optional[str] = None
    visited_cxs: Optional[str] = None
    general_comments: Optional[str] = None
    images: Optional[List[str]] = None


class RangoFechas(BaseModel):
    start: datetime
    end: datetime


class OperatorStat(BaseModel):
    operator_name: str
    total_services: int
    percentage: float
    daily_average: float


class OperadorTotal(BaseModel):
    name: str
    total: int


class FiltrosHistorial(BaseModel):
    periodo: str = "all"
    fecha: Optional[date] = None
    service_type: Optional[str] = None
    neighborhood: Optional[str] = None
    operator: Optional[str] = None
    busqueda: str = ""
    pagina: int = 1
    por_pagina: int = 10


class PaginaHistorial(BaseModel):
    items: List[RegistroAnotado]
    total: int
    total_filtrado: int
    pagina: int
    total_paginas: int
    operadores: List[str]
    barrios: List[str]


class ResultadoEficiencia(BaseModel):
    periodo: str
    rango: RangoFechas
    dias_en_periodo: int
    total_servicios: int
    operadores: List[OperatorStat]


class DiaCalendario(BaseModel):
    fecha: date
    dia: int
    del_mes: bool
    es_hoy: bool
    seleccionado: bool
    servicios: int


class Calendario(BaseModel):
    anio: int
    mes: int
    dias: List[DiaCalendario]
    conteos: Dict[str, int]


class ResumenDashboard(BaseModel):
    total_servicios: int
    recientes: List[ServiceRecord]
    eficiencia: int
    operadores: List[OperadorTotal]
