# Nombre de archivo: service.py
# Ubicación de archivo: modules/informes_servicios/service.py
# Descripción: Servicio central de historial, eficiencia, exportación, dashboard y calendario de servicios

"""Orquestación compartida por la API y los scripts.

Cada función sigue el mismo flujo: resolver período → traer registros del store →
procesar (duplicados, estadísticas, formato) → devolver un modelo listo para serializar.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from pathlib import Path
from typing import Optional

from core.store import RecordStore

from . import config as servicios_config
from . import fetcher, periodos, processor, report
from .schemas import (
    Calendario,
    FiltrosHistorial,
    PaginaHistorial,
    ResultadoEficiencia,
    ResumenDashboard,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReportConfig:
    """Parámetros de configuración para historial y exportación."""

    reports_dir: Path
    timezone: str = "America/Sao_Paulo"
    items_por_pagina: int = servicios_config.ITEMS_POR_PAGINA

    @classmethod
    def from_settings(cls) -> "ReportConfig":
        # Leer dinámicamente desde el módulo de config para respetar monkeypatch/env en tests
        return cls(
            reports_dir=Path(getattr(servicios_config, "REPORTS_DIR")),
            timezone=str(getattr(servicios_config, "TIMEZONE")),
            items_por_pagina=int(getattr(servicios_config, "ITEMS_POR_PAGINA")),
        )

    @property
    def zona(self) -> tzinfo:
        return periodos.zona_local(self.timezone)


@dataclass(slots=True)
class ExportResult:
    """Planilla generada; ``path`` solo existe si se pidió guardarla."""

    nombre: str
    contenido: bytes
    total_filas: int
    path: Optional[Path] = None


def obtener_historial(
    store: RecordStore,
    filtros: FiltrosHistorial,
    config: ReportConfig,
    ahora: Optional[datetime] = None,
) -> PaginaHistorial:
    rango = periodos.resolver_rango(filtros.periodo, filtros.fecha, ahora=ahora, zona=config.zona)
    registros = fetcher.fetch_service_records(
        store,
        rango,
        service_type=filtros.service_type,
        neighborhood=filtros.neighborhood,
        operator_name=filtros.operator,
    )
    anotados = processor.marcar_duplicados(registros)
    filtrados = processor.buscar(anotados, filtros.busqueda)
    items, pagina, total_paginas = processor.paginar(
        filtrados, filtros.pagina, filtros.por_pagina or config.items_por_pagina
    )
    logger.info(
        "action=historial stage=ok periodo=%s total=%s filtrado=%s pagina=%s/%s",
        filtros.periodo,
        len(anotados),
        len(filtrados),
        pagina,
        total_paginas,
    )
    return PaginaHistorial(
        items=items,
        total=len(anotados),
        total_filtrado=len(filtrados),
        pagina=pagina,
        total_paginas=total_paginas,
        operadores=processor.opciones_operadores(registros),
        barrios=processor.barrios_unicos(registros),
    )


def obtener_eficiencia(
    store: RecordStore,
    periodo: str,
    config: ReportConfig,
    fecha: Optional[date] = None,
    ahora: Optional[datetime] = None,
) -> ResultadoEficiencia:
    """Estadísticas por operador para un período de calendario o una fecha puntual."""

    dias = periodos.dias_en_periodo(periodo, fecha)
    rango = periodos.resolver_rango(periodo, fecha, ahora=ahora, zona=config.zona)
    if rango is None:
        raise ValueError("A eficiência exige um período definido")
    registros = fetcher.fetch_service_records(store, rango, excluir_operador_vacio=True)
    stats = processor.calcular_estadisticas_operadores(registros, dias)
    logger.info(
        "action=eficiencia stage=ok periodo=%s dias=%s registros=%s operadores=%s",
        periodo,
        dias,
        len(registros),
        len(stats),
    )
    return ResultadoEficiencia(
        periodo=periodo,
        rango=rango,
        dias_en_periodo=dias,
        total_servicios=len(registros),
        operadores=stats,
    )


def generar_exportacion(
    store: RecordStore,
    filtros: FiltrosHistorial,
    config: ReportConfig,
    ahora: Optional[datetime] = None,
    guardar: bool = False,
) -> ExportResult:
    """Exporta los registros que cumplen los filtros de período y selección.

    La búsqueda libre también se aplica para que la planilla coincida con la tabla
    visible; la paginación no.
    """

    zona = config.zona
    rango = periodos.resolver_rango(filtros.periodo, filtros.fecha, ahora=ahora, zona=zona)
    registros = fetcher.fetch_service_records(
        store,
        rango,
        service_type=filtros.service_type,
        neighborhood=filtros.neighborhood,
        operator_name=filtros.operator,
    )
    registros = processor.buscar(registros, filtros.busqueda)
    filas = report.formatear_exportacion(registros, zona)

    hoy = (ahora or datetime.now(timezone.utc)).astimezone(zona).date()
    nombre = report.nombre_archivo(hoy)
    destino = config.reports_dir / nombre if guardar else None
    contenido = report.export_xlsx(filas, destino)
    logger.info("action=exportacion stage=ok archivo=%s filas=%s", nombre, len(filas))
    return ExportResult(nombre=nombre, contenido=contenido, total_filas=len(filas), path=destino)


def obtener_resumen_dashboard(
    store: RecordStore,
    config: ReportConfig,
    ahora: Optional[datetime] = None,
) -> ResumenDashboard:
    ahora = ahora or datetime.now(timezone.utc)
    total = fetcher.contar_registros(store)
    recientes = fetcher.registros_recientes(store)

    ultimos = fetcher.fetch_service_records(
        store, periodos.resolver_rango("last_30_days", ahora=ahora, zona=config.zona)
    )
    eficiencia = processor.eficiencia_vagas(ultimos)

    todos = fetcher.fetch_service_records(store)
    ranking = processor.ranking_operadores(todos)
    logger.info(
        "action=dashboard stage=ok total=%s recientes=%s eficiencia=%s operadores=%s",
        total,
        len(recientes),
        eficiencia,
        len(ranking),
    )
    return ResumenDashboard(
        total_servicios=total,
        recientes=recientes,
        eficiencia=eficiencia,
        operadores=ranking,
    )


def obtener_calendario(
    store: RecordStore,
    anio: int,
    mes: int,
    config: ReportConfig,
    seleccionado: Optional[date] = None,
    ahora: Optional[datetime] = None,
) -> Calendario:
    """Grilla mensual con la cantidad de servicios por día del mes mostrado."""

    if not 1 <= mes <= 12:
        raise ValueError(f"Mês inválido: {mes}")
    zona = config.zona
    referencia = datetime(anio, mes, 1, tzinfo=zona)
    rango = periodos.resolver_rango("month", ahora=referencia, zona=zona)
    registros = fetcher.fetch_service_records(store, rango)
    conteos = processor.conteo_diario(registros, zona)

    hoy = (ahora or datetime.now(timezone.utc)).astimezone(zona).date()
    dias = processor.construir_calendario(anio, mes, conteos, hoy, seleccionado)
    return Calendario(anio=anio, mes=mes, dias=dias, conteos=conteos)


__all__ = [
    "ExportResult",
    "ReportConfig",
    "generar_exportacion",
    "obtener_calendario",
    "obtener_eficiencia",
    "obtener_historial",
    "obtener_resumen_dashboard",
]
