# Nombre de archivo: periodos.py
# Ubicación de archivo: modules/informes_servicios/periodos.py
# Descripción: Resolución de períodos con nombre a rangos de fechas en la zona horaria local

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from . import config as servicios_config
from .schemas import RangoFechas

PERIODOS_CALENDARIO = ("today", "day", "week", "month", "custom")
PERIODOS_MOVILES = {"last_7_days": 7, "last_30_days": 30}
PERIODOS = ("all",) + PERIODOS_CALENDARIO + tuple(PERIODOS_MOVILES)

_FIN_DEL_DIA = time(23, 59, 59, 999000)


def zona_local(nombre: str | None = None) -> tzinfo:
    return ZoneInfo(nombre or servicios_config.TIMEZONE)


def _ahora_local(ahora: Optional[datetime], zona: tzinfo) -> datetime:
    if ahora is None:
        return datetime.now(zona)
    if ahora.tzinfo is None:
        return ahora.replace(tzinfo=zona)
    return ahora.astimezone(zona)


def _limites(desde: date, hasta: date, zona: tzinfo) -> RangoFechas:
    return RangoFechas(
        start=datetime.combine(desde, time.min, tzinfo=zona),
        end=datetime.combine(hasta, _FIN_DEL_DIA, tzinfo=zona),
    )


def resolver_rango(
    periodo: str,
    fecha: Optional[date] = None,
    *,
    ahora: Optional[datetime] = None,
    zona: Optional[tzinfo] = None,
) -> Optional[RangoFechas]:
    """Traduce un período con nombre a un rango inclusivo.

    Una fecha seleccionada tiene prioridad sobre el período: el rango es ese día
    completo. ``all`` devuelve ``None`` (sin restricción temporal). Los períodos
    ``last_7_days`` y ``last_30_days`` son móviles y terminan en ``ahora``.
    """

    zona = zona or zona_local()
    local = _ahora_local(ahora, zona)

    if fecha is not None:
        return _limites(fecha, fecha, zona)

    if periodo == "all":
        return None

    hoy = local.date()
    if periodo in ("today", "day", "custom"):
        # custom sin fecha elegida cae en hoy
        return _limites(hoy, hoy, zona)

    if periodo == "week":
        lunes = hoy - timedelta(days=hoy.weekday())
        return _limites(lunes, lunes + timedelta(days=6), zona)

    if periodo == "month":
        ultimo = calendar.monthrange(hoy.year, hoy.month)[1]
        return _limites(hoy.replace(day=1), hoy.replace(day=ultimo), zona)

    if periodo in PERIODOS_MOVILES:
        return RangoFechas(start=local - timedelta(days=PERIODOS_MOVILES[periodo]), end=local)

    raise ValueError(f"Período desconocido: {periodo}")


def dias_en_periodo(periodo: str, fecha: Optional[date] = None) -> int:
    """Divisor nominal para el promedio diario de cada operador."""

    if fecha is not None:
        return 1
    try:
        return servicios_config.DIAS_POR_PERIODO[periodo]
    except KeyError as exc:
        raise ValueError(f"Período sin días nominales: {periodo}") from exc


__all__ = ["PERIODOS", "dias_en_periodo", "resolver_rango", "zona_local"]
