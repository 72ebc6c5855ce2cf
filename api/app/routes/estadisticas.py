# Nombre de archivo: estadisticas.py
# Ubicación de archivo: api/app/routes/estadisticas.py
# Descripción: Endpoints de dashboard, eficiencia por operador y calendario de servicios

import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.app.deps import get_current_user, get_report_config, get_store
from core.services.auth_service import UsuarioActual
from core.store import RecordStore
from modules.informes_servicios import (
    ReportConfig,
    obtener_calendario,
    obtener_eficiencia,
    obtener_resumen_dashboard,
)
from modules.informes_servicios.schemas import Calendario, ResultadoEficiencia, ResumenDashboard

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/dashboard", response_model=ResumenDashboard)
def dashboard(
    _: UsuarioActual = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
    config: ReportConfig = Depends(get_report_config),
):
    return obtener_resumen_dashboard(store, config)


@router.get("/efficiency", response_model=ResultadoEficiencia)
def eficiencia(
    period: str = Query("day"),
    date_: Optional[date] = Query(None, alias="date"),
    _: UsuarioActual = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
    config: ReportConfig = Depends(get_report_config),
):
    return obtener_eficiencia(store, period, config, fecha=date_)


@router.get("/calendar", response_model=Calendario)
def calendario(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    selected: Optional[date] = Query(None),
    _: UsuarioActual = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
    config: ReportConfig = Depends(get_report_config),
):
    hoy = datetime.now(timezone.utc).astimezone(config.zona).date()
    return obtener_calendario(
        store,
        year or hoy.year,
        month or hoy.month,
        config,
        seleccionado=selected,
    )
