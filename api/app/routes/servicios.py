# Nombre de archivo: servicios.py
# Ubicación de archivo: api/app/routes/servicios.py
# Descripción: Endpoints de historial, exportación, alta/edición/borrado de servicios e imágenes
"""Rutas de registros de servicio.

Los errores del store se traducen a 503 con ``retry: true`` en el handler global;
las validaciones de negocio llegan como 4xx con el mensaje para el usuario.
"""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile

from api.app.deps import get_current_user, get_report_config, get_storage, get_store, verify_csrf
from core.services import imagenes, registros
from core.services.auth_service import UsuarioActual
from core.services.errors import NoEncontrado, PermisoDenegado
from core.storage import LocalBlobStorage
from core.store import RecordStore
from modules.informes_servicios import ReportConfig, generar_exportacion, obtener_historial
from modules.informes_servicios import config as servicios_config
from modules.informes_servicios.fetcher import existe_duplicado_reciente, obtener_registro
from modules.informes_servicios.periodos import PERIODOS
from modules.informes_servicios.schemas import (
    FiltrosHistorial,
    PaginaHistorial,
    ServiceRecord,
    ServiceRecordCreate,
    ServiceRecordUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/services", tags=["services"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _filtros(
    period: str = Query("all"),
    date_: Optional[date] = Query(None, alias="date"),
    service_type: Optional[str] = Query(None),
    neighborhood: Optional[str] = Query(None),
    operator: Optional[str] = Query(None),
    search: str = Query(""),
    page: int = Query(1, ge=1),
    per_page: int = Query(servicios_config.ITEMS_POR_PAGINA, ge=1, le=500),
) -> FiltrosHistorial:
    if period not in PERIODOS:
        raise ValueError(f"Período desconhecido: {period}")
    return FiltrosHistorial(
        periodo=period,
        fecha=date_,
        service_type=service_type or None,
        neighborhood=neighborhood or None,
        operator=operator or None,
        busqueda=search,
        pagina=page,
        por_pagina=per_page,
    )


@router.get("", response_model=PaginaHistorial)
def historial(
    filtros: FiltrosHistorial = Depends(_filtros),
    _: UsuarioActual = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
    config: ReportConfig = Depends(get_report_config),
):
    return obtener_historial(store, filtros, config)


@router.get("/export")
def exportar(
    filtros: FiltrosHistorial = Depends(_filtros),
    _: UsuarioActual = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
    config: ReportConfig = Depends(get_report_config),
):
    resultado = generar_exportacion(store, filtros, config)
    return Response(
        content=resultado.contenido,
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{resultado.nombre}"',
            "X-Total-Rows": str(resultado.total_filas),
        },
    )


@router.get("/duplicate-check")
def verificar_duplicado(
    contract_number: str = Query(...),
    _: UsuarioActual = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
):
    duplicado = existe_duplicado_reciente(store, contract_number.strip())
    return {
        "duplicate": duplicado,
        "warning": servicios_config.AVISO_DUPLICADO if duplicado else None,
    }


@router.post("/images", dependencies=[Depends(verify_csrf)])
async def subir_imagenes(
    files: List[UploadFile] = File(...),
    existing: int = Form(0),
    usuario: UsuarioActual = Depends(get_current_user),
    storage: LocalBlobStorage = Depends(get_storage),
):
    if usuario.es_visitante:
        raise PermisoDenegado("Visitantes não podem enviar imagens")
    archivos = [
        imagenes.ArchivoImagen(
            filename=f.filename or "imagem",
            content_type=f.content_type or "",
            content=await f.read(servicios_config.MAX_BYTES_IMAGEN + 1),
        )
        for f in files
    ]
    urls = imagenes.subir_imagenes(storage, archivos, existentes=existing)
    return {"urls": urls}


@router.delete("/images", dependencies=[Depends(verify_csrf)])
def eliminar_imagen(
    url: str = Query(...),
    usuario: UsuarioActual = Depends(get_current_user),
    storage: LocalBlobStorage = Depends(get_storage),
):
    if usuario.es_visitante:
        raise PermisoDenegado("Visitantes não podem remover imagens")
    ruta = imagenes.eliminar_imagen(storage, url)
    return {"removed": ruta}


@router.get("/{record_id}", response_model=ServiceRecord)
def detalle(
    record_id: str,
    _: UsuarioActual = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
):
    registro = obtener_registro(store, record_id)
    if registro is None:
        raise NoEncontrado("Registro não encontrado")
    return registro


@router.post("", response_model=ServiceRecord, status_code=201, dependencies=[Depends(verify_csrf)])
def crear(
    datos: ServiceRecordCreate,
    confirm_duplicate: bool = Query(False),
    usuario: UsuarioActual = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
):
    return registros.crear_registro(store, datos, usuario, confirmar_duplicado=confirm_duplicate)


@router.patch("/{record_id}", response_model=ServiceRecord, dependencies=[Depends(verify_csrf)])
def actualizar(
    record_id: str,
    cambios: ServiceRecordUpdate,
    usuario: UsuarioActual = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
):
    return registros.actualizar_registro(store, record_id, cambios, usuario)


@router.delete("/{record_id}", dependencies=[Depends(verify_csrf)])
def eliminar(
    record_id: str,
    usuario: UsuarioActual = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
):
    registro = registros.eliminar_registro(store, record_id, usuario)
    return {"deleted": registro.id}
