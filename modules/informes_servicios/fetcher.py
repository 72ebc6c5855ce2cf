# Nombre de archivo: fetcher.py
# Ubicación de archivo: modules/informes_servicios/fetcher.py
# Descripción: Consultas de registros de servicio contra el store con filtros de rango e igualdad

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import ValidationError

from core.store import Consulta, FetchError, RecordStore, StoreError, TABLA_SERVICIOS

from . import config as servicios_config
from .schemas import RangoFechas, ServiceRecord

logger = logging.getLogger(__name__)


def _a_registros(filas) -> List[ServiceRecord]:
    try:
        return [ServiceRecord.model_validate(fila) for fila in filas]
    except ValidationError as exc:
        raise FetchError("Registro malformado recibido do servidor", exc) from exc


def fetch_service_records(
    store: RecordStore,
    rango: Optional[RangoFechas] = None,
    *,
    service_type: Optional[str] = None,
    neighborhood: Optional[str] = None,
    operator_name: Optional[str] = None,
    excluir_operador_vacio: bool = False,
) -> List[ServiceRecord]:
    """Trae todos los registros que cumplen los filtros, del más nuevo al más viejo.

    Los filtros ``None`` o vacíos no restringen. Cualquier fallo del store se
    propaga como ``FetchError``; no hay reintentos internos.
    """

    consulta = Consulta(tabla=TABLA_SERVICIOS, orden="created_at", descendente=True)
    if rango is not None:
        consulta.where("created_at", "gte", rango.start).where("created_at", "lte", rango.end)
    if service_type:
        consulta.where("service_type", "eq", service_type)
    if neighborhood:
        consulta.where("neighborhood", "eq", neighborhood)
    if operator_name:
        consulta.where("operator_name", "eq", operator_name)
    if excluir_operador_vacio:
        consulta.where("operator_name", "not_null").where("operator_name", "neq", "")

    try:
        resultado = store.query(consulta)
    except StoreError as exc:
        logger.warning("action=fetch_service_records stage=error error=%s", exc)
        raise FetchError("Erro ao carregar os serviços", exc) from exc

    registros = _a_registros(resultado.filas)
    logger.info(
        "action=fetch_service_records stage=ok filtros=%s filas=%s",
        len(consulta.filtros),
        len(registros),
    )
    return registros


def contar_registros(store: RecordStore) -> int:
    try:
        resultado = store.query(Consulta(tabla=TABLA_SERVICIOS, solo_conteo=True))
    except StoreError as exc:
        raise FetchError("Erro ao contar os serviços", exc) from exc
    return int(resultado.conteo or 0)


def registros_recientes(
    store: RecordStore, limite: int = servicios_config.RECIENTES_DASHBOARD
) -> List[ServiceRecord]:
    consulta = Consulta(tabla=TABLA_SERVICIOS, orden="created_at", descendente=True, limite=limite)
    try:
        resultado = store.query(consulta)
    except StoreError as exc:
        raise FetchError("Erro ao carregar os serviços recentes", exc) from exc
    return _a_registros(resultado.filas)


def obtener_registro(store: RecordStore, record_id: str) -> Optional[ServiceRecord]:
    consulta = Consulta(tabla=TABLA_SERVICIOS, limite=1).where("id", "eq", record_id)
    try:
        resultado = store.query(consulta)
    except StoreError as exc:
        raise FetchError("Erro ao carregar o serviço", exc) from exc
    registros = _a_registros(resultado.filas)
    return registros[0] if registros else None


def existe_duplicado_reciente(
    store: RecordStore,
    contract_number: str,
    ahora: Optional[datetime] = None,
) -> bool:
    """Indica si el contrato ya se registró dentro de la ventana de duplicados.

    A diferencia del marcado del historial, el límite es inclusivo: un registro
    de exactamente una hora todavía dispara el aviso. Es una advertencia blanda:
    si la consulta falla se registra y se responde ``False`` para no bloquear el
    alta.
    """

    if not contract_number:
        return False
    ahora = ahora or datetime.now(timezone.utc)
    desde = ahora - servicios_config.VENTANA_DUPLICADO
    consulta = (
        Consulta(tabla=TABLA_SERVICIOS, columnas=["id", "created_at"])
        .where("contract_number", "eq", contract_number)
        .where("created_at", "gte", desde)
    )
    try:
        resultado = store.query(consulta)
    except StoreError as exc:
        logger.warning(
            "action=duplicate_check stage=error contrato=%s error=%s", contract_number, exc
        )
        return False
    return len(resultado.filas) > 0


__all__ = [
    "contar_registros",
    "existe_duplicado_reciente",
    "fetch_service_records",
    "obtener_registro",
    "registros_recientes",
]
