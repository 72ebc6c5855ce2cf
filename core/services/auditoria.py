# Nombre de archivo: auditoria.py
# Ubicación de archivo: core/services/auditoria.py
# Descripción: Listado de la auditoría con el email del autor y mensajes legibles por evento

from __future__ import annotations

import logging
from typing import Any, Dict, List

from core.services.auth_service import UsuarioActual
from core.services.errors import PermisoDenegado
from core.store import Consulta, RecordStore, TABLA_AUDITORIA, TABLA_SERVICIOS, TABLA_USUARIOS

logger = logging.getLogger(__name__)

LIMITES_PERMITIDOS = (50, 1000)


def formatear_mensaje(log: Dict[str, Any]) -> str:
    """Texto corto para la tabla de auditoría del panel de administración."""

    mensaje = f"{log.get('action')} em {log.get('table_name')}"
    cambios = log.get("changes")
    if not cambios:
        return mensaje

    if log.get("action") == "DELETE":
        previo = cambios.get("deleted_record") or {}
        mensaje += f" - Registro {log.get('record_id')}"
        if log.get("table_name") == TABLA_SERVICIOS:
            mensaje += f" ({previo.get('service_type') or ''} - {previo.get('operator_name') or ''})"
            if previo.get("contract_number"):
                mensaje += f" | Contrato: {previo['contract_number']}"
        elif log.get("table_name") == TABLA_USUARIOS:
            mensaje += f" ({previo.get('email') or ''})"
        return mensaje

    nuevos = cambios.get("new_data") or cambios
    if log.get("table_name") == TABLA_SERVICIOS:
        mensaje += f" - {nuevos.get('service_type') or 'Serviço'} para {nuevos.get('operator_name') or 'operador'}"
    elif log.get("table_name") == TABLA_USUARIOS:
        mensaje += f" - {nuevos.get('email') or 'usuário'}"
    return mensaje


def listar_auditoria(store: RecordStore, actor: UsuarioActual, limite: int = 50) -> List[Dict[str, Any]]:
    """Últimos eventos, del más nuevo al más viejo, con ``user_email`` y ``message``."""

    if not actor.es_admin:
        raise PermisoDenegado("Apenas administradores podem ver a auditoria")
    if limite not in LIMITES_PERMITIDOS:
        raise ValueError(f"Limite inválido: {limite}")

    logs = store.query(
        Consulta(tabla=TABLA_AUDITORIA, orden="created_at", descendente=True, limite=limite)
    ).filas
    emails = {
        u["id"]: u["email"]
        for u in store.query(Consulta(tabla=TABLA_USUARIOS, columnas=["id", "email"])).filas
    }
    resultado = [
        {**log, "user_email": emails.get(log.get("user_id")), "message": formatear_mensaje(log)}
        for log in logs
    ]
    logger.debug("action=listar_auditoria limite=%s filas=%s", limite, len(resultado))
    return resultado


__all__ = ["LIMITES_PERMITIDOS", "formatear_mensaje", "listar_auditoria"]
