# Nombre de archivo: realtime.py
# Ubicación de archivo: api/app/routes/realtime.py
# Descripción: WebSocket que avisa cambios por tabla con debounce para que el cliente vuelva a consultar

import asyncio
import logging
from typing import List, Set

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.concurrency import run_in_threadpool

from core.realtime import DebouncedRefetch
from core.services.auth_service import UsuarioActual, usuario_actual
from core.store import EventoCambio, TABLA_AUDITORIA, TABLA_SERVICIOS, TABLA_USUARIOS

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

TABLAS_PUBLICAS = (TABLA_SERVICIOS,)
TABLAS_ADMIN = (TABLA_USUARIOS, TABLA_AUDITORIA)


def _tablas_pedidas(pedido: str, usuario: UsuarioActual) -> List[str]:
    permitidas = TABLAS_PUBLICAS + (TABLAS_ADMIN if usuario.es_admin else ())
    if not pedido:
        return list(permitidas)
    return [t for t in (p.strip() for p in pedido.split(",")) if t in permitidas]


@router.websocket("/ws/changes")
async def cambios(websocket: WebSocket):
    store = websocket.app.state.store
    settings = websocket.app.state.settings
    token = websocket.query_params.get("token") or websocket.session.get("token")
    usuario = await run_in_threadpool(usuario_actual, store, token)
    if usuario is None:
        await websocket.close(code=1008)
        return

    await websocket.accept()
    loop = asyncio.get_running_loop()
    pendientes: Set[str] = set()

    async def avisar() -> None:
        tablas = sorted(pendientes)
        pendientes.clear()
        for tabla in tablas:
            await websocket.send_json({"type": "changed", "table": tabla})

    debounce = DebouncedRefetch(avisar, delay=settings.realtime_debounce_ms / 1000)

    def on_change(evento: EventoCambio) -> None:
        # Las mutaciones se publican desde el threadpool; se reprograma en el loop del socket
        def programar() -> None:
            pendientes.add(evento.tabla)
            debounce.trigger()

        loop.call_soon_threadsafe(programar)

    tablas = _tablas_pedidas(websocket.query_params.get("tables", ""), usuario)
    suscripciones = [store.subscribe(tabla, on_change) for tabla in tablas]
    logger.info("action=ws_changes stage=open user_id=%s tablas=%s", usuario.id, tablas)
    await websocket.send_json({"type": "subscribed", "tables": tablas})
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("action=ws_changes stage=closed user_id=%s", usuario.id)
    finally:
        for suscripcion in suscripciones:
            suscripcion.cancel()
        debounce.cancel()
