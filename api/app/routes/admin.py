# Nombre de archivo: admin.py
# Ubicación de archivo: api/app/routes/admin.py
# Descripción: Endpoints del panel de administración (usuarios y auditoría)

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from api.app.deps import get_store, require_admin, verify_csrf
from core.services import auditoria, usuarios
from core.services.auth_service import UsuarioActual
from core.store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


class NuevoUsuarioRequest(BaseModel):
    email: str
    role: str = "user"
    password: Optional[str] = None


class RolRequest(BaseModel):
    role: str


@router.get("/users")
def listar_usuarios(
    admin: UsuarioActual = Depends(require_admin),
    store: RecordStore = Depends(get_store),
):
    return {"users": usuarios.listar_usuarios(store, admin)}


@router.get("/users/summary")
def resumen_usuarios(
    admin: UsuarioActual = Depends(require_admin),
    store: RecordStore = Depends(get_store),
):
    resumen = usuarios.resumen_usuarios(store, admin)
    return {"total": resumen.total, "admins": resumen.admins, "active_24h": resumen.activos_24h}


@router.post("/users", status_code=201, dependencies=[Depends(verify_csrf)])
def crear_usuario(
    req: NuevoUsuarioRequest,
    admin: UsuarioActual = Depends(require_admin),
    store: RecordStore = Depends(get_store),
):
    creado = usuarios.crear_usuario(store, req.email, req.role, admin, password=req.password)
    return {"user": creado.usuario, "temporary_password": creado.password_temporal}


@router.delete("/users/{user_id}", dependencies=[Depends(verify_csrf)])
def eliminar_usuario(
    user_id: str,
    admin: UsuarioActual = Depends(require_admin),
    store: RecordStore = Depends(get_store),
):
    usuarios.eliminar_usuario(store, user_id, admin)
    return {"deleted": user_id}


@router.patch("/users/{user_id}/role", dependencies=[Depends(verify_csrf)])
def actualizar_rol(
    user_id: str,
    req: RolRequest,
    admin: UsuarioActual = Depends(require_admin),
    store: RecordStore = Depends(get_store),
):
    return {"user": usuarios.actualizar_rol(store, user_id, req.role, admin)}


@router.get("/audit-logs")
def listar_auditoria(
    limit: int = Query(50),
    admin: UsuarioActual = Depends(require_admin),
    store: RecordStore = Depends(get_store),
):
    return {"logs": auditoria.listar_auditoria(store, admin, limite=limit)}
