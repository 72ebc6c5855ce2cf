# Nombre de archivo: usuarios.py
# Ubicación de archivo: core/services/usuarios.py
# Descripción: Administración de usuarios (alta con clave temporal, baja, cambio de rol y resumen)

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from core.password import generate_temporary_password, hash_password
from core.services.auth_service import ROLES, UsuarioActual
from core.services.errors import NoEncontrado, PermisoDenegado, RegistroInvalido
from core.store import Consulta, Mutacion, RecordStore, StoreError, TABLA_SESIONES, TABLA_USUARIOS

logger = logging.getLogger(__name__)

_COLUMNAS_PUBLICAS = ["id", "email", "role", "created_at", "last_sign_in_at"]


@dataclass(slots=True)
class UsuarioCreado:
    usuario: Dict[str, Any]
    password_temporal: str


@dataclass(slots=True)
class ResumenUsuarios:
    total: int
    admins: int
    activos_24h: int


def _exigir_admin(actor: UsuarioActual) -> None:
    if not actor.es_admin:
        raise PermisoDenegado("Apenas administradores podem gerenciar usuários")


def _validar_rol(role: str) -> None:
    if role not in ROLES:
        raise RegistroInvalido(f"Função inválida: {role}")


def listar_usuarios(store: RecordStore, actor: UsuarioActual) -> List[Dict[str, Any]]:
    _exigir_admin(actor)
    consulta = Consulta(tabla=TABLA_USUARIOS, columnas=_COLUMNAS_PUBLICAS, orden="created_at", descendente=True)
    return store.query(consulta).filas


def crear_usuario(
    store: RecordStore,
    email: str,
    role: str,
    actor: UsuarioActual,
    password: Optional[str] = None,
) -> UsuarioCreado:
    """Da de alta un usuario; sin contraseña explícita se genera una temporal."""

    _exigir_admin(actor)
    email = (email or "").strip().lower()
    if not email or "@" not in email:
        raise RegistroInvalido("Email inválido")
    _validar_rol(role)
    existente = store.query(Consulta(tabla=TABLA_USUARIOS, columnas=["id"]).where("email", "eq", email)).filas
    if existente:
        raise RegistroInvalido("Já existe um usuário com este email")

    temporal = password or generate_temporary_password()
    fila = store.mutate(
        Mutacion(
            tabla=TABLA_USUARIOS,
            accion="insert",
            datos={"email": email, "role": role, "password_hash": hash_password(temporal)},
        ),
        actor_id=actor.id,
    )
    publico = {k: fila[k] for k in _COLUMNAS_PUBLICAS if k in fila}
    logger.info("action=crear_usuario stage=ok email=%s role=%s actor=%s", email, role, actor.id)
    return UsuarioCreado(usuario=publico, password_temporal=temporal)


def eliminar_usuario(store: RecordStore, user_id: str, actor: UsuarioActual) -> None:
    _exigir_admin(actor)
    if user_id == actor.id:
        raise RegistroInvalido("Não é possível excluir o próprio usuário")
    sesiones = store.query(Consulta(tabla=TABLA_SESIONES, columnas=["token"]).where("user_id", "eq", user_id)).filas
    for sesion in sesiones:
        store.mutate(Mutacion(tabla=TABLA_SESIONES, accion="delete", clave=sesion["token"]))
    fila = store.mutate(Mutacion(tabla=TABLA_USUARIOS, accion="delete", clave=user_id), actor_id=actor.id)
    if fila is None:
        raise NoEncontrado("Usuário não encontrado")
    logger.info("action=eliminar_usuario stage=ok user_id=%s actor=%s", user_id, actor.id)


def actualizar_rol(store: RecordStore, user_id: str, role: str, actor: UsuarioActual) -> Dict[str, Any]:
    _exigir_admin(actor)
    _validar_rol(role)
    fila = store.mutate(
        Mutacion(tabla=TABLA_USUARIOS, accion="update", clave=user_id, datos={"role": role}),
        actor_id=actor.id,
    )
    if fila is None:
        raise NoEncontrado("Usuário não encontrado")
    logger.info("action=actualizar_rol stage=ok user_id=%s role=%s actor=%s", user_id, role, actor.id)
    return {k: fila[k] for k in _COLUMNAS_PUBLICAS if k in fila}


def resumen_usuarios(
    store: RecordStore, actor: UsuarioActual, ahora: Optional[datetime] = None
) -> ResumenUsuarios:
    _exigir_admin(actor)
    ahora = ahora or datetime.now(timezone.utc)
    try:
        usuarios = store.query(Consulta(tabla=TABLA_USUARIOS, columnas=["role", "last_sign_in_at"])).filas
    except StoreError:
        logger.exception("action=resumen_usuarios stage=error")
        raise
    limite = ahora - timedelta(hours=24)
    return ResumenUsuarios(
        total=len(usuarios),
        admins=sum(1 for u in usuarios if u.get("role") == "admin"),
        activos_24h=sum(1 for u in usuarios if u.get("last_sign_in_at") and u["last_sign_in_at"] > limite),
    )


__all__ = [
    "ResumenUsuarios",
    "UsuarioCreado",
    "actualizar_rol",
    "crear_usuario",
    "eliminar_usuario",
    "listar_usuarios",
    "resumen_usuarios",
]
